"""
ORM → plain dict serialisation shared by every service.

All keys are camelCase to match the public JSON contract.  Relationships
are only serialised when the caller eager-loaded them; with
``lazy="noload"`` an unloaded many-to-one reads as None and an unloaded
collection as an empty list, so no implicit IO happens here.
"""
from datetime import datetime

from social_api.models import Comment, Like, Post, User


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_to_dict(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "name": user.name,
        "avatar": user.avatar,
        "bio": user.bio,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def post_to_dict(post: Post) -> dict:
    """Serialise a Post with its author (when loaded)."""
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "imageUrl": post.image_url,
        "published": post.published,
        "authorId": post.author_id,
        "createdAt": _iso(post.created_at),
        "updatedAt": _iso(post.updated_at),
        "author": user_to_dict(post.author),
    }


def comment_to_dict(comment: Comment, with_replies: bool = False) -> dict:
    """
    Serialise a Comment with its author.

    With *with_replies* the direct replies are attached oldest first; only
    one level is rendered.
    """
    data = {
        "id": comment.id,
        "content": comment.content,
        "authorId": comment.author_id,
        "postId": comment.post_id,
        "parentId": comment.parent_id,
        "createdAt": _iso(comment.created_at),
        "updatedAt": _iso(comment.updated_at),
        "author": user_to_dict(comment.author),
    }
    if with_replies:
        replies = sorted(comment.replies, key=lambda r: (r.created_at, r.id))
        data["replies"] = [comment_to_dict(r) for r in replies]
    return data


def like_to_dict(like: Like) -> dict:
    data = {
        "id": like.id,
        "userId": like.user_id,
        "postId": like.post_id,
        "createdAt": _iso(like.created_at),
    }
    if like.user is not None:
        data["user"] = user_to_dict(like.user)
    if like.post is not None:
        data["post"] = {"id": like.post.id, "title": like.post.title}
    return data
