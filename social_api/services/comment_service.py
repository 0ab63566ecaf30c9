"""
Comment service: comments and their one-level replies.

Comments form a two-level tree: top-level comments (``parent_id`` NULL)
and replies whose ``parent_id`` points at a top-level comment.  A reply
always inherits the ``post_id`` of its parent, so a reply can never end up
on a different post than the comment it answers.

Deleting a comment relies on the ``ON DELETE CASCADE`` foreign key on
``comments.parent_id`` to remove its replies.  Every write invalidates the
cached views of the owning post, whose comment counts change.
"""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from social_api.cache import cache
from social_api.exceptions import NotFoundError
from social_api.models import Comment, Post, User
from social_api.schemas import CommentBody, CommentCreate, CommentUpdate, PaginatedResponse
from social_api.services.base import paginate
from social_api.services.serializers import comment_to_dict

# Author of the comment plus its direct replies and their authors.
_WITH_REPLIES = (
    joinedload(Comment.author),
    selectinload(Comment.replies).joinedload(Comment.author),
)


async def _load_comment(db: AsyncSession, comment_id: int, with_replies: bool = False) -> Comment | None:
    q = select(Comment).where(Comment.id == comment_id)
    if with_replies:
        q = q.options(*_WITH_REPLIES)
    else:
        q = q.options(joinedload(Comment.author))
    # populate_existing so a comment already in the identity map gets the
    # relationships requested here rather than its earlier noload state.
    q = q.execution_options(populate_existing=True)
    return (await db.execute(q)).unique().scalar_one_or_none()


async def _insert(db: AsyncSession, *, content: str, author_id: int, post_id: int,
                  parent_id: int | None) -> dict:
    if await db.get(User, author_id) is None:
        raise NotFoundError("Author not found")

    comment = Comment(content=content, author_id=author_id, post_id=post_id, parent_id=parent_id)
    db.add(comment)
    await db.flush()
    await cache.invalidate_post(post_id)

    return comment_to_dict(await _load_comment(db, comment.id))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_comment(db: AsyncSession, data: CommentCreate) -> dict:
    """
    Create a comment on ``data.post_id``.

    When ``data.parent_id`` is set this is a reply and goes through
    :func:`create_reply`, which takes the post from the parent.
    """
    if data.parent_id is not None:
        return await create_reply(db, data.parent_id, data)

    if await db.get(Post, data.post_id) is None:
        raise NotFoundError("Post not found")
    return await _insert(
        db, content=data.content, author_id=data.author_id, post_id=data.post_id, parent_id=None
    )


async def create_reply(db: AsyncSession, parent_id: int, data: CommentBody) -> dict:
    """
    Reply to comment *parent_id*.

    Only ``content`` and ``author_id`` are read from *data*; the reply's
    ``post_id`` is always the parent's.  Raises NotFoundError when the
    parent does not exist.

    *parent_id* may itself be a reply.  Such a third-level comment counts
    towards the post's ``_count.comments`` but is not rendered by
    :func:`get_top_level_comments`, which only attaches direct replies.
    """
    parent = await db.get(Comment, parent_id)
    if parent is None:
        raise NotFoundError("Parent comment not found")

    return await _insert(
        db,
        content=data.content,
        author_id=data.author_id,
        post_id=parent.post_id,
        parent_id=parent.id,
    )


async def update_comment(db: AsyncSession, comment_id: int, data: CommentUpdate) -> dict:
    """Replace the content of a comment (the only editable field)."""
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")

    post_id = comment.post_id
    comment.content = data.content
    await db.flush()
    await cache.invalidate_post(post_id)
    return comment_to_dict(await _load_comment(db, comment_id))


async def delete_comment(db: AsyncSession, comment_id: int) -> None:
    """Delete a comment; its replies are removed by the schema cascade."""
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")

    post_id = comment.post_id
    await db.delete(comment)
    await db.flush()
    await cache.invalidate_post(post_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_comment(db: AsyncSession, comment_id: int) -> dict | None:
    """A comment with its author and direct replies (oldest first)."""
    comment = await _load_comment(db, comment_id, with_replies=True)
    return comment_to_dict(comment, with_replies=True) if comment else None


async def get_top_level_comments(db: AsyncSession, post_id: int) -> list[dict]:
    """All top-level comments of a post, newest first, replies attached."""
    q = (
        select(Comment)
        .where(Comment.post_id == post_id, Comment.parent_id.is_(None))
        .options(*_WITH_REPLIES)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return [comment_to_dict(c, with_replies=True) for c in result.unique().scalars().all()]


async def get_comments_by_post(
    db: AsyncSession, post_id: int, page: int = 1, limit: int = 20
) -> PaginatedResponse:
    """One page of a post's top-level comments, each with its replies."""
    return await paginate(
        db,
        Comment,
        page=page,
        limit=limit,
        where=(Comment.post_id == post_id, Comment.parent_id.is_(None)),
        order_by=(Comment.created_at.desc(), Comment.id.desc()),
        options=_WITH_REPLIES,
        serialize=lambda c: comment_to_dict(c, with_replies=True),
    )


async def get_comments_by_author(
    db: AsyncSession, author_id: int, page: int = 1, limit: int = 20
) -> PaginatedResponse:
    """Every comment written by *author_id*, at any nesting level."""
    return await paginate(
        db,
        Comment,
        page=page,
        limit=limit,
        where=(Comment.author_id == author_id,),
        order_by=(Comment.created_at.desc(), Comment.id.desc()),
        options=(joinedload(Comment.author),),
        serialize=comment_to_dict,
    )


async def is_author(db: AsyncSession, comment_id: int, user_id: int) -> bool:
    q = select(Comment.author_id).where(Comment.id == comment_id)
    return (await db.execute(q)).scalar_one_or_none() == user_id


async def count_by_post(db: AsyncSession, post_id: int) -> int:
    """All comments on a post, replies included."""
    q = select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
    return (await db.execute(q)).scalar_one()


async def count_replies(db: AsyncSession, comment_id: int) -> int:
    q = select(func.count()).select_from(Comment).where(Comment.parent_id == comment_id)
    return (await db.execute(q)).scalar_one()


async def count_by_posts(db: AsyncSession, post_ids: list[int]) -> dict[int, int]:
    """Comment counts (replies included) for several posts; missing ids map to 0."""
    counts = {post_id: 0 for post_id in post_ids}
    if not post_ids:
        return counts

    q = (
        select(Comment.post_id, func.count())
        .where(Comment.post_id.in_(post_ids))
        .group_by(Comment.post_id)
    )
    for post_id, count in (await db.execute(q)).all():
        counts[post_id] = count
    return counts
