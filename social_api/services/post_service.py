"""
Post service: business logic for the Post aggregate.

Design notes
------------
- List and detail reads go through the cache-aside pattern (Redis, falling
  back to the database).  List keys encode every filter so two different
  queries never share an entry.  Comment, like and user writes invalidate
  these keys from their own services.
- List items carry ``_count`` (likes, comments).  Both counts come from a
  single GROUP BY query per page (``count_by_posts``) instead of one query
  per post.
- ``viewer_id`` annotations (``likedByViewer``) are computed after the
  cache lookup because they depend on who is asking.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency in the router layer.
"""
import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from social_api.cache import cache, post_detail_key, post_list_key
from social_api.config import settings
from social_api.exceptions import NotFoundError
from social_api.models import Like, Post, User
from social_api.schemas import PaginatedResponse, PostCreate, PostUpdate
from social_api.services import comment_service, like_service
from social_api.services.base import paginate
from social_api.services.serializers import like_to_dict, post_to_dict

logger = logging.getLogger(__name__)


async def _load_post(db: AsyncSession, post_id: int) -> Post | None:
    q = (
        select(Post)
        .where(Post.id == post_id)
        .options(joinedload(Post.author))
        .execution_options(populate_existing=True)
    )
    return (await db.execute(q)).unique().scalar_one_or_none()


def _filters(author_id: int | None, published: bool | None, search: str | None) -> list:
    where = []
    if author_id is not None:
        where.append(Post.author_id == author_id)
    if published is not None:
        where.append(Post.published.is_(published))
    if search:
        where.append(
            or_(
                Post.title.icontains(search, autoescape=True),
                Post.content.icontains(search, autoescape=True),
            )
        )
    return where


async def _annotate_viewer(db: AsyncSession, items: list[dict], viewer_id: int) -> list[dict]:
    liked = await like_service.has_liked_posts(db, viewer_id, [p["id"] for p in items])
    return [{**p, "likedByViewer": liked[p["id"]]} for p in items]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_posts(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    author_id: int | None = None,
    published: bool | None = None,
    search: str | None = None,
    viewer_id: int | None = None,
) -> PaginatedResponse:
    """
    Return one page of posts, newest first, with author and ``_count``.

    Filters combine with AND; *search* is a case-insensitive substring
    match against the title OR the content.
    """
    cache_key = post_list_key(page, limit, author_id, published, search)
    cached = await cache.get(cache_key)
    if cached:
        response = PaginatedResponse.model_validate(cached)
    else:
        response = await paginate(
            db,
            Post,
            page=page,
            limit=limit,
            where=_filters(author_id, published, search),
            order_by=(Post.created_at.desc(), Post.id.desc()),
            options=(joinedload(Post.author),),
            serialize=post_to_dict,
        )
        post_ids = [p["id"] for p in response.data]
        like_counts = await like_service.count_by_posts(db, post_ids)
        comment_counts = await comment_service.count_by_posts(db, post_ids)
        for item in response.data:
            item["_count"] = {
                "likes": like_counts[item["id"]],
                "comments": comment_counts[item["id"]],
            }
        await cache.set(
            cache_key, response.model_dump(by_alias=True), ttl=settings.CACHE_TTL_LIST
        )

    if viewer_id is not None:
        response.data = await _annotate_viewer(db, response.data, viewer_id)
    return response


async def get_feed(
    db: AsyncSession, page: int = 1, limit: int = 10, viewer_id: int | None = None
) -> PaginatedResponse:
    """Published posts only."""
    return await get_posts(db, page, limit, published=True, viewer_id=viewer_id)


async def get_posts_by_author(
    db: AsyncSession, author_id: int, page: int = 1, limit: int = 10
) -> PaginatedResponse:
    return await get_posts(db, page, limit, author_id=author_id)


async def get_post(db: AsyncSession, post_id: int) -> dict | None:
    """
    Return the fully hydrated post: author, top-level comments (newest
    first) with their replies (oldest first), all likes and ``_count``.

    Returns None when the post does not exist.
    """
    cache_key = post_detail_key(post_id)
    cached = await cache.get(cache_key)
    if cached:
        return cached

    post = await _load_post(db, post_id)
    if post is None:
        return None

    likes_q = (
        select(Like)
        .where(Like.post_id == post_id)
        .order_by(Like.created_at.desc(), Like.id.desc())
    )
    likes = (await db.execute(likes_q)).scalars().all()

    data = post_to_dict(post)
    data["comments"] = await comment_service.get_top_level_comments(db, post_id)
    data["likes"] = [like_to_dict(like) for like in likes]
    data["_count"] = {
        "likes": len(likes),
        "comments": await comment_service.count_by_post(db, post_id),
    }

    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def is_author(db: AsyncSession, post_id: int, user_id: int) -> bool:
    q = select(Post.author_id).where(Post.id == post_id)
    return (await db.execute(q)).scalar_one_or_none() == user_id


async def count_by_author(db: AsyncSession, author_id: int) -> int:
    q = select(func.count()).select_from(Post).where(Post.author_id == author_id)
    return (await db.execute(q)).scalar_one()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, data: PostCreate) -> dict:
    """Create a post and return it with its author embedded."""
    if await db.get(User, data.author_id) is None:
        raise NotFoundError("Author not found")

    post = Post(**data.model_dump())
    db.add(post)
    await db.flush()

    await cache.invalidate_post()
    logger.info("Created post id=%s author_id=%s", post.id, post.author_id)
    return post_to_dict(await _load_post(db, post.id))


async def update_post(db: AsyncSession, post_id: int, data: PostUpdate) -> dict:
    """
    Partially update a post; only fields explicitly present in the payload
    are written (``model_dump(exclude_unset=True)``).
    """
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        # title, content and published are NOT NULL; null means "unchanged".
        if value is None and field != "image_url":
            continue
        setattr(post, field, value)

    await db.flush()
    await cache.invalidate_post(post_id)
    return post_to_dict(await _load_post(db, post_id))


async def set_published(db: AsyncSession, post_id: int, published: bool) -> dict:
    """Publish or unpublish a post; no other field is touched."""
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")

    post.published = published
    await db.flush()
    await cache.invalidate_post(post_id)
    return post_to_dict(await _load_post(db, post_id))


async def delete_post(db: AsyncSession, post_id: int) -> None:
    """Delete a post together with its comments and likes (schema cascade)."""
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")

    await db.delete(post)
    await db.flush()
    await cache.invalidate_post(post_id)
    logger.info("Deleted post id=%s", post_id)
