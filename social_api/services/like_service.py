"""
Like service: the (user, post) like relation.

A like is nothing more than the existence of a row; the unique constraint
on ``(user_id, post_id)`` is the only guard against duplicates.  Writes
never pre-check for an existing like: ``like_post`` inserts and turns a
unique violation into ``ConflictError``, ``toggle_like`` deletes by the
composite key first and inserts only when nothing was deleted.

Batch helpers (``count_by_posts``, ``has_liked_posts``) run one aggregate
query and return an entry for every requested id.
"""
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from social_api.cache import cache
from social_api.exceptions import ConflictError, NotFoundError
from social_api.models import Like, Post, User
from social_api.schemas import PaginatedResponse
from social_api.services.base import paginate
from social_api.services.serializers import like_to_dict

logger = logging.getLogger(__name__)

ALREADY_LIKED = "Post already liked"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _ensure_user_and_post(db: AsyncSession, user_id: int, post_id: int) -> None:
    if await db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")
    if await db.get(User, user_id) is None:
        raise NotFoundError("User not found")


async def _insert_like(db: AsyncSession, user_id: int, post_id: int) -> dict:
    like = Like(user_id=user_id, post_id=post_id)
    db.add(like)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race against another request for the same pair.
        await db.rollback()
        raise ConflictError(ALREADY_LIKED)
    await cache.invalidate_post(post_id)
    return like_to_dict(like)


async def _delete_like(db: AsyncSession, user_id: int, post_id: int) -> bool:
    q = delete(Like).where(Like.user_id == user_id, Like.post_id == post_id)
    result = await db.execute(q)
    if result.rowcount:
        await cache.invalidate_post(post_id)
        return True
    return False


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def like_post(db: AsyncSession, user_id: int, post_id: int) -> dict:
    """Like *post_id*; raises ConflictError when the pair already exists."""
    await _ensure_user_and_post(db, user_id, post_id)
    return await _insert_like(db, user_id, post_id)


async def unlike_post(db: AsyncSession, user_id: int, post_id: int) -> bool:
    """
    Remove the like for the pair.

    Returns False (rather than raising) when the user had not liked the post.
    """
    return await _delete_like(db, user_id, post_id)


async def toggle_like(db: AsyncSession, user_id: int, post_id: int) -> dict:
    """
    Flip the like state of the pair.

    Returns ``{"liked": False}`` after an unlike, or
    ``{"liked": True, "like": {...}}`` after a like.
    """
    await _ensure_user_and_post(db, user_id, post_id)
    if await _delete_like(db, user_id, post_id):
        return {"liked": False}
    like = await _insert_like(db, user_id, post_id)
    return {"liked": True, "like": like}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_like(db: AsyncSession, user_id: int, post_id: int) -> dict | None:
    q = select(Like).where(Like.user_id == user_id, Like.post_id == post_id)
    like = (await db.execute(q)).scalar_one_or_none()
    return like_to_dict(like) if like else None


async def has_liked(db: AsyncSession, user_id: int, post_id: int) -> bool:
    q = select(Like.id).where(Like.user_id == user_id, Like.post_id == post_id)
    return (await db.execute(q)).first() is not None


async def get_likes_by_post(
    db: AsyncSession, post_id: int, page: int = 1, limit: int = 50
) -> PaginatedResponse:
    """Likes on a post, newest first, each with the liking user."""
    return await paginate(
        db,
        Like,
        page=page,
        limit=limit,
        where=(Like.post_id == post_id,),
        order_by=(Like.created_at.desc(), Like.id.desc()),
        options=(joinedload(Like.user),),
        serialize=like_to_dict,
    )


async def get_likes_by_user(
    db: AsyncSession, user_id: int, page: int = 1, limit: int = 20
) -> PaginatedResponse:
    """Likes given by a user, newest first, each with the post's id and title."""
    return await paginate(
        db,
        Like,
        page=page,
        limit=limit,
        where=(Like.user_id == user_id,),
        order_by=(Like.created_at.desc(), Like.id.desc()),
        options=(joinedload(Like.post),),
        serialize=like_to_dict,
    )


async def count_by_post(db: AsyncSession, post_id: int) -> int:
    q = select(func.count()).select_from(Like).where(Like.post_id == post_id)
    return (await db.execute(q)).scalar_one()


async def count_by_posts(db: AsyncSession, post_ids: list[int]) -> dict[int, int]:
    """Like counts for several posts; ids without likes map to 0."""
    counts = {post_id: 0 for post_id in post_ids}
    if not post_ids:
        return counts

    q = (
        select(Like.post_id, func.count())
        .where(Like.post_id.in_(post_ids))
        .group_by(Like.post_id)
    )
    for post_id, count in (await db.execute(q)).all():
        counts[post_id] = count
    return counts


async def has_liked_posts(db: AsyncSession, user_id: int, post_ids: list[int]) -> dict[int, bool]:
    """Which of *post_ids* the user has liked; ids without a like map to False."""
    liked = {post_id: False for post_id in post_ids}
    if not post_ids:
        return liked

    q = select(Like.post_id).where(Like.user_id == user_id, Like.post_id.in_(post_ids))
    for post_id in (await db.execute(q)).scalars():
        liked[post_id] = True
    return liked
