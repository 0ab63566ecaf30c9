"""
User service: CRUD operations for the User aggregate.

Email and username uniqueness is enforced by the unique constraints in the
schema.  Inserts and updates are attempted directly and an
``IntegrityError`` is turned into a ``ConflictError``; a follow-up lookup
only picks the message.  Users are not cached themselves, but posts embed
their author, so user writes purge the post cache.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from social_api.cache import cache
from social_api.exceptions import ConflictError, NotFoundError
from social_api.models import User
from social_api.schemas import PaginatedResponse, UserCreate, UserUpdate
from social_api.services.base import paginate
from social_api.services.serializers import user_to_dict

logger = logging.getLogger(__name__)

EMAIL_IN_USE = "Email already in use"
USERNAME_TAKEN = "Username already taken"


async def _get_user_row(db: AsyncSession, **criteria) -> User | None:
    q = select(User).filter_by(**criteria)
    return (await db.execute(q)).scalar_one_or_none()


async def _conflict_for(
    db: AsyncSession,
    email: str | None,
    username: str | None,
    user_id: int | None = None,
) -> ConflictError:
    """Work out which unique column a failed write collided with."""
    if email is not None:
        other = await _get_user_row(db, email=email)
        if other is not None and other.id != user_id:
            return ConflictError(EMAIL_IN_USE)
    if username is not None:
        other = await _get_user_row(db, username=username)
        if other is not None and other.id != user_id:
            return ConflictError(USERNAME_TAKEN)
    return ConflictError("A user with this username or email already exists")


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def get_user(db: AsyncSession, user_id: int) -> dict | None:
    return user_to_dict(await _get_user_row(db, id=user_id))


async def get_user_by_email(db: AsyncSession, email: str) -> dict | None:
    return user_to_dict(await _get_user_row(db, email=email))


async def get_user_by_username(db: AsyncSession, username: str) -> dict | None:
    return user_to_dict(await _get_user_row(db, username=username))


async def email_exists(db: AsyncSession, email: str) -> bool:
    q = select(User.id).where(User.email == email)
    return (await db.execute(q)).first() is not None


async def username_exists(db: AsyncSession, username: str) -> bool:
    q = select(User.id).where(User.username == username)
    return (await db.execute(q)).first() is not None


async def get_users(db: AsyncSession, page: int = 1, limit: int = 10) -> PaginatedResponse:
    """Return one page of users, newest first."""
    return await paginate(
        db,
        User,
        page=page,
        limit=limit,
        order_by=(User.created_at.desc(), User.id.desc()),
        serialize=user_to_dict,
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_user(db: AsyncSession, data: UserCreate) -> dict:
    """
    Insert a new user and return its serialised dict.

    Raises ConflictError("Email already in use") or
    ConflictError("Username already taken") when a unique constraint fires.
    The failed transaction is rolled back before the lookup that picks the
    message.
    """
    user = User(**data.model_dump())
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise await _conflict_for(db, data.email, data.username)

    logger.info("Created user id=%s username=%r", user.id, user.username)
    return user_to_dict(user)


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> dict:
    """
    Apply a partial update (only fields present in the payload).

    A new email or username that belongs to *another* user is rejected with
    ConflictError; the user's own current values are accepted.
    """
    user = await _get_user_row(db, id=user_id)
    if user is None:
        raise NotFoundError("User not found")

    update_data = data.model_dump(exclude_unset=True)
    # email and username are NOT NULL; an explicit null leaves them as they are.
    for required in ("email", "username"):
        if update_data.get(required, "") is None:
            del update_data[required]

    if update_data.get("email") is not None:
        other = await _get_user_row(db, email=update_data["email"])
        if other is not None and other.id != user_id:
            raise ConflictError(EMAIL_IN_USE)
    if update_data.get("username") is not None:
        other = await _get_user_row(db, username=update_data["username"])
        if other is not None and other.id != user_id:
            raise ConflictError(USERNAME_TAKEN)

    for field, value in update_data.items():
        setattr(user, field, value)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise await _conflict_for(
            db, update_data.get("email"), update_data.get("username"), user_id
        )

    # onupdate=func.now() leaves updated_at expired after the UPDATE.
    await db.refresh(user, ["updated_at"])
    await cache.invalidate_all_posts()
    return user_to_dict(user)


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """
    Delete the user.  Their posts, comments and likes go with them through
    the ON DELETE CASCADE foreign keys.
    """
    user = await _get_user_row(db, id=user_id)
    if user is None:
        raise NotFoundError("User not found")

    await db.delete(user)
    await db.flush()
    await cache.invalidate_all_posts()
    logger.info("Deleted user id=%s", user_id)
