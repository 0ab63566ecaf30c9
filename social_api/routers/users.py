from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from social_api.config import settings
from social_api.database import get_db
from social_api.dependencies import PaginationParams, pagination
from social_api.exceptions import NotFoundError
from social_api.responses import paginated, success
from social_api.schemas import UserCreate, UserUpdate
from social_api.services import comment_service, like_service, post_service, user_service

router = APIRouter(prefix=f"{settings.API_PREFIX}/users", tags=["users"])


@router.get("")
async def list_users(
    params: PaginationParams = Depends(pagination(10)),
    db: AsyncSession = Depends(get_db),
):
    return paginated(await user_service.get_users(db, params.page, params.limit))


@router.post("", status_code=201)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return success(await user_service.create_user(db, data))


@router.get("/username/{username}")
async def get_user_by_username(username: str, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user_by_username(db, username)
    if not user:
        raise NotFoundError("User not found")
    return success(user)


@router.get("/{user_id}")
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return success(user)


@router.put("/{user_id}")
async def update_user(user_id: int, data: UserUpdate, db: AsyncSession = Depends(get_db)):
    return success(await user_service.update_user(db, user_id, data))


@router.delete("/{user_id}")
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    await user_service.delete_user(db, user_id)
    return success(message="User deleted")


@router.get("/{user_id}/posts")
async def list_user_posts(
    user_id: int,
    params: PaginationParams = Depends(pagination(10)),
    db: AsyncSession = Depends(get_db),
):
    return paginated(
        await post_service.get_posts_by_author(db, user_id, params.page, params.limit)
    )


@router.get("/{user_id}/comments")
async def list_user_comments(
    user_id: int,
    params: PaginationParams = Depends(pagination(20)),
    db: AsyncSession = Depends(get_db),
):
    return paginated(
        await comment_service.get_comments_by_author(db, user_id, params.page, params.limit)
    )


@router.get("/{user_id}/likes")
async def list_user_likes(
    user_id: int,
    params: PaginationParams = Depends(pagination(20)),
    db: AsyncSession = Depends(get_db),
):
    return paginated(
        await like_service.get_likes_by_user(db, user_id, params.page, params.limit)
    )
