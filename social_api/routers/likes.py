from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from social_api.config import settings
from social_api.database import get_db
from social_api.dependencies import PaginationParams, pagination
from social_api.responses import paginated, success
from social_api.schemas import LikeRequest
from social_api.services import like_service

router = APIRouter(prefix=f"{settings.API_PREFIX}/posts", tags=["likes"])


@router.post("/{post_id}/like")
async def toggle_like(post_id: int, data: LikeRequest, db: AsyncSession = Depends(get_db)):
    result = await like_service.toggle_like(db, data.user_id, post_id)
    result["message"] = "Post liked" if result["liked"] else "Post unliked"
    return success(result)


@router.post("/{post_id}/like/add", status_code=201)
async def like_post(post_id: int, data: LikeRequest, db: AsyncSession = Depends(get_db)):
    return success(await like_service.like_post(db, data.user_id, post_id))


@router.delete("/{post_id}/like")
async def unlike_post(post_id: int, data: LikeRequest, db: AsyncSession = Depends(get_db)):
    await like_service.unlike_post(db, data.user_id, post_id)
    return success(message="Post unliked")


@router.get("/{post_id}/like/status")
async def like_status(
    post_id: int,
    user_id: int = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
):
    return success({
        "liked": await like_service.has_liked(db, user_id, post_id),
        "count": await like_service.count_by_post(db, post_id),
    })


@router.get("/{post_id}/likes")
async def list_likes(
    post_id: int,
    params: PaginationParams = Depends(pagination(50)),
    db: AsyncSession = Depends(get_db),
):
    return paginated(
        await like_service.get_likes_by_post(db, post_id, params.page, params.limit)
    )


@router.get("/{post_id}/likes/count")
async def like_count(post_id: int, db: AsyncSession = Depends(get_db)):
    return success({"count": await like_service.count_by_post(db, post_id)})
