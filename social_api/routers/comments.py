from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from social_api.config import settings
from social_api.database import get_db
from social_api.exceptions import NotFoundError
from social_api.responses import success
from social_api.schemas import CommentBody, CommentUpdate
from social_api.services import comment_service

router = APIRouter(prefix=f"{settings.API_PREFIX}/comments", tags=["comments"])


@router.get("/{comment_id}")
async def get_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    comment = await comment_service.get_comment(db, comment_id)
    if not comment:
        raise NotFoundError("Comment not found")
    return success(comment)


@router.put("/{comment_id}")
async def update_comment(
    comment_id: int, data: CommentUpdate, db: AsyncSession = Depends(get_db)
):
    return success(await comment_service.update_comment(db, comment_id, data))


@router.delete("/{comment_id}")
async def delete_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    await comment_service.delete_comment(db, comment_id)
    return success(message="Comment deleted")


@router.post("/{comment_id}/replies", status_code=201)
async def create_reply(comment_id: int, data: CommentBody, db: AsyncSession = Depends(get_db)):
    return success(await comment_service.create_reply(db, comment_id, data))
