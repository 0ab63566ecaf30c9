from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from social_api.config import settings
from social_api.database import get_db
from social_api.dependencies import PaginationParams, pagination
from social_api.exceptions import NotFoundError
from social_api.responses import paginated, success
from social_api.schemas import CommentBody, CommentCreate, PostCreate, PostUpdate, PublishUpdate
from social_api.services import comment_service, post_service

router = APIRouter(prefix=f"{settings.API_PREFIX}/posts", tags=["posts"])


@router.get("")
async def list_posts(
    params: PaginationParams = Depends(pagination(10)),
    author_id: int | None = Query(None, alias="authorId"),
    published: bool | None = Query(None),
    search: str | None = Query(None),
    viewer_id: int | None = Query(None, alias="viewerId"),
    db: AsyncSession = Depends(get_db),
):
    return paginated(
        await post_service.get_posts(
            db,
            params.page,
            params.limit,
            author_id=author_id,
            published=published,
            search=search,
            viewer_id=viewer_id,
        )
    )


@router.get("/feed")
async def get_feed(
    params: PaginationParams = Depends(pagination(10)),
    viewer_id: int | None = Query(None, alias="viewerId"),
    db: AsyncSession = Depends(get_db),
):
    return paginated(
        await post_service.get_feed(db, params.page, params.limit, viewer_id=viewer_id)
    )


@router.post("", status_code=201)
async def create_post(data: PostCreate, db: AsyncSession = Depends(get_db)):
    return success(await post_service.create_post(db, data))


@router.get("/{post_id}")
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    post = await post_service.get_post(db, post_id)
    if not post:
        raise NotFoundError("Post not found")
    return success(post)


@router.put("/{post_id}")
async def update_post(post_id: int, data: PostUpdate, db: AsyncSession = Depends(get_db)):
    return success(await post_service.update_post(db, post_id, data))


@router.patch("/{post_id}/publish")
async def set_published(post_id: int, data: PublishUpdate, db: AsyncSession = Depends(get_db)):
    return success(await post_service.set_published(db, post_id, data.published))


@router.delete("/{post_id}")
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db)):
    await post_service.delete_post(db, post_id)
    return success(message="Post deleted")


@router.get("/{post_id}/comments")
async def list_post_comments(
    post_id: int,
    params: PaginationParams = Depends(pagination(20)),
    db: AsyncSession = Depends(get_db),
):
    return paginated(
        await comment_service.get_comments_by_post(db, post_id, params.page, params.limit)
    )


@router.post("/{post_id}/comments", status_code=201)
async def create_comment(post_id: int, data: CommentBody, db: AsyncSession = Depends(get_db)):
    comment = await comment_service.create_comment(
        db, CommentCreate(content=data.content, author_id=data.author_id, post_id=post_id)
    )
    return success(comment)
