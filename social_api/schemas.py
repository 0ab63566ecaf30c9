import math

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accept both ``authorId`` and ``author_id`` on input; emit camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- User ---

class UserCreate(CamelModel):
    email: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=100)
    name: str | None = Field(None, max_length=150)
    avatar: str | None = Field(None, max_length=500)
    bio: str | None = None


class UserUpdate(CamelModel):
    email: str | None = Field(None, min_length=1, max_length=255)
    username: str | None = Field(None, min_length=1, max_length=100)
    name: str | None = Field(None, max_length=150)
    avatar: str | None = Field(None, max_length=500)
    bio: str | None = None


# --- Post ---

class PostCreate(CamelModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)
    image_url: str | None = Field(None, max_length=500)
    published: bool = False
    author_id: int


class PostUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = Field(None, min_length=1)
    image_url: str | None = Field(None, max_length=500)
    published: bool | None = None


class PublishUpdate(CamelModel):
    published: bool


# --- Comment ---

class CommentBody(CamelModel):
    """Request body for ``POST /posts/{id}/comments`` and replies."""

    content: str = Field(min_length=1)
    author_id: int


class CommentCreate(CommentBody):
    post_id: int
    parent_id: int | None = None


class CommentUpdate(CamelModel):
    content: str = Field(min_length=1)


# --- Like ---

class LikeRequest(CamelModel):
    user_id: int


# --- Pagination ---

class PaginationMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_more: bool


class PaginatedResponse(CamelModel):
    data: list
    meta: PaginationMeta

    @classmethod
    def build(cls, items: list, total: int, page: int, limit: int) -> "PaginatedResponse":
        """Wrap one page of *items* with the derived page metadata."""
        return cls(
            data=items,
            meta=PaginationMeta(
                total=total,
                page=page,
                limit=limit,
                total_pages=math.ceil(total / limit) if limit > 0 else 0,
                has_more=page * limit < total,
            ),
        )
