from fastapi import Query

from social_api.config import settings


class PaginationParams:
    """
    Parsed ``page`` / ``limit`` query parameters.

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    limit:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    offset:
        Computed SQL OFFSET derived from *page* and *limit*.
    """

    def __init__(self, page: int = 1, limit: int = settings.DEFAULT_PAGE_SIZE) -> None:
        self.page = page
        self.limit = min(limit, settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        """SQL OFFSET value computed from the current page and limit."""
        return (self.page - 1) * self.limit


def pagination(default_limit: int = settings.DEFAULT_PAGE_SIZE):
    """
    Build a FastAPI dependency yielding :class:`PaginationParams` whose
    ``limit`` defaults to *default_limit*.

    Usage in a router::

        @router.get("/{post_id}/likes")
        async def list_likes(params: PaginationParams = Depends(pagination(50))):
            ...
    """

    def dependency(
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        limit: int = Query(
            default_limit,
            ge=1,
            description=f"Items per page (clamped to {settings.MAX_PAGE_SIZE}).",
        ),
    ) -> PaginationParams:
        return PaginationParams(page, limit)

    return dependency
