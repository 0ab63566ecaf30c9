"""
Pagination helper shared by every list operation.

Two statements are issued per page:

1. ``SELECT count(*)`` with the same WHERE clause.
2. The page itself with ``OFFSET (page - 1) * limit`` / ``LIMIT limit``.

Ordering is always explicit and ends with the primary key so rows created
within the same timestamp tick still come back in a stable order.
"""
from typing import Any, Callable, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from social_api.schemas import PaginatedResponse


async def paginate(
    db: AsyncSession,
    model,
    *,
    page: int,
    limit: int,
    where: Sequence = (),
    order_by: Sequence = (),
    options: Sequence = (),
    serialize: Callable[[Any], dict],
) -> PaginatedResponse:
    count_q = select(func.count()).select_from(model).where(*where)
    total: int = (await db.execute(count_q)).scalar_one()

    rows_q = (
        select(model)
        .where(*where)
        .options(*options)
        .order_by(*order_by)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(rows_q)
    rows = result.unique().scalars().all()

    return PaginatedResponse.build([serialize(r) for r in rows], total, page, limit)
