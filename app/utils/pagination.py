# app/utils/pagination.py
import math
from dataclasses import dataclass
from typing import Any, Dict

from fastapi import HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.constants import DEFAULT_LIMIT, DEFAULT_PAGE


@dataclass
class PageParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(DEFAULT_PAGE),
    limit: int = Query(DEFAULT_LIMIT),
) -> PageParams:
    if page < 1 or limit < 1:
        raise HTTPException(status_code=400, detail="Page and limit must be positive numbers")
    return PageParams(page=page, limit=limit)


async def count_rows(db: AsyncSession, query: Select) -> int:
    result = await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))
    return result.scalar_one()


async def paginate(db: AsyncSession, query: Select, params: PageParams):
    """Run ``query`` for one page. Returns (rows, total)."""
    total = await count_rows(db, query)
    result = await db.execute(query.offset(params.offset).limit(params.limit))
    return result.scalars().unique().all(), total


def pagination_meta(params: PageParams, total: int, returned: int, total_key: str = "totalOrders") -> Dict[str, Any]:
    return {
        "currentPage": params.page,
        "totalPages": math.ceil(total / params.limit) if total else 0,
        total_key: total,
        "hasNextPage": params.offset + returned < total,
        "hasPrevPage": params.page > 1,
    }
