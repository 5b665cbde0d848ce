"""Offset pagination shared by the listing services."""

import math
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import ValidationError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def check_page_bounds(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("Page must be at least 1")
    if limit < 1 or limit > settings.max_page_size:
        raise ValidationError(
            f"Limit must be between 1 and {settings.max_page_size}"
        )


async def paginate(
    session: AsyncSession,
    query: Select[Any],
    page: int,
    limit: int,
) -> Page[Any]:
    """
    Run ``query`` for one page and count the full result set.

    ``query`` must already carry its ordering.
    """
    check_page_bounds(page, limit)

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar() or 0

    result = await session.execute(query.limit(limit).offset((page - 1) * limit))
    return Page(items=list(result.scalars().all()), page=page, limit=limit, total=total)
