"""Page/limit handling shared by list endpoints."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def normalize_page(page: int | None, limit: int | None, *, default_limit: int, max_limit: int) -> tuple[int, int]:
    """Clamp page to >= 1 and limit to 1..max_limit."""
    page = max(1, page or 1)
    limit = min(max(1, limit or default_limit), max_limit)
    return page, limit


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        pages=pages,
        has_next=page < pages,
        has_prev=page > 1,
    )


def skip_for(page: int, limit: int) -> int:
    return (page - 1) * limit
