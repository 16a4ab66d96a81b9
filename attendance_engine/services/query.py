"""
Query / filter adapter — pagination and name search over computed rows.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    data: list[T]
    total: int
    page: int
    per_page: int
    last_page: int


def paginate(items: Sequence[T], page: int, per_page: int) -> Page[T]:
    page = max(1, page)
    per_page = max(1, per_page)
    total = len(items)
    start = (page - 1) * per_page
    return Page(
        data=list(items[start : start + per_page]),
        total=total,
        page=page,
        per_page=per_page,
        last_page=max(1, math.ceil(total / per_page)),
    )


def escape_like(term: str) -> str:
    """Escape SQL LIKE metacharacters to prevent wildcard injection."""
    return term.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")


def effective_page(page: int, search: str | None) -> int:
    """A search narrows the result set, so paging restarts at 1."""
    return 1 if search else page
