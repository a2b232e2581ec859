"""
Domain: pagination metadata for list queries.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, List, TypeVar

from .errors import InvalidInputError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @staticmethod
    def build(page: int, page_size: int, total_items: int) -> "Pagination":
        total_pages = math.ceil(total_items / page_size) if total_items else 0
        return Pagination(
            current_page=page,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=page_size,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    pagination: Pagination


def page_window(page: int, page_size: int) -> tuple[int, int]:
    """
    Validate paging arguments and return (limit, offset).

    Any positive page size is accepted; clamping is the caller's concern.
    """

    if page < 1:
        raise InvalidInputError("Page must be at least 1")
    if page_size < 1:
        raise InvalidInputError("Page size must be at least 1")
    return page_size, (page - 1) * page_size


__all__ = ["Pagination", "Page", "page_window"]
