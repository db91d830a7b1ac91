"""Shared response envelopes."""
import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
    """Pagination metadata."""
    current_page: int
    total_items: int
    items_per_page: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class Page(BaseModel, Generic[T]):
    """Paginated list response."""
    data: List[T]
    meta: PageMeta

    @classmethod
    def build(cls, items: list, total: int, page: int, limit: int) -> "Page[T]":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            data=items,
            meta=PageMeta(
                current_page=page,
                total_items=total,
                items_per_page=limit,
                total_pages=total_pages,
                has_next_page=page < total_pages,
                has_previous_page=page > 1,
            ),
        )
