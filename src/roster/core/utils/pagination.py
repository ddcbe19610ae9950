"""Pagination helpers shared by list endpoints."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


T = TypeVar("T")

ELLIPSIS = "..."


class Pagination(BaseModel):
    """Pagination metadata returned with list responses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int
    pages: list[int | str] = Field(default_factory=list)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = total_page_count(total, limit)
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            pages=generate_pagination(page, total_pages),
        )


class Page(BaseModel, Generic[T]):
    """A page of items with its pagination metadata."""

    items: list[T]
    pagination: Pagination


def total_page_count(total: int, limit: int) -> int:
    """Number of pages needed for ``total`` items."""
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def page_offset(page: int, limit: int) -> int:
    """Row offset of a 1-indexed page."""
    return (max(page, 1) - 1) * limit


def generate_pagination(current_page: int, total_pages: int) -> list[int | str]:
    """Page links to render, with ``"..."`` standing in for skipped ranges.

    Args:
        current_page: The 1-indexed current page
        total_pages: Number of pages

    Returns:
        Page numbers and ellipsis markers

    Examples:
        >>> generate_pagination(1, 5)
        [1, 2, 3, 4, 5]
        >>> generate_pagination(2, 10)
        [1, 2, 3, '...', 9, 10]
        >>> generate_pagination(9, 10)
        [1, 2, '...', 8, 9, 10]
        >>> generate_pagination(5, 10)
        [1, '...', 4, 5, 6, '...', 10]
    """
    # Few enough pages to show them all
    if total_pages <= 7:
        return list(range(1, total_pages + 1))

    if current_page <= 3:
        return [1, 2, 3, ELLIPSIS, total_pages - 1, total_pages]

    if current_page >= total_pages - 2:
        return [1, 2, ELLIPSIS, total_pages - 2, total_pages - 1, total_pages]

    return [
        1,
        ELLIPSIS,
        current_page - 1,
        current_page,
        current_page + 1,
        ELLIPSIS,
        total_pages,
    ]
