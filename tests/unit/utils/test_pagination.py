"""Tests for pagination helpers."""

import pytest

from roster.core.utils.pagination import (
    Pagination,
    generate_pagination,
    page_offset,
    total_page_count,
)


class TestGeneratePagination:
    @pytest.mark.parametrize(
        "current,total,expected",
        [
            (1, 0, []),
            (1, 1, [1]),
            (3, 7, [1, 2, 3, 4, 5, 6, 7]),
            (1, 10, [1, 2, 3, "...", 9, 10]),
            (3, 10, [1, 2, 3, "...", 9, 10]),
            (4, 10, [1, "...", 3, 4, 5, "...", 10]),
            (8, 10, [1, 2, "...", 8, 9, 10]),
            (10, 10, [1, 2, "...", 8, 9, 10]),
        ],
    )
    def test_page_links(self, current, total, expected):
        assert generate_pagination(current, total) == expected


class TestPageMath:
    def test_total_page_count(self):
        assert total_page_count(0, 10) == 0
        assert total_page_count(10, 10) == 1
        assert total_page_count(11, 10) == 2
        assert total_page_count(5, 0) == 0

    def test_page_offset(self):
        assert page_offset(1, 10) == 0
        assert page_offset(3, 10) == 20
        assert page_offset(0, 10) == 0


class TestPagination:
    def test_build(self):
        pagination = Pagination.build(page=2, limit=10, total=95)

        assert pagination.total_pages == 10
        assert pagination.pages == [1, 2, 3, "...", 9, 10]

    def test_serializes_camel_case(self):
        data = Pagination.build(page=1, limit=10, total=5).model_dump(by_alias=True)

        assert data == {"page": 1, "limit": 10, "total": 5, "totalPages": 1, "pages": [1]}
