"""
Unit tests for the page/limit helpers used by the notification feed.
"""

from __future__ import annotations

import pytest

from tennismate.utils.pagination import (
    PaginationMeta,
    PaginationParams,
    calculate_offset,
    calculate_total_pages,
)


class TestPagination:
    def test_offset(self):
        assert calculate_offset(1, 20) == 0
        assert calculate_offset(3, 10) == 20

    def test_offset_rejects_page_zero(self):
        with pytest.raises(ValueError):
            calculate_offset(0, 10)

    def test_total_pages(self):
        assert calculate_total_pages(0, 20) == 0
        assert calculate_total_pages(20, 20) == 1
        assert calculate_total_pages(21, 20) == 2

    def test_meta_flags(self):
        meta = PaginationMeta.from_params(PaginationParams(page=2, limit=10), total=25)
        assert meta.total_pages == 3
        assert meta.has_next is True
        assert meta.has_previous is True

    def test_last_page_has_no_next(self):
        meta = PaginationMeta.from_params(PaginationParams(page=3, limit=10), total=25)
        assert meta.has_next is False
