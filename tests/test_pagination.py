import pytest
from pydantic import ValidationError

from whats_cooking.utils.pagination import PaginatedResponse, PaginationParams


def test_range_bounds_are_inclusive():
    assert PaginationParams().range_bounds() == (0, 49)
    assert PaginationParams(page=3, per_page=10).range_bounds() == (20, 29)


def test_per_page_is_bounded():
    with pytest.raises(ValidationError):
        PaginationParams(per_page=0)
    with pytest.raises(ValidationError):
        PaginationParams(per_page=201)
    with pytest.raises(ValidationError):
        PaginationParams(page=0)


def test_from_window_counts_pages():
    first = PaginatedResponse.from_window(["a", "b"], 5, PaginationParams(page=1, per_page=2))
    last = PaginatedResponse.from_window(["e"], 5, PaginationParams(page=3, per_page=2))
    empty = PaginatedResponse.from_window([], 0, PaginationParams())

    assert (first.total_pages, first.has_more) == (3, True)
    assert (last.total_pages, last.has_more) == (3, False)
    assert (empty.total_pages, empty.has_more) == (0, False)
