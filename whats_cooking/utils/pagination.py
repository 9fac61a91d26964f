# whats_cooking/utils/pagination.py — Page windows for saved-recipe listings

from math import ceil

from pydantic import BaseModel, Field

MAX_PER_PAGE = 200


class PaginationParams(BaseModel):
    """1-based page request, translated to PostgREST's inclusive ``range``."""

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=50, ge=1, le=MAX_PER_PAGE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def range_bounds(self) -> tuple[int, int]:
        return self.offset, self.offset + self.per_page - 1


class PaginatedResponse(BaseModel):
    items: list
    total: int
    page: int
    per_page: int
    total_pages: int
    has_more: bool

    @classmethod
    def from_window(cls, items: list, total: int, params: PaginationParams) -> "PaginatedResponse":
        total_pages = ceil(total / params.per_page) if total > 0 else 0
        return cls(
            items=items,
            total=total,
            page=params.page,
            per_page=params.per_page,
            total_pages=total_pages,
            has_more=params.page < total_pages,
        )
