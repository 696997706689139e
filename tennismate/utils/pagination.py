"""
Page/limit pagination for the notification feed.
"""

from pydantic import BaseModel, Field


def calculate_offset(page: int, limit: int) -> int:
    """
    Rows to skip before ``page``.

    >>> calculate_offset(3, 10)
    20
    """
    if page < 1 or limit < 1:
        raise ValueError(f"page and limit must be positive (got page={page}, limit={limit})")
    return (page - 1) * limit


def calculate_total_pages(total: int, limit: int) -> int:
    if total < 0 or limit < 1:
        raise ValueError(f"invalid total={total} or limit={limit}")
    return -(-total // limit)


class PaginationParams(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    def get_offset(self) -> int:
        return calculate_offset(self.page, self.limit)


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def from_params(cls, params: PaginationParams, total: int) -> "PaginationMeta":
        pages = calculate_total_pages(total, params.limit)
        return cls(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=pages,
            has_next=params.page < pages,
            has_previous=params.page > 1,
        )
