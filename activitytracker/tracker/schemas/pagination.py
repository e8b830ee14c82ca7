"""
Generic paginated response schema for the activity listing.
"""
from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, computed_field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Items of one page plus total count, page number, page size and page count."""

    items: list[T]
    total: int
    page: int
    size: int

    @computed_field  # type: ignore[misc]
    @property
    def pages(self) -> int:
        if self.size == 0:
            return 0
        return math.ceil(self.total / self.size)
