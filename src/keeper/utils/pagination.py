from __future__ import annotations

import math
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")

PAGE_SIZE = 10


class Paginator(Generic[T]):
    """Fixed-size page window over an ordered sequence."""

    def __init__(self, items: Sequence[T], page_size: int = PAGE_SIZE):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.items = list(items)
        self.page_size = page_size
        self.page = 0

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.items) / self.page_size))

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages - 1

    @property
    def offset(self) -> int:
        return self.page * self.page_size

    def page_items(self, page: int | None = None) -> list[T]:
        # Out-of-range pages are simply empty.
        page = self.page if page is None else page
        if page < 0:
            return []
        start = page * self.page_size
        return self.items[start:start + self.page_size]

    def next(self) -> int:
        if self.has_next:
            self.page += 1
        return self.page

    def previous(self) -> int:
        if self.has_previous:
            self.page -= 1
        return self.page
