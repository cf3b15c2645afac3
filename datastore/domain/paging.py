"""Paged result container."""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .queries import Query

T = TypeVar("T")
U = TypeVar("U")


class PagerList(BaseModel, Generic[T]):
    """One page of a larger result set plus the metadata to paginate it.

    total_count is the number of objects matching the filter across all
    pages, so callers can render pagination without a second count query.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_count: int = Field(ge=0)
    order: str = ""
    items: list[T] = Field(default_factory=list)

    @classmethod
    def for_query(cls, query: Query, total_count: int, items: list[T]) -> PagerList[T]:
        return cls(
            page=query.page,
            page_size=query.page_size,
            total_count=total_count,
            order=query.order_text,
            items=list(items),
        )

    @property
    def page_count(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count

    def map(self, convert: Callable[[T], U]) -> PagerList[U]:
        """Convert every item, keeping the paging metadata (e.g. ORM row -> DTO)."""
        return PagerList(
            page=self.page,
            page_size=self.page_size,
            total_count=self.total_count,
            order=self.order,
            items=[convert(item) for item in self.items],
        )
