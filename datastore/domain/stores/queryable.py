"""Lazy query sequence interfaces returned by the store find() operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterator
from typing import Any, Generic, TypeVar

from datastore.domain.queries import SortOrder

T = TypeVar("T")


class Queryable(ABC, Generic[T]):
    """A lazy, restartable sequence of persistent objects.

    Composition methods return a new Queryable and never touch the database.
    Each iteration re-executes the underlying statement.  skip() always
    applies before take(), whatever order they are called in.
    """

    @abstractmethod
    def where(self, predicate: Any) -> Queryable[T]:
        """Narrow the sequence by a Criteria or a callable clause."""

    @abstractmethod
    def order_by(self, *orders: SortOrder | str) -> Queryable[T]:
        """Append sort orders ("name desc" strings are parsed)."""

    @abstractmethod
    def skip(self, count: int) -> Queryable[T]:
        ...

    @abstractmethod
    def take(self, count: int) -> Queryable[T]:
        ...

    @abstractmethod
    def __iter__(self) -> Iterator[T]:
        ...

    @abstractmethod
    def all(self) -> list[T]:
        ...

    @abstractmethod
    def first(self) -> T | None:
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of objects matching the filter, ignoring skip/take."""


class AsyncQueryable(ABC, Generic[T]):
    """Async counterpart of Queryable; terminal operations are coroutines."""

    @abstractmethod
    def where(self, predicate: Any) -> AsyncQueryable[T]:
        ...

    @abstractmethod
    def order_by(self, *orders: SortOrder | str) -> AsyncQueryable[T]:
        ...

    @abstractmethod
    def skip(self, count: int) -> AsyncQueryable[T]:
        ...

    @abstractmethod
    def take(self, count: int) -> AsyncQueryable[T]:
        ...

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[T]:
        ...

    @abstractmethod
    async def all(self) -> list[T]:
        ...

    @abstractmethod
    async def first(self) -> T | None:
        ...

    @abstractmethod
    async def count(self) -> int:
        ...
