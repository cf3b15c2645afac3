"""Generic persistent store interfaces.

PersistentStore[T, K] is the root data-access abstraction: one store per
persistent object type, bound to a single session / unit of work.
AsyncPersistentStore[T, K] has the same operations as coroutines.
Concrete implementations live in datastore/infrastructure/persistence/.

Design notes:
  - K is the key type.  GuidPersistentStore[T] / AsyncGuidPersistentStore[T]
    name the common UUID-keyed specialization.
  - Tracked and no-tracking reads are separate entry points so the cost of
    change tracking stays visible at the call site.
  - Predicates are either a Criteria or a callable taking the model class
    and returning a backing-store clause (lambda m: m.name == "x").
  - Writes are staged on the session; committing is the caller's unit of
    work.  Stores never retry or swallow errors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Generic, TypeVar
from uuid import UUID

from datastore.domain.paging import PagerList
from datastore.domain.queries import Criteria, Query

from .queryable import AsyncQueryable, Queryable

T = TypeVar("T")
K = TypeVar("K")


class PersistentStore(ABC, Generic[T, K]):
    """Synchronous persistent store for objects of type T keyed by K."""

    @abstractmethod
    def find_as_no_tracking(self) -> Queryable[T]:
        """Return all objects as a lazy sequence that the session does not track."""

    @abstractmethod
    def find(self, criteria: Criteria | Any | None = None) -> Queryable[T]:
        """Return all objects, optionally filtered, as a tracked lazy sequence."""

    @abstractmethod
    def find_by_id(self, id: K) -> T | None:
        """Return the object with the given key, or None.

        Raises NotFoundError for a None key or one that cannot be converted
        to the key type.
        """

    @abstractmethod
    def get_by_id(self, id: K) -> T:
        """Return the object with the given key.  Raises NotFoundError if absent."""

    @abstractmethod
    def find_by_ids(self, *ids: K | Iterable[K]) -> list[T]:
        """Return the objects matching the given keys; missing and invalid keys are omitted."""

    @abstractmethod
    def single(self, predicate: Criteria | Any) -> T:
        """Return the only object matching predicate.  Raises SingleResultError otherwise."""

    @abstractmethod
    def exists(self, *ids: K | Iterable[K]) -> bool:
        """Return True when every given key identifies a stored object."""

    @abstractmethod
    def query(self, query: Query) -> list[T]:
        """Return the objects matching the query's criteria in its sort order."""

    @abstractmethod
    def query_as_no_tracking(self, query: Query) -> list[T]:
        ...

    @abstractmethod
    def pager_query(self, query: Query) -> PagerList[T]:
        """Return one page of matching objects together with the total count."""

    @abstractmethod
    def pager_query_as_no_tracking(self, query: Query) -> PagerList[T]:
        ...

    @abstractmethod
    def add(self, po: T | Iterable[T]) -> None:
        """Stage one or more new objects.  Raises DuplicateKeyError on key conflict."""

    @abstractmethod
    def update(self, po: T) -> None:
        """Stage changes to an existing object.

        Raises NotFoundError if absent and InvalidObjectError if its key was
        changed, since keys are immutable once assigned.
        """

    @abstractmethod
    def remove(self, target: K | T | Iterable[K | T]) -> None:
        """Stage deletion by key(s) or object(s).  Raises NotFoundError if any is absent."""


class AsyncPersistentStore(ABC, Generic[T, K]):
    """Asynchronous persistent store; same semantics as PersistentStore."""

    @abstractmethod
    def find_as_no_tracking(self) -> AsyncQueryable[T]:
        """Return all objects as a lazy sequence that the session does not track."""

    @abstractmethod
    def find(self, criteria: Criteria | Any | None = None) -> AsyncQueryable[T]:
        """Return all objects, optionally filtered, as a tracked lazy sequence."""

    @abstractmethod
    async def find_by_id(self, id: K) -> T | None:
        """Return the object with the given key, or None.

        Raises NotFoundError for a None key or one that cannot be converted
        to the key type.
        """

    @abstractmethod
    async def get_by_id(self, id: K) -> T:
        """Return the object with the given key.  Raises NotFoundError if absent."""

    @abstractmethod
    async def find_by_ids(self, *ids: K | Iterable[K]) -> list[T]:
        """Return the objects matching the given keys; missing and invalid keys are omitted."""

    @abstractmethod
    async def single(self, predicate: Criteria | Any) -> T:
        """Return the only object matching predicate.  Raises SingleResultError otherwise."""

    @abstractmethod
    async def exists(self, *ids: K | Iterable[K]) -> bool:
        """Return True when every given key identifies a stored object."""

    @abstractmethod
    async def query(self, query: Query) -> list[T]:
        """Return the objects matching the query's criteria in its sort order."""

    @abstractmethod
    async def query_as_no_tracking(self, query: Query) -> list[T]:
        ...

    @abstractmethod
    async def pager_query(self, query: Query) -> PagerList[T]:
        """Return one page of matching objects together with the total count."""

    @abstractmethod
    async def pager_query_as_no_tracking(self, query: Query) -> PagerList[T]:
        ...

    @abstractmethod
    async def add(self, po: T | Iterable[T]) -> None:
        """Stage one or more new objects.  Raises DuplicateKeyError on key conflict."""

    @abstractmethod
    async def update(self, po: T) -> None:
        """Stage changes to an existing object.

        Raises NotFoundError if absent and InvalidObjectError if its key was
        changed, since keys are immutable once assigned.
        """

    @abstractmethod
    async def remove(self, target: K | T | Iterable[K | T]) -> None:
        """Stage deletion by key(s) or object(s).  Raises NotFoundError if any is absent."""


GuidPersistentStore = PersistentStore[T, UUID]
AsyncGuidPersistentStore = AsyncPersistentStore[T, UUID]
