"""SQLAlchemy implementations of Queryable and AsyncQueryable.

A queryable holds the parts of a SELECT (filters, ordering, offset, limit)
rather than a built statement, so count() can reuse the filters without
the ordering and slicing.

No-tracking loads flush the session first, snapshot its identity map,
and expunge every loaded object that was not already tracked.  Objects
the session already held are returned unchanged.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from datastore.domain.errors import InvalidQueryError
from datastore.domain.queries import SortOrder
from datastore.domain.stores.queryable import AsyncQueryable, Queryable

from .translation import order_clauses, to_clause

T = TypeVar("T")


def _detach_untracked(session: Session, rows: Sequence[Any], known: set) -> None:
    for row in rows:
        if row in session and inspect(row).key not in known:
            session.expunge(row)


def load(session: Session, stmt: Select, tracking: bool) -> list[Any]:
    if tracking:
        return list(session.scalars(stmt).all())
    session.flush()
    known = set(session.identity_map.keys())
    rows = list(session.scalars(stmt).all())
    _detach_untracked(session, rows, known)
    return rows


async def aload(session: AsyncSession, stmt: Select, tracking: bool) -> list[Any]:
    if tracking:
        return list((await session.scalars(stmt)).all())
    await session.flush()
    known = set(session.sync_session.identity_map.keys())
    rows = list((await session.scalars(stmt)).all())
    _detach_untracked(session.sync_session, rows, known)
    return rows


class _StatementParts(Generic[T]):
    def __init__(
        self,
        session: Any,
        model: type[T],
        *,
        tracking: bool = True,
        filters: tuple = (),
        orders: tuple = (),
        offset: int | None = None,
        limit: int | None = None,
    ) -> None:
        self._session = session
        self.model = model
        self.tracking = tracking
        self._filters = filters
        self._orders = orders
        self._offset = offset
        self._limit = limit

    def _copy(self, **changes: Any):
        parts = {
            "tracking": self.tracking,
            "filters": self._filters,
            "orders": self._orders,
            "offset": self._offset,
            "limit": self._limit,
        }
        parts.update(changes)
        return type(self)(self._session, self.model, **parts)

    def where(self, predicate: Any):
        clause = to_clause(self.model, predicate)
        if clause is None:
            return self
        return self._copy(filters=(*self._filters, clause))

    def order_by(self, *orders: SortOrder | str):
        return self._copy(orders=(*self._orders, *order_clauses(self.model, orders)))

    def skip(self, count: int):
        if count < 0:
            raise InvalidQueryError(f"skip() requires a non-negative count, got {count}")
        return self._copy(offset=(self._offset or 0) + count)

    def take(self, count: int):
        if count < 0:
            raise InvalidQueryError(f"take() requires a non-negative count, got {count}")
        limit = count if self._limit is None else min(self._limit, count)
        return self._copy(limit=limit)

    @property
    def ordered(self) -> bool:
        return bool(self._orders)

    def statement(self) -> Select:
        stmt = select(self.model).where(*self._filters).order_by(*self._orders)
        if self._offset:
            stmt = stmt.offset(self._offset)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    def count_statement(self) -> Select:
        return select(func.count()).select_from(self.model).where(*self._filters)


class SqlQueryable(_StatementParts[T], Queryable[T]):
    def __iter__(self) -> Iterator[T]:
        return iter(self.all())

    def all(self) -> list[T]:
        return load(self._session, self.statement(), self.tracking)

    def first(self) -> T | None:
        rows = self.take(1).all()
        return rows[0] if rows else None

    def count(self) -> int:
        return self._session.scalar(self.count_statement()) or 0


class AsyncSqlQueryable(_StatementParts[T], AsyncQueryable[T]):
    async def __aiter__(self) -> AsyncIterator[T]:  # type: ignore[override]
        for row in await self.all():
            yield row

    async def all(self) -> list[T]:
        return await aload(self._session, self.statement(), self.tracking)

    async def first(self) -> T | None:
        rows = await self.take(1).all()
        return rows[0] if rows else None

    async def count(self) -> int:
        return (await self._session.scalar(self.count_statement())) or 0
