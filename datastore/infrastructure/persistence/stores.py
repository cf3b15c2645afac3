"""SQLAlchemy implementations of PersistentStore and AsyncPersistentStore.

Both adapters are bound to one session for their whole lifetime.  Writes
are staged on that session and flushed immediately so constraint
violations surface at the call site; commit and rollback stay with the
caller's unit of work.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from datastore.domain.errors import (
    ConstraintViolationError,
    DuplicateKeyError,
    InvalidObjectError,
    InvalidQueryError,
    MultipleMatchError,
    NoMatchError,
    NotFoundError,
)
from datastore.domain.paging import PagerList
from datastore.domain.queries import Criteria, Query
from datastore.domain.stores.base import AsyncPersistentStore, PersistentStore

from .queryable import AsyncSqlQueryable, SqlQueryable
from .translation import mapper_for, primary_key_attribute, to_clause

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K")

_INVALID = object()


def _python_type(column_type: Any) -> type | None:
    try:
        return column_type.python_type
    except NotImplementedError:
        return None


class _SqlStoreBase(Generic[T, K]):
    """Model introspection and argument handling shared by both adapters."""

    def __init__(self, session: Any, model: type[T]) -> None:
        self._session = session
        self.model = model
        self._mapper = mapper_for(model)
        self._key = primary_key_attribute(model)
        self._key_type = _python_type(self._mapper.columns[self._key].type)

    @property
    def key_column(self) -> Any:
        return getattr(self.model, self._key)

    def key_of(self, po: T) -> K:
        return getattr(po, self._key)

    def _is_collection(self, value: Any) -> bool:
        return isinstance(value, Iterable) and not isinstance(value, (str, bytes, self.model))

    def _coerce(self, key: Any) -> Any:
        """Convert key to the model's key type; _INVALID when it cannot be."""
        if key is None:
            return _INVALID
        if self._key_type is None or isinstance(key, self._key_type):
            return key
        try:
            if self._key_type is uuid.UUID:
                return uuid.UUID(str(key))
            return self._key_type(key)
        except (TypeError, ValueError):
            return _INVALID

    def _split_keys(self, keys: Iterable[Any]) -> tuple[list[K], list[Any]]:
        """Return (converted valid keys, invalid keys), each without duplicates."""
        valid, invalid = [], []
        for key in keys:
            converted = self._coerce(key)
            if converted is _INVALID:
                invalid.append(key)
            else:
                valid.append(converted)
        return list(dict.fromkeys(valid)), invalid

    def _flatten(self, ids: tuple) -> tuple:
        if len(ids) == 1 and self._is_collection(ids[0]):
            return tuple(ids[0])
        return ids

    def _keys(self, ids: tuple) -> list[K]:
        """Flatten *ids (or a single iterable of ids), dropping invalid keys and duplicates."""
        return self._split_keys(self._flatten(ids))[0]

    def _valid_key(self, id: Any) -> K:
        key = self._coerce(id)
        if key is _INVALID:
            raise NotFoundError(self.model, (id,))
        return key

    def _check_key_unchanged(self, po: T) -> None:
        """Reject an object whose key differs from the identity it was loaded under."""
        identity = inspect(po).key
        if identity is not None and identity[1] != (self.key_of(po),):
            raise InvalidObjectError(
                f"{self.model.__name__} key is immutable: "
                f"{identity[1][0]} was changed to {self.key_of(po)}"
            )

    def _objects(self, po: T | Iterable[T]) -> list[T]:
        items = list(po) if self._is_collection(po) else [po]
        for item in items:
            if not isinstance(item, self.model):
                raise InvalidObjectError(
                    f"Expected {self.model.__name__}, got {type(item).__name__}"
                )
        return items

    def _check_new_keys(self, sync_session: Session, items: list[T]) -> None:
        """Reject objects whose key is already tracked by another instance or repeated."""
        seen = set()
        for item in items:
            key = self.key_of(item)
            if key is None:
                continue
            if key in seen:
                raise DuplicateKeyError(f"{self.model.__name__} key {key} is repeated in the batch")
            seen.add(key)
            identity = self._mapper.identity_key_from_primary_key([key])
            tracked = sync_session.identity_map.get(identity)
            if tracked is not None and tracked is not item:
                raise DuplicateKeyError(f"{self.model.__name__} key {key} already exists")

    def _partition(self, target: Any, sync_session: Session) -> tuple[list, list, list]:
        """Split a remove() target into (pending objects, tracked objects, keys to load)."""
        items = list(target) if self._is_collection(target) else [target]
        pending, tracked, keys = [], [], []
        for item in items:
            if item is None:
                raise NotFoundError(self.model, (None,))
            if isinstance(item, self.model):
                state = inspect(item)
                if state.pending and item in sync_session:
                    pending.append(item)
                elif state.persistent and item in sync_session:
                    tracked.append(item)
                else:
                    keys.append(self.key_of(item))
            else:
                keys.append(item)
        return pending, tracked, keys

    def _missing(self, keys: list[K], rows: list[T]) -> list[K]:
        """Keys with no row in rows; keys must already be converted."""
        found = {self.key_of(row) for row in rows}
        return [k for k in keys if k not in found]

    def _single_clause(self, predicate: Criteria | Any) -> Any:
        clause = to_clause(self.model, predicate)
        if clause is None:
            raise InvalidQueryError("single() requires a predicate")
        return clause

    def _single_result(self, rows: list[T]) -> T:
        if not rows:
            raise NoMatchError(self.model)
        if len(rows) > 1:
            raise MultipleMatchError(self.model)
        return rows[0]

    def _violation(
        self, exc: IntegrityError, error: type[ConstraintViolationError]
    ) -> ConstraintViolationError:
        logger.warning("Integrity error flushing %s: %s", self.model.__name__, exc.orig)
        return error(f"{self.model.__name__}: {exc.orig}")


class SqlPersistentStore(_SqlStoreBase[T, K], PersistentStore[T, K]):
    """PersistentStore over a synchronous SQLAlchemy Session."""

    def __init__(self, session: Session, model: type[T]) -> None:
        super().__init__(session, model)

    def find_as_no_tracking(self) -> SqlQueryable[T]:
        return SqlQueryable(self._session, self.model, tracking=False)

    def find(self, criteria: Criteria | Any | None = None) -> SqlQueryable[T]:
        return SqlQueryable(self._session, self.model).where(criteria)

    def find_by_id(self, id: K) -> T | None:
        return self._session.get(self.model, self._valid_key(id))

    def get_by_id(self, id: K) -> T:
        po = self.find_by_id(id)
        if po is None:
            raise NotFoundError(self.model, id)
        return po

    def find_by_ids(self, *ids: K | Iterable[K]) -> list[T]:
        keys = self._keys(ids)
        if not keys:
            return []
        stmt = select(self.model).where(self.key_column.in_(keys))
        return list(self._session.scalars(stmt).all())

    def single(self, predicate: Criteria | Any) -> T:
        stmt = select(self.model).where(self._single_clause(predicate)).limit(2)
        return self._single_result(list(self._session.scalars(stmt).all()))

    def exists(self, *ids: K | Iterable[K]) -> bool:
        keys, invalid = self._split_keys(self._flatten(ids))
        if invalid or not keys:
            return False
        stmt = select(func.count()).select_from(self.model).where(self.key_column.in_(keys))
        return self._session.scalar(stmt) == len(keys)

    def _queryable(self, query: Query, tracking: bool) -> SqlQueryable[T]:
        return SqlQueryable(self._session, self.model, tracking=tracking).where(
            query.criteria
        ).order_by(*query.order)

    def query(self, query: Query) -> list[T]:
        return self._queryable(query, tracking=True).all()

    def query_as_no_tracking(self, query: Query) -> list[T]:
        return self._queryable(query, tracking=False).all()

    def _pager(self, query: Query, tracking: bool) -> PagerList[T]:
        queryable = self._queryable(query, tracking)
        total = queryable.count()
        items: list[T] = []
        if total:
            if not queryable.ordered:
                queryable = queryable.order_by(self._key)
            items = queryable.skip(query.skip).take(query.page_size).all()
        return PagerList.for_query(query, total, items)

    def pager_query(self, query: Query) -> PagerList[T]:
        return self._pager(query, tracking=True)

    def pager_query_as_no_tracking(self, query: Query) -> PagerList[T]:
        return self._pager(query, tracking=False)

    def _flush(self, error: type[ConstraintViolationError] = ConstraintViolationError) -> None:
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise self._violation(exc, error) from exc

    def add(self, po: T | Iterable[T]) -> None:
        items = self._objects(po)
        if not items:
            return
        self._check_new_keys(self._session, items)
        self._session.add_all(items)
        self._flush(DuplicateKeyError)
        logger.debug("Added %d %s", len(items), self.model.__name__)

    def update(self, po: T) -> None:
        (po,) = self._objects([po])
        self._check_key_unchanged(po)
        key = self.key_of(po)
        if po not in self._session:
            if key is None or self._session.get(self.model, key) is None:
                raise NotFoundError(self.model, key)
            self._session.merge(po)
        self._flush()
        logger.debug("Updated %s %s", self.model.__name__, key)

    def remove(self, target: K | T | Iterable[K | T]) -> None:
        pending, tracked, keys = self._partition(target, self._session)
        keys, invalid = self._split_keys(keys)
        rows = self.find_by_ids(keys) if keys else []
        missing = invalid + self._missing(keys, rows)
        if missing:
            raise NotFoundError(self.model, missing)
        for po in pending:
            self._session.expunge(po)
        for po in (*tracked, *rows):
            self._session.delete(po)
        self._flush()
        logger.debug("Removed %d %s", len(pending) + len(tracked) + len(rows), self.model.__name__)


class AsyncSqlPersistentStore(_SqlStoreBase[T, K], AsyncPersistentStore[T, K]):
    """AsyncPersistentStore over an SQLAlchemy AsyncSession."""

    def __init__(self, session: AsyncSession, model: type[T]) -> None:
        super().__init__(session, model)

    def find_as_no_tracking(self) -> AsyncSqlQueryable[T]:
        return AsyncSqlQueryable(self._session, self.model, tracking=False)

    def find(self, criteria: Criteria | Any | None = None) -> AsyncSqlQueryable[T]:
        return AsyncSqlQueryable(self._session, self.model).where(criteria)

    async def find_by_id(self, id: K) -> T | None:
        return await self._session.get(self.model, self._valid_key(id))

    async def get_by_id(self, id: K) -> T:
        po = await self.find_by_id(id)
        if po is None:
            raise NotFoundError(self.model, id)
        return po

    async def find_by_ids(self, *ids: K | Iterable[K]) -> list[T]:
        keys = self._keys(ids)
        if not keys:
            return []
        stmt = select(self.model).where(self.key_column.in_(keys))
        return list((await self._session.scalars(stmt)).all())

    async def single(self, predicate: Criteria | Any) -> T:
        stmt = select(self.model).where(self._single_clause(predicate)).limit(2)
        return self._single_result(list((await self._session.scalars(stmt)).all()))

    async def exists(self, *ids: K | Iterable[K]) -> bool:
        keys = self._keys(ids)
        if not keys:
            return False
        stmt = select(func.count()).select_from(self.model).where(self.key_column.in_(keys))
        return (await self._session.scalar(stmt)) == len(keys)

    def _queryable(self, query: Query, tracking: bool) -> AsyncSqlQueryable[T]:
        return AsyncSqlQueryable(self._session, self.model, tracking=tracking).where(
            query.criteria
        ).order_by(*query.order)

    async def query(self, query: Query) -> list[T]:
        return await self._queryable(query, tracking=True).all()

    async def query_as_no_tracking(self, query: Query) -> list[T]:
        return await self._queryable(query, tracking=False).all()

    async def _pager(self, query: Query, tracking: bool) -> PagerList[T]:
        queryable = self._queryable(query, tracking)
        total = await queryable.count()
        items: list[T] = []
        if total:
            if not queryable.ordered:
                queryable = queryable.order_by(self._key)
            items = await queryable.skip(query.skip).take(query.page_size).all()
        return PagerList.for_query(query, total, items)

    async def pager_query(self, query: Query) -> PagerList[T]:
        return await self._pager(query, tracking=True)

    async def pager_query_as_no_tracking(self, query: Query) -> PagerList[T]:
        return await self._pager(query, tracking=False)

    async def _flush(
        self, error: type[ConstraintViolationError] = ConstraintViolationError
    ) -> None:
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise self._violation(exc, error) from exc

    async def add(self, po: T | Iterable[T]) -> None:
        items = self._objects(po)
        if not items:
            return
        self._check_new_keys(self._session.sync_session, items)
        self._session.add_all(items)
        await self._flush(DuplicateKeyError)
        logger.debug("Added %d %s", len(items), self.model.__name__)

    async def update(self, po: T) -> None:
        (po,) = self._objects([po])
        self._check_key_unchanged(po)
        key = self.key_of(po)
        if po not in self._session.sync_session:
            if key is None or await self._session.get(self.model, key) is None:
                raise NotFoundError(self.model, key)
            await self._session.merge(po)
        await self._flush()
        logger.debug("Updated %s %s", self.model.__name__, key)

    async def remove(self, target: K | T | Iterable[K | T]) -> None:
        pending, tracked, keys = self._partition(target, self._session.sync_session)
        keys, invalid = self._split_keys(keys)
        rows = await self.find_by_ids(keys) if keys else []
        missing = invalid + self._missing(keys, rows)
        if missing:
            raise NotFoundError(self.model, missing)
        for po in pending:
            self._session.expunge(po)
        for po in (*tracked, *rows):
            await self._session.delete(po)
        await self._flush()
        logger.debug("Removed %d %s", len(pending) + len(tracked) + len(rows), self.model.__name__)
