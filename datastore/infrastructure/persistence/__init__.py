"""SQLAlchemy persistence adapter.

Exports the store implementations, the PersistentObject ORM base and the
create_store() factory for wiring at the application boundary.
"""

from __future__ import annotations

from typing import Any, TypeVar, overload

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from .models import PersistentObject
from .queryable import AsyncSqlQueryable, SqlQueryable
from .stores import AsyncSqlPersistentStore, SqlPersistentStore

T = TypeVar("T")


@overload
def create_store(session: AsyncSession, model: type[T]) -> AsyncSqlPersistentStore[T, Any]: ...


@overload
def create_store(session: Session, model: type[T]) -> SqlPersistentStore[T, Any]: ...


def create_store(session, model):
    """Construct the store for model bound to the given session.

    An AsyncSession yields an AsyncSqlPersistentStore, a Session a
    SqlPersistentStore:

        async def handler(session: AsyncSession = Depends(get_session)) -> ...:
            orders = create_store(session, Order)
            order = await orders.get_by_id(order_id)
    """
    if isinstance(session, AsyncSession):
        return AsyncSqlPersistentStore(session, model)
    if isinstance(session, Session):
        return SqlPersistentStore(session, model)
    raise TypeError(f"Unsupported session type {type(session).__name__}")


__all__ = [
    "PersistentObject",
    "SqlPersistentStore",
    "AsyncSqlPersistentStore",
    "SqlQueryable",
    "AsyncSqlQueryable",
    "create_store",
]
