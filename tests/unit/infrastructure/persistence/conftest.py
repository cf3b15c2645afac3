"""Shared ORM models and in-memory SQLite sessions for store tests."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import Integer, String, UniqueConstraint, create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from datastore.infrastructure.database import Base
from datastore.infrastructure.persistence import (
    AsyncSqlPersistentStore,
    PersistentObject,
    SqlPersistentStore,
)


class Widget(PersistentObject):
    __tablename__ = "widgets"
    __table_args__ = (UniqueConstraint("sku", name="uq_widgets_sku"),)

    sku: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Tag(Base):
    """String-keyed model."""

    __tablename__ = "tags"

    code: Mapped[str] = mapped_column(String(16), primary_key=True)
    label: Mapped[str] = mapped_column(String(64), nullable=False)


SEED = [
    ("alpha", "tools", 1),
    ("bravo", "tools", 2),
    ("charlie", "toys", 3),
    ("delta", "toys", 4),
    ("echo", None, 5),
]


@pytest.fixture
def widget_model():
    return Widget


@pytest.fixture
def tag_model():
    return Tag


@pytest.fixture
def make_widget():
    def _make(**overrides):
        defaults = {
            "sku": f"SKU-{uuid4().hex[:8]}",
            "name": "widget",
            "category": "tools",
            "quantity": 1,
        }
        defaults.update(overrides)
        return Widget(**defaults)

    return _make


@pytest.fixture
def sync_session():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    with Session(engine, expire_on_commit=False) as session:
        yield session
    engine.dispose()


@pytest.fixture
async def async_session():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session
    await engine.dispose()


@pytest.fixture
def store(sync_session):
    return SqlPersistentStore(sync_session, Widget)


@pytest.fixture
def async_store(async_session):
    return AsyncSqlPersistentStore(async_session, Widget)


@pytest.fixture
def seeded(store, make_widget):
    widgets = [make_widget(name=n, category=c, quantity=q) for n, c, q in SEED]
    store.add(widgets)
    return widgets


@pytest.fixture
async def async_seeded(async_store, make_widget):
    widgets = [make_widget(name=n, category=c, quantity=q) for n, c, q in SEED]
    await async_store.add(widgets)
    return widgets
