"""SQLAlchemy engines, session factories and transactional session helpers."""

from collections.abc import AsyncGenerator, Generator
from contextlib import contextmanager

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./datastore.db"
    sync_database_url: str = "sqlite:///./datastore.db"
    database_echo: bool = False


settings = Settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

sync_engine = create_engine(
    settings.sync_database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    bind=sync_engine,
    class_=Session,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a transactional async session (usable as a FastAPI-style dependency)."""
    async with AsyncSessionLocal() as session:
        async with session.begin():
            yield session


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Sync counterpart of get_session: commit on success, roll back on error."""
    with SessionLocal() as session:
        with session.begin():
            yield session
