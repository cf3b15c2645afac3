"""Persistent object base class for ORM models managed by a store."""

from __future__ import annotations

import uuid

from sqlalchemy import Uuid
from sqlalchemy.orm import Mapped, mapped_column

from datastore.infrastructure.database import Base


class PersistentObject(Base):
    """Abstract base for UUID-keyed persistent objects.

    Subclasses declare __tablename__ and their own columns.  The id is
    assigned at construction (uuid4) unless the caller passes one, and must
    not change afterwards.  Models keyed by anything other than a
    UUID inherit from Base directly and map a single primary-key column.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    def __init__(self, **kwargs: object) -> None:
        kwargs.setdefault("id", uuid.uuid4())
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
