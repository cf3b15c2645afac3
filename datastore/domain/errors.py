"""Persistence error taxonomy.

Every failure raised by a store derives from PersistenceError.  Errors are
surfaced to the caller as-is; stores never retry or suppress them.
"""

from __future__ import annotations

from typing import Any


class PersistenceError(Exception):
    """Base class for all store failures."""


class NotFoundError(PersistenceError, LookupError):
    """One or more keys do not identify a stored object."""

    def __init__(self, model: Any, keys: Any, message: str | None = None) -> None:
        self.model = model
        self.keys = tuple(keys) if isinstance(keys, (list, tuple, set, frozenset)) else (keys,)
        name = getattr(model, "__name__", str(model))
        rendered = ", ".join(str(k) for k in self.keys)
        super().__init__(message or f"{name} not found: {rendered}")


class ConstraintViolationError(PersistenceError):
    """The backing store rejected a write with an integrity constraint violation."""


class DuplicateKeyError(ConstraintViolationError):
    """An added object's key is already taken."""


class InvalidObjectError(PersistenceError, TypeError):
    """The object handed to a write operation is None or of the wrong type."""


class InvalidQueryError(PersistenceError, ValueError):
    """A criteria or sort order cannot be translated for the target model."""


class SingleResultError(PersistenceError):
    """single() matched a number of objects other than exactly one."""


class NoMatchError(SingleResultError, NotFoundError):
    def __init__(self, model: Any) -> None:
        NotFoundError.__init__(
            self, model, (), f"{getattr(model, '__name__', model)}: no object matches the predicate"
        )


class MultipleMatchError(SingleResultError):
    def __init__(self, model: Any) -> None:
        self.model = model
        super().__init__(
            f"{getattr(model, '__name__', model)}: more than one object matches the predicate"
        )
