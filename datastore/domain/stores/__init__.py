"""Persistent store interfaces.

Import from this package rather than individual modules to avoid coupling
application code to specific module paths.
"""

from .base import (
    AsyncGuidPersistentStore,
    AsyncPersistentStore,
    GuidPersistentStore,
    PersistentStore,
)
from .queryable import AsyncQueryable, Queryable

__all__ = [
    "PersistentStore",
    "AsyncPersistentStore",
    "GuidPersistentStore",
    "AsyncGuidPersistentStore",
    "Queryable",
    "AsyncQueryable",
]
