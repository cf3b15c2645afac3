"""Domain layer: store contracts, query descriptors, paging and errors.

Nothing in this package depends on the ORM.
"""

from .errors import (
    ConstraintViolationError,
    DuplicateKeyError,
    InvalidObjectError,
    InvalidQueryError,
    MultipleMatchError,
    NoMatchError,
    NotFoundError,
    PersistenceError,
    SingleResultError,
)
from .paging import PagerList
from .queries import (
    AllOf,
    AnyOf,
    Condition,
    Criteria,
    Field,
    Negated,
    Operator,
    Query,
    SortOrder,
    field,
)
from .stores import (
    AsyncGuidPersistentStore,
    AsyncPersistentStore,
    AsyncQueryable,
    GuidPersistentStore,
    PersistentStore,
    Queryable,
)

__all__ = [
    # errors
    "PersistenceError",
    "NotFoundError",
    "ConstraintViolationError",
    "DuplicateKeyError",
    "InvalidObjectError",
    "InvalidQueryError",
    "SingleResultError",
    "NoMatchError",
    "MultipleMatchError",
    # queries
    "Operator",
    "Criteria",
    "Condition",
    "AllOf",
    "AnyOf",
    "Negated",
    "Field",
    "field",
    "SortOrder",
    "Query",
    # paging
    "PagerList",
    # stores
    "PersistentStore",
    "AsyncPersistentStore",
    "GuidPersistentStore",
    "AsyncGuidPersistentStore",
    "Queryable",
    "AsyncQueryable",
]
