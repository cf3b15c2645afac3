"""Query descriptors: criteria, sort orders and paged query objects.

These are pure domain objects with no ORM dependency.  Translation into a
backing-store filter is the job of the persistence adapter
(datastore/infrastructure/persistence/translation.py).

Criteria compose with the usual boolean operators:

    active = Condition(field="status", operator=Operator.EQ, value="active")
    cheap = field("price") < 10
    query = Query().where(active & ~cheap).order_by("price", descending=True)
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field as PydanticField

DEFAULT_PAGE_SIZE = 20


class Operator(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


# Operators that take no operand.
UNARY_OPERATORS = frozenset({Operator.IS_NULL, Operator.IS_NOT_NULL})


class Criteria(BaseModel):
    """Base class of every composable predicate."""

    model_config = ConfigDict(frozen=True)

    def __and__(self, other: Criteria) -> AllOf:
        return AllOf(criteria=(*_flatten(self, AllOf), *_flatten(other, AllOf)))

    def __or__(self, other: Criteria) -> AnyOf:
        return AnyOf(criteria=(*_flatten(self, AnyOf), *_flatten(other, AnyOf)))

    def __invert__(self) -> Criteria:
        if isinstance(self, Negated):
            return self.criteria
        return Negated(criteria=self)


class Condition(Criteria):
    """A single comparison of one field against a value."""

    field: str
    operator: Operator = Operator.EQ
    value: Any = None


class AllOf(Criteria):
    criteria: tuple[Criteria, ...]


class AnyOf(Criteria):
    criteria: tuple[Criteria, ...]


class Negated(Criteria):
    criteria: Criteria


def _flatten(criteria: Criteria, kind: type[Criteria]) -> tuple[Criteria, ...]:
    if isinstance(criteria, kind):
        return criteria.criteria  # type: ignore[attr-defined]
    return (criteria,)


class Field:
    """Operator shorthand for building Conditions: field("age") >= 18."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def _cond(self, operator: Operator, value: Any = None) -> Condition:
        return Condition(field=self.name, operator=operator, value=value)

    def __eq__(self, value: Any) -> Condition:  # type: ignore[override]
        return self._cond(Operator.EQ, value)

    def __ne__(self, value: Any) -> Condition:  # type: ignore[override]
        return self._cond(Operator.NE, value)

    def __gt__(self, value: Any) -> Condition:
        return self._cond(Operator.GT, value)

    def __ge__(self, value: Any) -> Condition:
        return self._cond(Operator.GE, value)

    def __lt__(self, value: Any) -> Condition:
        return self._cond(Operator.LT, value)

    def __le__(self, value: Any) -> Condition:
        return self._cond(Operator.LE, value)

    __hash__ = None  # type: ignore[assignment]

    def in_(self, values: Any) -> Condition:
        return self._cond(Operator.IN, tuple(values))

    def not_in(self, values: Any) -> Condition:
        return self._cond(Operator.NOT_IN, tuple(values))

    def contains(self, value: str) -> Condition:
        return self._cond(Operator.CONTAINS, value)

    def starts_with(self, value: str) -> Condition:
        return self._cond(Operator.STARTS_WITH, value)

    def ends_with(self, value: str) -> Condition:
        return self._cond(Operator.ENDS_WITH, value)

    def is_null(self) -> Condition:
        return self._cond(Operator.IS_NULL)

    def is_not_null(self) -> Condition:
        return self._cond(Operator.IS_NOT_NULL)


def field(name: str) -> Field:
    return Field(name)


class SortOrder(BaseModel):
    """Ordering on one field."""

    model_config = ConfigDict(frozen=True)

    field: str
    descending: bool = False

    @classmethod
    def parse(cls, text: str) -> tuple[SortOrder, ...]:
        """Parse "name desc, created_at" style order text.

        Each comma-separated part is a field name optionally followed by
        "asc" or "desc" (case-insensitive).  Empty parts are ignored.
        """
        orders = []
        for part in text.split(","):
            tokens = part.split()
            if not tokens:
                continue
            if len(tokens) > 2 or (
                len(tokens) == 2 and tokens[1].lower() not in ("asc", "desc")
            ):
                raise ValueError(f"Invalid sort clause: {part.strip()!r}")
            descending = len(tokens) == 2 and tokens[1].lower() == "desc"
            orders.append(cls(field=tokens[0], descending=descending))
        return tuple(orders)

    def __str__(self) -> str:
        return f"{self.field} desc" if self.descending else self.field


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return not value
    return False


class Query(BaseModel):
    """Structured query: filter criteria, sort order and paging.

    Query objects are immutable; every builder method returns a new,
    re-validated copy.  page and page_size must be >= 1.
    """

    model_config = ConfigDict(frozen=True)

    criteria: Criteria | None = None
    order: tuple[SortOrder, ...] = ()
    page: int = PydanticField(default=1, ge=1)
    page_size: int = PydanticField(default=DEFAULT_PAGE_SIZE, ge=1)

    def _replace(self, **changes: Any) -> Query:
        return type(self)(**{**dict(self), **changes})

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def order_text(self) -> str:
        return ", ".join(str(o) for o in self.order)

    def where(self, criteria: Criteria) -> Query:
        if self.criteria is None:
            return self._replace(criteria=criteria)
        return self._replace(criteria=self.criteria & criteria)

    def where_if(self, condition: bool, criteria: Criteria) -> Query:
        return self.where(criteria) if condition else self

    def where_if_not_empty(
        self, name: str, operator: Operator, value: Any
    ) -> Query:
        """Add a condition unless value is None, blank or an empty collection."""
        if _is_empty(value):
            return self
        return self.where(Condition(field=name, operator=operator, value=value))

    def between(
        self,
        name: str,
        low: Any = None,
        high: Any = None,
        include_low: bool = True,
        include_high: bool = True,
    ) -> Query:
        """Bound a field on either or both sides; a None bound is skipped."""
        query = self
        if low is not None:
            op = Operator.GE if include_low else Operator.GT
            query = query.where(Condition(field=name, operator=op, value=low))
        if high is not None:
            op = Operator.LE if include_high else Operator.LT
            query = query.where(Condition(field=name, operator=op, value=high))
        return query

    def order_by(self, name: str, descending: bool = False) -> Query:
        return self._replace(order=(*self.order, SortOrder(field=name, descending=descending)))

    def page_to(self, page: int, page_size: int | None = None) -> Query:
        return self._replace(
            page=page, page_size=self.page_size if page_size is None else page_size
        )
