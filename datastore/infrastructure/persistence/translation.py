"""Translation of domain criteria and sort orders into SQLAlchemy clauses."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import and_, false, inspect, not_, or_, true
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import Mapper
from sqlalchemy.sql import ColumnElement
from sqlalchemy.sql.elements import UnaryExpression

from datastore.domain.errors import InvalidQueryError
from datastore.domain.queries import (
    UNARY_OPERATORS,
    AllOf,
    AnyOf,
    Condition,
    Criteria,
    Negated,
    Operator,
    SortOrder,
)


def mapper_for(model: type) -> Mapper:
    try:
        return inspect(model)
    except NoInspectionAvailable as exc:
        raise TypeError(f"{model!r} is not an ORM-mapped class") from exc


def primary_key_attribute(model: type) -> str:
    """Return the attribute name of the model's single-column primary key."""
    mapper = mapper_for(model)
    if len(mapper.primary_key) != 1:
        raise TypeError(
            f"{model.__name__} must have exactly one primary-key column, "
            f"found {len(mapper.primary_key)}"
        )
    return mapper.get_property_by_column(mapper.primary_key[0]).key


def column_for(model: type, name: str) -> Any:
    if name not in mapper_for(model).column_attrs:
        raise InvalidQueryError(f"{model.__name__} has no column attribute {name!r}")
    return getattr(model, name)


def _is_collection(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes))


def _condition_clause(model: type, cond: Condition) -> ColumnElement[bool]:
    column = column_for(model, cond.field)
    op, value = cond.operator, cond.value

    if op in UNARY_OPERATORS:
        return column.is_(None) if op is Operator.IS_NULL else column.is_not(None)
    if op is Operator.EQ:
        return column.is_(None) if value is None else column == value
    if op is Operator.NE:
        return column.is_not(None) if value is None else column != value

    if value is None:
        raise InvalidQueryError(f"Operator {op.value!r} on {cond.field!r} requires a value")

    if op in (Operator.IN, Operator.NOT_IN):
        if not _is_collection(value):
            raise InvalidQueryError(f"Operator {op.value!r} on {cond.field!r} requires a collection")
        values = list(value)
        return column.in_(values) if op is Operator.IN else column.not_in(values)
    if op in (Operator.CONTAINS, Operator.STARTS_WITH, Operator.ENDS_WITH):
        if not isinstance(value, str):
            raise InvalidQueryError(f"Operator {op.value!r} on {cond.field!r} requires a string")
        if op is Operator.CONTAINS:
            return column.contains(value, autoescape=True)
        if op is Operator.STARTS_WITH:
            return column.startswith(value, autoescape=True)
        return column.endswith(value, autoescape=True)
    if op is Operator.GT:
        return column > value
    if op is Operator.GE:
        return column >= value
    if op is Operator.LT:
        return column < value
    if op is Operator.LE:
        return column <= value
    raise InvalidQueryError(f"Unsupported operator {op!r}")


def criteria_clause(model: type, criteria: Criteria) -> ColumnElement[bool]:
    if isinstance(criteria, Condition):
        return _condition_clause(model, criteria)
    if isinstance(criteria, AllOf):
        if not criteria.criteria:
            return true()
        return and_(*(criteria_clause(model, c) for c in criteria.criteria))
    if isinstance(criteria, AnyOf):
        if not criteria.criteria:
            return false()
        return or_(*(criteria_clause(model, c) for c in criteria.criteria))
    if isinstance(criteria, Negated):
        return not_(criteria_clause(model, criteria.criteria))
    raise InvalidQueryError(f"Unsupported criteria type {type(criteria).__name__}")


def to_clause(model: type, predicate: Any) -> ColumnElement[bool] | None:
    """Translate a predicate into a boolean clause on model.

    Accepts None (no filter), a Criteria, an SQLAlchemy boolean clause, or a
    callable receiving the model class and returning either of the latter.
    """
    if predicate is None:
        return None
    if isinstance(predicate, Criteria):
        return criteria_clause(model, predicate)
    if isinstance(predicate, ColumnElement):
        return predicate
    if callable(predicate):
        try:
            result = predicate(model)
        except AttributeError as exc:
            raise InvalidQueryError(f"Malformed predicate for {model.__name__}: {exc}") from exc
        if isinstance(result, (Criteria, ColumnElement)):
            return to_clause(model, result)
        raise InvalidQueryError(
            f"Predicate for {model.__name__} returned {type(result).__name__}, "
            "expected a boolean clause"
        )
    raise InvalidQueryError(f"Unsupported predicate type {type(predicate).__name__}")


def order_clauses(model: type, orders: Iterable[SortOrder | str]) -> list[UnaryExpression]:
    clauses = []
    for order in orders:
        if isinstance(order, str):
            try:
                parsed = SortOrder.parse(order)
            except ValueError as exc:
                raise InvalidQueryError(str(exc)) from exc
        else:
            parsed = (order,)
        for sort in parsed:
            column = column_for(model, sort.field)
            clauses.append(column.desc() if sort.descending else column.asc())
    return clauses
