"""Tests for criteria and sort-order translation into SQLAlchemy clauses."""

import pytest
from sqlalchemy import literal

from datastore.domain.errors import InvalidQueryError
from datastore.domain.queries import AllOf, AnyOf, Condition, Operator, SortOrder, field
from datastore.infrastructure.persistence.translation import (
    column_for,
    order_clauses,
    primary_key_attribute,
    to_clause,
)


def _sql(widget_model, predicate):
    return str(to_clause(widget_model, predicate))


# --- primary keys and columns ---

def test_primary_key_attribute_of_uuid_model(widget_model):
    assert primary_key_attribute(widget_model) == "id"


def test_primary_key_attribute_of_string_model(tag_model):
    assert primary_key_attribute(tag_model) == "code"


def test_primary_key_attribute_rejects_unmapped_class():
    class _Plain:
        pass

    with pytest.raises(TypeError):
        primary_key_attribute(_Plain)


def test_column_for_unknown_field_raises(widget_model):
    with pytest.raises(InvalidQueryError):
        column_for(widget_model, "colour")


# --- conditions ---

def test_none_predicate_is_no_filter(widget_model):
    assert to_clause(widget_model, None) is None


def test_eq_condition(widget_model):
    assert _sql(widget_model, field("name") == "x") == "widgets.name = :name_1"


def test_eq_none_becomes_is_null(widget_model):
    assert _sql(widget_model, field("category") == None) == "widgets.category IS NULL"  # noqa: E711


def test_ne_none_becomes_is_not_null(widget_model):
    assert _sql(widget_model, field("category") != None) == "widgets.category IS NOT NULL"  # noqa: E711


def test_comparison_operators(widget_model):
    assert ">=" in _sql(widget_model, field("quantity") >= 2)
    assert "<" in _sql(widget_model, field("quantity") < 2)


def test_in_condition(widget_model):
    assert "IN" in _sql(widget_model, field("name").in_(["a", "b"]))


def test_not_in_condition(widget_model):
    assert "NOT IN" in _sql(widget_model, field("name").not_in(["a"]))


def test_in_requires_collection(widget_model):
    with pytest.raises(InvalidQueryError):
        to_clause(widget_model, Condition(field="name", operator=Operator.IN, value="abc"))


def test_contains_uses_like(widget_model):
    assert "LIKE" in _sql(widget_model, field("name").contains("ab"))


def test_starts_with_requires_string(widget_model):
    with pytest.raises(InvalidQueryError):
        to_clause(widget_model, Condition(field="name", operator=Operator.STARTS_WITH, value=3))


def test_ordering_operator_requires_value(widget_model):
    with pytest.raises(InvalidQueryError):
        to_clause(widget_model, Condition(field="quantity", operator=Operator.GT))


# --- composition ---

def test_all_of_joins_with_and(widget_model):
    assert " AND " in _sql(widget_model, (field("name") == "a") & (field("quantity") > 1))


def test_any_of_joins_with_or(widget_model):
    assert " OR " in _sql(widget_model, (field("name") == "a") | (field("name") == "b"))


def test_negation(widget_model):
    assert _sql(widget_model, ~(field("name") == "a")) == "widgets.name != :name_1"


def test_empty_all_of_is_true(widget_model):
    assert _sql(widget_model, AllOf(criteria=())) == "true"


def test_empty_any_of_is_false(widget_model):
    assert _sql(widget_model, AnyOf(criteria=())) == "false"


# --- raw clauses and callables ---

def test_clause_passes_through(widget_model):
    clause = widget_model.quantity > 3
    assert to_clause(widget_model, clause) is clause


def test_callable_receives_model(widget_model):
    assert _sql(widget_model, lambda w: w.name == "x") == "widgets.name = :name_1"


def test_callable_may_return_criteria(widget_model):
    assert _sql(widget_model, lambda w: field("name") == "x") == "widgets.name = :name_1"


def test_callable_with_unknown_attribute_raises(widget_model):
    with pytest.raises(InvalidQueryError):
        to_clause(widget_model, lambda w: w.colour == "red")


def test_callable_returning_bool_raises(widget_model):
    with pytest.raises(InvalidQueryError):
        to_clause(widget_model, lambda w: True)


def test_unsupported_predicate_raises(widget_model):
    with pytest.raises(InvalidQueryError):
        to_clause(widget_model, 42)


def test_literal_clause_accepted(widget_model):
    assert to_clause(widget_model, literal(True)) is not None


# --- ordering ---

def test_order_clauses_from_text(widget_model):
    clauses = order_clauses(widget_model, ["name desc, quantity"])
    assert [str(c) for c in clauses] == ["widgets.name DESC", "widgets.quantity ASC"]


def test_order_clauses_from_sort_orders(widget_model):
    clauses = order_clauses(widget_model, [SortOrder(field="sku", descending=True)])
    assert str(clauses[0]) == "widgets.sku DESC"


def test_order_clauses_reject_bad_text(widget_model):
    with pytest.raises(InvalidQueryError):
        order_clauses(widget_model, ["name sideways"])


def test_order_clauses_reject_unknown_field(widget_model):
    with pytest.raises(InvalidQueryError):
        order_clauses(widget_model, [SortOrder(field="colour")])
