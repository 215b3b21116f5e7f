# tests/test_query.py

from __future__ import annotations

import pytest

from taskvim.errors import ValidationError
from taskvim.tasks.query import Operator, Predicate, compile_filter, parse, to_sql_condition


def test_single_predicate_compiles_to_bound_condition() -> None:
    assert compile_filter("priority>=3") == [("priority >= ?", "3")]


def test_predicates_keep_input_order() -> None:
    assert compile_filter("status=todo project!=home") == [
        ("status = ?", "todo"),
        ("project != ?", "home"),
    ]


def test_two_character_operators_win_over_single() -> None:
    preds = parse("priority<=2 priority>1")
    assert [p.operator for p in preds] == [Operator.LTE, Operator.GT]
    assert [p.value for p in preds] == ["2", "1"]


def test_contains_becomes_like_with_wildcards() -> None:
    assert compile_filter("projectcontainswork") == [("project LIKE ?", "%work%")]


def test_field_aliases_map_to_columns() -> None:
    assert compile_filter("due<2025-01-01 created>2024-01-01") == [
        ("due_date < ?", "2025-01-01"),
        ("created_at > ?", "2024-01-01"),
    ]


def test_tokens_without_operator_or_field_are_skipped() -> None:
    assert parse("hello =x status=done") == [
        Predicate(field="status", operator=Operator.EQ, value="done")
    ]
    assert compile_filter("") == []


@pytest.mark.parametrize("expr", ["tag=work", "tags=home", "color=red"])
def test_unsupported_fields_raise_validation_error(expr: str) -> None:
    with pytest.raises(ValidationError):
        compile_filter(expr)


def test_unknown_field_aborts_whole_expression() -> None:
    with pytest.raises(ValidationError):
        to_sql_condition(Predicate(field="owner", operator=Operator.EQ, value="me"))
    with pytest.raises(ValidationError):
        compile_filter("status=todo owner=me")
