# src/taskvim/tasks/query.py

"""
Filter expression compiler.

Grammar: `(field OP value)*`, tokens separated by whitespace, implicit AND.
OP is one of `=  !=  >  <  >=  <=  contains`.

Example: "status=todo priority>=3" compiles to
    [("status = ?", "todo"), ("priority >= ?", "3")]
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import ValidationError

CompiledFilter = list[tuple[str, str]]


class Operator(Enum):
    EQ = "="
    NEQ = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    CONTAINS = "contains"

    @property
    def sql(self) -> str:
        return "LIKE" if self is Operator.CONTAINS else self.value


# Multi-character operators first: ">=" must not be read as ">".
_DETECTION_ORDER: tuple[Operator, ...] = (
    Operator.GTE,
    Operator.LTE,
    Operator.NEQ,
    Operator.CONTAINS,
    Operator.EQ,
    Operator.GT,
    Operator.LT,
)

_COLUMNS: dict[str, str] = {
    "status": "status",
    "priority": "priority",
    "project": "project",
    "due": "due_date",
    "due_date": "due_date",
    "created": "created_at",
    "created_at": "created_at",
}


@dataclass(frozen=True, slots=True)
class Predicate:
    field: str
    operator: Operator
    value: str


def _detect(token: str) -> Operator | None:
    for op in _DETECTION_ORDER:
        if op.value in token:
            return op
    return None


def parse(expression: str) -> list[Predicate]:
    """Tokens without an operator (or without a field) are skipped."""
    out: list[Predicate] = []
    for token in (expression or "").split():
        op = _detect(token)
        if op is None:
            continue
        field_name, _, value = token.partition(op.value)
        if not field_name:
            continue
        out.append(Predicate(field=field_name, operator=op, value=value))
    return out


def to_sql_condition(predicate: Predicate) -> tuple[str, str]:
    name = predicate.field.lower()
    if name in ("tag", "tags"):
        raise ValidationError("tag filtering is not implemented")
    column = _COLUMNS.get(name)
    if column is None:
        raise ValidationError(f"unknown filter field: {predicate.field}")

    value = predicate.value
    if predicate.operator is Operator.CONTAINS:
        value = f"%{value}%"
    return f"{column} {predicate.operator.sql} ?", value


def compile_filter(expression: str) -> CompiledFilter:
    """Parse and translate a whole expression; any invalid field aborts compilation."""
    return [to_sql_condition(p) for p in parse(expression)]
