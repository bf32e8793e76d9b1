"""Expression family: scalar-valued nodes over table columns.

Variants are grouped by arity category, one frozen dataclass per category.
The category is the discriminator (``ExprKind``) and the operator name is
carried in the ``op`` field, e.g. ``Binary("power", left, right)`` encodes
as ``["@arithmetic", "power", <left>, <right>]``.  :func:`build` constructs
any variant from its name alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd

from ..config import CodecConfig
from .args import ArgKind, encode_arg
from .nodes import EXPRESSIONS, Expression, ExprKind, arg, register_operators, register_variant

NULLARY = ExprKind.NULLARY
NEGATE = ExprKind.NEGATE
ARITHMETIC = ExprKind.ARITHMETIC
TERNARY = ExprKind.TERNARY
TYPECHECK = ExprKind.TYPECHECK
CONVERT = ExprKind.CONVERT
DATETIME = ExprKind.DATETIME

LiteralValue = bool | int | float | str | pd.Timestamp


@register_variant(EXPRESSIONS, NULLARY, "constant")
@dataclass(frozen=True, slots=True, eq=False)
class Constant(Expression):
    """A literal value.

    Equality also compares the literal's type, so ``Constant(1)``,
    ``Constant(1.0)`` and ``Constant(True)`` are three different nodes, just
    as their encodings differ.
    """

    value: LiteralValue = arg(ArgKind.LITERAL)

    def _key(self) -> tuple[type, Any]:
        return type(self.value), encode_arg(ArgKind.LITERAL, self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Constant):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        kind, encoded = self._key()
        return hash((kind, str(encoded)))


@register_variant(EXPRESSIONS, NULLARY, "column")
@dataclass(frozen=True, slots=True)
class Column(Expression):
    column: str = arg(ArgKind.TEXT)


@register_operators(EXPRESSIONS, NEGATE, "negate", "not")
@dataclass(frozen=True, slots=True)
class Unary(Expression):
    op: str
    child: Expression = arg(ArgKind.EXPR)


@register_operators(
    EXPRESSIONS,
    ARITHMETIC,
    "add",
    "and",
    "divide",
    "equal",
    "greater",
    "greaterEqual",
    "less",
    "lessEqual",
    "multiply",
    "notEqual",
    "or",
    "power",
    "remainder",
    "subtract",
)
@dataclass(frozen=True, slots=True)
class Binary(Expression):
    op: str
    left: Expression = arg(ArgKind.EXPR)
    right: Expression = arg(ArgKind.EXPR)


@register_operators(EXPRESSIONS, TERNARY, "ifElse")
@dataclass(frozen=True, slots=True)
class Ternary(Expression):
    op: str
    condition: Expression = arg(ArgKind.EXPR)
    if_true: Expression = arg(ArgKind.EXPR)
    if_false: Expression = arg(ArgKind.EXPR)


@register_operators(
    EXPRESSIONS, TYPECHECK, "isBool", "isDatetime", "isMissing", "isNumber", "isString"
)
@dataclass(frozen=True, slots=True)
class TypeCheck(Expression):
    op: str
    child: Expression = arg(ArgKind.EXPR)


@register_operators(EXPRESSIONS, CONVERT, "toBool", "toDatetime", "toNumber", "toString")
@dataclass(frozen=True, slots=True)
class Convert(Expression):
    op: str
    child: Expression = arg(ArgKind.EXPR)


@register_operators(
    EXPRESSIONS,
    DATETIME,
    "toYear",
    "toMonth",
    "toDay",
    "toWeekday",
    "toHours",
    "toMinutes",
    "toSeconds",
)
@dataclass(frozen=True, slots=True)
class DatetimeField(Expression):
    op: str
    child: Expression = arg(ArgKind.EXPR)


EXPRESSIONS.seal()


def build(name: str, *args: Any) -> Expression:
    """Construct any expression variant by name, e.g. ``build("power", a, b)``."""

    return EXPRESSIONS.find(name).constructor(*args)


def decode_expression(payload: Any, config: CodecConfig | None = None) -> Expression:
    return EXPRESSIONS.decode(payload, "root", 1, config)


def encode_expression(node: Expression) -> list[Any]:
    return node.to_json()
