"""Positional argument kinds shared by Expression and Stage variants.

Every variant declares its payload as an ordered tuple of :class:`ArgSpec`.
Scalar kinds are checked with strict pydantic adapters so that, for example,
``True`` is never accepted where a number is expected and ``"3"`` is never
accepted where a count is expected.  Nested nodes (:attr:`ArgKind.EXPR`) are
not handled here; the owning registry decodes them through the child
family's dispatcher.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Union

import numpy as np
import pandas as pd
from pydantic import Field, StrictBool, StrictInt, StrictStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import MalformedEncodingError

DATETIME_TAG = "@date"


class ArgKind(str, Enum):
    TEXT = "text"
    COLUMNS = "columns"
    NUMBER = "number"
    COUNT = "count"
    FLAG = "flag"
    LITERAL = "literal"
    EXPR = "expr"


@dataclass(frozen=True, slots=True)
class ArgSpec:
    """One positional slot in a variant's payload.

    Attributes:
        name: Dataclass field that stores the argument.
        kind: Shape the argument must have.
        optional: ``True`` for trailing arguments that may be absent from an
            encoded form.  Optional slots are always last.
        default: Value used when an optional argument is absent.  ``None``
            means the argument is left out of the encoding entirely.
    """

    name: str
    kind: ArgKind
    optional: bool = False
    default: Any = None


_FiniteFloat = Annotated[float, Field(strict=True, allow_inf_nan=False)]

_ADAPTERS: dict[ArgKind, TypeAdapter[Any]] = {
    ArgKind.TEXT: TypeAdapter(StrictStr),
    ArgKind.COLUMNS: TypeAdapter(list[StrictStr]),
    ArgKind.NUMBER: TypeAdapter(Union[StrictInt, _FiniteFloat]),
    ArgKind.COUNT: TypeAdapter(Annotated[int, Field(strict=True, gt=0)]),
    ArgKind.FLAG: TypeAdapter(StrictBool),
    ArgKind.LITERAL: TypeAdapter(Union[StrictBool, StrictInt, _FiniteFloat, StrictStr]),
}

_DESCRIPTIONS: dict[ArgKind, str] = {
    ArgKind.TEXT: "a string",
    ArgKind.COLUMNS: "a list of strings",
    ArgKind.NUMBER: "a finite number",
    ArgKind.COUNT: "a positive integer",
    ArgKind.FLAG: "a boolean",
    ArgKind.LITERAL: "a number, string, boolean or datetime",
    ArgKind.EXPR: "an expression",
}


def describe(kind: ArgKind) -> str:
    return _DESCRIPTIONS[kind]


def native_scalar(value: Any) -> Any:
    """Unwrap numpy scalars into the matching Python scalar."""

    if isinstance(value, np.datetime64):
        return value
    if isinstance(value, np.generic):
        return value.item()
    return value


def _as_timestamp(value: Any) -> pd.Timestamp | None:
    if value is pd.NaT:
        return None
    if isinstance(value, (pd.Timestamp, dt.datetime, np.datetime64)):
        stamp = pd.Timestamp(value)
        if pd.isna(stamp):
            return None
        return stamp
    return None


def _reject(spec: ArgSpec, value: Any, path: str, detail: str = "") -> MalformedEncodingError:
    message = f"{spec.name} must be {describe(spec.kind)}, got {value!r}"
    if detail:
        message = f"{message} ({detail})"
    return MalformedEncodingError("argument", path, message)


def check_arg(spec: ArgSpec, value: Any, path: str) -> Any:
    """Validate a decoded or user-supplied scalar argument and normalize it.

    Column lists come back as tuples and datetimes as :class:`pandas.Timestamp`.
    """

    if spec.kind is ArgKind.EXPR:
        raise ValueError("expression arguments are checked by the node classes")

    value = native_scalar(value)
    if spec.kind is ArgKind.LITERAL:
        if isinstance(value, (pd.Timestamp, dt.datetime, np.datetime64)) or value is pd.NaT:
            stamp = _as_timestamp(value)
            if stamp is None:
                raise _reject(spec, value, path, "missing datetime")
            return stamp

    if spec.kind is ArgKind.COLUMNS:
        if not isinstance(value, (list, tuple)):
            raise _reject(spec, value, path)
        value = list(value)
    elif spec.kind in (ArgKind.NUMBER, ArgKind.COUNT) and isinstance(value, bool):
        raise _reject(spec, value, path)

    try:
        checked = _ADAPTERS[spec.kind].validate_python(value)
    except PydanticValidationError as exc:
        raise _reject(spec, value, path, exc.errors()[0]["msg"]) from exc

    if spec.kind is ArgKind.COLUMNS:
        return tuple(checked)
    return checked


def decode_literal(spec: ArgSpec, value: Any, path: str) -> Any:
    """Decode a literal payload, turning tagged datetime objects into timestamps.

    The tagged text must be exactly what :meth:`pandas.Timestamp.isoformat`
    produces, so relative words (``"now"``) and loose spellings
    (``"1983/12/02"``) are rejected and every accepted literal re-encodes
    unchanged.
    """

    if isinstance(value, dict):
        text = value.get(DATETIME_TAG)
        if set(value) != {DATETIME_TAG} or not isinstance(text, str):
            raise _reject(spec, value, path, f"datetimes are encoded as {{{DATETIME_TAG!r}: ISO-8601}}")
        try:
            stamp = pd.Timestamp(text)
        except (TypeError, ValueError) as exc:
            raise _reject(spec, value, path, str(exc)) from exc
        if pd.isna(stamp):
            raise _reject(spec, value, path, "missing datetime")
        # Only the exact text Timestamp.isoformat() writes is accepted.
        if stamp.isoformat() != text:
            detail = f"expected canonical ISO-8601 text such as {stamp.isoformat()!r}"
            raise _reject(spec, value, path, detail)
        return stamp
    return check_arg(spec, value, path)


def decode_arg(spec: ArgSpec, value: Any, path: str) -> Any:
    if spec.kind is ArgKind.LITERAL:
        return decode_literal(spec, value, path)
    return check_arg(spec, value, path)


def encode_arg(kind: ArgKind, value: Any) -> Any:
    if kind is ArgKind.EXPR:
        return value.to_json()
    if kind is ArgKind.COLUMNS:
        return list(value)
    if isinstance(value, pd.Timestamp):
        return {DATETIME_TAG: value.isoformat()}
    return value


def arg_json_schema(kind: ArgKind, expression_ref: str) -> dict[str, Any]:
    """JSON Schema fragment for one argument slot."""

    if kind is ArgKind.EXPR:
        return {"$ref": expression_ref}
    schema = _ADAPTERS[kind].json_schema()
    if kind is ArgKind.LITERAL:
        tagged = {
            "type": "object",
            "additionalProperties": False,
            "required": [DATETIME_TAG],
            "properties": {DATETIME_TAG: {"type": "string", "format": "date-time"}},
        }
        return {"anyOf": [schema, tagged]}
    return schema
