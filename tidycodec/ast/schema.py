from __future__ import annotations

from typing import Any

from .args import arg_json_schema
from .nodes import EXPRESSIONS, STAGES
from .pipeline import Pipeline
from .program import Program
from .registry import VariantRegistry, VariantSpec

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

_EXPRESSION_REF = "#/$defs/expression"


def _variant_schema(spec: VariantSpec) -> dict[str, Any]:
    prefix: list[dict[str, Any]] = [{"const": spec.kind}, {"const": spec.name}]
    prefix.extend(arg_json_schema(arg.kind, _EXPRESSION_REF) for arg in spec.args)
    return {
        "type": "array",
        "prefixItems": prefix,
        "items": False,
        "minItems": 2 + spec.min_arity,
        "maxItems": 2 + spec.max_arity,
    }


def _family_schema(registry: VariantRegistry) -> dict[str, Any]:
    variants = sorted(registry, key=lambda spec: (spec.kind, spec.name))
    return {"oneOf": [_variant_schema(spec) for spec in variants]}


def encoded_form_schema() -> dict[str, Any]:
    """JSON Schema for every encoded form, generated from the variant registries.

    The schema checks shape only; like decode, it says nothing about whether
    a column or pipeline name refers to anything real.
    """

    return {
        "$schema": SCHEMA_DIALECT,
        "title": "TidyBlocksEncodedForm",
        "oneOf": [
            {"$ref": "#/$defs/program"},
            {"$ref": "#/$defs/pipeline"},
            {"$ref": "#/$defs/stage"},
            {"$ref": _EXPRESSION_REF},
        ],
        "$defs": {
            "expression": _family_schema(EXPRESSIONS),
            "stage": _family_schema(STAGES),
            "pipeline": {
                "type": "array",
                "prefixItems": [{"const": Pipeline.KIND}, {"type": "string"}],
                "items": {"$ref": "#/$defs/stage"},
                "minItems": 2,
            },
            "program": {
                "type": "array",
                "prefixItems": [{"const": Program.KIND}],
                "items": {"$ref": "#/$defs/pipeline"},
                "minItems": 1,
            },
        },
    }
