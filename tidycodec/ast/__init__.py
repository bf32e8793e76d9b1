from .args import DATETIME_TAG, ArgKind, ArgSpec
from .codec import (
    ast_summary,
    canonical_json,
    decode_any,
    dumps,
    loads,
    node_depth,
    node_size,
    render_expression,
    stable_hash,
)
from .errors import MalformedEncodingError, RegistryError
from .expr import (
    Binary,
    Column,
    Constant,
    Convert,
    DatetimeField,
    Ternary,
    TypeCheck,
    Unary,
    decode_expression,
    encode_expression,
)
from .nodes import EXPRESSIONS, STAGES, Encodable, Expression, ExprKind, Stage, StageKind
from .pipeline import Pipeline, decode_pipeline
from .program import Program, decode_program
from .registry import VariantRegistry, VariantSpec
from .schema import encoded_form_schema
from .stage import SUMMARY_FUNCTIONS, decode_stage, encode_stage

__all__ = [
    "DATETIME_TAG",
    "EXPRESSIONS",
    "STAGES",
    "SUMMARY_FUNCTIONS",
    "ArgKind",
    "ArgSpec",
    "Binary",
    "Column",
    "Constant",
    "Convert",
    "DatetimeField",
    "Encodable",
    "ExprKind",
    "Expression",
    "MalformedEncodingError",
    "Pipeline",
    "Program",
    "RegistryError",
    "Stage",
    "StageKind",
    "Ternary",
    "TypeCheck",
    "Unary",
    "VariantRegistry",
    "VariantSpec",
    "ast_summary",
    "canonical_json",
    "decode_any",
    "decode_expression",
    "decode_pipeline",
    "decode_program",
    "decode_stage",
    "dumps",
    "encode_expression",
    "encode_stage",
    "encoded_form_schema",
    "loads",
    "node_depth",
    "node_size",
    "render_expression",
    "stable_hash",
]
