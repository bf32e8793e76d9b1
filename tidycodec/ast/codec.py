from __future__ import annotations

import hashlib
import json
from enum import Enum
from typing import Any

from ..config import CodecConfig
from .expr import Column, Constant, Expression
from .nodes import EXPRESSIONS, STAGES, Encodable, ExprKind, StageKind
from .pipeline import Pipeline, decode_pipeline
from .program import Program, decode_program
from .registry import rejection
from .stage import Stage

Node = Expression | Stage | Pipeline | Program

_EXPR_KINDS = frozenset(kind.value for kind in ExprKind)
_STAGE_KINDS = frozenset(kind.value for kind in StageKind)


def decode_any(payload: Any, config: CodecConfig | None = None) -> Node:
    """Decode an encoded form of any family, chosen by its leading discriminator."""

    if not isinstance(payload, (list, tuple)):
        raise rejection("not_array", "root", f"encoded form must be an array, got {type(payload).__name__}")
    kind = payload[0] if payload else None
    if isinstance(kind, Enum):
        kind = kind.value
    if kind == Program.KIND:
        return decode_program(payload, config)
    if kind == Pipeline.KIND:
        return decode_pipeline(payload, config)
    if isinstance(kind, str) and kind in _STAGE_KINDS:
        return STAGES.decode(payload, "root", 1, config)
    if isinstance(kind, str) and kind in _EXPR_KINDS:
        return EXPRESSIONS.decode(payload, "root", 1, config)
    raise rejection(
        "unknown_kind", "root", f"unknown kind {kind!r}", kind=kind if isinstance(kind, str) else None
    )


def dumps(node: Encodable, **kwargs: Any) -> str:
    return json.dumps(node.to_json(), ensure_ascii=False, **kwargs)


def loads(text: str, config: CodecConfig | None = None) -> Node:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise rejection("not_array", "root", f"invalid JSON: {exc}") from exc
    return decode_any(payload, config)


def canonical_json(node: Encodable) -> str:
    return json.dumps(node.to_json(), ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def stable_hash(node: Encodable) -> str:
    canonical = canonical_json(node)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def render_expression(node: Expression) -> str:
    if isinstance(node, Column):
        return f"column({node.column})"
    if isinstance(node, Constant):
        literal = node.to_json()[2]
        return f"constant({json.dumps(literal, ensure_ascii=False)})"
    args = ", ".join(render_expression(child) for child in node.children)
    return f"{node.name}({args})"


def node_size(node: Expression) -> int:
    return 1 + sum(node_size(child) for child in node.children)


def node_depth(node: Expression) -> int:
    if node.children:
        return 1 + max(node_depth(child) for child in node.children)
    return 1


def _render_stage(stage: Stage) -> str:
    parts = []
    for value in stage.arguments:
        if isinstance(value, Expression):
            parts.append(render_expression(value))
        elif isinstance(value, tuple):
            parts.append("[" + ", ".join(value) + "]")
        elif value is not None:
            parts.append(json.dumps(value, ensure_ascii=False))
    return f"{stage.name}({', '.join(parts)})"


def ast_summary(node: Node, max_len: int = 180) -> str:
    """One-line (per pipeline) human-readable description of a node."""

    if isinstance(node, Program):
        lines = [f"program [pipelines={len(node)}]"]
        lines.extend(f"  {ast_summary(pipeline, max_len)}" for pipeline in node)
        return "\n".join(lines)
    if isinstance(node, Pipeline):
        text = " | ".join(_render_stage(stage) for stage in node)
        if len(text) > max_len:
            text = text[: max_len - 3] + "..."
        return f"{node.name}: {text} [stages={len(node)}]"
    if isinstance(node, Stage):
        return _render_stage(node)
    expr = render_expression(node)
    if len(expr) > max_len:
        expr = expr[: max_len - 3] + "..."
    return f"{expr} [nodes={node_size(node)}, depth={node_depth(node)}]"
