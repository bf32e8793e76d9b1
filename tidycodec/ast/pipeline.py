from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, ClassVar

from ..config import DEFAULT_CONFIG, CodecConfig
from .args import ArgKind, ArgSpec, check_arg
from .errors import MalformedEncodingError
from .registry import rejection
from .stage import STAGES, Stage

_NAME = ArgSpec("name", ArgKind.TEXT)


@dataclass(frozen=True, slots=True)
class Pipeline:
    """A named, ordered sequence of stages.

    Stage order is execution order, so it is preserved exactly through
    encoding and decoding.  Encoded form::

        ["@pipeline", name, <stage>, <stage>, ...]
    """

    KIND: ClassVar[str] = "@pipeline"

    name: str
    stages: tuple[Stage, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", check_arg(_NAME, self.name, "pipeline.name"))
        if not isinstance(self.stages, (list, tuple)):
            raise MalformedEncodingError(
                "argument", "pipeline.stages", f"stages must be a sequence, got {self.stages!r}"
            )
        for idx, stage in enumerate(self.stages):
            if not isinstance(stage, Stage):
                raise MalformedEncodingError(
                    "argument", f"pipeline.stages[{idx}]", f"expected a stage, got {stage!r}"
                )
        object.__setattr__(self, "stages", tuple(self.stages))

    @classmethod
    def of(cls, name: str, *stages: Stage) -> Pipeline:
        return cls(name, stages)

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def requires(self) -> frozenset[str]:
        """Labels this pipeline must receive from other pipelines before it can run."""

        return frozenset().union(*(stage.requires() for stage in self.stages))

    def provides(self) -> frozenset[str]:
        return frozenset().union(*(stage.provides() for stage in self.stages))

    def to_json(self) -> list[Any]:
        return [self.KIND, self.name, *(stage.to_json() for stage in self.stages)]

    @classmethod
    def from_json(cls, payload: Any, config: CodecConfig | None = None) -> Pipeline:
        return decode_pipeline(payload, config)


def decode_pipeline(
    payload: Any,
    config: CodecConfig | None = None,
    path: str = "root",
    depth: int = 1,
) -> Pipeline:
    cfg = config or DEFAULT_CONFIG
    if depth > cfg.max_depth:
        raise rejection("max_depth", path, f"depth {depth} exceeds {cfg.max_depth}")
    if not isinstance(payload, (list, tuple)):
        raise rejection("not_array", path, f"pipeline must be an array, got {type(payload).__name__}")
    if not payload or payload[0] != Pipeline.KIND:
        kind = payload[0] if payload else None
        raise rejection(
            "unknown_kind",
            path,
            f"expected pipeline kind {Pipeline.KIND!r}, got {kind!r}",
            kind=kind if isinstance(kind, str) else None,
        )
    if len(payload) < 2:
        raise rejection("arity", path, "pipeline is missing its name", kind=Pipeline.KIND)
    try:
        name = check_arg(_NAME, payload[1], f"{path}[1]")
    except MalformedEncodingError as exc:
        raise rejection(exc.code, exc.path, exc.message, kind=Pipeline.KIND) from exc

    stages = [
        STAGES.decode(item, f"{path}[{idx}]", depth + 1, cfg)
        for idx, item in enumerate(payload[2:], start=2)
    ]
    return Pipeline(name, tuple(stages))

