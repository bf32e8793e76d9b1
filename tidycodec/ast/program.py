from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, ClassVar

from ..config import DEFAULT_CONFIG, CodecConfig
from .errors import MalformedEncodingError
from .pipeline import Pipeline, decode_pipeline
from .registry import rejection


@dataclass(frozen=True, slots=True)
class Program:
    """An ordered collection of pipelines.

    Pipelines may be run in this order or concurrently by the host's
    executor, but the persisted order always round-trips exactly.  Encoded
    form::

        ["@program", <pipeline>, <pipeline>, ...]
    """

    KIND: ClassVar[str] = "@program"

    pipelines: tuple[Pipeline, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.pipelines, (list, tuple)):
            raise MalformedEncodingError(
                "argument",
                "program.pipelines",
                f"pipelines must be a sequence, got {self.pipelines!r}",
            )
        for idx, pipeline in enumerate(self.pipelines):
            if not isinstance(pipeline, Pipeline):
                raise MalformedEncodingError(
                    "argument", f"program.pipelines[{idx}]", f"expected a pipeline, got {pipeline!r}"
                )
        object.__setattr__(self, "pipelines", tuple(self.pipelines))

    @classmethod
    def of(cls, *pipelines: Pipeline) -> Program:
        return cls(pipelines)

    def __len__(self) -> int:
        return len(self.pipelines)

    def __iter__(self) -> Iterator[Pipeline]:
        return iter(self.pipelines)

    def get(self, name: str) -> Pipeline:
        """Return the first pipeline called *name*."""

        for pipeline in self.pipelines:
            if pipeline.name == name:
                return pipeline
        raise KeyError(f"Unknown pipeline: {name!r}")

    def dependencies(self) -> dict[str, frozenset[str]]:
        """Map each pipeline name to the pipelines whose labels it waits for.

        Labels nobody provides are ignored; checking them is the executor's job.
        """

        out: dict[str, frozenset[str]] = {}
        for pipeline in self.pipelines:
            needed = pipeline.requires()
            upstream = frozenset(
                other.name
                for other in self.pipelines
                if other is not pipeline and other.provides() & needed
            )
            out[pipeline.name] = out.get(pipeline.name, frozenset()) | upstream
        return out

    def to_json(self) -> list[Any]:
        return [self.KIND, *(pipeline.to_json() for pipeline in self.pipelines)]

    @classmethod
    def from_json(cls, payload: Any, config: CodecConfig | None = None) -> Program:
        return decode_program(payload, config)


def decode_program(
    payload: Any,
    config: CodecConfig | None = None,
    path: str = "root",
    depth: int = 1,
) -> Program:
    cfg = config or DEFAULT_CONFIG
    if depth > cfg.max_depth:
        raise rejection("max_depth", path, f"depth {depth} exceeds {cfg.max_depth}")
    if not isinstance(payload, (list, tuple)):
        raise rejection("not_array", path, f"program must be an array, got {type(payload).__name__}")
    if not payload or payload[0] != Program.KIND:
        kind = payload[0] if payload else None
        raise rejection(
            "unknown_kind",
            path,
            f"expected program kind {Program.KIND!r}, got {kind!r}",
            kind=kind if isinstance(kind, str) else None,
        )
    pipelines = [
        decode_pipeline(item, cfg, f"{path}[{idx}]", depth + 1)
        for idx, item in enumerate(payload[1:], start=1)
    ]
    return Program(tuple(pipelines))
