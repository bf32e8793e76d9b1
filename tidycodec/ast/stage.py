"""Stage family: table transforms, plot specifications and statistical tests.

Each stage variant is its own frozen dataclass.  Payload fields are declared
with :func:`~tidycodec.ast.nodes.arg` in encoding order; a field with a
default is an optional trailing argument.  Stages never execute anything;
they only describe what the host's executor, plot renderer or statistics
engine should do.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..config import CodecConfig
from .args import ArgKind
from .expr import Expression
from .nodes import STAGES, Stage, StageKind, arg, register_variant

TRANSFORM = StageKind.TRANSFORM
PLOT = StageKind.PLOT
STATS = StageKind.STATS

SUMMARY_FUNCTIONS = (
    "all",
    "any",
    "count",
    "maximum",
    "mean",
    "median",
    "minimum",
    "std",
    "sum",
    "variance",
)


def transform(name: str):
    return register_variant(STAGES, TRANSFORM, name)


def plot(name: str):
    return register_variant(STAGES, PLOT, name)


def stats(name: str):
    return register_variant(STAGES, STATS, name)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


@transform("drop")
@dataclass(frozen=True, slots=True)
class Drop(Stage):
    columns: tuple[str, ...] = arg(ArgKind.COLUMNS)


@transform("filter")
@dataclass(frozen=True, slots=True)
class Filter(Stage):
    expr: Expression = arg(ArgKind.EXPR)


@transform("groupBy")
@dataclass(frozen=True, slots=True)
class GroupBy(Stage):
    columns: tuple[str, ...] = arg(ArgKind.COLUMNS)


@transform("join")
@dataclass(frozen=True, slots=True)
class Join(Stage):
    """Join the tables published under two labels on one key column each."""

    left_name: str = arg(ArgKind.TEXT)
    left_column: str = arg(ArgKind.TEXT)
    right_name: str = arg(ArgKind.TEXT)
    right_column: str = arg(ArgKind.TEXT)

    def requires(self) -> frozenset[str]:
        return frozenset({self.left_name, self.right_name})


@transform("mutate")
@dataclass(frozen=True, slots=True)
class Mutate(Stage):
    new_name: str = arg(ArgKind.TEXT)
    expr: Expression = arg(ArgKind.EXPR)


@transform("notify")
@dataclass(frozen=True, slots=True)
class Notify(Stage):
    """Publish the current table under *label* so joins can consume it."""

    label: str = arg(ArgKind.TEXT)

    def provides(self) -> frozenset[str]:
        return frozenset({self.label})


@transform("read")
@dataclass(frozen=True, slots=True)
class Read(Stage):
    path: str = arg(ArgKind.TEXT)


@transform("select")
@dataclass(frozen=True, slots=True)
class Select(Stage):
    columns: tuple[str, ...] = arg(ArgKind.COLUMNS)


@transform("sort")
@dataclass(frozen=True, slots=True)
class Sort(Stage):
    """Sort rows by *columns*; the encoded flag is always written back."""

    columns: tuple[str, ...] = arg(ArgKind.COLUMNS)
    ascending: bool = arg(ArgKind.FLAG, default=True)


@transform("summarize")
@dataclass(frozen=True, slots=True)
class Summarize(Stage):
    """Aggregate *column* with *function* (normally one of :data:`SUMMARY_FUNCTIONS`)."""

    function: str = arg(ArgKind.TEXT)
    column: str = arg(ArgKind.TEXT)


@transform("ungroup")
@dataclass(frozen=True, slots=True)
class Ungroup(Stage):
    pass


@transform("unique")
@dataclass(frozen=True, slots=True)
class Unique(Stage):
    columns: tuple[str, ...] = arg(ArgKind.COLUMNS)


# ---------------------------------------------------------------------------
# Plots
# ---------------------------------------------------------------------------


@plot("bar")
@dataclass(frozen=True, slots=True)
class Bar(Stage):
    x_axis: str = arg(ArgKind.TEXT)
    y_axis: str = arg(ArgKind.TEXT)


@plot("box")
@dataclass(frozen=True, slots=True)
class Box(Stage):
    x_axis: str = arg(ArgKind.TEXT)
    y_axis: str = arg(ArgKind.TEXT)


@plot("dot")
@dataclass(frozen=True, slots=True)
class Dot(Stage):
    x_axis: str = arg(ArgKind.TEXT)


@plot("histogram")
@dataclass(frozen=True, slots=True)
class Histogram(Stage):
    column: str = arg(ArgKind.TEXT)
    bins: int = arg(ArgKind.COUNT)


@plot("scatter")
@dataclass(frozen=True, slots=True)
class Scatter(Stage):
    """Scatter plot; without a color channel the encoding stops after the y axis."""

    x_axis: str = arg(ArgKind.TEXT)
    y_axis: str = arg(ArgKind.TEXT)
    color: str | None = arg(ArgKind.TEXT, default=None)


# ---------------------------------------------------------------------------
# Statistical tests
# ---------------------------------------------------------------------------


@stats("ANOVA")
@dataclass(frozen=True, slots=True)
class ANOVA(Stage):
    significance: float = arg(ArgKind.NUMBER)
    group_column: str = arg(ArgKind.TEXT)
    value_column: str = arg(ArgKind.TEXT)


@stats("KolmogorovSmirnov")
@dataclass(frozen=True, slots=True)
class KolmogorovSmirnov(Stage):
    mean: float = arg(ArgKind.NUMBER)
    std_dev: float = arg(ArgKind.NUMBER)
    significance: float = arg(ArgKind.NUMBER)
    column: str = arg(ArgKind.TEXT)


@stats("KruskalWallis")
@dataclass(frozen=True, slots=True)
class KruskalWallis(Stage):
    significance: float = arg(ArgKind.NUMBER)
    group_column: str = arg(ArgKind.TEXT)
    value_column: str = arg(ArgKind.TEXT)


@stats("TTestOneSample")
@dataclass(frozen=True, slots=True)
class TTestOneSample(Stage):
    mean: float = arg(ArgKind.NUMBER)
    significance: float = arg(ArgKind.NUMBER)
    column: str = arg(ArgKind.TEXT)


@stats("TTestPaired")
@dataclass(frozen=True, slots=True)
class TTestPaired(Stage):
    significance: float = arg(ArgKind.NUMBER)
    left_column: str = arg(ArgKind.TEXT)
    right_column: str = arg(ArgKind.TEXT)


@stats("ZTestOneSample")
@dataclass(frozen=True, slots=True)
class ZTestOneSample(Stage):
    mean: float = arg(ArgKind.NUMBER)
    std_dev: float = arg(ArgKind.NUMBER)
    significance: float = arg(ArgKind.NUMBER)
    column: str = arg(ArgKind.TEXT)


STAGES.seal()


def build(name: str, *args: Any) -> Stage:
    """Construct any stage variant by name, e.g. ``build("join", "a", "x", "b", "y")``."""

    return STAGES.find(name).constructor(*args)


def decode_stage(payload: Any, config: CodecConfig | None = None) -> Stage:
    return STAGES.decode(payload, "root", 1, config)


def encode_stage(stage: Stage) -> list[Any]:
    return stage.to_json()
