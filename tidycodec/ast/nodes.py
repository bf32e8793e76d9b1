from __future__ import annotations

import dataclasses
from collections.abc import Callable
from enum import Enum
from functools import partial
from typing import Any, ClassVar, Protocol, TypeVar

from ..config import CodecConfig
from .args import ArgKind, ArgSpec, check_arg, describe, encode_arg
from .errors import MalformedEncodingError
from .registry import VariantRegistry

T = TypeVar("T", bound=type)


class ExprKind(str, Enum):
    NULLARY = "@nullary"
    NEGATE = "@negate"
    ARITHMETIC = "@arithmetic"
    TERNARY = "@ternary"
    TYPECHECK = "@typecheck"
    CONVERT = "@convert"
    DATETIME = "@datetime"


class StageKind(str, Enum):
    TRANSFORM = "@transform"
    PLOT = "@plot"
    STATS = "@stats"


class Encodable(Protocol):
    def to_json(self) -> list[Any]: ...


EXPRESSIONS = VariantRegistry("expression", ExprKind)
STAGES = VariantRegistry("stage", StageKind)
EXPRESSIONS.bind(ArgKind.EXPR, EXPRESSIONS)
STAGES.bind(ArgKind.EXPR, EXPRESSIONS)


def arg(kind: ArgKind, **kwargs: Any) -> Any:
    """Declare a dataclass field as a positional payload slot."""

    return dataclasses.field(metadata={"arg_kind": kind}, **kwargs)


def arg_specs(cls: type) -> tuple[ArgSpec, ...]:
    specs = []
    for item in dataclasses.fields(cls):
        kind = item.metadata.get("arg_kind")
        if kind is None:
            continue
        if item.default is dataclasses.MISSING:
            specs.append(ArgSpec(name=item.name, kind=kind))
        else:
            specs.append(ArgSpec(name=item.name, kind=kind, optional=True, default=item.default))
    return tuple(specs)


class VariantNode:
    """Behaviour shared by every Expression and Stage variant.

    Subclasses are frozen dataclasses whose payload fields are declared with
    :func:`arg`.  ``KIND`` and ``ARGS`` are filled in by the registration
    decorators; ``NAME`` is set for single-name variants, while operator
    categories carry the variant name in their ``op`` field.
    """

    __slots__ = ()

    KIND: ClassVar[Enum]
    NAME: ClassVar[str | None] = None
    ARGS: ClassVar[tuple[ArgSpec, ...]] = ()
    REGISTRY: ClassVar[VariantRegistry]

    @property
    def kind(self) -> Enum:
        return self.KIND

    @property
    def name(self) -> str:
        if self.NAME is not None:
            return self.NAME
        return getattr(self, "op")

    @property
    def arguments(self) -> tuple[Any, ...]:
        return tuple(getattr(self, spec.name) for spec in self.ARGS)

    def __post_init__(self) -> None:
        if self.NAME is None and (
            not isinstance(self.name, str) or (self.KIND.value, self.name) not in self.REGISTRY
        ):
            raise MalformedEncodingError(
                "unknown_variant",
                f"{type(self).__name__}.op",
                f"{self.name!r} is not a registered {self.REGISTRY.family} under {self.KIND.value!r}",
                kind=self.KIND.value,
                name=self.name,
            )
        for idx, spec in enumerate(self.ARGS):
            value = getattr(self, spec.name)
            path = f"{self.name}.args[{idx}]"
            if spec.optional and value is None and spec.default is None:
                continue
            if spec.kind is ArgKind.EXPR:
                if not isinstance(value, Expression):
                    raise MalformedEncodingError(
                        "argument",
                        path,
                        f"{spec.name} must be {describe(spec.kind)}, got {value!r}",
                        kind=self.KIND.value,
                        name=self.name,
                    )
                continue
            try:
                object.__setattr__(self, spec.name, check_arg(spec, value, path))
            except MalformedEncodingError as exc:
                exc.kind, exc.name = self.KIND.value, self.name
                raise

    def to_json(self) -> list[Any]:
        encoded: list[Any] = [self.KIND.value, self.name]
        for spec in self.ARGS:
            value = getattr(self, spec.name)
            if spec.optional and value is None:
                break
            encoded.append(encode_arg(spec.kind, value))
        return encoded


class Expression(VariantNode):
    """Base class of scalar-valued expression nodes."""

    __slots__ = ()

    KIND: ClassVar[ExprKind]
    REGISTRY: ClassVar[VariantRegistry] = EXPRESSIONS

    @property
    def children(self) -> tuple[Expression, ...]:
        return tuple(getattr(self, spec.name) for spec in self.ARGS if spec.kind is ArgKind.EXPR)

    @classmethod
    def from_json(cls, payload: Any, config: CodecConfig | None = None) -> Expression:
        return EXPRESSIONS.decode(payload, "root", 1, config)


class Stage(VariantNode):
    """Base class of table-transformation, plot and statistics stages."""

    __slots__ = ()

    KIND: ClassVar[StageKind]
    REGISTRY: ClassVar[VariantRegistry] = STAGES

    def requires(self) -> frozenset[str]:
        """Names of pipelines this stage waits for."""

        return frozenset()

    def provides(self) -> frozenset[str]:
        """Labels this stage publishes for other pipelines."""

        return frozenset()

    @classmethod
    def from_json(cls, payload: Any, config: CodecConfig | None = None) -> Stage:
        return STAGES.decode(payload, "root", 1, config)


def register_variant(registry: VariantRegistry, kind: Enum, name: str) -> Callable[[T], T]:
    """Class decorator registering a single-name variant (e.g. ``join``)."""

    def decorator(cls: T) -> T:
        cls.KIND = kind
        cls.NAME = name
        cls.ARGS = arg_specs(cls)
        registry.register(kind, name, cls.ARGS, cls)
        return cls

    return decorator


def register_operators(registry: VariantRegistry, kind: Enum, *names: str) -> Callable[[T], T]:
    """Class decorator registering every operator name of an arity category.

    The class's first field is ``op``; each name is registered with a
    constructor that pre-binds it.
    """

    def decorator(cls: T) -> T:
        cls.KIND = kind
        cls.ARGS = arg_specs(cls)
        for name in names:
            registry.register(kind, name, cls.ARGS, partial(cls, name))
        return cls

    return decorator
