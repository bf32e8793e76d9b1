from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..config import DEFAULT_CONFIG, CodecConfig
from .args import ArgKind, ArgSpec, decode_arg
from .errors import MalformedEncodingError, RegistryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VariantSpec:
    """Immutable descriptor for one registered variant.

    Attributes:
        kind: Discriminator the variant is registered under.
        name: Variant name (e.g. ``"power"``, ``"join"``).
        args: Positional payload slots, in encoding order.
        constructor: Callable receiving the decoded payload positionally.
    """

    kind: str
    name: str
    args: tuple[ArgSpec, ...]
    constructor: Callable[..., Any]

    @property
    def min_arity(self) -> int:
        return sum(1 for spec in self.args if not spec.optional)

    @property
    def max_arity(self) -> int:
        return len(self.args)

    def arity_text(self) -> str:
        if self.min_arity == self.max_arity:
            return str(self.max_arity)
        return f"{self.min_arity} to {self.max_arity}"


def rejection(
    code: str,
    path: str,
    message: str,
    kind: str | None = None,
    name: str | None = None,
) -> MalformedEncodingError:
    logger.debug("rejecting encoded form: %s at %s: %s", code, path, message)
    return MalformedEncodingError(code, path, message, kind=kind, name=name)


class VariantRegistry:
    """Registry mapping ``(discriminator, variant name)`` to a :class:`VariantSpec`.

    One registry exists per family (expressions, stages).  Variant modules
    populate it at import time and then :meth:`seal` it; from then on it is
    read-only, so concurrent decodes need no locking.

    Typical usage::

        spec = EXPRESSIONS.get("@arithmetic", "power")   # KeyError if unknown
        node = EXPRESSIONS.decode(["@nullary", "constant", 1])

    Attributes:
        family: Human-readable family name used in error messages.
    """

    def __init__(self, family: str, kinds: Iterable[str]):
        self.family = family
        self._kinds = tuple(_kind_value(kind) for kind in kinds)
        self._specs: dict[tuple[str, str], VariantSpec] = {}
        self._children: dict[ArgKind, VariantRegistry] = {}
        self._sealed = False

    @property
    def kinds(self) -> tuple[str, ...]:
        return self._kinds

    @property
    def sealed(self) -> bool:
        return self._sealed

    def bind(self, arg_kind: ArgKind, child: VariantRegistry) -> None:
        """Decode payload slots of *arg_kind* through *child*'s dispatcher."""

        if self._sealed:
            raise RegistryError(f"{self.family} registry is sealed")
        self._children[arg_kind] = child

    def register(
        self,
        kind: str,
        name: str,
        args: Sequence[ArgSpec],
        constructor: Callable[..., Any],
    ) -> VariantSpec:
        kind = _kind_value(kind)
        if self._sealed:
            raise RegistryError(f"{self.family} registry is sealed; cannot add {name!r}")
        if kind not in self._kinds:
            raise RegistryError(f"{kind!r} is not a {self.family} discriminator")
        if any(candidate == name for _, candidate in self._specs):
            raise RegistryError(f"duplicate {self.family} variant {name!r}")
        seen_optional = False
        for spec in args:
            if spec.optional:
                seen_optional = True
            elif seen_optional:
                raise RegistryError(f"{name!r}: optional arguments must be trailing")
            if spec.kind is ArgKind.EXPR and spec.kind not in self._children:
                raise RegistryError(f"{name!r}: no registry bound for {spec.kind.value} arguments")

        spec = VariantSpec(kind=kind, name=name, args=tuple(args), constructor=constructor)
        self._specs[(kind, name)] = spec
        logger.debug("registered %s variant %s/%s", self.family, kind, name)
        return spec

    def seal(self) -> None:
        self._sealed = True

    def get(self, kind: str, name: str) -> VariantSpec:
        key = (_kind_value(kind), name)
        if key not in self._specs:
            raise KeyError(f"Unknown {self.family} variant: {name!r} under {key[0]!r}")
        return self._specs[key]

    def names(self, kind: str) -> list[str]:
        kind = _kind_value(kind)
        return sorted(name for k, name in self._specs if k == kind)

    def find(self, name: str) -> VariantSpec:
        """Look a variant up by name alone; `register` keeps names unique per family."""

        for (_, candidate), spec in self._specs.items():
            if candidate == name:
                return spec
        raise KeyError(f"Unknown {self.family} variant: {name!r}")

    def __contains__(self, key: object) -> bool:
        return key in self._specs

    def __iter__(self) -> Iterator[VariantSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def decode(
        self,
        payload: Any,
        path: str = "root",
        depth: int = 1,
        config: CodecConfig | None = None,
    ) -> Any:
        """Rebuild a node from its encoded form.

        Validates the discriminator, the variant name and the payload arity,
        decodes every slot (nested nodes through the bound child registry) and
        only then calls the variant constructor, so no partial node escapes.
        """

        cfg = config or DEFAULT_CONFIG
        if depth > cfg.max_depth:
            raise rejection("max_depth", path, f"depth {depth} exceeds {cfg.max_depth}")
        if not isinstance(payload, (list, tuple)):
            raise rejection(
                "not_array", path, f"{self.family} must be an array, got {type(payload).__name__}"
            )
        if not payload:
            raise rejection("unknown_kind", path, f"{self.family} is missing its discriminator")

        kind = payload[0]
        if not isinstance(kind, str) or kind not in self._kinds:
            raise rejection(
                "unknown_kind",
                path,
                f"unknown {self.family} kind {kind!r}; expected one of {list(self._kinds)}",
                kind=_kind_value(kind) if isinstance(kind, str) else None,
            )
        kind = _kind_value(kind)
        if len(payload) < 2 or not isinstance(payload[1], str):
            raise rejection(
                "unknown_variant", path, f"{self.family} of kind {kind!r} has no variant name", kind=kind
            )
        name = payload[1]
        spec = self._specs.get((kind, name))
        if spec is None:
            raise rejection(
                "unknown_variant",
                path,
                f"{name!r} is not a registered {self.family} under {kind!r}",
                kind=kind,
                name=name,
            )

        raw = payload[2:]
        if not spec.min_arity <= len(raw) <= spec.max_arity:
            raise rejection(
                "arity",
                path,
                f"{name} expects {spec.arity_text()} arguments, got {len(raw)}",
                kind=kind,
                name=name,
            )

        values: list[Any] = []
        for idx, (arg_spec, value) in enumerate(zip(spec.args, raw), start=2):
            arg_path = f"{path}[{idx}]"
            child = self._children.get(arg_spec.kind)
            if child is not None:
                values.append(child.decode(value, arg_path, depth + 1, cfg))
                continue
            try:
                values.append(decode_arg(arg_spec, value, arg_path))
            except MalformedEncodingError as exc:
                raise rejection(exc.code, exc.path, exc.message, kind=kind, name=name) from exc
        return spec.constructor(*values)


def _kind_value(kind: str) -> str:
    if isinstance(kind, Enum):
        return str(kind.value)
    return str(kind)
