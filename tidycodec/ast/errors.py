from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class MalformedEncodingError(ValueError):
    """Raised when an encoded form (or a constructor argument) has the wrong shape.

    Attributes:
        code: Short machine-readable error code (e.g. ``"unknown_kind"``,
            ``"unknown_variant"``, ``"arity"``).
        path: Position of the offending value inside the encoded tree
            (e.g. ``"root[2][3]"``), or ``"<variant>.args[i]"`` when raised
            while building a node from explicit arguments.
        message: Human-readable description of the violation.
        kind: Discriminator of the node being decoded, when known.
        name: Variant name of the node being decoded, when known.
    """

    code: str
    path: str
    message: str
    kind: str | None = None
    name: str | None = None

    def __str__(self) -> str:
        return f"{self.code} at {self.path}: {self.message}"


class RegistryError(RuntimeError):
    """Raised at import time when a variant registry is populated incorrectly."""
