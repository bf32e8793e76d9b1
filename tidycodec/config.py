"""Configuration objects for decoding limits."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CodecConfig:
    """Safeguards applied while decoding untrusted encoded forms.

    Attributes:
        max_depth: Maximum nesting depth accepted by decode.  The outermost
            node counts as depth 1; every embedded expression, stage or
            pipeline adds one level.
    """

    max_depth: int = 64


DEFAULT_CONFIG = CodecConfig()
