"""Public package API for tidycodec."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tidycodec")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

from .ast import (
    Expression,
    MalformedEncodingError,
    Pipeline,
    Program,
    Stage,
    decode_any,
    dumps,
    loads,
)
from .config import CodecConfig

__all__ = [
    "__version__",
    "CodecConfig",
    "Expression",
    "MalformedEncodingError",
    "Pipeline",
    "Program",
    "Stage",
    "decode_any",
    "dumps",
    "loads",
]
