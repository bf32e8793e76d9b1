"""CLI entry point: decode an encoded form and print it back out."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .ast import MalformedEncodingError, ast_summary, canonical_json, encoded_form_schema, loads
from .config import CodecConfig

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check and normalize tidyblocks encoded forms.")
    parser.add_argument("source", nargs="?", default="-", help="JSON file to read ('-' for stdin)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--summary", action="store_true", help="Print a readable summary (default)")
    mode.add_argument("--canonical", action="store_true", help="Print canonical JSON")
    mode.add_argument("--schema", action="store_true", help="Print the JSON Schema and exit")
    parser.add_argument("--max-depth", type=int, default=64, help="Maximum nesting depth")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """Decode the input and print a summary or canonical JSON; 1 on malformed input."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.schema:
        print(json.dumps(encoded_form_schema(), indent=2))
        return 0

    try:
        text = _read_source(args.source)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: cannot read {args.source}: {exc}", file=sys.stderr)
        return 1

    try:
        node = loads(text, CodecConfig(max_depth=args.max_depth))
    except MalformedEncodingError as exc:
        logger.debug("decode failed for %s", args.source)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.canonical:
        print(canonical_json(node))
    else:
        print(ast_summary(node))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
