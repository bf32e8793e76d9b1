"""Command-line entrypoint for `python -m tidycodec`."""

from .runner import main


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
