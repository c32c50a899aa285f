"""Module entry point."""
from __future__ import annotations

from .presentation.cli.main import main


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
