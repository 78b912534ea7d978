"""Punto de entrada: python -m settings_review."""

from __future__ import annotations

from settings_review.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
