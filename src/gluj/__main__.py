"""Punto de entrada: ``python -m gluj``."""

from __future__ import annotations

from gluj.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
