"""Errores de ingesta y de línea de comandos."""

from __future__ import annotations

from pathlib import Path


class GlujError(RuntimeError):
    """Base error reported by the CLI with an exit code."""

    exit_code = 1


class SourceUnavailable(GlujError):
    """The record store or an import file cannot be found or read."""

    exit_code = 3


class MalformedRecord(GlujError):
    """A stored or imported record cannot be parsed."""

    exit_code = 4

    def __init__(self, path: Path, record: int | None, reason: str) -> None:
        """Create the error.

        Args:
            path: File holding the bad record.
            record: 1-based record number, None when the whole file is bad.
            reason: Short description of the problem.
        """
        where = f"{path}" if record is None else f"{path}, record {record}"
        super().__init__(f"{where}: {reason}")
        self.path = path
        self.record = record
        self.reason = reason
