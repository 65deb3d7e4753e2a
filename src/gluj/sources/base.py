"""Clases base para fuentes de datos."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from dateutil import tz


@dataclass(frozen=True)
class SourcePaths:
    """Container for source directories."""

    root: Path


class DataSource(ABC):
    """Abstract data source."""

    def __init__(self, paths: SourcePaths, local_tz: tzinfo | None = None) -> None:
        """Create a data source.

        Args:
            paths: Source paths configuration.
            local_tz: Zone used for timestamps stored without an offset.
        """
        self._paths = paths
        self._local_tz = local_tz if local_tz is not None else tz.tzlocal()

    @abstractmethod
    def validate(self) -> None:
        """Validate that required folders/files exist.

        Raises:
            SourceUnavailable: If required files are missing.
        """
