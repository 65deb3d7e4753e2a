"""Resolución de configuración: directorio de datos y zona horaria."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from dateutil import tz

from gluj.errors import GlujError

APP_NAME = "gluj"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""

    data_dir: Path
    local_tz: tzinfo


def default_data_dir(environ: Mapping[str, str]) -> Path:
    """Return ``$XDG_DATA_HOME/gluj`` (default ``~/.local/share/gluj``)."""
    xdg_home = environ.get("XDG_DATA_HOME", "").strip()
    base = Path(xdg_home) if xdg_home else Path.home() / ".local" / "share"
    return base / APP_NAME


def resolve_tz(name: str | None) -> tzinfo:
    """Return the named zone, or the system local zone when ``name`` is empty.

    Raises:
        GlujError: If the zone name is unknown.
    """
    if not name:
        return tz.tzlocal()
    zone = tz.gettz(name)
    if zone is None:
        raise GlujError(f"Unknown timezone: {name}")
    return zone


def load_settings(
    data_dir: str | None = None,
    tz_name: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve settings from CLI values, then environment, then defaults.

    Args:
        data_dir: ``--data-dir`` value, if given.
        tz_name: ``--tz`` value, if given.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Resolved settings.
    """
    env = os.environ if environ is None else environ
    raw_dir = data_dir or env.get("GLUJ_DATA_DIR", "").strip()
    resolved_dir = (
        Path(raw_dir).expanduser() if raw_dir else default_data_dir(env)
    )
    zone = resolve_tz(tz_name or env.get("GLUJ_TZ", "").strip() or None)
    return Settings(data_dir=resolved_dir, local_tz=zone)
