"""Modelo tipado para lecturas de glucosa."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

MG_DL_PER_MMOL_L = 18.0


@dataclass(frozen=True)
class Sample:
    """One glucose reading (timestamped, mmol/L)."""

    timestamp: datetime
    value: float


def mg_dl_to_mmol_l(mg_dl: float) -> float:
    """Convert a mg/dL reading to mmol/L."""
    return mg_dl / MG_DL_PER_MMOL_L
