"""Exportación a Excel de las franjas diarias para entrega médica."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

logger = logging.getLogger(__name__)

_DIA_SEMANA: tuple[str, ...] = ("lun", "mar", "mie", "jue", "vie", "sab", "dom")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Día",
    "date": "Fecha",
    "strip": "Glucosa (02:00 → 01:45)",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the strip sheet."""

    sheet_name: str = "Franjas diarias"
    strip_font: str = "Courier New"


def rows_to_frame(rows: Sequence[tuple[date, str]]) -> pd.DataFrame:
    """Convert ``(day, strip)`` pairs to a DataFrame with a weekday column."""
    df = pd.DataFrame(rows, columns=["date", "strip"])
    if df.empty:
        return pd.DataFrame(columns=["weekday", "date", "strip"])
    df["weekday"] = [_DIA_SEMANA[d.weekday()] for d in df["date"]]
    return df[["weekday", "date", "strip"]]


def write_strip_xlsx(
    rows: Sequence[tuple[date, str]], out_path: Path, layout: ExcelLayout
) -> None:
    """Write one row per day with its glucose strip, ready to print.

    Args:
        rows: ``(day, strip)`` pairs, oldest first.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    export_df = rows_to_frame(rows).rename(columns=_HEADER_MAP)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        ws = writer.book[layout.sheet_name]
        _format_sheet(ws, layout)
    logger.info("Wrote %d day rows to %s", len(export_df), out_path)


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Aplica alineación y borde a las filas de datos."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    widths = [
        (_HEADER_MAP["weekday"], 6),
        (_HEADER_MAP["date"], 12),
        (_HEADER_MAP["strip"], 100),
    ]
    for header, width in widths:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _style_strip_column(ws: Any, col_index: dict[str, int], font_name: str) -> None:
    """Monospace y alineación izquierda para que cada franja ocupe una columna."""
    idx = col_index.get(_HEADER_MAP["strip"])
    if idx is None:
        return
    mono = Font(name=font_name)
    left = Alignment(horizontal="left", vertical="center")
    for row in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
        for cell in row:
            cell.font = mono
            cell.alignment = left


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    idx = col_index.get(_HEADER_MAP["date"])
    if idx is None:
        return
    for row in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
        for cell in row:
            cell.number_format = "dd/mm/yyyy"


def _format_sheet(ws: Any, layout: ExcelLayout) -> None:
    """Apply borders, widths, fonts and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
        layout: Excel layout parameters.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
    _style_strip_column(ws, col_index, layout.strip_font)
