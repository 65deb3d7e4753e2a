"""CLI para registrar glucosa y dibujar franjas de 15 minutos en la terminal."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from datetime import date, datetime, timedelta, tzinfo
from pathlib import Path

from dateutil import tz
from dateutil.parser import isoparse

from gluj.config import Settings, load_settings
from gluj.errors import GlujError, SourceUnavailable
from gluj.excel_writer import ExcelLayout, write_strip_xlsx
from gluj.graph import GraphView
from gluj.model import Sample, mg_dl_to_mmol_l
from gluj.slots import SlotIndex
from gluj.sources.accuchek import AccuChekPaths, AccuChekSource
from gluj.sources.csv_store import CsvStore, CsvStorePaths

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 14


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1: {text}")
    return value


def _add_range_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--days", type=_positive_int, default=DEFAULT_DAYS)
    group.add_argument(
        "--all",
        action="store_true",
        help="Desde el primer hasta el último día con lecturas.",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        prog="gluj",
        description="Registro de glucosa y gráfico de franjas de 15 minutos.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log de depuración."
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directorio de datos (default: $GLUJ_DATA_DIR o $XDG_DATA_HOME/gluj).",
    )
    parser.add_argument(
        "--tz",
        default=None,
        help="Zona horaria local (default: $GLUJ_TZ o la del sistema).",
    )
    parser.set_defaults(at=None)
    sub = parser.add_subparsers(dest="command")

    now = sub.add_parser("now", help="Últimas 8 horas (32 franjas).")
    now.add_argument("--at", default=None, help="Instante ISO-8601 de referencia.")

    day = sub.add_parser("day", help="Un día calendario (95 franjas desde 02:00).")
    day.add_argument("date", nargs="?", default=None, help="YYYY-MM-DD (default: hoy).")

    days = sub.add_parser("days", help="Una fila por día, terminando hoy.")
    _add_range_arguments(days)

    add = sub.add_parser("add", help="Registrar una lectura.")
    add.add_argument("value", type=float, help="Lectura (mmol/L).")
    add.add_argument("--at", default=None, help="Instante ISO-8601 (default: ahora).")
    add.add_argument(
        "--mg-dl", action="store_true", help="La lectura viene en mg/dL."
    )

    imp = sub.add_parser("import", help="Importar exportación JSON de Accu-Chek.")
    imp.add_argument("path", help="Archivo JSON o carpeta con accuchek_*.json.")

    export = sub.add_parser("export", help="Exportar filas diarias a Excel.")
    export.add_argument("out", help="Ruta del .xlsx de salida.")
    _add_range_arguments(export)

    ns = parser.parse_args(argv)
    if ns.command is None:
        ns.command = "now"
    return ns


def _now() -> datetime:
    return datetime.now(tz=tz.UTC)


def _parse_instant(text: str | None, local_tz: tzinfo) -> datetime:
    """Parse an ISO-8601 instant (naive values are local time); None means now."""
    if text is None:
        return _now()
    try:
        dt = isoparse(text)
    except ValueError as exc:
        raise GlujError(f"Invalid instant: {text}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=local_tz)
    return dt.astimezone(tz.UTC)


def _parse_day(text: str | None) -> date:
    if text is None:
        return _now().date()
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise GlujError(f"Invalid date: {text}") from exc


def _store(settings: Settings) -> CsvStore:
    return CsvStore(CsvStorePaths(root=settings.data_dir), settings.local_tz)


def _load_view(settings: Settings) -> GraphView:
    samples = _store(settings).load_samples()
    return GraphView(SlotIndex(samples))


def _day_rows(ns: argparse.Namespace, view: GraphView) -> list[tuple[date, str]]:
    """Rows for the last ``--days`` days, or every stored day with ``--all``."""
    if ns.all:
        first, last = view.index.first_day(), view.index.last_day()
        if first is None or last is None:
            return []
    else:
        last = _now().date()
        first = last - timedelta(days=ns.days - 1)
    return view.render_days(first, last)


def cmd_now(ns: argparse.Namespace, settings: Settings) -> int:
    view = _load_view(settings)
    print(view.render(_parse_instant(ns.at, settings.local_tz)))
    return 0


def cmd_day(ns: argparse.Namespace, settings: Settings) -> int:
    view = _load_view(settings)
    print(view.render_day(_parse_day(ns.date)))
    return 0


def cmd_days(ns: argparse.Namespace, settings: Settings) -> int:
    view = _load_view(settings)
    for day, row in _day_rows(ns, view):
        print(f"{day.isoformat()} {row}")
    return 0


def cmd_add(ns: argparse.Namespace, settings: Settings) -> int:
    value = mg_dl_to_mmol_l(ns.value) if ns.mg_dl else ns.value
    sample = Sample(timestamp=_parse_instant(ns.at, settings.local_tz), value=value)
    path = _store(settings).append(sample)
    print(f"OK: {value:.1f} -> {path}")
    return 0


def cmd_import(ns: argparse.Namespace, settings: Settings) -> int:
    target = Path(ns.path).expanduser()
    if target.is_dir():
        source = AccuChekSource(AccuChekPaths(root=target), settings.local_tz)
        source.validate()
        target = source.newest_json()
    else:
        source = AccuChekSource(AccuChekPaths(root=target.parent), settings.local_tz)
    imported = source.load_samples(target)

    store = _store(settings)
    try:
        latest = SlotIndex(store.load_samples(), latest_policy="max").latest()
    except SourceUnavailable:
        latest = None
    fresh = [s for s in imported if latest is None or s.timestamp > latest]
    for sample in fresh:
        store.append(sample)
    logger.info("Imported %d of %d readings from %s", len(fresh), len(imported), target)
    print(f"OK: {len(fresh)} new readings from {target}")
    return 0


def cmd_export(ns: argparse.Namespace, settings: Settings) -> int:
    view = _load_view(settings)
    out_path = Path(ns.out).expanduser()
    write_strip_xlsx(_day_rows(ns, view), out_path, ExcelLayout())
    print(f"OK: Output: {out_path}")
    return 0


_COMMANDS = {
    "now": cmd_now,
    "day": cmd_day,
    "days": cmd_days,
    "add": cmd_add,
    "import": cmd_import,
    "export": cmd_export,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the gluj CLI.

    Returns:
        Exit code (0 on success).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings(data_dir=ns.data_dir, tz_name=ns.tz)
        return _COMMANDS[ns.command](ns, settings)
    except GlujError as exc:
        logger.debug("Command %s failed", ns.command, exc_info=exc)
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
