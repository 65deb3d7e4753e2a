"""Lectura de exportaciones JSON de Accu-Chek."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any

from dateutil import tz

from gluj.errors import MalformedRecord, SourceUnavailable
from gluj.model import Sample, mg_dl_to_mmol_l
from gluj.sources.base import DataSource, SourcePaths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccuChekPaths(SourcePaths):
    """Paths for Accu-Chek JSON exports."""

    # root: folder containing accuchek_*.json


class AccuChekSource(DataSource):
    """Accu-Chek JSON reading source."""

    def validate(self) -> None:
        """Validate that the Accu-Chek export directory exists."""
        if not self._paths.root.exists():
            raise SourceUnavailable(str(self._paths.root))

    def newest_json(self) -> Path:
        """Return newest accuchek_*.json by mtime."""
        files = sorted(
            self._paths.root.glob("accuchek_*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not files:
            raise SourceUnavailable(f"No accuchek_*.json in {self._paths.root}")
        return files[0]

    def load_samples(self, path: Path) -> list[Sample]:
        """Parse an Accu-Chek JSON export into samples (mmol/L).

        Args:
            path: Path to JSON file.

        Returns:
            Samples sorted by timestamp.

        Raises:
            SourceUnavailable: If the file cannot be read.
            MalformedRecord: If the JSON shape or a timestamp is invalid.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SourceUnavailable(f"Cannot read {path}: {exc}") from exc
        try:
            raw = _extract_json_list(text)
        except json.JSONDecodeError as exc:
            raise MalformedRecord(path, None, f"invalid JSON ({exc.msg})") from exc
        if not isinstance(raw, list):
            raise MalformedRecord(path, None, "Accu-Chek JSON must be a list")

        out: list[Sample] = []
        skipped = 0
        for number, item in enumerate(raw, start=1):
            try:
                sample = _item_to_sample(item, self._local_tz)
            except (TypeError, ValueError, OverflowError, OSError) as exc:
                raise MalformedRecord(path, number, str(exc)) from exc
            if sample is None:
                skipped += 1
                continue
            out.append(sample)
        if skipped:
            logger.warning("Skipped %d items without a reading in %s", skipped, path)
        out.sort(key=lambda s: s.timestamp)
        return out


def _item_to_sample(item: Any, local_tz: tzinfo) -> Sample | None:
    """Convierte un ítem dict en Sample; None si no trae mmol/L ni mg/dL."""
    if not isinstance(item, dict):
        return None
    mmol_l = item.get("mmol/L")
    mg_dl = item.get("mg/dL")
    if mmol_l is not None:
        value = float(mmol_l)
    elif mg_dl is not None:
        value = mg_dl_to_mmol_l(float(mg_dl))
    else:
        return None
    ts = _parse_timestamp(item.get("timestamp"), item.get("epoch"), local_tz)
    return Sample(timestamp=ts, value=value)


def _extract_json_list(text: str) -> Any:
    """Extract JSON array from text, tolerating leading non-JSON (e.g. log lines)."""
    start = text.find("[")
    if start >= 0:
        return json.loads(text[start:])
    return json.loads(text)


def _parse_timestamp(ts_str: Any, epoch: Any, local_tz: tzinfo) -> datetime:
    """Parses the meter timestamp (local time) or epoch into UTC."""
    if isinstance(ts_str, str) and ts_str.strip():
        dt = datetime.strptime(ts_str.strip(), "%Y/%m/%d %H:%M")
        return dt.replace(tzinfo=local_tz).astimezone(tz.UTC)

    if epoch is not None:
        return datetime.fromtimestamp(int(epoch), tz=tz.UTC)

    raise ValueError("Missing timestamp and epoch")
