"""Almacén CSV de lecturas: ``all.csv`` (histórico) + ``new.csv`` (nuevas)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pandas as pd
from dateutil import tz
from dateutil.parser import isoparse

from gluj.errors import MalformedRecord, SourceUnavailable
from gluj.model import Sample
from gluj.slots import as_utc
from gluj.sources.base import DataSource, SourcePaths

logger = logging.getLogger(__name__)

HISTORY_FILE = "all.csv"
NEW_FILE = "new.csv"

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_COLUMNS = ["timestamp", "value", "extra"]


@dataclass(frozen=True)
class CsvStorePaths(SourcePaths):
    """Paths for the CSV record store."""

    # root: data directory containing all.csv / new.csv

    @property
    def history(self) -> Path:
        return self.root / HISTORY_FILE

    @property
    def new(self) -> Path:
        return self.root / NEW_FILE


class CsvStore(DataSource):
    """Append-only CSV store of glucose readings."""

    _paths: CsvStorePaths

    def validate(self) -> None:
        """Validate that at least one of the store files exists."""
        if not self._existing_files():
            raise SourceUnavailable(
                f"Need file: {self._paths.history} or {self._paths.new}"
            )

    def _existing_files(self) -> list[Path]:
        return [p for p in (self._paths.history, self._paths.new) if p.is_file()]

    def load_samples(self) -> list[Sample]:
        """Read every stored sample, history first, each file in file order.

        Returns:
            Samples with UTC timestamps.

        Raises:
            SourceUnavailable: If neither store file exists.
            MalformedRecord: If a row cannot be parsed.
        """
        self.validate()
        out: list[Sample] = []
        for path in self._existing_files():
            samples = self._read_file(path)
            logger.debug("Read %d samples from %s", len(samples), path)
            out.extend(samples)
        return out

    def _read_file(self, path: Path) -> list[Sample]:
        try:
            df = pd.read_csv(
                path,
                header=None,
                names=_COLUMNS,
                dtype=object,
                skipinitialspace=True,
                keep_default_na=False,
                engine="python",
                on_bad_lines=_fold_extra_fields,
            )
        except pd.errors.EmptyDataError:
            return []
        except pd.errors.ParserError as exc:
            raise MalformedRecord(path, None, str(exc).strip()) from exc
        except OSError as exc:
            raise SourceUnavailable(f"Cannot read {path}: {exc}") from exc

        out: list[Sample] = []
        for number, (raw_at, raw_value, extra) in enumerate(
            df.itertuples(index=False, name=None), start=1
        ):
            if not isinstance(raw_value, str):
                raise MalformedRecord(path, number, "expected 2 fields, got 1")
            if isinstance(extra, str) and extra.strip():
                raise MalformedRecord(path, number, "expected 2 fields, got more")
            out.append(
                Sample(
                    timestamp=self._parse_timestamp(path, number, raw_at),
                    value=_parse_value(path, number, raw_value),
                )
            )
        return out

    def _parse_timestamp(self, path: Path, number: int, raw: object) -> datetime:
        text = str(raw).strip() if isinstance(raw, str) else ""
        if not text:
            raise MalformedRecord(path, number, "missing timestamp")
        try:
            dt = isoparse(text)
        except ValueError as exc:
            raise MalformedRecord(path, number, f"bad timestamp {text!r}") from exc
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=self._local_tz)
        return dt.astimezone(tz.UTC)

    def append(self, sample: Sample) -> Path:
        """Append one reading to ``new.csv`` (created if missing).

        Returns:
            Path of the written file.
        """
        path = self._paths.new
        path.parent.mkdir(parents=True, exist_ok=True)
        at = as_utc(sample.timestamp).astimezone(self._local_tz)
        row = pd.DataFrame([[at.strftime(_TIMESTAMP_FORMAT), f" {sample.value:.1f}"]])
        row.to_csv(path, mode="a", header=False, index=False)
        logger.info("Stored %.1f at %s in %s", sample.value, at.isoformat(), path)
        return path


def _fold_extra_fields(fields: list[str]) -> list[str]:
    """Keep rows with too many fields, joining the surplus into ``extra``."""
    return [*fields[:2], ",".join(fields[2:])]


def _parse_value(path: Path, number: int, raw: object) -> float:
    text = str(raw).strip() if isinstance(raw, str) else ""
    try:
        return float(text)
    except ValueError as exc:
        raise MalformedRecord(path, number, f"bad value {text!r}") from exc
