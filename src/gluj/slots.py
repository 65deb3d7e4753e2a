"""Agrupación de lecturas en franjas fijas de 15 minutos."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from dateutil import tz

from gluj.model import Sample

SLOT_MINUTES = 15

_LATEST_POLICIES = ("last", "max")


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz.UTC)
    return dt.astimezone(tz.UTC)


def floor_to_slot(dt: datetime) -> datetime:
    """Floor a datetime down to the start of its 15 minute slot.

    Args:
        dt: Any datetime. Naive values are interpreted as UTC.

    Returns:
        UTC datetime with minute truncated to a multiple of 15 and
        seconds/microseconds zeroed.
    """
    utc = as_utc(dt)
    minute = utc.minute // SLOT_MINUTES * SLOT_MINUTES
    return utc.replace(minute=minute, second=0, microsecond=0)


class SlotIndex:
    """Samples grouped by slot key, plus the latest-sample marker.

    The index is built once and never mutated afterwards, so it can be
    shared between renders (and threads).
    """

    def __init__(
        self, samples: Iterable[Sample], *, latest_policy: str = "last"
    ) -> None:
        """Group samples by slot.

        Args:
            samples: Readings in arrival order (not necessarily sorted).
            latest_policy: ``"last"`` trusts input order and takes the last
                sample as the most recent one; ``"max"`` takes the maximum
                timestamp instead.

        Raises:
            ValueError: If ``latest_policy`` is unknown.
        """
        if latest_policy not in _LATEST_POLICIES:
            raise ValueError(f"Unknown latest policy: {latest_policy!r}")

        buckets: dict[datetime, list[Sample]] = {}
        latest: datetime | None = None
        for sample in samples:
            buckets.setdefault(floor_to_slot(sample.timestamp), []).append(sample)
            at = as_utc(sample.timestamp)
            if latest_policy == "last" or latest is None or at > latest:
                latest = at

        self._buckets = {key: tuple(group) for key, group in buckets.items()}
        self._latest = latest

    def __len__(self) -> int:
        return len(self._buckets)

    def bucket_at(self, slot: datetime) -> tuple[Sample, ...] | None:
        """Samples of one slot in insertion order, or None if the slot is empty."""
        return self._buckets.get(as_utc(slot))

    def latest(self) -> datetime | None:
        """Timestamp of the most recent sample (UTC), None for an empty index."""
        return self._latest

    def first_day(self) -> date | None:
        if not self._buckets:
            return None
        return min(self._buckets).date()

    def last_day(self) -> date | None:
        if not self._buckets:
            return None
        return max(self._buckets).date()
