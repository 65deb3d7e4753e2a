"""Render de franjas de glucosa: un carácter por franja de 15 minutos."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from dateutil import tz

from gluj.slots import SLOT_MINUTES, SlotIndex, as_utc, floor_to_slot

RECENT_SLOTS = 32
DAY_START = time(2, 0)
DAY_SLOTS = 24 * 60 // SLOT_MINUTES - 1

MAX_DISPLAY_VALUE = 33

_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_STEP = timedelta(minutes=SLOT_MINUTES)


class GlyphKind(Enum):
    """What a single slot shows."""

    VALUE = "value"
    HOUR_TICK = "hour_tick"
    WAIT = "wait"
    BLANK = "blank"


@dataclass(frozen=True)
class Glyph:
    """A slot glyph; ``value`` is set only for ``GlyphKind.VALUE``."""

    kind: GlyphKind
    value: float | None = None

    def __str__(self) -> str:
        return glyph_char(self)


HOUR_TICK = Glyph(GlyphKind.HOUR_TICK)
WAIT = Glyph(GlyphKind.WAIT)
BLANK = Glyph(GlyphKind.BLANK)

_FIXED_CHARS: dict[GlyphKind, str] = {
    GlyphKind.HOUR_TICK: "|",
    GlyphKind.WAIT: "-",
    GlyphKind.BLANK: " ",
}


def _round_half_away(x: float) -> int:
    magnitude = abs(x)
    n = math.floor(magnitude)
    if magnitude - n >= 0.5:
        n += 1
    return -n if x < 0 else n


def value_char(x: float) -> str:
    """Map a reading to one base-36 character.

    Rounds to the nearest integer (halves away from zero). 0-9 map to
    digits and 10-33 to ``A``-``X``; anything else, including NaN and
    infinities, maps to ``?``.
    """
    if not math.isfinite(x):
        return "?"
    n = _round_half_away(x)
    if 0 <= n <= MAX_DISPLAY_VALUE:
        return _DIGITS[n]
    return "?"


def glyph_char(glyph: Glyph) -> str:
    """Render a glyph as its single output character."""
    if glyph.kind is GlyphKind.VALUE:
        return value_char(glyph.value if glyph.value is not None else math.nan)
    return _FIXED_CHARS[glyph.kind]


def is_hour_tick(slot: datetime) -> bool:
    """True for slots starting on an even full hour."""
    return slot.minute == 0 and slot.hour % 2 == 0


class GraphView:
    """Read-only renderer over a :class:`SlotIndex`."""

    def __init__(self, index: SlotIndex) -> None:
        self._index = index

    @property
    def index(self) -> SlotIndex:
        return self._index

    def glyph_at(self, slot: datetime) -> Glyph:
        """Decide the glyph of one slot.

        Order matters: a reading beats the hour tick, the hour tick beats
        the elapsed blank, and the blank beats the wait placeholder.
        """
        slot = as_utc(slot)
        bucket = self._index.bucket_at(slot)
        if bucket:
            return Glyph(GlyphKind.VALUE, bucket[-1].value)
        if is_hour_tick(slot):
            return HOUR_TICK
        latest = self._index.latest()
        if latest is not None and slot < latest:
            return BLANK
        return WAIT

    def _row(self, slots: list[datetime]) -> str:
        return "".join(glyph_char(self.glyph_at(slot)) for slot in slots)

    def render(self, to: datetime) -> str:
        """Render the 8 hours up to ``to``, oldest slot first (32 chars)."""
        end = floor_to_slot(to)
        slots = [end - _STEP * i for i in reversed(range(RECENT_SLOTS))]
        return self._row(slots)

    def render_day(self, day: date) -> str:
        """Render one calendar day starting at the 02:00 UTC anchor (95 chars)."""
        start = datetime.combine(day, DAY_START, tzinfo=tz.UTC)
        slots = [start + _STEP * i for i in range(DAY_SLOTS)]
        return self._row(slots)

    def render_days(self, first: date, last: date) -> list[tuple[date, str]]:
        """Render every day of an inclusive range, oldest first."""
        rows: list[tuple[date, str]] = []
        day = first
        while day <= last:
            rows.append((day, self.render_day(day)))
            day += timedelta(days=1)
        return rows
