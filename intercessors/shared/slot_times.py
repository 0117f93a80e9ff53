"""Half-hour slot labels such as ``22:00–22:30``."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone

from ..services.errors import ValidationError

SLOT_SEPARATOR = "–"
SLOT_MINUTES = 30
SLOTS_PER_DAY = 24 * 60 // SLOT_MINUTES

_SLOT_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*[–—-]\s*(\d{1,2}):(\d{2})\s*$")


def _label(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_range_for(start_minutes: int) -> str:
    return f"{_label(start_minutes)}{SLOT_SEPARATOR}{_label(start_minutes + SLOT_MINUTES)}"


def all_slot_ranges() -> list[str]:
    """Return the 48 catalog labels in time-of-day order (last is 23:30–24:00)."""
    return [slot_range_for(i * SLOT_MINUTES) for i in range(SLOTS_PER_DAY)]


def parse_slot_range(raw: str | None) -> tuple[int, int]:
    """Return (start, end) minutes after midnight for a slot label."""

    match = _SLOT_RE.match(raw or "")
    if not match:
        raise ValidationError(f"Malformed slot time: {raw!r}")
    sh, sm, eh, em = (int(part) for part in match.groups())
    if sh > 23 or sm > 59 or eh > 24 or em > 59 or (eh == 24 and em):
        raise ValidationError(f"Malformed slot time: {raw!r}")
    start = sh * 60 + sm
    end = eh * 60 + em
    if start % SLOT_MINUTES or end - start != SLOT_MINUTES:
        raise ValidationError(
            f"Slot time must be a {SLOT_MINUTES}-minute window on the half hour: {raw!r}"
        )
    return start, end


def normalize_slot_range(raw: str | None) -> str:
    """Canonical label for a user-supplied slot string (hyphens become en dashes)."""
    start, _ = parse_slot_range(raw)
    return slot_range_for(start)


def slot_sort_key(slot_time: str) -> int:
    try:
        return parse_slot_range(slot_time)[0]
    except ValidationError:
        return SLOTS_PER_DAY * SLOT_MINUTES


def slot_window(slot_time: str, on: date) -> tuple[datetime, datetime]:
    """UTC start/end of one occurrence of the slot on the given day."""
    start, end = parse_slot_range(slot_time)
    midnight = datetime(on.year, on.month, on.day, tzinfo=timezone.utc)
    return midnight + timedelta(minutes=start), midnight + timedelta(minutes=end)


def is_time_in_slot(moment: datetime, slot_time: str) -> bool:
    """True when the moment falls inside the slot's window on that same day."""
    start, end = slot_window(slot_time, moment.date())
    return start <= moment < end
