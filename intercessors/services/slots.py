"""Slot catalog: the fixed set of half-hour prayer windows."""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..app import db
from ..models import AvailableSlot, PrayerSlot
from ..shared.constants import ASSIGNMENT_ACTIVE, HELD_STATUSES
from ..shared.slot_times import all_slot_ranges, normalize_slot_range, slot_sort_key
from .errors import ConflictError, NotFoundError

COVERED = "covered"
AT_RISK = "at_risk"
OPEN = "open"
UNAVAILABLE = "unavailable"


def _ordered(slots: list[AvailableSlot]) -> list[AvailableSlot]:
    return sorted(slots, key=lambda slot: slot_sort_key(slot.slot_time))


def held_slot_times() -> set[str]:
    rows = db.session.query(PrayerSlot.slot_time).filter(
        PrayerSlot.status.in_(HELD_STATUSES)
    )
    return {slot_time for (slot_time,) in rows}


def list_slots() -> list[AvailableSlot]:
    """Every catalog row in time-of-day order."""

    return _ordered(AvailableSlot.query.all())


def list_available() -> list[AvailableSlot]:
    """Catalog rows open for claiming: marked available and not held."""

    held = held_slot_times()
    return [
        slot
        for slot in _ordered(AvailableSlot.query.filter_by(is_available=True).all())
        if slot.slot_time not in held
    ]


def get_slot(time_range: str) -> AvailableSlot:
    slot_time = normalize_slot_range(time_range)
    slot = AvailableSlot.query.filter_by(slot_time=slot_time).one_or_none()
    if slot is None:
        raise NotFoundError(f"Unknown slot {slot_time}.")
    return slot


def mark_availability(time_range: str, is_available: bool) -> AvailableSlot:
    slot = get_slot(time_range)
    slot.is_available = bool(is_available)
    current_app.logger.info(
        "[SLOT-AVAILABILITY] slot=%s available=%s", slot.slot_time, slot.is_available
    )
    return slot


def add_slot(time_range: str, timezone: str | None = None) -> AvailableSlot:
    slot_time = normalize_slot_range(time_range)
    slot = AvailableSlot(
        slot_time=slot_time,
        timezone=timezone or current_app.config.get("SLOT_TIMEZONE", "UTC"),
    )
    db.session.add(slot)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Slot {slot_time} already exists.")
    return slot


def seed_catalog(timezone: str | None = None) -> int:
    """Insert any of the 48 standard slots that are missing; returns rows added."""

    tz = timezone or current_app.config.get("SLOT_TIMEZONE", "UTC")
    existing = {slot_time for (slot_time,) in db.session.query(AvailableSlot.slot_time)}
    added = 0
    for slot_time in all_slot_ranges():
        if slot_time in existing:
            continue
        db.session.add(AvailableSlot(slot_time=slot_time, timezone=tz))
        added += 1
    return added


def coverage_report() -> dict:
    """Per-slot holder state plus totals for the coverage monitor."""

    holders = {
        assignment.slot_time: assignment
        for assignment in PrayerSlot.query.filter(
            PrayerSlot.status.in_(HELD_STATUSES)
        ).all()
    }
    rows = []
    counts = {COVERED: 0, AT_RISK: 0, OPEN: 0, UNAVAILABLE: 0}
    for slot in list_slots():
        holder = holders.get(slot.slot_time)
        if holder is None:
            state = OPEN if slot.is_available else UNAVAILABLE
        elif holder.status == ASSIGNMENT_ACTIVE and not holder.missed_count:
            state = COVERED
        else:
            # misses on record or skipping
            state = AT_RISK
        counts[state] += 1
        rows.append(
            {
                "slot_time": slot.slot_time,
                "timezone": slot.timezone,
                "is_available": slot.is_available,
                "coverage": state,
                "assignment_id": holder.id if holder else None,
                "user_email": holder.user_email if holder else None,
                "status": holder.status if holder else None,
                "missed_count": holder.missed_count if holder else 0,
            }
        )
    total = len(rows)
    filled = counts[COVERED] + counts[AT_RISK]
    return {
        "slots": rows,
        "summary": {
            "total_slots": total,
            "covered": counts[COVERED],
            "at_risk": counts[AT_RISK],
            "open": counts[OPEN],
            "unavailable": counts[UNAVAILABLE],
            "coverage_rate": round(filled * 100.0 / total, 2) if total else 0.0,
        },
    }
