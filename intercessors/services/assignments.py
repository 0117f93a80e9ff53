"""Prayer slot assignments: claiming, outcomes and release."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..app import db
from ..models import AttendanceLog, AvailableSlot, PrayerSlot
from ..shared.constants import (
    ASSIGNMENT_ACTIVE,
    ASSIGNMENT_MISSED,
    ASSIGNMENT_RELEASED,
    ASSIGNMENT_SKIPPED,
    ATTENDED,
    HELD_STATUSES,
    MISSED,
)
from ..shared.slot_times import normalize_slot_range
from ..shared.time import as_utc, now_utc
from . import attendance
from .errors import (
    ConflictError,
    NotFoundError,
    SlotUnavailable,
    StateError,
    ValidationError,
)


def _release_threshold() -> int:
    return int(current_app.config.get("MISSED_RELEASE_THRESHOLD", 3))


def get_assignment(assignment_id: int) -> PrayerSlot:
    assignment = db.session.get(PrayerSlot, assignment_id)
    if assignment is None:
        raise NotFoundError(f"Assignment {assignment_id} not found.")
    return assignment


def held_by_user(user_id: str) -> list[PrayerSlot]:
    return (
        PrayerSlot.query.filter(
            PrayerSlot.user_id == user_id,
            PrayerSlot.status.in_(HELD_STATUSES),
        )
        .order_by(PrayerSlot.slot_time)
        .all()
    )


def holder_of(slot_time: str) -> PrayerSlot | None:
    return PrayerSlot.query.filter(
        PrayerSlot.slot_time == slot_time,
        PrayerSlot.status.in_(HELD_STATUSES),
    ).one_or_none()


def _ensure_claimable(slot_time: str) -> None:
    slot = AvailableSlot.query.filter_by(slot_time=slot_time).one_or_none()
    if slot is None:
        raise ValidationError(f"{slot_time} is not a catalog slot.")
    if not slot.is_available:
        raise SlotUnavailable(slot_time)
    if holder_of(slot_time) is not None:
        raise SlotUnavailable(slot_time)


def _insert(user_id: str, user_email: str, slot_time: str) -> PrayerSlot:
    assignment = PrayerSlot(
        user_id=user_id,
        user_email=user_email,
        slot_time=slot_time,
        status=ASSIGNMENT_ACTIVE,
        missed_count=0,
    )
    db.session.add(assignment)
    try:
        db.session.flush()
    except IntegrityError:
        # lost a concurrent claim on the partial unique index
        db.session.rollback()
        raise SlotUnavailable(slot_time)
    return assignment


def claim(user_id: str, user_email: str, time_range: str) -> PrayerSlot:
    """Bind the user to a free time range as a new active assignment."""

    if not user_id or not user_email:
        raise ValidationError("user_id and user_email are required.")
    slot_time = normalize_slot_range(time_range)
    _ensure_claimable(slot_time)

    limit = int(current_app.config.get("MAX_SLOTS_PER_USER", 1))
    if limit and len(held_by_user(user_id)) >= limit:
        raise ConflictError(
            f"You already hold {limit} prayer slot(s); change your slot instead."
        )

    assignment = _insert(user_id, user_email, slot_time)
    current_app.logger.info("[SLOT-CLAIM] user=%s slot=%s", user_id, slot_time)
    return assignment


def change_slot(user_id: str, user_email: str, time_range: str) -> PrayerSlot:
    """Release everything the user holds and claim the new range."""

    slot_time = normalize_slot_range(time_range)
    current = held_by_user(user_id)
    if any(a.slot_time == slot_time for a in current):
        raise ConflictError(f"You already hold the {slot_time} slot.")
    _ensure_claimable(slot_time)
    for assignment in current:
        _release(assignment, reason="changed")
    db.session.flush()
    assignment = _insert(user_id, user_email, slot_time)
    current_app.logger.info("[SLOT-CHANGE] user=%s slot=%s", user_id, slot_time)
    return assignment


def _release(assignment: PrayerSlot, reason: str) -> None:
    assignment.status = ASSIGNMENT_RELEASED
    assignment.skip_start_date = None
    assignment.skip_end_date = None
    current_app.logger.info(
        "[SLOT-RELEASE] user=%s slot=%s missed=%s reason=%s",
        assignment.user_id,
        assignment.slot_time,
        assignment.missed_count,
        reason,
    )


def _restore_if_skip_expired(assignment: PrayerSlot, now: datetime) -> bool:
    if assignment.status != ASSIGNMENT_SKIPPED:
        return False
    end = as_utc(assignment.skip_end_date)
    if end is not None and end.date() >= now.date():
        return False
    assignment.status = (
        ASSIGNMENT_MISSED if assignment.missed_count else ASSIGNMENT_ACTIVE
    )
    current_app.logger.info(
        "[SKIP-EXPIRED] user=%s slot=%s", assignment.user_id, assignment.slot_time
    )
    return True


def record_outcome(
    assignment_id: int,
    outcome: str,
    occurrence_date: date | None = None,
    meeting: attendance.MeetingMeta | None = None,
    now: datetime | None = None,
) -> tuple[PrayerSlot, AttendanceLog]:
    """Log one occurrence and apply it to the assignment's miss counter.

    A miss inside the skip window, or any further miss for a day that already
    has a missed row, leaves ``missed_count`` unchanged. Reaching the release
    threshold frees the time range; the row itself is kept.
    """

    assignment = get_assignment(assignment_id)
    if assignment.status == ASSIGNMENT_RELEASED:
        raise StateError("This assignment has been released.")
    now = now or now_utc()
    on = occurrence_date or now.date()

    _restore_if_skip_expired(assignment, now)
    already_missed = attendance.has_missed(assignment.id, on)
    record = attendance.append(assignment, on, outcome, meeting)

    if record.status == ATTENDED:
        if assignment.status == ASSIGNMENT_MISSED:
            assignment.status = ASSIGNMENT_ACTIVE
        return assignment, record

    if assignment.in_skip_window(on):
        current_app.logger.info(
            "[SLOT-MISS-SKIPPED] user=%s slot=%s date=%s",
            assignment.user_id,
            assignment.slot_time,
            on.isoformat(),
        )
        return assignment, record
    if already_missed:
        return assignment, record

    assignment.missed_count = (assignment.missed_count or 0) + 1
    threshold = _release_threshold()
    current_app.logger.info(
        "[SLOT-MISS] user=%s slot=%s missed=%s/%s",
        assignment.user_id,
        assignment.slot_time,
        assignment.missed_count,
        threshold,
    )
    if assignment.missed_count >= threshold:
        _release(assignment, reason="missed")
    elif assignment.status == ASSIGNMENT_ACTIVE:
        assignment.status = ASSIGNMENT_MISSED
    return assignment, record


def reset_missed_count(assignment_id: int) -> PrayerSlot:
    """Admin action: clear the counter on a held assignment."""

    assignment = get_assignment(assignment_id)
    if assignment.status == ASSIGNMENT_RELEASED:
        raise StateError("Released assignments cannot be reset; claim again instead.")
    assignment.missed_count = 0
    if assignment.status == ASSIGNMENT_MISSED:
        assignment.status = ASSIGNMENT_ACTIVE
    current_app.logger.info(
        "[SLOT-RESET] user=%s slot=%s", assignment.user_id, assignment.slot_time
    )
    return assignment


def apply_skip_window(
    assignment: PrayerSlot, start: datetime, days: int
) -> PrayerSlot:
    """Mark the assignment skipped for ``days`` calendar days from ``start``."""

    if assignment.status == ASSIGNMENT_RELEASED:
        raise StateError("Released assignments cannot be skipped.")
    assignment.skip_start_date = start
    assignment.skip_end_date = start + timedelta(days=days - 1)
    assignment.status = ASSIGNMENT_SKIPPED
    return assignment


def restore_expired_skips(now: datetime | None = None) -> int:
    now = now or now_utc()
    restored = 0
    for assignment in PrayerSlot.query.filter_by(status=ASSIGNMENT_SKIPPED).all():
        if _restore_if_skip_expired(assignment, now):
            restored += 1
    return restored


def sweep_missed(on: date, now: datetime | None = None) -> int:
    """Record a miss for every held assignment with no log row for ``on``."""

    logged = {
        slot_id
        for (slot_id,) in db.session.query(AttendanceLog.slot_id).filter(
            AttendanceLog.date == on
        )
    }
    missed = 0
    candidates = (
        PrayerSlot.query.filter(PrayerSlot.status.in_(HELD_STATUSES))
        .order_by(PrayerSlot.id)
        .all()
    )
    for assignment in candidates:
        if assignment.id in logged:
            continue
        created = as_utc(assignment.created_at)
        if created is not None and created.date() > on:
            continue
        record_outcome(assignment.id, MISSED, occurrence_date=on, now=now)
        missed += 1
    return missed
