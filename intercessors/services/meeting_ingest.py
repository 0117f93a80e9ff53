"""Turn a meeting-platform participant list into attended outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from flask import current_app

from ..models import PrayerSlot
from ..shared.constants import ATTENDED, HELD_STATUSES
from ..shared.slot_times import is_time_in_slot
from ..shared.time import as_utc
from . import assignments, attendance


@dataclass
class Participant:
    email: str | None
    join_time: datetime | None = None
    leave_time: datetime | None = None


@dataclass
class IngestResult:
    recorded: list[int] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)
    outside_slot: list[str] = field(default_factory=list)
    already_recorded: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "recorded": len(self.recorded),
            "assignment_ids": self.recorded,
            "unmatched": self.unmatched,
            "outside_slot": self.outside_slot,
            "already_recorded": self.already_recorded,
        }


def _held_by_email(email: str) -> list[PrayerSlot]:
    return (
        PrayerSlot.query.filter(
            PrayerSlot.user_email == email,
            PrayerSlot.status.in_(HELD_STATUSES),
        )
        .order_by(PrayerSlot.id)
        .all()
    )


def ingest_meeting(
    meeting_id: str | None,
    meeting_start: datetime,
    participants: list[Participant],
) -> IngestResult:
    """Record ``attended`` for each participant whose held slot covers the meeting.

    Participants are matched by exact (case-insensitive) email; the moment
    tested against the slot is the participant's join time, falling back to
    the meeting start.
    """

    result = IngestResult()
    meeting_start = as_utc(meeting_start)
    for participant in participants:
        email = (participant.email or "").strip().lower()
        if not email:
            continue
        held = _held_by_email(email)
        if not held:
            result.unmatched.append(email)
            continue
        moment = as_utc(participant.join_time) or meeting_start
        match = next((a for a in held if is_time_in_slot(moment, a.slot_time)), None)
        if match is None:
            result.outside_slot.append(email)
            continue
        on = moment.date()
        latest = attendance.latest_record(match.id, on)
        if latest is not None and latest.status == ATTENDED:
            result.already_recorded.append(email)
            continue
        meeting = attendance.MeetingMeta(
            meeting_id=meeting_id,
            join_time=as_utc(participant.join_time),
            leave_time=as_utc(participant.leave_time),
        )
        assignments.record_outcome(match.id, ATTENDED, occurrence_date=on, meeting=meeting)
        result.recorded.append(match.id)

    current_app.logger.info(
        "[MEETING-INGEST] meeting=%s recorded=%s unmatched=%s outside=%s",
        meeting_id,
        len(result.recorded),
        len(result.unmatched),
        len(result.outside_slot),
    )
    return result
