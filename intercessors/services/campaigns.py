"""Fasting campaigns: template instantiation, phase computation, registration."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..app import db
from ..models import FastingEventTemplate, FastingProgram, FastingRegistration
from ..shared.constants import (
    DEFAULT_TEMPLATES,
    MONTHLY_START_HOUR,
    MONTHLY_TEMPLATE_NAME,
    PHASE_LABELS,
    PROGRAM_ACTIVE,
    PROGRAM_CANCELLED,
    PROGRAM_COMPLETED,
    PROGRAM_PREPARATION,
    PROGRAM_REGISTRATION_OPEN,
    PROGRAM_UPCOMING,
)
from ..shared.time import as_utc, isoformat_or_none, now_utc
from . import updates
from .errors import ConflictError, NotFoundError, StateError, ValidationError

FRIDAY = 4
EDITABLE_FIELDS = (
    "program_title",
    "program_subtitle",
    "program_description",
    "start_date",
    "end_date",
    "registration_open_date",
    "registration_close_date",
    "max_participants",
    "fasting_type",
    "special_instructions",
    "prayer_focus",
    "contact_email",
    "contact_phone",
    "location_details",
    "zoom_meeting_link",
    "youtube_stream_link",
)
DATE_FIELDS = (
    "start_date",
    "end_date",
    "registration_open_date",
    "registration_close_date",
)
ANNOUNCED_FIELDS = {
    "program_title",
    "program_description",
    "start_date",
    "end_date",
    "registration_close_date",
}


def compute_program_status(
    now: datetime,
    start_date: datetime,
    end_date: datetime,
    registration_open_date: datetime,
    registration_close_date: datetime,
) -> str:
    """Phase of a campaign at ``now``; depends only on its arguments."""

    now = as_utc(now)
    start = as_utc(start_date)
    end = as_utc(end_date)
    reg_open = as_utc(registration_open_date)
    reg_close = as_utc(registration_close_date)
    if now < reg_open:
        return PROGRAM_UPCOMING
    if reg_open <= now <= reg_close:
        return PROGRAM_REGISTRATION_OPEN
    if now < start:
        return PROGRAM_PREPARATION
    if now <= end:
        return PROGRAM_ACTIVE
    return PROGRAM_COMPLETED


def status_of(program: FastingProgram, now: datetime) -> str:
    if program.program_status == PROGRAM_CANCELLED:
        return PROGRAM_CANCELLED
    return compute_program_status(
        now,
        program.start_date,
        program.end_date,
        program.registration_open_date,
        program.registration_close_date,
    )


def default_start_date(now: datetime) -> datetime:
    """A week from today at 18:00 UTC."""

    day = (as_utc(now) + timedelta(days=7)).date()
    return datetime(day.year, day.month, day.day, MONTHLY_START_HOUR, tzinfo=timezone.utc)


def last_friday_at(year: int, month: int, hour: int = MONTHLY_START_HOUR) -> datetime:
    """Walk back from the month's last day to its last Friday, at ``hour`` UTC."""

    day = datetime(year, month, calendar.monthrange(year, month)[1], tzinfo=timezone.utc)
    while day.weekday() != FRIDAY:
        day -= timedelta(days=1)
    return day.replace(hour=hour)


def get_template(template_name: str) -> FastingEventTemplate:
    template = FastingEventTemplate.query.filter_by(
        template_name=template_name, is_active=True
    ).one_or_none()
    if template is None:
        raise NotFoundError(f'Template "{template_name}" not found')
    return template


def seed_templates() -> int:
    """Insert the default templates that are missing by name; returns rows added."""

    existing = {
        name for (name,) in db.session.query(FastingEventTemplate.template_name)
    }
    added = 0
    for data in DEFAULT_TEMPLATES:
        if data["template_name"] in existing:
            continue
        db.session.add(FastingEventTemplate(**data))
        added += 1
    return added


def list_templates() -> list[FastingEventTemplate]:
    return (
        FastingEventTemplate.query.filter_by(is_active=True)
        .order_by(FastingEventTemplate.template_name)
        .all()
    )


def active_program() -> FastingProgram | None:
    return FastingProgram.query.filter_by(is_active=True).one_or_none()


def _insert_active(program: FastingProgram) -> FastingProgram:
    db.session.add(program)
    try:
        db.session.flush()
    except IntegrityError:
        # another creation committed its active row first
        db.session.rollback()
        raise ConflictError("Another fasting program was created at the same time.")
    return program


def create_from_template(
    template_name: str,
    start_date: datetime | None = None,
    *,
    title: str | None = None,
    subtitle: str | None = None,
    admin_email: str | None = None,
    now: datetime | None = None,
) -> FastingProgram:
    """Instantiate a campaign from a template and make it the only active one."""

    template = get_template(template_name)
    resolved_title = (title or template.default_title or "").strip()
    if not resolved_title:
        raise StateError(f'Template "{template_name}" has no title to use.')
    duration = int(template.duration_days or 0)
    if duration < 1:
        raise StateError(f'Template "{template_name}" has no duration.')

    now = as_utc(now or now_utc())
    start = as_utc(start_date) if start_date else default_start_date(now)
    end = start + timedelta(days=duration)
    registration_close = start - timedelta(days=1)
    admin_email = admin_email or current_app.config.get("DEFAULT_ADMIN_EMAIL")

    # deactivate-then-insert; the caller commits both or neither
    FastingProgram.query.filter_by(is_active=True).update(
        {"is_active": False}, synchronize_session="fetch"
    )
    program = FastingProgram(
        program_title=resolved_title,
        program_subtitle=subtitle or template.default_subtitle,
        program_description=template.default_description,
        start_date=start,
        end_date=end,
        registration_open_date=now,
        registration_close_date=registration_close,
        prayer_focus=template.default_prayer_focus,
        special_instructions=template.default_instructions,
        contact_email=admin_email,
        created_by=admin_email,
        template_name=template.template_name,
        is_active=True,
    )
    program.program_status = compute_program_status(
        now, start, end, now, registration_close
    )
    _insert_active(program)
    current_app.logger.info(
        "[PROGRAM-CREATE] id=%s template=%s start=%s status=%s",
        program.id,
        template.template_name,
        start.isoformat(),
        program.program_status,
    )
    return program


def schedule_next_monthly(
    offset: int = 1, admin_email: str | None = None, now: datetime | None = None
) -> FastingProgram:
    """Create the monthly fast starting the last Friday of the target month."""

    if offset < 0:
        raise ValidationError("offset must be zero or positive.")
    now = as_utc(now or now_utc())
    month_index = now.month - 1 + offset
    year = now.year + month_index // 12
    month = month_index % 12 + 1
    start = last_friday_at(year, month)
    return create_from_template(
        MONTHLY_TEMPLATE_NAME,
        start,
        title="3 Days & 3 Nights Prayer & Fasting",
        subtitle=f"{start.strftime('%B %Y')} - Global Intercession",
        admin_email=admin_email,
        now=now,
    )


def refresh_status(now: datetime | None = None) -> FastingProgram | None:
    """Recompute the stored phase of the active, non-cancelled campaign."""

    program = active_program()
    if program is None or program.program_status == PROGRAM_CANCELLED:
        return program
    now = as_utc(now or now_utc())
    status = status_of(program, now)
    if status != program.program_status:
        current_app.logger.info(
            "[PROGRAM-STATUS] id=%s %s->%s",
            program.id,
            program.program_status,
            status,
        )
        program.program_status = status
    return program


def participant_count(program: FastingProgram) -> int:
    return program.registrations.count()


def _whole_days(delta: timedelta) -> int:
    seconds = delta.total_seconds()
    days = int(abs(seconds) // 86400)
    return days if seconds >= 0 else -days


def program_view(program: FastingProgram, now: datetime | None = None) -> dict:
    """Active campaign with derived phase fields, refreshing stored counters."""

    now = as_utc(now or now_utc())
    program.current_participants = participant_count(program)
    status = status_of(program, now)
    program.program_status = status

    start = as_utc(program.start_date)
    end = as_utc(program.end_date)
    reg_open = as_utc(program.registration_open_date)
    reg_close = as_utc(program.registration_close_date)
    if now < start:
        days_remaining = _whole_days(start - now)
    elif now <= end:
        days_remaining = _whole_days(end - now)
    else:
        days_remaining = 0
    max_participants = program.max_participants or 0
    return {
        "id": program.id,
        "program_title": program.program_title,
        "program_subtitle": program.program_subtitle,
        "program_description": program.program_description,
        "start_date": isoformat_or_none(start),
        "end_date": isoformat_or_none(end),
        "registration_open_date": isoformat_or_none(reg_open),
        "registration_close_date": isoformat_or_none(reg_close),
        "max_participants": max_participants,
        "current_participants": program.current_participants,
        "program_status": status,
        "fasting_type": program.fasting_type,
        "special_instructions": program.special_instructions,
        "prayer_focus": program.prayer_focus,
        "contact_email": program.contact_email,
        "contact_phone": program.contact_phone,
        "location_details": program.location_details,
        "zoom_meeting_link": program.zoom_meeting_link,
        "youtube_stream_link": program.youtube_stream_link,
        "template_name": program.template_name,
        "current_phase": PHASE_LABELS[status],
        "registration_is_open": status == PROGRAM_REGISTRATION_OPEN,
        "program_has_started": now >= start,
        "program_has_ended": now >= end,
        "days_until_start": _whole_days(start - now),
        "days_until_end": _whole_days(end - now),
        "days_until_registration_close": _whole_days(reg_close - now),
        "days_remaining": days_remaining,
        "registration_progress_percentage": (
            round(program.current_participants * 100.0 / max_participants, 2)
            if max_participants
            else 0.0
        ),
    }


def update_active_program(fields: dict, now: datetime | None = None) -> FastingProgram:
    """Partial edit of the active campaign; significant edits are announced."""

    program = active_program()
    if program is None:
        raise NotFoundError("No active fasting program.")
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError("Unknown fields: " + ", ".join(sorted(unknown)))

    changed: set[str] = set()
    for name, value in fields.items():
        if value is None:
            continue
        if name in DATE_FIELDS:
            value = as_utc(value)
            if as_utc(getattr(program, name)) == value:
                continue
        elif name == "max_participants":
            value = int(value)
            if value < 1:
                raise ValidationError("max_participants must be positive.")
        if getattr(program, name) != value:
            setattr(program, name, value)
            changed.add(name)

    if as_utc(program.end_date) < as_utc(program.start_date):
        raise ValidationError("end_date must not be before start_date.")
    if as_utc(program.registration_close_date) < as_utc(program.registration_open_date):
        raise ValidationError(
            "registration_close_date must not be before registration_open_date."
        )

    now = as_utc(now or now_utc())
    program.program_status = status_of(program, now)
    if changed & ANNOUNCED_FIELDS:
        updates.notify_program_change(program, changed, now=now)
    current_app.logger.info(
        "[PROGRAM-UPDATE] id=%s fields=%s", program.id, ",".join(sorted(changed))
    )
    return program


def cancel_active_program() -> FastingProgram:
    program = active_program()
    if program is None:
        raise NotFoundError("No active fasting program.")
    if program.program_status == PROGRAM_CANCELLED:
        raise StateError("The active program is already cancelled.")
    program.program_status = PROGRAM_CANCELLED
    current_app.logger.info("[PROGRAM-CANCEL] id=%s", program.id)
    return program


def register(
    full_name: str,
    phone_number: str,
    region: str,
    *,
    user_id: str | None = None,
    travel_cost: str | None = None,
    gps_latitude: str | None = None,
    gps_longitude: str | None = None,
    now: datetime | None = None,
) -> FastingRegistration:
    program = active_program()
    if program is None:
        raise NotFoundError("No active fasting program.")
    full_name = (full_name or "").strip()
    phone_number = (phone_number or "").strip()
    region = (region or "").strip()
    if not full_name or not phone_number or not region:
        raise ValidationError("full_name, phone_number and region are required.")
    now = as_utc(now or now_utc())
    if status_of(program, now) != PROGRAM_REGISTRATION_OPEN:
        raise StateError("Registration for this program is not open.")
    if participant_count(program) >= (program.max_participants or 0):
        raise ConflictError("This program is full.")

    registration = FastingRegistration(
        program_id=program.id,
        user_id=user_id,
        full_name=full_name,
        phone_number=phone_number,
        region=region,
        travel_cost=travel_cost or "0",
        gps_latitude=gps_latitude,
        gps_longitude=gps_longitude,
    )
    db.session.add(registration)
    db.session.flush()
    program.current_participants = participant_count(program)
    current_app.logger.info(
        "[PROGRAM-REGISTER] program=%s registration=%s", program.id, registration.id
    )
    return registration
