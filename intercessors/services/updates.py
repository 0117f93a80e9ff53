"""Generic announcement feed consumed by the notification dispatcher."""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app

from ..app import db
from ..models import FastingProgram, SkipRequest, Update
from ..shared.constants import SKIP_APPROVED, UPDATE_EXPIRY_DAYS, UPDATE_PRIORITIES
from ..shared.time import as_utc, now_utc
from .errors import NotFoundError, ValidationError

__all__ = [
    "post_update",
    "deactivate",
    "active_updates",
    "notify_skip_decision",
    "notify_program_change",
]


def post_update(
    title: str,
    description: str,
    *,
    type: str = "general",
    priority: str = "normal",
    expiry: str = "never",
    pin_to_top: bool = False,
    send_notification: bool = False,
    send_email: bool = False,
    user_id: str | None = None,
    now: datetime | None = None,
) -> Update:
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description:
        raise ValidationError("title and description are required.")
    if priority not in UPDATE_PRIORITIES:
        raise ValidationError(
            "priority must be one of: " + ", ".join(UPDATE_PRIORITIES)
        )
    if expiry not in UPDATE_EXPIRY_DAYS:
        raise ValidationError("expiry must be one of: " + ", ".join(UPDATE_EXPIRY_DAYS))
    stamp = now or now_utc()
    update = Update(
        title=title,
        description=description,
        type=type or "general",
        priority=priority,
        expiry=expiry,
        pin_to_top=bool(pin_to_top),
        send_notification=bool(send_notification),
        send_email=bool(send_email),
        user_id=user_id,
        is_active=True,
        created_at=stamp,
        updated_at=stamp,
    )
    db.session.add(update)
    db.session.flush()
    current_app.logger.info(
        "[UPDATE-POST] id=%s type=%s priority=%s", update.id, update.type, priority
    )
    return update


def deactivate(update_id: int) -> Update:
    update = db.session.get(Update, update_id)
    if update is None:
        raise NotFoundError(f"Update {update_id} not found.")
    update.is_active = False
    return update


def _is_expired(update: Update, now: datetime) -> bool:
    days = UPDATE_EXPIRY_DAYS.get(update.expiry)
    if days is None:
        return False
    created = as_utc(update.created_at) or now
    return now - created > timedelta(days=days)


def active_updates(now: datetime | None = None, user_id: str | None = None) -> list[Update]:
    """Unexpired updates: pinned first, then by priority, newest first.

    Entries addressed to a user are only returned to that user.
    """

    now = now or now_utc()
    query = Update.query.filter(Update.is_active.is_(True))
    if user_id:
        query = query.filter((Update.user_id.is_(None)) | (Update.user_id == user_id))
    else:
        query = query.filter(Update.user_id.is_(None))
    rows = [row for row in query.all() if not _is_expired(row, now)]
    rows.sort(
        key=lambda row: (
            not row.pin_to_top,
            -UPDATE_PRIORITIES.get(row.priority, 2),
            -(as_utc(row.created_at) or now).timestamp(),
            -row.id,
        )
    )
    return rows


def notify_skip_decision(request: SkipRequest, now: datetime | None = None) -> Update:
    """Feed entry for a pending request that has just been decided."""

    if request.status == SKIP_APPROVED:
        title = "Skip Request Approved"
        description = f"Your {request.skip_days}-day skip request has been approved!"
    else:
        title = "Skip Request Update"
        description = "Your skip request has been reviewed. Please check for details."
    if request.admin_comment:
        description = f"{description} Comment: {request.admin_comment}"
    return post_update(
        title,
        description,
        type="skip_approval",
        user_id=request.user_id,
        now=now,
    )


def notify_program_change(
    program: FastingProgram, changed: set[str], now: datetime | None = None
) -> Update:
    parts = ["Program details have been updated."]
    if "start_date" in changed:
        parts.append(
            "New start date: "
            + as_utc(program.start_date).strftime("%B %d, %Y at %H:%M UTC")
            + "."
        )
    if "registration_close_date" in changed:
        parts.append(
            "Registration closes: "
            + as_utc(program.registration_close_date).strftime("%B %d, %Y at %H:%M UTC")
            + "."
        )
    if program.program_description:
        parts.append(program.program_description)
    return post_update(
        f"Fasting Program Updated: {program.program_title}",
        " ".join(parts),
        type="announcement",
        priority="high",
        pin_to_top=True,
        now=now,
    )
