"""Skip request workflow: pending -> approved | rejected, both terminal."""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..app import db
from ..models import SkipRequest
from ..shared.constants import (
    MIN_SKIP_DAYS,
    SKIP_APPROVED,
    SKIP_PENDING,
    SKIP_REJECTED,
    SKIP_STATUSES,
)
from ..shared.time import now_utc
from . import assignments, updates
from .errors import ForbiddenError, NotFoundError, StateError, ValidationError


def _validate_days(raw) -> int:
    max_days = int(current_app.config.get("MAX_SKIP_DAYS", 30))
    try:
        days = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("skip_days must be a whole number.")
    if isinstance(raw, bool) or days < MIN_SKIP_DAYS or days > max_days:
        raise ValidationError(
            f"skip_days must be between {MIN_SKIP_DAYS} and {max_days}."
        )
    return days


def submit(
    user_id: str,
    user_email: str,
    skip_days,
    reason: str,
    assignment_id: int | None = None,
) -> SkipRequest:
    days = _validate_days(skip_days)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reason is required.")
    if assignment_id is not None:
        assignment = assignments.get_assignment(assignment_id)
        if assignment.user_id != user_id:
            raise ForbiddenError("That prayer slot belongs to someone else.")
        if not assignment.is_held:
            raise StateError("Released assignments cannot be skipped.")
    request = SkipRequest(
        user_id=user_id,
        user_email=(user_email or "").strip().lower(),
        prayer_slot_id=assignment_id,
        skip_days=days,
        reason=reason,
        status=SKIP_PENDING,
    )
    db.session.add(request)
    db.session.flush()
    current_app.logger.info(
        "[SKIP-REQUEST] id=%s user=%s days=%s", request.id, user_id, days
    )
    return request


def request_skip(
    assignment_id: int, days, reason: str, user_id: str | None = None
) -> SkipRequest:
    """Open a pending request against one assignment."""

    assignment = assignments.get_assignment(assignment_id)
    return submit(
        user_id or assignment.user_id,
        assignment.user_email,
        days,
        reason,
        assignment_id=assignment.id,
    )


def get_request(request_id: int) -> SkipRequest:
    request = db.session.get(SkipRequest, request_id)
    if request is None:
        raise NotFoundError(f"Skip request {request_id} not found.")
    return request


def list_requests(status: str | None = None, user_id: str | None = None) -> list[SkipRequest]:
    query = SkipRequest.query
    if status:
        if status not in SKIP_STATUSES:
            raise ValidationError("Unknown status filter.")
        query = query.filter_by(status=status)
    if user_id:
        query = query.filter_by(user_id=user_id)
    return query.order_by(SkipRequest.created_at.desc(), SkipRequest.id.desc()).all()


def _skipped_assignments(request: SkipRequest):
    if request.prayer_slot_id is not None:
        assignment = request.prayer_slot
        return [assignment] if assignment is not None and assignment.is_held else []
    return assignments.held_by_user(request.user_id)


def decide(
    request_id: int,
    decision: str,
    admin_email: str,
    comment: str | None = None,
    now: datetime | None = None,
) -> SkipRequest:
    """Apply an admin decision and append its feed entry in the same transaction."""

    if decision not in (SKIP_APPROVED, SKIP_REJECTED):
        raise ValidationError("decision must be 'approved' or 'rejected'.")
    request = get_request(request_id)
    if request.is_terminal:
        raise StateError(f"Skip request {request.id} is already {request.status}.")
    now = now or now_utc()

    request.status = decision
    request.admin_comment = (comment or "").strip() or None
    request.processed_at = now
    request.processed_by = admin_email

    if decision == SKIP_APPROVED:
        for assignment in _skipped_assignments(request):
            assignments.apply_skip_window(assignment, now, request.skip_days)

    updates.notify_skip_decision(request, now=now)
    current_app.logger.info(
        "[SKIP-DECISION] id=%s user=%s status=%s by=%s",
        request.id,
        request.user_id,
        decision,
        admin_email,
    )
    return request


def approve(request_id: int, admin_email: str, comment: str | None = None, now=None):
    return decide(request_id, SKIP_APPROVED, admin_email, comment, now)


def reject(request_id: int, admin_email: str, comment: str | None = None, now=None):
    return decide(request_id, SKIP_REJECTED, admin_email, comment, now)
