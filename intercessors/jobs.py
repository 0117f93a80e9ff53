"""Scheduled maintenance shared by ``worker.py`` and the ``manage.py`` commands.

Each job runs inside an application context, commits its own transaction and
rolls back (and re-raises) on failure.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from flask import current_app

from .app import db
from .services import assignments, campaigns
from .shared.time import now_utc


def refresh_program_status(now: datetime | None = None) -> str | None:
    try:
        program = campaigns.refresh_status(now)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("[JOB] refresh_program_status failed")
        raise
    return program.program_status if program else None


def schedule_next_monthly(offset: int = 1, admin_email: str | None = None) -> int:
    try:
        program = campaigns.schedule_next_monthly(offset, admin_email=admin_email)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("[JOB] schedule_next_monthly failed")
        raise
    return program.id


def sweep_missed(on: date | None = None, now: datetime | None = None) -> int:
    """Record misses for the previous day unless ``on`` is given."""

    now = now or now_utc()
    on = on or (now - timedelta(days=1)).date()
    try:
        assignments.restore_expired_skips(now)
        missed = assignments.sweep_missed(on, now=now)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("[JOB] sweep_missed failed")
        raise
    current_app.logger.info("[JOB] sweep_missed date=%s missed=%s", on, missed)
    return missed


def restore_expired_skips(now: datetime | None = None) -> int:
    try:
        restored = assignments.restore_expired_skips(now)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("[JOB] restore_expired_skips failed")
        raise
    return restored
