from __future__ import annotations

import hmac
from dataclasses import dataclass
from functools import wraps

from flask import abort, current_app, request, session

from .acl import admin_for_email

INGEST_TOKEN_HEADER = "X-Ingest-Token"


@dataclass(frozen=True)
class Identity:
    """Who the external identity provider says is signed in."""

    user_id: str
    email: str
    is_admin: bool = False
    role: str | None = None


def current_identity() -> Identity | None:
    user_id = session.get("user_id")
    email = session.get("user_email")
    if not user_id or not email:
        return None
    admin = admin_for_email(email)
    return Identity(
        user_id=user_id,
        email=email,
        is_admin=admin is not None,
        role=admin.role if admin else None,
    )


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        identity = current_identity()
        if identity is None:
            abort(401)
        return fn(*args, **kwargs, current_user=identity)

    return wrapper


def admin_required(fn):
    """Allow active rows of ``admin_users`` only."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        identity = current_identity()
        if identity is None:
            abort(401)
        if not identity.is_admin:
            abort(403)
        return fn(*args, **kwargs, current_user=identity)

    return wrapper


def _valid_ingest_token() -> bool:
    expected = current_app.config.get("ATTENDANCE_INGEST_TOKEN")
    supplied = request.headers.get(INGEST_TOKEN_HEADER, "")
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected, supplied)


def ingest_allowed(fn):
    """Admins, or the meeting poller presenting the shared ingest token."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        if _valid_ingest_token():
            return fn(*args, **kwargs, current_user=None)
        identity = current_identity()
        if identity is None:
            abort(401)
        if not identity.is_admin:
            abort(403)
        return fn(*args, **kwargs, current_user=identity)

    return wrapper
