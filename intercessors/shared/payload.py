"""Request body helpers for the JSON endpoints."""

from __future__ import annotations

from datetime import date, datetime

from flask import request

from ..services.errors import ValidationError
from .time import parse_iso_datetime


def get_payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = request.form.to_dict() if request.form else {}
    return payload


def require_str(payload: dict, key: str) -> str:
    value = payload.get(key)
    if value is None or not str(value).strip():
        raise ValidationError(f"{key} is required.")
    return str(value).strip()


def optional_str(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_int(payload: dict, key: str) -> int:
    value = payload.get(key)
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer.")


def require_bool(value, key: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value in (0, 0.0):
            return False
        if value in (1, 1.0):
            return True
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    raise ValidationError(f"{key} must be true or false.")


def optional_datetime(payload: dict, key: str) -> datetime | None:
    raw = payload.get(key)
    if raw in (None, ""):
        return None
    try:
        return parse_iso_datetime(str(raw))
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 timestamp.")


def optional_date(payload: dict, key: str) -> date | None:
    raw = payload.get(key)
    if raw in (None, ""):
        return None
    try:
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError:
        raise ValidationError(f"{key} must be a YYYY-MM-DD date.")
