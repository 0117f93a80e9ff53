from __future__ import annotations


class IntercessionError(Exception):
    """Base class for request-scoped domain failures."""

    status_code = 400


class ValidationError(IntercessionError, ValueError):
    """Raised when input fails a constraint (ranges, malformed times)."""

    status_code = 400


class NotFoundError(IntercessionError, LookupError):
    """Raised when an assignment, request, template or program is unknown."""

    status_code = 404


class ConflictError(IntercessionError):
    """Raised when a uniqueness rule would be broken."""

    status_code = 409


class SlotUnavailable(ConflictError):
    """Raised when the requested time range is already held."""

    def __init__(self, slot_time: str):
        super().__init__(f"The {slot_time} slot is already taken.")
        self.slot_time = slot_time


class StateError(IntercessionError):
    """Raised when a transition is not allowed from the current state."""

    status_code = 409


class ForbiddenError(IntercessionError, PermissionError):
    """Raised when the caller may not act on the target record."""

    status_code = 403
