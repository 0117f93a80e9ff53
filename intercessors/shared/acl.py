from __future__ import annotations

from typing import Any

from ..app import db
from ..models import AdminUser


def admin_for_email(email: str | None) -> AdminUser | None:
    if not email:
        return None
    return (
        AdminUser.query.filter(
            db.func.lower(AdminUser.email) == email.strip().lower(),
            AdminUser.is_active.is_(True),
        )
        .first()
    )


def is_admin_email(email: str | None) -> bool:
    return admin_for_email(email) is not None


def owns_assignment(identity: Any, assignment: Any) -> bool:
    return bool(identity and assignment and assignment.user_id == identity.user_id)
