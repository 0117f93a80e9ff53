from datetime import datetime, timedelta, timezone

import pytest

from intercessors.app import db
from intercessors.services import updates
from intercessors.services.errors import NotFoundError, ValidationError


pytestmark = pytest.mark.smoke

NOW = datetime(2025, 6, 1, 12, tzinfo=timezone.utc)


def _post(title, minutes_ago=0, **kwargs):
    row = updates.post_update(
        title, f"{title} body", now=NOW - timedelta(minutes=minutes_ago), **kwargs
    )
    db.session.commit()
    return row


def test_feed_order_pinned_then_priority_then_newest(app):
    _post("old normal", minutes_ago=30)
    _post("new normal", minutes_ago=5)
    _post("critical", minutes_ago=60, priority="critical")
    _post("low", minutes_ago=1, priority="low")
    _post("pinned low", minutes_ago=90, priority="low", pin_to_top=True)

    titles = [row.title for row in updates.active_updates(now=NOW)]
    assert titles == ["pinned low", "critical", "new normal", "old normal", "low"]


def test_expired_and_inactive_rows_are_hidden(app):
    _post("day old", minutes_ago=60 * 25, expiry="1day")
    _post("still fresh", minutes_ago=60 * 23, expiry="1day")
    _post("forever", minutes_ago=60 * 24 * 400)
    hidden = _post("withdrawn")
    updates.deactivate(hidden.id)
    db.session.commit()

    titles = {row.title for row in updates.active_updates(now=NOW)}
    assert titles == {"still fresh", "forever"}


def test_addressed_entries_only_reach_their_user(app):
    _post("everyone")
    _post("just u1", user_id="u1")

    assert {r.title for r in updates.active_updates(now=NOW)} == {"everyone"}
    assert {r.title for r in updates.active_updates(now=NOW, user_id="u1")} == {
        "everyone",
        "just u1",
    }
    assert {r.title for r in updates.active_updates(now=NOW, user_id="u2")} == {
        "everyone"
    }


@pytest.mark.parametrize(
    "kwargs",
    [{"priority": "urgent"}, {"expiry": "2days"}],
)
def test_invalid_choices_are_rejected(app, kwargs):
    with pytest.raises(ValidationError):
        updates.post_update("Title", "Body", **kwargs)


def test_title_and_description_required(app):
    with pytest.raises(ValidationError):
        updates.post_update("", "Body")


def test_deactivate_unknown_update(app):
    with pytest.raises(NotFoundError):
        updates.deactivate(404)
