import os
import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from intercessors.app import (  # noqa: E402
    create_app,
    db,
    seed_slot_catalog_safely,
    seed_templates_safely,
)
from intercessors.models import AdminUser  # noqa: E402


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


@pytest.fixture
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    os.environ.pop("FLASK_SKIP_SEED", None)
    application = create_app()
    application.config["TESTING"] = True
    application.config["ATTENDANCE_INGEST_TOKEN"] = "ingest-secret"
    with application.app_context():
        db.create_all()
        seed_slot_catalog_safely()
        seed_templates_safely()
        yield application
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    row = AdminUser(email="admin@example.com", role="admin", is_active=True)
    db.session.add(row)
    db.session.commit()
    return row

