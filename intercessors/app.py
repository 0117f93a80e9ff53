import logging
import os

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import inspect

db = SQLAlchemy()

from . import models  # noqa: E402,F401
from .services.errors import IntercessionError  # noqa: E402


def create_app():
    app = Flask(__name__)
    app.secret_key = os.getenv("SECRET_KEY", "dev")

    DB_USER = os.getenv("DB_USER", "intercessors")
    DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
    DB_HOST = os.getenv("DB_HOST", "db")
    DB_NAME = os.getenv("DB_NAME", "intercessors")
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}",
    )

    app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SLOT_TIMEZONE"] = os.getenv("SLOT_TIMEZONE", "UTC")
    app.config["MISSED_RELEASE_THRESHOLD"] = int(
        os.getenv("MISSED_RELEASE_THRESHOLD", "3")
    )
    app.config["MAX_SLOTS_PER_USER"] = int(os.getenv("MAX_SLOTS_PER_USER", "1"))
    app.config["MAX_SKIP_DAYS"] = int(os.getenv("MAX_SKIP_DAYS", "30"))
    app.config["DEFAULT_ADMIN_EMAIL"] = os.getenv(
        "DEFAULT_ADMIN_EMAIL", "admin@globalintercessors.org"
    )
    app.config["ATTENDANCE_INGEST_TOKEN"] = os.getenv("ATTENDANCE_INGEST_TOKEN")

    db.init_app(app)

    @app.errorhandler(IntercessionError)
    def handle_domain_error(exc: IntercessionError):
        db.session.rollback()
        app.logger.info(
            "[API-ERROR] kind=%s status=%s detail=%s",
            type(exc).__name__,
            exc.status_code,
            exc,
        )
        return jsonify({"ok": False, "error": str(exc)}), exc.status_code

    @app.errorhandler(401)
    def handle_unauthorized(exc):
        return jsonify({"ok": False, "error": "Sign in required."}), 401

    @app.errorhandler(403)
    def handle_forbidden(exc):
        return jsonify({"ok": False, "error": "Administrator access required."}), 403

    @app.errorhandler(404)
    def handle_not_found(exc):
        return jsonify({"ok": False, "error": "Not found."}), 404

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return "OK", 200

    @app.get("/api/whoami")
    def whoami():
        from .shared.rbac import current_identity

        identity = current_identity()
        if identity is None:
            return jsonify({"ok": True, "user_id": None, "email": None, "is_admin": False})
        return jsonify(
            {
                "ok": True,
                "user_id": identity.user_id,
                "email": identity.email,
                "is_admin": identity.is_admin,
            }
        )

    from .routes.auth import bp as auth_bp
    from .routes.slots import bp as slots_bp
    from .routes.attendance import bp as attendance_bp
    from .routes.skip_requests import bp as skip_requests_bp
    from .routes.fasting import bp as fasting_bp
    from .routes.updates import bp as updates_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(slots_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(skip_requests_bp)
    app.register_blueprint(fasting_bp)
    app.register_blueprint(updates_bp)

    with app.app_context():
        if not os.getenv("FLASK_SKIP_SEED"):
            seed_slot_catalog_safely()
            seed_templates_safely()

    return app


def seed_slot_catalog_safely() -> None:
    """Seed the 48 half-hour slots if the catalog table exists."""

    from .services.slots import seed_catalog

    try:
        insp = inspect(db.engine)
        if "available_slots" not in insp.get_table_names():
            return
        added = seed_catalog()
        if added:
            db.session.commit()
            logging.info("Seeded %d prayer slots.", added)
    except Exception as exc:  # pragma: no cover - defensive
        db.session.rollback()
        logging.error("Slot catalog seed failed: %s", exc)


def seed_templates_safely() -> None:
    """Seed default fasting templates that are missing by name."""

    from .services.campaigns import seed_templates

    try:
        insp = inspect(db.engine)
        if "fasting_event_templates" not in insp.get_table_names():
            return
        added = seed_templates()
        if added:
            db.session.commit()
            logging.info("Seeded %d fasting templates.", added)
    except Exception:  # pragma: no cover - defensive
        db.session.rollback()
        logging.exception("seed_templates_safely failed")
