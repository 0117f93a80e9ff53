from intercessors.app import create_app, db

from datetime import date

from flask_migrate import Migrate
from flask.cli import FlaskGroup
import click
from sqlalchemy import func

from intercessors import jobs
from intercessors.models import AdminUser
from intercessors.services import campaigns, slots
from intercessors.shared.time import fmt_dt, parse_iso_datetime


migrate = Migrate()


def create_intercessors_app():
    app = create_app()
    migrate.init_app(app, db)
    return app


cli = FlaskGroup(create_app=create_intercessors_app)


@cli.command("seed_slots")
def seed_slots():
    """Insert any missing half-hour catalog slots."""
    added = slots.seed_catalog()
    db.session.commit()
    click.echo(f"Added {added} slot(s)")


@cli.command("seed_templates")
def seed_templates():
    added = campaigns.seed_templates()
    db.session.commit()
    click.echo(f"Added {added} template(s)")


@cli.command("add_admin")
@click.option("--email", "email", required=True)
@click.option("--role", "role", default="admin", show_default=True)
def add_admin(email: str, role: str):
    """Grant admin access to an identity-provider email."""
    email = email.strip().lower()
    admin = (
        db.session.query(AdminUser)
        .filter(func.lower(AdminUser.email) == email)
        .one_or_none()
    )
    if admin:
        admin.role = role
        admin.is_active = True
        click.echo(f"Updated {email}")
    else:
        db.session.add(AdminUser(email=email, role=role, is_active=True))
        click.echo(f"Added {email}")
    db.session.commit()


@cli.command("create_program")
@click.option("--template", "template_name", required=True)
@click.option("--start", "start", default=None, help="ISO-8601 start (UTC)")
@click.option("--admin-email", "admin_email", default=None)
def create_program(template_name: str, start: str | None, admin_email: str | None):
    start_date = parse_iso_datetime(start) if start else None
    program = campaigns.create_from_template(
        template_name, start_date, admin_email=admin_email
    )
    db.session.commit()
    click.echo(
        f"Program {program.id} '{program.program_title}' starts {fmt_dt(program.start_date)}"
    )


@cli.command("refresh_program_status")
def refresh_program_status():
    status = jobs.refresh_program_status()
    click.echo(status or "No active program")


@cli.command("schedule_next_monthly")
@click.option("--offset", "offset", default=1, type=int, show_default=True)
@click.option("--admin-email", "admin_email", default=None)
def schedule_next_monthly(offset: int, admin_email: str | None):
    program_id = jobs.schedule_next_monthly(offset, admin_email)
    click.echo(f"Scheduled program {program_id}")


@cli.command("sweep_missed")
@click.option("--date", "on", default=None, help="YYYY-MM-DD (defaults to yesterday)")
def sweep_missed(on: str | None):
    missed = jobs.sweep_missed(date.fromisoformat(on) if on else None)
    click.echo(f"missed={missed}")


@cli.command("restore_skips")
def restore_skips():
    restored = jobs.restore_expired_skips()
    click.echo(f"restored={restored}")


if __name__ == "__main__":
    cli()
