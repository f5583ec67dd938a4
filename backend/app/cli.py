# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/app/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` for migrated deployments).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users with role and approval status.
# - python -m flask users create --username admin --email admin@sjpos.local --password "Password123" --role admin
#   Create a user (prompts if options are omitted). Admins are approved on creation.
#
# Maintenance:
# - python -m flask sessions cleanup --days 30
#   Delete expired/revoked sessions older than the retention window.

import click
from flask.cli import with_appcontext

from .errors import APIError
from .extensions import db
from .models import User, ROLES
from .services import auth_service, session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db_command():
    """Create any missing tables."""
    db.create_all()
    click.echo("Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset.')
@with_appcontext
def reset_db_command(yes: bool):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        raise click.UsageError("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("Database reset.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users_command():
    users = db.session.query(User).order_by(User.role.asc(), User.username.asc()).all()
    if not users:
        click.echo("No users.")
        return
    for u in users:
        status = "approved" if u.is_approved else "pending"
        active = "" if u.is_active else " (inactive)"
        click.echo(f"{u.id}  {u.username:<20} {u.email:<30} {u.role:<8} {status}{active}")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default='cashier', show_default=True)
@click.option('--approve', is_flag=True, help='Approve a cashier immediately.')
@with_appcontext
def create_user_command(username: str, email: str, password: str, role: str, approve: bool):
    try:
        user = auth_service.create_user(username=username, email=email, password=password, role=role)
        if approve and not user.is_approved:
            auth_service.approve_cashier(user.id)
    except APIError as e:
        raise click.ClickException(e.message)
    click.echo(f"Created {role} {user.username} ({user.id}).")


@click.group('sessions')
def sessions_group():
    """Session maintenance commands."""


@sessions_group.command('cleanup')
@click.option('--days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_command(days: int):
    deleted = session_service.cleanup_expired_sessions(days=days)
    click.echo(f"Deleted {deleted} session(s).")


def register_commands(app) -> None:
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sessions_group)
