# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# - Set FLASK_APP to wsgi.py (or use: flask --app stockroom ...).
#
# System bootstrap/repair:
# - flask system init-db
#   Create all tables (idempotent).
# - flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - flask users create --email admin@stockroom.local --password "Password123" --full-name "Admin" --role admin
# - flask users list
#
# Inventory:
# - flask stock low
#   List products below their minimum stock level.
#
# Maintenance:
# - flask notifications purge-read
#   Delete all read notifications.
# - flask sessions cleanup
#   Delete expired and revoked session tokens.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, VALID_ROLES
from .services import auth_service, inventory_service, notification_service, session_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """Drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--full-name', prompt=True)
@click.option('--role', type=click.Choice(VALID_ROLES), default='user', show_default=True)
@with_appcontext
def create_user_cli(email, password, full_name, role):
    """Create a user."""
    try:
        user = auth_service.create_user(email=email, password=password, full_name=full_name, role=role)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return
    click.echo(f"{'ID':<5} {'Email':<40} {'Role':<8} {'Name'}")
    for u in users:
        click.echo(f"{u.id:<5} {u.email:<40} {u.role:<8} {u.full_name}")


@click.group('stock')
def stock_group():
    """Inventory inspection."""


@stock_group.command('low')
@with_appcontext
def low_stock():
    """List products below their minimum stock level."""
    products = inventory_service.list_low_stock_products()
    if not products:
        click.echo("No low-stock products.")
        return
    click.echo(f"{'ID':<5} {'SKU':<20} {'Qty':>6} {'Min':>6}  {'Name'}")
    for p in products:
        click.echo(f"{p.id:<5} {p.sku:<20} {p.quantity:>6} {p.min_stock_level:>6}  {p.name}")


@click.group('notifications')
def notifications_group():
    """Notification feed maintenance."""


@notifications_group.command('purge-read')
@with_appcontext
def purge_read():
    deleted = notification_service.purge_read()
    click.echo(f"PASS Deleted {deleted} read notifications")


@click.group('sessions')
def sessions_group():
    """Session token maintenance."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} expired or revoked sessions")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stock_group)
    app.cli.add_command(notifications_group)
    app.cli.add_command(sessions_group)
