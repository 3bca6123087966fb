# Overview: Flask CLI command groups for bootstrap and maintenance.

# backend/billing/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Use `flask db upgrade` for migrations.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email owner@example.com --password "Password123" --name "Shop Owner"
#   Create a user account (prompts if options are omitted).
#
# Invoices:
# - python -m flask invoices mark-overdue [--shop-id 1]
#   Move PENDING/PARTIAL invoices past their due date to OVERDUE.

import click
from flask.cli import with_appcontext

from .errors import BillingError
from .extensions import db
from .services.auth_service import create_user
from .services.invoice_service import mark_overdue_invoices


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User account commands."""


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--name', 'full_name', prompt='Full name')
@click.option('--phone', 'phone_number', default=None)
@with_appcontext
def create_user_cmd(email, password, full_name, phone_number):
    """Create a user account."""
    try:
        user = create_user(email=email, password=password, full_name=full_name, phone_number=phone_number)
    except BillingError as e:
        db.session.rollback()
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.email} (ID: {user.id})")


@click.group('invoices')
def invoices_group():
    """Invoice maintenance commands."""


@invoices_group.command('mark-overdue')
@click.option('--shop-id', type=int, default=None, help='Limit the sweep to one shop')
@with_appcontext
def mark_overdue_cmd(shop_id):
    """Move unpaid invoices past their due date to OVERDUE."""
    moved = mark_overdue_invoices(shop_id=shop_id)
    click.echo(f"PASS Marked {moved} invoice(s) overdue")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(invoices_group)
