# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/slabworks/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--company "Shop Name"]
#   Idempotent bootstrap: creates the first company and an admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --company-id 1 --name "Jane" --email jane@shop.local --password "secret-pass" [--admin]
#
# Sales:
# - python -m flask sales unsell 42
#   Cancel a sale and release its slabs, sinks and faucets.
#
# Inventory:
# - python -m flask inventory availability [--company-id 1]
#   Per stone: uncut slabs and slabs still available to sell.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Company, User
from .services.auth_service import create_user, PasswordValidationError
from .services import inventory_service
from .services.contract_service import Contract, ContractError


DEFAULT_ADMIN_EMAIL = "admin@slabworks.local"
DEFAULT_ADMIN_PASSWORD = "Password123!"


def _resolve_company(company_id):
    if company_id:
        return db.session.query(Company).filter_by(id=company_id).first()
    return db.session.query(Company).order_by(Company.id).first()


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--company', 'company_name', default='Default Company', help='Company name')
@with_appcontext
def init_system(company_name):
    """
    Create the first company and an admin user if none exist.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing slabworks...")

    company = db.session.query(Company).order_by(Company.id).first()
    if not company:
        company = Company(name=company_name, is_active=True)
        db.session.add(company)
        db.session.commit()
        click.echo(f"PASS Created company: {company.name} (ID: {company.id})")
    else:
        click.echo(f"PASS Using existing company: {company.name} (ID: {company.id})")

    existing = db.session.query(User).filter_by(company_id=company.id, email=DEFAULT_ADMIN_EMAIL).first()
    if existing:
        click.echo(f"WARN  User '{DEFAULT_ADMIN_EMAIL}' already exists, skipping...")
    else:
        create_user(
            name="Admin",
            email=DEFAULT_ADMIN_EMAIL,
            password=DEFAULT_ADMIN_PASSWORD,
            company_id=company.id,
            is_admin=True,
        )
        click.echo(f"PASS Created admin: {DEFAULT_ADMIN_EMAIL} / {DEFAULT_ADMIN_PASSWORD}")

    click.echo("DONE Slabworks initialized")


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

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--company-id', type=int, help='Company ID (uses the first company if not specified)')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--admin', 'is_admin', is_flag=True, help='Grant admin rights')
@with_appcontext
def create_user_cli(company_id, name, email, password, is_admin):
    company = _resolve_company(company_id)
    if not company:
        click.echo("FAIL No company found. Run 'python -m flask system init' first.")
        return

    try:
        user = create_user(
            name=name,
            email=email,
            password=password,
            company_id=company.id,
            is_admin=is_admin,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.email} (ID: {user.id})")
    click.echo(f"     Company: {company.name} (ID: {company.id})")


@click.group('sales')
def sales_group():
    """Sales contract maintenance."""


@sales_group.command('unsell')
@click.argument('sale_id', type=int)
@with_appcontext
def unsell_cli(sale_id):
    """Cancel a sale and return its units to stock."""
    try:
        contract = Contract.from_sales_id(sale_id)
        canceled = contract.unsell()
    except ContractError as e:
        raise click.ClickException(str(e))

    if canceled:
        click.echo(f"PASS Sale {sale_id} canceled, units released")
    else:
        click.echo(f"WARN  Sale {sale_id} was already canceled")


@click.group('inventory')
def inventory_group():
    """Inventory inspection."""


@inventory_group.command('availability')
@click.option('--company-id', type=int, help='Company ID (uses the first company if not specified)')
@with_appcontext
def availability_cli(company_id):
    company = _resolve_company(company_id)
    if not company:
        raise click.ClickException("No company found")

    rows = inventory_service.stone_availability(company.id)
    if not rows:
        click.echo("No stones found")
        return

    click.echo(f"{'Stone':<32} {'Amount':>8} {'Available':>10}")
    for row in rows:
        click.echo(f"{row['stone']['name']:<32} {row['amount']:>8} {row['available']:>10}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(inventory_group)
