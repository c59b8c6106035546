# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/farmledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Farm management (MULTI-TENANT):
# - python -m flask farms list
#   List all farms with owner and member count.
# - python -m flask farms register-admin
#   Register an admin together with a new farm (prompts for the profile).
# - python -m flask farms seed-defaults --farm-id 1
#   Add any missing default product types and customers to a farm.
#
# User inspection/bootstrap:
# - python -m flask users list [--farm-id 1]
#   List users with role and farm.
# - python -m flask users create --name "Nguyen Van B" --phone 0900000002 --email b@example.com --role staff
#   Create a staff (or plain) account with no farm; the farm owner attaches it.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Farm, User
from .services import auth_service, seed_service
from .validation import ValidationError


def _echo_validation_errors(exc: ValidationError) -> None:
    for field_name, messages in exc.errors.items():
        for message in messages:
            click.echo(f"FAIL {field_name}: {message}")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask farms register-admin' to onboard a farm.")


@click.group('farms')
def farms_group():
    """Farm (tenant) management commands."""


@farms_group.command('list')
@with_appcontext
def list_farms():
    """List all farms."""
    farms = db.session.query(Farm).order_by(Farm.id.asc()).all()

    if not farms:
        click.echo("No farms found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Status':<10} {'Owner':<20} {'Members'}")
    click.echo("="*80)

    for farm in farms:
        member_count = db.session.query(User).filter_by(farm_id=farm.id).count()
        owner_name = farm.owner.name if farm.owner else '-'
        click.echo(f"{farm.id:<5} {farm.name:<30} {farm.status:<10} {owner_name:<20} {member_count}")

    click.echo("="*80 + "\n")


@farms_group.command('register-admin')
@click.option('--name', prompt=True, help='Admin full name')
@click.option('--phone', prompt=True, help='Admin phone (login identifier)')
@click.option('--email', prompt=True, help='Admin email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--farm-name', prompt=True, help='Farm name')
@click.option('--farm-address', prompt=True, help='Farm address')
@click.option('--farm-phone', prompt=True, help='Farm phone')
@click.option('--farm-description', default=None, help='Farm description')
@with_appcontext
def register_admin_cli(name, phone, email, password, farm_name, farm_address, farm_phone, farm_description):
    """
    Register an admin and create their farm.

    Seeds the default product types and customers for the new farm.
    """
    try:
        user, farm = auth_service.register_admin({
            "name": name,
            "phone": phone,
            "email": email,
            "password": password,
            "password_confirmation": password,
            "farm_name": farm_name,
            "farm_address": farm_address,
            "farm_phone": farm_phone,
            "farm_description": farm_description,
        })
    except ValidationError as e:
        _echo_validation_errors(e)
        raise SystemExit(1)

    click.echo(f"PASS Created admin '{user.name}' (ID: {user.id}) with farm '{farm.name}' (ID: {farm.id})")


@farms_group.command('seed-defaults')
@click.option('--farm-id', type=int, required=True, help='Farm ID')
@with_appcontext
def seed_defaults_cli(farm_id):
    """Add the default product types and customers that a farm is missing."""
    farm = db.session.get(Farm, farm_id)
    if not farm:
        click.echo(f"FAIL Farm ID {farm_id} not found")
        raise SystemExit(1)

    created = seed_service.seed_farm_defaults(farm.id, skip_existing=True)
    db.session.commit()

    click.echo(
        f"PASS Seeded farm '{farm.name}': "
        f"{created['product_types']} product types, {created['customers']} customers"
    )


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--farm-id', type=int, help='Filter by farm')
@with_appcontext
def list_users(farm_id):
    """List users with role and farm."""
    query = db.session.query(User)
    if farm_id:
        query = query.filter_by(farm_id=farm_id)
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Phone':<15} {'Role':<8} {'Farm'}")
    click.echo("="*80)

    for user in users:
        click.echo(f"{user.id:<5} {user.name:<25} {user.phone:<15} {user.role:<8} {user.farm_id or '-'}")

    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--name', prompt=True, help='Full name')
@click.option('--phone', prompt=True, help='Phone (login identifier)')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['staff', 'user']), default='staff', help='Role')
@with_appcontext
def create_user_cli(name, phone, email, password, role):
    """
    Create a staff or plain account with no farm.

    Farm owners attach staff with POST /api/farms/<id>/staff.
    """
    try:
        user = auth_service.create_user(name=name, phone=phone, email=email, password=password, role=role)
    except ValidationError as e:
        _echo_validation_errors(e)
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.name} ({user.phone}) with role '{user.role}' (ID: {user.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(farms_group)
    app.cli.add_command(users_group)
