# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/assetverse/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to assetverse (PowerShell: $env:FLASK_APP="assetverse").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default packages.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Packages:
# - python -m flask packages seed
#   Create or update the default packages (Basic, Standard, Premium).
# - python -m flask packages list
#
# Users:
# - python -m flask users list [--role hr]
# - python -m flask users set-limit hr@company.com 20
#   Override an HR's employee limit (support/refund cases).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Package, User, EmployeeMembership
from .models.accounts import VALID_ROLES


DEFAULT_PACKAGES = [
    {
        "name": "Basic",
        "employee_limit": 5,
        "price_cents": 500,
        "features": ["Asset Tracking", "Employee Management", "Basic Support"],
    },
    {
        "name": "Standard",
        "employee_limit": 10,
        "price_cents": 800,
        "features": ["All Basic features", "Advanced Analytics", "Priority Support"],
    },
    {
        "name": "Premium",
        "employee_limit": 20,
        "price_cents": 1500,
        "features": ["All Standard features", "Custom Branding", "24/7 Support"],
    },
]


def seed_packages() -> tuple[int, int]:
    """Insert missing default packages and refresh existing ones. Returns (created, updated)."""
    created = updated = 0
    for defaults in DEFAULT_PACKAGES:
        package = db.session.query(Package).filter_by(name=defaults["name"]).first()
        if package is None:
            db.session.add(Package(**defaults))
            created += 1
            continue
        for key, value in defaults.items():
            setattr(package, key, value)
        updated += 1
    db.session.commit()
    return created, updated


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables (if missing) and seed the default packages."""
    click.echo("START Initializing assetVerse...")
    db.create_all()
    created, updated = seed_packages()
    click.echo(f"PASS Packages: {created} created, {updated} refreshed")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to seed packages.")


@click.group('packages')
def packages_group():
    """Subscription package commands."""


@packages_group.command('seed')
@with_appcontext
def seed_packages_command():
    created, updated = seed_packages()
    click.echo(f"PASS Packages: {created} created, {updated} refreshed")


@packages_group.command('list')
@with_appcontext
def list_packages():
    packages = db.session.query(Package).order_by(Package.employee_limit.asc()).all()
    if not packages:
        click.echo("No packages found. Run 'python -m flask packages seed'.")
        return

    click.echo(f"{'ID':<5} {'Name':<12} {'Employees':<10} {'Price'}")
    for p in packages:
        click.echo(f"{p.id:<5} {p.name:<12} {p.employee_limit:<10} ${p.price_cents / 100:,.2f}")


@click.group('users')
def users_group():
    """User inspection commands."""


@users_group.command('list')
@click.option('--role', type=click.Choice(VALID_ROLES), help='Filter by role')
@with_appcontext
def list_users(role):
    """List users with role and seat usage."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Role':<10} {'Company':<25} {'Seats'}")
    click.echo("="*90)

    for user in users:
        seats = ""
        if user.is_hr:
            used = db.session.query(EmployeeMembership).filter_by(hr_email=user.email).count()
            seats = f"{used}/{user.employee_limit}"
        click.echo(f"{user.id:<5} {user.email:<35} {user.role:<10} {(user.company_name or ''):<25} {seats}")

    click.echo("="*90 + "\n")


@users_group.command('set-limit')
@click.argument('email')
@click.argument('limit', type=click.IntRange(min=0))
@with_appcontext
def set_limit(email, limit):
    """Set an HR's employee limit."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException(f"User not found: {email}")
    if not user.is_hr:
        raise click.ClickException(f"{email} is not an HR account")

    used = db.session.query(EmployeeMembership).filter_by(hr_email=user.email).count()
    if limit < used:
        click.echo(f"WARN {email} already has {used} employees; new hires stay blocked until some are removed")

    user.employee_limit = limit
    db.session.commit()
    click.echo(f"PASS {email} employee limit set to {limit}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(packages_group)
    app.cli.add_command(users_group)
