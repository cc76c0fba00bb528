# Overview: Flask CLI command groups for bootstrap and admin accounts.

# backend/supplydesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to supplydesk (PowerShell: $env:FLASK_APP="supplydesk").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system seed
#   Create the default superadmin, two sample schools and the global categories.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Admin accounts:
# - python -m flask admins list
#   List all admin accounts.
# - python -m flask admins create --username ops --email ops@example.com --password "secret1" --role admin
#   Create an admin (prompts if options are omitted).

from decimal import Decimal

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Admin, Category, School, ROLES, ROLE_ADMIN, ROLE_SUPERADMIN
from .services.auth_service import create_admin

DEFAULT_CATEGORIES = (
    ("Books", "Textbooks and reference books"),
    ("Stationery", "Notebooks, pens, pencils and other supplies"),
    ("Uniforms", "School uniforms and accessories"),
    ("Bags", "School bags and backpacks"),
    ("Sports Equipment", "Sports and physical education items"),
)

SAMPLE_SCHOOLS = (
    {
        "name": "St. Mary's High School",
        "code": "SMHS001",
        "address_city": "Mumbai",
        "address_state": "Maharashtra",
        "principal_name": "Dr. Sarah Johnson",
        "commission_rate": Decimal("10"),
    },
    {
        "name": "Delhi Public School",
        "code": "DPS002",
        "address_city": "Delhi",
        "address_state": "Delhi",
        "principal_name": "Mr. Rajesh Kumar",
        "commission_rate": Decimal("12"),
    },
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet."""
    click.echo("BUILD  Creating tables...")
    db.create_all()
    click.echo("PASS Schema ready. Run 'python -m flask system seed' for starter data.")


@system_group.command('seed')
@with_appcontext
def seed_system():
    """
    Seed starter data. Safe to run more than once.

    Creates:
    - Superadmin from SEED_SUPERADMIN_EMAIL / SEED_SUPERADMIN_PASSWORD
    - Sample schools SMHS001 (10%) and DPS002 (12%) owned by the superadmin
    - Global categories (no owner, visible to every admin)

    SECURITY: Change the seeded password immediately outside development!
    """
    db.create_all()

    email = current_app.config["SEED_SUPERADMIN_EMAIL"].lower()
    admin = db.session.query(Admin).filter_by(email=email).first()
    if admin is None:
        result = create_admin(
            db.session,
            username="superadmin",
            email=email,
            password=current_app.config["SEED_SUPERADMIN_PASSWORD"],
            role=ROLE_SUPERADMIN,
        )
        if not result.ok:
            raise click.ClickException(result.message)
        admin = db.session.query(Admin).filter_by(email=email).one()
        click.echo(f"PASS Created superadmin: {admin.email}")
    else:
        click.echo(f"SKIP Superadmin exists: {admin.email}")

    for values in SAMPLE_SCHOOLS:
        if db.session.query(School.id).filter_by(code=values["code"]).first():
            click.echo(f"SKIP School exists: {values['code']}")
            continue
        db.session.add(School(**values, created_by=admin.id))
        click.echo(f"PASS Created school: {values['code']} ({values['commission_rate']}%)")

    for name, description in DEFAULT_CATEGORIES:
        if db.session.query(Category.id).filter_by(name=name).first():
            continue
        db.session.add(Category(name=name, description=description))
        click.echo(f"PASS Created category: {name}")

    db.session.commit()
    click.echo("DONE Seed complete.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' to add starter data.")


@click.group('admins')
def admins_group():
    """Admin account commands."""


@admins_group.command('list')
@with_appcontext
def list_admins():
    """List all admin accounts."""
    admins = db.session.query(Admin).order_by(Admin.id.asc()).all()

    if not admins:
        click.echo("No admins found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Role':<12} {'Active'}")
    click.echo("=" * 80)
    for admin in admins:
        click.echo(
            f"{admin.id:<5} {admin.username:<20} {admin.email:<30} {admin.role:<12} "
            f"{'yes' if admin.is_active else 'no'}"
        )
    click.echo("=" * 80 + "\n")


@admins_group.command('create')
@click.option('--username', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), default=ROLE_ADMIN, show_default=True)
@with_appcontext
def create_admin_command(username, email, password, role):
    """Create an admin account."""
    result = create_admin(db.session, username=username, email=email, password=password, role=role)
    if not result.ok:
        raise click.ClickException(result.message)
    click.echo(f"PASS Created {role}: {result.data['email']} (ID: {result.data['id']})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
