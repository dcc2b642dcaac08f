# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/pharmacy/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, default roles with access lists, and the admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their role.
# - python -m flask users create --username admin --full-name "Admin" --email admin@farmacia.local --dni 12345678 --password "admin123" --role ADMINISTRADOR
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Role, User
from .services import users_service
from .validation import DuplicateError, ValidationError

MODULES = ("VENTAS", "CLIENTES", "PRODUCTOS", "USUARIOS", "DASHBOARD")

DEFAULT_ROLES = {
    "ADMINISTRADOR": set(MODULES),
    "VENDEDOR": {"VENTAS", "CLIENTES"},
    "ALMACEN": {"PRODUCTOS"},
}

DEFAULT_ADMIN = {
    "username": "admin",
    "fullName": "Administrador",
    "phone": "000000000",
    "email": "admin@farmacia.local",
    "dni": "00000000",
    "password": "admin123",
}


def _access_list(granted: set[str]) -> list[dict]:
    return [{"modulo": module, "acceso": module in granted} for module in MODULES]


def create_default_roles() -> list[Role]:
    """Create any missing default role; existing roles are left untouched."""
    created = []
    for name, granted in DEFAULT_ROLES.items():
        if db.session.query(Role).filter_by(name=name).first() is None:
            role = Role(name=name, accesos=_access_list(granted))
            db.session.add(role)
            created.append(role)
    db.session.commit()
    return created


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the back office: tables, default roles and the admin user.

    Default admin credentials are admin / admin123. Change them immediately.
    """
    click.echo("START Initializing pharmacy back office...")

    db.create_all()
    click.echo("PASS Schema ready")

    created = create_default_roles()
    roles = db.session.query(Role).order_by(Role.id).all()
    click.echo(f"PASS Roles: {', '.join(r.name for r in roles)} ({len(created)} new)")

    if db.session.query(User).filter_by(username=DEFAULT_ADMIN["username"]).first():
        click.echo(f"WARN  User '{DEFAULT_ADMIN['username']}' already exists, skipping...")
    else:
        admin_role = db.session.query(Role).filter_by(name="ADMINISTRADOR").first()
        try:
            users_service.create_user({**DEFAULT_ADMIN, "roleId": admin_role.id})
            click.echo(f"PASS Created user: {DEFAULT_ADMIN['username']} ({DEFAULT_ADMIN['email']})")
        except (ValidationError, DuplicateError) as e:
            click.echo(f"FAIL Failed to create admin user: {e}")

    click.echo("\nDONE Initialized. Default credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   {DEFAULT_ADMIN['username']} / {DEFAULT_ADMIN['password']}")


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
    click.echo("PASS Database reset. Run: python -m flask system init")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<32} {'DNI':<10} {'Role'}")
    click.echo("="*80)
    for user in users:
        role_name = user.role.name if user.role else "-"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<32} {user.dni:<10} {role_name}")
    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--phone', prompt=True, default='000000000', help='Phone')
@click.option('--email', prompt=True, help='Email address')
@click.option('--dni', prompt=True, help='National id (8 digits)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', prompt=True, help='Role name')
@with_appcontext
def create_user_cli(username, full_name, phone, email, dni, password, role):
    """Create a staff user."""
    role_obj = db.session.query(Role).filter_by(name=role.strip().upper()).first()
    if role_obj is None:
        click.echo(f"FAIL Role '{role}' not found. Run: python -m flask system init")
        return

    try:
        user = users_service.create_user({
            "username": username,
            "fullName": full_name,
            "phone": phone,
            "email": email,
            "dni": dni,
            "password": password,
            "roleId": role_obj.id,
        })
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        for err in e.errors:
            click.echo(f"   {err['field']}: {err['message']}")
        return
    except DuplicateError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user['username']} (ID: {user['id']}) with role '{role_obj.name}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
