# Overview: flask CLI groups for bootstrapping the POS and inspecting stores, users and resets.

# backend/storepos/cli.py
# Usage, from backend/ with FLASK_APP=wsgi.py:
#
#   flask system init --admin-email admin@pos.local --admin-password "secret1"
#       creates the admin store and its first administrator; re-running is a no-op
#   flask system reset-db --yes
#       drops and recreates every table (local development only)
#
#   flask stores list
#   flask stores create --name "downtown"
#
#   flask users list [--store-id 1]
#   flask users create --store-id 2 --name "Jane Doe" --email jane@pos.local --password "secret1" --role storeManager
#
#   flask resets list

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, ROLES, ROLE_ADMIN
from .services import auth_service, password_reset_service, store_service
from .validation import ServiceError


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(users_group)
    app.cli.add_command(resets_group)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-name', default='Administrator', help='Display name of the first admin')
@click.option('--admin-email', prompt=True, help='Email of the first admin')
@click.option('--admin-password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password of the first admin')
@with_appcontext
def init_system(admin_name, admin_email, admin_password):
    """
    Initialize the admin store and its first administrator.

    Safe to re-run: existing store/admin are left untouched.
    """
    click.echo("START Initializing POS system...")

    store = store_service.ensure_admin_store()
    click.echo(f"PASS Admin store: {store.name} (ID: {store.id})")

    existing = db.session.query(User).filter_by(store_id=store.id, email=admin_email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  Admin '{existing.email}' already exists, skipping...")
        return

    try:
        user = auth_service.create_user(
            name=admin_name,
            email=admin_email,
            password=admin_password,
            store_id=store.id,
            role=ROLE_ADMIN,
        )
    except ServiceError as e:
        raise click.ClickException(f"Failed to create admin: {e.message}")

    click.echo(f"PASS Created admin: {user.email} (ID: {user.id})")
    click.echo("DONE POS system initialized.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    Drop every table and recreate the schema: stores, users, products,
    sales and reset requests are all lost.
    """
    if not yes:
        click.confirm("WARN Every store, user, product and sale will be deleted. Continue?", abort=True)

    db.drop_all()
    db.create_all()
    click.echo("PASS Schema recreated. Run 'flask system init' to create the admin store.")


@click.group('stores')
def stores_group():
    """Store inspection and management commands."""


@stores_group.command('list')
@with_appcontext
def list_stores_cli():
    """List all stores, the admin store included."""
    stores = store_service.list_stores(include_admin_store=True)
    if not stores:
        click.echo("No stores found.")
        return

    click.echo(f"{'ID':<5} {'Name':<40} {'Users':<6} {'Products'}")
    for store in stores:
        click.echo(f"{store.id:<5} {store.name:<40} {len(store.users):<6} {len(store.products)}")


@stores_group.command('create')
@click.option('--name', required=True, help='Store name (unique)')
@with_appcontext
def create_store_cli(name):
    try:
        store = store_service.create_store(name)
    except ServiceError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created store: {store.name} (ID: {store.id})")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--store-id', type=int, required=True, help='Store ID')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default='cashier', show_default=True, help='Role')
@with_appcontext
def create_user_cli(store_id, name, email, password, role):
    """Create a user in a store (email must be unique within the store)."""
    try:
        user = auth_service.create_user(
            name=name,
            email=email,
            password=password,
            store_id=store_id,
            role=role,
        )
    except ServiceError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.email} with role '{user.role}' in store {user.store_id}")


@users_group.command('list')
@click.option('--store-id', type=int, help='Filter by store ID')
@with_appcontext
def list_users(store_id):
    """List users with role and active status."""
    query = db.session.query(User)
    if store_id:
        query = query.filter_by(store_id=store_id)
    users = query.order_by(User.store_id.asc(), User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Store':<6} {'Name':<20} {'Email':<30} {'Active':<8} {'Role'}")
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.store_id:<6} {user.name:<20} {user.email:<30} {active_str:<8} {user.role}")


@click.group('resets')
def resets_group():
    """Password reset queue inspection."""


@resets_group.command('list')
@with_appcontext
def list_resets():
    """List pending password reset requests."""
    pending = password_reset_service.list_pending()
    if not pending:
        click.echo("No pending reset requests.")
        return
    for request in pending:
        click.echo(f"user={request.user_id:<5} {request.user.email:<30} store={request.user.store_id}")
