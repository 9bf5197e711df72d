import os
from decimal import Decimal
import click
from flask import current_app
from flask.cli import with_appcontext
from flask_migrate import upgrade as alembic_upgrade, stamp as alembic_stamp, migrate as alembic_migrate
from sqlalchemy import select
from models import db
from models.user import User
from models.product import Product
from quickbuy.auth.permissions import ROLE_SCOPES
from quickbuy.utils.db import transactional


def _assert_safe_for_upgrade():
    # Prevent accidental prod upgrades unless explicitly allowed
    env = (current_app.config.get("ENV") or "").lower()
    app_env = (os.getenv("APP_ENV") or "").lower()
    if app_env == "production" or env == "production":
        if (os.getenv("ALLOW_DB_MIGRATIONS") or "").lower() not in ("1", "true", "yes"):
            raise click.ClickException("Refusing to run DB migration in production without ALLOW_DB_MIGRATIONS=true")


@click.command("db-migrate-safe")
@click.option("-m", "--message", default="auto migration", help="Migration message")
@with_appcontext
def db_migrate_safe(message):
    """Generate a new migration script from current models."""
    alembic_migrate(message=message)
    click.echo("Migration script generated.")


@click.command("db-upgrade-safe")
@with_appcontext
def db_upgrade_safe():
    """Apply migrations to the configured database."""
    _assert_safe_for_upgrade()
    alembic_upgrade()
    click.echo("Database upgraded.")


@click.command("db-stamp-safe")
@click.option("--revision", default="head", help="Revision to stamp, default 'head'")
@with_appcontext
def db_stamp_safe(revision):
    """Mark the database at a given revision without running migrations."""
    _assert_safe_for_upgrade()
    alembic_stamp(revision)
    click.echo(f"Database stamped at {revision}.")


@click.command("create-user")
@click.argument("username")
@click.option("--role", type=click.Choice(sorted(ROLE_SCOPES)), default="buyer", show_default=True)
@click.option("--email", default=None)
@click.option("--address", default=None)
@click.password_option()
@with_appcontext
def create_user(username, role, email, address, password):
    """Create an account with a hashed password."""
    if db.session.execute(select(User).where(User.username == username)).scalar_one_or_none():
        raise click.ClickException(f"User {username} already exists")
    user = User(username=username, role=role, email=email, address=address)
    user.set_password(password)
    with transactional("Failed to create user"):
        db.session.add(user)
    click.echo(f"Created {role} {username} (id {user.id}).")


@click.command("seed-product")
@click.argument("name")
@click.option("--price", type=Decimal, required=True)
@click.option("--stock", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--seller", "seller_username", required=True, help="Username of the selling account")
@click.option("--category", default=None)
@with_appcontext
def seed_product(name, price, stock, seller_username, category):
    """Add a product to the catalog."""
    seller = db.session.execute(select(User).where(User.username == seller_username)).scalar_one_or_none()
    if seller is None:
        raise click.ClickException(f"Unknown seller {seller_username}")
    product = Product(seller_id=seller.id, name=name, price=price, quantity=stock, category=category)
    with transactional("Failed to add product"):
        db.session.add(product)
    click.echo(f"Added product {name} (id {product.id}).")


def register_cli(app):
    app.cli.add_command(db_migrate_safe)
    app.cli.add_command(db_upgrade_safe)
    app.cli.add_command(db_stamp_safe)
    app.cli.add_command(create_user)
    app.cli.add_command(seed_product)
