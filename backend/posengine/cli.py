# Overview: Flask CLI command groups for bootstrap, inspection, and catalog maintenance.

# backend/posengine/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (prefer `flask db upgrade` in production).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users (identity itself lives upstream; this only registers sale owners):
# - python -m flask users create --username cashier --email cashier@pos.local
# - python -m flask users list
#
# Catalog:
# - python -m flask products create --sku MUG-01 --name "Mug" --price 9.99 --stock 10
# - python -m flask products restock 1 --quantity 5
# - python -m flask products list

import click
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from .errors import ServiceError
from .extensions import db
from .models import Product, User
from .money import format_money, to_money
from .services import products_service
from .validation import enforce_rules_product


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """Sale owner registration."""


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@with_appcontext
def create_user_command(username, email):
    user = User(username=username.strip(), email=email.strip(), is_active=True)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        click.echo(f"FAIL User '{username}' or email '{email}' already exists")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.username} ({user.email}) ID: {user.id}")


@users_group.command('list')
@with_appcontext
def list_users():
    for user in db.session.query(User).order_by(User.id.asc()).all():
        status = "active" if user.is_active else "inactive"
        click.echo(f"{user.id:>5}  {user.username:<20} {user.email:<30} {status}")


@click.group('products')
def products_group():
    """Catalog maintenance."""


@products_group.command('create')
@click.option('--sku', required=True)
@click.option('--name', required=True)
@click.option('--price', required=True, help='Decimal price, e.g. 9.99')
@click.option('--stock', default=0, type=click.IntRange(min=0))
@click.option('--category', default=None)
@with_appcontext
def create_product_command(sku, name, price, stock, category):
    try:
        patch = {
            "sku": sku.strip(),
            "name": name.strip(),
            "price": to_money(price),
            "stock_quantity": stock,
            "category": category,
        }
        enforce_rules_product(patch)
        product = products_service.create_product(patch=patch)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created product {product.sku} (ID: {product.id}) price={format_money(product.price)} stock={product.stock_quantity}")


@products_group.command('restock')
@click.argument('product_id', type=int)
@click.option('--quantity', required=True, type=click.IntRange(min=1))
@with_appcontext
def restock_product_command(product_id, quantity):
    try:
        product = products_service.restock_product(product_id=product_id, quantity=quantity)
    except ServiceError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS {product.sku} stock is now {product.stock_quantity}")


@products_group.command('list')
@with_appcontext
def list_products():
    for p in db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all():
        click.echo(f"{p.id:>5}  {p.sku:<16} {p.name:<30} {format_money(p.price):>10} {p.stock_quantity:>6}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
