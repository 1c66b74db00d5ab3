import json

import click
from flask.cli import with_appcontext

from . import db
from .constants import UserRole
from .errors import ValidationError
from .models import GlobalProduct, Order, Shop, ShopProduct, User
from .services import accounts

DEFAULT_EXPORT_PATH = "db_export.json"


def register_commands(app):
    app.cli.add_command(init_db)
    app.cli.add_command(drop_db)
    app.cli.add_command(create_admin)
    app.cli.add_command(check_data)
    app.cli.add_command(export_data)
    app.cli.add_command(import_data)


@click.command("init-db")
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("Database tables created.")


@click.command("drop-db")
@with_appcontext
@click.confirmation_option(prompt="This deletes every table. Continue?")
def drop_db():
    db.drop_all()
    click.echo("Database and all tables deleted.")


@click.command("create-admin")
@with_appcontext
@click.argument("email")
@click.argument("password")
@click.option("--name", default="Administrator", show_default=True)
def create_admin(email, password, name):
    """Create an admin account; registration never hands out this role."""
    try:
        user = accounts.register_user(
            email=email,
            password=password,
            full_name=name,
            role=UserRole.ADMIN,
            allowed_roles=(UserRole.ADMIN,),
        )
    except ValidationError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"Admin {user.email} created.")


@click.command("check-data")
@with_appcontext
def check_data():
    """Print row counts and a sample of each main table."""
    click.echo("=== Row Counts ===")
    for label, model in (
        ("Users", User),
        ("Shops", Shop),
        ("Global products", GlobalProduct),
        ("Shop products", ShopProduct),
        ("Orders", Order),
    ):
        click.echo(f"{label}: {model.query.count()}")

    click.echo("\n=== Shops ===")
    for shop in Shop.query.order_by(Shop.created_at).limit(10):
        state = "approved" if shop.is_approved else "pending"
        click.echo(f"ID: {shop.id}, Name: {shop.name}, {state}, active={shop.is_active}")

    click.echo("\n=== Latest Orders ===")
    for order in Order.query.order_by(Order.created_at.desc()).limit(5):
        click.echo(f"ID: {order.id}, Shop: {order.shop.name}, Status: {order.status}, Total: {order.total_amount}")


@click.command("export-data")
@with_appcontext
@click.argument("path", default=DEFAULT_EXPORT_PATH)
def export_data(path):
    """Dump every table to a JSON file."""
    data = {}
    for table in db.metadata.sorted_tables:
        rows = db.session.execute(db.text(f"SELECT * FROM {table.name}")).mappings().all()
        data[table.name] = [dict(row) for row in rows]

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4, default=str)
    click.echo(f"Exported {sum(len(rows) for rows in data.values())} rows to {path}.")


@click.command("import-data")
@with_appcontext
@click.argument("path", default=DEFAULT_EXPORT_PATH)
def import_data(path):
    """Load a JSON dump written by export-data."""
    db.create_all()
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    imported = 0
    # Parents first so foreign keys resolve
    for table in db.metadata.sorted_tables:
        rows = data.get(table.name, [])
        if not rows:
            continue
        keys = list(rows[0].keys())
        columns = ", ".join(keys)
        placeholders = ", ".join(f":{key}" for key in keys)
        query = db.text(f"INSERT INTO {table.name} ({columns}) VALUES ({placeholders})")
        for row in rows:
            db.session.execute(query, row)
        imported += len(rows)

    db.session.commit()
    click.echo(f"Imported {imported} rows from {path}.")
