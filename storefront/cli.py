# storefront/cli.py
from pathlib import Path

import click
from flask.cli import with_appcontext
import pandas as pd
from werkzeug.security import generate_password_hash

from .extensions import db
from .model import Product, User
from .errors import ValidationError
from .utils.parse import parse_decimal
from .utils.text import slugify

PRODUCT_COLUMNS = ["Name", "Slug", "Price", "Stock", "Active", "Category ID", "Brand ID"]


def _read_table(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".xlsx":
        return pd.read_excel(path)
    return pd.read_csv(path)


def _write_table(df: pd.DataFrame, path: Path) -> None:
    if path.suffix.lower() == ".xlsx":
        df.to_excel(path, index=False)
    else:
        df.to_csv(path, index=False)


def _opt_int(v):
    return None if pd.isna(v) else int(v)


def _price(v, line: int):
    try:
        price = parse_decimal(v, "Price")
    except ValidationError as e:
        db.session.rollback()
        raise click.ClickException(f"line {line}: {e.message}")
    if price < 0:
        db.session.rollback()
        raise click.ClickException(f"line {line}: Price must be >= 0")
    return price


def _as_bool(v) -> bool:
    if pd.isna(v):
        return True
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "yes", "y"}
    return bool(v)


@click.command("create-admin")
@with_appcontext
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
def create_admin(email, password, name):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo("Email already exists"); return
    u = User(email=email, full_name=name, password_hash=generate_password_hash(password), role="admin")
    db.session.add(u); db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")


@click.command("init-db")
@with_appcontext
def init_db():
    db.create_all()
    click.echo("Database tables created")


@click.command("import-products")
@with_appcontext
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_products(path):
    """Import products from a .csv or .xlsx sheet."""
    df = _read_table(path)
    df.columns = df.columns.str.strip()

    missing = [c for c in ("Name", "Price") if c not in df.columns]
    if missing:
        raise click.ClickException(f"Missing required columns: {', '.join(missing)}")

    count = 0
    for idx, row in df.iterrows():
        name = str(row["Name"]).strip()
        slug = row.get("Slug")
        db.session.add(Product(
            name=name,
            slug=slugify(slug if isinstance(slug, str) and slug.strip() else name),
            price=_price(row["Price"], idx + 2),
            stock=_opt_int(row.get("Stock")) or 0,
            is_active=_as_bool(row.get("Active")),
            category_id=_opt_int(row.get("Category ID")),
            brand_id=_opt_int(row.get("Brand ID")),
        ))
        count += 1
    db.session.commit()
    click.echo(f"{count} products imported from {path}")


@click.command("export-products")
@with_appcontext
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def export_products(path):
    """Export all products to a .csv or .xlsx sheet."""
    rows = [{
        "ID": p.id,
        "Name": p.name,
        "Slug": p.slug,
        "Price": str(p.price),
        "Stock": p.stock,
        "Active": p.is_active,
        "Category ID": p.category_id,
        "Brand ID": p.brand_id,
    } for p in Product.query.order_by(Product.id.asc()).all()]
    df = pd.DataFrame(rows, columns=["ID", *PRODUCT_COLUMNS])
    _write_table(df, path)
    click.echo(f"{len(rows)} products exported to {path}")


def register_cli(app):
    for command in (create_admin, init_db, import_products, export_products):
        app.cli.add_command(command)
