from flask import request, url_for
from sqlalchemy import asc, desc

from . import bp
from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..model import Product
from ..utils.api import ok
from ..utils.decorators import admin_required
from ..utils.parse import parse_bool, parse_decimal
from ..utils.text import slugify


# ---------- helpers ----------
def _parse_opt_int(v, field):
    if v is None or (isinstance(v, str) and v.strip().lower() in {"", "null"}):
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def _parse_price(v):
    price = parse_decimal(v, "price")
    if price < 0:
        raise ValidationError("price must be >= 0")
    return price


def _parse_stock(v):
    stock = _parse_opt_int(v, "stock") or 0
    if stock < 0:
        raise ValidationError("stock must be >= 0")
    return stock


def _apply_payload(product: Product, data: dict, *, partial: bool):
    if not partial or "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        product.name = name
        if not data.get("slug"):
            product.slug = slugify(name)
    if data.get("slug"):
        product.slug = slugify(data["slug"])
    if not partial or "price" in data:
        product.price = _parse_price(data.get("price"))
    if not partial or "stock" in data:
        product.stock = _parse_stock(data.get("stock"))
    if "description" in data:
        product.description = data.get("description")
    if "image_url" in data:
        product.image_url = data.get("image_url")
    if "is_active" in data or not partial:
        product.is_active = parse_bool(data.get("is_active"), True)
    if "is_featured" in data:
        product.is_featured = parse_bool(data.get("is_featured"))
    if "category_id" in data or not partial:
        product.category_id = _parse_opt_int(data.get("category_id"), "category_id")
    if "brand_id" in data or not partial:
        product.brand_id = _parse_opt_int(data.get("brand_id"), "brand_id")


def _get_or_404(pid: int) -> Product:
    p = db.session.get(Product, pid)
    if not p:
        raise NotFoundError("product not found")
    return p


# ---------- routes ----------
@bp.get("")
def list_products():
    """
    Query params:
      category_id, brand_id -> exact match
      sort                  -> id, -id, name, -name, price, -price (default newest first)
    """
    q = Product.query.filter(Product.is_active.is_(True))
    category_id = _parse_opt_int(request.args.get("category_id"), "category_id")
    brand_id = _parse_opt_int(request.args.get("brand_id"), "brand_id")
    if category_id is not None:
        q = q.filter(Product.category_id == category_id)
    if brand_id is not None:
        q = q.filter(Product.brand_id == brand_id)

    sort_map = {
        "id": asc(Product.id), "-id": desc(Product.id),
        "name": asc(Product.name), "-name": desc(Product.name),
        "price": asc(Product.price), "-price": desc(Product.price),
    }
    q = q.order_by(sort_map.get((request.args.get("sort") or "").strip(), desc(Product.id)))
    return ok("products", {"items": [p.as_api() for p in q.all()]})


@bp.get("/<int:pid>")
def get_product(pid):
    return ok("Product fetched", {"product": _get_or_404(pid).as_api()})


@bp.post("")
@admin_required
def create_product():
    product = Product()
    _apply_payload(product, request.get_json(silent=True) or {}, partial=False)
    db.session.add(product)
    db.session.commit()

    resp = ok("Product created", {"product": product.as_api()}, status=201)
    resp.headers["Location"] = url_for(f"{bp.name}.get_product", pid=product.id)
    return resp


@bp.put("/<int:pid>")
@bp.patch("/<int:pid>")
@admin_required
def update_product(pid):
    product = _get_or_404(pid)
    _apply_payload(product, request.get_json(silent=True) or {}, partial=True)
    db.session.commit()
    return ok("Product updated", {"product": product.as_api()})


@bp.delete("/<int:pid>")
@admin_required
def delete_product(pid):
    # soft delete: carts and promotions pointing at it simply stop matching
    product = _get_or_404(pid)
    product.is_active = False
    db.session.commit()
    return ok("Product deactivated", {"product": product.as_api()})
