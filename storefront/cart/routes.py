# storefront/cart/routes.py
from __future__ import annotations
from flask import request, g

from . import bp
from ..extensions import db
from ..errors import ValidationError
from ..services.cart_service import cart_view, price_user_cart
from ..services.stores import CartRepository
from ..utils.api import ok
from ..utils.decorators import login_required


def _quantity(data, default=None) -> int:
    raw = data.get("quantity", default)
    if raw is None:
        raise ValidationError("quantity is required")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("quantity must be an integer")


def _priced(msg, status=200):
    return ok(msg, cart_view(price_user_cart(db.session, g.principal.user_id)), status=status)


# ---- endpoints -------------------------------------------------------------

@bp.get("")
@login_required
def get_cart():
    return _priced("cart")


@bp.post("/items")
@login_required
def add_item():
    """
    Body: { "product_id": int, "quantity": int (default 1) }
    Adding a product that is already in the cart sums the quantities.
    """
    data = request.get_json(silent=True) or {}
    try:
        product_id = int(data.get("product_id"))
    except (TypeError, ValueError):
        raise ValidationError("product_id is required")
    qty = _quantity(data, 1)

    CartRepository(db.session).add(g.principal.user_id, product_id, qty)
    db.session.commit()
    return _priced("item added", status=201)


@bp.put("/items/<int:item_id>")
@bp.patch("/items/<int:item_id>")
@login_required
def update_item(item_id: int):
    """
    Body: { "quantity": int }
    quantity <= 0 removes the line.
    """
    data = request.get_json(silent=True) or {}
    qty = _quantity(data)

    item = CartRepository(db.session).update(g.principal.user_id, item_id, qty)
    db.session.commit()
    return _priced("item updated" if item else "item removed")


@bp.delete("/items/<int:item_id>")
@login_required
def remove_item(item_id: int):
    CartRepository(db.session).remove(g.principal.user_id, item_id)
    db.session.commit()
    return _priced("item removed")


@bp.delete("/items")
@login_required
def clear_cart_items():
    CartRepository(db.session).clear(g.principal.user_id)
    db.session.commit()
    return _priced("all items removed")
