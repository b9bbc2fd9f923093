# storefront/order/routes.py
from flask import request, g

from . import bp
from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..model import Order, ORDER_STATUSES
from ..services.checkout import checkout
from ..utils.api import ok
from ..utils.decorators import admin_required, login_required


@bp.post("/checkout")
@login_required
def checkout_cart():
    """
    Body: { "shipping_address": str, "shipping_phone": str, "notes": str? }
    Re-prices the cart from live data, then writes the order, its lines and
    discount audit rows, takes stock and empties the cart, all or nothing.
    """
    order = checkout(db.session, g.principal.user_id, request.get_json(silent=True) or {})
    resp = ok("order created", {"order": order.as_api()}, status=201)
    resp.headers["X-Order-Id"] = str(order.id)
    return resp


@bp.get("")
@login_required
def list_orders():
    """
    Query params:
      - status=pending|packed|shipped|delivered|cancelled
      - scope=all   (admin only: every customer's orders)
    """
    q = Order.query
    if not (request.args.get("scope") == "all" and g.principal.is_admin):
        q = q.filter(Order.user_id == g.principal.user_id)

    status = request.args.get("status")
    if status:
        q = q.filter(Order.status == status)

    q = q.order_by(Order.created_at.desc(), Order.id.desc())
    return ok("orders", {"items": [o.as_api() for o in q.all()]})


@bp.get("/<int:order_id>")
@login_required
def get_order(order_id: int):
    o = db.session.get(Order, order_id)
    if not o or (o.user_id != g.principal.user_id and not g.principal.is_admin):
        raise NotFoundError("order not found")
    return ok("order", {"order": o.as_api()})


@bp.patch("/<int:order_id>/status")
@admin_required
def update_status(order_id: int):
    """Body: { "status": str, "tracking_number": str? }"""
    o = db.session.get(Order, order_id)
    if not o:
        raise NotFoundError("order not found")

    data = request.get_json(silent=True) or {}
    status = (data.get("status") or "").strip().lower()
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(ORDER_STATUSES)}")

    o.status = status
    if "tracking_number" in data:
        o.tracking_number = (data.get("tracking_number") or "").strip() or None
    db.session.commit()
    return ok("Order status updated", {"order": o.as_api()})
