# storefront/services/checkout.py
"""
Settlement: turn a user's cart into an order.

The cart is priced again from live data (prices, stock and promotions may
have moved since the cart page was rendered). Each applied promotion's
free units are shared out over its lines, every line is checked against
stock for quantity + free share, and only then is anything written. Any
conflict rolls the whole thing back and leaves the cart untouched.
"""
from __future__ import annotations

from datetime import datetime

import structlog

from ..errors import EmptyCartError, StockConflictError, ValidationError
from ..model import Order, OrderDiscount, OrderItem
from ..utils.dates import utcnow
from ..utils.money import round_money
from .cart_service import shipping_fee_for
from .discount_engine import allocate_free_units, price_cart
from .pricing_types import FreeItems, PercentageOff, PricedCart
from .stores import CartRepository, CatalogStore, PromotionStore

log = structlog.get_logger(__name__)


def _validate_shipping(shipping: dict) -> dict:
    address = (shipping.get("shipping_address") or "").strip()
    phone = (shipping.get("shipping_phone") or "").strip()
    if not address or not phone:
        raise ValidationError("shipping_address and shipping_phone are required")
    return {
        "shipping_address": address,
        "shipping_phone": phone,
        "notes": (shipping.get("notes") or "").strip() or None,
    }


def check_stock(priced: PricedCart, shares: dict[int, int]) -> None:
    for item in priced.line_items:
        product = item.product
        needed = item.quantity + shares.get(item.id, 0)
        if product is None or not product.active:
            raise StockConflictError(item.product_id, product.name if product else None, 0, needed, inactive=True)
        if product.stock < needed:
            raise StockConflictError(product.id, product.name, product.stock, needed)


def _order_lines(priced: PricedCart, shares: dict[int, int]):
    for item in priced.line_items:
        yield OrderItem(
            product_id=item.product_id,
            name=item.product.name,
            unit_price=item.product.price,
            quantity=item.quantity,
            free_quantity=shares.get(item.id, 0),
            line_total=round_money(item.line_total),
        )


def _discount_records(priced: PricedCart):
    for applied in priced.applied_promotions:
        rule = applied.promotion
        reward = rule.reward
        yield OrderDiscount(
            promotion_id=rule.id,
            name=rule.name,
            type=rule.kind.value,
            min_quantity=rule.min_quantity,
            configured_free_quantity=reward.free_quantity if isinstance(reward, FreeItems) else None,
            discount_percentage=reward.discount_percentage if isinstance(reward, PercentageOff) else None,
            free_quantity=applied.free_quantity,
            discount_amount=applied.discount_amount,
            affected_product_ids=[i.product_id for i in applied.affected_items],
        )


def settle_order(session, user_id: int, pricing: PricedCart, shipping: dict) -> Order:
    """
    Persist `pricing` as an order for `user_id`. Runs inside the caller's
    transaction; the caller commits on success and rolls back on any error.
    """
    if not pricing.line_items:
        raise EmptyCartError()
    details = _validate_shipping(shipping)

    shares = allocate_free_units(pricing)
    check_stock(pricing, shares)

    catalog = CatalogStore(session)
    for item in pricing.line_items:
        needed = item.quantity + shares.get(item.id, 0)
        # conditional write; a concurrent checkout may have taken the last units since check_stock
        if not catalog.decrement_stock(item.product_id, needed):
            fresh = catalog.get(item.product_id)
            if fresh is not None:
                session.refresh(fresh)
            available = int(fresh.stock or 0) if fresh is not None else 0
            log.warning("stock_conflict", product_id=item.product_id, available=available, requested=needed)
            raise StockConflictError(item.product_id, item.product.name, available, needed)

    shipping_fee = shipping_fee_for(pricing.subtotal)
    order = Order(
        user_id=user_id,
        status="pending",
        subtotal=pricing.subtotal,
        total_discount=pricing.total_discount,
        final_total=pricing.final_total,
        shipping_fee=shipping_fee,
        total_amount=round_money(pricing.final_total + shipping_fee),
        **details,
    )
    order.items.extend(_order_lines(pricing, shares))
    order.discounts.extend(_discount_records(pricing))
    session.add(order)

    CartRepository(session).clear(user_id)
    session.flush()
    return order


def checkout(session, user_id: int, shipping: dict, now: datetime | None = None) -> Order:
    """Re-price the cart from live data and settle it in one transaction."""
    now = now or utcnow()
    try:
        catalog = CatalogStore(session)
        lines = CartRepository(session).fetch_lines(user_id, catalog)
        if not lines:
            raise EmptyCartError()
        promotions = PromotionStore(session).fetch_effective(now)
        pricing = price_cart(lines, promotions)
        order = settle_order(session, user_id, pricing, shipping)
        session.commit()
    except Exception:
        session.rollback()
        raise

    log.info(
        "order_settled",
        order_id=order.id,
        user_id=user_id,
        subtotal=str(order.subtotal),
        total_discount=str(order.total_discount),
        final_total=str(order.final_total),
        promotions=[d.promotion_id for d in order.discounts],
    )
    return order
