# storefront/services/cart_service.py
from datetime import datetime

from flask import current_app

from ..utils.dates import utcnow
from ..utils.money import D, ZERO, Money, to_string_money
from .discount_engine import price_cart
from .pricing_types import PricedCart
from .stores import CartRepository, CatalogStore, PromotionStore


def shipping_fee_for(subtotal: Money) -> Money:
    """Flat fee, waived once the cart subtotal is over the free-shipping threshold."""
    threshold = D(current_app.config.get("FREE_SHIPPING_THRESHOLD", "100000"))
    fee = D(current_app.config.get("SHIPPING_FEE", "10000"))
    return ZERO if subtotal > threshold else fee


def price_user_cart(session, user_id: int, now: datetime | None = None) -> PricedCart:
    """Fetch the user's cart and the promotions in force, then run the engine over them."""
    now = now or utcnow()
    catalog = CatalogStore(session)
    lines = CartRepository(session).fetch_lines(user_id, catalog)
    promotions = PromotionStore(session).fetch_effective(now)
    return price_cart(lines, promotions)


def cart_view(priced: PricedCart) -> dict:
    shipping = shipping_fee_for(priced.subtotal) if priced.line_items else ZERO
    return {
        **priced.as_api(),
        "shipping_fee": to_string_money(shipping),
        "amount_due": to_string_money(priced.final_total + shipping),
        "item_count": sum(i.quantity for i in priced.line_items),
        "currency": current_app.config.get("CURRENCY_SYMBOL", "Rp"),
    }
