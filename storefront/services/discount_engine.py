# storefront/services/discount_engine.py
"""
Cart discount engine.

price_cart() is the only entry point the rest of the app needs: it takes a
snapshot of cart lines (already joined with product data) plus the
promotions that are in force, and returns a PricedCart. It reads nothing
from the database and keeps no state, so the cart page and checkout can
call it as often as they like and get identical answers for identical
input.

Rules, in evaluation order per promotion:
  1) scope: which active lines the promotion targets (all/category/brand/product)
  2) threshold: in-scope quantity must reach min_quantity, else nothing
  3) effect:
       buy_x_get_y_free     -> floor(qty / min) * free units, valued at the
                               cheapest in-scope unit prices
       buy_x_get_percentage -> percentage of the whole in-scope total
  4) aggregation: every promotion is applied independently and the
     discounts are summed; the payable total never drops below zero
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from ..utils.money import ZERO, round_money
from .pricing_types import (
    AppliedPromotion,
    AppliesTo,
    FreeItems,
    LineItem,
    PercentageOff,
    PricedCart,
    Promotion,
)

log = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


# ---- validity ------------------------------------------------------------

def is_effective(promotion: Promotion, now: datetime) -> bool:
    if not promotion.is_active:
        return False
    if promotion.start_date and now < promotion.start_date:
        return False
    if promotion.end_date and now > promotion.end_date:
        return False
    return True


def promotion_problem(promotion: Promotion) -> Optional[str]:
    """Return why a promotion cannot be evaluated, or None if it is well-formed."""
    if promotion.min_quantity is None or promotion.min_quantity < 1:
        return "min_quantity must be >= 1"
    reward = promotion.reward
    if isinstance(reward, FreeItems):
        if reward.free_quantity is None or reward.free_quantity < 1:
            return "free_quantity must be >= 1"
    elif isinstance(reward, PercentageOff):
        pct = reward.discount_percentage
        if pct is None or not (1 <= pct <= 100):
            return "discount_percentage must be between 1 and 100"
    else:
        return "unknown promotion type"
    if promotion.applies_to != AppliesTo.ALL and promotion.applies_to_id is None:
        return f"applies_to={promotion.applies_to.value} needs applies_to_id"
    return None


# ---- eligibility -----------------------------------------------------------

@dataclass(frozen=True)
class Eligibility:
    items: Tuple[LineItem, ...]
    total_quantity: int
    fired: bool


def in_scope(promotion: Promotion, item: LineItem) -> bool:
    product = item.product
    if product is None or not product.active:
        return False
    target = promotion.applies_to
    if target == AppliesTo.ALL:
        return True
    if target == AppliesTo.CATEGORY:
        return product.category_id == promotion.applies_to_id
    if target == AppliesTo.BRAND:
        return product.brand_id == promotion.applies_to_id
    if target == AppliesTo.PRODUCT:
        return product.id == promotion.applies_to_id
    return False


def resolve_eligibility(promotion: Promotion, items: Iterable[LineItem]) -> Eligibility:
    matched = tuple(i for i in items if in_scope(promotion, i))
    total_qty = sum(i.quantity for i in matched)
    if total_qty < promotion.min_quantity:
        return Eligibility(items=(), total_quantity=0, fired=False)
    return Eligibility(items=matched, total_quantity=total_qty, fired=True)


# ---- effect ----------------------------------------------------------------

def cheapest_units_total(items: Sequence[LineItem], units: int) -> Decimal:
    """
    Sum of the `units` cheapest unit prices across items, counting each
    unit of quantity separately. Walks lines in ascending price order
    instead of expanding every unit into a list.
    """
    remaining = units
    total = ZERO
    for item in sorted(items, key=lambda i: i.product.price):
        if remaining <= 0:
            break
        take = min(item.quantity, remaining)
        total += item.product.price * take
        remaining -= take
    return total


def compute_effect(promotion: Promotion, eligibility: Eligibility) -> Tuple[int, Decimal]:
    """(free_quantity, discount_amount) granted by a promotion that fired."""
    reward = promotion.reward
    if isinstance(reward, FreeItems):
        eligible_sets = eligibility.total_quantity // promotion.min_quantity
        free_qty = eligible_sets * reward.free_quantity
        return free_qty, round_money(cheapest_units_total(eligibility.items, free_qty))

    affected_total = sum((i.line_total for i in eligibility.items), ZERO)
    return 0, round_money(affected_total * reward.discount_percentage / HUNDRED)


# ---- aggregation -----------------------------------------------------------

def apply_promotion(promotion: Promotion, items: Sequence[LineItem]) -> Optional[AppliedPromotion]:
    eligibility = resolve_eligibility(promotion, items)
    if not eligibility.fired:
        return None
    free_qty, amount = compute_effect(promotion, eligibility)
    if free_qty == 0 and amount == ZERO:
        return None
    return AppliedPromotion(
        promotion=promotion,
        affected_items=eligibility.items,
        free_quantity=free_qty,
        discount_amount=amount,
    )


def price_cart(
    line_items: Iterable[LineItem],
    promotions: Iterable[Promotion],
    *,
    now: Optional[datetime] = None,
) -> PricedCart:
    """
    Price a cart snapshot.

    `promotions` is expected to be already filtered to the effective ones;
    pass `now` to have the engine apply the active/date-window filter
    itself. Malformed promotions are skipped and logged, never raised.
    """
    items = tuple(line_items)

    unavailable = tuple(i for i in items if not i.priceable)
    for i in unavailable:
        log.info("cart_line_unavailable", line_item_id=i.id, product_id=i.product_id)

    subtotal = round_money(sum((i.line_total for i in items), ZERO))

    applied: List[AppliedPromotion] = []
    for promotion in promotions:
        problem = promotion_problem(promotion)
        if problem:
            log.warning("promotion_skipped", promotion_id=promotion.id, reason=problem)
            continue
        if now is not None and not is_effective(promotion, now):
            continue
        result = apply_promotion(promotion, items)
        if result is not None:
            applied.append(result)

    total_discount = round_money(sum((a.discount_amount for a in applied), ZERO))
    final_total = max(ZERO, round_money(subtotal - total_discount))

    return PricedCart(
        line_items=items,
        subtotal=subtotal,
        applied_promotions=tuple(applied),
        total_discount=total_discount,
        final_total=final_total,
        unavailable_items=unavailable,
    )


# ---- settlement helpers ----------------------------------------------------

def free_shares(applied: AppliedPromotion) -> Dict[int, int]:
    """
    Split a promotion's free units over the lines it touched, in proportion
    to each line's quantity. Each share is floored; the leftover from
    flooring is not handed to anyone.
    """
    total_qty = applied.affected_quantity
    if applied.free_quantity <= 0 or total_qty <= 0:
        return {}
    return {
        item.id: (applied.free_quantity * item.quantity) // total_qty
        for item in applied.affected_items
    }


def allocate_free_units(priced: PricedCart) -> Dict[int, int]:
    """Free units per line item id, summed over every applied promotion."""
    shares: Dict[int, int] = {}
    for applied in priced.applied_promotions:
        for item_id, share in free_shares(applied).items():
            shares[item_id] = shares.get(item_id, 0) + share
    return shares
