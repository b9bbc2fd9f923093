from decimal import Decimal

from storefront.services.discount_engine import allocate_free_units, free_shares, price_cart
from storefront.services.pricing_types import (
    AppliedPromotion,
    AppliesTo,
    FreeItems,
    LineItem,
    PercentageOff,
    ProductSnapshot,
    Promotion,
)


def _line(lid, qty, price="1000", pid=None):
    pid = pid or lid
    snap = ProductSnapshot(id=pid, price=Decimal(price), stock=100, active=True, category_id=1)
    return LineItem(id=lid, product_id=pid, quantity=qty, product=snap)


def _applied(free_qty, *items):
    rule = Promotion(id=1, name="free", min_quantity=1, reward=FreeItems(1))
    return AppliedPromotion(promotion=rule, affected_items=tuple(items), free_quantity=free_qty, discount_amount=Decimal("0"))


def test_shares_follow_quantity_proportions():
    shares = free_shares(_applied(3, _line(1, 1), _line(2, 2)))
    assert shares == {1: 1, 2: 2}


def test_shares_are_floored_and_residual_left_unassigned():
    shares = free_shares(_applied(3, _line(1, 1), _line(2, 1)))
    assert shares == {1: 1, 2: 1}
    assert sum(shares.values()) == 2


def test_engine_output_feeds_allocation():
    items = [_line(1, 1), _line(2, 1)]
    rule = Promotion(id=9, name="buy 2 get 3", min_quantity=2, reward=FreeItems(3))
    priced = price_cart(items, [rule])

    assert priced.applied_promotions[0].free_quantity == 3
    assert allocate_free_units(priced) == {1: 1, 2: 1}


def test_allocation_sums_over_promotions_and_ignores_percentage():
    items = [_line(1, 2, pid=10), _line(2, 4, pid=20)]
    promos = [
        Promotion(id=1, name="all", min_quantity=3, reward=FreeItems(1)),
        Promotion(id=2, name="p20", min_quantity=2, reward=FreeItems(1),
                  applies_to=AppliesTo.PRODUCT, applies_to_id=20),
        Promotion(id=3, name="pct", min_quantity=1, reward=PercentageOff(Decimal("5"))),
    ]
    priced = price_cart(items, promos)

    # promo 1: 6 units -> 2 free, split 2:4 -> floor(2*2/6)=0, floor(2*4/6)=1
    # promo 2: 4 units on line 2 -> 2 free, all to line 2
    assert allocate_free_units(priced) == {1: 0, 2: 3}


def test_no_applied_promotions_means_no_free_units():
    priced = price_cart([_line(1, 1)], [])
    assert allocate_free_units(priced) == {}
