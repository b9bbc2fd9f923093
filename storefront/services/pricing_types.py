# storefront/services/pricing_types.py
"""
Value types the discount engine works on.

Everything here is a frozen dataclass so a priced cart can be compared,
hashed and re-computed without any state leaking between evaluations.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union

from ..utils.money import D, ZERO, to_string_money


class AppliesTo(str, Enum):
    ALL = "all"
    CATEGORY = "category"
    BRAND = "brand"
    PRODUCT = "product"


class PromotionKind(str, Enum):
    FREE_ITEMS = "buy_x_get_y_free"
    PERCENTAGE_OFF = "buy_x_get_percentage"


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    price: Decimal
    stock: int
    active: bool
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    name: str = ""


@dataclass(frozen=True)
class LineItem:
    """A cart line joined with the product it points at (None when the product is gone)."""
    id: int
    product_id: int
    quantity: int
    product: Optional[ProductSnapshot] = None

    @property
    def priceable(self) -> bool:
        return self.product is not None and self.product.active

    @property
    def line_total(self) -> Decimal:
        if not self.priceable:
            return ZERO
        return self.product.price * self.quantity


@dataclass(frozen=True)
class FreeItems:
    free_quantity: int

    kind = PromotionKind.FREE_ITEMS


@dataclass(frozen=True)
class PercentageOff:
    discount_percentage: Decimal

    kind = PromotionKind.PERCENTAGE_OFF


Reward = Union[FreeItems, PercentageOff]


@dataclass(frozen=True)
class Promotion:
    id: int
    name: str
    min_quantity: int
    reward: Reward
    applies_to: AppliesTo = AppliesTo.ALL
    applies_to_id: Optional[int] = None
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @property
    def kind(self) -> PromotionKind:
        return self.reward.kind

    def describe(self) -> str:
        if isinstance(self.reward, FreeItems):
            return f"Buy {self.min_quantity}, Get {self.reward.free_quantity} Free"
        return f"Buy {self.min_quantity}, Get {D(self.reward.discount_percentage).normalize():f}% Off"


@dataclass(frozen=True)
class AppliedPromotion:
    promotion: Promotion
    affected_items: Tuple[LineItem, ...]
    free_quantity: int
    discount_amount: Decimal

    @property
    def affected_quantity(self) -> int:
        return sum(i.quantity for i in self.affected_items)

    def as_api(self):
        return {
            "promotion_id": self.promotion.id,
            "name": self.promotion.name,
            "type": self.promotion.kind.value,
            "label": self.promotion.describe(),
            "affected_item_ids": [i.id for i in self.affected_items],
            "free_quantity": self.free_quantity,
            "discount_amount": to_string_money(self.discount_amount),
        }


@dataclass(frozen=True)
class PricedCart:
    line_items: Tuple[LineItem, ...]
    subtotal: Decimal
    applied_promotions: Tuple[AppliedPromotion, ...]
    total_discount: Decimal
    final_total: Decimal
    # lines whose product is missing or inactive; priced at zero
    unavailable_items: Tuple[LineItem, ...] = field(default_factory=tuple)

    def as_api(self):
        unavailable = {i.id for i in self.unavailable_items}
        return {
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "name": i.product.name if i.product else None,
                    "quantity": i.quantity,
                    "unit_price": to_string_money(i.product.price) if i.product else None,
                    "line_total": to_string_money(i.line_total),
                    "available": i.id not in unavailable,
                }
                for i in self.line_items
            ],
            "subtotal": to_string_money(self.subtotal),
            "applied_promotions": [a.as_api() for a in self.applied_promotions],
            "total_discount": to_string_money(self.total_discount),
            "final_total": to_string_money(self.final_total),
        }
