# --- storefront/model/promotion.py ---

from sqlalchemy.sql import func
from ..extensions import db
from ..errors import MalformedPromotionError
from ..services.pricing_types import (
    AppliesTo, FreeItems, PercentageOff, Promotion as PromotionRule, PromotionKind,
)
from ..utils.dates import isoformat
from ..utils.money import D


class Promotion(db.Model):
    __tablename__ = "promotion"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text)

    # "buy_x_get_y_free" | "buy_x_get_percentage"
    type = db.Column(db.String(32), nullable=False, index=True)
    min_quantity = db.Column(db.Integer, nullable=False, default=1)

    # "all" | "category" | "brand" | "product"
    applies_to = db.Column(db.String(16), nullable=False, default="all")
    applies_to_id = db.Column(db.Integer, nullable=True)

    # exactly one of these is set, matching `type`
    free_quantity = db.Column(db.Integer, nullable=True)
    discount_percentage = db.Column(db.Numeric(5, 2), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    start_date = db.Column(db.DateTime, nullable=True)
    end_date = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def to_rule(self) -> PromotionRule:
        """Build the engine's tagged rule; raises MalformedPromotionError for rows that mix up payloads."""
        try:
            kind = PromotionKind(self.type)
        except ValueError:
            raise MalformedPromotionError(self.id, f"unknown type {self.type!r}")
        try:
            target = AppliesTo(self.applies_to or "all")
        except ValueError:
            raise MalformedPromotionError(self.id, f"unknown applies_to {self.applies_to!r}")

        if kind is PromotionKind.FREE_ITEMS:
            if self.free_quantity is None or self.discount_percentage is not None:
                raise MalformedPromotionError(self.id, "buy_x_get_y_free needs free_quantity only")
            reward = FreeItems(free_quantity=int(self.free_quantity))
        else:
            if self.discount_percentage is None or self.free_quantity is not None:
                raise MalformedPromotionError(self.id, "buy_x_get_percentage needs discount_percentage only")
            reward = PercentageOff(discount_percentage=D(self.discount_percentage))

        return PromotionRule(
            id=self.id,
            name=self.name,
            min_quantity=self.min_quantity,
            reward=reward,
            applies_to=target,
            applies_to_id=self.applies_to_id if target is not AppliesTo.ALL else None,
            is_active=bool(self.is_active),
            start_date=self.start_date,
            end_date=self.end_date,
        )

    def as_api(self, effective: bool | None = None):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "min_quantity": self.min_quantity,
            "applies_to": self.applies_to,
            "applies_to_id": self.applies_to_id,
            "free_quantity": self.free_quantity,
            "discount_percentage": str(self.discount_percentage) if self.discount_percentage is not None else None,
            "is_active": self.is_active,
            "effective": effective,
            "start_date": isoformat(self.start_date),
            "end_date": isoformat(self.end_date),
            "created_at": isoformat(self.created_at),
        }
