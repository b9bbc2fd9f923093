from ..extensions import db
from ..utils.dates import utcnow, isoformat
from ..utils.money import to_string_money

ORDER_STATUSES = ("pending", "packed", "shipped", "delivered", "cancelled")


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    status = db.Column(db.String(20), default="pending", index=True)

    shipping_address = db.Column(db.Text, nullable=False)
    shipping_phone = db.Column(db.String(50), nullable=False)
    tracking_number = db.Column(db.String(80))
    notes = db.Column(db.Text)

    # Money snapshot, frozen at settlement
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    total_discount = db.Column(db.Numeric(12, 2), nullable=False)
    final_total = db.Column(db.Numeric(12, 2), nullable=False)
    shipping_fee = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id.asc()",
    )
    discounts = db.relationship(
        "OrderDiscount",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderDiscount.id.asc()",
    )

    def as_api(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "shipping": {
                "address": self.shipping_address,
                "phone": self.shipping_phone,
                "tracking_number": self.tracking_number,
            },
            "notes": self.notes,
            "money": {
                "subtotal": to_string_money(self.subtotal),
                "total_discount": to_string_money(self.total_discount),
                "final_total": to_string_money(self.final_total),
                "shipping_fee": to_string_money(self.shipping_fee),
                "total_amount": to_string_money(self.total_amount),
            },
            "items": [i.as_api() for i in self.items],
            "discounts": [d.as_api() for d in self.discounts],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, index=True)
    name = db.Column(db.String(255))
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    free_quantity = db.Column(db.Integer, nullable=False, default=0)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    def as_api(self):
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": to_string_money(self.unit_price),
            "quantity": self.quantity,
            "free_quantity": self.free_quantity,
            "line_total": to_string_money(self.line_total),
        }


class OrderDiscount(db.Model):
    """Audit copy of one promotion's effect on an order; independent of later edits to the promotion."""
    __tablename__ = "order_discounts"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    promotion_id = db.Column(db.Integer, index=True)  # not a FK: promotions may be deleted later
    name = db.Column(db.String(160), nullable=False)
    type = db.Column(db.String(32), nullable=False)
    min_quantity = db.Column(db.Integer, nullable=False)
    configured_free_quantity = db.Column(db.Integer)
    discount_percentage = db.Column(db.Numeric(5, 2))
    free_quantity = db.Column(db.Integer, nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False)
    affected_product_ids = db.Column(db.JSON)

    def as_api(self):
        return {
            "promotion_id": self.promotion_id,
            "name": self.name,
            "type": self.type,
            "min_quantity": self.min_quantity,
            "configured_free_quantity": self.configured_free_quantity,
            "discount_percentage": str(self.discount_percentage) if self.discount_percentage is not None else None,
            "free_quantity": self.free_quantity,
            "discount_amount": to_string_money(self.discount_amount),
            "affected_product_ids": self.affected_product_ids or [],
        }
