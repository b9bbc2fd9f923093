# storefront/model/product.py
from ..extensions import db
from ..utils.money import to_string_money
from sqlalchemy.sql import func


class Product(db.Model):
    __tablename__ = "product"
    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(255), index=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    is_featured = db.Column(db.Boolean, default=False)
    image_url = db.Column(db.String(1024))

    category_id = db.Column(db.Integer, db.ForeignKey("category.id"), nullable=True, index=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brand.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def as_api(self):
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "price": to_string_money(self.price),
            "stock": self.stock,
            "is_active": self.is_active,
            "is_featured": self.is_featured,
            "image_url": self.image_url,
            "category": self.category.as_dict() if self.category else None,
            "brand": self.brand.as_dict() if self.brand else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
