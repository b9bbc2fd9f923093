# --- storefront/model/category.py ---
from ..extensions import db


# ---------------- CATEGORY ----------------
class Category(db.Model):
    __tablename__ = "category"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    slug = db.Column(db.String(160), index=True)
    description = db.Column(db.Text)
    products = db.relationship("Product", backref="category", lazy=True)

    def as_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
        }


# ---------------- BRAND ----------------
class Brand(db.Model):
    __tablename__ = "brand"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    slug = db.Column(db.String(160), index=True)
    description = db.Column(db.Text)
    products = db.relationship("Product", backref="brand", lazy=True)

    def as_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
        }
