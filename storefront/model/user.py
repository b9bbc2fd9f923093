# --- storefront/model/user.py ---

from sqlalchemy.sql import func
from ..extensions import db


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(180), nullable=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(50))
    address = db.Column(db.Text)
    role = db.Column(db.String(50), nullable=False, default="user", index=True)  # roles: user, admin
    created_at = db.Column(db.DateTime, server_default=func.now())

    def as_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "address": self.address,
            "role": self.role,
        }
