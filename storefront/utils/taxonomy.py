# storefront/utils/taxonomy.py
"""Shared CRUD endpoints for the flat lookup tables products point at (categories, brands)."""
from flask import request

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..model import Product
from .api import ok, err
from .decorators import admin_required
from .text import slugify


def register_taxonomy_routes(bp, model, product_fk, label: str):
    plural = f"{label}s" if not label.endswith("y") else f"{label[:-1]}ies"

    def _get_or_404(oid):
        obj = db.session.get(model, oid)
        if not obj:
            raise NotFoundError(f"{label} not found")
        return obj

    def _unique_name(name, exclude_id=None):
        q = model.query.filter(model.name.ilike(name))
        if exclude_id is not None:
            q = q.filter(model.id != exclude_id)
        return q.first() is None

    @bp.get("")
    def list_all():
        rows = model.query.order_by(model.name.asc()).all()
        return ok(plural, {"items": [r.as_dict() for r in rows]})

    @bp.post("")
    @admin_required
    def create():
        data = request.get_json(silent=True) or {}
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name required")
        if not _unique_name(name):
            return err(f"{label} name already exists", 409)
        obj = model(name=name, slug=slugify(data.get("slug") or name), description=data.get("description"))
        db.session.add(obj)
        db.session.commit()
        return ok(f"{label} created", {label: obj.as_dict()}, status=201)

    @bp.put("/<int:oid>")
    @admin_required
    def update(oid):
        obj = _get_or_404(oid)
        data = request.get_json(silent=True) or {}
        if "name" in data:
            new_name = (data.get("name") or "").strip()
            if not new_name:
                raise ValidationError("name cannot be empty")
            if not _unique_name(new_name, exclude_id=obj.id):
                return err(f"{label} name already exists", 409)
            obj.name = new_name
            obj.slug = slugify(new_name)
        if "description" in data:
            obj.description = data.get("description")
        db.session.commit()
        return ok(f"{label} updated", {label: obj.as_dict()})

    @bp.delete("/<int:oid>")
    @admin_required
    def delete(oid):
        obj = _get_or_404(oid)
        if Product.query.filter(product_fk == oid).first():
            return err(f"cannot delete: {label} has products", 409)
        db.session.delete(obj)
        db.session.commit()
        return ok("deleted", {"id": oid})
