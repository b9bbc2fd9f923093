# storefront/promotion/routes.py
from __future__ import annotations
from flask import request

from . import bp
from ..extensions import db
from ..errors import NotFoundError
from ..model import Promotion
from ..services.promotion_service import (
    create_promotion_from_payload, promotion_is_effective, search_promotions,
)
from ..services.stores import PromotionStore
from ..utils.api import ok
from ..utils.dates import utcnow
from ..utils.decorators import admin_required


def _get_or_404(pid: int) -> Promotion:
    p = db.session.get(Promotion, pid)
    if not p:
        raise NotFoundError("promotion not found")
    return p


@bp.get("/effective")
def list_effective():
    """Public: the promotions currently in force, in the shape the cart page shows them."""
    rules = PromotionStore(db.session).fetch_effective(utcnow())
    return ok("promotions", {
        "items": [
            {
                "id": r.id,
                "name": r.name,
                "type": r.kind.value,
                "label": r.describe(),
                "applies_to": r.applies_to.value,
                "applies_to_id": r.applies_to_id,
            }
            for r in rules
        ]
    })


@bp.get("")
@admin_required
def list_promotions():
    """
    Query params:
      - status=all|active|inactive   (active = switched on and inside its date window)
      - type=buy_x_get_y_free|buy_x_get_percentage
      - q=substring of name/description
    """
    status = (request.args.get("status") or "all").lower()
    rows = search_promotions(
        status=status,
        ptype=request.args.get("type"),
        q=(request.args.get("q") or "").strip() or None,
    )
    return ok("promotions", {"items": [p.as_api(effective=e) for p, e in rows]})


@bp.post("")
@admin_required
def create_promotion():
    p = create_promotion_from_payload(request.get_json(silent=True) or {})
    return ok("Promotion created", {"promotion": p.as_api(effective=promotion_is_effective(p))}, status=201)


@bp.get("/<int:pid>")
@admin_required
def get_promotion(pid: int):
    p = _get_or_404(pid)
    return ok("promotion", {"promotion": p.as_api(effective=promotion_is_effective(p))})


@bp.patch("/<int:pid>/toggle")
@admin_required
def toggle_promotion(pid: int):
    p = _get_or_404(pid)
    p.is_active = not p.is_active
    db.session.commit()
    msg = "Promotion activated" if p.is_active else "Promotion deactivated"
    return ok(msg, {"promotion": p.as_api(effective=promotion_is_effective(p))})


@bp.delete("/<int:pid>")
@admin_required
def delete_promotion(pid: int):
    p = _get_or_404(pid)
    db.session.delete(p)
    db.session.commit()
    return ok("Promotion deleted", {"id": pid})
