# storefront/services/promotion_service.py
from sqlalchemy import or_

from ..errors import MalformedPromotionError, ValidationError
from ..extensions import db
from ..model import Promotion
from ..utils.dates import parse_iso8601, utcnow
from ..utils.parse import parse_bool, parse_decimal
from .discount_engine import is_effective
from .pricing_types import AppliesTo, PromotionKind

_TYPES = {k.value for k in PromotionKind}
_TARGETS = {t.value for t in AppliesTo}


def _int(data, key, default=None):
    v = data.get(key, default)
    if v is None or v == "":
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer")


def create_promotion_from_payload(data: dict) -> Promotion:
    name = (data.get("name") or "").strip()
    ptype = (data.get("type") or PromotionKind.FREE_ITEMS.value).strip().lower()
    applies_to = (data.get("applies_to") or "all").strip().lower()
    min_quantity = _int(data, "min_quantity", 1)
    applies_to_id = _int(data, "applies_to_id")

    if not name:
        raise ValidationError("name is required")
    if ptype not in _TYPES:
        raise ValidationError(f"type must be one of {', '.join(sorted(_TYPES))}")
    if applies_to not in _TARGETS:
        raise ValidationError(f"applies_to must be one of {', '.join(sorted(_TARGETS))}")
    if min_quantity is None or min_quantity < 1:
        raise ValidationError("min_quantity must be at least 1")
    if applies_to != "all" and applies_to_id is None:
        raise ValidationError("applies_to_id is required when applies_to is not 'all'")

    free_quantity = None
    discount_percentage = None
    if ptype == PromotionKind.FREE_ITEMS.value:
        free_quantity = _int(data, "free_quantity")
        if free_quantity is None or free_quantity < 1:
            raise ValidationError("free_quantity must be at least 1")
    else:
        discount_percentage = parse_decimal(data.get("discount_percentage"), "discount_percentage")
        if not (1 <= discount_percentage <= 100):
            raise ValidationError("discount_percentage must be between 1 and 100")

    start_date = parse_iso8601(data.get("start_date"))
    end_date = parse_iso8601(data.get("end_date"))
    if data.get("start_date") and not start_date:
        raise ValidationError("Invalid datetime format for start_date")
    if data.get("end_date") and not end_date:
        raise ValidationError("Invalid datetime format for end_date")
    if start_date and end_date and end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    p = Promotion(
        name=name,
        description=(data.get("description") or "").strip() or None,
        type=ptype,
        min_quantity=min_quantity,
        applies_to=applies_to,
        applies_to_id=applies_to_id if applies_to != "all" else None,
        free_quantity=free_quantity,
        discount_percentage=discount_percentage,
        is_active=parse_bool(data.get("is_active"), True),
        start_date=start_date,
        end_date=end_date,
    )
    db.session.add(p)
    db.session.commit()
    return p


def promotion_is_effective(p: Promotion, now=None) -> bool:
    try:
        rule = p.to_rule()
    except MalformedPromotionError:
        return False
    return is_effective(rule, now or utcnow())


def search_promotions(status: str = "all", ptype: str | None = None, q: str | None = None, now=None):
    """Admin listing: filters by effective status, type and a name/description substring."""
    now = now or utcnow()
    query = Promotion.query
    if ptype and ptype != "all":
        query = query.filter(Promotion.type == ptype)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Promotion.name.ilike(like), Promotion.description.ilike(like)))

    rows = query.order_by(Promotion.created_at.desc(), Promotion.id.desc()).all()
    result = [(p, promotion_is_effective(p, now)) for p in rows]
    if status == "active":
        result = [(p, e) for p, e in result if e]
    elif status == "inactive":
        result = [(p, e) for p, e in result if not e]
    return result
