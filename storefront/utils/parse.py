# storefront/utils/parse.py
from decimal import InvalidOperation

from ..errors import ValidationError
from .money import D


def parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_decimal(v, field):
    """Finite Decimal from a JSON number or string; NaN and Infinity are rejected."""
    try:
        value = D(v)
    except InvalidOperation:
        raise ValidationError(f"{field} must be numeric")
    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return value
