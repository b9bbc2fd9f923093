# storefront/errors.py
from __future__ import annotations

import structlog
from sqlalchemy.exc import SQLAlchemyError

from .utils.api import err

log = structlog.get_logger(__name__)


class StorefrontError(Exception):
    status_code = 400

    def __init__(self, message: str, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(StorefrontError, ValueError):
    status_code = 422


class NotFoundError(StorefrontError):
    status_code = 404


class EmptyCartError(StorefrontError):
    status_code = 422

    def __init__(self):
        super().__init__("cart is empty")


class StockConflictError(StorefrontError):
    """Settlement found a line it cannot fill; the whole checkout is abandoned."""
    status_code = 409

    def __init__(self, product_id: int, name: str | None, available: int, requested: int, *, inactive: bool = False):
        label = name or f"product {product_id}"
        if inactive:
            message = f"{label} is no longer available"
        else:
            message = f"only {available} left in stock for {label}"
        super().__init__(message, {
            "product_id": product_id,
            "available": available,
            "requested": requested,
        })
        self.product_id = product_id
        self.available = available
        self.requested = requested


class DataAccessError(StorefrontError):
    status_code = 503


class MalformedPromotionError(ValueError):
    def __init__(self, promotion_id, reason: str):
        super().__init__(f"promotion {promotion_id}: {reason}")
        self.promotion_id = promotion_id
        self.reason = reason


def register_error_handlers(app):
    @app.errorhandler(StorefrontError)
    def handle_storefront_error(e: StorefrontError):
        if isinstance(e, DataAccessError):
            log.error("data_access_failed", error=e.message)
        return err(e.message, e.status_code, e.data)

    @app.errorhandler(SQLAlchemyError)
    def handle_sqlalchemy_error(e):
        from .extensions import db
        db.session.rollback()
        log.error("database_error", error=str(e))
        return err("storage unavailable", 503)
