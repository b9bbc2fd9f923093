# storefront/services/stores.py
"""
SQLAlchemy-backed collaborators of the discount engine.

Each store wraps a session handed in by the caller. Storage failures come
out as DataAccessError; business conditions (missing product, inactive
promotion, bad promotion row) never raise here.
"""
from __future__ import annotations

from datetime import datetime
from functools import wraps
from typing import Dict, Iterable, List

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from ..errors import DataAccessError, MalformedPromotionError, NotFoundError, ValidationError
from ..model import CartItem, Product, Promotion as PromotionRow
from ..utils.money import D
from .discount_engine import is_effective
from .pricing_types import LineItem, ProductSnapshot, Promotion

log = structlog.get_logger(__name__)


def _storage(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as e:
            raise DataAccessError(f"storage unavailable: {e.__class__.__name__}") from e
    return wrapper


def snapshot_of(p: Product) -> ProductSnapshot:
    return ProductSnapshot(
        id=p.id,
        price=D(p.price),
        stock=int(p.stock or 0),
        active=bool(p.is_active),
        category_id=p.category_id,
        brand_id=p.brand_id,
        name=p.name,
    )


class CatalogStore:
    def __init__(self, session):
        self.session = session

    @_storage
    def snapshots(self, product_ids: Iterable[int]) -> Dict[int, ProductSnapshot]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.session.execute(select(Product).where(Product.id.in_(ids))).scalars().all()
        return {p.id: snapshot_of(p) for p in rows}

    @_storage
    def get(self, product_id: int) -> Product | None:
        return self.session.get(Product, product_id)

    @_storage
    def decrement_stock(self, product_id: int, amount: int) -> bool:
        """Take `amount` units off stock only if that many are there. False means somebody got there first."""
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.is_active.is_(True), Product.stock >= amount)
            .values(stock=Product.stock - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class PromotionStore:
    def __init__(self, session):
        self.session = session

    @_storage
    def fetch_effective(self, now: datetime) -> List[Promotion]:
        rows = self.session.execute(
            select(PromotionRow).where(PromotionRow.is_active.is_(True)).order_by(PromotionRow.id.asc())
        ).scalars().all()
        rules = []
        for row in rows:
            try:
                rule = row.to_rule()
            except MalformedPromotionError as e:
                log.warning("promotion_skipped", promotion_id=e.promotion_id, reason=e.reason)
                continue
            if is_effective(rule, now):
                rules.append(rule)
        return rules


class CartRepository:
    def __init__(self, session):
        self.session = session

    @_storage
    def list_items(self, user_id: int) -> List[CartItem]:
        return list(self.session.execute(
            select(CartItem).where(CartItem.user_id == user_id).order_by(CartItem.id.asc())
        ).unique().scalars().all())

    @_storage
    def fetch_lines(self, user_id: int, catalog: CatalogStore) -> List[LineItem]:
        """Cart lines joined with fresh product snapshots."""
        rows = self.list_items(user_id)
        products = catalog.snapshots(r.product_id for r in rows)
        return [
            LineItem(id=r.id, product_id=r.product_id, quantity=r.quantity, product=products.get(r.product_id))
            for r in rows
        ]

    def _owned(self, user_id: int, item_id: int) -> CartItem:
        item = self.session.get(CartItem, item_id)
        if not item or item.user_id != user_id:
            raise NotFoundError("item not found in this cart")
        return item

    @_storage
    def add(self, user_id: int, product_id: int, quantity: int = 1) -> CartItem:
        if quantity < 1:
            raise ValidationError("quantity must be >= 1")
        product = self.session.get(Product, product_id)
        if not product or not product.is_active:
            raise NotFoundError("product not found or inactive")

        item = self.session.execute(
            select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
        ).unique().scalar_one_or_none()
        if item:
            item.quantity = item.quantity + quantity
        else:
            item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
            self.session.add(item)
        self.session.flush()
        return item

    @_storage
    def update(self, user_id: int, item_id: int, quantity: int) -> CartItem | None:
        """Set a line's quantity; zero or less removes the line and returns None."""
        item = self._owned(user_id, item_id)
        if quantity <= 0:
            self.session.delete(item)
            self.session.flush()
            return None
        item.quantity = quantity
        self.session.flush()
        return item

    @_storage
    def remove(self, user_id: int, item_id: int) -> None:
        self.session.delete(self._owned(user_id, item_id))
        self.session.flush()

    @_storage
    def clear(self, user_id: int) -> int:
        items = self.list_items(user_id)
        for item in items:
            self.session.delete(item)
        self.session.flush()
        return len(items)
