from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from storefront.errors import DataAccessError, NotFoundError, ValidationError
from storefront.model import CartItem, Product
from storefront.services.pricing_types import FreeItems, PercentageOff
from storefront.services.stores import CartRepository, CatalogStore, PromotionStore
from storefront.utils.dates import utcnow


def test_snapshots_carry_current_catalog_state(db, make_product, make_category, make_brand):
    cat, brand = make_category(), make_brand()
    p = make_product(price="12.50", stock=4, category=cat, brand=brand)

    snaps = CatalogStore(db.session).snapshots([p.id, 12345])

    assert set(snaps) == {p.id}
    snap = snaps[p.id]
    assert snap.price == Decimal("12.50")
    assert (snap.stock, snap.active, snap.category_id, snap.brand_id) == (4, True, cat.id, brand.id)


def test_decrement_stock_is_conditional(db, make_product):
    p = make_product(stock=3)
    catalog = CatalogStore(db.session)

    assert catalog.decrement_stock(p.id, 4) is False
    assert catalog.decrement_stock(p.id, 3) is True
    db.session.commit()

    assert db.session.get(Product, p.id).stock == 0


def test_decrement_stock_refuses_inactive_products(db, make_product):
    p = make_product(stock=10, is_active=False)
    assert CatalogStore(db.session).decrement_stock(p.id, 1) is False


def test_fetch_effective_filters_and_converts(db, make_promotion):
    now = utcnow()
    running = make_promotion(name="running")
    make_promotion(name="off", is_active=False)
    make_promotion(name="future", start_date=now + timedelta(days=1))
    make_promotion(name="expired", end_date=now - timedelta(days=1))
    pct = make_promotion(name="pct", type="buy_x_get_percentage", discount_percentage=Decimal("15"))

    rules = PromotionStore(db.session).fetch_effective(now)

    assert [r.id for r in rules] == [running.id, pct.id]
    assert rules[0].reward == FreeItems(free_quantity=1)
    assert rules[1].reward == PercentageOff(discount_percentage=Decimal("15.00"))


def test_fetch_effective_skips_malformed_rows(db, make_promotion):
    make_promotion(name="both payloads", free_quantity=1, discount_percentage=Decimal("10"))
    make_promotion(name="neither", type="buy_x_get_percentage", discount_percentage=None)
    make_promotion(name="bogus type", type="half_price")
    ok = make_promotion(name="fine")

    rules = PromotionStore(db.session).fetch_effective(utcnow())
    assert [r.id for r in rules] == [ok.id]


def test_storage_failures_surface_as_data_access_error(db):
    store = PromotionStore(db.session)
    with mock.patch.object(db.session, "execute", side_effect=OperationalError("select", {}, Exception("gone"))):
        with pytest.raises(DataAccessError):
            store.fetch_effective(utcnow())


def test_cart_add_merges_quantities(db, make_user, make_product):
    user, p = make_user(), make_product()
    carts = CartRepository(db.session)

    carts.add(user.id, p.id, 2)
    carts.add(user.id, p.id, 3)
    db.session.commit()

    (item,) = carts.list_items(user.id)
    assert item.quantity == 5


def test_cart_add_rejects_inactive_product_and_bad_quantity(db, make_user, make_product):
    user = make_user()
    carts = CartRepository(db.session)
    with pytest.raises(NotFoundError):
        carts.add(user.id, make_product(is_active=False).id, 1)
    with pytest.raises(ValidationError):
        carts.add(user.id, make_product(name="Other").id, 0)


def test_cart_update_to_zero_removes_line(db, make_user, make_product, add_to_cart):
    user = make_user()
    item_id = add_to_cart(user, make_product(), 2).id

    assert CartRepository(db.session).update(user.id, item_id, 0) is None
    db.session.commit()
    assert db.session.get(CartItem, item_id) is None


def test_cart_lines_belong_to_their_owner(db, make_user, make_product, add_to_cart):
    owner, other = make_user(), make_user()
    item = add_to_cart(owner, make_product(), 1)
    carts = CartRepository(db.session)

    with pytest.raises(NotFoundError):
        carts.update(other.id, item.id, 3)
    with pytest.raises(NotFoundError):
        carts.remove(other.id, item.id)


def test_fetch_lines_joins_fresh_snapshots(db, make_user, make_product, add_to_cart):
    user = make_user()
    p = make_product(price="100")
    add_to_cart(user, p, 2)
    p.price = Decimal("150")
    db.session.commit()

    (line,) = CartRepository(db.session).fetch_lines(user.id, CatalogStore(db.session))
    assert line.quantity == 2
    assert line.product.price == Decimal("150.00")


def test_clear_removes_only_that_users_lines(db, make_user, make_product, add_to_cart):
    a, b = make_user(), make_user()
    p = make_product()
    add_to_cart(a, p, 1)
    add_to_cart(b, p, 1)

    assert CartRepository(db.session).clear(a.id) == 1
    db.session.commit()
    assert CartItem.query.filter_by(user_id=b.id).count() == 1
