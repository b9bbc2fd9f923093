"""Shared pytest fixtures: an app on in-memory sqlite plus row factories."""

from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from storefront import create_app
from storefront.config import TestConfig
from storefront.extensions import db as _db
from storefront.model import Brand, CartItem, Category, Product, Promotion, User


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="user", email=None):
        counter["n"] += 1
        u = User(email=email or f"user{counter['n']}@example.com", role=role, full_name=f"User {counter['n']}")
        db.session.add(u)
        db.session.commit()
        return u
    return _make


@pytest.fixture
def make_category(db):
    def _make(name="Shoes"):
        c = Category(name=name, slug=name.lower())
        db.session.add(c)
        db.session.commit()
        return c
    return _make


@pytest.fixture
def make_brand(db):
    def _make(name="Acme"):
        b = Brand(name=name, slug=name.lower())
        db.session.add(b)
        db.session.commit()
        return b
    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Widget", price="10000", stock=10, is_active=True, category=None, brand=None):
        p = Product(
            name=name,
            slug=name.lower().replace(" ", "-"),
            price=Decimal(price),
            stock=stock,
            is_active=is_active,
            category_id=category.id if category else None,
            brand_id=brand.id if brand else None,
        )
        db.session.add(p)
        db.session.commit()
        return p
    return _make


@pytest.fixture
def make_promotion(db):
    def _make(**kwargs):
        fields = dict(
            name="Promo",
            type="buy_x_get_y_free",
            min_quantity=3,
            applies_to="all",
            free_quantity=1,
            is_active=True,
        )
        fields.update(kwargs)
        if fields["type"] == "buy_x_get_percentage":
            fields.setdefault("discount_percentage", Decimal("10"))
            if "free_quantity" not in kwargs:
                fields["free_quantity"] = None
        p = Promotion(**fields)
        db.session.add(p)
        db.session.commit()
        return p
    return _make


@pytest.fixture
def add_to_cart(db):
    def _add(user, product, quantity=1):
        item = CartItem(user_id=user.id, product_id=product.id, quantity=quantity)
        db.session.add(item)
        db.session.commit()
        return item
    return _add


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers
