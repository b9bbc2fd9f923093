import pytest


@pytest.fixture
def admin_headers(make_user, auth_headers):
    return auth_headers(make_user(role="admin"))


def test_create_product_requires_admin(client, make_user, auth_headers, admin_headers):
    payload = {"name": "Canvas Bag", "price": "45000", "stock": 7}
    assert client.post("/api/products", json=payload, headers=auth_headers(make_user())).status_code == 403

    resp = client.post("/api/products", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    product = resp.get_json()["data"]["product"]
    assert product["slug"] == "canvas-bag"
    assert product["price"] == "45000.00"
    assert resp.headers["Location"].endswith(f"/api/products/{product['id']}")


@pytest.mark.parametrize("payload", [
    {"price": "10"},
    {"name": "x", "price": "-1"},
    {"name": "x", "price": "cheap"},
    {"name": "x", "price": "NaN"},
    {"name": "x", "price": "Infinity"},
    {"name": "x", "price": "-Infinity"},
    {"name": "x", "price": "1", "stock": -3},
])
def test_create_product_validation(client, admin_headers, payload):
    assert client.post("/api/products", json=payload, headers=admin_headers).status_code == 422


def test_delete_deactivates_and_hides_from_listing(client, make_product, admin_headers):
    keep = make_product(name="Keep")
    drop = make_product(name="Drop")
    drop_id = drop.id

    resp = client.delete(f"/api/products/{drop_id}", headers=admin_headers)
    assert resp.get_json()["data"]["product"]["is_active"] is False

    names = [p["name"] for p in client.get("/api/products").get_json()["data"]["items"]]
    assert names == [keep.name]
    # still reachable by id for order history links
    assert client.get(f"/api/products/{drop_id}").status_code == 200


def test_partial_update_and_filters(client, make_product, make_category, admin_headers):
    cat = make_category()
    p = make_product(name="Boot", price="100")
    make_product(name="Cap", price="50")

    resp = client.patch(f"/api/products/{p.id}", json={"price": "120", "category_id": cat.id}, headers=admin_headers)
    assert resp.get_json()["data"]["product"]["price"] == "120.00"

    items = client.get(f"/api/products?category_id={cat.id}").get_json()["data"]["items"]
    assert [i["name"] for i in items] == ["Boot"]
    by_price = client.get("/api/products?sort=price").get_json()["data"]["items"]
    assert [i["name"] for i in by_price] == ["Cap", "Boot"]


def test_taxonomy_crud(client, make_product, admin_headers):
    created = client.post("/api/brands", json={"name": "Nimbus"}, headers=admin_headers)
    assert created.status_code == 201
    brand_id = created.get_json()["data"]["brand"]["id"]
    assert client.post("/api/brands", json={"name": "nimbus"}, headers=admin_headers).status_code == 409

    cat = client.post("/api/categories", json={"name": "Bags"}, headers=admin_headers).get_json()
    cat_id = cat["data"]["category"]["id"]
    client.post("/api/products", json={"name": "Tote", "price": "1", "category_id": cat_id}, headers=admin_headers)

    assert client.delete(f"/api/categories/{cat_id}", headers=admin_headers).status_code == 409
    assert client.delete(f"/api/brands/{brand_id}", headers=admin_headers).status_code == 200
    assert [c["name"] for c in client.get("/api/categories").get_json()["data"]["items"]] == ["Bags"]


def test_non_finite_price_never_reaches_the_catalog(client, make_product, admin_headers):
    p = make_product(name="Lamp", price="100")

    assert client.patch(f"/api/products/{p.id}", json={"price": "Infinity"}, headers=admin_headers).status_code == 422
    assert client.post("/api/products", json={"name": "Void", "price": "NaN"}, headers=admin_headers).status_code == 422

    listing = client.get("/api/products")
    assert listing.status_code == 200
    assert [(i["name"], i["price"]) for i in listing.get_json()["data"]["items"]] == [("Lamp", "100.00")]
