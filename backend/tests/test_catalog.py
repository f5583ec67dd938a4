"""Category and product CRUD over HTTP."""

import uuid

import pytest

from tests.conftest import stock_of


class TestCategories:

    def test_create_and_list(self, client, admin_headers, cashier_headers):
        resp = client.post(
            "/api/categories",
            json={"name": "  fresh   PRODUCE ", "description": "Fruit and veg"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["category"]["name"] == "Fresh Produce"

        listing = client.get("/api/categories", headers=cashier_headers)
        assert listing.status_code == 200
        assert [c["name"] for c in listing.get_json()["items"]] == ["Fresh Produce"]

    def test_duplicate_name_is_conflict(self, client, admin_headers, category_id):
        resp = client.post(
            "/api/categories",
            json={"name": "beverages", "description": "Again"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    @pytest.mark.parametrize("payload", [
        {"name": "Snacks"},
        {"name": "S", "description": "Too short name"},
        {"name": "A" * 21, "description": "Too long name"},
        {"name": "Snacks", "description": "ok", "color": "red"},
    ])
    def test_invalid_payload(self, client, admin_headers, payload):
        resp = client.post("/api/categories", json=payload, headers=admin_headers)
        assert resp.status_code == 400

    def test_cashier_cannot_create(self, client, cashier_headers):
        resp = client.post(
            "/api/categories",
            json={"name": "Snacks", "description": "Chips"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_patch_and_get(self, client, admin_headers, category_id):
        resp = client.patch(
            f"/api/categories/{category_id}",
            json={"description": "Cold drinks"},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        got = client.get(f"/api/categories/{category_id}", headers=admin_headers).get_json()["category"]
        assert got["name"] == "Beverages"
        assert got["description"] == "Cold drinks"

    def test_empty_patch_rejected(self, client, admin_headers, category_id):
        resp = client.patch(f"/api/categories/{category_id}", json={}, headers=admin_headers)
        assert resp.status_code == 400

    def test_delete_in_use_category(self, client, admin_headers, category_id, make_product):
        make_product("Cola")
        resp = client.delete(f"/api/categories/{category_id}", headers=admin_headers)
        assert resp.status_code == 409

    def test_delete_unused_category(self, client, admin_headers, category_id):
        resp = client.delete(f"/api/categories/{category_id}", headers=admin_headers)
        assert resp.status_code == 200
        missing = client.get(f"/api/categories/{category_id}", headers=admin_headers)
        assert missing.status_code == 404


class TestProducts:

    def test_create_product(self, client, admin_headers, category_id):
        resp = client.post("/api/products", json={
            "name": "sparkling water",
            "price": "1.25",
            "stock": 40,
            "category_id": category_id,
        }, headers=admin_headers)

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["name"] == "Sparkling Water"
        assert product["price"] == "1.25"
        assert product["stock"] == 40

    def test_unknown_category(self, client, admin_headers, db_session):
        resp = client.post("/api/products", json={
            "name": "Water",
            "price": "1.00",
            "category_id": str(uuid.uuid4()),
        }, headers=admin_headers)
        assert resp.status_code == 404

    @pytest.mark.parametrize("overrides", [
        {"price": "0"},
        {"price": "1.999"},
        {"price": True},
        {"stock": -1},
        {"stock": "1.5"},
        {"image_url": "not a url"},
    ])
    def test_invalid_product(self, client, admin_headers, category_id, overrides):
        payload = {"name": "Water", "price": "1.00", "category_id": category_id, **overrides}
        resp = client.post("/api/products", json=payload, headers=admin_headers)
        assert resp.status_code == 400

    def test_duplicate_name(self, client, admin_headers, category_id, make_product):
        make_product("Cola")
        resp = client.post("/api/products", json={
            "name": "cola", "price": "2.00", "category_id": category_id,
        }, headers=admin_headers)
        assert resp.status_code == 409

    def test_partial_update_touches_only_given_fields(self, client, admin_headers, make_product):
        product_id = make_product("Cola", price="2.00", stock=7)

        resp = client.patch(f"/api/products/{product_id}", json={"price": "2.50"}, headers=admin_headers)

        assert resp.status_code == 200
        product = resp.get_json()["product"]
        assert product["price"] == "2.50"
        assert product["name"] == "Cola"
        assert stock_of(product_id) == 7

    def test_update_missing_product(self, client, admin_headers, db_session):
        resp = client.patch(f"/api/products/{uuid.uuid4()}", json={"stock": 3}, headers=admin_headers)
        assert resp.status_code == 404

    def test_list_filters_and_paginates(self, client, cashier_headers, category_id, make_product):
        for name in ("Apple", "Banana", "Cherry"):
            make_product(name)

        resp = client.get(
            f"/api/products?category_id={category_id}&page=1&per_page=2",
            headers=cashier_headers,
        )

        body = resp.get_json()
        assert resp.status_code == 200
        assert [p["name"] for p in body["items"]] == ["Apple", "Banana"]
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["has_next"] is True

    def test_list_rejects_bad_paging(self, client, cashier_headers):
        resp = client.get("/api/products?page=1&per_page=-1", headers=cashier_headers)
        assert resp.status_code == 400

    def test_list_rejects_bad_category_filter(self, client, cashier_headers):
        resp = client.get("/api/products?category_id=abc", headers=cashier_headers)
        assert resp.status_code == 400

    def test_get_product(self, client, cashier_headers, make_product):
        product_id = make_product("Cola")
        assert client.get(f"/api/products/{product_id}", headers=cashier_headers).status_code == 200
        assert client.get(f"/api/products/{uuid.uuid4()}", headers=cashier_headers).status_code == 404
        assert client.get("/api/products/xyz", headers=cashier_headers).status_code == 400

    def test_sold_product_cannot_be_deleted(self, client, admin_headers, cashier_headers, make_product):
        product_id = make_product("Cola", stock=5)
        sold = client.post("/api/sales", json={
            "payment_method": "card",
            "items": [{"product_id": product_id, "quantity": 1}],
        }, headers=cashier_headers)
        assert sold.status_code == 201

        resp = client.delete(f"/api/products/{product_id}", headers=admin_headers)
        assert resp.status_code == 409

    def test_delete_product(self, client, admin_headers, make_product):
        product_id = make_product("Cola")
        assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 404


class TestUniquenessRaces:
    """The pre-check can lose a race; the UNIQUE constraint still answers 409."""

    def test_product_name_race(self, client, admin_headers, category_id, make_product, monkeypatch):
        from app.services import products_service

        make_product("Cola")
        monkeypatch.setattr(products_service, "_ensure_name_available", lambda *a, **kw: None)

        resp = client.post("/api/products", json={
            "name": "Cola", "price": "2.00", "category_id": category_id,
        }, headers=admin_headers)

        assert resp.status_code == 409
        assert resp.get_json()["kind"] == "conflict"

    def test_category_name_race(self, client, admin_headers, category_id, monkeypatch):
        from app.services import categories_service

        monkeypatch.setattr(categories_service, "_ensure_name_available", lambda *a, **kw: None)

        resp = client.post(
            "/api/categories",
            json={"name": "Beverages", "description": "Again"},
            headers=admin_headers,
        )

        assert resp.status_code == 409
        assert resp.get_json()["kind"] == "conflict"


def test_unexpected_error_is_json_500(client, cashier_headers, monkeypatch):
    from app.services import categories_service

    def boom():
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(categories_service, "list_categories", boom)

    resp = client.get("/api/categories", headers=cashier_headers)

    assert resp.status_code == 500
    body = resp.get_json()
    assert body == {"success": False, "error": "Internal server error", "kind": "internal_error"}
