"""Signup, login, logout, profile and admin cashier approval."""

import pytest

from app.extensions import db
from app.models import ROLE_ADMIN, User
from tests.conftest import PASSWORD, auth_headers


class TestSignup:

    def test_signup_creates_pending_cashier(self, client, db_session):
        resp = client.post("/api/auth/signup", json={
            "username": "new_cashier",
            "email": "New@Example.com",
            "password": "Secret123",
        })

        assert resp.status_code == 201
        user = resp.get_json()["user"]
        assert user["role"] == "cashier"
        assert user["is_approved"] is False
        assert user["email"] == "new@example.com"
        assert "password_hash" not in user

    def test_duplicate_username(self, client, make_user):
        make_user("taken")
        resp = client.post("/api/auth/signup", json={
            "username": "taken",
            "email": "other@example.com",
            "password": "Secret123",
        })
        assert resp.status_code == 409

    @pytest.mark.parametrize("payload", [
        {"username": "ok_name", "email": "a@b.co", "password": "short1"},
        {"username": "ok_name", "email": "a@b.co", "password": "lettersonly"},
        {"username": "ok_name", "email": "not-an-email", "password": "Secret123"},
        {"username": "x", "email": "a@b.co", "password": "Secret123"},
    ])
    def test_invalid_signup(self, client, db_session, payload):
        resp = client.post("/api/auth/signup", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "validation_error"


class TestLogin:

    def test_login_returns_token(self, client, make_user):
        make_user("cashier_a")

        resp = client.post("/api/auth/login", json={"username": "cashier_a", "password": PASSWORD})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["token"]
        assert body["user"]["username"] == "cashier_a"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.get_json()["user"]["username"] == "cashier_a"

    def test_login_by_email(self, client, make_user):
        make_user("cashier_a")
        resp = client.post("/api/auth/login", json={"email": "cashier_a@sjpos.test", "password": PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password(self, client, make_user):
        make_user("cashier_a")
        resp = client.post("/api/auth/login", json={"username": "cashier_a", "password": "Wrong1234"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"username": "cashier_a"})
        assert resp.status_code == 400

    def test_unapproved_cashier_cannot_login(self, client, make_user):
        make_user("pending", is_approved=False)
        resp = client.post("/api/auth/login", json={"username": "pending", "password": PASSWORD})
        assert resp.status_code == 403
        assert resp.get_json()["kind"] == "forbidden"


class TestSessions:

    def test_me_requires_token(self, client, db_session):
        assert client.get("/api/auth/me").status_code == 401

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-real-token"})
        assert resp.status_code == 401

    def test_logout_revokes_token(self, client, cashier_headers):
        assert client.post("/api/auth/logout", headers=cashier_headers).status_code == 200
        assert client.get("/api/auth/me", headers=cashier_headers).status_code == 401


class TestAdminCashiers:

    def test_list_and_filter(self, client, admin_headers, make_user):
        make_user("approved_one")
        make_user("pending_one", is_approved=False)

        resp = client.get("/api/admin/cashiers", headers=admin_headers)
        assert resp.status_code == 200
        names = {c["username"] for c in resp.get_json()["cashiers"]}
        assert names == {"approved_one", "pending_one"}

        resp = client.get("/api/admin/cashiers?is_approved=false", headers=admin_headers)
        assert [c["username"] for c in resp.get_json()["cashiers"]] == ["pending_one"]

    def test_get_cashier(self, client, admin_headers, cashier_id):
        resp = client.get(f"/api/admin/cashiers/{cashier_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["cashier"]["id"] == cashier_id

    def test_admin_is_not_a_cashier(self, client, admin_headers, admin_id):
        resp = client.get(f"/api/admin/cashiers/{admin_id}", headers=admin_headers)
        assert resp.status_code == 404

    def test_bad_id(self, client, admin_headers):
        resp = client.get("/api/admin/cashiers/123", headers=admin_headers)
        assert resp.status_code == 400

    def test_approve_then_login(self, client, admin_headers, make_user):
        pending_id = make_user("pending", is_approved=False)

        resp = client.post(f"/api/admin/cashiers/{pending_id}/approve", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["cashier"]["is_approved"] is True

        again = client.post(f"/api/admin/cashiers/{pending_id}/approve", headers=admin_headers)
        assert again.status_code == 409

        login = client.post("/api/auth/login", json={"username": "pending", "password": PASSWORD})
        assert login.status_code == 200

    def test_cashier_cannot_use_admin_routes(self, client, cashier_headers):
        resp = client.get("/api/admin/cashiers", headers=cashier_headers)
        assert resp.status_code == 403

    def test_admin_signup_via_service_is_preapproved(self, db_session):
        from app.services import auth_service

        user = auth_service.create_user("boss", "boss@sjpos.test", "Secret123", role=ROLE_ADMIN)
        assert user.is_approved is True


class TestOwnAccount:

    def test_update_profile(self, client, cashier_headers):
        resp = client.patch("/api/auth/profile", json={
            "firstname": "  ama ",
            "lastname": "MENSAH",
            "phone": "+233201234567",
        }, headers=cashier_headers)

        assert resp.status_code == 200
        user = resp.get_json()["user"]
        assert user["firstname"] == "Ama"
        assert user["lastname"] == "Mensah"
        assert user["is_profile_complete"] is True

        me = client.get("/api/auth/me", headers=cashier_headers).get_json()["user"]
        assert me["phone"] == "+233201234567"
        assert me["othername"] is None

    @pytest.mark.parametrize("payload", [
        {},
        {"firstname": "A"},
        {"phone": "123"},
        {"avatar_url": "nope"},
        {"role": "admin"},
        {"theme_preference": "dark"},
    ])
    def test_invalid_profile_patch(self, client, cashier_headers, payload):
        resp = client.patch("/api/auth/profile", json=payload, headers=cashier_headers)
        assert resp.status_code == 400

    def test_change_theme(self, client, cashier_headers):
        resp = client.patch("/api/auth/theme", json={"theme_preference": "dark"}, headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.get_json()["theme_preference"] == "dark"

        me = client.get("/api/auth/me", headers=cashier_headers).get_json()["user"]
        assert me["theme_preference"] == "dark"

    def test_change_theme_rejects_unknown(self, client, cashier_headers):
        resp = client.patch("/api/auth/theme", json={"theme_preference": "neon"}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_change_password(self, client, cashier_id):
        current = auth_headers(cashier_id)
        other = auth_headers(cashier_id)

        resp = client.patch("/api/auth/password", json={
            "current_password": PASSWORD,
            "new_password": "BrandNew456",
        }, headers=current)
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=current).status_code == 200
        assert client.get("/api/auth/me", headers=other).status_code == 401

        old = client.post("/api/auth/login", json={"username": "cashier_a", "password": PASSWORD})
        assert old.status_code == 401
        new = client.post("/api/auth/login", json={"username": "cashier_a", "password": "BrandNew456"})
        assert new.status_code == 200

    def test_change_password_wrong_current(self, client, cashier_headers):
        resp = client.patch("/api/auth/password", json={
            "current_password": "NotMine123",
            "new_password": "BrandNew456",
        }, headers=cashier_headers)
        assert resp.status_code == 401

    @pytest.mark.parametrize("payload", [
        {"current_password": PASSWORD, "new_password": PASSWORD},
        {"current_password": PASSWORD, "new_password": "short"},
        {"current_password": PASSWORD},
    ])
    def test_change_password_rejects_bad_new_password(self, client, cashier_headers, payload):
        resp = client.patch("/api/auth/password", json=payload, headers=cashier_headers)
        assert resp.status_code == 400

    def test_delete_account_without_sales_removes_user(self, client, cashier_id, cashier_headers):
        resp = client.delete("/api/auth/me", json={"password": PASSWORD}, headers=cashier_headers)

        assert resp.status_code == 200
        assert db.session.get(User, cashier_id) is None
        assert client.get("/api/auth/me", headers=cashier_headers).status_code == 401

    def test_delete_account_with_sales_deactivates(self, client, cashier_id, cashier_headers, make_product):
        product_id = make_product("Water", stock=5)
        sold = client.post("/api/sales", json={
            "payment_method": "cash",
            "items": [{"product_id": product_id, "quantity": 1}],
        }, headers=cashier_headers)
        assert sold.status_code == 201

        resp = client.delete("/api/auth/me", json={"password": PASSWORD}, headers=cashier_headers)

        assert resp.status_code == 200
        db.session.expire_all()
        user = db.session.get(User, cashier_id)
        assert user is not None
        assert user.is_active is False
        assert client.get("/api/auth/me", headers=cashier_headers).status_code == 401
        login = client.post("/api/auth/login", json={"username": "cashier_a", "password": PASSWORD})
        assert login.status_code == 401

    def test_delete_account_wrong_password(self, client, cashier_id, cashier_headers):
        resp = client.delete("/api/auth/me", json={"password": "Wrong1234"}, headers=cashier_headers)
        assert resp.status_code == 401
        assert db.session.get(User, cashier_id) is not None
