"""
tests/test_api_routes.py -- Integration tests for the auth, judgments and users routes.

These tests exercise the full stack: FastAPI routing -> auth dependency injection
-> service functions -> UserStore/JudgmentStore -> response model serialization
and the error envelope. Unit testing individual route functions would miss
middleware, dependency injection, and response model validation -- integration
tests are the right tool here.

Fixtures used (from conftest.py):
  - api_client: (client, admin_token, admin_id) -- TestClient on a fresh DB
    with one admin account (admin@example.com / adminpass1).
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from auth.models import Role
from conftest import bearer, make_user


def _register(client: TestClient, email: str = "a@x.com", password: str = "secret1", name: str = "Ann") -> dict:
    resp = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _create_note(client: TestClient, token: str, **fields) -> dict:
    body = {"title": "Smith v. Jones", **fields}
    resp = client.post("/api/judgments", json=body, headers=bearer(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Auth routes
# ---------------------------------------------------------------------------


class TestAuthRoutes:
    def test_register_returns_token_and_public_user(self, api_client):
        client, _, _ = api_client
        resp = client.post(
            "/api/auth/register",
            json={"email": "  A@X.com ", "password": "secret1", "name": "Ann"},
        )
        assert resp.status_code == 201
        assert resp.headers["cache-control"] == "no-store"
        data = resp.json()
        assert data["token"]
        assert data["user"]["email"] == "a@x.com"
        assert data["user"]["role"] == "user"
        assert data["user"]["created_at"]
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]
        assert "hashed_password" not in data["user"]

    def test_register_cannot_choose_admin_role(self, api_client):
        client, _, _ = api_client
        resp = client.post(
            "/api/auth/register",
            json={"email": "sneaky@x.com", "password": "secret1", "name": "S", "role": "admin"},
        )
        assert resp.status_code == 201
        assert resp.json()["user"]["role"] == "user"

    def test_register_duplicate_email_any_case_is_conflict(self, api_client):
        client, _, _ = api_client
        _register(client, "a@x.com")
        resp = client.post("/api/auth/register", json={"email": "A@X.COM", "password": "secret1", "name": "A2"})
        assert resp.status_code == 409
        assert resp.json() == {"error": "email already exists", "code": "conflict", "detail": None}

    def test_register_missing_field_is_400(self, api_client):
        client, _, _ = api_client
        resp = client.post("/api/auth/register", json={"email": "a@x.com", "password": "secret1"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    def test_register_short_password_is_400(self, api_client):
        client, _, _ = api_client
        resp = client.post("/api/auth/register", json={"email": "a@x.com", "password": "12345", "name": "A"})
        assert resp.status_code == 400

    def test_register_malformed_json_is_400(self, api_client):
        client, _, _ = api_client
        resp = client.post(
            "/api/auth/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid payload"

    def test_login_success(self, api_client):
        client, _, _ = api_client
        registered = _register(client)
        resp = client.post("/api/auth/login", json={"email": "A@x.com", "password": "secret1"})
        assert resp.status_code == 200
        assert resp.headers["cache-control"] == "no-store"
        assert resp.json()["user"]["id"] == registered["user"]["id"]

    def test_login_failures_are_indistinguishable(self, api_client):
        client, _, _ = api_client
        _register(client)
        wrong_password = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope-nope"})
        unknown_email = client.post("/api/auth/login", json={"email": "b@x.com", "password": "secret1"})
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json()["error"] == "invalid email or password"

    def test_me_returns_current_account(self, api_client):
        client, _, _ = api_client
        token = _register(client)["token"]
        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json()["email"] == "a@x.com"

    def test_me_without_token_is_401(self, api_client):
        client, _, _ = api_client
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["error"] == "authorization header required"

    def test_me_with_garbage_token_is_401(self, api_client):
        client, _, _ = api_client
        resp = client.get("/api/auth/me", headers=bearer("garbage"))
        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid token"

    def test_me_after_account_deleted_is_404(self, api_client):
        client, admin_token, _ = api_client
        registered = _register(client)
        resp = client.delete(f"/api/users/{registered['user']['id']}", headers=bearer(admin_token))
        assert resp.status_code == 204
        resp = client.get("/api/auth/me", headers=bearer(registered["token"]))
        assert resp.status_code == 404
        assert resp.json()["error"] == "user not found"

    def test_logout_acknowledges(self, api_client):
        client, _, _ = api_client
        resp = client.post("/api/auth/logout")
        assert resp.status_code == 200
        assert resp.json() == {"message": "logged out"}


# ---------------------------------------------------------------------------
# Judgment routes
# ---------------------------------------------------------------------------


class TestJudgmentRoutes:
    def test_writes_require_token(self, api_client):
        client, _, _ = api_client
        assert client.post("/api/judgments", json={"title": "x"}).status_code == 401
        assert client.put("/api/judgments/some-id", json={"title": "x"}).status_code == 401
        assert client.delete("/api/judgments/some-id").status_code == 401

    def test_reads_are_public(self, api_client):
        client, admin_token, _ = api_client
        created = _create_note(client, admin_token)
        assert client.get("/api/judgments").status_code == 200
        assert client.get(f"/api/judgments/{created['id']}").status_code == 200

    def test_create_returns_id_and_doc_no(self, api_client):
        client, _, _ = api_client
        token = _register(client)["token"]
        created = _create_note(client, token)
        assert created["doc_no"] == "JN-000001"
        assert set(created) == {"id", "doc_no"}

    def test_create_and_fetch_full_note(self, api_client):
        client, admin_token, _ = api_client
        created = _create_note(
            client,
            admin_token,
            case_no="CV-1",
            court="High Court",
            judgment_date="2024-05-17",
            tags=["contract"],
        )
        resp = client.get(f"/api/judgments/{created['id']}")
        assert resp.status_code == 200
        note = resp.json()
        assert note["doc_no"] == created["doc_no"]
        assert note["title"] == "Smith v. Jones"
        assert note["judgment_date"] == "2024-05-17"
        assert note["tags"] == ["contract"]
        assert note["facts"] is None

    def test_create_without_title_is_400(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post("/api/judgments", json={"title": "   "}, headers=bearer(admin_token))
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid payload (title required)"
        assert client.get("/api/judgments").json()["total"] == 0

    def test_create_with_bad_date_is_400(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post(
            "/api/judgments",
            json={"title": "x", "judgment_date": "17/05/2024"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 400

    def test_list_pagination_envelope(self, api_client):
        client, admin_token, _ = api_client
        for i in range(25):
            _create_note(client, admin_token, title=f"Case {i}")
        resp = client.get("/api/judgments", params={"page": 3, "limit": 10})
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["items"]) == 5
        assert data["total"] == 25
        assert data["page"] == 3
        assert data["limit"] == 10
        assert data["totalPages"] == 3
        assert "total_pages" not in data

    def test_list_limit_is_normalized(self, api_client):
        client, _, _ = api_client
        assert client.get("/api/judgments", params={"limit": 0}).json()["limit"] == 10
        assert client.get("/api/judgments", params={"limit": -4}).json()["limit"] == 10
        assert client.get("/api/judgments", params={"limit": 500}).json()["limit"] == 100
        assert client.get("/api/judgments", params={"page": 0}).json()["page"] == 1

    def test_list_non_numeric_paging_falls_back_to_defaults(self, api_client):
        client, _, _ = api_client
        resp = client.get("/api/judgments", params={"page": "abc", "limit": "xyz"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["page"] == 1
        assert data["limit"] == 10

    def test_list_search(self, api_client):
        client, admin_token, _ = api_client
        _create_note(client, admin_token, title="Smith v. Jones")
        _create_note(client, admin_token, title="Doe v. Roe")
        data = client.get("/api/judgments", params={"search": "smith"}).json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Smith v. Jones"

    def test_update_replaces_note(self, api_client):
        client, admin_token, _ = api_client
        created = _create_note(client, admin_token, court="High Court")
        resp = client.put(
            f"/api/judgments/{created['id']}",
            json={"title": "Smith v. Jones (appeal)"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 204
        assert resp.content == b""
        note = client.get(f"/api/judgments/{created['id']}").json()
        assert note["title"] == "Smith v. Jones (appeal)"
        assert note["court"] is None
        assert note["doc_no"] == created["doc_no"]

    def test_update_missing_is_404(self, api_client):
        client, admin_token, _ = api_client
        resp = client.put("/api/judgments/missing", json={"title": "x"}, headers=bearer(admin_token))
        assert resp.status_code == 404
        assert resp.json() == {"error": "not found", "code": "not_found", "detail": None}

    def test_update_empty_title_is_400(self, api_client):
        client, admin_token, _ = api_client
        created = _create_note(client, admin_token)
        resp = client.put(f"/api/judgments/{created['id']}", json={"title": ""}, headers=bearer(admin_token))
        assert resp.status_code == 400

    def test_delete(self, api_client):
        client, admin_token, _ = api_client
        created = _create_note(client, admin_token)
        assert client.delete(f"/api/judgments/{created['id']}", headers=bearer(admin_token)).status_code == 204
        assert client.get(f"/api/judgments/{created['id']}").status_code == 404
        assert client.delete(f"/api/judgments/{created['id']}", headers=bearer(admin_token)).status_code == 404

    def test_any_authenticated_user_may_edit_any_note(self, api_client):
        client, admin_token, _ = api_client
        created = _create_note(client, admin_token)
        user_token = _register(client)["token"]
        resp = client.put(
            f"/api/judgments/{created['id']}",
            json={"title": "Edited by a user"},
            headers=bearer(user_token),
        )
        assert resp.status_code == 204


# ---------------------------------------------------------------------------
# User admin routes
# ---------------------------------------------------------------------------


class TestUserAdminRoutes:
    def test_requires_token(self, api_client):
        client, _, _ = api_client
        assert client.get("/api/users").status_code == 401

    def test_user_role_is_forbidden(self, api_client, user_store):
        client, _, _ = api_client
        _, user_token = make_user(user_store, "plain@x.com")
        for method, path in [
            ("GET", "/api/users"),
            ("GET", "/api/users/anything"),
            ("POST", "/api/users"),
            ("PATCH", "/api/users/anything"),
            ("DELETE", "/api/users/anything"),
        ]:
            resp = client.request(method, path, json={}, headers=bearer(user_token))
            assert resp.status_code == 403, (method, path, resp.text)
            assert resp.json()["code"] == "forbidden"

    def test_list_users(self, api_client):
        client, admin_token, admin_id = api_client
        _register(client)
        resp = client.get("/api/users", headers=bearer(admin_token))
        assert resp.status_code == 200
        users = resp.json()
        assert {u["email"] for u in users} == {"admin@example.com", "a@x.com"}
        assert all("password_hash" not in u for u in users)

    def test_get_user(self, api_client):
        client, admin_token, admin_id = api_client
        resp = client.get(f"/api/users/{admin_id}", headers=bearer(admin_token))
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"
        assert client.get("/api/users/missing", headers=bearer(admin_token)).status_code == 404

    def test_create_user_with_role(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post(
            "/api/users",
            json={"email": "Ed@x.com", "name": "Ed", "password": "secret1", "role": "admin"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 201
        assert resp.json()["email"] == "ed@x.com"
        assert resp.json()["role"] == "admin"

    def test_create_user_default_role(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post(
            "/api/users",
            json={"email": "ed@x.com", "name": "Ed", "password": "secret1"},
            headers=bearer(admin_token),
        )
        assert resp.json()["role"] == "user"

    def test_create_user_invalid_role_is_400(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post(
            "/api/users",
            json={"email": "ed@x.com", "name": "Ed", "password": "secret1", "role": "root"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid role"

    def test_create_user_duplicate_is_409(self, api_client):
        client, admin_token, _ = api_client
        resp = client.post(
            "/api/users",
            json={"email": "ADMIN@example.com", "name": "Dup", "password": "secret1"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 409

    def test_patch_user(self, api_client):
        client, admin_token, _ = api_client
        target = _register(client)["user"]
        resp = client.patch(
            f"/api/users/{target['id']}",
            json={"name": "Annabel", "role": "admin"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 204
        fetched = client.get(f"/api/users/{target['id']}", headers=bearer(admin_token)).json()
        assert fetched["name"] == "Annabel"
        assert fetched["role"] == "admin"
        assert fetched["email"] == "a@x.com"

    def test_patch_password_reset(self, api_client):
        client, admin_token, _ = api_client
        target = _register(client)["user"]
        resp = client.patch(
            f"/api/users/{target['id']}",
            json={"password": "brandnew1"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 204
        assert client.post("/api/auth/login", json={"email": "a@x.com", "password": "brandnew1"}).status_code == 200
        assert client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"}).status_code == 401

    def test_patch_empty_body_is_no_op(self, api_client):
        client, admin_token, admin_id = api_client
        resp = client.patch(f"/api/users/{admin_id}", json={}, headers=bearer(admin_token))
        assert resp.status_code == 204

    def test_patch_own_role_downgrade_is_rejected(self, api_client, user_store):
        client, admin_token, admin_id = api_client
        resp = client.patch(f"/api/users/{admin_id}", json={"role": "user"}, headers=bearer(admin_token))
        assert resp.status_code == 400
        assert resp.json()["error"] == "cannot downgrade your own role"
        assert user_store.get_by_id(admin_id).role is Role.admin

    def test_patch_invalid_fields(self, api_client):
        client, admin_token, _ = api_client
        target = _register(client)["user"]
        url = f"/api/users/{target['id']}"
        assert client.patch(url, json={"email": "not-an-email"}, headers=bearer(admin_token)).status_code == 400
        assert client.patch(url, json={"name": "  "}, headers=bearer(admin_token)).status_code == 400
        assert client.patch(url, json={"role": "owner"}, headers=bearer(admin_token)).status_code == 400
        assert client.patch(url, json={"password": "123"}, headers=bearer(admin_token)).status_code == 400

    def test_patch_duplicate_email_is_409(self, api_client):
        client, admin_token, _ = api_client
        target = _register(client)["user"]
        resp = client.patch(
            f"/api/users/{target['id']}",
            json={"email": "admin@example.com"},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 409

    def test_patch_missing_user_is_404(self, api_client):
        client, admin_token, _ = api_client
        resp = client.patch("/api/users/missing", json={"name": "Ghost"}, headers=bearer(admin_token))
        assert resp.status_code == 404

    def test_delete_self_is_rejected(self, api_client, user_store):
        client, admin_token, admin_id = api_client
        resp = client.delete(f"/api/users/{admin_id}", headers=bearer(admin_token))
        assert resp.status_code == 400
        assert resp.json()["error"] == "cannot delete your own account"
        assert user_store.get_by_id(admin_id) is not None

    def test_delete_user(self, api_client):
        client, admin_token, _ = api_client
        target = _register(client)["user"]
        assert client.delete(f"/api/users/{target['id']}", headers=bearer(admin_token)).status_code == 204
        assert client.get(f"/api/users/{target['id']}", headers=bearer(admin_token)).status_code == 404
        assert client.delete(f"/api/users/{target['id']}", headers=bearer(admin_token)).status_code == 404


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_register_create_list_delete_flow(api_client):
    client, _, _ = api_client

    token = _register(client, "a@x.com", "secret1", "A")["token"]

    created = _create_note(client, token, title="Case One")
    assert created["doc_no"].startswith("JN-")

    listing = client.get("/api/judgments").json()
    assert listing["total"] == 1
    assert listing["items"][0]["title"] == "Case One"

    assert client.delete(f"/api/judgments/{created['id']}", headers=bearer(token)).status_code == 204
    assert client.get(f"/api/judgments/{created['id']}").status_code == 404
