"""
Integration tests for registration, login and the current-user endpoint.
"""

import pytest

pytestmark = pytest.mark.asyncio


REGISTRATION = {
    "username": "reader42",
    "email": "reader42@example.com",
    "password": "s3cret-pass",
    "address": "12 Library Lane, Springfield",
    "age": 31,
}


@pytest.fixture
def registration(unique_customer_ids):
    return dict(REGISTRATION)


class TestRegister:
    """Tests for POST /api/auth/register."""

    async def test_register(self, client, registration):
        response = await client.post("/api/auth/register", json=registration)

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "reader42"
        assert data["customer_id"].startswith("CUST")
        assert data["role"] == "CUSTOMER"
        assert data["authorities"] == ["ROLE_CUSTOMER"]
        assert "password" not in data
        assert "hashed_password" not in data

    async def test_duplicate_username(self, client, registration):
        await client.post("/api/auth/register", json=registration)

        response = await client.post(
            "/api/auth/register",
            json={**registration, "email": "someone-else@example.com"},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    async def test_customer_id_collision(self, client, registration, monkeypatch):
        monkeypatch.setattr("bookstore.storage.models.generate_customer_id", lambda: "CUST1700000000000")
        await client.post("/api/auth/register", json=registration)

        response = await client.post(
            "/api/auth/register",
            json={**registration, "username": "reader43", "email": "reader43@example.com"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Customer identifier already in use"

    @pytest.mark.parametrize(
        "field,value",
        [("email", "not-an-email"), ("password", "123"), ("username", "ab"), ("age", -1)],
    )
    async def test_invalid_registration(self, client, registration, field, value):
        response = await client.post("/api/auth/register", json={**registration, field: value})

        assert response.status_code == 400
        assert response.json()["code"] == "MALFORMED_REQUEST"


class TestLogin:
    """Tests for POST /api/auth/token."""

    async def test_login_and_me(self, client, customer):
        response = await client.post(
            "/api/auth/token",
            data={"username": "alice", "password": "wonderland"},
        )

        assert response.status_code == 200
        token = response.json()
        assert token["token_type"] == "bearer"

        me = await client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {token['access_token']}"},
        )

        assert me.status_code == 200
        assert me.json()["customer_id"] == customer.customer_id

    async def test_admin_token_reaches_admin_endpoints(self, client, admin):
        response = await client.post(
            "/api/auth/token",
            data={"username": "admin", "password": "admin-pass"},
        )
        headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

        listing = await client.get("/api/orders/admin", headers=headers)

        assert listing.status_code == 200

    @pytest.mark.parametrize("username,password", [("alice", "wrong"), ("nobody", "wonderland")])
    async def test_bad_credentials(self, client, customer, username, password):
        response = await client.post(
            "/api/auth/token",
            data={"username": username, "password": password},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Incorrect username or password"


class TestMe:

    async def test_requires_token(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    async def test_unknown_user(self, client, headers_for):
        response = await client.get("/api/auth/me", headers=headers_for("ghost", {"ROLE_CUSTOMER"}))
        assert response.status_code == 400
