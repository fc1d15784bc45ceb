"""Tests for authentication and role checks."""


def test_register_returns_token(client):
    """Registering returns the user and a bearer token."""
    response = client.post(
        "/api/v1/auth/register",
        json={"name": "Ana", "email": "ana@example.com", "password": "secret123"}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["email"] == "ana@example.com"
    assert data["user"]["role"] == "client"
    assert "password_hash" not in data["user"]


def test_register_duplicate_email(client):
    """A second account with the same email is rejected."""
    payload = {"name": "Ana", "email": "ana@example.com", "password": "secret123"}
    client.post("/api/v1/auth/register", json=payload)

    response = client.post("/api/v1/auth/register", json=payload)

    assert response.status_code == 409


def test_register_short_password(client):
    """Passwords shorter than 6 characters fail validation."""
    response = client.post(
        "/api/v1/auth/register",
        json={"name": "Ana", "email": "ana@example.com", "password": "123"}
    )

    assert response.status_code == 422


def test_login_and_profile(client):
    """Logging in returns a token that resolves to the user."""
    client.post(
        "/api/v1/auth/register",
        json={"name": "Ana", "email": "ana@example.com", "password": "secret123"}
    )

    response = client.post(
        "/api/v1/auth/login",
        json={"email": "ana@example.com", "password": "secret123"}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    profile = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    assert profile.json()["email"] == "ana@example.com"


def test_login_wrong_password(client):
    """Wrong password returns 401."""
    client.post(
        "/api/v1/auth/register",
        json={"name": "Ana", "email": "ana@example.com", "password": "secret123"}
    )

    response = client.post(
        "/api/v1/auth/login",
        json={"email": "ana@example.com", "password": "wrong-password"}
    )

    assert response.status_code == 401


def test_missing_or_invalid_token(client):
    """Protected routes reject missing and malformed tokens."""
    assert client.get("/api/v1/auth/me").status_code == 401

    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_client_cannot_use_admin_routes(client, client_headers):
    """Clients get 403 on admin-only routes."""
    response = client.post(
        "/api/v1/categories/",
        json={"name": "Tools"},
        headers=client_headers
    )

    assert response.status_code == 403
