"""Tests for Category API endpoints."""


def test_create_and_get_category(client, admin_headers):
    """Admins can create categories; anyone can read them."""
    response = client.post(
        "/api/v1/categories/",
        json={"name": "Beverages", "description": "Drinks"},
        headers=admin_headers
    )

    assert response.status_code == 201
    category_id = response.json()["id"]

    response = client.get(f"/api/v1/categories/{category_id}")
    assert response.status_code == 200
    assert response.json()["name"] == "Beverages"
    assert response.json()["status"] == "active"


def test_update_category(client, admin_headers):
    """Only provided fields are updated."""
    category_id = client.post(
        "/api/v1/categories/",
        json={"name": "Snacks", "description": "Salty"},
        headers=admin_headers
    ).json()["id"]

    response = client.put(
        f"/api/v1/categories/{category_id}",
        json={"name": "Sweets"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Sweets"
    assert response.json()["description"] == "Salty"


def test_retired_category_hidden_from_list(client, admin_headers):
    """Deleting retires the category: it leaves the list but keeps its row."""
    keep_id = client.post("/api/v1/categories/", json={"name": "Keep"}, headers=admin_headers).json()["id"]
    drop_id = client.post("/api/v1/categories/", json={"name": "Drop"}, headers=admin_headers).json()["id"]

    response = client.delete(f"/api/v1/categories/{drop_id}", headers=admin_headers)
    assert response.status_code == 204

    ids = [c["id"] for c in client.get("/api/v1/categories/").json()]
    assert ids == [keep_id]

    retired = client.get(f"/api/v1/categories/{drop_id}").json()
    assert retired["status"] == "retired"


def test_category_not_found(client, admin_headers):
    """Unknown category ids return 404."""
    assert client.get("/api/v1/categories/9999").status_code == 404
    assert client.delete("/api/v1/categories/9999", headers=admin_headers).status_code == 404
