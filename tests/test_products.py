"""Tests for Product API endpoints."""
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from inventory_api.exceptions import PersistenceError
from inventory_api.services.product_service import ProductService


def test_create_product(client, create_product):
    """Test creating a new product with an image."""
    data = create_product(price="99.99", available_quantity=10, name="Test Product")

    assert data["name"] == "Test Product"
    assert Decimal(data["price"]) == Decimal("99.99")
    assert data["available_quantity"] == 10
    assert data["status"] == "active"
    assert len(data["images"]) == 1
    assert data["images"][0]["is_main_image"] is True
    assert data["images"][0]["url"].startswith("/uploads/")


def test_create_product_requires_admin(client, client_headers, upload_file):
    """Clients cannot create products."""
    response = client.post(
        "/api/v1/products/",
        data={
            "batch_number": "B-1", "name": "X", "price": "1.00",
            "available_quantity": "1", "entry_date": "2024-01-15",
        },
        files=[("images", upload_file())],
        headers=client_headers
    )

    assert response.status_code == 403


def test_create_product_invalid_price(client, admin_headers, upload_file):
    """Test creating product with invalid price fails."""
    response = client.post(
        "/api/v1/products/",
        data={
            "batch_number": "B-1", "name": "X", "price": "-10.00",
            "available_quantity": "1", "entry_date": "2024-01-15",
        },
        files=[("images", upload_file())],
        headers=admin_headers
    )

    assert response.status_code == 422


def test_create_product_invalid_stock(client, admin_headers, upload_file):
    """Test creating product with negative stock fails."""
    response = client.post(
        "/api/v1/products/",
        data={
            "batch_number": "B-1", "name": "X", "price": "5.00",
            "available_quantity": "-5", "entry_date": "2024-01-15",
        },
        files=[("images", upload_file())],
        headers=admin_headers
    )

    assert response.status_code == 422


def test_create_product_rejects_non_image(client, admin_headers):
    """Only image uploads are accepted."""
    response = client.post(
        "/api/v1/products/",
        data={
            "batch_number": "B-1", "name": "X", "price": "5.00",
            "available_quantity": "1", "entry_date": "2024-01-15",
        },
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        headers=admin_headers
    )

    assert response.status_code == 400


def test_create_product_duplicate_batch(client, create_product, admin_headers, upload_file):
    """Batch numbers are unique."""
    create_product(batch_number="DUP-1")

    response = client.post(
        "/api/v1/products/",
        data={
            "batch_number": "DUP-1", "name": "Other", "price": "5.00",
            "available_quantity": "1", "entry_date": "2024-01-15",
        },
        files=[("images", upload_file())],
        headers=admin_headers
    )

    assert response.status_code == 409


def test_create_product_with_inactive_category(client, admin_headers, upload_file):
    """A retired category cannot be assigned."""
    category_id = client.post(
        "/api/v1/categories/", json={"name": "Old"}, headers=admin_headers
    ).json()["id"]
    client.delete(f"/api/v1/categories/{category_id}", headers=admin_headers)

    response = client.post(
        "/api/v1/products/",
        data={
            "batch_number": "B-1", "name": "X", "price": "5.00",
            "available_quantity": "1", "entry_date": "2024-01-15",
            "category_id": str(category_id),
        },
        files=[("images", upload_file())],
        headers=admin_headers
    )

    assert response.status_code == 400
    assert "inactive" in response.json()["detail"]


def test_create_product_main_image_index(client, create_product):
    """main_image_index selects which upload becomes main."""
    data = create_product(images=3, main_image_index=2)

    mains = [image for image in data["images"] if image["is_main_image"]]
    assert len(mains) == 1
    assert mains[0]["original_name"] == "img2.png"
    assert data["images"][0]["is_main_image"] is True


def test_get_product(client, create_product, admin_headers):
    """Test getting a product by ID, with its category."""
    category_id = client.post(
        "/api/v1/categories/", json={"name": "Tools"}, headers=admin_headers
    ).json()["id"]
    product_id = create_product(name="Hammer", category_id=category_id)["id"]

    response = client.get(f"/api/v1/products/{product_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == product_id
    assert data["name"] == "Hammer"
    assert data["category"]["name"] == "Tools"


def test_get_product_not_found(client):
    """Test getting non-existent product returns 404."""
    response = client.get("/api/v1/products/9999")

    assert response.status_code == 404


def test_get_product_cached_falls_back_to_database(client, create_product):
    """With Redis unavailable the cached endpoint still serves from the database."""
    product_id = create_product(name="Cached")["id"]

    response = client.get(f"/api/v1/products/{product_id}/cached")

    assert response.status_code == 200
    assert response.json()["name"] == "Cached"


def test_list_products(client, create_product):
    """Test listing products with pagination."""
    for _ in range(15):
        create_product()

    response = client.get("/api/v1/products/?page=1&limit=10")

    assert response.status_code == 200
    data = response.json()
    assert len(data["items"]) == 10
    assert data["total"] == 15
    assert data["total_pages"] == 2
    assert "images" not in data["items"][0]


def test_list_products_with_images(client, create_product):
    """include_images adds each product's images."""
    create_product(images=2)

    data = client.get("/api/v1/products/?include_images=true").json()

    assert len(data["items"][0]["images"]) == 2


def test_list_products_empty(client):
    """An empty catalog has zero pages."""
    data = client.get("/api/v1/products/").json()

    assert data["total"] == 0
    assert data["total_pages"] == 0
    assert data["items"] == []


def test_update_product(client, create_product, admin_headers):
    """Test updating a product."""
    product_id = create_product(name="Original Name", price="50.00", available_quantity=10)["id"]

    response = client.put(
        f"/api/v1/products/{product_id}",
        data={"name": "Updated Name", "price": "75.00"},
        headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Updated Name"
    assert Decimal(data["price"]) == Decimal("75.00")
    assert data["available_quantity"] == 10  # Stock should remain unchanged


def test_update_product_images(client, create_product, admin_headers, upload_file):
    """One update can add, delete and re-flag images."""
    product = create_product(images=2)
    product_id = product["id"]
    old_main, other = product["images"]

    response = client.put(
        f"/api/v1/products/{product_id}",
        data={"delete_images": f"[{old_main['id']}]", "main_image_id": str(other["id"])},
        files=[("images", upload_file("new.png"))],
        headers=admin_headers
    )

    assert response.status_code == 200
    images = response.json()["images"]
    assert {image["id"] for image in images} >= {other["id"]}
    assert old_main["id"] not in {image["id"] for image in images}
    assert len(images) == 2
    assert [image["id"] for image in images if image["is_main_image"]] == [other["id"]]


def test_update_product_unknown_image_rolls_back(client, create_product, admin_headers):
    """Deleting an image of another product fails and changes nothing."""
    product = create_product(name="Stable", images=1)

    response = client.put(
        f"/api/v1/products/{product['id']}",
        data={"name": "Changed", "delete_images": "9999"},
        headers=admin_headers
    )

    assert response.status_code == 404
    assert client.get(f"/api/v1/products/{product['id']}").json()["name"] == "Stable"


def test_delete_product(client, create_product, admin_headers):
    """Deleting retires the product: it disappears from reads."""
    product_id = create_product(name="To Delete")["id"]

    response = client.delete(f"/api/v1/products/{product_id}", headers=admin_headers)
    assert response.status_code == 204

    get_response = client.get(f"/api/v1/products/{product_id}")
    assert get_response.status_code == 404
    assert client.get("/api/v1/products/").json()["total"] == 0


def test_retire_product_database_failure(db_session, make_product, monkeypatch):
    """A failed commit while retiring surfaces as PersistenceError and keeps the product active."""

    product_id = make_product().id

    def failing_commit():
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(PersistenceError):
        ProductService(db_session).retire(product_id)

    monkeypatch.undo()
    assert ProductService(db_session).get_by_id(product_id) is not None
