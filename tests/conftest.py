import os
import tempfile

# Configure the app before it is imported: isolated uploads, eager Celery,
# and a Redis URL nothing listens on so the cache always misses.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="inventory-uploads-"))
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:6399/15")
os.environ.setdefault("SECRET_KEY", "test-secret")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_api.main import app
from inventory_api.database import Base, get_db
from inventory_api.models import Category, Product, User, UserRole


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


def _register(client, email: str, role: str) -> dict:
    response = client.post(
        "/api/v1/auth/register",
        json={"name": email.split("@")[0], "email": email, "password": "secret123", "role": role}
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return _register(client, "admin@example.com", "admin")


@pytest.fixture
def client_headers(client):
    return _register(client, "buyer@example.com", "client")


def png_upload(name: str = "photo.png"):
    """A multipart file tuple holding a tiny PNG."""
    return (name, PNG_BYTES, "image/png")


@pytest.fixture
def create_product(client, admin_headers):
    """Factory creating a product through the API; returns the response JSON."""
    counter = {"n": 0}

    def _create(price="10.00", available_quantity=10, images=1, main_image_index=0, **fields):
        counter["n"] += 1
        data = {
            "batch_number": fields.pop("batch_number", f"BATCH-{counter['n']:04d}"),
            "name": fields.pop("name", f"Product {counter['n']}"),
            "price": str(price),
            "available_quantity": str(available_quantity),
            "entry_date": "2024-01-15",
            "main_image_index": str(main_image_index),
        }
        data.update({k: str(v) for k, v in fields.items()})
        files = [("images", png_upload(f"img{i}.png")) for i in range(images)]
        response = client.post("/api/v1/products/", data=data, files=files, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def make_user(db_session):
    """Factory inserting a user row directly."""
    def _make(email: str = "user@example.com", role: UserRole = UserRole.CLIENT) -> User:
        user = User(name="User", email=email, password_hash="x", role=role)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def make_product(db_session):
    """Factory inserting a product row directly."""
    counter = {"n": 0}

    def _make(price: str = "10.00", available_quantity: int = 10, category: Category = None) -> Product:
        counter["n"] += 1
        product = Product(
            batch_number=f"LOT-{counter['n']:04d}",
            name=f"Item {counter['n']}",
            price=Decimal(price),
            available_quantity=available_quantity,
            entry_date=date(2024, 1, 15),
            category=category,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def upload_file():
    return png_upload
