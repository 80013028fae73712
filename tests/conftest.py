"""
Shared fixtures.

The environment is set before anything from ``cafechain`` is imported:
settings and the engine are created at import time.
"""

import os
import tempfile
from pathlib import Path

DB_PATH = Path(tempfile.gettempdir()) / f"cafechain_test_{os.getpid()}.db"

os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"
os.environ["ADMIN_EMAIL"] = "admin@cafechain.test"
os.environ["ADMIN_PASSWORD"] = "admin-secret"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-32-bytes!"
os.environ["COOKIE_SECURE"] = "false"
os.environ["MOCK_FAILURE_RATE"] = "0"
os.environ["MAX_UPLOAD_MB"] = "1"

import pytest
from fastapi.testclient import TestClient

from cafechain.core.config import get_settings
from cafechain.main import app
from cafechain.services.notifications import get_notification_service, reset_notification_service
from cafechain.services.storage import get_storage_service, reset_storage_service

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _remove_db() -> None:
    if DB_PATH.exists():
        DB_PATH.unlink()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def client():
    """Client against a fresh database; tables are created by the app lifespan."""
    _remove_db()
    reset_notification_service()
    reset_storage_service()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    _remove_db()


@pytest.fixture
def outbox(client):
    """Emails captured by the mock sender for this test."""
    return get_notification_service().outbox


@pytest.fixture
def storage(client):
    return get_storage_service()


# =============================================================================
# HELPERS
# =============================================================================

def login_admin(client: TestClient) -> None:
    response = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text


def signup(
    client: TestClient,
    email: str = "a@b.com",
    password: str = "secret123",
    name: str = "Asha",
    number: str = "9876543210",
) -> dict:
    response = client.post(
        "/auth/signup",
        json={"name": name, "email": email, "password": password, "number": number},
    )
    assert response.status_code == 200, response.text
    return response.json()


def login_user(client: TestClient, email: str = "a@b.com", password: str = "secret123") -> None:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text


def create_restaurant(
    client: TestClient,
    name: str = "Joe's",
    location: str = "Main St",
    number: str = "1234567890",
) -> dict:
    response = client.post(
        "/admin/createResto",
        json={"name": name, "location": location, "number": number},
    )
    assert response.status_code == 200, response.text
    return response.json()["resto"]


def add_menu_item(
    client: TestClient,
    resto_id: int,
    name: str = "Masala Dosa",
    price: int = 120,
    food_type: str = "Veg",
    category: str = "South Indian",
) -> dict:
    response = client.post(
        f"/admin/resto/{resto_id}/addMenu",
        data={
            "name": name,
            "price": str(price),
            "description": f"{name} served hot",
            "type": food_type,
            "category": category,
        },
        files={"image": ("dish.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 200, response.text
    return response.json()["menu"]


def menu_version(client: TestClient, resto_id: int) -> int:
    response = client.get(f"/admin/resto/{resto_id}/getMenuVersion")
    assert response.status_code == 200, response.text
    return response.json()["menuVersion"]


def place_order(client: TestClient, resto_id: int, items: list[dict], total: int, **extra) -> dict:
    response = client.post(
        f"/user/resto/{resto_id}/order",
        json={"totalPrice": total, "orderItems": items, **extra},
    )
    assert response.status_code == 200, response.text
    return response.json()["order"]


@pytest.fixture
def restaurant(client):
    """Restaurant with two menu items, created by the admin."""
    login_admin(client)
    resto = create_restaurant(client)
    dosa = add_menu_item(client, resto["id"], "Masala Dosa", 120)
    coffee = add_menu_item(client, resto["id"], "Filter Coffee", 40, food_type="Veg", category="Drinks")
    return {"resto": resto, "dosa": dosa, "coffee": coffee}
