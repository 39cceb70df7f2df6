"""Pytest configuration and fixtures shared across all test modules.

This file is loaded by pytest before any test module, so the environment
below is in place before ``freshpick.core.config`` builds its settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-0123456789abcdef")
os.environ.setdefault("AUTH_COOKIE_SECURE", "false")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LLM_PROVIDER", "none")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_CRON_SECRET", "test-cron-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from freshpick.adapters.store.factory import apply_unique_constraints
from freshpick.adapters.store.in_memory import InMemoryDocumentStore
from freshpick.api.dependencies import get_enhancement_service
from freshpick.core.app_factory import create_app
from freshpick.core.dependencies import get_store
from freshpick.core.rate_limit import reset_rate_limiters
from freshpick.core.security import sign_access_token
from freshpick.schemas.auth import SignupRequest
from freshpick.schemas.catalog import CategoryCreate, ProductCreate
from freshpick.services.auth_service import USERS, AuthService
from freshpick.services.category_service import CategoryService
from freshpick.services.product_service import ProductService

DEFAULT_PASSWORD = "Secret123"


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Empty in-memory store with the production unique constraints."""
    document_store = InMemoryDocumentStore()
    apply_unique_constraints(document_store)
    return document_store


@pytest.fixture
def app(store: InMemoryDocumentStore) -> Iterator[FastAPI]:
    application = create_app()
    application.dependency_overrides[get_store] = lambda: store
    reset_rate_limiters()
    get_enhancement_service.cache_clear()
    yield application
    application.dependency_overrides.clear()
    reset_rate_limiters()


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(store: InMemoryDocumentStore) -> Callable[..., dict[str, Any]]:
    """Create a user through the signup flow and return the stored document."""
    counter = {"n": 0}

    def _make_user(
        *,
        role: str = "customer",
        email: str | None = None,
        phone_number: str | None = None,
        password: str = DEFAULT_PASSWORD,
        first_name: str = "Test",
    ) -> dict[str, Any]:
        counter["n"] += 1
        n = counter["n"]
        payload = SignupRequest(
            first_name=first_name,
            last_name=f"User{n}",
            email=email or f"user{n}@example.com",
            phone_number=phone_number or f"+9477000{n:04d}",
            password=password,
            registration_address={
                "address_line1": f"{n} Galle Road",
                "city": "Colombo",
                "province": "Western",
                "postal_code": "00300",
                "country": "Sri Lanka",
            },
        )
        result = AuthService(store).signup(payload)
        if role != "customer":
            store.update_one(USERS, {"user_id": result.user["user_id"]}, {"$set": {"role": role}})
        return store.find_one(USERS, {"user_id": result.user["user_id"]})

    return _make_user


def bearer(user: dict[str, Any]) -> dict[str, str]:
    token = sign_access_token({"user_id": user["user_id"], "email": user.get("email"), "role": user["role"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for() -> Callable[[dict[str, Any]], dict[str, str]]:
    """Build bearer headers for any user document."""
    return bearer


@pytest.fixture
def customer(make_user) -> dict[str, Any]:
    return make_user()


@pytest.fixture
def admin(make_user) -> dict[str, Any]:
    return make_user(role="admin", first_name="Admin")


@pytest.fixture
def customer_headers(customer) -> dict[str, str]:
    return bearer(customer)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return bearer(admin)


@pytest.fixture
def category(store: InMemoryDocumentStore) -> dict[str, Any]:
    return CategoryService(store).create(CategoryCreate(name="Fresh Vegetables"))


@pytest.fixture
def make_product(store: InMemoryDocumentStore, category) -> Callable[..., dict[str, Any]]:
    counter = {"n": 0}

    def _make_product(**overrides: Any) -> dict[str, Any]:
        counter["n"] += 1
        fields: dict[str, Any] = {
            "name": f"Product {counter['n']}",
            "sku": f"SKU-{counter['n']:03d}",
            "price": 10.0,
            "category_id": category["_id"],
            "stock_qty": 20,
        }
        fields.update(overrides)
        return ProductService(store).create(ProductCreate(**fields))

    return _make_product
