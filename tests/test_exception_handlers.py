"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from freshpick.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    ConflictAppError,
    LLMAppError,
    NotFoundAppError,
    StoreAppError,
    ValidationAppError,
)
from freshpick.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        ("error_cls", "status_code"),
        [
            (ValidationAppError, 400),
            (AuthenticationAppError, 401),
            (AuthorizationAppError, 403),
            (NotFoundAppError, 404),
            (ConflictAppError, 409),
            (LLMAppError, 502),
            (StoreAppError, 503),
        ],
    )
    def test_status_code_follows_error_class(self, client, app_with_handlers, error_cls, status_code):
        @app_with_handlers.get("/boom")
        async def boom():
            raise error_cls(code="some_code", message="Something happened")

        response = client.get("/boom")

        assert response.status_code == status_code
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "some_code"
        assert data["error"]["message"] == "Something happened"
        assert "request_id" in data["error"]

    def test_error_includes_details_when_provided(self, client, app_with_handlers):
        @app_with_handlers.get("/conflict")
        async def conflict():
            raise ConflictAppError(
                code="product_sku_taken",
                message="Product with this SKU already exists",
                details={"field": "sku"},
            )

        response = client.get("/conflict")

        assert response.status_code == 409
        assert response.json()["error"]["details"] == {"field": "sku"}

    def test_details_omitted_when_empty(self, client, app_with_handlers):
        @app_with_handlers.get("/plain")
        async def plain():
            raise NotFoundAppError(code="order_not_found", message="Order not found")

        assert "details" not in client.get("/plain").json()["error"]


class TestValidationHandler:
    def test_request_validation_maps_to_400_with_fields(self, client, app_with_handlers):
        class Body(BaseModel):
            quantity: int = Field(..., ge=1)

        @app_with_handlers.post("/items")
        async def create_item(body: Body):
            return body

        response = client.post("/items", json={"quantity": 0})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "validation_failed"
        assert error["details"]["fields"][0]["field"] == "quantity"


class TestHTTPExceptionHandler:
    def test_http_exception_keeps_headers_and_retry_after(self, client, app_with_handlers):
        @app_with_handlers.get("/limited")
        async def limited():
            raise HTTPException(
                status_code=429,
                detail="Rate limit exceeded",
                headers={"Retry-After": "12"},
            )

        response = client.get("/limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"
        error = response.json()["error"]
        assert error["code"] == "rate_limit_exceeded"
        assert error["details"] == {"retry_after": 12}

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: database connection failed")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "database connection" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("Test error with details")))

        response_text = bytes(response.body).decode()
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text


def test_multiple_handler_setups_does_not_fail():
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
