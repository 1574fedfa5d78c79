"""
Tests for error handler middleware and custom exceptions.
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from cleaning_crm.api.middleware.error_handler import (
    AppException,
    ConflictException,
    InternalErrorException,
    NotFoundException,
    PreconditionException,
    UnauthorizedException,
    ValidationException,
    app_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)


@pytest.mark.unit
def test_app_exception_creation():
    """Test creating custom AppException."""
    exc = AppException(
        message="Test error",
        status_code=500,
        details={"key": "value"},
    )

    assert exc.message == "Test error"
    assert exc.status_code == 500
    assert exc.details == {"key": "value"}


@pytest.mark.unit
def test_not_found_exception():
    """Message stays short; the id goes into details."""
    exc = NotFoundException("Customer", "123")

    assert exc.message == "Customer not found"
    assert exc.status_code == 404
    assert exc.details["resource"] == "Customer"
    assert exc.details["resource_id"] == "123"


@pytest.mark.unit
def test_unauthorized_exception():
    exc = UnauthorizedException()

    assert exc.message == "Unauthorized"
    assert exc.status_code == 401


@pytest.mark.unit
def test_validation_exception():
    exc = ValidationException(missing=["email"])

    assert exc.message == "Missing required fields"
    assert exc.status_code == 400
    assert exc.details == {"missing": ["email"]}


@pytest.mark.unit
def test_conflict_exception_is_bad_request():
    exc = ConflictException("Customer with this email already exists")

    assert exc.status_code == 400


@pytest.mark.unit
def test_precondition_exception():
    exc = PreconditionException("Blocked", details={"active_subscriptions": True})

    assert exc.status_code == 400
    assert exc.details == {"active_subscriptions": True}


@pytest.mark.unit
def test_internal_error_exception():
    exc = InternalErrorException("CUSTOMERS_GET")

    assert exc.message == "Internal error"
    assert exc.status_code == 500
    assert exc.details == {"component": "CUSTOMERS_GET"}


@pytest.mark.integration
def test_app_exception_handler_returns_plain_text():
    """Custom exceptions become plain-text responses."""
    app = FastAPI()
    app.add_exception_handler(AppException, app_exception_handler)

    @app.get("/raise-not-found")
    async def raise_not_found():
        raise NotFoundException("Customer", "123")

    client = TestClient(app)
    response = client.get("/raise-not-found")

    assert response.status_code == 404
    assert response.text == "Customer not found"
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.integration
def test_validation_error_handler():
    """Bodies that fail validation are answered as an internal error."""
    app = FastAPI()

    from fastapi.exceptions import RequestValidationError
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    class Payload(BaseModel):
        age: int = Field(..., ge=0, le=150)

    @app.post("/validate")
    async def validate(data: Payload):
        return {"ok": True}

    client = TestClient(app)
    response = client.post("/validate", json={"age": 200})

    assert response.status_code == 500
    assert response.text == "Internal error"


@pytest.mark.integration
def test_http_exception_handler():
    """Test HTTP exception handler."""
    app = FastAPI()

    from starlette.exceptions import HTTPException as StarletteHTTPException
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    @app.get("/raise-http-error")
    async def raise_http_error():
        raise StarletteHTTPException(status_code=404, detail="Page not found")

    client = TestClient(app)
    response = client.get("/raise-http-error")

    assert response.status_code == 404
    assert response.text == "Page not found"


@pytest.mark.integration
def test_unhandled_exception_handler():
    """Test handler for unhandled exceptions."""
    app = FastAPI()
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/raise-unhandled")
    async def raise_unhandled():
        raise ValueError("Unexpected error")

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/raise-unhandled")

    assert response.status_code == 500
    assert response.text == "Internal error"


@pytest.mark.integration
def test_multiple_exception_handlers():
    """Test that different exception types are handled correctly."""
    app = FastAPI()

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/raise-conflict")
    async def raise_conflict():
        raise ConflictException("Email already in use by another customer")

    @app.get("/raise-generic")
    async def raise_generic():
        raise RuntimeError("Generic error")

    client = TestClient(app, raise_server_exceptions=False)

    response1 = client.get("/raise-conflict")
    assert response1.status_code == 400
    assert response1.text == "Email already in use by another customer"

    response2 = client.get("/raise-generic")
    assert response2.status_code == 500
    assert response2.text == "Internal error"
