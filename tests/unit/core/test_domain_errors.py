"""
Tests for domain errors and the error envelope.

Tests:
- Error codes and HTTP statuses of the domain hierarchy
- Route-level handlers rendering the envelope
- The outermost ASGI guard for unhandled exceptions
- Sanitization of secrets in messages
"""

import pytest
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.exc import OperationalError

from core.exceptions import (
    ConflictError,
    DomainError,
    ExpiredError,
    ForbiddenError,
    InvalidStateError,
    InvalidStatusError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    sanitize_error_message,
    setup_error_handlers,
)


class TestErrorHierarchy:

    @pytest.mark.parametrize("error_cls,code,status_code", [
        (NotFoundError, "NOT_FOUND", 404),
        (ForbiddenError, "FORBIDDEN", 403),
        (ConflictError, "CONFLICT", 409),
        (InvalidStateError, "INVALID_STATE", 400),
        (ExpiredError, "EXPIRED", 400),
        (InvalidTransitionError, "INVALID_TRANSITION", 409),
        (ValidationError, "VALIDATION_ERROR", 422),
        (InvalidStatusError, "INVALID_STATUS", 400),
    ])
    def test_codes_and_statuses(self, error_cls, code, status_code):
        error = error_cls("boom")
        assert error.code == code
        assert error.status_code == status_code
        assert error.message == "boom"
        assert error.details == {}

    def test_expired_is_an_invalid_state(self):
        assert issubclass(ExpiredError, InvalidStateError)
        assert issubclass(InvalidTransitionError, InvalidStateError)
        assert issubclass(InvalidStatusError, ValidationError)
        assert issubclass(NotFoundError, DomainError)


class Payload(BaseModel):
    rating: int


@pytest.fixture
def error_app():
    app = FastAPI()
    setup_error_handlers(app)
    app.add_middleware(ErrorHandlingMiddleware)

    @app.get("/transition")
    async def transition():
        raise InvalidTransitionError(
            "Cannot change status from approved to pending",
            details={"from": "approved", "to": "pending"},
        )

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Application not found")

    @app.get("/http")
    async def http_error():
        raise HTTPException(status_code=401, detail="Authentication required",
                            headers={"WWW-Authenticate": "Bearer"})

    @app.post("/validate")
    async def validate(payload: Payload):
        return payload

    @app.get("/crash")
    async def crash():
        raise RuntimeError("password=hunter2 leaked")

    @app.get("/database")
    async def database():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    return app


async def get(app, path, method="GET", **kwargs):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        return await ac.request(method, path, **kwargs)


class TestErrorEnvelope:
    """Every failure leaves the API in the same shape."""

    @pytest.mark.asyncio
    async def test_domain_error_keeps_code_and_details(self, error_app):
        response = await get(error_app, "/transition")

        assert response.status_code == 409
        assert response.json() == {
            "error": {
                "code": "INVALID_TRANSITION",
                "message": "Cannot change status from approved to pending",
                "path": "/transition",
                "method": "GET",
                "details": {"from": "approved", "to": "pending"},
            }
        }

    @pytest.mark.asyncio
    async def test_not_found(self, error_app):
        response = await get(error_app, "/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
        assert "details" not in response.json()["error"]

    @pytest.mark.asyncio
    async def test_http_exception_keeps_headers(self, error_app):
        response = await get(error_app, "/http")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error"]["code"] == "HTTP_EXCEPTION"

    @pytest.mark.asyncio
    async def test_request_validation(self, error_app):
        response = await get(error_app, "/validate", method="POST", json={"rating": "many"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "body.rating"

    @pytest.mark.asyncio
    async def test_unhandled_exception_is_opaque(self, error_app):
        response = await get(error_app, "/crash")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_SERVER_ERROR"
        assert "hunter2" not in response.text

    @pytest.mark.asyncio
    async def test_database_unavailable(self, error_app):
        response = await get(error_app, "/database")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "DATABASE_ERROR"


class TestSanitization:

    @pytest.mark.parametrize("message,secret", [
        ("password=hunter2", "hunter2"),
        ('{"token": "abc123"}', "abc123"),
        ("api_key: sk-live-1", "sk-live-1"),
        ("could not connect to postgresql+asyncpg://app:pw@db:5432/placement", "pw@db"),
    ])
    def test_secrets_are_redacted(self, message, secret):
        sanitized = sanitize_error_message(message)
        assert secret not in sanitized
        assert "[REDACTED]" in sanitized

    def test_none_message(self):
        assert sanitize_error_message(None) == ""
