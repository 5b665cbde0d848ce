"""
Tests for access tokens and the authentication middleware.

Tests:
- Token creation and verification
- Expired, tampered and wrong-type tokens
- Bearer header parsing
- Middleware pass-through and 401 responses
- Audit event masking
"""

import logging
from datetime import timedelta

import jwt as pyjwt
import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from core.config import settings
from core.middleware.authentication import (
    AuthenticationMiddleware,
    extract_bearer_token,
    get_jwt_payload,
)
from core.security import (
    AuditAction,
    ResourceType,
    create_access_token,
    log_audit_event,
    mask_pii,
    verify_jwt_token,
)
from core.utils.datetime import now


class TestAccessTokens:
    """Token round trips and rejection."""

    def test_create_and_verify(self):
        token = create_access_token(42, "recruiter")
        payload = verify_jwt_token(token)

        assert payload["sub"] == "42"
        assert payload["role"] == "recruiter"
        assert payload["token_type"] == "access"
        assert payload["exp"] > payload["iat"]

    def test_expired_token(self):
        token = create_access_token(1, "student", expires_delta=timedelta(seconds=-1))

        with pytest.raises(pyjwt.ExpiredSignatureError):
            verify_jwt_token(token)

    def test_wrong_secret(self):
        token = create_access_token(1, "student", secret="another-secret-that-is-long-enough-1234")

        with pytest.raises(pyjwt.InvalidSignatureError):
            verify_jwt_token(token)

    def test_refresh_token_is_not_accepted(self):
        token = pyjwt.encode(
            {"sub": "1", "token_type": "refresh", "exp": now() + timedelta(hours=1)},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token(token)

    def test_subject_is_required(self):
        token = pyjwt.encode(
            {"token_type": "access", "exp": now() + timedelta(hours=1)},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(pyjwt.MissingRequiredClaimError):
            verify_jwt_token(token)


class TestBearerHeader:

    @pytest.mark.parametrize("header,expected", [
        ("Bearer abc.def", "abc.def"),
        ("bearer   abc.def  ", "abc.def"),
        ("Basic dXNlcjpwYXNz", None),
        ("Bearer ", None),
        ("", None),
        (None, None),
    ])
    def test_extract_bearer_token(self, header, expected):
        assert extract_bearer_token(header) == expected


@pytest.fixture
def protected_app():
    app = FastAPI()
    app.add_middleware(
        AuthenticationMiddleware,
        jwt_secret=settings.jwt_secret_key,
        jwt_algorithm=settings.jwt_algorithm,
    )

    @app.get("/whoami")
    async def whoami(request: Request):
        payload = get_jwt_payload(request)
        return {"sub": payload["sub"] if payload else None}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


async def call(app, path, headers=None):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        return await ac.get(path, headers=headers or {})


class TestAuthenticationMiddleware:
    """Token verification at the edge."""

    @pytest.mark.asyncio
    async def test_request_without_token_passes(self, protected_app):
        response = await call(protected_app, "/whoami")

        assert response.status_code == 200
        assert response.json() == {"sub": None}

    @pytest.mark.asyncio
    async def test_valid_token_exposes_payload(self, protected_app):
        token = create_access_token(7, "student")
        response = await call(protected_app, "/whoami", {"Authorization": f"Bearer {token}"})

        assert response.json() == {"sub": "7"}

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, protected_app):
        token = create_access_token(7, "student", expires_delta=timedelta(minutes=-5))
        response = await call(protected_app, "/whoami", {"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        error = response.json()["error"]
        assert error["code"] == "TOKEN_EXPIRED"
        assert error["path"] == "/whoami"
        assert error["method"] == "GET"

    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self, protected_app):
        response = await call(protected_app, "/whoami", {"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_INVALID"

    @pytest.mark.asyncio
    async def test_non_numeric_subject_rejected(self, protected_app):
        token = create_access_token("user_01H", "student")
        response = await call(protected_app, "/whoami", {"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_public_paths_ignore_tokens(self, protected_app):
        response = await call(protected_app, "/health", {"Authorization": "Bearer broken"})

        assert response.status_code == 200


class TestAuditEvents:

    @pytest.mark.asyncio
    async def test_audit_event_is_logged(self, caplog):
        caplog.set_level(logging.INFO, logger="security.audit")

        event = await log_audit_event(
            AuditAction.CHANGE_STATUS,
            ResourceType.APPLICATION,
            resource_id=5,
            user_id=2,
            details={"from": "pending", "to": "interview"},
        )

        assert event["action"] == "CHANGE_STATUS"
        assert event["resource_id"] == "5"
        assert any('"CHANGE_STATUS"' in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    async def test_pii_details_are_masked(self):
        event = await log_audit_event(
            AuditAction.CREATE,
            ResourceType.USER,
            resource_id=9,
            details={"email": "sam@university.edu", "role": "student"},
            contains_pii=True,
        )

        assert event["details"]["email"] == "s***[18]"
        assert event["details"]["role"] == "student"

    def test_mask_pii_nested(self):
        masked = mask_pii({"profile": {"phone": "+49 30 1234567", "major": "CS"}})
        assert masked["profile"]["phone"].startswith("+***")
        assert masked["profile"]["major"] == "CS"
