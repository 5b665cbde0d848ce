"""
Authentication middleware for bearer access tokens.

The middleware only *verifies* tokens: a request carrying a token that is
expired or malformed is rejected with 401 before it reaches a route. A valid
token's payload is stored in ``scope["jwt_payload"]``. Requests without a
token pass through untouched; endpoints that need a caller declare it through
the ``require_active_user`` dependency, which also loads the account.
"""

import logging
from typing import Callable, Optional

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse

from core.middleware.error_handling import error_envelope
from core.security import JWTPayload, verify_jwt_token

logger = logging.getLogger(__name__)

# Endpoints that never look at credentials
PUBLIC_PREFIXES = ("/health", "/ready", "/docs", "/redoc", "/openapi.json")


class AuthenticationError(Exception):
    """Base class for token failures."""

    code = "AUTHENTICATION_ERROR"
    message = "Authentication failed."


class TokenExpiredError(AuthenticationError):
    code = "TOKEN_EXPIRED"
    message = "Authentication token has expired. Please log in again."


class TokenInvalidError(AuthenticationError):
    code = "TOKEN_INVALID"
    message = "Invalid authentication token."


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AuthenticationMiddleware:
    """Pure ASGI middleware validating ``Authorization: Bearer`` tokens."""

    def __init__(
        self,
        app: Callable,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
    ):
        self.app = app
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http" or scope.get("path", "").startswith(PUBLIC_PREFIXES):
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            await self.app(scope, receive, send)
            return

        try:
            scope["jwt_payload"] = self._verify(token)
        except AuthenticationError as exc:
            logger.warning(
                f"Rejected token: {request.method} {request.url.path} - {exc.code}"
            )
            response = JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=error_envelope(
                    exc.code, exc.message, request.url.path, request.method
                ),
                headers={"WWW-Authenticate": "Bearer"},
            )
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)

    def _verify(self, token: str) -> JWTPayload:
        try:
            payload = verify_jwt_token(token, self.jwt_secret, self.jwt_algorithm)
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(str(e))

        if not str(payload.get("sub", "")).isdigit():
            raise TokenInvalidError("Token subject is not a user id")
        return payload


def get_jwt_payload(request: Request) -> Optional[JWTPayload]:
    """Verified token payload for this request, if one was presented."""
    return request.scope.get("jwt_payload")
