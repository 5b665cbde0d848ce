"""
Security utilities: access token handling and audit logging.

Tokens are issued by the identity service in production; ``create_access_token``
exists for tooling, local development and tests.
"""

import json
import logging
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Optional, Set, TypedDict

import jwt

from core.config import settings
from core.utils.datetime import now

logger = logging.getLogger("security.audit")

ACCESS_TOKEN_TYPE = "access"


class JWTPayload(TypedDict, total=False):
    sub: str
    role: str
    token_type: str
    exp: int
    iat: int


def create_access_token(
    subject: int | str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> str:
    """
    Create a signed access token for a user.

    Args:
        subject: User ID stored in the ``sub`` claim
        role: User role, copied into the token for cheap routing decisions
        expires_delta: Lifetime of the token (defaults to settings)
        secret: Signing key (defaults to settings)
        algorithm: Signing algorithm (defaults to settings)

    Returns:
        Encoded JWT
    """
    issued_at = now()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    payload = {
        "sub": str(subject),
        "role": role,
        "token_type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(
        payload,
        secret or settings.jwt_secret_key,
        algorithm=algorithm or settings.jwt_algorithm,
    )


def verify_jwt_token(
    token: str,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> JWTPayload:
    """
    Decode and verify an access token.

    Raises:
        jwt.ExpiredSignatureError: Token is past its ``exp``
        jwt.InvalidTokenError: Signature, structure or token type is wrong
    """
    payload = jwt.decode(
        token,
        secret or settings.jwt_secret_key,
        algorithms=[algorithm or settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("token_type") != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an access token")
    return payload


class AuditAction(str, Enum):
    """Audit log action types."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"

    # Application lifecycle
    SUBMIT = "SUBMIT"
    CHANGE_STATUS = "CHANGE_STATUS"
    SCHEDULE_INTERVIEW = "SCHEDULE_INTERVIEW"
    WITHDRAW = "WITHDRAW"
    ADD_FEEDBACK = "ADD_FEEDBACK"

    # Moderation
    MODERATE = "MODERATE"
    RECOUNT = "RECOUNT"


class ResourceType(str, Enum):
    """Resource types for audit logging."""
    APPLICATION = "APPLICATION"
    JOB = "JOB"
    USER = "USER"


# PII fields that should be masked in logs
PII_FIELDS: Set[str] = {
    "email", "phone", "name", "address",
    "date_of_birth", "gpa", "salary",
}


def mask_pii(data: Any, depth: int = 0) -> Any:
    """
    Recursively mask PII fields in data structures.

    Args:
        data: Data to mask (dict, list, or primitive)
        depth: Current recursion depth (max 10)

    Returns:
        Data with PII fields masked
    """
    if depth > 10:
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if key.lower() in PII_FIELDS:
                if isinstance(value, str) and len(value) > 0:
                    masked[key] = f"{value[0]}***[{len(value)}]"
                else:
                    masked[key] = "[MASKED]"
            else:
                masked[key] = mask_pii(value, depth + 1)
        return masked
    elif isinstance(data, list):
        return [mask_pii(item, depth + 1) for item in data[:5]]
    else:
        return data


async def log_audit_event(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id: Optional[int | str] = None,
    user_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    contains_pii: bool = False,
) -> dict[str, Any]:
    """
    Log an audit event for a state change.

    Emits one JSON line on the ``security.audit`` logger and returns the
    event dict.
    """
    event = {
        "timestamp": now().isoformat(),
        "event_type": "AUDIT",
        "action": action.value,
        "resource_type": resource_type.value,
        "resource_id": str(resource_id) if resource_id is not None else None,
        "user_id": user_id,
        "contains_pii": contains_pii,
        "details": mask_pii(details) if details and contains_pii else details,
    }
    logger.info(json.dumps(event, default=str))
    return event
