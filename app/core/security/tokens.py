"""
Access token issuance and verification.

Tokens are HS256-signed JWTs carrying ``userId``, ``email`` and ``role``.
Verification never raises: a missing, malformed or expired token makes the
request anonymous, and the Access Guard decides whether anonymous callers may
proceed.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings
from app.core.observability import set_user_id
from app.domain.enums import UserRole

from .utils import Identity, identity_from_payload

logger = logging.getLogger(__name__)

# Authorization header is optional; anonymous requests are allowed through
_optional_security = HTTPBearer(auto_error=False)


def issue_token(user: dict[str, Any]) -> str:
    """
    Sign an access token for a stored user document.

    Args:
        user: User document (must carry ``_id``, ``email`` and ``role``)

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    payload = {
        "userId": str(user["_id"]),
        "email": user["email"],
        "role": UserRole(user["role"]).value,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.jwt_expires_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Identity | None:
    """
    Verify a token signature and expiry and return the caller identity.

    Args:
        token: JWT string from the Authorization header

    Returns:
        Identity, or None if the token is not acceptable
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.info("Token has expired")
        return None
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None

    return identity_from_payload(payload)


def extract_token_from_header(auth_header: str | None) -> str | None:
    """Return the token of a ``Bearer <token>`` header value, or None."""
    if not auth_header:
        return None
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        return None
    return parts[1]


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_optional_security),
) -> Identity | None:
    """
    FastAPI dependency resolving the caller identity for the current request.

    Returns:
        Identity for a valid bearer token, otherwise None
    """
    if credentials is None:
        return None

    identity = verify_token(credentials.credentials)
    if identity is not None:
        set_user_id(identity.user_id)
    return identity
