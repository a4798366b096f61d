"""
Identity extraction helpers.

Converts a verified token payload into the ``Identity`` carried on the
request context. Verification itself happens in ``tokens.py``.
"""

import logging
from dataclasses import dataclass
from typing import Any

from app.domain.enums import UserRole

logger = logging.getLogger(__name__)

ROLE_NAMES = {role.value for role in UserRole}


@dataclass(frozen=True, slots=True)
class Identity:
    """Verified caller identity for one request."""

    user_id: str
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def identity_from_payload(payload: dict[str, Any]) -> Identity | None:
    """
    Build an Identity from a decoded token payload.

    The payload carries ``userId``, ``email`` and ``role`` claims.

    Args:
        payload: Decoded token payload from verify_token()

    Returns:
        Identity, or None when a required claim is missing or the role is unknown
    """
    user_id = payload.get("userId")
    role = payload.get("role")
    if not user_id or role not in ROLE_NAMES:
        logger.warning("Token payload missing userId or carrying unknown role: %s", role)
        return None
    return Identity(user_id=str(user_id), email=str(payload.get("email", "")), role=UserRole(role))
