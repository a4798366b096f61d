"""
Role-based access control.

Plain predicate checks over the identity already resolved onto the request
context. Every check fails with ``UnauthenticatedError`` when no identity is
present, before any role is examined, and with ``ForbiddenError`` when the
role is not allowed. Callers run the check before touching storage.
"""

import logging
from collections.abc import Iterable
from typing import Protocol

from app.core.errors import ForbiddenError, UnauthenticatedError
from app.domain.enums import UserRole

from .utils import Identity

logger = logging.getLogger(__name__)

AUTHENTICATION_REQUIRED_MSG = "Authentication required"


class HasIdentity(Protocol):
    identity: Identity | None


def require_authenticated(context: HasIdentity) -> Identity:
    """
    Ensure the request carries a verified identity.

    Raises:
        UnauthenticatedError: If the request is anonymous
    """
    if context.identity is None:
        logger.warning("Access denied - anonymous request")
        raise UnauthenticatedError(AUTHENTICATION_REQUIRED_MSG)
    return context.identity


def require_role(context: HasIdentity, allowed_roles: Iterable[UserRole]) -> Identity:
    """
    Ensure the caller's role is one of ``allowed_roles``.

    Args:
        context: Request context carrying the identity
        allowed_roles: Roles permitted to continue

    Returns:
        The caller identity

    Raises:
        UnauthenticatedError: If the request is anonymous
        ForbiddenError: If the caller's role is not allowed
    """
    identity = require_authenticated(context)
    allowed = set(allowed_roles)

    if identity.role not in allowed:
        required = sorted(role.value for role in allowed)
        logger.warning(
            "Access denied - user %s with role %s lacks required role: %s",
            identity.user_id,
            identity.role.value,
            required,
        )
        raise ForbiddenError(
            f"Access denied. Required roles: {', '.join(required)}",
            details={"required_roles": required, "user_role": identity.role.value},
        )

    logger.debug("Role check passed: user has %s role", identity.role.value)
    return identity


def require_admin(context: HasIdentity) -> Identity:
    return require_role(context, {UserRole.ADMIN})


def require_self_or_admin(context: HasIdentity, user_id: str) -> Identity:
    """
    Allow a user to act on their own record, or an admin on any record.

    Raises:
        UnauthenticatedError: If the request is anonymous
        ForbiddenError: If a non-admin targets another user
    """
    identity = require_authenticated(context)
    if identity.user_id != user_id and not identity.is_admin:
        logger.warning(
            "Access denied - user %s attempted to modify user %s", identity.user_id, user_id
        )
        raise ForbiddenError(
            "Not authorized to update this user", details={"target_user_id": user_id}
        )
    return identity
