"""
Domain-specific exceptions for the Shipment Tracking API.

These exceptions represent business logic violations and are mapped
to distinguishable error codes (GraphQL ``extensions.code``) and HTTP
status codes in the API layer.
"""

from typing import Any


class TrackingError(Exception):
    """Base exception for all shipment tracking domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class UnauthenticatedError(TrackingError):
    """
    Raised when no verified identity is present on the request.

    Examples:
    - Missing bearer token
    - Invalid or expired token (request treated as anonymous)

    Code: UNAUTHENTICATED / HTTP 401
    """

    pass


class ForbiddenError(TrackingError):
    """
    Raised when the caller is authenticated but the role is insufficient.

    Examples:
    - EMPLOYEE attempting to delete a shipment
    - EMPLOYEE updating another user's profile
    - Login against a deactivated account

    Code: FORBIDDEN / HTTP 403
    """

    pass


class NotFoundError(TrackingError):
    """
    Raised when a requested record does not exist.

    Code: NOT_FOUND / HTTP 404
    """

    pass


class InvalidInputError(TrackingError):
    """
    Raised when input data fails validation.

    Examples:
    - Malformed date text in a filter
    - Malformed cursor or record identifier
    - Duplicate unique key on create (tracking number, email)
    - Field constraint violation (negative cost, description too long)

    Code: BAD_USER_INPUT / HTTP 400
    """

    pass


class UpstreamError(TrackingError):
    """
    Raised when a storage or batch-fetch operation fails.

    No retries are performed; the failure is surfaced immediately.

    Code: UPSTREAM_FAILURE / HTTP 502
    """

    pass


# Error code mapping (GraphQL extensions.code)
ERROR_CODE_MAP = {
    UnauthenticatedError: "UNAUTHENTICATED",
    ForbiddenError: "FORBIDDEN",
    NotFoundError: "NOT_FOUND",
    InvalidInputError: "BAD_USER_INPUT",
    UpstreamError: "UPSTREAM_FAILURE",
}

# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    UnauthenticatedError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    InvalidInputError: 400,
    UpstreamError: 502,
}

INTERNAL_ERROR_CODE = "INTERNAL_SERVER_ERROR"


def get_error_code(error: Exception) -> str:
    """
    Get the client-facing error code for a given exception.

    Args:
        error: The exception instance

    Returns:
        Error code string (defaults to INTERNAL_SERVER_ERROR for unknown errors)
    """
    return ERROR_CODE_MAP.get(type(error), INTERNAL_ERROR_CODE)


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
