"""
Tests for error codes, status mapping and detail sanitization.
"""

from unittest.mock import patch

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError

from app.core.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    TrackingError,
    UnauthenticatedError,
    UpstreamError,
    get_error_code,
    get_status_code,
)
from app.main import _sanitize_error_details
from app.repos.common import parse_datetime_text, parse_object_id, storage_operation


class TestErrorMapping:
    @pytest.mark.parametrize(
        "error,code,status",
        [
            (UnauthenticatedError("x"), "UNAUTHENTICATED", 401),
            (ForbiddenError("x"), "FORBIDDEN", 403),
            (NotFoundError("x"), "NOT_FOUND", 404),
            (InvalidInputError("x"), "BAD_USER_INPUT", 400),
            (UpstreamError("x"), "UPSTREAM_FAILURE", 502),
            (ValueError("x"), "INTERNAL_SERVER_ERROR", 500),
            (TrackingError("x"), "INTERNAL_SERVER_ERROR", 500),
        ],
    )
    def test_code_and_status(self, error, code, status):
        assert get_error_code(error) == code
        assert get_status_code(error) == status

    def test_details_default_to_empty(self):
        error = NotFoundError("Shipment not found")
        assert error.message == "Shipment not found"
        assert error.details == {}
        assert str(error) == "Shipment not found"


class TestStorageOperation:
    @pytest.mark.anyio
    async def test_driver_error_becomes_upstream(self):
        with pytest.raises(UpstreamError) as exc_info:
            async with storage_operation("unit_find"):
                raise AutoReconnect("connection reset")
        assert exc_info.value.details["operation"] == "unit_find"

    @pytest.mark.anyio
    async def test_duplicate_key_becomes_invalid_input(self):
        with pytest.raises(InvalidInputError) as exc_info:
            async with storage_operation("unit_insert"):
                raise DuplicateKeyError(
                    "E11000", code=11000, details={"keyValue": {"email": "a@b.c"}}
                )
        assert exc_info.value.details["key"] == {"email": "a@b.c"}

    @pytest.mark.anyio
    async def test_domain_errors_pass_through(self):
        with pytest.raises(NotFoundError):
            async with storage_operation("unit_get"):
                raise NotFoundError("missing")


class TestParsing:
    def test_invalid_object_id(self):
        with pytest.raises(InvalidInputError):
            parse_object_id("not-an-id")

    def test_invalid_datetime_text(self):
        with pytest.raises(InvalidInputError):
            parse_datetime_text("2024-13-45", field="createdFrom")


class TestSanitizeErrorDetails:
    def test_returns_all_details_outside_production(self):
        details = {"error": "mongodb://user:pass@db:27017", "file": "/app/app/main.py"}
        assert _sanitize_error_details(details) == details

    def test_redacts_sensitive_values_in_production(self):
        details = {
            "error": "failed to reach mongodb://user:pass@db:27017",
            "file": "/app/app/repos/user_repo.py",
            "nested": {"query": "{'$regex': 'x'}"},
            "field": "createdFrom",
        }
        with patch("app.main.settings") as mock_settings:
            mock_settings.app_env = "prod"
            sanitized = _sanitize_error_details(details)

        assert sanitized["error"] == "[REDACTED]"
        assert sanitized["file"] == "[REDACTED]"
        assert sanitized["nested"]["query"] == "[REDACTED]"
        assert sanitized["field"] == "createdFrom"
