"""
Common repository functions shared across multiple repos.

All storage calls go through ``storage_operation`` so that metrics are
recorded and driver errors reach callers as domain errors: a duplicate key
becomes ``InvalidInputError``, any other driver failure ``UpstreamError``.
Nothing here retries.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.errors import InvalidInputError, UpstreamError
from app.core.observability import db_metrics

__all__ = [
    "parse_object_id",
    "parse_object_ids",
    "parse_datetime_text",
    "storage_operation",
    "utc_now",
]


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_object_id(value: Any, *, field: str = "id") -> ObjectId:
    """
    Convert an identifier string to an ObjectId.

    Raises:
        InvalidInputError: If the value is not a valid ObjectId
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise InvalidInputError(f"Invalid {field}", details={field: str(value)})


def parse_object_ids(values: list[Any], *, field: str = "ids") -> list[ObjectId]:
    return [parse_object_id(value, field=field) for value in values]


def parse_datetime_text(value: str, *, field: str) -> datetime:
    """
    Parse ISO-8601 date or date-time text. Naive values are taken as UTC.

    Raises:
        InvalidInputError: If the text is not a valid date/time
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise InvalidInputError(
            f"Invalid date/time for {field}: {value!r}", details={"field": field, "value": value}
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@asynccontextmanager
async def storage_operation(operation: str) -> AsyncIterator[None]:
    """
    Track one storage call and translate driver errors.

    Args:
        operation: Metric label for the call (e.g. "count_shipments")
    """
    async with db_metrics.track(operation):
        try:
            yield
        except DuplicateKeyError as e:
            key = (e.details or {}).get("keyValue") or {}
            raise InvalidInputError(
                "Duplicate value for unique field",
                details={"operation": operation, "key": {k: str(v) for k, v in key.items()}},
            ) from e
        except PyMongoError as e:
            raise UpstreamError(
                "Storage operation failed", details={"operation": operation, "error": str(e)}
            ) from e
