"""
POST /graphql endpoint.

Parses and validates the document, executes it with a fresh request context,
and reports every error with ``extensions.code``: domain errors use their
mapped code, parse and validation failures use the GraphQL codes below, and
anything unexpected is logged and reported as an internal error.
"""

import logging
from inspect import isawaitable
from typing import Any, cast

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from graphql import (
    ExecutionResult,
    GraphQLError,
    NoSchemaIntrospectionCustomRule,
    execute,
    parse,
    specified_rules,
    validate,
)
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ConfigDict, Field

from app.api.context import request_scope
from app.core.config import settings
from app.core.db import get_database
from app.core.errors import INTERNAL_ERROR_CODE, TrackingError, get_error_code
from app.core.observability import metrics
from app.core.security.tokens import get_identity
from app.core.security.utils import Identity

from .schema import resolve_field, schema

logger = logging.getLogger(__name__)

router = APIRouter(tags=["graphql"])

PARSE_FAILED_CODE = "GRAPHQL_PARSE_FAILED"
VALIDATION_FAILED_CODE = "GRAPHQL_VALIDATION_FAILED"
BAD_USER_INPUT_CODE = "BAD_USER_INPUT"

INTERNAL_ERROR_MESSAGE = "Internal server error"


class GraphQLRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str
    variables: dict[str, Any] | None = None
    operation_name: str | None = Field(default=None, alias="operationName")


def _validation_rules() -> list:
    rules = list(specified_rules)
    if not settings.graphql_introspection:
        rules.append(NoSchemaIntrospectionCustomRule)
    return rules


def format_error(error: GraphQLError, *, default_code: str) -> dict[str, Any]:
    """
    Render one error for the response body and count it.

    Args:
        error: Error collected by graphql-core
        default_code: Code used when the error did not come from a resolver

    Returns:
        Error dict with ``message``, ``locations``, ``path`` and ``extensions``
    """
    original = error.original_error
    message = error.message
    extensions: dict[str, Any] = {}

    if isinstance(original, TrackingError):
        code = get_error_code(original)
        message = original.message
        # Details can carry driver messages; they are withheld in prod
        if original.details and settings.app_env != "prod":
            extensions["details"] = original.details
    elif original is None:
        code = (error.extensions or {}).get("code") or default_code
    else:
        code = INTERNAL_ERROR_CODE
        message = INTERNAL_ERROR_MESSAGE
        logger.error(
            f"Unhandled resolver error: {original}",
            exc_info=original,
            extra={"path": error.path},
        )

    extensions["code"] = code
    metrics.graphql_errors_total.labels(code=code).inc()

    formatted = error.formatted
    formatted["message"] = message
    formatted["extensions"] = extensions
    return formatted


def _error_response(errors: list[GraphQLError], code: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"errors": [format_error(e, default_code=code) for e in errors]},
    )


@router.post("/graphql")
async def graphql_endpoint(
    body: GraphQLRequest,
    identity: Identity | None = Depends(get_identity),
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> JSONResponse:
    try:
        document = parse(body.query)
    except GraphQLError as e:
        return _error_response([e], PARSE_FAILED_CODE)

    validation_errors = validate(schema, document, _validation_rules())
    if validation_errors:
        return _error_response(validation_errors, VALIDATION_FAILED_CODE)

    async with request_scope(identity, db) as context:
        outcome = execute(
            schema,
            document,
            context_value=context,
            variable_values=body.variables,
            operation_name=body.operation_name,
            field_resolver=resolve_field,
        )
        result = cast(ExecutionResult, await outcome if isawaitable(outcome) else outcome)

    content: dict[str, Any] = {"data": result.data}
    if result.errors:
        # Errors raised before any field ran (variable coercion) are input errors
        default_code = BAD_USER_INPUT_CODE if result.data is None else INTERNAL_ERROR_CODE
        content["errors"] = [format_error(e, default_code=default_code) for e in result.errors]
    return JSONResponse(content=content)
