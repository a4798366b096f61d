import hmac
import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from app.api.graphql import router as graphql_router
from app.core.config import settings
from app.core.db import ensure_indexes, mongo
from app.core.errors import TrackingError, get_error_code, get_status_code
from app.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    extract_request_context,
    metrics_endpoint,
)

# Configure structured logging before creating logger
if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)


_SENSITIVE_VALUE = re.compile(
    r"[/\\][\w/-]+\.py"  # source paths
    r"|mongodb(\+srv)?://"
    r"|\{\s*['\"]?\$\w+",  # query operator documents
    re.IGNORECASE,
)
_REDACTED = "[REDACTED]"


def _redact(value: Any) -> Any:
    if isinstance(value, str):
        return _REDACTED if _SENSITIVE_VALUE.search(value) else value
    if isinstance(value, dict):
        return {key: _redact(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def _sanitize_error_details(details: dict[str, Any]) -> dict[str, Any]:
    """
    Redact error details that could leak internals in production.

    Outside production the details are returned untouched.
    """
    if settings.app_env != "prod":
        return details
    return _redact(details)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect to MongoDB and ensure indexes on startup; close on shutdown."""
    db = await mongo.connect()
    await ensure_indexes(db)
    try:
        yield
    finally:
        await mongo.close()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Sets up:
    - Structured logging with correlation IDs
    - Observability middleware (metrics, request tracking)
    - Exception handlers for domain errors
    - The GraphQL router
    - Metrics endpoint for Prometheus scraping
    """
    app = FastAPI(
        title="Shipment Tracking API",
        description="GraphQL API for shipment tracking records",
        version="0.1.0",
        lifespan=lifespan,
    )

    if settings.observability_enabled:
        app.add_middleware(ObservabilityMiddleware)

    # ============================================================================
    # Exception Handlers
    # ============================================================================

    @app.exception_handler(TrackingError)
    async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
        """
        Handle domain errors raised outside GraphQL execution.

        GraphQL resolver errors are reported in the response body by the
        GraphQL router; this covers plain routes and dependencies.
        """
        status_code = get_status_code(exc)
        context = {
            "details": exc.details,
            "path": request.url.path,
            **extract_request_context(request),
        }

        if status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}", extra=context)
        else:
            logger.warning(f"{exc.__class__.__name__}: {exc.message}", extra=context)

        return JSONResponse(
            status_code=status_code,
            content={
                "error": get_error_code(exc),
                "message": exc.message,
                "details": _sanitize_error_details(exc.details),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Catch-all handler for unexpected exceptions.

        Logs the full exception and returns a generic 500 error to the client
        without exposing internal implementation details.
        """
        context = {
            "path": request.url.path if request.url else "unknown",
            **extract_request_context(request),
        }
        logger.error(f"Unhandled exception: {exc}", exc_info=True, extra=context)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
                "details": {},
            },
        )

    app.include_router(graphql_router)

    # ============================================================================
    # Metrics Endpoint (Prometheus) - Token Protected
    # ============================================================================

    async def protected_metrics(request: Request) -> Response:
        """
        Protected Prometheus metrics endpoint.

        Requires the X-Metrics-Token header to match METRICS_TOKEN.
        """
        expected_token = settings.metrics_token
        if not expected_token:
            logger.error(
                "Metrics endpoint accessed but METRICS_TOKEN not configured",
                extra={"security_event": True, "event_type": "METRICS_NOT_CONFIGURED"},
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Metrics token not configured. Set METRICS_TOKEN environment variable.",
            )

        # Constant-time comparison
        metrics_token = request.headers.get("X-Metrics-Token")
        if not hmac.compare_digest(metrics_token or "", expected_token):
            logger.warning(
                "Unauthorized metrics access attempt",
                extra={
                    "security_event": True,
                    "event_type": "METRICS_ACCESS_DENIED",
                    "client_ip": request.client.host if request.client else "unknown",
                },
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Invalid metrics token"
            )

        return metrics_endpoint()

    if settings.observability_enabled:
        app.add_route("/metrics", protected_metrics)

    return app


app = create_app()
