"""
Unit tests for observability features.

Tests cover:
- Structured logging with JSON format
- Request correlation ID propagation
- Storage operation metrics
- Metrics endpoint protection
"""

import json
import logging

import pytest
from prometheus_client import generate_latest

from app.core.observability import (
    StructuredFormatter,
    db_metrics,
    extract_request_context,
    generate_request_id,
    get_request_id,
    metrics,
    set_correlation_id,
    set_user_id,
)


def _sample(name: str, labels: dict[str, str]) -> float:
    value = metrics.registry.get_sample_value(name, labels)
    return value or 0.0


class TestStructuredFormatter:
    def test_formats_json_with_context_and_extra(self):
        set_correlation_id("req-123")
        set_user_id("user-9")
        record = logging.LogRecord(
            name="app.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=10,
            msg="Shipment %s created",
            args=("abc",),
            exc_info=None,
        )
        record.shipment_id = "abc"

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "app.test"
        assert entry["message"] == "Shipment abc created"
        assert entry["request_id"] == "req-123"
        assert entry["user_id"] == "user-9"
        assert entry["extra"] == {"shipment_id": "abc"}

    def test_request_context_defaults_to_anonymous(self):
        set_user_id("")
        set_correlation_id("req-1")
        assert extract_request_context(None) == {"request_id": "req-1", "user_id": "anonymous"}


class TestRequestIds:
    def test_generated_ids_are_unique(self):
        assert generate_request_id() != generate_request_id()

    def test_set_and_get(self):
        set_correlation_id("abc")
        assert get_request_id() == "abc"


class TestDBMetrics:
    @pytest.mark.anyio
    async def test_success_is_counted(self):
        before = _sample("db_queries_total", {"operation": "unit_ok", "status": "success"})
        async with db_metrics.track("unit_ok"):
            pass
        after = _sample("db_queries_total", {"operation": "unit_ok", "status": "success"})
        assert after == before + 1

    @pytest.mark.anyio
    async def test_error_is_counted_and_reraised(self):
        before = _sample("db_queries_total", {"operation": "unit_fail", "status": "error"})
        with pytest.raises(RuntimeError):
            async with db_metrics.track("unit_fail"):
                raise RuntimeError("boom")
        after = _sample("db_queries_total", {"operation": "unit_fail", "status": "error"})
        assert after == before + 1


class TestMiddlewareAndMetricsEndpoint:
    @pytest.mark.anyio
    async def test_request_id_header_is_echoed(self, client):
        response = await client.post(
            "/graphql", json={"query": "{ __typename }"}, headers={"X-Request-ID": "corr-42"}
        )
        assert response.headers["X-Request-ID"] == "corr-42"

    @pytest.mark.anyio
    async def test_metrics_requires_token(self, client):
        response = await client.get("/metrics")
        assert response.status_code == 403

    @pytest.mark.anyio
    async def test_metrics_with_token(self, client):
        response = await client.get("/metrics", headers={"X-Metrics-Token": "test-metrics-token"})
        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert generate_latest(metrics.registry)
