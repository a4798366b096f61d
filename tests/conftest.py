"""
Pytest configuration and shared fixtures.

Provides:
- Test environment variables (set before the app is imported)
- In-memory database (tests/fakes.py) wired in via dependency overrides
- httpx AsyncClient over ASGITransport
- Seed factories for users and shipments
- Bearer headers for ADMIN and EMPLOYEE callers
- ``gql`` helper for POST /graphql
"""

from __future__ import annotations

import os
import sys
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

# Add project root to path so ``app`` and ``tests.fakes`` import
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-shipment-tracking-tests")
os.environ.setdefault("METRICS_TOKEN", "test-metrics-token")
os.environ.setdefault("OBSERVABILITY_STRUCTURED_LOGS", "false")

import httpx  # noqa: E402 (import after env setup)
import pytest  # noqa: E402 (import after env setup)
from bson import ObjectId  # noqa: E402 (import after env setup)

from app.core.db import get_database  # noqa: E402 (import after env setup)
from app.core.security.passwords import hash_password  # noqa: E402 (import after env setup)
from app.core.security.tokens import issue_token  # noqa: E402 (import after env setup)
from app.main import create_app  # noqa: E402 (import after env setup)
from tests.fakes import FakeDatabase  # noqa: E402 (import after env setup)

TEST_PASSWORD = "secret123"

# Low iteration count keeps seeded users cheap to create
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD, iterations=1_000)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def app(fake_db: FakeDatabase):
    app = create_app()
    app.dependency_overrides[get_database] = lambda: fake_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """AsyncClient talking to the app in-process; lifespan is not run."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _address(city: str, state: str) -> dict[str, Any]:
    return {
        "street": "1 Main St",
        "city": city,
        "state": state,
        "zip_code": "10001",
        "country": "USA",
        "contact_name": "Pat Doe",
        "contact_phone": "555-0100",
        "contact_email": None,
    }


@pytest.fixture
def seed_user(fake_db: FakeDatabase) -> Callable[..., dict[str, Any]]:
    """Factory inserting a user document directly into the fake store."""

    def _seed(**overrides: Any) -> dict[str, Any]:
        now = datetime.now(UTC)
        doc = {
            "_id": ObjectId(),
            "email": f"user-{ObjectId()}@example.com",
            "password_hash": _TEST_PASSWORD_HASH,
            "first_name": "Test",
            "last_name": "User",
            "role": "EMPLOYEE",
            "department": "General",
            "avatar": None,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        doc.update(overrides)
        fake_db["users"].docs.append(doc)
        return doc

    return _seed


@pytest.fixture
def seed_shipment(fake_db: FakeDatabase) -> Callable[..., dict[str, Any]]:
    """Factory inserting a shipment document directly into the fake store."""
    counter = {"n": 0}

    def _seed(**overrides: Any) -> dict[str, Any]:
        counter["n"] += 1
        n = counter["n"]
        created = datetime(2024, 1, 1, tzinfo=UTC) + timedelta(hours=n)
        doc = {
            "_id": ObjectId(),
            "tracking_number": f"TMS-TEST-{n:06d}",
            "status": "PENDING",
            "priority": "MEDIUM",
            "type": "STANDARD",
            "origin": _address("Chicago", "IL"),
            "destination": _address("Denver", "CO"),
            "weight": 10.0,
            "dimensions": {"length": 10.0, "width": 10.0, "height": 10.0},
            "description": f"Parcel {n}",
            "special_instructions": None,
            "carrier": "FedEx",
            "estimated_delivery": created + timedelta(days=5),
            "actual_delivery": None,
            "cost": 100.0,
            "insurance": 0.0,
            "is_flagged": False,
            "flag_reason": None,
            "assigned_driver": None,
            "vehicle_id": None,
            "created_by": None,
            "last_updated_by": None,
            "created_at": created,
            "updated_at": created,
        }
        doc.update(overrides)
        fake_db["shipments"].docs.append(doc)
        return doc

    return _seed


@pytest.fixture
def admin_user(seed_user) -> dict[str, Any]:
    return seed_user(email="admin@example.com", role="ADMIN", first_name="Ada", last_name="Admin")


@pytest.fixture
def employee_user(seed_user) -> dict[str, Any]:
    return seed_user(email="employee@example.com", first_name="Eve", last_name="Employee")


def bearer(user: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def employee_headers(employee_user) -> dict[str, str]:
    return bearer(employee_user)


@pytest.fixture
def gql(client: httpx.AsyncClient):
    """POST a GraphQL document and return (status_code, body)."""

    async def _post(
        query: str,
        variables: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[int, dict[str, Any]]:
        response = await client.post(
            "/graphql", json={"query": query, "variables": variables or {}}, headers=headers or {}
        )
        return response.status_code, response.json()

    return _post
