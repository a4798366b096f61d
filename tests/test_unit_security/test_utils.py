"""
Tests for identity extraction from token payloads.
"""

import pytest

from app.core.security.utils import ROLE_NAMES, Identity, identity_from_payload
from app.domain.enums import UserRole


def test_role_names():
    assert ROLE_NAMES == {"ADMIN", "EMPLOYEE"}


def test_identity_from_payload():
    identity = identity_from_payload({"userId": "abc", "email": "a@b.c", "role": "EMPLOYEE"})
    assert identity == Identity(user_id="abc", email="a@b.c", role=UserRole.EMPLOYEE)
    assert identity.is_admin is False


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"email": "a@b.c", "role": "ADMIN"},
        {"userId": "abc", "email": "a@b.c"},
        {"userId": "abc", "email": "a@b.c", "role": "ROOT"},
    ],
)
def test_incomplete_payload_yields_none(payload):
    assert identity_from_payload(payload) is None
