"""
Security module - access tokens, password hashing and role checks.

Submodules:

- tokens.py: JWT issuance/verification and the identity dependency
- passwords.py: Salted password hashing
- permissions.py: Role-based access checks (Access Guard)
- utils.py: Identity type and payload helpers

Import directly from this module, or from submodules for more granular access.
"""

from .passwords import hash_password, verify_password
from .permissions import (
    require_admin,
    require_authenticated,
    require_role,
    require_self_or_admin,
)
from .tokens import extract_token_from_header, get_identity, issue_token, verify_token
from .utils import ROLE_NAMES, Identity, identity_from_payload

__all__ = [
    "ROLE_NAMES",
    "Identity",
    "extract_token_from_header",
    "get_identity",
    "hash_password",
    "identity_from_payload",
    "issue_token",
    "require_admin",
    "require_authenticated",
    "require_role",
    "require_self_or_admin",
    "verify_password",
    "verify_token",
]
