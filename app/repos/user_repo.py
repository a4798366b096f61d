"""
Repository functions for user accounts.

Also provides ``batch_load_users``, the batch function behind the per-request
user loader that resolves ``createdBy``/``lastUpdatedBy`` on shipments.
"""

import asyncio
import logging
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from app.api.schemas.user import LoginInput, RegisterInput, UserUpdate
from app.core.db import USERS
from app.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from app.core.security.passwords import hash_password, verify_password
from app.domain.enums import UserRole
from app.repos.common import parse_object_id, storage_operation, utc_now

USER_NOT_FOUND = "User not found"
INVALID_CREDENTIALS = "Invalid credentials"

logger = logging.getLogger(__name__)


async def batch_load_users(
    db: AsyncIOMotorDatabase, user_ids: list[str]
) -> list[dict[str, Any] | None]:
    """Fetch several users in one query.

    Returns one entry per requested id, in request order; ids that are
    malformed or match no user yield ``None``.
    """
    oids: list[ObjectId] = []
    for user_id in user_ids:
        try:
            oids.append(ObjectId(str(user_id)))
        except (InvalidId, TypeError):
            continue

    users: list[dict[str, Any]] = []
    if oids:
        async with storage_operation("batch_load_users"):
            users = await db[USERS].find({"_id": {"$in": oids}}).to_list(length=None)

    by_id = {str(user["_id"]): user for user in users}
    return [by_id.get(str(user_id)) for user_id in user_ids]


async def find_user(db: AsyncIOMotorDatabase, user_id: str) -> dict[str, Any] | None:
    oid = parse_object_id(user_id)
    async with storage_operation("get_user"):
        return await db[USERS].find_one({"_id": oid})


async def list_active_users(db: AsyncIOMotorDatabase) -> list[dict[str, Any]]:
    async with storage_operation("list_users"):
        return (
            await db[USERS]
            .find({"is_active": True})
            .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            .to_list(length=None)
        )


async def register_user(db: AsyncIOMotorDatabase, data: RegisterInput) -> dict[str, Any]:
    """Create an EMPLOYEE account.

    Raises:
        InvalidInputError: If the email is already registered
    """
    users = db[USERS]
    async with storage_operation("find_user_by_email"):
        existing = await users.find_one({"email": data.email})
    if existing is not None:
        raise InvalidInputError("Email already registered", details={"email": data.email})

    # PBKDF2 runs in a worker thread so other requests keep being served
    password_hash = await asyncio.to_thread(hash_password, data.password)

    now = utc_now()
    doc: dict[str, Any] = {
        "email": data.email,
        "password_hash": password_hash,
        "first_name": data.first_name,
        "last_name": data.last_name,
        "role": UserRole.EMPLOYEE.value,
        "department": data.department,
        "avatar": None,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    async with storage_operation("create_user"):
        result = await users.insert_one(doc)
    doc["_id"] = result.inserted_id

    logger.info("User registered", extra={"user_id": str(doc["_id"])})
    return doc


async def authenticate_user(db: AsyncIOMotorDatabase, data: LoginInput) -> dict[str, Any]:
    """Check credentials and return the user.

    Raises:
        InvalidInputError: If the email is unknown or the password is wrong
        ForbiddenError: If the account is deactivated
    """
    async with storage_operation("find_user_by_email"):
        user = await db[USERS].find_one({"email": data.email})
    if user is None:
        raise InvalidInputError(INVALID_CREDENTIALS)
    if not user.get("is_active", True):
        raise ForbiddenError("Account is deactivated", details={"user_id": str(user["_id"])})
    if not await asyncio.to_thread(verify_password, data.password, user.get("password_hash", "")):
        logger.warning("Failed login attempt", extra={"user_id": str(user["_id"])})
        raise InvalidInputError(INVALID_CREDENTIALS)
    return user


async def _update_user(
    db: AsyncIOMotorDatabase, user_id: str, update: dict[str, Any], *, operation: str
) -> dict[str, Any]:
    oid = parse_object_id(user_id)
    update["updated_at"] = utc_now()
    async with storage_operation(operation):
        user = await db[USERS].find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
    if user is None:
        raise NotFoundError(USER_NOT_FOUND, details={"id": user_id})
    return user


async def update_user(db: AsyncIOMotorDatabase, user_id: str, data: UserUpdate) -> dict[str, Any]:
    return await _update_user(
        db, user_id, data.model_dump(exclude_unset=True), operation="update_user"
    )


async def update_user_role(
    db: AsyncIOMotorDatabase, user_id: str, role: UserRole | str
) -> dict[str, Any]:
    try:
        role_value = UserRole(role).value
    except ValueError:
        raise InvalidInputError(f"Unknown role: {role}", details={"role": str(role)})
    logger.info("User role changed", extra={"user_id": user_id, "role": role_value})
    return await _update_user(db, user_id, {"role": role_value}, operation="update_user_role")


async def deactivate_user(db: AsyncIOMotorDatabase, user_id: str) -> dict[str, Any]:
    logger.info("User deactivated", extra={"user_id": user_id})
    return await _update_user(db, user_id, {"is_active": False}, operation="deactivate_user")
