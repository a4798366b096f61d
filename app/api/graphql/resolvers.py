"""
GraphQL resolvers.

Each root resolver runs its Access Guard check first, then validates its
input with the pydantic schemas and delegates to the repository layer.
Object fields not listed in ``RESOLVERS`` go through the default resolver in
``schema.py``.
"""

from typing import Any

from graphql import GraphQLResolveInfo
from pydantic import BaseModel, ValidationError

from app.api.context import RequestContext
from app.api.schemas import (
    LoginInput,
    PageRequest,
    RegisterInput,
    ShipmentCreate,
    ShipmentFilter,
    ShipmentSort,
    ShipmentUpdate,
    UserUpdate,
)
from app.core.errors import InvalidInputError
from app.core.security import (
    issue_token,
    require_admin,
    require_authenticated,
    require_self_or_admin,
)
from app.domain.enums import ShipmentStatus, UserRole
from app.repos import shipment_repo, user_repo


def _context(info: GraphQLResolveInfo) -> RequestContext:
    return info.context


def _validate[M: BaseModel](model: type[M], data: Any) -> M:
    """Validate resolver input, reporting failures as bad user input."""
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InvalidInputError(f"Invalid {model.__name__}", details={"errors": errors}) from e


def _enum_value[E](enum_cls: type[E], value: Any, *, field: str) -> E:
    try:
        return enum_cls(value)
    except ValueError as e:
        raise InvalidInputError(f"Invalid {field}: {value}", details={field: str(value)}) from e


def _auth_payload(user: dict[str, Any]) -> dict[str, Any]:
    return {"token": issue_token(user), "user": user}


# Object types


def resolve_id(parent: dict[str, Any], info: GraphQLResolveInfo) -> str:
    return str(parent["_id"])


def resolve_full_name(parent: dict[str, Any], info: GraphQLResolveInfo) -> str:
    return f"{parent.get('first_name', '')} {parent.get('last_name', '')}".strip()


def _load_user(user_id: Any, info: GraphQLResolveInfo):
    if not user_id:
        return None
    return _context(info).loaders.user_loader.load(str(user_id))


def resolve_created_by(parent: dict[str, Any], info: GraphQLResolveInfo):
    return _load_user(parent.get("created_by"), info)


def resolve_last_updated_by(parent: dict[str, Any], info: GraphQLResolveInfo):
    return _load_user(parent.get("last_updated_by"), info)


# Queries


async def resolve_me(_obj: Any, info: GraphQLResolveInfo) -> dict[str, Any] | None:
    ctx = _context(info)
    identity = require_authenticated(ctx)
    return await user_repo.find_user(ctx.db, identity.user_id)


async def resolve_users(_obj: Any, info: GraphQLResolveInfo) -> list[dict[str, Any]]:
    ctx = _context(info)
    require_admin(ctx)
    return await user_repo.list_active_users(ctx.db)


async def resolve_user(_obj: Any, info: GraphQLResolveInfo, id: str) -> dict[str, Any] | None:
    ctx = _context(info)
    require_admin(ctx)
    return await user_repo.find_user(ctx.db, id)


async def resolve_shipments(
    _obj: Any,
    info: GraphQLResolveInfo,
    filter: dict[str, Any] | None = None,
    sort: dict[str, Any] | None = None,
    **page_args: Any,
):
    ctx = _context(info)
    require_authenticated(ctx)
    return await shipment_repo.list_shipments(
        ctx.db,
        shipment_filter=_validate(ShipmentFilter, filter) if filter else None,
        sort=_validate(ShipmentSort, sort) if sort else None,
        page_request=_validate(PageRequest, page_args),
    )


async def resolve_shipment(_obj: Any, info: GraphQLResolveInfo, id: str) -> dict[str, Any]:
    ctx = _context(info)
    require_authenticated(ctx)
    return await shipment_repo.get_shipment(ctx.db, id)


async def resolve_shipment_by_tracking(
    _obj: Any, info: GraphQLResolveInfo, trackingNumber: str  # noqa: N803
) -> dict[str, Any]:
    ctx = _context(info)
    require_authenticated(ctx)
    return await shipment_repo.get_shipment_by_tracking(ctx.db, trackingNumber)


async def resolve_shipment_stats(_obj: Any, info: GraphQLResolveInfo):
    ctx = _context(info)
    require_authenticated(ctx)
    return await shipment_repo.get_shipment_stats(ctx.db)


# Mutations


async def resolve_register(_obj: Any, info: GraphQLResolveInfo, input: dict[str, Any]):
    ctx = _context(info)
    user = await user_repo.register_user(ctx.db, _validate(RegisterInput, input))
    return _auth_payload(user)


async def resolve_login(_obj: Any, info: GraphQLResolveInfo, input: dict[str, Any]):
    ctx = _context(info)
    user = await user_repo.authenticate_user(ctx.db, _validate(LoginInput, input))
    return _auth_payload(user)


async def resolve_update_user(
    _obj: Any, info: GraphQLResolveInfo, id: str, input: dict[str, Any]
) -> dict[str, Any]:
    ctx = _context(info)
    require_self_or_admin(ctx, id)
    return await user_repo.update_user(ctx.db, id, _validate(UserUpdate, input))


async def resolve_update_user_role(
    _obj: Any, info: GraphQLResolveInfo, id: str, role: str
) -> dict[str, Any]:
    ctx = _context(info)
    require_admin(ctx)
    return await user_repo.update_user_role(ctx.db, id, _enum_value(UserRole, role, field="role"))


async def resolve_deactivate_user(_obj: Any, info: GraphQLResolveInfo, id: str) -> dict[str, Any]:
    ctx = _context(info)
    require_admin(ctx)
    return await user_repo.deactivate_user(ctx.db, id)


async def resolve_create_shipment(
    _obj: Any, info: GraphQLResolveInfo, input: dict[str, Any]
) -> dict[str, Any]:
    ctx = _context(info)
    identity = require_authenticated(ctx)
    return await shipment_repo.create_shipment(
        ctx.db, _validate(ShipmentCreate, input), user_id=identity.user_id
    )


async def resolve_update_shipment(
    _obj: Any, info: GraphQLResolveInfo, id: str, input: dict[str, Any]
) -> dict[str, Any]:
    ctx = _context(info)
    identity = require_authenticated(ctx)
    return await shipment_repo.update_shipment(
        ctx.db, id, _validate(ShipmentUpdate, input), user_id=identity.user_id
    )


async def resolve_delete_shipment(_obj: Any, info: GraphQLResolveInfo, id: str):
    ctx = _context(info)
    require_admin(ctx)
    return await shipment_repo.delete_shipment(ctx.db, id)


async def resolve_flag_shipment(
    _obj: Any, info: GraphQLResolveInfo, id: str, reason: str
) -> dict[str, Any]:
    ctx = _context(info)
    identity = require_authenticated(ctx)
    return await shipment_repo.flag_shipment(ctx.db, id, reason, user_id=identity.user_id)


async def resolve_unflag_shipment(_obj: Any, info: GraphQLResolveInfo, id: str) -> dict[str, Any]:
    ctx = _context(info)
    identity = require_authenticated(ctx)
    return await shipment_repo.unflag_shipment(ctx.db, id, user_id=identity.user_id)


async def resolve_update_shipment_status(
    _obj: Any, info: GraphQLResolveInfo, id: str, status: str
) -> dict[str, Any]:
    ctx = _context(info)
    identity = require_authenticated(ctx)
    return await shipment_repo.update_shipment_status(
        ctx.db,
        id,
        _enum_value(ShipmentStatus, status, field="status"),
        user_id=identity.user_id,
    )


async def resolve_bulk_update_status(
    _obj: Any, info: GraphQLResolveInfo, ids: list[str], status: str
) -> list[dict[str, Any]]:
    ctx = _context(info)
    identity = require_admin(ctx)
    return await shipment_repo.bulk_update_status(
        ctx.db,
        ids,
        _enum_value(ShipmentStatus, status, field="status"),
        user_id=identity.user_id,
    )


# type name -> field name -> resolver
RESOLVERS = {
    "Query": {
        "me": resolve_me,
        "users": resolve_users,
        "user": resolve_user,
        "shipments": resolve_shipments,
        "shipment": resolve_shipment,
        "shipmentByTracking": resolve_shipment_by_tracking,
        "shipmentStats": resolve_shipment_stats,
    },
    "Mutation": {
        "register": resolve_register,
        "login": resolve_login,
        "updateUser": resolve_update_user,
        "updateUserRole": resolve_update_user_role,
        "deactivateUser": resolve_deactivate_user,
        "createShipment": resolve_create_shipment,
        "updateShipment": resolve_update_shipment,
        "deleteShipment": resolve_delete_shipment,
        "flagShipment": resolve_flag_shipment,
        "unflagShipment": resolve_unflag_shipment,
        "updateShipmentStatus": resolve_update_shipment_status,
        "bulkUpdateStatus": resolve_bulk_update_status,
    },
    "User": {
        "id": resolve_id,
        "fullName": resolve_full_name,
    },
    "Shipment": {
        "id": resolve_id,
        "createdBy": resolve_created_by,
        "lastUpdatedBy": resolve_last_updated_by,
    },
}
