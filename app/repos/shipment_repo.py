"""
Repository functions for shipment documents.

Functions take the motor database handle first and return plain documents
(dicts keyed by stored snake_case field names). Missing records raise
``NotFoundError``; storage failures surface through ``storage_operation``.
"""

import asyncio
import logging
import secrets
import string
import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.api.schemas.pagination import PageRequest, PageResult
from app.api.schemas.shipment import (
    DeleteResponse,
    ShipmentCreate,
    ShipmentFilter,
    ShipmentSort,
    ShipmentStats,
    ShipmentUpdate,
)
from app.core.db import SHIPMENTS
from app.core.errors import NotFoundError
from app.domain.enums import IN_TRANSIT_STATUSES, ShipmentStatus
from app.repos.common import parse_object_id, parse_object_ids, storage_operation, utc_now
from app.repos.filters import compile_shipment_filter
from app.repos.pagination import paginate
from app.repos.sorting import build_sort

SHIPMENT_NOT_FOUND = "Shipment not found"

TRACKING_PREFIX = "TMS"
_BASE36 = string.digits + string.ascii_uppercase

logger = logging.getLogger(__name__)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_tracking_number() -> str:
    """Build a tracking number: TMS-<base36 ms timestamp>-<6 random base36 chars>."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{TRACKING_PREFIX}-{stamp}-{suffix}"


def _status_update(status: ShipmentStatus | str, user_id: str) -> dict[str, Any]:
    status = ShipmentStatus(status)
    now = utc_now()
    update: dict[str, Any] = {
        "status": status.value,
        "last_updated_by": parse_object_id(user_id, field="userId"),
        "updated_at": now,
    }
    # Delivery time is stamped by the transition itself
    if status == ShipmentStatus.DELIVERED:
        update["actual_delivery"] = now
    return update


async def list_shipments(
    db: AsyncIOMotorDatabase,
    *,
    shipment_filter: ShipmentFilter | None = None,
    sort: ShipmentSort | None = None,
    page_request: PageRequest | None = None,
) -> PageResult[dict[str, Any]]:
    """List shipments matching a filter, one page at a time.

    Args:
        db: Database handle
        shipment_filter: Optional search predicates
        sort: Optional sort; defaults to newest first
        page_request: Requested page

    Returns:
        PageResult of shipment documents
    """
    query = compile_shipment_filter(shipment_filter)
    return await paginate(db[SHIPMENTS], query, build_sort(sort), page_request)


async def get_shipment(db: AsyncIOMotorDatabase, shipment_id: str) -> dict[str, Any]:
    oid = parse_object_id(shipment_id)
    async with storage_operation("get_shipment"):
        shipment = await db[SHIPMENTS].find_one({"_id": oid})
    if shipment is None:
        raise NotFoundError(SHIPMENT_NOT_FOUND, details={"id": shipment_id})
    return shipment


async def get_shipment_by_tracking(
    db: AsyncIOMotorDatabase, tracking_number: str
) -> dict[str, Any]:
    async with storage_operation("get_shipment_by_tracking"):
        shipment = await db[SHIPMENTS].find_one({"tracking_number": tracking_number})
    if shipment is None:
        raise NotFoundError(SHIPMENT_NOT_FOUND, details={"tracking_number": tracking_number})
    return shipment


async def get_shipment_stats(db: AsyncIOMotorDatabase) -> ShipmentStats:
    """Aggregate counts by status bucket, flagged count and cost totals."""
    collection = db[SHIPMENTS]

    async def status_counts() -> dict[str, int]:
        async with storage_operation("stats_by_status"):
            rows = await collection.aggregate(
                [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
            ).to_list(length=None)
        return {row["_id"]: row["count"] for row in rows}

    async def flagged_count() -> int:
        async with storage_operation("stats_flagged"):
            return await collection.count_documents({"is_flagged": True})

    async def cost_totals() -> dict[str, Any]:
        async with storage_operation("stats_cost"):
            rows = await collection.aggregate(
                [
                    {
                        "$group": {
                            "_id": None,
                            "avg_cost": {"$avg": "$cost"},
                            "total_cost": {"$sum": "$cost"},
                            "total": {"$sum": 1},
                        }
                    }
                ]
            ).to_list(length=None)
        return rows[0] if rows else {}

    by_status, flagged, costs = await asyncio.gather(
        status_counts(), flagged_count(), cost_totals()
    )

    return ShipmentStats(
        total=costs.get("total") or 0,
        pending=by_status.get(ShipmentStatus.PENDING.value, 0),
        in_transit=sum(by_status.get(s.value, 0) for s in IN_TRANSIT_STATUSES),
        delivered=by_status.get(ShipmentStatus.DELIVERED.value, 0),
        delayed=by_status.get(ShipmentStatus.DELAYED.value, 0),
        cancelled=by_status.get(ShipmentStatus.CANCELLED.value, 0),
        flagged=flagged,
        avg_cost=round(costs.get("avg_cost") or 0, 2),
        total_cost=round(costs.get("total_cost") or 0, 2),
    )


async def create_shipment(
    db: AsyncIOMotorDatabase, data: ShipmentCreate, *, user_id: str
) -> dict[str, Any]:
    """Insert a new shipment owned by ``user_id``.

    Raises:
        InvalidInputError: If the generated tracking number collides
    """
    author = parse_object_id(user_id, field="userId")
    now = utc_now()
    doc: dict[str, Any] = data.model_dump()
    doc.update(
        tracking_number=generate_tracking_number(),
        actual_delivery=None,
        is_flagged=False,
        flag_reason=None,
        created_by=author,
        last_updated_by=author,
        created_at=now,
        updated_at=now,
    )

    async with storage_operation("create_shipment"):
        result = await db[SHIPMENTS].insert_one(doc)
    doc["_id"] = result.inserted_id

    logger.info(
        "Shipment created",
        extra={"shipment_id": str(doc["_id"]), "tracking_number": doc["tracking_number"]},
    )
    return doc


async def _update_one(
    db: AsyncIOMotorDatabase, shipment_id: str, update: dict[str, Any], *, operation: str
) -> dict[str, Any]:
    oid = parse_object_id(shipment_id)
    async with storage_operation(operation):
        shipment = await db[SHIPMENTS].find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
    if shipment is None:
        raise NotFoundError(SHIPMENT_NOT_FOUND, details={"id": shipment_id})
    return shipment


async def update_shipment(
    db: AsyncIOMotorDatabase, shipment_id: str, data: ShipmentUpdate, *, user_id: str
) -> dict[str, Any]:
    """Apply a partial update; only fields present in ``data`` are written."""
    update = data.model_dump(exclude_unset=True)
    update["last_updated_by"] = parse_object_id(user_id, field="userId")
    update["updated_at"] = utc_now()
    return await _update_one(db, shipment_id, update, operation="update_shipment")


async def delete_shipment(db: AsyncIOMotorDatabase, shipment_id: str) -> DeleteResponse:
    oid = parse_object_id(shipment_id)
    async with storage_operation("delete_shipment"):
        deleted = await db[SHIPMENTS].find_one_and_delete({"_id": oid})
    if deleted is None:
        raise NotFoundError(SHIPMENT_NOT_FOUND, details={"id": shipment_id})

    logger.info("Shipment deleted", extra={"shipment_id": shipment_id})
    return DeleteResponse(
        success=True, message="Shipment deleted successfully", deleted_id=shipment_id
    )


async def flag_shipment(
    db: AsyncIOMotorDatabase, shipment_id: str, reason: str, *, user_id: str
) -> dict[str, Any]:
    update = {
        "is_flagged": True,
        "flag_reason": reason,
        "last_updated_by": parse_object_id(user_id, field="userId"),
        "updated_at": utc_now(),
    }
    return await _update_one(db, shipment_id, update, operation="flag_shipment")


async def unflag_shipment(
    db: AsyncIOMotorDatabase, shipment_id: str, *, user_id: str
) -> dict[str, Any]:
    update = {
        "is_flagged": False,
        "flag_reason": None,
        "last_updated_by": parse_object_id(user_id, field="userId"),
        "updated_at": utc_now(),
    }
    return await _update_one(db, shipment_id, update, operation="unflag_shipment")


async def update_shipment_status(
    db: AsyncIOMotorDatabase, shipment_id: str, status: ShipmentStatus | str, *, user_id: str
) -> dict[str, Any]:
    update = _status_update(status, user_id)
    return await _update_one(db, shipment_id, update, operation="update_shipment_status")


async def bulk_update_status(
    db: AsyncIOMotorDatabase, shipment_ids: list[str], status: ShipmentStatus | str, *, user_id: str
) -> list[dict[str, Any]]:
    """Set the status of several shipments and return the affected documents.

    Unknown ids are ignored; the result holds only shipments that exist.
    """
    oids = parse_object_ids(shipment_ids)
    update = _status_update(status, user_id)
    collection = db[SHIPMENTS]

    async with storage_operation("bulk_update_status"):
        result = await collection.update_many({"_id": {"$in": oids}}, {"$set": update})
    async with storage_operation("find_shipments_by_ids"):
        shipments = await collection.find({"_id": {"$in": oids}}).to_list(length=None)

    logger.info(
        "Bulk status update",
        extra={
            "status": update["status"],
            "requested": len(oids),
            "modified": result.modified_count,
        },
    )
    return shipments
