"""Shipment sort resolution: logical sort fields to stored field names."""

from pymongo import ASCENDING, DESCENDING

from app.api.schemas.shipment import ShipmentSort
from app.domain.enums import ShipmentSortField, SortOrder

DEFAULT_SORT_FIELD = "created_at"

SORT_FIELD_MAP = {
    ShipmentSortField.TRACKING_NUMBER.value: "tracking_number",
    ShipmentSortField.STATUS.value: "status",
    ShipmentSortField.PRIORITY.value: "priority",
    ShipmentSortField.CARRIER.value: "carrier",
    ShipmentSortField.ESTIMATED_DELIVERY.value: "estimated_delivery",
    ShipmentSortField.COST.value: "cost",
    ShipmentSortField.CREATED_AT.value: "created_at",
    ShipmentSortField.UPDATED_AT.value: "updated_at",
}


def resolve_sort_field(field: ShipmentSortField | str | None) -> str:
    """Map a logical sort field to its stored name, falling back to created_at."""
    if isinstance(field, ShipmentSortField):
        field = field.value
    return SORT_FIELD_MAP.get(field or "", DEFAULT_SORT_FIELD)


def build_sort(sort: ShipmentSort | None) -> list[tuple[str, int]]:
    """
    Build a MongoDB sort specification.

    ``_id`` is appended in the same direction so rows with equal sort keys
    keep a stable order across offset pages.
    """
    if sort is None:
        return [(DEFAULT_SORT_FIELD, DESCENDING), ("_id", DESCENDING)]

    direction = ASCENDING if sort.order == SortOrder.ASC else DESCENDING
    return [(resolve_sort_field(sort.field), direction), ("_id", direction)]
