"""
Shipment filter compilation.

Turns a ``ShipmentFilter`` into a MongoDB query document. The function is
pure: absent fields add nothing, every present field adds one conjunctive
condition, and an empty filter compiles to ``{}`` (match everything).
"""

import re
from typing import Any

from app.api.schemas.shipment import ShipmentFilter
from app.repos.common import parse_datetime_text

# Fields covered by the shipments text index, queried via $text
TEXT_SEARCH_FIELDS = (
    "tracking_number",
    "description",
    "origin.city",
    "destination.city",
    "carrier",
)

# filter attribute -> stored field, matched with $in
_SET_FIELDS = {
    "status": "status",
    "priority": "priority",
    "type": "type",
}

# filter attribute -> stored field, matched case-insensitively as a substring
_SUBSTRING_FIELDS = {
    "carrier": "carrier",
    "origin_city": "origin.city",
    "origin_state": "origin.state",
    "destination_city": "destination.city",
    "destination_state": "destination.state",
}

# stored field -> (filter lower bound, filter upper bound), as date/time text
_DATE_RANGES = {
    "estimated_delivery": ("estimated_delivery_from", "estimated_delivery_to"),
    "created_at": ("created_from", "created_to"),
}


def _substring(text: str) -> dict[str, str]:
    return {"$regex": re.escape(text), "$options": "i"}


def _range(lower: Any, upper: Any) -> dict[str, Any]:
    bounds: dict[str, Any] = {}
    if lower is not None:
        bounds["$gte"] = lower
    if upper is not None:
        bounds["$lte"] = upper
    return bounds


def compile_shipment_filter(shipment_filter: ShipmentFilter | None) -> dict[str, Any]:
    """
    Compile a shipment filter into a MongoDB query document.

    Args:
        shipment_filter: Filter input, or None for no filter

    Returns:
        Query document suitable for ``find`` and ``count_documents``

    Raises:
        InvalidInputError: If a date bound is not valid date/time text
    """
    query: dict[str, Any] = {}
    if shipment_filter is None:
        return query

    for attr, field in _SET_FIELDS.items():
        values = getattr(shipment_filter, attr)
        if values:
            query[field] = {"$in": list(values)}

    for attr, field in _SUBSTRING_FIELDS.items():
        text = getattr(shipment_filter, attr)
        if text:
            query[field] = _substring(text)

    if shipment_filter.is_flagged is not None:
        query["is_flagged"] = shipment_filter.is_flagged

    if shipment_filter.min_cost is not None or shipment_filter.max_cost is not None:
        query["cost"] = _range(shipment_filter.min_cost, shipment_filter.max_cost)

    for field, (from_attr, to_attr) in _DATE_RANGES.items():
        lower_text = getattr(shipment_filter, from_attr)
        upper_text = getattr(shipment_filter, to_attr)
        if not lower_text and not upper_text:
            continue
        query[field] = _range(
            parse_datetime_text(lower_text, field=from_attr) if lower_text else None,
            parse_datetime_text(upper_text, field=to_attr) if upper_text else None,
        )

    if shipment_filter.search:
        query["$text"] = {"$search": shipment_filter.search}

    return query
