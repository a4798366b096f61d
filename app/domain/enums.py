"""
Domain enums for shipment tracking.

These enums provide type-safe representations of the values stored in the
shipments and users collections and are used throughout the application for
validation and type checking.
"""

from enum import Enum


class ShipmentStatus(str, Enum):
    """Lifecycle status of a shipment."""

    PENDING = "PENDING"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    DELAYED = "DELAYED"
    RETURNED = "RETURNED"


class ShipmentPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ShipmentType(str, Enum):
    STANDARD = "STANDARD"
    EXPRESS = "EXPRESS"
    OVERNIGHT = "OVERNIGHT"
    FREIGHT = "FREIGHT"
    HAZMAT = "HAZMAT"
    REFRIGERATED = "REFRIGERATED"


class UserRole(str, Enum):
    """
    Roles carried in the access token.

    ADMIN additionally may delete shipments, bulk-update statuses and manage
    users. Everything else is shared with EMPLOYEE.
    """

    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class ShipmentSortField(str, Enum):
    """Logical sort fields exposed by the shipments query."""

    TRACKING_NUMBER = "TRACKING_NUMBER"
    STATUS = "STATUS"
    PRIORITY = "PRIORITY"
    CARRIER = "CARRIER"
    ESTIMATED_DELIVERY = "ESTIMATED_DELIVERY"
    COST = "COST"
    CREATED_AT = "CREATED_AT"
    UPDATED_AT = "UPDATED_AT"


# Statuses counted as "in transit" by the statistics query
IN_TRANSIT_STATUSES = (
    ShipmentStatus.IN_TRANSIT,
    ShipmentStatus.PICKED_UP,
    ShipmentStatus.OUT_FOR_DELIVERY,
)
