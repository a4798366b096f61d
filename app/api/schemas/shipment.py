from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain.enums import (
    ShipmentPriority,
    ShipmentSortField,
    ShipmentStatus,
    ShipmentType,
    SortOrder,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class AddressInput(_CamelModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = "USA"
    contact_name: str = Field(min_length=1)
    contact_phone: str = Field(min_length=1)
    contact_email: str | None = None


class DimensionsInput(_CamelModel):
    length: float = Field(ge=0.1)
    width: float = Field(ge=0.1)
    height: float = Field(ge=0.1)


class ShipmentCreate(_CamelModel):
    status: ShipmentStatus = ShipmentStatus.PENDING
    priority: ShipmentPriority = ShipmentPriority.MEDIUM
    type: ShipmentType = ShipmentType.STANDARD
    origin: AddressInput
    destination: AddressInput
    weight: float = Field(ge=0.1)
    dimensions: DimensionsInput
    description: str = Field(min_length=1, max_length=500)
    special_instructions: str | None = Field(default=None, max_length=1000)
    carrier: str = Field(min_length=1)
    estimated_delivery: datetime
    cost: float = Field(ge=0)
    insurance: float = Field(default=0, ge=0)
    assigned_driver: str | None = None
    vehicle_id: str | None = None

    @field_validator("estimated_delivery")
    @classmethod
    def normalize_estimated_delivery(cls, v: datetime) -> datetime:
        return _as_utc(v)


NON_NULLABLE_UPDATE_FIELDS = (
    "status",
    "priority",
    "type",
    "origin",
    "destination",
    "weight",
    "dimensions",
    "description",
    "carrier",
    "estimated_delivery",
    "cost",
    "insurance",
    "is_flagged",
)


class ShipmentUpdate(_CamelModel):
    """
    Partial update; only fields present in the input are written.

    Fields that are required on create may be omitted but not set to null.
    """

    # Defaults mean "not provided" and skip validation
    model_config = ConfigDict(validate_default=False)

    status: ShipmentStatus | None = None
    priority: ShipmentPriority | None = None
    type: ShipmentType | None = None
    origin: AddressInput | None = None
    destination: AddressInput | None = None
    weight: float | None = Field(default=None, ge=0.1)
    dimensions: DimensionsInput | None = None
    description: str | None = Field(default=None, min_length=1, max_length=500)
    special_instructions: str | None = Field(default=None, max_length=1000)
    carrier: str | None = Field(default=None, min_length=1)
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None
    cost: float | None = Field(default=None, ge=0)
    insurance: float | None = Field(default=None, ge=0)
    is_flagged: bool | None = None
    flag_reason: str | None = None
    assigned_driver: str | None = None
    vehicle_id: str | None = None

    @field_validator("estimated_delivery", "actual_delivery")
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @field_validator(*NON_NULLABLE_UPDATE_FIELDS)
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v


class ShipmentFilter(_CamelModel):
    """
    Optional shipment search predicates, combined with AND.

    Date bounds stay as text here; the filter compiler parses them so a
    malformed bound is reported against the field that carried it.
    """

    status: list[ShipmentStatus] | None = None
    priority: list[ShipmentPriority] | None = None
    type: list[ShipmentType] | None = None
    carrier: str | None = None
    is_flagged: bool | None = None
    origin_city: str | None = None
    origin_state: str | None = None
    destination_city: str | None = None
    destination_state: str | None = None
    min_cost: float | None = None
    max_cost: float | None = None
    estimated_delivery_from: str | None = None
    estimated_delivery_to: str | None = None
    created_from: str | None = None
    created_to: str | None = None
    search: str | None = None


class ShipmentSort(_CamelModel):
    field: ShipmentSortField | str = ShipmentSortField.CREATED_AT
    order: SortOrder = SortOrder.DESC


class ShipmentStats(_CamelModel):
    total: int = 0
    pending: int = 0
    in_transit: int = 0
    delivered: int = 0
    delayed: int = 0
    cancelled: int = 0
    flagged: int = 0
    avg_cost: float = 0.0
    total_cost: float = 0.0


class DeleteResponse(_CamelModel):
    success: bool
    message: str
    deleted_id: str | None = None
