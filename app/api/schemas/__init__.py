"""
Pydantic schemas for API input validation and result envelopes.

Wire names are camelCase; Python attributes and stored fields are snake_case.
"""

# Re-export schemas for convenient imports.
from .pagination import Edge as Edge
from .pagination import PageInfo as PageInfo
from .pagination import PageRequest as PageRequest
from .pagination import PageResult as PageResult
from .shipment import (
    DeleteResponse as DeleteResponse,
)
from .shipment import (
    ShipmentCreate as ShipmentCreate,
)
from .shipment import (
    ShipmentFilter as ShipmentFilter,
)
from .shipment import (
    ShipmentSort as ShipmentSort,
)
from .shipment import (
    ShipmentStats as ShipmentStats,
)
from .shipment import (
    ShipmentUpdate as ShipmentUpdate,
)
from .user import LoginInput as LoginInput
from .user import RegisterInput as RegisterInput
from .user import UserUpdate as UserUpdate
