"""
Pydantic v2 data models for marina operations.

Model Organization:
    - enums: Closed status sets and role/data-source enumerations
    - entities: Relational projections (marinas, owners, berths, ...)
    - data_source: Toggle state and validation results

Usage:
    >>> from marinaops.models import Owner, Contract, ContractStatus
    >>> owner = Owner(
    ...     id="owner-1",
    ...     first_name="Ada",
    ...     last_name="Lovelace",
    ...     contracts=[Contract(id="c-1", status=ContractStatus.ACTIVE, monthly_rate=500)],
    ... )
"""

from .data_source import DataSourceSettings, ValidationResult
from .entities import (
    Berth,
    BerthRef,
    Boat,
    BoatRef,
    Booking,
    Contract,
    Invoice,
    Marina,
    MarinaGroup,
    MarinaOverview,
    MarinaRecord,
    MarinaRef,
    Owner,
    OwnerRef,
    Payment,
    RelationCounts,
    User,
    WorkOrder,
)
from .enums import (
    BookingStatus,
    ContractStatus,
    DataSourceMode,
    ForcedMode,
    InvoiceStatus,
    PaymentStatus,
    UserRole,
    WorkOrderPriority,
    WorkOrderStatus,
)

__all__ = [
    # Enums
    "BookingStatus",
    "ContractStatus",
    "DataSourceMode",
    "ForcedMode",
    "InvoiceStatus",
    "PaymentStatus",
    "UserRole",
    "WorkOrderPriority",
    "WorkOrderStatus",
    # Entities
    "Berth",
    "BerthRef",
    "Boat",
    "BoatRef",
    "Booking",
    "Contract",
    "Invoice",
    "Marina",
    "MarinaGroup",
    "MarinaOverview",
    "MarinaRecord",
    "MarinaRef",
    "Owner",
    "OwnerRef",
    "Payment",
    "RelationCounts",
    "User",
    "WorkOrder",
    # Data source
    "DataSourceSettings",
    "ValidationResult",
]
