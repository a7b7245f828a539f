"""
Entity models for marina operations.

These are read-only projections of the relational store as consumed by the
metrics aggregator. Python attributes are snake_case; JSON uses camelCase
aliases so summaries keep the field names the portal expects
(``firstName``, ``monthlyRate``, ``workOrders``, ...).

Relation lists always default to empty and ``None`` supplied for a relation
is coerced to an empty list, so summary builders never see a missing
collection.
"""

from datetime import datetime
from typing import Any, Optional, get_origin

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .enums import (
    BookingStatus,
    ContractStatus,
    InvoiceStatus,
    PaymentStatus,
    UserRole,
    WorkOrderPriority,
    WorkOrderStatus,
)


class MarinaRecord(BaseModel):
    """Base class: camelCase aliases, lower-cased statuses, total relation lists."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def coerce_null_relations(cls, data: Any) -> Any:
        """Drop explicit nulls for list fields so their empty default applies."""
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        for name, field in cls.model_fields.items():
            if get_origin(field.annotation) is not list:
                continue
            for key in (name, field.alias):
                if key in cleaned and cleaned[key] is None:
                    del cleaned[key]
        return cleaned

    @field_validator("status", "priority", mode="before", check_fields=False)
    @classmethod
    def lower_case_enum(cls, v: Any) -> Any:
        """Accept statuses in any case (mock data historically used upper case)."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


# =============================================================================
# Lightweight references embedded in other records
# =============================================================================


class MarinaRef(MarinaRecord):
    id: str
    name: str
    code: Optional[str] = None


class OwnerRef(MarinaRecord):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None


class BoatRef(MarinaRecord):
    id: str
    name: str
    registration: Optional[str] = None


class BerthRef(MarinaRecord):
    id: str
    berth_number: str


# =============================================================================
# Leaf records
# =============================================================================


class Invoice(MarinaRecord):
    """Invoice raised against a contract or owner."""

    id: str
    invoice_number: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    total: float = Field(default=0.0, ge=0, description="Invoice total in major units")
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    contract_id: Optional[str] = None
    owner_id: Optional[str] = None
    marina_id: Optional[str] = None


class Payment(MarinaRecord):
    """Payment received, optionally settling an invoice."""

    id: str
    amount: float = Field(default=0.0, ge=0)
    status: PaymentStatus = PaymentStatus.PENDING
    gateway: Optional[str] = None
    created_at: Optional[datetime] = None
    invoice_id: Optional[str] = None
    owner_id: Optional[str] = None
    marina_id: Optional[str] = None


class Boat(MarinaRecord):
    id: str
    name: str
    registration: Optional[str] = None
    length: Optional[float] = None
    beam: Optional[float] = None
    draft: Optional[float] = None
    is_active: bool = True
    owner_id: Optional[str] = None
    berth_id: Optional[str] = None
    marina_id: Optional[str] = None
    owner: Optional[OwnerRef] = None
    berth: Optional[BerthRef] = None


class Contract(MarinaRecord):
    """
    Berth rental contract.

    Attributes:
        monthly_rate: Recurring charge; a null rate counts as zero in sums
        invoices: Invoices raised under this contract (detail reads only)
    """

    id: str
    contract_number: Optional[str] = None
    status: ContractStatus = ContractStatus.PENDING
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    monthly_rate: Optional[float] = Field(default=None, ge=0)
    owner_id: Optional[str] = None
    boat_id: Optional[str] = None
    berth_id: Optional[str] = None
    marina_id: Optional[str] = None
    created_at: Optional[datetime] = None
    owner: Optional[OwnerRef] = None
    boat: Optional[BoatRef] = None
    berth: Optional[BerthRef] = None
    invoices: list[Invoice] = Field(default_factory=list)


class Booking(MarinaRecord):
    """Short-term berth booking."""

    id: str
    booking_number: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_amount: float = Field(default=0.0, ge=0)
    owner_id: Optional[str] = None
    boat_id: Optional[str] = None
    berth_id: Optional[str] = None
    marina_id: Optional[str] = None
    created_at: Optional[datetime] = None
    owner: Optional[OwnerRef] = None
    boat: Optional[BoatRef] = None
    berth: Optional[BerthRef] = None


class WorkOrder(MarinaRecord):
    """Maintenance task tracked against a boat, owner or berth."""

    id: str
    title: str = ""
    status: WorkOrderStatus = WorkOrderStatus.PENDING
    priority: WorkOrderPriority = WorkOrderPriority.MEDIUM
    total_cost: float = Field(default=0.0, ge=0)
    requested_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    owner_id: Optional[str] = None
    boat_id: Optional[str] = None
    berth_id: Optional[str] = None
    marina_id: Optional[str] = None
    created_at: Optional[datetime] = None
    owner: Optional[OwnerRef] = None
    boat: Optional[BoatRef] = None
    berth: Optional[BerthRef] = None


class User(MarinaRecord):
    """Portal user. The password hash is never serialized."""

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    roles: list[UserRole] = Field(default_factory=list)
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    marina_id: Optional[str] = None
    password_hash: Optional[str] = Field(default=None, exclude=True)

    @property
    def primary_role(self) -> UserRole:
        """Highest-privilege role held, viewer when none."""
        for role in (
            UserRole.ADMIN,
            UserRole.GROUP_ADMIN,
            UserRole.MANAGER,
            UserRole.STAFF,
        ):
            if role in self.roles:
                return role
        return UserRole.VIEWER


# =============================================================================
# Aggregate roots with relations
# =============================================================================


class Berth(MarinaRecord):
    id: str
    berth_number: str
    length: Optional[float] = None
    beam: Optional[float] = None
    is_available: bool = True
    is_active: bool = True
    marina_id: Optional[str] = None
    contracts: list[Contract] = Field(default_factory=list)
    bookings: list[Booking] = Field(default_factory=list)
    work_orders: list[WorkOrder] = Field(default_factory=list)


class Owner(MarinaRecord):
    """Boat owner, also called customer in the portal."""

    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    marina_id: Optional[str] = None
    created_at: Optional[datetime] = None
    boats: list[Boat] = Field(default_factory=list)
    contracts: list[Contract] = Field(default_factory=list)
    invoices: list[Invoice] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    work_orders: list[WorkOrder] = Field(default_factory=list)
    bookings: list[Booking] = Field(default_factory=list)


class Marina(MarinaRecord):
    id: str
    name: str
    code: Optional[str] = None
    is_active: bool = True
    is_online: bool = True
    last_sync_at: Optional[datetime] = None
    marina_group_id: Optional[str] = None
    berths: list[Berth] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    boats: list[Boat] = Field(default_factory=list)
    owners: list[Owner] = Field(default_factory=list)
    contracts: list[Contract] = Field(default_factory=list)
    invoices: list[Invoice] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    work_orders: list[WorkOrder] = Field(default_factory=list)
    bookings: list[Booking] = Field(default_factory=list)


class RelationCounts(MarinaRecord):
    """
    Per-marina relation counts used for group roll-ups.

    Counts follow the detail-read scoping: contracts are active ones, bookings
    confirmed or active, work orders open, invoices outstanding, and payments
    completed within the recent-payment window.
    """

    berths: int = 0
    boats: int = 0
    owners: int = 0
    users: int = 0
    contracts: int = 0
    bookings: int = 0
    work_orders: int = 0
    pending_work_orders: int = 0
    in_progress_work_orders: int = 0
    invoices: int = 0
    payments: int = 0


class MarinaOverview(MarinaRecord):
    """Marina as seen from its group: flags, revenue and relation counts."""

    id: str
    name: str
    code: Optional[str] = None
    is_active: bool = True
    is_online: bool = True
    monthly_revenue: float = 0.0
    counts: RelationCounts = Field(default_factory=RelationCounts, alias="_count")


class MarinaGroup(MarinaRecord):
    id: str
    name: str
    description: Optional[str] = None
    marinas: list[MarinaOverview] = Field(default_factory=list)
