"""
Enumeration types for marina operations.

All enums inherit from str to ensure JSON serialization compatibility.
Statuses are closed sets; values are stored lower-case.
"""

from enum import Enum


class ContractStatus(str, Enum):
    """Lifecycle of a berth rental contract."""

    ACTIVE = "active"
    PENDING = "pending"
    EXPIRED = "expired"
    TERMINATED = "terminated"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    """
    Invoice lifecycle.

    Pending and overdue invoices are outstanding; a pending invoice past its
    due date is classified as overdue at evaluation time.
    """

    DRAFT = "draft"
    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment settlement states."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class BookingStatus(str, Enum):
    """
    Stored booking status.

    The status used for reporting is derived from this value and the
    evaluation instant (see classifiers.calculated_booking_status).
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WorkOrderStatus(str, Enum):
    """Maintenance task progress."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WorkOrderPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class UserRole(str, Enum):
    """
    Portal roles.

    Admins and group admins see every marina; other roles are scoped to the
    marina on their session.
    """

    ADMIN = "admin"
    GROUP_ADMIN = "group_admin"
    MANAGER = "manager"
    STAFF = "staff"
    VIEWER = "viewer"


class DataSourceMode(str, Enum):
    """Where the API reads records from."""

    MOCK = "mock"
    DATABASE = "database"


class ForcedMode(str, Enum):
    """Lock applied to the data-source toggle."""

    NONE = "none"
    MOCK = "mock"
    DATABASE = "database"
