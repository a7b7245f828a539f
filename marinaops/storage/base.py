"""
Abstract storage interface for marina operations.

Defines the persistence contract the API reads through, so the demo dataset
(an in-memory store) and the live database are interchangeable.

Aggregate-root reads (marinas, owners, berths, marina groups) load their
relations with the portal's scoping:

- contracts: active or pending
- invoices: pending or overdue
- payments: completed within the recent-payment window
- work orders: pending or in progress
- bookings: confirmed or active

List reads take an optional ``marina_id`` to restrict results to one marina.
All datetimes are naive UTC.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel

from marinaops.models.entities import (
    Berth,
    Boat,
    Booking,
    Contract,
    Invoice,
    Marina,
    MarinaGroup,
    Owner,
    Payment,
    User,
    WorkOrder,
)


class StorageBackend(ABC):
    """
    Abstract base class for all storage implementations.

    Implementations must be safe to share between request threads and must
    raise ``StorageError`` (never a driver-specific exception) on failure.
    """

    # =========================================================================
    # Writes
    # =========================================================================

    @abstractmethod
    def write_records(self, table: str, records: Iterable[BaseModel]) -> int:
        """
        Insert or replace records in ``table``.

        Args:
            table: Table name (e.g. "owners", "work_orders")
            records: Entity models; relation lists are ignored

        Returns:
            Number of records written

        Raises:
            StorageError: If the table is unknown or the write fails
        """
        pass

    @abstractmethod
    def load_dataset(self, dataset) -> dict[str, int]:
        """
        Write every record list of a ``SampleDataset`` in one transaction.

        Returns:
            Records written per table
        """
        pass

    # =========================================================================
    # Aggregate roots
    # =========================================================================

    @abstractmethod
    def list_marinas(
        self, marina_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> list[Marina]:
        pass

    @abstractmethod
    def read_marina(self, marina_id: str, now: Optional[datetime] = None) -> Optional[Marina]:
        """Marina with all scoped relations, or None if missing."""
        pass

    @abstractmethod
    def list_marina_groups(self, now: Optional[datetime] = None) -> list[MarinaGroup]:
        pass

    @abstractmethod
    def read_marina_group(
        self, group_id: str, now: Optional[datetime] = None
    ) -> Optional[MarinaGroup]:
        """Group with per-marina relation counts and monthly revenue."""
        pass

    @abstractmethod
    def list_owners(
        self, marina_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> list[Owner]:
        pass

    @abstractmethod
    def read_owner(self, owner_id: str, now: Optional[datetime] = None) -> Optional[Owner]:
        pass

    @abstractmethod
    def list_berths(
        self, marina_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> list[Berth]:
        pass

    @abstractmethod
    def read_berth(self, berth_id: str, now: Optional[datetime] = None) -> Optional[Berth]:
        pass

    # =========================================================================
    # Flat records
    # =========================================================================

    @abstractmethod
    def list_contracts(self, marina_id: Optional[str] = None) -> list[Contract]:
        pass

    @abstractmethod
    def read_contract(self, contract_id: str) -> Optional[Contract]:
        """Contract with owner/boat/berth refs and all of its invoices."""
        pass

    @abstractmethod
    def list_bookings(self, marina_id: Optional[str] = None) -> list[Booking]:
        pass

    @abstractmethod
    def read_booking(self, booking_id: str) -> Optional[Booking]:
        pass

    @abstractmethod
    def list_invoices(self, marina_id: Optional[str] = None) -> list[Invoice]:
        pass

    @abstractmethod
    def read_invoice(self, invoice_id: str) -> Optional[Invoice]:
        pass

    @abstractmethod
    def list_payments(self, marina_id: Optional[str] = None) -> list[Payment]:
        pass

    @abstractmethod
    def read_payment(self, payment_id: str) -> Optional[Payment]:
        pass

    @abstractmethod
    def list_boats(self, marina_id: Optional[str] = None) -> list[Boat]:
        pass

    @abstractmethod
    def read_boat(self, boat_id: str) -> Optional[Boat]:
        pass

    @abstractmethod
    def list_work_orders(self, marina_id: Optional[str] = None) -> list[WorkOrder]:
        pass

    @abstractmethod
    def read_work_order(self, work_order_id: str) -> Optional[WorkOrder]:
        pass

    @abstractmethod
    def list_users(self, marina_id: Optional[str] = None) -> list[User]:
        pass

    @abstractmethod
    def read_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup, including the password hash."""
        pass

    # =========================================================================
    # Settings and diagnostics
    # =========================================================================

    @abstractmethod
    def read_setting(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def write_setting(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def count_records(self, table: str, marina_id: Optional[str] = None) -> int:
        """
        Row count of ``table``.

        Raises:
            StorageError: If the table is unknown
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """True if the store answers a trivial query."""
        pass
