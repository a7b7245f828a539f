"""
Deterministic sample dataset for demo (mock) mode.

Generates one marina group, three marinas, five portal users and
``records_per_type`` owners, boats, berths, contracts, invoices, payments,
bookings and work orders. Record ``i`` of every type belongs to the same
marina (``i % 3``) and the same owner, so relations line up when loaded into
storage. Status mixes cycle with period five.

Dates are placed relative to the injected ``now``; the same
``(records_per_type, now, seed)`` always yields the same dataset.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from marinaops.auth.passwords import hash_password
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
from marinaops.models.enums import (
    BookingStatus,
    ContractStatus,
    InvoiceStatus,
    PaymentStatus,
    UserRole,
    WorkOrderPriority,
    WorkOrderStatus,
)

logger = structlog.get_logger(__name__)

CONTRACT_STATUSES = [
    ContractStatus.ACTIVE,
    ContractStatus.ACTIVE,
    ContractStatus.ACTIVE,
    ContractStatus.PENDING,
    ContractStatus.EXPIRED,
]
INVOICE_STATUSES = [
    InvoiceStatus.PAID,
    InvoiceStatus.PAID,
    InvoiceStatus.PAID,
    InvoiceStatus.PENDING,
    InvoiceStatus.OVERDUE,
]
BOOKING_STATUSES = [
    BookingStatus.CONFIRMED,
    BookingStatus.CONFIRMED,
    BookingStatus.CONFIRMED,
    BookingStatus.PENDING,
    BookingStatus.CANCELLED,
]
WORK_ORDER_STATUSES = [
    WorkOrderStatus.COMPLETED,
    WorkOrderStatus.COMPLETED,
    WorkOrderStatus.COMPLETED,
    WorkOrderStatus.IN_PROGRESS,
    WorkOrderStatus.PENDING,
]
PAYMENT_STATUSES = [
    PaymentStatus.COMPLETED,
    PaymentStatus.COMPLETED,
    PaymentStatus.COMPLETED,
    PaymentStatus.PENDING,
    PaymentStatus.FAILED,
]
# occupied, occupied, occupied, available, maintenance
BERTH_STATES = ["occupied", "occupied", "occupied", "available", "maintenance"]

FIRST_NAMES = ["John", "Sarah", "Michael", "Emma", "David", "Lisa", "Robert", "Anna"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis"]
BOAT_NAMES = ["Sea Breeze", "Ocean Spirit", "Wind Dancer", "Blue Horizon", "Wave Runner"]
WORK_ORDER_TITLES = [
    "Engine service",
    "Hull cleaning",
    "Electrical inspection",
    "Winter storage preparation",
    "Rigging check",
]

MARINAS = [
    ("marina-1", "Harbor Point Marina", "HPM", True),
    ("marina-2", "Sunset Bay Marina", "SBM", True),
    ("marina-3", "North Cove Marina", "NCM", False),
]

USERS = [
    ("admin@marina.example", "Alex", "Morgan", UserRole.ADMIN, 0),
    ("group@marina.example", "Jamie", "Lee", UserRole.GROUP_ADMIN, 0),
    ("manager@marina.example", "Sam", "Taylor", UserRole.MANAGER, 0),
    ("staff@marina.example", "Chris", "Parker", UserRole.STAFF, 1),
    ("dock@marina.example", "Robin", "Hayes", UserRole.STAFF, 2),
]


class SampleDataset(BaseModel):
    """Flat record lists; relations are assembled by the storage layer."""

    marina_groups: list[MarinaGroup] = Field(default_factory=list)
    marinas: list[Marina] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    owners: list[Owner] = Field(default_factory=list)
    boats: list[Boat] = Field(default_factory=list)
    berths: list[Berth] = Field(default_factory=list)
    contracts: list[Contract] = Field(default_factory=list)
    invoices: list[Invoice] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    bookings: list[Booking] = Field(default_factory=list)
    work_orders: list[WorkOrder] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {name: len(getattr(self, name)) for name in type(self).model_fields}


def _contract_window(status: ContractStatus, i: int, now: datetime) -> tuple[datetime, datetime]:
    if status == ContractStatus.PENDING:
        start = now + timedelta(days=14 + i)
        return start, start + timedelta(days=365)
    if status == ContractStatus.EXPIRED:
        end = now - timedelta(days=10 + i)
        return end - timedelta(days=365), end
    # Every third active contract runs out within the expiry warning window
    end = now + timedelta(days=20 if i % 3 == 0 else 120 + i)
    return end - timedelta(days=365), end


def _booking_window(status: BookingStatus, i: int, now: datetime) -> tuple[datetime, datetime]:
    if status == BookingStatus.CONFIRMED and i % 2 == 0:
        # In progress right now
        start = now - timedelta(days=1 + i % 3)
    else:
        start = now + timedelta(days=3 + i)
    return start, start + timedelta(days=2 + i % 5)


def _invoice_due_date(status: InvoiceStatus, i: int, now: datetime) -> datetime:
    if status == InvoiceStatus.OVERDUE:
        return now - timedelta(days=10 + i % 7)
    if status == InvoiceStatus.PENDING:
        return now + timedelta(days=15)
    return now - timedelta(days=30 + i)


def build_sample_dataset(
    records_per_type: int = 25,
    now: Optional[datetime] = None,
    seed: int = 42,
    password: str = "marina-demo",
) -> SampleDataset:
    """
    Build the demo dataset.

    Args:
        records_per_type: Number of each record type (owners, boats, ...)
        now: Anchor instant for all relative dates (naive UTC)
        seed: Seed for measurements and amounts
        password: Plain-text password given to every sample user

    Returns:
        SampleDataset with consistent cross-references
    """
    now = now or datetime.utcnow()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    now = now.replace(microsecond=0)
    rng = random.Random(seed)
    password_hash = hash_password(password, salt=f"{rng.getrandbits(64):016x}")

    group = MarinaGroup(id="group-1", name="Coastal Marinas Group", description="Demo marina group")
    marinas = [
        Marina(
            id=marina_id,
            name=name,
            code=code,
            is_active=True,
            is_online=online,
            last_sync_at=now - timedelta(minutes=5 if online else 600),
            marina_group_id=group.id,
        )
        for marina_id, name, code, online in MARINAS
    ]

    users = [
        User(
            id=f"user-{n + 1}",
            email=email,
            first_name=first,
            last_name=last,
            roles=[role],
            is_active=True,
            last_login_at=now - timedelta(hours=n + 1),
            marina_id=marinas[marina_index].id,
            password_hash=password_hash,
        )
        for n, (email, first, last, role, marina_index) in enumerate(USERS)
    ]

    dataset = SampleDataset(marina_groups=[group], marinas=marinas, users=users)

    for i in range(records_per_type):
        n = i + 1
        marina_id = marinas[i % len(marinas)].id
        owner_id = f"owner-{n}"
        boat_id = f"boat-{n}"
        berth_id = f"berth-{n}"
        contract_id = f"contract-{n}"
        invoice_id = f"invoice-{n}"
        created_at = now - timedelta(days=200 - i % 200)

        first = FIRST_NAMES[i % len(FIRST_NAMES)]
        last = LAST_NAMES[(i // len(FIRST_NAMES)) % len(LAST_NAMES)]
        dataset.owners.append(
            Owner(
                id=owner_id,
                first_name=first,
                last_name=last,
                email=f"{first.lower()}.{last.lower()}{n}@example.com",
                phone=f"+1-555-{n:04d}",
                is_active=i % 5 != 4,
                marina_id=marina_id,
                created_at=created_at,
            )
        )

        berth_state = BERTH_STATES[i % 5]
        dataset.berths.append(
            Berth(
                id=berth_id,
                berth_number=f"{chr(ord('A') + i // 10)}{i % 10 + 1}",
                length=round(rng.uniform(8, 25), 1),
                beam=round(rng.uniform(3, 8), 1),
                is_available=berth_state == "available",
                is_active=berth_state != "maintenance",
                marina_id=marina_id,
            )
        )

        dataset.boats.append(
            Boat(
                id=boat_id,
                name=f"{BOAT_NAMES[i % len(BOAT_NAMES)]} {n}",
                registration=f"REG-{n:05d}",
                length=round(rng.uniform(6, 20), 1),
                beam=round(rng.uniform(2, 6), 1),
                draft=round(rng.uniform(0.8, 3), 1),
                is_active=i % 5 != 4,
                owner_id=owner_id,
                berth_id=berth_id,
                marina_id=marina_id,
            )
        )

        contract_status = CONTRACT_STATUSES[i % 5]
        start, end = _contract_window(contract_status, i, now)
        dataset.contracts.append(
            Contract(
                id=contract_id,
                contract_number=f"CT-{n:05d}",
                status=contract_status,
                start_date=start,
                end_date=end,
                monthly_rate=float(400 + 25 * (i % 20)),
                owner_id=owner_id,
                boat_id=boat_id,
                berth_id=berth_id,
                marina_id=marina_id,
                created_at=created_at,
            )
        )

        invoice_status = INVOICE_STATUSES[i % 5]
        total = float(round(rng.uniform(500, 2500), 2))
        dataset.invoices.append(
            Invoice(
                id=invoice_id,
                invoice_number=f"INV-{n:05d}",
                status=invoice_status,
                total=total,
                due_date=_invoice_due_date(invoice_status, i, now),
                created_at=now - timedelta(days=45 - i % 30),
                contract_id=contract_id,
                owner_id=owner_id,
                marina_id=marina_id,
            )
        )

        dataset.payments.append(
            Payment(
                id=f"payment-{n}",
                amount=total,
                status=PAYMENT_STATUSES[i % 5],
                gateway="stripe" if i % 2 == 0 else "bank_transfer",
                created_at=now - timedelta(days=i % 20),
                invoice_id=invoice_id,
                owner_id=owner_id,
                marina_id=marina_id,
            )
        )

        booking_status = BOOKING_STATUSES[i % 5]
        booking_start, booking_end = _booking_window(booking_status, i, now)
        dataset.bookings.append(
            Booking(
                id=f"booking-{n}",
                booking_number=f"BK-{n:05d}",
                status=booking_status,
                start_date=booking_start,
                end_date=booking_end,
                total_amount=float(round(rng.uniform(100, 900), 2)),
                owner_id=owner_id,
                boat_id=boat_id,
                berth_id=berth_id,
                marina_id=marina_id,
                created_at=created_at,
            )
        )

        work_order_status = WORK_ORDER_STATUSES[i % 5]
        requested = now - timedelta(days=3 + i % 30)
        dataset.work_orders.append(
            WorkOrder(
                id=f"work-order-{n}",
                title=WORK_ORDER_TITLES[i % len(WORK_ORDER_TITLES)],
                status=work_order_status,
                priority=list(WorkOrderPriority)[i % len(WorkOrderPriority)],
                total_cost=float(round(rng.uniform(50, 1500), 2)),
                requested_date=requested,
                completed_date=(
                    requested + timedelta(days=2)
                    if work_order_status == WorkOrderStatus.COMPLETED
                    else None
                ),
                owner_id=owner_id,
                boat_id=boat_id,
                berth_id=berth_id,
                marina_id=marina_id,
                created_at=requested,
            )
        )

    logger.info("sample_dataset_built", records_per_type=records_per_type, seed=seed)
    return dataset
