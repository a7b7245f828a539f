"""
Pytest configuration and shared fixtures for the marina operations test suite.

Provides entity factories, a fixed evaluation instant, an in-memory DuckDB
store loaded with the sample dataset, and an API client whose storage, clock
and data-source store are overridden per test.
"""

import os
import tempfile
import uuid as _uuid
from datetime import datetime, timedelta
from typing import Optional

import pytest

# Set testing environment BEFORE importing the app.
# Use a temp path (must not exist - DuckDB creates the file).
_test_db_path = os.path.join(tempfile.gettempdir(), f"marinaops_test_{os.getpid()}.duckdb")
os.environ["TESTING"] = "true"
os.environ["DB_PATH"] = _test_db_path
os.environ["DEFAULT_DATA_SOURCE"] = "mock"
os.environ["FORCED_DATA_SOURCE"] = "none"
os.environ["LOG_LEVEL"] = "warning"


# ---------------------------------------------------------------------------
# Entity factories - reusable across all test suites
# ---------------------------------------------------------------------------

from marinaops.models.entities import (
    Berth,
    Boat,
    Booking,
    Contract,
    Invoice,
    Marina,
    MarinaGroup,
    MarinaOverview,
    Owner,
    Payment,
    RelationCounts,
    User,
    WorkOrder,
)
from marinaops.models.enums import (
    BookingStatus,
    ContractStatus,
    InvoiceStatus,
    PaymentStatus,
    UserRole,
    WorkOrderStatus,
)

NOW = datetime(2024, 6, 15, 12, 0, 0)


def _id(prefix: str) -> str:
    return f"{prefix}-{_uuid.uuid4().hex[:8]}"


def make_contract(
    status: ContractStatus = ContractStatus.ACTIVE,
    monthly_rate: Optional[float] = 500.0,
    start_offset_days: int = -30,
    end_offset_days: int = 335,
    now: datetime = NOW,
    **overrides,
) -> Contract:
    """Factory for Contract objects; dates are offsets from ``now``."""
    defaults = dict(
        id=_id("contract"),
        contract_number="CT-TEST",
        status=status,
        start_date=now + timedelta(days=start_offset_days),
        end_date=now + timedelta(days=end_offset_days),
        monthly_rate=monthly_rate,
        marina_id="marina-1",
    )
    defaults.update(overrides)
    return Contract(**defaults)


def make_invoice(
    status: InvoiceStatus = InvoiceStatus.PENDING,
    total: float = 1000.0,
    due_offset_days: Optional[int] = 10,
    now: datetime = NOW,
    **overrides,
) -> Invoice:
    """Factory for Invoice objects; ``due_offset_days=None`` leaves it undated."""
    defaults = dict(
        id=_id("invoice"),
        status=status,
        total=total,
        due_date=None if due_offset_days is None else now + timedelta(days=due_offset_days),
        marina_id="marina-1",
    )
    defaults.update(overrides)
    return Invoice(**defaults)


def make_payment(
    status: PaymentStatus = PaymentStatus.COMPLETED,
    amount: float = 500.0,
    **overrides,
) -> Payment:
    defaults = dict(
        id=_id("payment"),
        status=status,
        amount=amount,
        created_at=NOW - timedelta(days=1),
        marina_id="marina-1",
    )
    defaults.update(overrides)
    return Payment(**defaults)


def make_booking(
    status: BookingStatus = BookingStatus.CONFIRMED,
    start_offset_days: float = 1,
    end_offset_days: float = 3,
    now: datetime = NOW,
    **overrides,
) -> Booking:
    defaults = dict(
        id=_id("booking"),
        booking_number="BK-TEST",
        status=status,
        start_date=now + timedelta(days=start_offset_days),
        end_date=now + timedelta(days=end_offset_days),
        total_amount=300.0,
        marina_id="marina-1",
    )
    defaults.update(overrides)
    return Booking(**defaults)


def make_work_order(status: WorkOrderStatus = WorkOrderStatus.PENDING, **overrides) -> WorkOrder:
    defaults = dict(
        id=_id("work-order"),
        title="Hull cleaning",
        status=status,
        total_cost=150.0,
        requested_date=NOW - timedelta(days=2),
        marina_id="marina-1",
    )
    defaults.update(overrides)
    return WorkOrder(**defaults)


def make_boat(is_active: bool = True, **overrides) -> Boat:
    defaults = dict(id=_id("boat"), name="Sea Breeze", is_active=is_active, marina_id="marina-1")
    defaults.update(overrides)
    return Boat(**defaults)


def make_berth(is_available: bool = True, **overrides) -> Berth:
    defaults = dict(
        id=_id("berth"),
        berth_number="A1",
        is_available=is_available,
        marina_id="marina-1",
    )
    defaults.update(overrides)
    return Berth(**defaults)


def make_owner(**overrides) -> Owner:
    defaults = dict(
        id=_id("owner"),
        first_name="Emma",
        last_name="Brown",
        email="emma.brown@example.com",
        is_active=True,
        marina_id="marina-1",
    )
    defaults.update(overrides)
    return Owner(**defaults)


def make_user(role: UserRole = UserRole.STAFF, **overrides) -> User:
    defaults = dict(
        id=_id("user"),
        email=f"{role.value}@example.com",
        first_name="Sam",
        last_name="Taylor",
        roles=[role],
        marina_id="marina-1",
    )
    defaults.update(overrides)
    return User(**defaults)


def make_marina(is_active: bool = True, is_online: bool = True, **overrides) -> Marina:
    defaults = dict(
        id=_id("marina"),
        name="Harbor Point Marina",
        code="HPM",
        is_active=is_active,
        is_online=is_online,
    )
    defaults.update(overrides)
    return Marina(**defaults)


def make_marina_overview(
    berths: int = 10,
    pending_work_orders: int = 0,
    in_progress_work_orders: int = 0,
    monthly_revenue: float = 0.0,
    is_active: bool = True,
    is_online: bool = True,
    **counts,
) -> MarinaOverview:
    """Group child with relation counts; open work orders follow the split."""
    return MarinaOverview(
        id=_id("marina"),
        name="Child Marina",
        is_active=is_active,
        is_online=is_online,
        monthly_revenue=monthly_revenue,
        counts=RelationCounts(
            berths=berths,
            pending_work_orders=pending_work_orders,
            in_progress_work_orders=in_progress_work_orders,
            work_orders=pending_work_orders + in_progress_work_orders,
            **counts,
        ),
    )


def make_marina_group(marinas: Optional[list] = None, **overrides) -> MarinaGroup:
    defaults = dict(id=_id("group"), name="Coastal Marinas Group", marinas=marinas or [])
    defaults.update(overrides)
    return MarinaGroup(**defaults)


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation instant."""
    return NOW


@pytest.fixture(scope="session")
def sample_dataset():
    """Sample dataset (25 per type) anchored at ``NOW``."""
    from marinaops.engine.sample_data import build_sample_dataset

    return build_sample_dataset(records_per_type=25, now=NOW, seed=42)


@pytest.fixture(scope="session")
def sample_storage(sample_dataset):
    """In-memory DuckDB store loaded with the sample dataset."""
    from marinaops.storage.duckdb_storage import MEMORY_PATH, DuckDBStorage

    storage = DuckDBStorage(db_path=MEMORY_PATH)
    storage.load_dataset(sample_dataset)
    yield storage
    storage.close()


@pytest.fixture
def settings_store():
    """Fresh in-memory data-source settings store (mock, unlocked)."""
    from marinaops.engine.data_source.settings_store import DataSourceSettingsStore

    return DataSourceSettingsStore()


@pytest.fixture
def client(sample_storage, settings_store):
    """
    API client reading from the sample store at ``NOW``.
    """
    from fastapi.testclient import TestClient

    from marinaops.main import app
    from marinaops.routers.deps import get_active_storage, get_now
    from marinaops.storage import get_settings_store

    app.dependency_overrides[get_active_storage] = lambda: sample_storage
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_settings_store] = lambda: settings_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _headers_for(sample_dataset, email: str) -> dict[str, str]:
    from marinaops.auth.jwt import create_user_token

    user = next(u for u in sample_dataset.users if u.email == email)
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def admin_headers(sample_dataset) -> dict[str, str]:
    """Bearer token for the sample admin (sees every marina)."""
    return _headers_for(sample_dataset, "admin@marina.example")


@pytest.fixture
def manager_headers(sample_dataset) -> dict[str, str]:
    """Bearer token for the sample manager (scoped to marina-1)."""
    return _headers_for(sample_dataset, "manager@marina.example")


@pytest.fixture
def staff_headers(sample_dataset) -> dict[str, str]:
    """Bearer token for the sample staff member (scoped to marina-2)."""
    return _headers_for(sample_dataset, "staff@marina.example")
