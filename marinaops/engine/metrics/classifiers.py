"""
Status classifiers for marina records.

Pure predicates that place a record in its lifecycle given an explicit
evaluation instant ``now``. Classifiers never raise: missing or unparseable
dates are treated as "not yet" (not overdue, not expired, not started).

Records may be entity models or plain mappings with either snake_case or
camelCase keys.
"""

import math
from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic.alias_generators import to_camel

from marinaops.models.entities import Booking, Contract
from marinaops.models.enums import (
    BookingStatus,
    ContractStatus,
    InvoiceStatus,
    PaymentStatus,
    WorkOrderStatus,
)

SECONDS_PER_DAY = 86400

OUTSTANDING_INVOICE_STATUSES = frozenset(
    {InvoiceStatus.PENDING.value, InvoiceStatus.OVERDUE.value}
)


def field_value(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a model attribute or a mapping key (snake or camel)."""
    if record is None:
        return default
    if isinstance(record, dict):
        if name in record:
            return record[name]
        return record.get(to_camel(name), default)
    return getattr(record, name, default)


def status_of(record: Any) -> Optional[str]:
    """Lower-case status string of a record, or None."""
    status = field_value(record, "status")
    if status is None:
        return None
    value = getattr(status, "value", status)
    return str(value).lower()


def to_utc(value: Any) -> Optional[datetime]:
    """
    Normalize a date-like value to an aware UTC datetime.

    Naive datetimes are taken as UTC, dates as midnight UTC, and ISO strings
    are parsed. Returns None for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


# =============================================================================
# Lifecycle predicates
# =============================================================================


def is_pending(record: Any) -> bool:
    return status_of(record) == "pending"


def is_in_progress(record: Any) -> bool:
    return status_of(record) == WorkOrderStatus.IN_PROGRESS.value


def is_open_work_order(work_order: Any) -> bool:
    """Pending or in-progress."""
    return status_of(work_order) in (
        WorkOrderStatus.PENDING.value,
        WorkOrderStatus.IN_PROGRESS.value,
    )


def is_outstanding(invoice: Any) -> bool:
    """Invoice still awaiting payment (pending or overdue)."""
    return status_of(invoice) in OUTSTANDING_INVOICE_STATUSES


def is_paid(invoice: Any) -> bool:
    return status_of(invoice) == InvoiceStatus.PAID.value


def is_completed_payment(payment: Any) -> bool:
    return status_of(payment) == PaymentStatus.COMPLETED.value


def is_overdue(invoice: Any, now: datetime) -> bool:
    """
    True iff the invoice is marked overdue, or is pending with a due date
    strictly before ``now``. An invoice without a due date is never overdue.
    """
    status = status_of(invoice)
    if status == InvoiceStatus.OVERDUE.value:
        return True
    if status != InvoiceStatus.PENDING.value:
        return False
    due = to_utc(field_value(invoice, "due_date"))
    current = to_utc(now)
    if due is None or current is None:
        return False
    return due < current


def calculated_booking_status(booking: Any, now: datetime) -> Optional[str]:
    """
    Derive the reporting status of a booking at ``now``.

    A confirmed booking whose window contains ``now`` is active; an active
    booking whose end has passed is completed. Everything else keeps its
    stored status. The result is distinct from the persisted status.
    """
    stored = status_of(booking)
    start = to_utc(field_value(booking, "start_date"))
    end = to_utc(field_value(booking, "end_date"))
    current = to_utc(now)
    if current is None:
        return stored

    if stored == BookingStatus.CONFIRMED.value and start and end and start <= current <= end:
        return BookingStatus.ACTIVE.value
    if stored == BookingStatus.ACTIVE.value and end and current > end:
        return BookingStatus.COMPLETED.value
    return stored


def has_ended(record: Any, now: datetime) -> bool:
    """True when the record has an end date strictly before ``now``."""
    end = to_utc(field_value(record, "end_date"))
    current = to_utc(now)
    if end is None or current is None:
        return False
    return end < current


def is_contract_expired(contract: Any, now: datetime) -> bool:
    return has_ended(contract, now)


def is_active(record: Any, now: datetime) -> bool:
    """
    Time-aware activity check.

    - bookings: derived status is active
    - contracts: stored status is active; an active contract past its end
      date still counts (``is_contract_expired`` reports that separately)
    - anything else: its ``is_active`` flag
    """
    if _looks_like_booking(record):
        return calculated_booking_status(record, now) == BookingStatus.ACTIVE.value
    if _looks_like_contract(record):
        return status_of(record) == ContractStatus.ACTIVE.value
    return bool(field_value(record, "is_active", False))


def is_confirmed_booking(booking: Any, now: datetime) -> bool:
    return calculated_booking_status(booking, now) == BookingStatus.CONFIRMED.value


def _looks_like_booking(record: Any) -> bool:
    if isinstance(record, Booking):
        return True
    return isinstance(record, dict) and (
        "booking_number" in record or "bookingNumber" in record or "total_amount" in record
        or "totalAmount" in record
    )


def _looks_like_contract(record: Any) -> bool:
    if isinstance(record, Contract):
        return True
    return isinstance(record, dict) and (
        "monthly_rate" in record or "monthlyRate" in record or "contract_number" in record
        or "contractNumber" in record
    )


# =============================================================================
# Day arithmetic
# =============================================================================


def days_until(value: Any, now: datetime) -> Optional[int]:
    """Ceiling of ``value - now`` in days (may be negative); None if undated."""
    target = to_utc(value)
    current = to_utc(now)
    if target is None or current is None:
        return None
    return math.ceil((target - current).total_seconds() / SECONDS_PER_DAY)


def days_remaining(value: Any, now: datetime) -> int:
    """Days left until ``value``, clamped to zero."""
    days = days_until(value, now)
    return max(0, days) if days is not None else 0


def days_overdue(invoice: Any, now: datetime) -> int:
    """
    Whole days past the due date, rounded up, for overdue invoices.

    Zero for invoices that are not overdue or have no due date.
    """
    if not is_overdue(invoice, now):
        return 0
    due = to_utc(field_value(invoice, "due_date"))
    current = to_utc(now)
    if due is None or current is None:
        return 0
    return max(0, math.ceil((current - due).total_seconds() / SECONDS_PER_DAY))


def days_between(start: Any, end: Any) -> int:
    """Ceiling of ``end - start`` in days, zero when either is missing."""
    first = to_utc(start)
    last = to_utc(end)
    if first is None or last is None:
        return 0
    return math.ceil((last - first).total_seconds() / SECONDS_PER_DAY)
