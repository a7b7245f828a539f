"""
Marina overview report.

Breaks the flat record lists of one marina (or every marina a user can see)
down by lifecycle state for the reporting dashboard. Every figure is counted
from the records themselves with the shared classifiers and aggregation
functions.
"""

from datetime import datetime
from typing import Any, Iterable, Optional

import structlog

from marinaops.models.enums import (
    BookingStatus,
    ContractStatus,
    PaymentStatus,
    WorkOrderPriority,
    WorkOrderStatus,
)

from .aggregation import (
    count_where,
    invoice_total,
    payment_rate,
    sum_where,
    total_monthly_obligations,
    total_outstanding_amount,
    total_paid_amount,
)
from .classifiers import (
    calculated_booking_status,
    is_active,
    is_completed_payment,
    is_contract_expired,
    is_in_progress,
    is_open_work_order,
    is_outstanding,
    is_overdue,
    is_paid,
    is_pending,
    status_of,
)
from .health import HealthPolicy, needs_attention, work_order_health

logger = structlog.get_logger(__name__)


def _status_is(value: str):
    return lambda record: status_of(record) == value


def _is_expired_contract(contract: Any, now: datetime) -> bool:
    return status_of(contract) == ContractStatus.EXPIRED.value or is_contract_expired(contract, now)


def build_marina_overview_report(
    now: datetime,
    *,
    contracts: Optional[Iterable[Any]] = None,
    invoices: Optional[Iterable[Any]] = None,
    bookings: Optional[Iterable[Any]] = None,
    payments: Optional[Iterable[Any]] = None,
    owners: Optional[Iterable[Any]] = None,
    boats: Optional[Iterable[Any]] = None,
    berths: Optional[Iterable[Any]] = None,
    work_orders: Optional[Iterable[Any]] = None,
    policy: Optional[HealthPolicy] = None,
) -> dict[str, Any]:
    """
    Build the overview report.

    Args:
        now: Evaluation instant for time-aware classifiers
        contracts, invoices, bookings, payments, owners, boats, berths,
            work_orders: Unscoped record lists (every status)
        policy: Health scoring tunables (defaults when omitted)

    Returns:
        Sections ``contracts``, ``invoices``, ``bookings``, ``payments``,
        ``customers``, ``boats``, ``berths``, ``maintenance`` and
        ``financial``, plus ``healthScore``, ``needsAttention`` and
        ``generatedAt``.
    """
    contracts = list(contracts or [])
    invoices = list(invoices or [])
    bookings = list(bookings or [])
    payments = list(payments or [])
    owners = list(owners or [])
    boats = list(boats or [])
    berths = list(berths or [])
    work_orders = list(work_orders or [])

    active_contracts = [c for c in contracts if is_active(c, now)]
    owner_ids = {o.id for o in owners}
    contracted_owner_ids = {c.owner_id for c in active_contracts if c.owner_id in owner_ids}
    overdue_count = count_where(invoices, lambda i: is_overdue(i, now))
    completed_payments = count_where(payments, is_completed_payment)
    booking_statuses = [calculated_booking_status(b, now) for b in bookings]
    open_work_orders = count_where(work_orders, is_open_work_order)
    active_boats = count_where(boats, lambda b: b.is_active)

    report = {
        "contracts": {
            "total": len(contracts),
            "active": len(active_contracts),
            "pending": count_where(contracts, is_pending),
            "expired": count_where(contracts, lambda c: _is_expired_contract(c, now)),
            "expiredButActive": count_where(
                active_contracts, lambda c: is_contract_expired(c, now)
            ),
        },
        "invoices": {
            "total": len(invoices),
            "paid": count_where(invoices, is_paid),
            "pending": count_where(
                invoices, lambda i: is_outstanding(i) and not is_overdue(i, now)
            ),
            "overdue": overdue_count,
        },
        "bookings": {
            "total": len(bookings),
            "active": booking_statuses.count(BookingStatus.ACTIVE.value),
            "confirmed": booking_statuses.count(BookingStatus.CONFIRMED.value),
            "pending": booking_statuses.count(BookingStatus.PENDING.value),
            "cancelled": booking_statuses.count(BookingStatus.CANCELLED.value),
        },
        "payments": {
            "total": len(payments),
            "completed": completed_payments,
            "pending": count_where(payments, _status_is(PaymentStatus.PENDING.value)),
            "failed": count_where(payments, _status_is(PaymentStatus.FAILED.value)),
        },
        "customers": {
            "total": len(owners),
            "active": count_where(owners, lambda o: o.is_active),
            "withContracts": len(contracted_owner_ids),
        },
        "boats": {
            "total": len(boats),
            "active": active_boats,
            "inactive": len(boats) - active_boats,
        },
        "berths": {
            "total": len(berths),
            "occupied": count_where(berths, lambda b: not b.is_available),
            "available": count_where(berths, lambda b: b.is_available),
            "outOfService": count_where(berths, lambda b: not b.is_active),
        },
        "maintenance": {
            "total": len(work_orders),
            "completed": count_where(work_orders, _status_is(WorkOrderStatus.COMPLETED.value)),
            "inProgress": count_where(work_orders, is_in_progress),
            "pending": count_where(work_orders, is_pending),
            "byPriority": {
                priority.value: count_where(work_orders, lambda w, p=priority: w.priority == p)
                for priority in WorkOrderPriority
            },
        },
        "financial": {
            "monthlyRevenue": total_monthly_obligations(contracts, now),
            "totalInvoiced": sum_where(invoices, invoice_total),
            "outstandingAmount": total_outstanding_amount(invoices),
            "totalPaid": total_paid_amount(payments),
            "paymentRate": payment_rate(completed_payments, len(invoices)),
        },
        "healthScore": work_order_health(work_orders, policy),
        "needsAttention": needs_attention(
            open_work_orders=open_work_orders,
            outstanding_invoices=count_where(invoices, is_outstanding),
        ),
        "generatedAt": now.isoformat(),
    }
    logger.debug(
        "marina_overview_report_built",
        contracts=len(contracts),
        invoices=len(invoices),
        work_orders=len(work_orders),
    )
    return report
