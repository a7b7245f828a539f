"""
Entity summary builders.

Each builder takes an entity with its eagerly-loaded relations, an explicit
evaluation instant ``now`` and a ``HealthPolicy``, and returns the entity's
JSON projection extended with computed metrics. Builders are total: an
entity with empty relations yields zero counts and False flags, never an
exception or a missing key.

Output keys are camelCase to match the portal's response bodies.
"""

from datetime import datetime
from typing import Any, Optional

import structlog

from marinaops.models.entities import (
    Berth,
    Booking,
    Contract,
    Invoice,
    Marina,
    MarinaGroup,
    Owner,
)
from marinaops.models.enums import (
    BookingStatus,
    ContractStatus,
    UserRole,
)

from .aggregation import (
    all_where,
    any_where,
    average_monthly_rate,
    berth_utilization_rate,
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
    days_between,
    days_overdue,
    days_remaining,
    days_until,
    has_ended,
    is_active,
    is_completed_payment,
    is_confirmed_booking,
    is_contract_expired,
    is_in_progress,
    is_open_work_order,
    is_outstanding,
    is_overdue,
    is_paid,
    is_pending,
    status_of,
)
from .health import HealthPolicy, health_score, needs_attention, work_order_health

logger = structlog.get_logger(__name__)


def _dump(entity: Any) -> dict[str, Any]:
    return entity.model_dump(mode="json", by_alias=True)


def _has_role(user: Any, role: UserRole) -> bool:
    return role in (user.roles or [])


def _full_name(first: Optional[str], last: Optional[str]) -> str:
    return f"{first or ''} {last or ''}".strip()


# =============================================================================
# Marina
# =============================================================================


def build_marina_summary(
    marina: Marina,
    now: datetime,
    policy: Optional[HealthPolicy] = None,
) -> dict[str, Any]:
    """
    Summarize a marina and all of its scoped relations.

    Args:
        marina: Marina with berths, users, boats, owners, contracts, invoices,
            payments, work orders and bookings loaded
        now: Evaluation instant for time-aware classifiers
        policy: Health scoring tunables (defaults when omitted)

    Returns:
        Marina JSON with utilization, people, financial, work-order and
        booking metrics plus ``healthScore``, ``isFullyOperational`` and
        ``needsAttention``.
    """
    berths = marina.berths
    occupied = count_where(berths, lambda b: not b.is_available)
    outstanding_amount = total_outstanding_amount(marina.invoices)
    monthly_revenue = total_monthly_obligations(marina.contracts, now)
    open_work_orders = count_where(marina.work_orders, is_open_work_order)
    outstanding_invoices = count_where(marina.invoices, is_outstanding)

    summary = _dump(marina)
    summary.update(
        {
            "availableBerths": count_where(berths, lambda b: b.is_available),
            "occupiedBerths": occupied,
            "totalBerths": len(berths),
            "berthUtilizationRate": berth_utilization_rate(occupied, len(berths)),
            "totalUsers": len(marina.users),
            "activeUsers": count_where(marina.users, lambda u: u.is_active),
            "staffCount": count_where(marina.users, lambda u: _has_role(u, UserRole.STAFF)),
            "adminCount": count_where(marina.users, lambda u: _has_role(u, UserRole.ADMIN)),
            "totalBoats": len(marina.boats),
            "activeBoats": count_where(marina.boats, lambda b: b.is_active),
            "totalCustomers": len(marina.owners),
            "activeCustomers": count_where(marina.owners, lambda o: o.is_active),
            "totalContracts": len(marina.contracts),
            "activeContracts": count_where(marina.contracts, lambda c: is_active(c, now)),
            "pendingContracts": count_where(marina.contracts, is_pending),
            "totalInvoices": len(marina.invoices),
            "outstandingInvoices": outstanding_invoices,
            "overdueInvoices": count_where(marina.invoices, lambda i: is_overdue(i, now)),
            "totalOutstandingAmount": outstanding_amount,
            "totalPayments": len(marina.payments),
            "totalPaymentAmount": total_paid_amount(marina.payments),
            "paymentRate": payment_rate(
                count_where(marina.payments, is_completed_payment), len(marina.invoices)
            ),
            "totalWorkOrders": len(marina.work_orders),
            "pendingWorkOrders": count_where(marina.work_orders, is_pending),
            "inProgressWorkOrders": count_where(marina.work_orders, is_in_progress),
            "totalBookings": len(marina.bookings),
            "activeBookings": count_where(marina.bookings, lambda b: is_active(b, now)),
            "confirmedBookings": count_where(
                marina.bookings, lambda b: is_confirmed_booking(b, now)
            ),
            "averageMonthlyRate": average_monthly_rate(marina.contracts, now),
            "healthScore": work_order_health(marina.work_orders, policy),
            "isFullyOperational": marina.is_active and marina.is_online,
            "needsAttention": needs_attention(
                is_active=marina.is_active,
                is_online=marina.is_online,
                open_work_orders=open_work_orders,
                outstanding_invoices=outstanding_invoices,
            ),
            "monthlyRevenue": monthly_revenue,
            "outstandingBalance": outstanding_amount,
        }
    )

    logger.debug(
        "marina_summary_built",
        marina_id=marina.id,
        berths=len(berths),
        health_score=summary["healthScore"],
    )
    return summary


# =============================================================================
# Owner (customer)
# =============================================================================


def _owner_metrics(owner: Owner, now: datetime) -> dict[str, Any]:
    """Metrics shared by the owner detail and owner listing shapes."""
    has_active_contract = any_where(owner.contracts, lambda c: is_active(c, now))
    obligations = total_monthly_obligations(owner.contracts, now)
    return {
        "fullName": _full_name(owner.first_name, owner.last_name),
        "totalOutstandingAmount": total_outstanding_amount(owner.invoices),
        "totalPaidAmount": total_paid_amount(owner.payments),
        "totalMonthlyObligations": obligations,
        "hasOutstandingInvoices": any_where(owner.invoices, is_outstanding),
        "hasOverdueInvoices": any_where(owner.invoices, lambda i: is_overdue(i, now)),
        "hasPendingWorkOrders": any_where(owner.work_orders, is_pending),
        "isActiveCustomer": owner.is_active and has_active_contract,
        "totalMonthlyRevenue": obligations,
        "averageMonthlyRate": average_monthly_rate(owner.contracts, now),
    }


def build_owner_summary(
    owner: Owner,
    now: datetime,
    policy: Optional[HealthPolicy] = None,
) -> dict[str, Any]:
    """
    Customer detail shape.

    Example:
        An owner with one active contract at 500/month, one pending invoice
        of 1250 and one completed payment of 500 reports
        ``totalOutstandingAmount=1250``, ``totalPaidAmount=500`` and
        ``totalMonthlyObligations=500``.
    """
    outstanding = count_where(owner.invoices, is_outstanding)
    open_work_orders = count_where(owner.work_orders, is_open_work_order)
    completed_payments = count_where(owner.payments, is_completed_payment)

    summary = _dump(owner)
    summary.update(_owner_metrics(owner, now))
    summary.update(
        {
            "activeContractsCount": count_where(owner.contracts, lambda c: is_active(c, now)),
            "pendingContractsCount": count_where(owner.contracts, is_pending),
            "totalContractsCount": len(owner.contracts),
            "outstandingInvoicesCount": outstanding,
            "overdueInvoicesCount": count_where(owner.invoices, lambda i: is_overdue(i, now)),
            "totalInvoicesCount": len(owner.invoices),
            "totalPaymentsCount": len(owner.payments),
            "pendingWorkOrdersCount": count_where(owner.work_orders, is_pending),
            "inProgressWorkOrdersCount": count_where(owner.work_orders, is_in_progress),
            "totalWorkOrdersCount": len(owner.work_orders),
            "activeBookingsCount": count_where(owner.bookings, lambda b: is_active(b, now)),
            "confirmedBookingsCount": count_where(
                owner.bookings, lambda b: is_confirmed_booking(b, now)
            ),
            "totalBookingsCount": len(owner.bookings),
            "activeBoatsCount": count_where(owner.boats, lambda b: b.is_active),
            "totalBoatsCount": len(owner.boats),
            "paymentRate": payment_rate(completed_payments, len(owner.invoices)),
            "healthScore": work_order_health(owner.work_orders, policy),
            "needsAttention": needs_attention(
                is_active=owner.is_active,
                open_work_orders=open_work_orders,
                outstanding_invoices=outstanding,
            ),
        }
    )

    logger.debug("owner_summary_built", owner_id=owner.id, health_score=summary["healthScore"])
    return summary


def build_owner_list_summary(owner: Owner, now: datetime) -> dict[str, Any]:
    """Owners listing shape: totals without the ``...Count`` suffix."""
    summary = _dump(owner)
    summary.update(
        {
            "totalBoats": len(owner.boats),
            "activeBoats": count_where(owner.boats, lambda b: b.is_active),
            "totalContracts": len(owner.contracts),
            "activeContracts": count_where(owner.contracts, lambda c: is_active(c, now)),
            "pendingContracts": count_where(owner.contracts, is_pending),
            "totalWorkOrders": len(owner.work_orders),
            "pendingWorkOrders": count_where(owner.work_orders, is_pending),
            "inProgressWorkOrders": count_where(owner.work_orders, is_in_progress),
            "totalBookings": len(owner.bookings),
            "activeBookings": count_where(owner.bookings, lambda b: is_active(b, now)),
            "confirmedBookings": count_where(
                owner.bookings, lambda b: is_confirmed_booking(b, now)
            ),
        }
    )
    summary.update(_owner_metrics(owner, now))
    return summary


# =============================================================================
# Berth
# =============================================================================


def build_berth_summary(
    berth: Berth,
    now: datetime,
    policy: Optional[HealthPolicy] = None,
) -> dict[str, Any]:
    """
    Summarize a berth.

    ``utilizationRate`` is binary: 100 when the berth is not available,
    otherwise 0.
    """
    has_active_contract = any_where(berth.contracts, lambda c: is_active(c, now))
    has_active_booking = any_where(berth.bookings, lambda b: is_active(b, now))

    summary = _dump(berth)
    summary.update(
        {
            "activeContractsCount": count_where(berth.contracts, lambda c: is_active(c, now)),
            "pendingContractsCount": count_where(berth.contracts, is_pending),
            "totalContractsCount": len(berth.contracts),
            "activeBookingsCount": count_where(berth.bookings, lambda b: is_active(b, now)),
            "confirmedBookingsCount": count_where(
                berth.bookings, lambda b: is_confirmed_booking(b, now)
            ),
            "totalBookingsCount": len(berth.bookings),
            "pendingWorkOrdersCount": count_where(berth.work_orders, is_pending),
            "inProgressWorkOrdersCount": count_where(berth.work_orders, is_in_progress),
            "totalWorkOrdersCount": len(berth.work_orders),
            "isOccupied": has_active_contract or has_active_booking,
            "hasActiveContract": has_active_contract,
            "hasActiveBooking": has_active_booking,
            "hasPendingWorkOrders": any_where(berth.work_orders, is_pending),
            "monthlyRevenue": total_monthly_obligations(berth.contracts, now),
            "utilizationRate": 0.0 if berth.is_available else 100.0,
            "healthScore": work_order_health(berth.work_orders, policy),
            "needsAttention": needs_attention(
                open_work_orders=count_where(berth.work_orders, is_open_work_order),
            ),
        }
    )
    return summary


# =============================================================================
# Marina group
# =============================================================================


def build_marina_group_summary(
    group: MarinaGroup,
    now: datetime,
    policy: Optional[HealthPolicy] = None,
) -> dict[str, Any]:
    """
    Roll child marina counts up to the group.

    One level of fan-out: each child's relation counts are summed, never
    recomputed from raw records. A group without marinas is not fully
    operational.
    """
    marinas = group.marinas
    total_berths = sum(m.counts.berths for m in marinas)
    pending = sum(m.counts.pending_work_orders for m in marinas)
    in_progress = sum(m.counts.in_progress_work_orders for m in marinas)

    summary = _dump(group)
    summary.update(
        {
            "activeMarinas": count_where(marinas, lambda m: m.is_active),
            "onlineMarinas": count_where(marinas, lambda m: m.is_online),
            "maintenanceMarinas": count_where(marinas, lambda m: m.is_active and not m.is_online),
            "totalMarinas": len(marinas),
            "totalBerths": total_berths,
            "totalBoats": sum(m.counts.boats for m in marinas),
            "totalCustomers": sum(m.counts.owners for m in marinas),
            "totalUsers": sum(m.counts.users for m in marinas),
            "activeContracts": sum(m.counts.contracts for m in marinas),
            "activeBookings": sum(m.counts.bookings for m in marinas),
            "pendingWorkOrders": sum(m.counts.work_orders for m in marinas),
            "outstandingInvoices": sum(m.counts.invoices for m in marinas),
            "recentPayments": sum(m.counts.payments for m in marinas),
            "healthScore": health_score(pending, in_progress, policy),
            "isFullyOperational": all_where(marinas, lambda m: m.is_active and m.is_online),
            "needsAttention": any_where(
                marinas,
                lambda m: needs_attention(
                    is_active=m.is_active,
                    is_online=m.is_online,
                    open_work_orders=m.counts.work_orders,
                ),
            ),
            "totalMonthlyRevenue": sum_where(marinas, lambda m: m.monthly_revenue),
            "averageMarinaSize": total_berths / len(marinas) if marinas else 0.0,
        }
    )

    logger.debug("marina_group_summary_built", group_id=group.id, marinas=len(marinas))
    return summary


# =============================================================================
# Contract, booking, invoice
# =============================================================================


def build_contract_summary(
    contract: Contract,
    now: datetime,
    policy: Optional[HealthPolicy] = None,
) -> dict[str, Any]:
    policy = policy or HealthPolicy()
    status = status_of(contract)
    expired = status == ContractStatus.EXPIRED.value or is_contract_expired(contract, now)
    remaining = days_until(contract.end_date, now)
    active = is_active(contract, now)
    overdue_count = count_where(contract.invoices, lambda i: is_overdue(i, now))
    outstanding_count = count_where(contract.invoices, is_outstanding)

    summary = _dump(contract)
    summary.update(
        {
            "isActive": active,
            "isPending": status == ContractStatus.PENDING.value,
            "isExpired": expired,
            "isExpiringSoon": active
            and remaining is not None
            and 0 <= remaining <= policy.expiry_warning_days,
            "daysRemaining": days_remaining(contract.end_date, now),
            "durationDays": days_between(contract.start_date, contract.end_date),
            "totalInvoicesCount": len(contract.invoices),
            "outstandingInvoicesCount": outstanding_count,
            "overdueInvoicesCount": overdue_count,
            "paidInvoicesCount": count_where(contract.invoices, is_paid),
            "totalInvoicedAmount": sum_where(contract.invoices, invoice_total),
            "totalOutstandingAmount": total_outstanding_amount(contract.invoices),
            "totalPaidAmount": sum_where(contract.invoices, invoice_total, is_paid),
            "hasOutstandingInvoices": outstanding_count > 0,
            "hasOverdueInvoices": overdue_count > 0,
            "needsAttention": overdue_count > 0 or (active and expired),
        }
    )
    return summary


def build_booking_summary(booking: Booking, now: datetime) -> dict[str, Any]:
    """Booking with its time-derived status and day counters."""
    calculated = calculated_booking_status(booking, now)
    stored = status_of(booking)
    until_start = days_until(booking.start_date, now)

    summary = _dump(booking)
    summary.update(
        {
            "calculatedStatus": calculated,
            "isOverdue": stored == BookingStatus.ACTIVE.value and has_ended(booking, now),
            "daysUntilStart": until_start if until_start is not None else 0,
            "daysUntilEnd": days_remaining(booking.end_date, now),
            "duration": days_between(booking.start_date, booking.end_date),
            "isActive": calculated == BookingStatus.ACTIVE.value,
            "isUpcoming": calculated == BookingStatus.CONFIRMED.value
            and until_start is not None
            and until_start > 0,
            "isCompleted": calculated == BookingStatus.COMPLETED.value,
            "isPast": has_ended(booking, now),
        }
    )
    return summary


def build_invoice_summary(invoice: Invoice, now: datetime) -> dict[str, Any]:
    summary = _dump(invoice)
    summary.update(
        {
            "isOutstanding": is_outstanding(invoice),
            "isOverdue": is_overdue(invoice, now),
            "daysOverdue": days_overdue(invoice, now),
            "daysUntilDue": days_remaining(invoice.due_date, now) if is_outstanding(invoice) else 0,
        }
    )
    return summary
