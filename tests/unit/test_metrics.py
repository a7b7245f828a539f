"""
Unit tests for the entity metrics aggregator.

Covers status classifiers, aggregation functions, health scoring and every
summary builder. All tests use a fixed evaluation instant.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from marinaops.engine.metrics import (
    HealthPolicy,
    aggregate,
    all_where,
    any_where,
    average_monthly_rate,
    berth_utilization_rate,
    build_berth_summary,
    build_booking_summary,
    build_contract_summary,
    build_invoice_summary,
    build_marina_group_summary,
    build_marina_overview_report,
    build_marina_summary,
    build_owner_list_summary,
    build_owner_summary,
    calculated_booking_status,
    count_where,
    days_between,
    days_overdue,
    days_remaining,
    days_until,
    health_score,
    is_active,
    is_outstanding,
    is_overdue,
    needs_attention,
    payment_rate,
    percentage,
    sum_where,
    to_utc,
    total_monthly_obligations,
    total_outstanding_amount,
    total_paid_amount,
    work_order_health,
)
from marinaops.models.enums import (
    BookingStatus,
    ContractStatus,
    InvoiceStatus,
    PaymentStatus,
    UserRole,
    WorkOrderStatus,
)
from tests.conftest import (
    NOW,
    make_berth,
    make_boat,
    make_booking,
    make_contract,
    make_invoice,
    make_marina,
    make_marina_group,
    make_marina_overview,
    make_owner,
    make_payment,
    make_user,
    make_work_order,
)


# =============================================================================
# Classifiers
# =============================================================================


class TestIsOverdue:
    def test_marked_overdue_is_overdue_regardless_of_due_date(self):
        invoice = make_invoice(status=InvoiceStatus.OVERDUE, due_offset_days=30)
        assert is_overdue(invoice, NOW) is True

    def test_pending_past_due_is_overdue(self):
        assert is_overdue(make_invoice(due_offset_days=-1), NOW) is True

    def test_pending_due_exactly_now_is_not_overdue(self):
        assert is_overdue(make_invoice(due_offset_days=0), NOW) is False

    def test_pending_without_due_date_is_not_overdue(self):
        assert is_overdue(make_invoice(due_offset_days=None), NOW) is False

    def test_paid_past_due_is_not_overdue(self):
        invoice = make_invoice(status=InvoiceStatus.PAID, due_offset_days=-10)
        assert is_overdue(invoice, NOW) is False

    def test_accepts_camel_case_mapping(self):
        invoice = {"status": "PENDING", "dueDate": "2024-06-01T00:00:00Z"}
        assert is_overdue(invoice, NOW) is True


class TestCalculatedBookingStatus:
    def test_confirmed_within_window_is_active(self):
        booking = make_booking(start_offset_days=-1, end_offset_days=1)
        assert calculated_booking_status(booking, NOW) == BookingStatus.ACTIVE.value

    def test_confirmed_before_window_stays_confirmed(self):
        booking = make_booking(start_offset_days=2, end_offset_days=4)
        assert calculated_booking_status(booking, NOW) == BookingStatus.CONFIRMED.value

    def test_window_bounds_are_inclusive(self):
        booking = make_booking(start_offset_days=0, end_offset_days=0)
        assert calculated_booking_status(booking, NOW) == BookingStatus.ACTIVE.value

    def test_active_past_end_is_completed(self):
        booking = make_booking(status=BookingStatus.ACTIVE, start_offset_days=-5, end_offset_days=-1)
        assert calculated_booking_status(booking, NOW) == BookingStatus.COMPLETED.value

    def test_cancelled_keeps_stored_status(self):
        booking = make_booking(status=BookingStatus.CANCELLED, start_offset_days=-1, end_offset_days=1)
        assert calculated_booking_status(booking, NOW) == BookingStatus.CANCELLED.value

    def test_missing_dates_keep_stored_status(self):
        booking = make_booking(start_date=None, end_date=None)
        assert calculated_booking_status(booking, NOW) == BookingStatus.CONFIRMED.value


class TestIsActive:
    def test_active_contract_within_term(self):
        assert is_active(make_contract(), NOW) is True

    def test_active_contract_past_end_date_is_still_active(self):
        assert is_active(make_contract(end_offset_days=-1), NOW) is True

    def test_lapsed_active_contract_keeps_obligations(self):
        contract = make_contract(monthly_rate=500.0, end_offset_days=-5)
        assert total_monthly_obligations([contract], NOW) == 500.0
        assert average_monthly_rate([contract], NOW) == 500.0

    def test_pending_contract_is_not_active(self):
        assert is_active(make_contract(status=ContractStatus.PENDING), NOW) is False

    def test_flagged_entity_uses_is_active(self):
        assert is_active(make_boat(is_active=False), NOW) is False
        assert is_active(make_boat(is_active=True), NOW) is True


class TestDates:
    def test_naive_and_aware_datetimes_compare_as_utc(self):
        aware = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert to_utc(NOW) == aware

    def test_plain_date_is_midnight_utc(self):
        assert to_utc(date(2024, 6, 15)) == datetime(2024, 6, 15, tzinfo=timezone.utc)

    def test_unparseable_string_is_none(self):
        assert to_utc("not a date") is None

    def test_days_until_rounds_up(self):
        assert days_until(NOW + timedelta(hours=1), NOW) == 1

    def test_days_until_negative_for_past(self):
        assert days_until(NOW - timedelta(days=3), NOW) == -3

    def test_days_remaining_clamps_at_zero(self):
        assert days_remaining(NOW - timedelta(days=3), NOW) == 0

    def test_days_overdue_for_overdue_invoice(self):
        assert days_overdue(make_invoice(due_offset_days=-4), NOW) == 4

    def test_days_overdue_zero_when_not_overdue(self):
        assert days_overdue(make_invoice(due_offset_days=4), NOW) == 0

    def test_days_between_missing_is_zero(self):
        assert days_between(None, NOW) == 0


# =============================================================================
# Aggregation
# =============================================================================


class TestAggregation:
    def test_aggregate_none_collection_is_zero(self):
        assert aggregate(None) == 0

    def test_aggregate_counts_without_reducer(self):
        invoices = [make_invoice(), make_invoice(status=InvoiceStatus.PAID)]
        assert aggregate(invoices, is_outstanding) == 1

    def test_sum_where_treats_null_as_zero(self):
        contracts = [make_contract(monthly_rate=None), make_contract(monthly_rate=250.0)]
        assert total_monthly_obligations(contracts, NOW) == 250.0

    def test_all_where_empty_is_false(self):
        assert all_where([], lambda item: True) is False

    def test_any_where_empty_is_false(self):
        assert any_where(None, lambda item: True) is False

    def test_percentage_zero_denominator(self):
        assert percentage(5, 0) == 0.0

    def test_berth_utilization_with_no_berths_is_zero(self):
        assert berth_utilization_rate(0, 0) == 0.0

    def test_payment_rate_with_no_invoices_is_zero(self):
        assert payment_rate(3, 0) == 0.0

    def test_payment_rate(self):
        assert payment_rate(1, 4) == 25.0

    def test_total_outstanding_includes_pending_and_overdue(self):
        invoices = [
            make_invoice(total=100.0),
            make_invoice(status=InvoiceStatus.OVERDUE, total=200.0),
            make_invoice(status=InvoiceStatus.PAID, total=400.0),
        ]
        assert total_outstanding_amount(invoices) == 300.0

    def test_total_paid_counts_completed_only(self):
        payments = [make_payment(amount=100.0), make_payment(status=PaymentStatus.FAILED, amount=50.0)]
        assert total_paid_amount(payments) == 100.0

    def test_average_monthly_rate_over_active_contracts(self):
        contracts = [
            make_contract(monthly_rate=400.0),
            make_contract(monthly_rate=600.0),
            make_contract(status=ContractStatus.PENDING, monthly_rate=10_000.0),
        ]
        assert average_monthly_rate(contracts, NOW) == 500.0

    def test_average_monthly_rate_without_active_contracts(self):
        assert average_monthly_rate([make_contract(status=ContractStatus.EXPIRED)], NOW) == 0.0

    def test_fsum_is_order_independent(self):
        amounts = [0.1] * 10 + [1e6]
        payments = [make_payment(amount=a) for a in amounts]
        assert sum_where(payments, lambda p: p.amount) == sum_where(
            list(reversed(payments)), lambda p: p.amount
        )


# =============================================================================
# Health scoring
# =============================================================================


class TestHealth:
    def test_no_open_work_is_full_score(self):
        assert health_score(0, 0) == 100.0

    def test_penalties(self):
        assert health_score(2, 1) == 75.0

    def test_floor_at_zero(self):
        assert health_score(20, 5) == 0.0

    def test_custom_policy(self):
        policy = HealthPolicy(base_score=50, pending_penalty=1, in_progress_penalty=2)
        assert health_score(3, 1, policy) == 45.0

    def test_work_order_health_ignores_closed_orders(self):
        work_orders = [
            make_work_order(),
            make_work_order(status=WorkOrderStatus.COMPLETED),
            make_work_order(status=WorkOrderStatus.CANCELLED),
        ]
        assert work_order_health(work_orders) == 90.0

    def test_needs_attention_defaults_to_false(self):
        assert needs_attention() is False

    @pytest.mark.parametrize(
        "signals",
        [
            {"is_active": False},
            {"is_online": False},
            {"open_work_orders": 1},
            {"outstanding_invoices": 2},
        ],
    )
    def test_needs_attention_any_signal(self, signals):
        assert needs_attention(**signals) is True


# =============================================================================
# Builders
# =============================================================================


class TestOwnerSummary:
    def test_financial_totals(self):
        owner = make_owner(
            contracts=[make_contract(monthly_rate=500.0)],
            invoices=[make_invoice(total=1250.0)],
            payments=[make_payment(amount=500.0)],
        )
        summary = build_owner_summary(owner, NOW)

        assert summary["totalOutstandingAmount"] == 1250.0
        assert summary["totalPaidAmount"] == 500.0
        assert summary["totalMonthlyObligations"] == 500.0
        assert summary["isActiveCustomer"] is True
        assert summary["hasOutstandingInvoices"] is True
        assert summary["needsAttention"] is True

    def test_empty_owner_is_total(self):
        summary = build_owner_summary(make_owner(), NOW)

        assert summary["totalOutstandingAmount"] == 0.0
        assert summary["totalPaidAmount"] == 0.0
        assert summary["totalMonthlyObligations"] == 0.0
        assert summary["totalContractsCount"] == 0
        assert summary["paymentRate"] == 0.0
        assert summary["healthScore"] == 100.0
        assert summary["isActiveCustomer"] is False
        assert summary["needsAttention"] is False

    def test_lapsed_active_contract_counts_toward_owner_totals(self):
        owner = make_owner(contracts=[make_contract(monthly_rate=500.0, end_offset_days=-5)])
        summary = build_owner_summary(owner, NOW)

        assert summary["totalMonthlyObligations"] == 500.0
        assert summary["activeContractsCount"] == 1
        assert summary["isActiveCustomer"] is True

    def test_inactive_owner_with_active_contract_is_not_active_customer(self):
        owner = make_owner(is_active=False, contracts=[make_contract()])
        assert build_owner_summary(owner, NOW)["isActiveCustomer"] is False

    def test_overdue_detection_uses_due_date(self):
        owner = make_owner(invoices=[make_invoice(due_offset_days=-2)])
        summary = build_owner_summary(owner, NOW)
        assert summary["hasOverdueInvoices"] is True
        assert summary["overdueInvoicesCount"] == 1

    def test_keys_are_camel_case(self):
        summary = build_owner_summary(make_owner(), NOW)
        assert "firstName" in summary
        assert "workOrders" in summary
        assert "first_name" not in summary
        assert "work_orders" not in summary

    def test_payment_rate_counts_completed_payments(self):
        owner = make_owner(
            invoices=[make_invoice(), make_invoice()],
            payments=[make_payment(), make_payment(status=PaymentStatus.PENDING)],
        )
        assert build_owner_summary(owner, NOW)["paymentRate"] == 50.0

    def test_list_shape_has_unsuffixed_totals(self):
        owner = make_owner(boats=[make_boat(), make_boat(is_active=False)])
        summary = build_owner_list_summary(owner, NOW)
        assert summary["totalBoats"] == 2
        assert summary["activeBoats"] == 1
        assert summary["fullName"] == "Emma Brown"
        assert "totalBoatsCount" not in summary


class TestMarinaSummary:
    def test_empty_marina(self):
        summary = build_marina_summary(make_marina(), NOW)

        assert summary["totalBerths"] == 0
        assert summary["berthUtilizationRate"] == 0.0
        assert summary["paymentRate"] == 0.0
        assert summary["averageMonthlyRate"] == 0.0
        assert summary["healthScore"] == 100.0
        assert summary["isFullyOperational"] is True
        assert summary["needsAttention"] is False

    def test_utilization_and_roles(self):
        marina = make_marina(
            berths=[make_berth(is_available=False), make_berth(), make_berth(), make_berth()],
            users=[make_user(UserRole.STAFF), make_user(UserRole.ADMIN), make_user(UserRole.STAFF)],
        )
        summary = build_marina_summary(marina, NOW)

        assert summary["occupiedBerths"] == 1
        assert summary["availableBerths"] == 3
        assert summary["berthUtilizationRate"] == 25.0
        assert summary["staffCount"] == 2
        assert summary["adminCount"] == 1

    def test_offline_marina_needs_attention(self):
        summary = build_marina_summary(make_marina(is_online=False), NOW)
        assert summary["isFullyOperational"] is False
        assert summary["needsAttention"] is True

    def test_revenue_from_active_contracts(self):
        marina = make_marina(
            contracts=[
                make_contract(monthly_rate=300.0),
                make_contract(monthly_rate=700.0),
                make_contract(status=ContractStatus.PENDING, monthly_rate=900.0),
            ],
        )
        summary = build_marina_summary(marina, NOW)
        assert summary["monthlyRevenue"] == 1000.0
        assert summary["averageMonthlyRate"] == 500.0
        assert summary["activeContracts"] == 2
        assert summary["pendingContracts"] == 1

    def test_bookings_use_calculated_status(self):
        marina = make_marina(
            bookings=[
                make_booking(start_offset_days=-1, end_offset_days=1),
                make_booking(start_offset_days=3, end_offset_days=5),
            ],
        )
        summary = build_marina_summary(marina, NOW)
        assert summary["activeBookings"] == 1
        assert summary["confirmedBookings"] == 1


class TestBerthSummary:
    def test_health_with_open_work_orders(self):
        berth = make_berth(
            work_orders=[
                make_work_order(),
                make_work_order(),
                make_work_order(status=WorkOrderStatus.IN_PROGRESS),
            ],
        )
        summary = build_berth_summary(berth, NOW)
        assert summary["healthScore"] == 75.0
        assert summary["hasPendingWorkOrders"] is True
        assert summary["needsAttention"] is True

    def test_utilization_is_binary(self):
        assert build_berth_summary(make_berth(is_available=False), NOW)["utilizationRate"] == 100.0
        assert build_berth_summary(make_berth(is_available=True), NOW)["utilizationRate"] == 0.0

    def test_occupied_by_active_contract(self):
        berth = make_berth(contracts=[make_contract(monthly_rate=650.0)])
        summary = build_berth_summary(berth, NOW)
        assert summary["isOccupied"] is True
        assert summary["hasActiveContract"] is True
        assert summary["hasActiveBooking"] is False
        assert summary["monthlyRevenue"] == 650.0

    def test_lapsed_active_contract_still_earns_revenue(self):
        berth = make_berth(contracts=[make_contract(monthly_rate=500.0, end_offset_days=-5)])
        summary = build_berth_summary(berth, NOW)
        assert summary["hasActiveContract"] is True
        assert summary["monthlyRevenue"] == 500.0


class TestMarinaGroupSummary:
    def test_group_without_marinas(self):
        summary = build_marina_group_summary(make_marina_group(), NOW)

        assert summary["totalMarinas"] == 0
        assert summary["isFullyOperational"] is False
        assert summary["needsAttention"] is False
        assert summary["averageMarinaSize"] == 0.0
        assert summary["healthScore"] == 100.0

    def test_rolls_up_child_counts(self):
        group = make_marina_group(
            marinas=[
                make_marina_overview(berths=10, pending_work_orders=1, monthly_revenue=1000.0, boats=4),
                make_marina_overview(berths=30, in_progress_work_orders=2, monthly_revenue=500.0, boats=6),
            ]
        )
        summary = build_marina_group_summary(group, NOW)

        assert summary["totalBerths"] == 40
        assert summary["totalBoats"] == 10
        assert summary["averageMarinaSize"] == 20.0
        assert summary["totalMonthlyRevenue"] == 1500.0
        assert summary["pendingWorkOrders"] == 3
        assert summary["healthScore"] == 80.0
        assert summary["isFullyOperational"] is True
        assert summary["needsAttention"] is True

    def test_offline_child_counts_as_maintenance(self):
        group = make_marina_group(
            marinas=[make_marina_overview(), make_marina_overview(is_online=False)]
        )
        summary = build_marina_group_summary(group, NOW)
        assert summary["onlineMarinas"] == 1
        assert summary["maintenanceMarinas"] == 1
        assert summary["isFullyOperational"] is False

    def test_counts_serialize_under_underscore_key(self):
        group = make_marina_group(marinas=[make_marina_overview(berths=5)])
        summary = build_marina_group_summary(group, NOW)
        assert summary["marinas"][0]["_count"]["berths"] == 5


class TestContractSummary:
    def test_expiring_soon_within_window(self):
        summary = build_contract_summary(make_contract(end_offset_days=20), NOW)
        assert summary["isActive"] is True
        assert summary["isExpiringSoon"] is True
        assert summary["daysRemaining"] == 20

    def test_not_expiring_outside_window(self):
        assert build_contract_summary(make_contract(end_offset_days=90), NOW)["isExpiringSoon"] is False

    def test_active_contract_past_end_is_expired(self):
        summary = build_contract_summary(make_contract(end_offset_days=-1), NOW)
        assert summary["isActive"] is True
        assert summary["isExpired"] is True
        assert summary["isExpiringSoon"] is False
        assert summary["daysRemaining"] == 0
        assert summary["needsAttention"] is True

    def test_expired_status_contract_is_not_active(self):
        contract = make_contract(status=ContractStatus.EXPIRED, end_offset_days=-10)
        summary = build_contract_summary(contract, NOW)
        assert summary["isActive"] is False
        assert summary["isExpired"] is True
        assert summary["needsAttention"] is False

    def test_invoice_rollup(self):
        contract = make_contract(
            invoices=[
                make_invoice(total=100.0, due_offset_days=-5),
                make_invoice(status=InvoiceStatus.PAID, total=300.0),
            ]
        )
        summary = build_contract_summary(contract, NOW)
        assert summary["totalInvoicedAmount"] == 400.0
        assert summary["totalOutstandingAmount"] == 100.0
        assert summary["totalPaidAmount"] == 300.0
        assert summary["overdueInvoicesCount"] == 1
        assert summary["needsAttention"] is True

    def test_custom_expiry_window(self):
        policy = HealthPolicy(expiry_warning_days=10)
        summary = build_contract_summary(make_contract(end_offset_days=20), NOW, policy)
        assert summary["isExpiringSoon"] is False


class TestBookingAndInvoiceSummary:
    def test_booking_in_progress(self):
        summary = build_booking_summary(make_booking(start_offset_days=-1, end_offset_days=2), NOW)
        assert summary["calculatedStatus"] == "active"
        assert summary["isActive"] is True
        assert summary["isUpcoming"] is False
        assert summary["daysUntilEnd"] == 2

    def test_upcoming_booking(self):
        summary = build_booking_summary(make_booking(start_offset_days=3, end_offset_days=5), NOW)
        assert summary["isUpcoming"] is True
        assert summary["daysUntilStart"] == 3
        assert summary["duration"] == 2

    def test_stored_active_booking_past_end_is_overdue(self):
        booking = make_booking(status=BookingStatus.ACTIVE, start_offset_days=-4, end_offset_days=-1)
        summary = build_booking_summary(booking, NOW)
        assert summary["isOverdue"] is True
        assert summary["isCompleted"] is True
        assert summary["isPast"] is True
        assert summary["status"] == "active"

    def test_invoice_summary(self):
        summary = build_invoice_summary(make_invoice(due_offset_days=-3), NOW)
        assert summary["isOutstanding"] is True
        assert summary["isOverdue"] is True
        assert summary["daysOverdue"] == 3
        assert summary["daysUntilDue"] == 0

    def test_paid_invoice_has_no_days_until_due(self):
        summary = build_invoice_summary(make_invoice(status=InvoiceStatus.PAID, due_offset_days=5), NOW)
        assert summary["daysUntilDue"] == 0
        assert summary["isOutstanding"] is False


def test_builders_are_deterministic():
    owner = make_owner(
        contracts=[make_contract()],
        invoices=[make_invoice()],
        payments=[make_payment()],
        work_orders=[make_work_order()],
        bookings=[make_booking(start_offset_days=-1, end_offset_days=1)],
    )
    assert build_owner_summary(owner, NOW) == build_owner_summary(owner, NOW)


def test_null_relations_coerced_to_empty():
    owner = make_owner(contracts=None, invoices=None)
    summary = build_owner_summary(owner, NOW)
    assert summary["contracts"] == []
    assert summary["totalContractsCount"] == 0


class TestMarinaOverviewReport:
    def test_status_breakdown(self):
        owner = make_owner(id="owner-a")
        report = build_marina_overview_report(
            NOW,
            contracts=[
                make_contract(owner_id="owner-a"),
                make_contract(owner_id="owner-a", end_offset_days=-5),
                make_contract(status=ContractStatus.PENDING),
                make_contract(status=ContractStatus.EXPIRED, end_offset_days=-30),
            ],
            invoices=[
                make_invoice(status=InvoiceStatus.PAID, total=300.0),
                make_invoice(total=200.0, due_offset_days=10),
                make_invoice(total=100.0, due_offset_days=-2),
                make_invoice(status=InvoiceStatus.OVERDUE, total=50.0),
            ],
            payments=[
                make_payment(amount=300.0),
                make_payment(status=PaymentStatus.FAILED, amount=80.0),
            ],
            owners=[owner, make_owner(is_active=False)],
            work_orders=[
                make_work_order(),
                make_work_order(status=WorkOrderStatus.IN_PROGRESS),
                make_work_order(status=WorkOrderStatus.COMPLETED),
            ],
        )

        assert report["contracts"] == {
            "total": 4,
            "active": 2,
            "pending": 1,
            "expired": 2,
            "expiredButActive": 1,
        }
        assert report["invoices"] == {"total": 4, "paid": 1, "pending": 1, "overdue": 2}
        assert report["payments"]["completed"] == 1
        assert report["payments"]["failed"] == 1
        assert report["customers"] == {"total": 2, "active": 1, "withContracts": 1}
        assert report["maintenance"]["pending"] == 1
        assert report["maintenance"]["inProgress"] == 1
        assert report["maintenance"]["completed"] == 1
        assert report["financial"]["monthlyRevenue"] == 1000.0
        assert report["financial"]["outstandingAmount"] == 350.0
        assert report["financial"]["totalPaid"] == 300.0
        assert report["financial"]["paymentRate"] == 25.0
        assert report["healthScore"] == 85.0
        assert report["needsAttention"] is True

    def test_empty_report_is_total(self):
        report = build_marina_overview_report(NOW)

        assert report["contracts"]["total"] == 0
        assert report["berths"] == {"total": 0, "occupied": 0, "available": 0, "outOfService": 0}
        assert report["financial"]["paymentRate"] == 0.0
        assert report["healthScore"] == 100.0
        assert report["needsAttention"] is False
        assert report["generatedAt"] == NOW.isoformat()

    def test_bookings_use_calculated_status(self):
        report = build_marina_overview_report(
            NOW,
            bookings=[
                make_booking(start_offset_days=-1, end_offset_days=1),
                make_booking(),
                make_booking(status=BookingStatus.CANCELLED),
            ],
        )
        assert report["bookings"] == {
            "total": 3,
            "active": 1,
            "confirmed": 1,
            "pending": 0,
            "cancelled": 1,
        }
