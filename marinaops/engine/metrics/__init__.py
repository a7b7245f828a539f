"""
Entity metrics aggregator.

Layers, leaves first:
    - classifiers: lifecycle predicates evaluated at an injected ``now``
    - aggregation: count/sum/rate folds over relation collections
    - health: health score and attention flags
    - builders: per-entity summaries combining the three
"""

from .aggregation import (
    aggregate,
    all_where,
    any_where,
    average_monthly_rate,
    berth_utilization_rate,
    count_where,
    mean_where,
    payment_rate,
    percentage,
    sum_where,
    total_monthly_obligations,
    total_outstanding_amount,
    total_paid_amount,
)
from .builders import (
    build_berth_summary,
    build_booking_summary,
    build_contract_summary,
    build_invoice_summary,
    build_marina_group_summary,
    build_marina_summary,
    build_owner_list_summary,
    build_owner_summary,
)
from .classifiers import (
    calculated_booking_status,
    days_between,
    days_overdue,
    days_remaining,
    days_until,
    is_active,
    is_outstanding,
    is_overdue,
    is_pending,
    to_utc,
)
from .health import HealthPolicy, health_score, needs_attention, work_order_health
from .reports import build_marina_overview_report

__all__ = [
    "aggregate",
    "all_where",
    "any_where",
    "average_monthly_rate",
    "berth_utilization_rate",
    "count_where",
    "mean_where",
    "payment_rate",
    "percentage",
    "sum_where",
    "total_monthly_obligations",
    "total_outstanding_amount",
    "total_paid_amount",
    "build_berth_summary",
    "build_booking_summary",
    "build_contract_summary",
    "build_invoice_summary",
    "build_marina_group_summary",
    "build_marina_summary",
    "build_marina_overview_report",
    "build_owner_list_summary",
    "build_owner_summary",
    "calculated_booking_status",
    "days_between",
    "days_overdue",
    "days_remaining",
    "days_until",
    "is_active",
    "is_outstanding",
    "is_overdue",
    "is_pending",
    "to_utc",
    "HealthPolicy",
    "health_score",
    "needs_attention",
    "work_order_health",
]
