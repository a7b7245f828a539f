"""
Aggregation functions shared by every summary builder.

Each function folds a relation collection through an optional classifier
(predicate) and reducer (value extractor). A ``None`` collection is treated
as empty and ratios are zero-guarded, so aggregates are always finite numbers.

Currency stays in floats for display summaries; sums go through
``math.fsum`` so totals do not depend on record order.
"""

import math
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from .classifiers import (
    field_value,
    is_active,
    is_completed_payment,
    is_outstanding,
)

Classifier = Callable[[Any], bool]
Reducer = Callable[[Any], Optional[float]]


def _items(collection: Optional[Iterable[Any]]) -> list:
    if collection is None:
        return []
    return list(collection)


def aggregate(
    collection: Optional[Iterable[Any]],
    classifier: Optional[Classifier] = None,
    reducer: Optional[Reducer] = None,
) -> float:
    """
    Filter ``collection`` by ``classifier`` and fold it.

    Args:
        collection: Records to aggregate (None means empty)
        classifier: Predicate selecting records; all records when omitted
        reducer: Value extractor; when omitted the result is a count

    Returns:
        Count of selected records, or the sum of their reduced values with
        None values counted as zero.
    """
    selected = [item for item in _items(collection) if classifier is None or classifier(item)]
    if reducer is None:
        return len(selected)
    return math.fsum(reducer(item) or 0.0 for item in selected)


def count_where(collection: Optional[Iterable[Any]], classifier: Optional[Classifier] = None) -> int:
    return int(aggregate(collection, classifier))


def sum_where(
    collection: Optional[Iterable[Any]],
    reducer: Reducer,
    classifier: Optional[Classifier] = None,
) -> float:
    return float(aggregate(collection, classifier, reducer))


def any_where(collection: Optional[Iterable[Any]], classifier: Classifier) -> bool:
    return any(classifier(item) for item in _items(collection))


def all_where(collection: Optional[Iterable[Any]], classifier: Classifier) -> bool:
    """Like ``all`` but False for an empty collection."""
    items = _items(collection)
    return bool(items) and all(classifier(item) for item in items)


def percentage(part: float, whole: float) -> float:
    """``part / whole * 100`` with ``0/0 -> 0``."""
    if not whole:
        return 0.0
    return part / whole * 100


def mean_where(
    collection: Optional[Iterable[Any]],
    reducer: Reducer,
    classifier: Optional[Classifier] = None,
) -> float:
    """Mean of reduced values over selected records; 0 when none are selected."""
    count = count_where(collection, classifier)
    if count == 0:
        return 0.0
    return sum_where(collection, reducer, classifier) / count


def field_reducer(name: str) -> Reducer:
    """Reducer reading a numeric field, treating null as zero."""

    def reduce(record: Any) -> float:
        value = field_value(record, name)
        return float(value) if value is not None else 0.0

    return reduce


invoice_total = field_reducer("total")
payment_amount = field_reducer("amount")
monthly_rate = field_reducer("monthly_rate")


# =============================================================================
# Named aggregates
# =============================================================================


def total_outstanding_amount(invoices: Optional[Iterable[Any]]) -> float:
    """Sum of totals for pending or overdue invoices."""
    return sum_where(invoices, invoice_total, is_outstanding)


def total_paid_amount(payments: Optional[Iterable[Any]]) -> float:
    """Sum of amounts for completed payments."""
    return sum_where(payments, payment_amount, is_completed_payment)


def total_monthly_obligations(contracts: Optional[Iterable[Any]], now: datetime) -> float:
    """Sum of monthly rates over active contracts (null rate counts as zero)."""
    return sum_where(contracts, monthly_rate, lambda c: is_active(c, now))


def average_monthly_rate(contracts: Optional[Iterable[Any]], now: datetime) -> float:
    """Mean monthly rate of active contracts, zero when there are none."""
    return mean_where(contracts, monthly_rate, lambda c: is_active(c, now))


def berth_utilization_rate(occupied_berths: int, total_berths: int) -> float:
    return percentage(occupied_berths, total_berths)


def payment_rate(payments_count: int, invoices_count: int) -> float:
    return percentage(payments_count, invoices_count)
