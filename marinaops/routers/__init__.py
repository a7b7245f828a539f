"""API routers for all endpoints."""

from marinaops.routers import (
    auth,
    berths,
    boats,
    bookings,
    contracts,
    data_source,
    invoices,
    marina_groups,
    marinas,
    owners,
    payments,
    reports,
    system,
    users,
    work_orders,
)

__all__ = [
    "auth",
    "marinas",
    "marina_groups",
    "owners",
    "berths",
    "boats",
    "contracts",
    "bookings",
    "invoices",
    "payments",
    "work_orders",
    "users",
    "data_source",
    "reports",
    "system",
]
