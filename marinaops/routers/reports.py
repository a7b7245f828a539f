"""
Reports router - status breakdowns for the reporting dashboard.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.health import HealthPolicy
from marinaops.engine.metrics.reports import build_marina_overview_report
from marinaops.routers.deps import (
    envelope,
    get_active_storage,
    get_health_policy,
    get_now,
    not_found,
)
from marinaops.storage.base import StorageBackend
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/marina-overview")
async def get_marina_overview(
    marina_id: Optional[str] = Query(None, alias="marinaId"),
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
):
    """
    Overview report for one marina, or for every marina the user can see.

    Without ``marinaId`` admins and group admins get the whole portfolio and
    other roles get their own marina.

    Raises:
        HTTPException: 404 for an unknown marina, 403 if outside the user's scope
    """
    scope = user.marina_scope
    if marina_id is not None:
        if not storage.list_marinas(marina_id=marina_id, now=now):
            raise not_found("Marina", marina_id)
        require_marina_access(user, marina_id, "report")
        scope = marina_id

    report = build_marina_overview_report(
        now,
        contracts=storage.list_contracts(marina_id=scope),
        invoices=storage.list_invoices(marina_id=scope),
        bookings=storage.list_bookings(marina_id=scope),
        payments=storage.list_payments(marina_id=scope),
        owners=storage.list_owners(marina_id=scope, now=now),
        boats=storage.list_boats(marina_id=scope),
        berths=storage.list_berths(marina_id=scope, now=now),
        work_orders=storage.list_work_orders(marina_id=scope),
        policy=policy,
    )

    logger.info("marina_overview_report", user_id=user.id, marina_id=scope)
    return envelope(report, marinaId=scope)
