"""
Berth router - berth occupancy, revenue and health.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.builders import build_berth_summary
from marinaops.engine.metrics.health import HealthPolicy
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


@router.get("/")
async def list_berths(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
    available: Optional[bool] = Query(None, description="Filter on availability"),
):
    berths = storage.list_berths(marina_id=user.marina_scope, now=now)
    if available is not None:
        berths = [b for b in berths if b.is_available == available]

    summaries = [build_berth_summary(berth, now, policy) for berth in berths]
    logger.info("berths_list", user_id=user.id, count=len(summaries))
    return envelope(summaries, total=len(summaries))


@router.get("/{berth_id}")
async def get_berth(
    berth_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
):
    berth = storage.read_berth(berth_id, now=now)
    if berth is None:
        raise not_found("Berth", berth_id)
    require_marina_access(user, berth.marina_id, "berth")

    return envelope(build_berth_summary(berth, now, policy))
