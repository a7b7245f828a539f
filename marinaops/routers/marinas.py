"""
Marina router - marina listing and detail summaries.
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.builders import build_marina_summary
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
async def list_marinas(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
):
    """
    List marinas visible to the session user with their summaries.

    Admins and group admins see every marina; other roles see their own.
    """
    marinas = storage.list_marinas(marina_id=user.marina_scope, now=now)
    summaries = [build_marina_summary(marina, now, policy) for marina in marinas]

    logger.info("marinas_list", user_id=user.id, count=len(summaries))
    return envelope(summaries, total=len(summaries))


@router.get("/{marina_id}")
async def get_marina(
    marina_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
):
    """
    Marina detail with utilization, financial and operational metrics.

    Raises:
        HTTPException: 404 if missing, 403 if outside the user's scope
    """
    marina = storage.read_marina(marina_id, now=now)
    if marina is None:
        raise not_found("Marina", marina_id)
    require_marina_access(user, marina.id, "marina")

    return envelope(build_marina_summary(marina, now, policy))
