"""
Marina group router - roll-ups across a group's marinas.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status

from marinaops.auth.dependencies import SessionUser, get_current_user
from marinaops.engine.metrics.builders import build_marina_group_summary
from marinaops.engine.metrics.health import HealthPolicy
from marinaops.models.entities import MarinaGroup
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


def _visible(user: SessionUser, group: MarinaGroup) -> bool:
    if user.sees_all_marinas:
        return True
    return any(marina.id == user.marina_id for marina in group.marinas)


@router.get("/")
async def list_marina_groups(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
):
    """List marina groups containing a marina visible to the user."""
    groups = [g for g in storage.list_marina_groups(now=now) if _visible(user, g)]
    summaries = [build_marina_group_summary(group, now, policy) for group in groups]

    logger.info("marina_groups_list", user_id=user.id, count=len(summaries))
    return envelope(summaries, total=len(summaries))


@router.get("/{group_id}")
async def get_marina_group(
    group_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
):
    """Marina group detail with summed per-marina counts."""
    group = storage.read_marina_group(group_id, now=now)
    if group is None:
        raise not_found("Marina group", group_id)
    if not _visible(user, group):
        logger.warning("access_denied", user_id=user.id, resource="marina_group", group_id=group_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    return envelope(build_marina_group_summary(group, now, policy))
