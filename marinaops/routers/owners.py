"""
Owner router - boat owners, also served as customers.

The listing returns the owners summary shape; the detail returns the
customer detail shape with ``...Count`` fields, health and attention.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.builders import build_owner_list_summary, build_owner_summary
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
async def list_owners(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    search: Optional[str] = Query(None, description="Match on name or email"),
    active_only: bool = Query(False, description="Only active owners"),
):
    """
    List owners with boat, contract, invoice and work-order metrics.
    """
    owners = storage.list_owners(marina_id=user.marina_scope, now=now)

    if search:
        needle = search.lower()
        owners = [
            o
            for o in owners
            if needle in f"{o.first_name} {o.last_name}".lower()
            or needle in (o.email or "").lower()
        ]
    if active_only:
        owners = [o for o in owners if o.is_active]

    summaries = [build_owner_list_summary(owner, now) for owner in owners]
    logger.info("owners_list", user_id=user.id, count=len(summaries), search=search)
    return envelope(summaries, total=len(summaries))


@router.get("/{owner_id}")
async def get_owner(
    owner_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
):
    """Owner detail with financial totals, health score and attention flag."""
    owner = storage.read_owner(owner_id, now=now)
    if owner is None:
        raise not_found("Owner", owner_id)
    require_marina_access(user, owner.marina_id, "owner")

    return envelope(build_owner_summary(owner, now, policy))
