"""
Work order router.

The listing reports the health score its open work orders imply, using the
same policy as the entity summaries.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.classifiers import is_open_work_order
from marinaops.engine.metrics.health import HealthPolicy, work_order_health
from marinaops.models.enums import WorkOrderPriority, WorkOrderStatus
from marinaops.routers.deps import envelope, get_active_storage, get_health_policy, not_found
from marinaops.storage.base import StorageBackend
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _work_order_json(work_order) -> dict:
    data = work_order.model_dump(mode="json", by_alias=True)
    data["isOpen"] = is_open_work_order(work_order)
    return data


@router.get("/")
async def list_work_orders(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    policy: HealthPolicy = Depends(get_health_policy),
    status: Optional[WorkOrderStatus] = Query(None),
    priority: Optional[WorkOrderPriority] = Query(None),
):
    work_orders = storage.list_work_orders(marina_id=user.marina_scope)
    if status is not None:
        work_orders = [w for w in work_orders if w.status == status]
    if priority is not None:
        work_orders = [w for w in work_orders if w.priority == priority]

    logger.info("work_orders_list", user_id=user.id, count=len(work_orders))
    return envelope(
        [_work_order_json(w) for w in work_orders],
        total=len(work_orders),
        healthScore=work_order_health(work_orders, policy),
    )


@router.get("/{work_order_id}")
async def get_work_order(
    work_order_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
):
    work_order = storage.read_work_order(work_order_id)
    if work_order is None:
        raise not_found("Work order", work_order_id)
    require_marina_access(user, work_order.marina_id, "work_order")

    return envelope(_work_order_json(work_order))
