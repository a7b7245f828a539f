"""Payment router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.aggregation import total_paid_amount
from marinaops.models.enums import PaymentStatus
from marinaops.routers.deps import envelope, get_active_storage, not_found
from marinaops.storage.base import StorageBackend
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def list_payments(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    status: Optional[PaymentStatus] = Query(None),
):
    payments = storage.list_payments(marina_id=user.marina_scope)
    if status is not None:
        payments = [p for p in payments if p.status == status]

    logger.info("payments_list", user_id=user.id, count=len(payments))
    return envelope(
        [p.model_dump(mode="json", by_alias=True) for p in payments],
        total=len(payments),
        totalPaidAmount=total_paid_amount(payments),
    )


@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
):
    payment = storage.read_payment(payment_id)
    if payment is None:
        raise not_found("Payment", payment_id)
    require_marina_access(user, payment.marina_id, "payment")

    return envelope(payment.model_dump(mode="json", by_alias=True))
