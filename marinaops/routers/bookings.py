"""
Booking router - short-term bookings with time-derived status.

Filtering by ``status`` matches the calculated status, so a confirmed
booking whose window has started is listed as active.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.builders import build_booking_summary
from marinaops.models.enums import BookingStatus
from marinaops.routers.deps import envelope, get_active_storage, get_now, not_found
from marinaops.storage.base import StorageBackend
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def list_bookings(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    status: Optional[BookingStatus] = Query(None, description="Calculated status filter"),
):
    summaries = [
        build_booking_summary(booking, now)
        for booking in storage.list_bookings(marina_id=user.marina_scope)
    ]
    if status is not None:
        summaries = [s for s in summaries if s["calculatedStatus"] == status.value]

    logger.info("bookings_list", user_id=user.id, count=len(summaries))
    return envelope(summaries, total=len(summaries))


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
):
    booking = storage.read_booking(booking_id)
    if booking is None:
        raise not_found("Booking", booking_id)
    require_marina_access(user, booking.marina_id, "booking")

    return envelope(build_booking_summary(booking, now))
