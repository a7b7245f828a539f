"""Boat router."""

from fastapi import APIRouter, Depends

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.routers.deps import envelope, get_active_storage, not_found
from marinaops.storage.base import StorageBackend
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def list_boats(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
):
    boats = storage.list_boats(marina_id=user.marina_scope)
    logger.info("boats_list", user_id=user.id, count=len(boats))
    return envelope([b.model_dump(mode="json", by_alias=True) for b in boats], total=len(boats))


@router.get("/{boat_id}")
async def get_boat(
    boat_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
):
    boat = storage.read_boat(boat_id)
    if boat is None:
        raise not_found("Boat", boat_id)
    require_marina_access(user, boat.marina_id, "boat")

    return envelope(boat.model_dump(mode="json", by_alias=True))
