"""User router. Password hashes are never serialized."""

from fastapi import APIRouter, Depends

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.routers.deps import envelope, get_active_storage, not_found
from marinaops.storage.base import StorageBackend
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _user_json(user) -> dict:
    data = user.model_dump(mode="json", by_alias=True)
    data["fullName"] = f"{user.first_name} {user.last_name}".strip()
    data["primaryRole"] = user.primary_role.value
    return data


@router.get("/")
async def list_users(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
):
    users = storage.list_users(marina_id=user.marina_scope)
    logger.info("users_list", user_id=user.id, count=len(users))
    return envelope([_user_json(u) for u in users], total=len(users))


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
):
    record = storage.read_user(user_id)
    if record is None:
        raise not_found("User", user_id)
    require_marina_access(user, record.marina_id, "user")

    return envelope(_user_json(record))
