"""
Contract router - berth rental contracts with lifecycle and invoice metrics.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.builders import build_contract_summary
from marinaops.engine.metrics.health import HealthPolicy
from marinaops.models.enums import ContractStatus
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
async def list_contracts(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
    status: Optional[ContractStatus] = Query(None, description="Stored status filter"),
):
    contracts = storage.list_contracts(marina_id=user.marina_scope)
    if status is not None:
        contracts = [c for c in contracts if c.status == status]

    summaries = [build_contract_summary(contract, now, policy) for contract in contracts]
    logger.info("contracts_list", user_id=user.id, count=len(summaries))
    return envelope(summaries, total=len(summaries))


@router.get("/{contract_id}")
async def get_contract(
    contract_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    policy: HealthPolicy = Depends(get_health_policy),
):
    contract = storage.read_contract(contract_id)
    if contract is None:
        raise not_found("Contract", contract_id)
    require_marina_access(user, contract.marina_id, "contract")

    return envelope(build_contract_summary(contract, now, policy))
