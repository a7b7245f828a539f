"""
Shared router dependencies and response helpers.

Storage, clock and health policy are injected with ``Depends`` so tests can
override them through ``app.dependency_overrides``.
"""

from datetime import datetime
from typing import Any

from fastapi import HTTPException, status

from marinaops.config import get_settings
from marinaops.engine.metrics.health import HealthPolicy
from marinaops.storage import get_active_storage
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)

__all__ = ["envelope", "get_active_storage", "get_health_policy", "get_now", "not_found"]


def get_now() -> datetime:
    """Evaluation instant for time-aware metrics (naive UTC)."""
    return datetime.utcnow()


def get_health_policy() -> HealthPolicy:
    return HealthPolicy.from_settings(get_settings())


def envelope(data: Any, **meta: Any) -> dict[str, Any]:
    """Standard success body: ``{"success": true, "data": ...}``."""
    return {"success": True, "data": data, **meta}


def not_found(resource: str, record_id: str) -> HTTPException:
    logger.info("record_not_found", resource=resource, record_id=record_id)
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource} not found",
    )
