"""
System health and diagnostics router.

Wired to:
- Both storage backends for database diagnostics
- The data-source settings store
- Settings for configuration
"""

import os
import time

from fastapi import APIRouter

from marinaops.config import get_settings
from marinaops.models.enums import DataSourceMode
from marinaops.storage import TABLE_COLUMNS, StorageError, get_settings_store, get_storage_for
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# Track startup time for uptime calculation
_startup_time = time.time()


@router.get("/health")
async def system_health():
    """
    Get system health status.
    Checks the active store and reports actual service health.
    """
    settings = get_settings()
    uptime = time.time() - _startup_time
    source = get_settings_store().refresh().current_source
    healthy = get_storage_for(source).health_check()

    return {
        "success": True,
        "data": {
            "status": "healthy" if healthy else "degraded",
            "version": "0.1.0",
            "uptime_seconds": round(uptime, 1),
            "database": "healthy" if healthy else "unhealthy",
            "data_source": source.value,
            "environment": settings.environment,
        },
    }


@router.get("/diagnostics")
async def system_diagnostics():
    """
    Get detailed system diagnostics.
    Reports database size and table counts for both data sources.
    """
    settings = get_settings()

    logger.info("diagnostics_request")

    diagnostics = {
        "environment": settings.environment,
        "database_type": settings.db_type,
        "database_path": settings.db_path,
        "database_size_mb": 0.0,
        "data_source": get_settings_store().settings.model_dump(mode="json", by_alias=True),
        "tables": {},
    }

    if os.path.isfile(settings.db_path):
        size_bytes = os.path.getsize(settings.db_path)
        diagnostics["database_size_mb"] = round(size_bytes / (1024 * 1024), 2)

    for source in DataSourceMode:
        storage = get_storage_for(source)
        try:
            diagnostics["tables"][source.value] = {
                table: storage.count_records(table) for table in TABLE_COLUMNS
            }
        except StorageError as e:
            logger.warning("diagnostics_count_failed", source=source.value, error=str(e))
            diagnostics["tables"][source.value] = {"error": str(e)}

    return {"success": True, "data": diagnostics}


@router.get("/config")
async def get_system_config():
    """
    Get system configuration (non-sensitive values only).
    """
    settings = get_settings()

    return {
        "success": True,
        "data": {
            "environment": settings.environment,
            "log_level": settings.log_level,
            "db_type": settings.db_type,
            "default_data_source": settings.default_data_source,
            "forced_data_source": settings.forced_data_source,
            "sample_records_per_type": settings.sample_records_per_type,
            "recent_payment_days": settings.recent_payment_days,
            "contract_expiry_warning_days": settings.contract_expiry_warning_days,
            "health_policy": {
                "base_score": settings.health_base_score,
                "pending_penalty": settings.health_pending_penalty,
                "in_progress_penalty": settings.health_in_progress_penalty,
            },
        },
    }
