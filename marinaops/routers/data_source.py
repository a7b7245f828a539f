"""
Data-source router - demo/live toggle and validation harness.

Reads are open to any signed-in user; switching or locking the source
requires a manager or above.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from marinaops.auth.dependencies import SessionUser, get_current_user, require_manager
from marinaops.config import get_settings
from marinaops.engine.data_source.settings_store import DataSourceSettingsStore
from marinaops.engine.data_source.validation import (
    DATA_TYPE_TABLES,
    DataSourceValidator,
    expected_counts_for,
)
from marinaops.models.enums import DataSourceMode, ForcedMode
from marinaops.routers.deps import envelope
from marinaops.storage import get_settings_store, get_storage_for
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class SourceRequest(BaseModel):
    source: DataSourceMode


class ForcedModeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    forced_mode: ForcedMode


class ValidateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data_type: str
    actual_count: Optional[int] = None


def get_validator(request: Request) -> DataSourceValidator:
    """Validator whose probes carry the caller's Authorization header."""
    settings = get_settings()
    headers = {}
    authorization = request.headers.get("Authorization")
    if authorization:
        headers["Authorization"] = authorization
    return DataSourceValidator(
        base_url=settings.validation_base_url,
        timeout=settings.validation_timeout_seconds,
        headers=headers,
    )


def _settings_json(store: DataSourceSettingsStore) -> dict:
    return store.settings.model_dump(mode="json", by_alias=True)


@router.get("/")
async def get_data_source(
    user: SessionUser = Depends(get_current_user),
    store: DataSourceSettingsStore = Depends(get_settings_store),
):
    store.refresh()
    return envelope(_settings_json(store))


@router.put("/")
async def set_data_source(
    body: SourceRequest,
    user: SessionUser = Depends(require_manager),
    store: DataSourceSettingsStore = Depends(get_settings_store),
):
    """
    Switch the data source.

    Raises:
        HTTPException: 409 when a forced mode locks a different source
    """
    if not store.set_data_source(body.source):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Data source is locked to {store.settings.forced_mode.value}",
        )
    logger.info("data_source_set", user_id=user.id, source=body.source.value)
    return envelope(_settings_json(store))


@router.post("/toggle")
async def toggle_data_source(
    user: SessionUser = Depends(require_manager),
    store: DataSourceSettingsStore = Depends(get_settings_store),
):
    if not store.toggle():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Data source is locked",
        )
    logger.info("data_source_toggled", user_id=user.id, source=store.settings.current_source.value)
    return envelope(_settings_json(store))


@router.put("/forced-mode")
async def set_forced_mode(
    body: ForcedModeRequest,
    user: SessionUser = Depends(require_manager),
    store: DataSourceSettingsStore = Depends(get_settings_store),
):
    """Lock the data source, or unlock it with ``none``."""
    store.set_forced_mode(body.forced_mode)
    logger.info("data_source_forced", user_id=user.id, forced_mode=body.forced_mode.value)
    return envelope(_settings_json(store))


@router.post("/validate")
def validate_data_source(
    body: ValidateRequest,
    user: SessionUser = Depends(get_current_user),
    store: DataSourceSettingsStore = Depends(get_settings_store),
    validator: DataSourceValidator = Depends(get_validator),
):
    """
    Validate the record count for one data type against the active source.

    When ``actualCount`` is omitted the count is taken from the active
    store; data types without a backing table count as 0.

    Runs in the threadpool since the database probe may call back into
    this API.
    """
    mode = store.refresh().current_source
    actual = body.actual_count
    if actual is None:
        table = DATA_TYPE_TABLES.get(body.data_type)
        actual = get_storage_for(mode).count_records(table) if table else 0

    result = validator.validate(body.data_type, actual, mode)
    return envelope(result.model_dump(mode="json", by_alias=True))


@router.get("/expected-counts")
async def get_expected_counts(
    source: Optional[DataSourceMode] = None,
    user: SessionUser = Depends(get_current_user),
    store: DataSourceSettingsStore = Depends(get_settings_store),
):
    mode = source or store.refresh().current_source
    return envelope(expected_counts_for(mode), source=mode.value)
