"""
Data storage layer.

Two DuckDB stores back the API:

- the database store: the configured DuckDB file (live data)
- the sample store: an in-memory DuckDB seeded with the demo dataset

The data-source settings store decides which one requests read from.
"""

from functools import lru_cache

import structlog

from marinaops.config import get_settings
from marinaops.engine.data_source.settings_store import (
    DataSourceSettingsStore,
    StorageSettingsBackend,
)
from marinaops.engine.sample_data import build_sample_dataset
from marinaops.models.data_source import DataSourceSettings
from marinaops.models.enums import DataSourceMode, ForcedMode

from .base import StorageBackend
from .duckdb_storage import MEMORY_PATH, TABLE_COLUMNS, DuckDBStorage, StorageError

logger = structlog.get_logger(__name__)


@lru_cache
def get_storage() -> StorageBackend:
    """
    Get the cached database storage backend (singleton).

    Returns:
        StorageBackend for the configured DuckDB file
    """
    settings = get_settings()
    return DuckDBStorage(
        db_path=settings.db_path,
        recent_payment_days=settings.recent_payment_days,
    )


@lru_cache
def get_sample_storage() -> StorageBackend:
    """
    Get the cached in-memory store holding the demo dataset.
    """
    settings = get_settings()
    storage = DuckDBStorage(
        db_path=MEMORY_PATH,
        recent_payment_days=settings.recent_payment_days,
    )
    dataset = build_sample_dataset(
        records_per_type=settings.sample_records_per_type,
        seed=settings.sample_seed,
        password=settings.demo_user_password,
    )
    storage.load_dataset(dataset)
    return storage


@lru_cache
def get_settings_store() -> DataSourceSettingsStore:
    """
    Get the process-wide data-source settings store.

    State is shared through the database's settings table; a forced mode in
    configuration is applied on top of whatever was stored.
    """
    settings = get_settings()
    store = DataSourceSettingsStore(
        backend=StorageSettingsBackend(get_storage()),
        default=DataSourceSettings(current_source=DataSourceMode(settings.default_data_source)),
    )
    forced = ForcedMode(settings.forced_data_source)
    if forced != ForcedMode.NONE:
        store.set_forced_mode(forced)
    return store


def get_storage_for(source: DataSourceMode) -> StorageBackend:
    if source == DataSourceMode.MOCK:
        return get_sample_storage()
    return get_storage()


def get_active_storage() -> StorageBackend:
    """
    Storage for the currently selected data source.

    Refreshes the settings store first so a switch made by another process
    is picked up.
    """
    store = get_settings_store()
    source = store.refresh().current_source
    logger.debug("active_storage_resolved", source=source.value)
    return get_storage_for(source)


__all__ = [
    "StorageBackend",
    "DuckDBStorage",
    "StorageError",
    "TABLE_COLUMNS",
    "get_active_storage",
    "get_sample_storage",
    "get_settings_store",
    "get_storage",
    "get_storage_for",
]
