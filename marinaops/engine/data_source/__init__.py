"""Data-source toggle state and the validation harness."""

from .settings_store import (
    DataSourceSettingsStore,
    InMemorySettingsBackend,
    SettingsBackend,
    StorageSettingsBackend,
)
from .validation import (
    DATA_TYPE_TABLES,
    DATABASE_EXPECTED_COUNTS,
    LISTING_ENDPOINTS,
    MOCK_EXPECTED_COUNTS,
    DataSourceValidator,
    expected_count,
    expected_counts_for,
)

__all__ = [
    "DataSourceSettingsStore",
    "InMemorySettingsBackend",
    "SettingsBackend",
    "StorageSettingsBackend",
    "DATA_TYPE_TABLES",
    "DATABASE_EXPECTED_COUNTS",
    "LISTING_ENDPOINTS",
    "MOCK_EXPECTED_COUNTS",
    "DataSourceValidator",
    "expected_count",
    "expected_counts_for",
]
