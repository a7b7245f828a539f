"""
Data-source settings store.

Holds which data source (mock sample data or the database) the API serves,
and an optional forced mode that locks the choice. Observers subscribe to
changes; state persists through a ``SettingsBackend`` so several processes
sharing a backend converge on ``refresh()``.
"""

import json
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional

import structlog

from marinaops.models.data_source import DataSourceSettings
from marinaops.models.enums import DataSourceMode, ForcedMode

if TYPE_CHECKING:
    from marinaops.storage.base import StorageBackend

logger = structlog.get_logger(__name__)

SETTINGS_KEY = "data_source"

Subscriber = Callable[[DataSourceSettings], None]


class SettingsBackend(ABC):
    """Persistence for ``DataSourceSettings``."""

    @abstractmethod
    def load(self) -> Optional[DataSourceSettings]:
        """Return the stored settings, or None if nothing is stored yet."""

    @abstractmethod
    def save(self, settings: DataSourceSettings) -> None:
        pass


class InMemorySettingsBackend(SettingsBackend):
    def __init__(self, initial: Optional[DataSourceSettings] = None):
        self._settings = initial

    def load(self) -> Optional[DataSourceSettings]:
        return self._settings

    def save(self, settings: DataSourceSettings) -> None:
        self._settings = settings


class StorageSettingsBackend(SettingsBackend):
    """Stores settings as JSON in the storage backend's key/value table."""

    def __init__(self, storage: "StorageBackend", key: str = SETTINGS_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> Optional[DataSourceSettings]:
        raw = self.storage.read_setting(self.key)
        if raw is None:
            return None
        return DataSourceSettings.model_validate(json.loads(raw))

    def save(self, settings: DataSourceSettings) -> None:
        payload = settings.model_dump(mode="json", include={"current_source", "forced_mode"})
        self.storage.write_setting(self.key, json.dumps(payload))


class DataSourceSettingsStore:
    """
    Typed, observable data-source state.

    Switching sources is refused while a forced mode disagrees with the
    requested source. Subscribers are notified after every effective change,
    outside the internal lock.

    Example:
        >>> store = DataSourceSettingsStore()
        >>> unsubscribe = store.subscribe(lambda s: print(s.mode_label))
        >>> store.toggle()
        Production Mode
        True
    """

    def __init__(
        self,
        backend: Optional[SettingsBackend] = None,
        default: Optional[DataSourceSettings] = None,
    ):
        self.backend = backend or InMemorySettingsBackend()
        self._lock = threading.RLock()
        self._subscribers: list[Subscriber] = []
        stored = self.backend.load()
        if stored is None:
            stored = default or DataSourceSettings()
            self.backend.save(stored)
        self._settings = stored

    @property
    def settings(self) -> DataSourceSettings:
        with self._lock:
            return self._settings

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def set_data_source(self, source: DataSourceMode) -> bool:
        """
        Switch to ``source``.

        Returns:
            False when a forced mode blocks the switch, True otherwise
            (including when ``source`` is already current).
        """
        source = DataSourceMode(source)
        with self._lock:
            current = self._settings
            forced = current.forced_mode
            if forced != ForcedMode.NONE and forced.value != source.value:
                logger.warning(
                    "data_source_change_blocked",
                    requested=source.value,
                    forced_mode=forced.value,
                )
                return False
            if current.current_source == source:
                return True
            updated = current.model_copy(update={"current_source": source})
            self._commit(updated)

        logger.info("data_source_changed", source=source.value)
        self._notify(updated)
        return True

    def toggle(self) -> bool:
        """Flip between mock and database. No-op (False) while forced."""
        with self._lock:
            if self._settings.forced_mode != ForcedMode.NONE:
                logger.warning("data_source_toggle_blocked", forced_mode=self._settings.forced_mode.value)
                return False
            target = (
                DataSourceMode.DATABASE
                if self._settings.current_source == DataSourceMode.MOCK
                else DataSourceMode.MOCK
            )
        return self.set_data_source(target)

    def set_forced_mode(self, mode: ForcedMode) -> DataSourceSettings:
        """Lock (or unlock with ``none``) the data source; forcing also switches to it."""
        mode = ForcedMode(mode)
        with self._lock:
            current = self._settings
            update = {"forced_mode": mode}
            if mode != ForcedMode.NONE:
                update["current_source"] = DataSourceMode(mode.value)
            updated = current.model_copy(update=update)
            changed = updated != current
            if changed:
                self._commit(updated)

        if changed:
            logger.info(
                "data_source_forced_mode_changed",
                forced_mode=mode.value,
                source=updated.current_source.value,
            )
            self._notify(updated)
        return updated

    def refresh(self) -> DataSourceSettings:
        """Reload from the backend, notifying subscribers if the state moved."""
        with self._lock:
            stored = self.backend.load()
            if stored is None or stored == self._settings:
                return self._settings
            self._settings = stored

        logger.info("data_source_settings_refreshed", source=stored.current_source.value)
        self._notify(stored)
        return stored

    def _commit(self, settings: DataSourceSettings) -> None:
        self.backend.save(settings)
        self._settings = settings

    def _notify(self, settings: DataSourceSettings) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(settings)
