"""Key-value persistence capability and adapters.

The tracker only needs string, bool and date values under fixed keys.
Hosts supply their own ``TrackingStorage`` (keychain, preferences file,
database row ...) or use one of the adapters here.
"""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from telemetry_tracker.constants import (
    APP_BUILD_KEY,
    APP_VERSION_KEY,
    DEVICE_ID_KEY,
    INSTALLED_EVENT_SENT_KEY,
    LAST_EVENT_TIME_KEY,
    PREVIOUS_SESSION_ID_KEY,
)
from telemetry_tracker.models import TrackingError, format_timestamp, parse_timestamp


class StorageError(TrackingError):
    """Storage adapter failure."""
    pass


class TrackingStorage(ABC):
    """Abstract key-value store used by the tracker.

    Subclasses implement the six primitive accessors; the typed helpers
    below are shared.
    """

    @abstractmethod
    def get_string(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_string(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def get_bool(self, key: str) -> bool:
        """Return the stored flag, False when never written."""
        pass

    @abstractmethod
    def set_bool(self, key: str, value: bool) -> None:
        pass

    @abstractmethod
    def get_date(self, key: str) -> Optional[datetime]:
        pass

    @abstractmethod
    def set_date(self, key: str, value: datetime) -> None:
        pass

    # App version tracking

    def get_app_version(self) -> Optional[str]:
        return self.get_string(APP_VERSION_KEY)

    def set_app_version(self, version: str) -> None:
        self.set_string(APP_VERSION_KEY, version)

    def get_app_build(self) -> Optional[str]:
        return self.get_string(APP_BUILD_KEY)

    def set_app_build(self, build: str) -> None:
        self.set_string(APP_BUILD_KEY, build)

    # Session tracking

    def get_previous_session_id(self) -> Optional[str]:
        return self.get_string(PREVIOUS_SESSION_ID_KEY)

    def set_previous_session_id(self, session_id: str) -> None:
        self.set_string(PREVIOUS_SESSION_ID_KEY, session_id)

    def get_last_event_time(self) -> Optional[datetime]:
        return self.get_date(LAST_EVENT_TIME_KEY)

    def set_last_event_time(self, moment: datetime) -> None:
        self.set_date(LAST_EVENT_TIME_KEY, moment)

    # Install event tracking

    def has_installed_event_been_sent(self) -> bool:
        return self.get_bool(INSTALLED_EVENT_SENT_KEY)

    def set_installed_event_sent(self, sent: bool) -> None:
        self.set_bool(INSTALLED_EVENT_SENT_KEY, sent)

    # Device identity

    def get_device_id(self) -> Optional[str]:
        return self.get_string(DEVICE_ID_KEY)

    def set_device_id(self, device_id: str) -> None:
        self.set_string(DEVICE_ID_KEY, device_id)


class InMemoryTrackingStorage(TrackingStorage):
    """In-memory storage, for tests and hosts without persistence."""

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get_string(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._values.get(key)
        return value if isinstance(value, str) else None

    def set_string(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def get_bool(self, key: str) -> bool:
        with self._lock:
            return bool(self._values.get(key, False))

    def set_bool(self, key: str, value: bool) -> None:
        with self._lock:
            self._values[key] = bool(value)

    def get_date(self, key: str) -> Optional[datetime]:
        with self._lock:
            value = self._values.get(key)
        return value if isinstance(value, datetime) else None

    def set_date(self, key: str, value: datetime) -> None:
        with self._lock:
            self._values[key] = value


class JsonFileTrackingStorage(TrackingStorage):
    """Storage persisted as one JSON document.

    Dates are stored as ISO-8601 strings. Every write rewrites the file via a
    temporary sibling and ``os.replace`` so a crash never leaves it half
    written. Keys are namespaced with ``prefix``.
    """

    def __init__(self, path: Union[str, Path], prefix: str = "") -> None:
        self.path = Path(path)
        self.prefix = prefix
        self._lock = threading.Lock()
        self._values: Dict[str, Any] = self._load()

    def _key(self, key: str) -> str:
        return f"{self.prefix}.{key}" if self.prefix else key

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read tracking storage {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Tracking storage {self.path} is not a JSON object")
        return data

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._values, f, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Cannot write tracking storage {self.path}: {e}") from e

    def _get(self, key: str) -> Any:
        with self._lock:
            return self._values.get(self._key(key))

    def _set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[self._key(key)] = value
            self._write()

    def get_string(self, key: str) -> Optional[str]:
        value = self._get(key)
        return value if isinstance(value, str) else None

    def set_string(self, key: str, value: str) -> None:
        self._set(key, value)

    def get_bool(self, key: str) -> bool:
        return self._get(key) is True

    def set_bool(self, key: str, value: bool) -> None:
        self._set(key, bool(value))

    def get_date(self, key: str) -> Optional[datetime]:
        value = self._get(key)
        if not isinstance(value, str):
            return None
        try:
            return parse_timestamp(value)
        except ValueError:
            return None

    def set_date(self, key: str, value: datetime) -> None:
        self._set(key, format_timestamp(value))
