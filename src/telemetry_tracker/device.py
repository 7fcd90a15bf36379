"""Device description attached to every batch."""

import logging
import platform
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from telemetry_tracker.models import TrackingError
from telemetry_tracker.storage import TrackingStorage

logger = logging.getLogger("telemetry_tracker.device")


@dataclass(frozen=True)
class DeviceInfo:
    """Operating system, version, hardware model and stable device id."""

    os: str
    version: str
    model: str
    device_id: str

    @classmethod
    def detect(cls, storage: Optional[TrackingStorage] = None) -> "DeviceInfo":
        """Describe the current host.

        The device id is generated once and persisted in ``storage`` when one
        is given, so the anonymous id stays stable across restarts.
        """
        device_id = None
        try:
            if storage is not None:
                device_id = storage.get_device_id()
            if not device_id:
                device_id = str(uuid.uuid4())
                if storage is not None:
                    storage.set_device_id(device_id)
        except TrackingError as e:
            logger.warning("Failed to load or persist device id: %s", e)
            device_id = device_id or str(uuid.uuid4())
        return cls(
            os=platform.system() or "Unknown",
            version=platform.release() or "Unknown",
            model=platform.machine() or "Unknown",
            device_id=device_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys)."""
        data = asdict(self)
        return {
            "os": data["os"],
            "version": data["version"],
            "model": data["model"],
            "deviceId": data["device_id"],
        }
