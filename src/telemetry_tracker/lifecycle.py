"""Application lifecycle events: install, update, open and background."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from telemetry_tracker.constants import (
    APP_BUILD_PROPERTY,
    APP_FROM_BACKGROUND_PROPERTY,
    APP_PREVIOUS_BUILD_PROPERTY,
    APP_PREVIOUS_VERSION_PROPERTY,
    APP_VERSION_PROPERTY,
    APPLICATION_INSTALLED_EVENT,
    APPLICATION_UPDATED_EVENT,
)
from telemetry_tracker.storage import TrackingStorage

logger = logging.getLogger("telemetry_tracker.lifecycle")


@dataclass(frozen=True)
class LifecycleEvent:
    """An event type with its data, ready to be tracked."""

    event_type: str
    data: Dict[str, Any] = field(default_factory=dict)


def detect_install_or_update(
    storage: TrackingStorage,
    current_version: Optional[str],
    current_build: Optional[str],
) -> Optional[LifecycleEvent]:
    """Compare the stored app version/build with the running one.

    Returns at most one event:

    - ``Application Installed`` when no previous version or build is stored
      and the installed event has never been sent. The installed flag is set
      so this fires at most once per storage.
    - ``Application Updated`` when a previous version and build exist and
      either differs from the current one.

    The stored version and build are refreshed in both cases.
    """
    previous_version = storage.get_app_version()
    previous_build = storage.get_app_build()

    if current_build is not None:
        storage.set_app_build(current_build)
    if current_version is not None:
        storage.set_app_version(current_version)

    if previous_version is None or previous_build is None:
        if storage.has_installed_event_been_sent():
            return None
        storage.set_installed_event_sent(True)
        logger.debug("First launch detected (version=%s, build=%s)", current_version, current_build)
        return LifecycleEvent(
            APPLICATION_INSTALLED_EVENT,
            {
                APP_VERSION_PROPERTY: current_version or "",
                APP_BUILD_PROPERTY: current_build or "",
            },
        )

    if current_version != previous_version or current_build != previous_build:
        logger.debug(
            "App updated from %s (%s) to %s (%s)",
            previous_version, previous_build, current_version, current_build,
        )
        return LifecycleEvent(
            APPLICATION_UPDATED_EVENT,
            {
                APP_VERSION_PROPERTY: current_version or "",
                APP_BUILD_PROPERTY: current_build or "",
                APP_PREVIOUS_VERSION_PROPERTY: previous_version,
                APP_PREVIOUS_BUILD_PROPERTY: previous_build,
            },
        )
    return None


def opened_event_data(
    version: Optional[str], build: Optional[str], from_background: bool
) -> Dict[str, Any]:
    """Data for ``Application Opened``."""
    return {
        APP_VERSION_PROPERTY: version or "",
        APP_BUILD_PROPERTY: build or "",
        APP_FROM_BACKGROUND_PROPERTY: from_background,
    }
