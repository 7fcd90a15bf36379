"""
telemetry-tracker: client-side event capture with batched, retrying delivery.

Hosts construct a ``Tracker``, start it with a ``TrackingConfig`` and report
screen views, interactions, taps and network activity. Events are redacted,
tagged with the current session and page, queued in order and POSTed to the
collector in batches. Failed batches are put back at the front of the queue.

Example:
    >>> from telemetry_tracker import Tracker, TrackingConfig
    >>> tracker = Tracker()
    >>> tracker.start(TrackingConfig(
    ...     product_id="shop-ios",
    ...     tracking_endpoint="https://collector.example.com/v1/events",
    ... ))
    >>> tracker.report_screen_view("Home")
    >>> tracker.report_click(120.0, 44.0)
    >>> tracker.shutdown()
"""

__version__ = "0.1.0"

# Core data models
from telemetry_tracker.models import (
    Event,
    BatchPayload,
    TrackingError,
    ConfigurationError,
    TransportError,
    ServerError,
    SerializationError,
    format_timestamp,
    parse_timestamp,
)

# Configuration
from telemetry_tracker.config import TrackingConfig

# Storage
from telemetry_tracker.storage import (
    TrackingStorage,
    InMemoryTrackingStorage,
    JsonFileTrackingStorage,
    StorageError,
)

# Device
from telemetry_tracker.device import DeviceInfo

# Redaction
from telemetry_tracker.sanitizer import (
    sanitize,
    redact_headers,
    redact_query,
    redact_body,
)

# Pipeline components
from telemetry_tracker.frustration import FrustrationDetector, ClickRecord
from telemetry_tracker.session import SessionManager, SessionTransition
from telemetry_tracker.event_queue import EventQueue, QueuedEvent
from telemetry_tracker.delivery import DeliveryEngine, DeliveryOutcome
from telemetry_tracker.dispatcher import Dispatcher

# Facade
from telemetry_tracker.sources import EventSource, CallbackSource
from telemetry_tracker.tracker import Tracker

# Vocabulary
from telemetry_tracker.constants import (
    SESSION_START_EVENT,
    SESSION_END_EVENT,
    APPLICATION_INSTALLED_EVENT,
    APPLICATION_UPDATED_EVENT,
    APPLICATION_OPENED_EVENT,
    APPLICATION_BACKGROUNDED_EVENT,
    DEEP_LINK_OPENED_EVENT,
    SCREEN_VIEWED_EVENT,
    ELEMENT_INTERACTED_EVENT,
    NETWORK_REQUEST_EVENT,
    NETWORK_CONNECTIVITY_CHANGED_EVENT,
    RAGE_CLICK_EVENT,
    DEAD_CLICK_EVENT,
    REDACTED,
)

__all__ = [
    # Version
    "__version__",
    # Models
    "Event",
    "BatchPayload",
    "format_timestamp",
    "parse_timestamp",
    # Exceptions
    "TrackingError",
    "ConfigurationError",
    "TransportError",
    "ServerError",
    "SerializationError",
    "StorageError",
    # Configuration
    "TrackingConfig",
    # Storage
    "TrackingStorage",
    "InMemoryTrackingStorage",
    "JsonFileTrackingStorage",
    # Device
    "DeviceInfo",
    # Redaction
    "sanitize",
    "redact_headers",
    "redact_query",
    "redact_body",
    # Pipeline
    "FrustrationDetector",
    "ClickRecord",
    "SessionManager",
    "SessionTransition",
    "EventQueue",
    "QueuedEvent",
    "DeliveryEngine",
    "DeliveryOutcome",
    "Dispatcher",
    # Facade
    "EventSource",
    "CallbackSource",
    "Tracker",
    # Event types
    "SESSION_START_EVENT",
    "SESSION_END_EVENT",
    "APPLICATION_INSTALLED_EVENT",
    "APPLICATION_UPDATED_EVENT",
    "APPLICATION_OPENED_EVENT",
    "APPLICATION_BACKGROUNDED_EVENT",
    "DEEP_LINK_OPENED_EVENT",
    "SCREEN_VIEWED_EVENT",
    "ELEMENT_INTERACTED_EVENT",
    "NETWORK_REQUEST_EVENT",
    "NETWORK_CONNECTIVITY_CHANGED_EVENT",
    "RAGE_CLICK_EVENT",
    "DEAD_CLICK_EVENT",
    "REDACTED",
]
