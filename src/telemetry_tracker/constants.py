"""Event type, property and storage key vocabulary.

These strings are a stable contract with downstream collectors and must not
change between releases.

Sections:
    1. Event types
    2. Event properties
    3. Network properties
    4. Frustration interaction properties
    5. Storage keys
"""

from typing import FrozenSet

# ── Section 1: Event Types ───────────────────────────────────────────────────

SESSION_START_EVENT: str = "session_start"
SESSION_END_EVENT: str = "session_end"
APPLICATION_INSTALLED_EVENT: str = "Application Installed"
APPLICATION_UPDATED_EVENT: str = "Application Updated"
APPLICATION_OPENED_EVENT: str = "Application Opened"
APPLICATION_BACKGROUNDED_EVENT: str = "Application Backgrounded"
DEEP_LINK_OPENED_EVENT: str = "Deep Link Opened"
SCREEN_VIEWED_EVENT: str = "Screen Viewed"
ELEMENT_INTERACTED_EVENT: str = "Element Interacted"
NETWORK_REQUEST_EVENT: str = "Network Request"
NETWORK_CONNECTIVITY_CHANGED_EVENT: str = "network_connectivity_changed"
RAGE_CLICK_EVENT: str = "Rage Click"
DEAD_CLICK_EVENT: str = "Dead Click"

SESSION_EVENT_TYPES: FrozenSet[str] = frozenset({
    SESSION_START_EVENT,
    SESSION_END_EVENT,
})

APPLICATION_EVENT_TYPES: FrozenSet[str] = frozenset({
    APPLICATION_INSTALLED_EVENT,
    APPLICATION_UPDATED_EVENT,
    APPLICATION_OPENED_EVENT,
    APPLICATION_BACKGROUNDED_EVENT,
})

FRUSTRATION_EVENT_TYPES: FrozenSet[str] = frozenset({
    RAGE_CLICK_EVENT,
    DEAD_CLICK_EVENT,
})

# ── Section 2: Event Properties ──────────────────────────────────────────────

APP_VERSION_PROPERTY: str = "Version"
APP_BUILD_PROPERTY: str = "Build"
APP_PREVIOUS_VERSION_PROPERTY: str = "Previous Version"
APP_PREVIOUS_BUILD_PROPERTY: str = "Previous Build"
APP_FROM_BACKGROUND_PROPERTY: str = "From Background"
APP_LINK_URL_PROPERTY: str = "Link URL"
APP_LINK_REFERRER_PROPERTY: str = "Link Referrer"
APP_SCREEN_NAME_PROPERTY: str = "Screen Name"
APP_TARGET_AXLABEL_PROPERTY: str = "Target Accessibility Label"
APP_TARGET_AXIDENTIFIER_PROPERTY: str = "Target Accessibility Identifier"
APP_ACTION_PROPERTY: str = "Action"
APP_TARGET_VIEW_CLASS_PROPERTY: str = "Target View Class"
APP_TARGET_TEXT_PROPERTY: str = "Target Text"
APP_HIERARCHY_PROPERTY: str = "Hierarchy"
APP_ACTION_METHOD_PROPERTY: str = "Action Method"
APP_GESTURE_RECOGNIZER_PROPERTY: str = "Gesture Recognizer"

# ── Section 3: Network Properties ────────────────────────────────────────────

NETWORK_URL_PROPERTY: str = "URL"
NETWORK_URL_QUERY_PROPERTY: str = "URL Query"
NETWORK_URL_FRAGMENT_PROPERTY: str = "URL Fragment"
NETWORK_REQUEST_METHOD_PROPERTY: str = "Request Method"
NETWORK_STATUS_CODE_PROPERTY: str = "Status Code"
NETWORK_ERROR_CODE_PROPERTY: str = "Error Code"
NETWORK_ERROR_MESSAGE_PROPERTY: str = "Error Message"
NETWORK_START_TIME_PROPERTY: str = "Start Time"
NETWORK_COMPLETION_TIME_PROPERTY: str = "Completion Time"
NETWORK_REQUEST_BODY_SIZE_PROPERTY: str = "Request Body Size"
NETWORK_RESPONSE_BODY_SIZE_PROPERTY: str = "Response Body Size"
NETWORK_REQUEST_HEADERS_PROPERTY: str = "Request Headers"
NETWORK_RESPONSE_HEADERS_PROPERTY: str = "Response Headers"
NETWORK_REQUEST_BODY_PROPERTY: str = "Request Body"
NETWORK_RESPONSE_BODY_PROPERTY: str = "Response Body"
NETWORK_IS_ONLINE_PROPERTY: str = "is_online"
NETWORK_CONNECTION_TYPE_PROPERTY: str = "connection_type"

# ── Section 4: Frustration Interaction Properties ────────────────────────────

BEGIN_TIME_PROPERTY: str = "Begin Time"
END_TIME_PROPERTY: str = "End Time"
DURATION_PROPERTY: str = "Duration"
CLICKS_PROPERTY: str = "Clicks"
CLICK_COUNT_PROPERTY: str = "Click Count"
COORDINATE_X_PROPERTY: str = "X"
COORDINATE_Y_PROPERTY: str = "Y"

# ── Section 5: Storage Keys ──────────────────────────────────────────────────

STORAGE_PREFIX: str = "telemetry-tracker"
APP_VERSION_KEY: str = "app_version"
APP_BUILD_KEY: str = "app_build"
PREVIOUS_SESSION_ID_KEY: str = "previous_session_id"
LAST_EVENT_TIME_KEY: str = "last_event_time"
INSTALLED_EVENT_SENT_KEY: str = "installed_event_sent"
DEVICE_ID_KEY: str = "device_id"

# Redaction marker substituted for sensitive values
REDACTED: str = "[REDACTED]"

# Page title used before any screen has been reported
UNKNOWN_SCREEN_NAME: str = "Unknown"
