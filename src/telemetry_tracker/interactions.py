"""Builders for screen, element, gesture and deep-link event data.

Each function returns the ``data`` mapping for one event; the tracker adds
the event type and page context. Caller-supplied ``data`` is copied and the
well-known properties are written over it.
"""

import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from telemetry_tracker.constants import (
    APP_ACTION_PROPERTY,
    APP_GESTURE_RECOGNIZER_PROPERTY,
    APP_HIERARCHY_PROPERTY,
    APP_LINK_REFERRER_PROPERTY,
    APP_LINK_URL_PROPERTY,
    APP_SCREEN_NAME_PROPERTY,
    APP_TARGET_AXIDENTIFIER_PROPERTY,
    APP_TARGET_AXLABEL_PROPERTY,
    APP_TARGET_TEXT_PROPERTY,
    APP_TARGET_VIEW_CLASS_PROPERTY,
    COORDINATE_X_PROPERTY,
    COORDINATE_Y_PROPERTY,
    DURATION_PROPERTY,
)

BUTTON_VIEW_CLASS = "Button"
TEXT_FIELD_VIEW_CLASS = "TextField"
LIST_ITEM_VIEW_CLASS = "ListItem"


def _base(data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return dict(data or {})


def _accessibility(
    event_data: Dict[str, Any],
    accessibility_label: Optional[str],
    accessibility_identifier: Optional[str],
) -> Dict[str, Any]:
    if accessibility_label is not None:
        event_data[APP_TARGET_AXLABEL_PROPERTY] = accessibility_label
    if accessibility_identifier is not None:
        event_data[APP_TARGET_AXIDENTIFIER_PROPERTY] = accessibility_identifier
    return event_data


def screen_view_data(screen_name: str, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    event_data = _base(data)
    event_data[APP_SCREEN_NAME_PROPERTY] = screen_name
    return event_data


def element_interaction_data(
    action: str,
    target_view_class: Optional[str] = None,
    target_text: Optional[str] = None,
    accessibility_label: Optional[str] = None,
    accessibility_identifier: Optional[str] = None,
    hierarchy: Optional[List[str]] = None,
    data: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Data for ``Element Interacted``; unset descriptors are omitted."""
    event_data = _base(data)
    event_data[APP_ACTION_PROPERTY] = action
    if target_view_class is not None:
        event_data[APP_TARGET_VIEW_CLASS_PROPERTY] = target_view_class
    if target_text is not None:
        event_data[APP_TARGET_TEXT_PROPERTY] = target_text
    _accessibility(event_data, accessibility_label, accessibility_identifier)
    if hierarchy is not None:
        event_data[APP_HIERARCHY_PROPERTY] = list(hierarchy)
    return event_data


def deep_link_data(url: str, referrer: Optional[str] = None) -> Dict[str, Any]:
    event_data: Dict[str, Any] = {APP_LINK_URL_PROPERTY: url}
    if referrer is not None:
        event_data[APP_LINK_REFERRER_PROPERTY] = referrer
    return event_data


def accessibility_data(
    accessibility_label: Optional[str] = None,
    accessibility_identifier: Optional[str] = None,
    data: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Host-supplied part of a gesture event: extra data and target labels."""
    return _accessibility(_base(data), accessibility_label, accessibility_identifier)


# Gestures
#
# These return only the fields the library generates itself. The tracker
# merges them over the sanitized host-supplied part.


def _gesture(action: str, recognizer: str) -> Dict[str, Any]:
    return {
        APP_ACTION_PROPERTY: action,
        APP_GESTURE_RECOGNIZER_PROPERTY: recognizer,
    }


def tap_gesture_data(x: float, y: float) -> Dict[str, Any]:
    event_data = _gesture("tap", "TapGesture")
    event_data[COORDINATE_X_PROPERTY] = x
    event_data[COORDINATE_Y_PROPERTY] = y
    return event_data


def long_press_gesture_data(x: float, y: float, duration: float) -> Dict[str, Any]:
    event_data = _gesture("long_press", "LongPressGesture")
    event_data[COORDINATE_X_PROPERTY] = x
    event_data[COORDINATE_Y_PROPERTY] = y
    event_data[DURATION_PROPERTY] = duration
    return event_data


def drag_gesture_data(
    start: Tuple[float, float],
    end: Tuple[float, float],
    translation: Tuple[float, float],
) -> Dict[str, Any]:
    """``start``/``end`` are ``(x, y)``; ``translation`` is ``(dx, dy)``."""
    event_data = _gesture("drag", "DragGesture")
    event_data["start_x"], event_data["start_y"] = start
    event_data["end_x"], event_data["end_y"] = end
    event_data["translation_x"], event_data["translation_y"] = translation
    return event_data


def pinch_gesture_data(x: float, y: float, scale: float) -> Dict[str, Any]:
    event_data = _gesture("pinch", "MagnificationGesture")
    event_data[COORDINATE_X_PROPERTY] = x
    event_data[COORDINATE_Y_PROPERTY] = y
    event_data["scale"] = scale
    return event_data


def rotation_gesture_data(x: float, y: float, angle_degrees: float) -> Dict[str, Any]:
    event_data = _gesture("rotation", "RotationGesture")
    event_data[COORDINATE_X_PROPERTY] = x
    event_data[COORDINATE_Y_PROPERTY] = y
    event_data["angle_degrees"] = angle_degrees
    event_data["angle_radians"] = math.radians(angle_degrees)
    return event_data
