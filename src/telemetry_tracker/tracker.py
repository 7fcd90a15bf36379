"""Tracker facade: the object hosts and event sources call into.

A ``Tracker`` is constructed explicitly and started once with a
``TrackingConfig``. Every recorded event goes through the same path on a
single serial worker: session expiry check, event creation with the current
page context, enqueue, and a flush once the batch size is reached.

Example:
    >>> tracker = Tracker(storage=JsonFileTrackingStorage("tracking.json"))
    >>> tracker.start(TrackingConfig(product_id="shop", tracking_endpoint=url))
    >>> tracker.report_screen_view("Home")
    >>> tracker.shutdown()
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import httpx

from telemetry_tracker.config import TrackingConfig
from telemetry_tracker.constants import (
    APPLICATION_BACKGROUNDED_EVENT,
    APPLICATION_OPENED_EVENT,
    DEEP_LINK_OPENED_EVENT,
    ELEMENT_INTERACTED_EVENT,
    NETWORK_CONNECTIVITY_CHANGED_EVENT,
    NETWORK_REQUEST_EVENT,
    SCREEN_VIEWED_EVENT,
    SESSION_END_EVENT,
    SESSION_START_EVENT,
    UNKNOWN_SCREEN_NAME,
)
from telemetry_tracker.delivery import DeliveryEngine, validate_endpoint
from telemetry_tracker.device import DeviceInfo
from telemetry_tracker.dispatcher import Dispatcher
from telemetry_tracker.event_queue import EventQueue, QueuedEvent
from telemetry_tracker.frustration import FrustrationDetector, SchedulerFn
from telemetry_tracker.interactions import (
    BUTTON_VIEW_CLASS,
    LIST_ITEM_VIEW_CLASS,
    TEXT_FIELD_VIEW_CLASS,
    accessibility_data,
    deep_link_data,
    drag_gesture_data,
    element_interaction_data,
    long_press_gesture_data,
    pinch_gesture_data,
    rotation_gesture_data,
    screen_view_data,
    tap_gesture_data,
)
from telemetry_tracker.lifecycle import LifecycleEvent, detect_install_or_update, opened_event_data
from telemetry_tracker.models import ConfigurationError, Event, TrackingError, utc_now
from telemetry_tracker.network import (
    Moment,
    NetworkCapturePolicy,
    connectivity_data,
    network_request_data,
)
from telemetry_tracker.sanitizer import sanitize
from telemetry_tracker.scheduling import SerialQueue, call_later
from telemetry_tracker.session import SessionManager, SessionTransition
from telemetry_tracker.sources import EventSource
from telemetry_tracker.storage import InMemoryTrackingStorage, TrackingStorage

logger = logging.getLogger("telemetry_tracker.tracker")


class Tracker:
    """Client-side event capture and delivery.

    Args:
        storage: Persistence for session, version and install state.
            Defaults to an in-memory store.
        http_client: ``httpx.Client`` used for delivery. The tracker builds
            one from the config when omitted.
        device_info: Device description; detected from the host if omitted.
        clock: Returns the current time as an aware UTC datetime.
        schedule: Delayed-task scheduler for dead-click checks.
    """

    def __init__(
        self,
        storage: Optional[TrackingStorage] = None,
        http_client: Optional[httpx.Client] = None,
        device_info: Optional[DeviceInfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
        schedule: Optional[SchedulerFn] = None,
    ) -> None:
        self.storage = storage if storage is not None else InMemoryTrackingStorage()
        self.device_info = device_info or DeviceInfo.detect(self.storage)
        self._http_client = http_client
        self._clock = clock or utc_now
        self._schedule = schedule or call_later

        self._lock = threading.Lock()
        self._config: Optional[TrackingConfig] = None
        self._closed = False
        self._serial = SerialQueue("telemetry-serial")
        self._queue = EventQueue()
        self._session: Optional[SessionManager] = None
        self._delivery: Optional[DeliveryEngine] = None
        self._dispatcher: Optional[Dispatcher] = None
        self._frustration: Optional[FrustrationDetector] = None
        self._network_policy = NetworkCapturePolicy()
        self._sources: List[EventSource] = []

        self.anonymous_id = self.device_info.device_id
        self._screen_name = UNKNOWN_SCREEN_NAME
        self._navigation_title: Optional[str] = None
        self._entered_background = False

    def __enter__(self) -> "Tracker":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    # ── Lifecycle ────────────────────────────────────────────────────────

    @property
    def config(self) -> Optional[TrackingConfig]:
        return self._config

    @property
    def started(self) -> bool:
        return self._config is not None

    @property
    def session_id(self) -> Optional[str]:
        return self._session.session_id if self._session else None

    def start(self, config: TrackingConfig) -> None:
        """Configure the tracker and begin capturing.

        Only the first call has any effect. With auto-capture on, records in
        order: session end/start (if the persisted session could not be
        resumed), install or update, and ``Application Opened``. An expired
        persisted session is closed and replaced even with auto-capture off.
        Storage failures are logged and never abort startup.
        """
        with self._lock:
            if self._closed:
                logger.warning("Tracker has been shut down; ignoring start()")
                return
            if self._config is not None:
                logger.warning("Tracker already started; ignoring start()")
                return

            if config.enable_debug_logging:
                logging.getLogger("telemetry_tracker").setLevel(logging.DEBUG)
            try:
                validate_endpoint(config.tracking_endpoint)
            except ConfigurationError as e:
                logger.error("%s; events will be captured but not delivered", e)

            self.anonymous_id = config.anonymous_id or self.device_info.device_id
            self._network_policy = NetworkCapturePolicy(
                query_params=config.capture_network_query_params,
                headers=config.capture_network_headers,
                bodies=config.capture_network_bodies,
            )
            self._session = SessionManager(self.storage, config.session_timeout_seconds)
            self._delivery = DeliveryEngine(
                config,
                self.device_info,
                http_client=self._http_client,
                page_url=lambda: self.page_url,
                clock=self._clock,
            )
            self._dispatcher = Dispatcher(
                self._queue,
                self._serial,
                self._delivery,
                batch_size=config.batch_size,
                flush_interval=config.flush_interval_seconds,
            )
            self._frustration = FrustrationDetector(
                emit=self.track,
                max_dead_clicks_per_minute=config.max_dead_clicks_per_minute,
                dead_click_timeout=config.dead_click_timeout_seconds,
                clock=lambda: self._clock().timestamp(),
                schedule=self._schedule,
            )
            self._config = config

        now = self._now()
        lifecycle_event = None
        if config.enable_auto_capture:
            try:
                lifecycle_event = detect_install_or_update(
                    self.storage, config.app_version, config.app_build
                )
            except TrackingError as e:
                logger.error("Install/update detection failed: %s", e)
        transition = self._session.recover_or_start(now)
        self._serial.submit(self._record_start, transition, lifecycle_event, now, self.page_title)

        self._dispatcher.start_timer()
        if config.enable_auto_capture:
            self.track(
                APPLICATION_OPENED_EVENT,
                opened_event_data(config.app_version, config.app_build, from_background=False),
            )
        self._frustration.set_enabled(True)

        for source in list(self._sources):
            source.attach(self)
        logger.debug("Tracker started for product %s", config.product_id)

    def shutdown(self) -> None:
        """Stop timers and background work; undelivered events are discarded."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self._dispatcher is not None:
            self._dispatcher.stop_timer()
        if self._frustration is not None:
            self._frustration.set_enabled(False)
            self._frustration.cancel_pending()
        for source in list(self._sources):
            try:
                source.detach()
            except Exception:
                logger.exception("Failed to detach event source %r", source)
        self._serial.shutdown(wait=False)
        if self._delivery is not None:
            self._delivery.close()
        logger.debug("Tracker shut down with %d undelivered events", len(self._queue))

    def register_source(self, source: EventSource) -> None:
        """Add an event source; it is attached now if already started."""
        self._sources.append(source)
        if self.started and not self._closed:
            source.attach(self)

    def unregister_source(self, source: EventSource) -> None:
        if source in self._sources:
            self._sources.remove(source)
            source.detach()

    # ── Recording ────────────────────────────────────────────────────────

    def track(
        self,
        event_type: str,
        data: Optional[Mapping[str, Any]] = None,
        element_details: Optional[str] = None,
    ) -> None:
        """Record a custom event. Sensitive values in ``data`` are redacted."""
        self._submit(event_type, sanitize(data or {}), element_details)

    def _submit(
        self,
        event_type: str,
        data: Dict[str, Any],
        element_details: Optional[str] = None,
    ) -> None:
        if self._config is None:
            logger.warning("Tracker not started; dropping %r event. Call start() first.", event_type)
            return
        if self._closed:
            logger.warning("Tracker has been shut down; dropping %r event", event_type)
            return
        if not event_type:
            logger.warning("Ignoring event with empty type")
            return
        now = self._now()
        self._serial.submit(self._record, event_type, data, element_details, now, self.page_title)

    def _record(
        self,
        event_type: str,
        data: Dict[str, Any],
        element_details: Optional[str],
        now: datetime,
        page_title: str,
    ) -> None:
        transition = self._session.check_expiry(now)
        if transition is not None:
            self._record_transition(transition, now, page_title)
        self._append(event_type, data, element_details, now, page_title, self._session.session_id)

    def _record_start(
        self,
        transition: Optional[SessionTransition],
        lifecycle_event: Optional[LifecycleEvent],
        now: datetime,
        page_title: str,
    ) -> None:
        if transition is not None:
            self._record_transition(transition, now, page_title)
        if lifecycle_event is not None:
            self._append(
                lifecycle_event.event_type,
                sanitize(lifecycle_event.data),
                None,
                now,
                page_title,
                self._session.session_id,
            )

    def _record_transition(
        self, transition: SessionTransition, now: datetime, page_title: str
    ) -> None:
        if transition.old_id:
            self._append(SESSION_END_EVENT, {}, None, now, page_title, transition.old_id)
        elif not self._config.enable_auto_capture:
            # A first-ever session is only announced with auto-capture on.
            return
        self._append(SESSION_START_EVENT, {}, None, now, page_title, transition.new_id)

    def _append(
        self,
        event_type: str,
        data: Dict[str, Any],
        element_details: Optional[str],
        now: datetime,
        page_title: str,
        session_id: str,
    ) -> None:
        event = Event.create(
            event_type,
            page_url=self.page_url,
            page_title=page_title,
            data=data,
            element_details=element_details,
            timestamp=now,
        )
        item = QueuedEvent(
            sequence=self._queue.next_sequence(),
            session_id=session_id,
            event=event,
        )
        self._dispatcher.enqueue(item)
        self._session.touch(now)

    def _now(self) -> datetime:
        return self._clock()

    # ── Delivery ─────────────────────────────────────────────────────────

    def flush(self) -> None:
        """Send everything queued so far without waiting for the timer."""
        if self._dispatcher is None or self._closed:
            logger.debug("flush() before start() or after shutdown; nothing to do")
            return
        self._dispatcher.flush()

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until queued work and in-flight sends have settled.

        Returns False if any stage did not finish within ``timeout``.
        """
        if not self._serial.drain(timeout):
            return False
        if self._delivery is None:
            return True
        if not self._delivery.drain(timeout):
            return False
        return self._serial.drain(timeout)

    def queued(self) -> List[QueuedEvent]:
        """Snapshot of events waiting to be sent, oldest first."""
        return self._queue.snapshot()

    def pending_events(self) -> List[Event]:
        return self._queue.events()

    # ── Page context ─────────────────────────────────────────────────────

    @property
    def page_url(self) -> str:
        # Native screens have no URL.
        return ""

    @property
    def page_title(self) -> str:
        """Navigation title if set, otherwise the current screen name."""
        return self._navigation_title or self._screen_name

    @property
    def current_screen_name(self) -> str:
        return self._screen_name

    @property
    def current_navigation_title(self) -> Optional[str]:
        return self._navigation_title

    def set_current_screen_name(self, screen_name: str) -> None:
        self._screen_name = screen_name

    def set_current_navigation_title(self, title: Optional[str]) -> None:
        """Set the title used for outgoing events; None restores the screen name."""
        self._navigation_title = title

    def update_navigation_title(self, title: Optional[str]) -> None:
        """Like ``set_current_navigation_title`` but blank titles also clear."""
        if title is not None and not title.strip():
            title = None
        self.set_current_navigation_title(title)

    # ── Application lifecycle hooks ──────────────────────────────────────

    def _auto_capture(self) -> bool:
        return self._config is not None and self._config.enable_auto_capture

    def app_did_become_active(self) -> None:
        """Foreground: rotate an expired session and record ``Application Opened``."""
        if not self._auto_capture():
            return
        from_background = self._entered_background
        self._entered_background = False
        self.track(
            APPLICATION_OPENED_EVENT,
            opened_event_data(
                self._config.app_version, self._config.app_build, from_background
            ),
        )

    def app_will_resign_active(self) -> None:
        if not self._auto_capture():
            return
        self.flush()

    def app_did_enter_background(self) -> None:
        if not self._auto_capture():
            return
        self._entered_background = True
        self.track(APPLICATION_BACKGROUNDED_EVENT)

    # ── Event source API ─────────────────────────────────────────────────

    def report_screen_view(self, screen_name: str, data: Optional[Mapping[str, Any]] = None) -> None:
        """Record ``Screen Viewed`` and make ``screen_name`` the current screen."""
        self.set_current_screen_name(screen_name)
        self.track(SCREEN_VIEWED_EVENT, screen_view_data(screen_name, data))

    def report_interaction(
        self,
        action: str,
        target_view_class: Optional[str] = None,
        target_text: Optional[str] = None,
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        hierarchy: Optional[List[str]] = None,
        data: Optional[Mapping[str, Any]] = None,
        element_details: Optional[str] = None,
    ) -> None:
        self.track(
            ELEMENT_INTERACTED_EVENT,
            element_interaction_data(
                action,
                target_view_class=target_view_class,
                target_text=target_text,
                accessibility_label=accessibility_label,
                accessibility_identifier=accessibility_identifier,
                hierarchy=hierarchy,
                data=data,
            ),
            element_details=element_details,
        )

    def track_button_tap(
        self,
        button_title: str,
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.report_interaction(
            "tap",
            target_view_class=BUTTON_VIEW_CLASS,
            target_text=button_title,
            accessibility_label=accessibility_label,
            accessibility_identifier=accessibility_identifier,
            data=data,
        )

    def track_text_field_interaction(
        self,
        action: str,
        placeholder: Optional[str] = None,
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.report_interaction(
            action,
            target_view_class=TEXT_FIELD_VIEW_CLASS,
            target_text=placeholder,
            accessibility_label=accessibility_label,
            accessibility_identifier=accessibility_identifier,
            data=data,
        )

    def track_list_item_interaction(
        self,
        action: str,
        item_text: Optional[str] = None,
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.report_interaction(
            action,
            target_view_class=LIST_ITEM_VIEW_CLASS,
            target_text=item_text,
            accessibility_label=accessibility_label,
            accessibility_identifier=accessibility_identifier,
            data=data,
        )

    def report_click(self, x: float, y: float) -> None:
        """Feed a raw tap to the rage-click and dead-click detectors."""
        if self._frustration is None:
            logger.warning("Tracker not started; ignoring click")
            return
        self._frustration.report_click(x, y)

    def report_response(self) -> None:
        """The last tap produced a visible reaction."""
        if self._frustration is not None:
            self._frustration.report_response()

    def report_deep_link(self, url: str, referrer: Optional[str] = None) -> None:
        self.track(DEEP_LINK_OPENED_EVENT, deep_link_data(url, referrer))

    def report_network_request(
        self,
        url: str,
        method: str,
        start_time: Moment,
        status_code: Optional[int] = None,
        error_code: Optional[int] = None,
        error_message: Optional[str] = None,
        completion_time: Optional[Moment] = None,
        request_body_size: Optional[int] = None,
        response_body_size: Optional[int] = None,
        request_headers: Optional[Mapping[str, str]] = None,
        response_headers: Optional[Mapping[str, str]] = None,
        request_body: Optional[str] = None,
        response_body: Optional[str] = None,
    ) -> None:
        """Record ``Network Request``.

        Query, headers and bodies are included only when the config's
        privacy flags allow it.
        """
        self.track(
            NETWORK_REQUEST_EVENT,
            network_request_data(
                url,
                method,
                start_time,
                policy=self._network_policy,
                status_code=status_code,
                error_code=error_code,
                error_message=error_message,
                completion_time=completion_time,
                request_body_size=request_body_size,
                response_body_size=response_body_size,
                request_headers=request_headers,
                response_headers=response_headers,
                request_body=request_body,
                response_body=response_body,
            ),
        )

    def track_successful_request(
        self,
        url: str,
        method: str,
        status_code: int,
        start_time: Moment,
        completion_time: Moment,
        request_body_size: Optional[int] = None,
        response_body_size: Optional[int] = None,
        request_headers: Optional[Mapping[str, str]] = None,
        response_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.report_network_request(
            url,
            method,
            start_time,
            status_code=status_code,
            completion_time=completion_time,
            request_body_size=request_body_size,
            response_body_size=response_body_size,
            request_headers=request_headers,
            response_headers=response_headers,
        )

    def track_failed_request(
        self,
        url: str,
        method: str,
        error_code: int,
        error_message: str,
        start_time: Moment,
        completion_time: Optional[Moment] = None,
        request_body_size: Optional[int] = None,
    ) -> None:
        self.report_network_request(
            url,
            method,
            start_time,
            error_code=error_code,
            error_message=error_message,
            completion_time=completion_time,
            request_body_size=request_body_size,
        )

    def report_connectivity_change(self, is_online: bool, connection_type: str = "unknown") -> None:
        self.track(NETWORK_CONNECTIVITY_CHANGED_EVENT, connectivity_data(is_online, connection_type))

    # Gestures record library-generated fields verbatim; only the
    # host-supplied labels and data are sanitized.

    def _track_gesture(
        self,
        fields: Dict[str, Any],
        accessibility_label: Optional[str],
        accessibility_identifier: Optional[str],
        data: Optional[Mapping[str, Any]],
    ) -> None:
        event_data = sanitize(accessibility_data(accessibility_label, accessibility_identifier, data))
        event_data.update(fields)
        self._submit(ELEMENT_INTERACTED_EVENT, event_data)

    def track_tap_gesture(
        self,
        x: float,
        y: float,
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._track_gesture(
            tap_gesture_data(x, y), accessibility_label, accessibility_identifier, data
        )

    def track_long_press_gesture(
        self,
        x: float,
        y: float,
        duration: float,
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._track_gesture(
            long_press_gesture_data(x, y, duration),
            accessibility_label,
            accessibility_identifier,
            data,
        )

    def track_drag_gesture(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        translation: Tuple[float, float],
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._track_gesture(
            drag_gesture_data(start, end, translation),
            accessibility_label,
            accessibility_identifier,
            data,
        )

    def track_pinch_gesture(
        self,
        x: float,
        y: float,
        scale: float,
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._track_gesture(
            pinch_gesture_data(x, y, scale), accessibility_label, accessibility_identifier, data
        )

    def track_rotation_gesture(
        self,
        x: float,
        y: float,
        angle_degrees: float,
        accessibility_label: Optional[str] = None,
        accessibility_identifier: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._track_gesture(
            rotation_gesture_data(x, y, angle_degrees),
            accessibility_label,
            accessibility_identifier,
            data,
        )
