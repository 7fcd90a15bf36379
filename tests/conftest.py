"""Shared pytest fixtures and fakes for all tests."""
import json
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

import httpx
import pytest

from telemetry_tracker import (
    DeviceInfo,
    Event,
    InMemoryTrackingStorage,
    QueuedEvent,
    StorageError,
    Tracker,
    TrackingConfig,
)

ENDPOINT = "https://collector.example.com/v1/events"
T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_config(**overrides: Any) -> TrackingConfig:
    """Build a TrackingConfig with test defaults.

    Auto-capture is off and the flush timer is long so tests only see the
    events they record themselves.
    """
    defaults: Dict[str, Any] = {
        "product_id": "test-product",
        "tracking_endpoint": ENDPOINT,
        "enable_auto_capture": False,
        "flush_interval_seconds": 3600.0,
        "batch_size": 100,
    }
    defaults.update(overrides)
    return TrackingConfig(**defaults)


def make_event(**overrides: Any) -> Event:
    """Build an Event with defaults for all required fields."""
    defaults: Dict[str, Any] = {
        "event_type": "TestEvent",
        "page_title": "Home",
        "data": {},
        "timestamp": T0,
    }
    defaults.update(overrides)
    return Event.create(**defaults)


def make_queued(sequence: int, session_id: str = "session-a", **overrides: Any) -> QueuedEvent:
    return QueuedEvent(
        sequence=sequence,
        session_id=session_id,
        event=make_event(**overrides),
    )


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def epoch(self) -> float:
        return self.now.timestamp()


class ManualHandle:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Delayed-task scheduler that only fires when told to."""

    def __init__(self) -> None:
        self.handles: List[ManualHandle] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def fire_all(self) -> None:
        handles, self.handles = self.handles, []
        for handle in handles:
            if not handle.cancelled:
                handle.callback()


class FailingStorage(InMemoryTrackingStorage):
    """In-memory storage whose reads and writes raise while ``failing`` is set."""

    def __init__(self, failing: bool = True) -> None:
        super().__init__()
        self.failing = failing

    def _check(self) -> None:
        if self.failing:
            raise StorageError("disk full")

    def get_string(self, key: str) -> Optional[str]:
        self._check()
        return super().get_string(key)

    def set_string(self, key: str, value: str) -> None:
        self._check()
        super().set_string(key, value)

    def get_bool(self, key: str) -> bool:
        self._check()
        return super().get_bool(key)

    def set_bool(self, key: str, value: bool) -> None:
        self._check()
        super().set_bool(key, value)

    def get_date(self, key: str) -> Optional[datetime]:
        self._check()
        return super().get_date(key)

    def set_date(self, key: str, value: datetime) -> None:
        self._check()
        super().set_date(key, value)


class Collector:
    """Fake collector behind ``httpx.MockTransport``.

    ``responses`` is consumed one entry per request: an int is returned as
    the status code, an exception instance is raised. When exhausted every
    request gets 200.

    Setting ``gate`` holds each request open until the event is set;
    ``received`` is set as soon as a request arrives.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.responses: List[Any] = []
        self.gate: Optional[threading.Event] = None
        self.received = threading.Event()
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            outcome = self.responses.pop(0) if self.responses else 200
        self.received.set()
        if self.gate is not None:
            self.gate.wait(5)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"ok": outcome < 300})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    @property
    def event_types(self) -> List[str]:
        return [e["eventType"] for p in self.payloads for e in p["events"]]


@pytest.fixture
def storage() -> InMemoryTrackingStorage:
    return InMemoryTrackingStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def collector() -> Collector:
    return Collector()


@pytest.fixture
def device_info() -> DeviceInfo:
    return DeviceInfo(os="Linux", version="6.1", model="x86_64", device_id="device-123")


@pytest.fixture
def make_tracker(
    storage: InMemoryTrackingStorage,
    clock: FakeClock,
    scheduler: ManualScheduler,
    collector: Collector,
    device_info: DeviceInfo,
) -> Iterator[Callable[..., Tracker]]:
    """Factory for trackers wired to the fakes; all are shut down afterwards."""
    created: List[Tracker] = []

    def factory(config: Optional[TrackingConfig] = None, **kwargs: Any) -> Tracker:
        params: Dict[str, Any] = {
            "storage": storage,
            "http_client": collector.client(),
            "device_info": device_info,
            "clock": clock,
            "schedule": scheduler,
        }
        params.update(kwargs)
        tracker = Tracker(**params)
        created.append(tracker)
        if config is not None:
            tracker.start(config)
        return tracker

    yield factory
    for tracker in created:
        tracker.shutdown()
