"""Rage-click and dead-click detection from a raw stream of taps.

A *rage click* is three or more taps inside one second that all land within
50 points of the first tap in the window. A *dead click* is a tap that no
control responded to within the dead-click timeout.

The detector owns its histories privately and reports derived events only
through the ``emit`` callback it is given; it never looks at the event queue.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from telemetry_tracker.constants import (
    BEGIN_TIME_PROPERTY,
    CLICK_COUNT_PROPERTY,
    CLICKS_PROPERTY,
    COORDINATE_X_PROPERTY,
    COORDINATE_Y_PROPERTY,
    DEAD_CLICK_EVENT,
    DURATION_PROPERTY,
    END_TIME_PROPERTY,
    RAGE_CLICK_EVENT,
)
from telemetry_tracker.scheduling import call_later

logger = logging.getLogger("telemetry_tracker.frustration")

RAGE_CLICK_THRESHOLD: int = 3
RAGE_CLICK_TIME_WINDOW: float = 1.0
RAGE_CLICK_DISTANCE_THRESHOLD: float = 50.0
DEFAULT_DEAD_CLICK_TIMEOUT: float = 2.0
DEAD_CLICK_RATE_WINDOW: float = 60.0
DEAD_CLICK_HISTORY_RETENTION: float = 300.0

EmitFn = Callable[[str, Dict[str, Any]], None]


class Cancellable(Protocol):
    def cancel(self) -> None: ...


SchedulerFn = Callable[[float, Callable[[], None]], Cancellable]


@dataclass(frozen=True)
class ClickRecord:
    """One tap: epoch time and position."""

    time: float
    x: float
    y: float


def _finite_or_zero(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


class FrustrationDetector:
    """Stateful click-pattern analyzer.

    Args:
        emit: Called with ``(event_type, data)`` for each derived event.
        max_dead_clicks_per_minute: Dead-click events allowed in any trailing
            60 second window.
        dead_click_timeout: Seconds a tap may go unanswered before it counts
            as a dead click.
        clock: Returns the current epoch time in seconds.
        schedule: ``schedule(delay, callback)`` runs ``callback`` once after
            ``delay`` and returns a handle with ``cancel()``.
    """

    def __init__(
        self,
        emit: EmitFn,
        max_dead_clicks_per_minute: int = 10,
        dead_click_timeout: float = DEFAULT_DEAD_CLICK_TIMEOUT,
        clock: Callable[[], float] = time.time,
        schedule: SchedulerFn = call_later,
    ) -> None:
        self._emit = emit
        self.max_dead_clicks_per_minute = max_dead_clicks_per_minute
        self.dead_click_timeout = dead_click_timeout
        self._clock = clock
        self._schedule = schedule
        self._lock = threading.Lock()
        self._enabled = False
        self._click_history: List[ClickRecord] = []
        self._dead_click_start_time: Optional[float] = None
        self._dead_click_history: List[float] = []
        self._pending: List[Cancellable] = []

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    @property
    def click_history(self) -> List[ClickRecord]:
        with self._lock:
            return list(self._click_history)

    @property
    def dead_click_start_time(self) -> Optional[float]:
        return self._dead_click_start_time

    @property
    def dead_click_history(self) -> List[float]:
        with self._lock:
            return list(self._dead_click_history)

    def report_click(self, x: float, y: float) -> None:
        """Record a tap and run both detectors."""
        if not self._enabled:
            return

        now = self._clock()
        record = ClickRecord(time=now, x=_finite_or_zero(x), y=_finite_or_zero(y))

        rage_data: Optional[Dict[str, Any]] = None
        with self._lock:
            self._click_history.append(record)
            self._click_history = [
                click for click in self._click_history
                if now - click.time <= RAGE_CLICK_TIME_WINDOW
            ]
            if len(self._click_history) >= RAGE_CLICK_THRESHOLD and self._is_rage_click():
                rage_data = self._rage_click_data()
                self._click_history.clear()
            self._dead_click_start_time = now

        if rage_data is not None:
            logger.debug("Rage click detected (%d clicks)", rage_data[CLICK_COUNT_PROPERTY])
            self._emit(RAGE_CLICK_EVENT, rage_data)

        handle = self._schedule(self.dead_click_timeout, self._check_for_dead_click)
        with self._lock:
            self._pending.append(handle)

    def report_response(self) -> None:
        """The most recent tap produced a visible reaction."""
        with self._lock:
            self._dead_click_start_time = None

    def cancel_pending(self) -> None:
        """Invalidate all scheduled dead-click checks."""
        with self._lock:
            pending, self._pending = self._pending, []
            self._dead_click_start_time = None
        for handle in pending:
            handle.cancel()

    def _is_rage_click(self) -> bool:
        first = self._click_history[0]
        return all(
            math.hypot(click.x - first.x, click.y - first.y) <= RAGE_CLICK_DISTANCE_THRESHOLD
            for click in self._click_history
        )

    def _rage_click_data(self) -> Dict[str, Any]:
        first = self._click_history[0]
        last = self._click_history[-1]
        return {
            BEGIN_TIME_PROPERTY: first.time,
            END_TIME_PROPERTY: last.time,
            DURATION_PROPERTY: last.time - first.time,
            CLICK_COUNT_PROPERTY: len(self._click_history),
            CLICKS_PROPERTY: [
                {COORDINATE_X_PROPERTY: click.x, COORDINATE_Y_PROPERTY: click.y}
                for click in self._click_history
            ],
        }

    def _check_for_dead_click(self) -> None:
        now = self._clock()
        dead_data: Optional[Dict[str, Any]] = None
        with self._lock:
            if self._pending:
                self._pending.pop(0)
            start_time = self._dead_click_start_time
            if start_time is None:
                return
            recent = [t for t in self._dead_click_history if now - t < DEAD_CLICK_RATE_WINDOW]
            if len(recent) < self.max_dead_clicks_per_minute:
                dead_data = {
                    BEGIN_TIME_PROPERTY: start_time,
                    END_TIME_PROPERTY: now,
                    DURATION_PROPERTY: now - start_time,
                }
                self._dead_click_history.append(now)
                self._dead_click_history = [
                    t for t in self._dead_click_history
                    if now - t < DEAD_CLICK_HISTORY_RETENTION
                ]
            else:
                logger.debug("Dead click suppressed by rate limit")
            self._dead_click_start_time = None

        if dead_data is not None:
            self._emit(DEAD_CLICK_EVENT, dead_data)
