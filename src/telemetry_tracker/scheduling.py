"""Serial work queue and timers used by the tracker.

All queue mutations run on a single worker thread so they are totally ordered
without explicit locks. Timers only ever submit work; they never block.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional

logger = logging.getLogger("telemetry_tracker.scheduling")


class SerialQueue:
    """Runs submitted callables one at a time, in submission order."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._closed = False

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Optional[Future]:
        """Schedule ``fn``; returns None once the queue has been shut down."""
        if self._closed:
            logger.debug("%s is shut down; dropping %s", self.name, fn)
            return None
        try:
            return self._executor.submit(self._run, fn, *args, **kwargs)
        except RuntimeError:
            # Executor shut down concurrently.
            return None

    def _run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception:
            logger.exception("Task %r failed on %s", fn, self.name)
            return None

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Block until every task submitted so far has finished.

        Returns False if the timeout elapsed first.
        """
        marker = self.submit(lambda: None)
        if marker is None:
            return True
        try:
            marker.result(timeout=timeout)
        except FutureTimeoutError:
            return False
        return True

    def shutdown(self, wait: bool = False) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=not wait)


class RepeatingTimer:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread."""

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "flush-timer") -> None:
        self.interval = interval
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _loop(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Timer callback failed")

    def cancel(self) -> None:
        self._stopped.set()

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._stopped.is_set()


class DelayedTask:
    """Fire-once callback after a delay; cancel() invalidates it."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self._timer = threading.Timer(delay, self._fire, args=(callback,))
        self._timer.daemon = True

    def _fire(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Delayed task failed")

    def start(self) -> "DelayedTask":
        self._timer.start()
        return self

    def cancel(self) -> None:
        self._timer.cancel()


def call_later(delay: float, callback: Callable[[], None]) -> DelayedTask:
    """Schedule ``callback`` once after ``delay`` seconds."""
    return DelayedTask(delay, callback).start()
