"""Flush triggering: size threshold, periodic timer and manual flush."""

import logging
from concurrent.futures import Future
from typing import Optional

from telemetry_tracker.delivery import DeliveryEngine, DeliveryOutcome
from telemetry_tracker.event_queue import EventQueue, QueuedEvent
from telemetry_tracker.scheduling import RepeatingTimer, SerialQueue

logger = logging.getLogger("telemetry_tracker.dispatcher")


class Dispatcher:
    """Decides when queued events go out and puts failed ones back.

    ``enqueue`` and ``flush_now`` must run on ``serial``; everything else is
    safe to call from any thread because it only submits work there.
    """

    def __init__(
        self,
        queue: EventQueue,
        serial: SerialQueue,
        delivery: DeliveryEngine,
        batch_size: int,
        flush_interval: float,
    ) -> None:
        self.queue = queue
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self._serial = serial
        self._delivery = delivery
        self._timer: Optional[RepeatingTimer] = None

    def enqueue(self, item: QueuedEvent) -> None:
        """Append ``item`` and flush if the batch size has been reached."""
        if self.queue.append(item) >= self.batch_size:
            self.flush_now()

    def flush(self) -> Optional[Future]:
        """Schedule a flush on the serial queue."""
        return self._serial.submit(self.flush_now)

    def flush_now(self) -> None:
        batch = self.queue.swap_out()
        if not batch:
            return
        logger.debug("Flushing %d events", len(batch))
        self._delivery.send(batch, self._on_delivered)

    def _on_delivered(self, outcome: DeliveryOutcome) -> None:
        # Runs on the delivery thread; queue mutation goes back to serial.
        if outcome.failed:
            self._serial.submit(self.queue.restore, outcome.failed)

    def start_timer(self) -> None:
        if self._timer is not None:
            return
        self._timer = RepeatingTimer(self.flush_interval, self.flush, name="telemetry-flush")
        self._timer.start()

    def stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
