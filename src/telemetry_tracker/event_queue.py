"""In-memory ordered buffer of events awaiting delivery."""

import heapq
import itertools
import threading
from dataclasses import dataclass, replace
from typing import Iterable, List

from telemetry_tracker.models import Event


@dataclass(frozen=True)
class QueuedEvent:
    """An event plus the bookkeeping the delivery path needs.

    Attributes:
        sequence: Monotonic enqueue counter; defines the global event order.
        session_id: Session that was current when the event was recorded.
        event: The immutable event itself.
        serialization_failures: Times this event's batch failed to encode.
    """

    sequence: int
    session_id: str
    event: Event
    serialization_failures: int = 0

    def with_serialization_failure(self) -> "QueuedEvent":
        return replace(self, serialization_failures=self.serialization_failures + 1)


class EventQueue:
    """Ordered pending-event list with swap-out and restore.

    Mutations are expected to run on the tracker's serial queue; the internal
    lock only keeps ``snapshot()`` and ``len()`` consistent for readers on
    other threads.
    """

    def __init__(self) -> None:
        self._items: List[QueuedEvent] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def next_sequence(self) -> int:
        return next(self._counter)

    def append(self, item: QueuedEvent) -> int:
        """Add ``item`` at the back; returns the new queue length."""
        with self._lock:
            self._items.append(item)
            return len(self._items)

    def swap_out(self) -> List[QueuedEvent]:
        """Atomically take every queued item, leaving the queue empty."""
        with self._lock:
            batch, self._items = self._items, []
        return batch

    def restore(self, failed: Iterable[QueuedEvent]) -> None:
        """Put failed items back in their original place in the order.

        Failed items always predate anything enqueued after their flush, so
        merging on ``sequence`` puts them ahead of newer events while keeping
        their relative order, even when several batches fail out of order.
        """
        failed = sorted(failed, key=lambda item: item.sequence)
        if not failed:
            return
        with self._lock:
            self._items = list(
                heapq.merge(failed, self._items, key=lambda item: item.sequence)
            )

    def snapshot(self) -> List[QueuedEvent]:
        """Copy of the current contents, oldest first."""
        with self._lock:
            return list(self._items)

    def events(self) -> List[Event]:
        return [item.event for item in self.snapshot()]
