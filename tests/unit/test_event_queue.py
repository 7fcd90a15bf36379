"""Unit tests for EventQueue ordering, swap-out and restore."""
from telemetry_tracker.event_queue import EventQueue

from conftest import make_queued


def _types(items):
    return [item.event.event_type for item in items]


class TestEventQueue:
    """Tests for EventQueue."""

    def test_append_returns_length(self):
        queue = EventQueue()
        assert queue.append(make_queued(0)) == 1
        assert queue.append(make_queued(1)) == 2
        assert len(queue) == 2

    def test_swap_out_empties(self):
        """Test swap_out returns everything and leaves an empty queue."""
        queue = EventQueue()
        for i in range(3):
            queue.append(make_queued(i, event_type=f"E{i}"))
        batch = queue.swap_out()
        assert _types(batch) == ["E0", "E1", "E2"]
        assert len(queue) == 0
        assert queue.swap_out() == []

    def test_new_events_unaffected_by_swap(self):
        queue = EventQueue()
        queue.append(make_queued(0, event_type="old"))
        batch = queue.swap_out()
        queue.append(make_queued(1, event_type="new"))
        assert _types(batch) == ["old"]
        assert _types(queue.snapshot()) == ["new"]

    def test_restore_puts_failed_ahead_of_newer(self):
        """Test failed events regain their order ahead of later events."""
        queue = EventQueue()
        for i in range(3):
            queue.append(make_queued(i, event_type=f"E{i}"))
        failed = queue.swap_out()
        queue.append(make_queued(3, event_type="E3"))
        queue.append(make_queued(4, event_type="E4"))
        queue.restore(failed)
        assert _types(queue.snapshot()) == ["E0", "E1", "E2", "E3", "E4"]

    def test_restore_out_of_order_batches(self):
        """Test a later batch failing first still ends up behind the earlier one."""
        queue = EventQueue()
        first = [make_queued(0, event_type="A0"), make_queued(1, event_type="A1")]
        second = [make_queued(2, event_type="B0")]
        queue.append(make_queued(3, event_type="C0"))
        queue.restore(second)
        queue.restore(first)
        assert _types(queue.snapshot()) == ["A0", "A1", "B0", "C0"]

    def test_restore_empty_is_noop(self):
        queue = EventQueue()
        queue.append(make_queued(0))
        queue.restore([])
        assert len(queue) == 1

    def test_next_sequence_monotonic(self):
        queue = EventQueue()
        values = [queue.next_sequence() for _ in range(5)]
        assert values == sorted(values)
        assert len(set(values)) == 5

    def test_serialization_failure_counter(self):
        item = make_queued(0)
        bumped = item.with_serialization_failure().with_serialization_failure()
        assert bumped.serialization_failures == 2
        assert bumped.event is item.event
        assert item.serialization_failures == 0
