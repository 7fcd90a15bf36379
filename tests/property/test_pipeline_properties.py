"""Property-based tests for click detection, queue ordering and payloads."""
from typing import Any, Dict, List, Tuple

from hypothesis import given, settings, strategies as st

from telemetry_tracker import (
    RAGE_CLICK_EVENT,
    BatchPayload,
    EventQueue,
    FrustrationDetector,
)

from conftest import ManualScheduler, make_event, make_queued

# Offsets small enough that every click stays within the rage-click radius
offset = st.floats(min_value=-17.0, max_value=17.0, allow_nan=False)


class TestRageClickProperties:

    @settings(deadline=None)
    @given(st.lists(st.tuples(offset, offset), min_size=1, max_size=20))
    def test_one_event_per_three_clustered_clicks(self, offsets):
        """Test n clustered clicks emit n // 3 rage clicks and leave n % 3 in history."""
        emitted: List[Tuple[str, Dict[str, Any]]] = []
        detector = FrustrationDetector(
            emit=lambda event_type, data: emitted.append((event_type, data)),
            clock=lambda: 1000.0,
            schedule=ManualScheduler(),
        )
        detector.set_enabled(True)
        for dx, dy in offsets:
            detector.report_click(200.0 + dx, 300.0 + dy)

        assert [event_type for event_type, _ in emitted] == [RAGE_CLICK_EVENT] * (len(offsets) // 3)
        assert all(data["Click Count"] == 3 for _, data in emitted)
        assert len(detector.click_history) == len(offsets) % 3


class TestQueueProperties:

    @settings(deadline=None)
    @given(
        st.integers(min_value=1, max_value=20),
        st.integers(min_value=0, max_value=10),
        st.data(),
    )
    def test_restore_keeps_sequence_order(self, flushed, added, data):
        """Test restored items land ahead of newer ones, sorted by sequence."""
        queue = EventQueue()
        for _ in range(flushed):
            queue.append(make_queued(queue.next_sequence()))
        batch = queue.swap_out()
        for _ in range(added):
            queue.append(make_queued(queue.next_sequence()))

        failed = data.draw(st.lists(st.sampled_from(batch), unique_by=lambda q: q.sequence))
        failed = data.draw(st.permutations(failed))
        queue.restore(failed)

        sequences = [item.sequence for item in queue.snapshot()]
        assert sequences == sorted(sequences)
        assert len(sequences) == len(failed) + added


json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2 ** 53), max_value=2 ** 53),
    st.floats(allow_nan=False, allow_infinity=False),
    st.text(max_size=8),
)
json_values = st.recursive(
    json_scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=3),
        st.dictionaries(st.text(max_size=6), children, max_size=3),
    ),
    max_leaves=12,
)


class TestPayloadProperties:

    @settings(deadline=None)
    @given(
        st.lists(
            st.dictionaries(st.text(min_size=1, max_size=8), json_values, max_size=4),
            min_size=1,
            max_size=5,
        )
    )
    def test_json_round_trip(self, datas):
        """Test nested event data survives encoding and decoding unchanged."""
        payload = BatchPayload(
            product_id="p",
            session_id="s",
            anonymous_id="a",
            timestamp_utc="2024-05-01T12:00:00.000Z",
            events=[make_event(data=d) for d in datas],
        )
        assert BatchPayload.from_json(payload.to_json()) == payload
