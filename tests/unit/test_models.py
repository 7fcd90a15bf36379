"""Unit tests for Event, BatchPayload and timestamp helpers."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from telemetry_tracker.models import (
    BatchPayload,
    Event,
    ServerError,
    TransportError,
    TrackingError,
    format_timestamp,
    parse_timestamp,
)

from conftest import T0, make_event


class TestTimestamps:
    """Tests for format_timestamp / parse_timestamp."""

    def test_format_has_millis_and_z(self):
        """Test UTC timestamps carry a millisecond fraction and Z suffix."""
        moment = datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "2024-05-01T12:00:00.250Z"

    def test_format_converts_to_utc(self):
        """Test aware non-UTC datetimes are converted."""
        moment = datetime(2024, 5, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(moment) == "2024-05-01T12:00:00.000Z"

    def test_format_naive_assumed_utc(self):
        assert format_timestamp(datetime(2024, 5, 1)) == "2024-05-01T00:00:00.000Z"

    def test_parse_round_trip(self):
        """Test parse_timestamp inverts format_timestamp at ms precision."""
        text = format_timestamp(T0)
        assert parse_timestamp(text) == T0


class TestEvent:
    """Tests for Event model."""

    def test_create_stamps_id_and_time(self):
        """Test Event.create assigns a UUID and the given timestamp."""
        event = make_event(event_type="Screen Viewed")
        assert uuid.UUID(event.event_id).version == 4
        assert event.timestamp_utc == "2024-05-01T12:00:00.000Z"
        assert event.event_type == "Screen Viewed"

    def test_create_ids_unique(self):
        assert make_event().event_id != make_event().event_id

    def test_immutable(self):
        """Test events are frozen once created."""
        event = make_event()
        with pytest.raises(ValidationError):
            event.event_type = "Other"  # type: ignore[misc]

    def test_rejects_empty_type(self):
        with pytest.raises(ValidationError):
            make_event(event_type="")

    def test_rejects_bad_event_id(self):
        with pytest.raises(ValueError):
            Event(event_id="not-a-uuid", timestamp_utc="x", event_type="E")

    def test_accepts_uuid_object(self):
        event_id = uuid.uuid4()
        event = Event(event_id=event_id, timestamp_utc="t", event_type="E")
        assert event.event_id == str(event_id)

    def test_to_dict_uses_camel_case(self):
        """Test wire keys are camelCase."""
        event = make_event(data={"Screen Name": "Home"}, element_details="Button")
        data = event.to_dict()
        assert set(data) == {
            "eventId", "timestampUtc", "eventType", "pageUrl",
            "pageTitle", "data", "elementDetails",
        }
        assert data["data"] == {"Screen Name": "Home"}
        assert Event.from_dict(data) == event

    def test_from_dict_accepts_snake_case(self):
        event = make_event()
        assert Event.from_dict(event.model_dump()) == event

    def test_repr(self):
        event = make_event(event_type="Dead Click")
        assert "Dead Click" in repr(event)
        assert event.event_id[:8] in repr(event)


class TestBatchPayload:
    """Tests for BatchPayload model."""

    def _payload(self, **overrides):
        defaults = dict(
            product_id="shop",
            session_id="s-1",
            anonymous_id="anon",
            user_id=None,
            timestamp_utc=format_timestamp(T0),
            device_info={"os": "Linux", "deviceId": "d"},
            page_url="",
            events=[make_event(data={"n": 1, "nested": {"list": [1, "two"]}}), make_event()],
        )
        defaults.update(overrides)
        return BatchPayload(**defaults)

    def test_json_round_trip(self):
        """Test decode(encode(p)) is field-for-field equal."""
        payload = self._payload(user_id="user-9")
        decoded = BatchPayload.from_json(payload.to_json())
        assert decoded == payload
        assert decoded.events[0].data == {"n": 1, "nested": {"list": [1, "two"]}}

    def test_wire_keys(self):
        """Test top-level wire keys are camelCase."""
        import json

        body = json.loads(self._payload().to_json())
        assert set(body) == {
            "productId", "sessionId", "anonymousId", "userId",
            "timestampUtc", "deviceInfo", "pageUrl", "events",
        }
        assert body["userId"] is None
        assert body["events"][0]["eventType"] == "TestEvent"

    def test_event_order_preserved(self):
        events = [make_event(event_type=f"E{i}") for i in range(5)]
        payload = self._payload(events=events)
        decoded = BatchPayload.from_json(payload.to_json())
        assert [e.event_type for e in decoded.events] == ["E0", "E1", "E2", "E3", "E4"]


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_server_error_is_transport_error(self):
        error = ServerError(503)
        assert isinstance(error, TransportError)
        assert isinstance(error, TrackingError)
        assert error.status_code == 503
        assert "503" in str(error)
