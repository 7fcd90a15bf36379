"""Unit tests for JSON Schema generation."""
import pytest

from telemetry_tracker.schemas import generate_schema, list_schemas


class TestSchemas:
    """Tests for the schema registry."""

    def test_list_schemas(self):
        assert list_schemas() == ["batch_payload", "event", "tracking_config"]

    @pytest.mark.parametrize("name", ["event", "batch_payload", "tracking_config"])
    def test_dialect_and_id(self, name):
        schema = generate_schema(name)
        assert schema["$schema"] == "https://json-schema.org/draft/2020-12/schema"
        assert schema["$id"] == f"telemetry-tracker/{name}"

    def test_event_schema_uses_wire_names(self):
        """Test properties are the camelCase wire names."""
        schema = generate_schema("event")
        assert {"eventId", "timestampUtc", "eventType", "pageUrl", "pageTitle", "data",
                "elementDetails"} == set(schema["properties"])
        assert {"eventId", "timestampUtc", "eventType"} <= set(schema["required"])

    def test_unknown_schema(self):
        with pytest.raises(KeyError):
            generate_schema("nope")
