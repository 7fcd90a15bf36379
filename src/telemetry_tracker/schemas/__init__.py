"""JSON Schema for the telemetry-tracker wire contract.

Schemas are generated from the pydantic models on demand, so they can never
drift from the code. ``python -m telemetry_tracker.schemas.generate`` writes
them out for consumers that want files.
"""
from __future__ import annotations

from typing import Any, Dict, List, Type

from pydantic import BaseModel

from telemetry_tracker.config import TrackingConfig
from telemetry_tracker.models import BatchPayload, Event

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

# Registry of models with a published schema
SCHEMA_MODELS: Dict[str, Type[BaseModel]] = {
    "event": Event,
    "batch_payload": BatchPayload,
    "tracking_config": TrackingConfig,
}


def generate_schema(name: str) -> Dict[str, Any]:
    """Build the JSON Schema for a registered model.

    Properties use the camelCase wire names.

    Raises:
        KeyError: If ``name`` is not registered.
    """
    try:
        model = SCHEMA_MODELS[name]
    except KeyError:
        raise KeyError(
            f"No schema found for '{name}'. Available: {list_schemas()}"
        ) from None
    schema = model.model_json_schema(by_alias=True, mode="serialization")
    schema["$schema"] = SCHEMA_DIALECT
    schema["$id"] = f"telemetry-tracker/{name}"
    return schema


def list_schemas() -> List[str]:
    """List all available schema names."""
    return sorted(SCHEMA_MODELS)
