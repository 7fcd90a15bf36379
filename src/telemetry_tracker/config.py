"""Tracker configuration value object."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TrackingConfig(BaseModel):
    """Immutable configuration handed to ``Tracker.start``.

    Field names are snake_case; the camelCase spelling used by host
    configuration files (``productId``, ``trackingEndpoint`` ...) is accepted
    as an alias.

    The tracking endpoint is kept as a plain string. It is validated when a
    batch is sent, so a bad URL skips delivery with a logged error instead of
    failing start-up.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    product_id: str = Field(..., min_length=1, description="Product identifier")
    tracking_endpoint: str = Field(
        ..., description="Collector URL that receives batch POSTs"
    )
    user_id: Optional[str] = Field(None, description="Authenticated user id")
    anonymous_id: Optional[str] = Field(
        None, description="Override for the device-derived anonymous id"
    )
    enable_auto_capture: bool = Field(
        True, description="Emit application lifecycle and session events"
    )
    session_timeout_seconds: float = Field(
        3600.0, gt=0, description="Inactivity gap that closes a session"
    )
    batch_size: int = Field(
        10, ge=1, description="Queue length that triggers an immediate flush"
    )
    flush_interval_seconds: float = Field(
        30.0, gt=0, description="Period of the background flush timer"
    )
    capture_network_query_params: bool = Field(
        False, description="Include (redacted) URL query in network events"
    )
    capture_network_headers: bool = Field(
        False, description="Include (redacted) headers in network events"
    )
    capture_network_bodies: bool = Field(
        False, description="Include (redacted) bodies in network events"
    )
    enable_debug_logging: bool = Field(
        False, description="Lower the package logger to DEBUG"
    )
    max_dead_clicks_per_minute: int = Field(
        10, ge=0, description="Dead-click events allowed per trailing 60s"
    )
    dead_click_timeout_seconds: float = Field(
        2.0, gt=0, description="Delay before an unanswered tap is a dead click"
    )
    app_version: Optional[str] = Field(
        None, description="Host application marketing version"
    )
    app_build: Optional[str] = Field(
        None, description="Host application build number"
    )
    request_timeout_seconds: float = Field(
        30.0, gt=0, description="Upper bound for a single delivery POST"
    )
    max_serialization_attempts: Optional[int] = Field(
        3,
        ge=1,
        description="Encode failures before a batch is dropped (None = never drop)",
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase configuration surface."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackingConfig":
        """Build a config from camelCase or snake_case keys."""
        return cls.model_validate(data)
