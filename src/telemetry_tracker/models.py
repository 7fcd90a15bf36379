"""Core data models for telemetry-tracker."""
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond fraction.

    Naive datetimes are assumed to already be in UTC.

    Example:
        >>> format_timestamp(datetime(2024, 5, 1, 12, 0, 0, 250000))
        '2024-05-01T12:00:00.250Z'
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def parse_timestamp(value: str) -> datetime:
    """Parse a wire timestamp back into an aware UTC datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class Event(BaseModel):
    """Immutable tracked event, stamped with id and time on creation."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    event_id: str = Field(
        ...,
        min_length=36,
        max_length=36,
        description="Unique event identifier (hyphenated UUID)",
    )
    timestamp_utc: str = Field(
        ...,
        min_length=1,
        description="ISO-8601 UTC timestamp with fractional seconds",
    )
    event_type: str = Field(
        ...,
        min_length=1,
        description="Event type (e.g., 'Screen Viewed', 'Rage Click')",
    )
    page_url: str = Field(
        default="",
        description="Current page URL (empty for native screens)",
    )
    page_title: str = Field(
        default="",
        description="Navigation title or screen name at capture time",
    )
    data: Dict[str, Any] = Field(
        default_factory=dict,
        description="Event properties (opaque to the library)",
    )
    element_details: Optional[str] = Field(
        None,
        description="Free-form description of the UI element involved",
    )

    @field_validator("event_id", mode="before")
    @classmethod
    def _normalize_event_id(cls, v: object) -> object:
        if isinstance(v, uuid.UUID):
            return str(v)
        if isinstance(v, str):
            return str(uuid.UUID(v))
        return v

    @classmethod
    def create(
        cls,
        event_type: str,
        page_url: str = "",
        page_title: str = "",
        data: Optional[Dict[str, Any]] = None,
        element_details: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "Event":
        """Create a new event with a fresh id and the current timestamp."""
        return cls(
            event_id=str(uuid.uuid4()),
            timestamp_utc=format_timestamp(timestamp or utc_now()),
            event_type=event_type,
            page_url=page_url,
            page_title=page_title,
            data=dict(data or {}),
            element_details=element_details,
        )

    def __repr__(self) -> str:
        """Human-readable representation."""
        return (
            f"Event(event_id={self.event_id[:8]}..., "
            f"type={self.event_type}, "
            f"title={self.page_title}, "
            f"at={self.timestamp_utc})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event to a wire-shaped dictionary."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """Deserialize event from dictionary."""
        return cls.model_validate(data)


class BatchPayload(BaseModel):
    """Body of a single delivery POST: identifiers, device info and events."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    product_id: str = Field(..., min_length=1, description="Product identifier")
    session_id: str = Field(..., min_length=1, description="Session the events belong to")
    anonymous_id: str = Field(..., min_length=1, description="Stable per-device identifier")
    user_id: Optional[str] = Field(None, description="Authenticated user id, if any")
    timestamp_utc: str = Field(..., min_length=1, description="Payload creation time")
    device_info: Dict[str, Any] = Field(
        default_factory=dict, description="Device description"
    )
    page_url: str = Field(default="", description="Current page URL")
    events: List[Event] = Field(
        default_factory=list, description="Events in original order"
    )

    def __repr__(self) -> str:
        """Human-readable representation."""
        return (
            f"BatchPayload(product={self.product_id}, "
            f"session={self.session_id[:8]}..., "
            f"events={len(self.events)})"
        )

    def to_json(self) -> str:
        """Encode to the wire JSON document."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, text: str) -> "BatchPayload":
        """Decode a wire JSON document."""
        return cls.model_validate_json(text)


# Custom Exceptions
class TrackingError(Exception):
    """Base exception for all library errors."""
    pass


class ConfigurationError(TrackingError):
    """Tracker used before start() or configured with an unusable value."""
    pass


class TransportError(TrackingError):
    """Request never produced an HTTP response."""
    pass


class ServerError(TransportError):
    """Collector answered with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Collector responded with status {status_code}")


class SerializationError(TrackingError):
    """Batch payload could not be encoded as JSON."""
    pass
