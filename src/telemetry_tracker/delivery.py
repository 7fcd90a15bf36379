"""Batch delivery: payload building, encoding, HTTP POST and failure triage.

A batch is a swapped-out queue snapshot. Events from different sessions never
share a payload: the batch is cut into consecutive runs with the same session
id and each run is posted on its own. Every run ends up in exactly one of
``sent``, ``failed`` (to be restored to the queue) or ``dropped``.
"""

import itertools
import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import httpx
from pydantic_core import PydanticSerializationError

from telemetry_tracker.config import TrackingConfig
from telemetry_tracker.device import DeviceInfo
from telemetry_tracker.event_queue import QueuedEvent
from telemetry_tracker.models import (
    BatchPayload,
    ConfigurationError,
    SerializationError,
    ServerError,
    TransportError,
    format_timestamp,
    utc_now,
)
from telemetry_tracker.scheduling import SerialQueue

logger = logging.getLogger("telemetry_tracker.delivery")

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass
class DeliveryOutcome:
    """Result of one delivery attempt, partitioned by what happens next."""

    sent: List[QueuedEvent] = field(default_factory=list)
    failed: List[QueuedEvent] = field(default_factory=list)
    dropped: List[QueuedEvent] = field(default_factory=list)


def validate_endpoint(endpoint: str) -> httpx.URL:
    """Parse the collector URL, raising ConfigurationError if unusable."""
    try:
        url = httpx.URL(endpoint)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigurationError(f"Invalid tracking endpoint {endpoint!r}: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"Invalid tracking endpoint {endpoint!r}: expected an absolute http(s) URL"
        )
    return url


class DeliveryEngine:
    """Sends batches to the collector on a dedicated delivery thread.

    Args:
        config: Active tracker configuration.
        device_info: Device description copied into every payload.
        http_client: Optional pre-built ``httpx.Client``; the engine creates
            (and later closes) its own when omitted.
        page_url: Returns the page URL to stamp on payloads.
        clock: Returns the payload creation time.
    """

    def __init__(
        self,
        config: TrackingConfig,
        device_info: DeviceInfo,
        http_client: Optional[httpx.Client] = None,
        page_url: Callable[[], str] = lambda: "",
        clock: Callable[[], object] = utc_now,
    ) -> None:
        self.config = config
        self.device_info = device_info
        self.anonymous_id = config.anonymous_id or device_info.device_id
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=config.request_timeout_seconds)
        self._page_url = page_url
        self._clock = clock
        self._executor = SerialQueue("telemetry-delivery")

    def build_payloads(
        self, batch: List[QueuedEvent]
    ) -> List[Tuple[List[QueuedEvent], BatchPayload]]:
        """Split ``batch`` into same-session runs and build one payload each."""
        payloads = []
        timestamp = format_timestamp(self._clock())
        device = self.device_info.to_dict()
        page_url = self._page_url()
        for session_id, group in itertools.groupby(batch, key=lambda item: item.session_id):
            run = list(group)
            payload = BatchPayload(
                product_id=self.config.product_id,
                session_id=session_id,
                anonymous_id=self.anonymous_id,
                user_id=self.config.user_id,
                timestamp_utc=timestamp,
                device_info=device,
                page_url=page_url,
                events=[item.event for item in run],
            )
            payloads.append((run, payload))
        return payloads

    def encode(self, payload: BatchPayload) -> bytes:
        """Serialize a payload to its JSON body."""
        try:
            return payload.to_json().encode("utf-8")
        except (PydanticSerializationError, ValueError, TypeError) as e:
            raise SerializationError(f"Failed to encode payload: {e}") from e

    def post(self, url: httpx.URL, body: bytes) -> httpx.Response:
        """POST ``body``; raise TransportError or ServerError on failure."""
        try:
            response = self._client.post(url, content=body, headers=JSON_HEADERS)
        except httpx.TransportError as e:
            raise TransportError(f"Failed to send events: {e}") from e
        if not 200 <= response.status_code < 300:
            raise ServerError(response.status_code)
        return response

    def deliver(self, batch: List[QueuedEvent]) -> DeliveryOutcome:
        """Send ``batch`` synchronously and classify every event."""
        outcome = DeliveryOutcome()
        if not batch:
            return outcome

        try:
            url = validate_endpoint(self.config.tracking_endpoint)
        except ConfigurationError as e:
            logger.error("%s; dropping %d events", e, len(batch))
            outcome.dropped.extend(batch)
            return outcome

        for run, payload in self.build_payloads(batch):
            try:
                body = self.encode(payload)
            except SerializationError as e:
                self._handle_serialization_failure(run, e, outcome)
                continue

            try:
                self.post(url, body)
            except ServerError as e:
                logger.warning("Server error: %d; re-queueing %d events", e.status_code, len(run))
                outcome.failed.extend(run)
                continue
            except TransportError as e:
                logger.warning("%s; re-queueing %d events", e, len(run))
                outcome.failed.extend(run)
                continue

            logger.debug("Successfully sent %d events", len(run))
            outcome.sent.extend(run)
        return outcome

    def _handle_serialization_failure(
        self, run: List[QueuedEvent], error: SerializationError, outcome: DeliveryOutcome
    ) -> None:
        bumped = [item.with_serialization_failure() for item in run]
        attempts = max(item.serialization_failures for item in bumped)
        limit = self.config.max_serialization_attempts
        if limit is not None and attempts >= limit:
            logger.error(
                "%s; dropping %d events after %d attempts", error, len(run), attempts
            )
            outcome.dropped.extend(run)
        else:
            logger.warning("%s; re-queueing %d events", error, len(run))
            outcome.failed.extend(bumped)

    def send(
        self,
        batch: List[QueuedEvent],
        on_complete: Callable[[DeliveryOutcome], None],
    ) -> Optional[Future]:
        """Deliver ``batch`` on the delivery thread, then call ``on_complete``."""
        return self._executor.submit(self._send, batch, on_complete)

    def _send(
        self,
        batch: List[QueuedEvent],
        on_complete: Callable[[DeliveryOutcome], None],
    ) -> DeliveryOutcome:
        try:
            outcome = self.deliver(batch)
        except Exception:
            logger.exception("Unexpected delivery failure; re-queueing %d events", len(batch))
            outcome = DeliveryOutcome(failed=list(batch))
        on_complete(outcome)
        return outcome

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight sends to finish."""
        return self._executor.drain(timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        if self._owns_client:
            self._client.close()
