"""Network request and connectivity event data.

Query strings, headers and bodies are only captured when the matching
privacy flag is on, and are always passed through the redaction helpers.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlsplit

from telemetry_tracker.constants import (
    NETWORK_COMPLETION_TIME_PROPERTY,
    NETWORK_CONNECTION_TYPE_PROPERTY,
    NETWORK_ERROR_CODE_PROPERTY,
    NETWORK_ERROR_MESSAGE_PROPERTY,
    NETWORK_IS_ONLINE_PROPERTY,
    NETWORK_REQUEST_BODY_PROPERTY,
    NETWORK_REQUEST_BODY_SIZE_PROPERTY,
    NETWORK_REQUEST_HEADERS_PROPERTY,
    NETWORK_REQUEST_METHOD_PROPERTY,
    NETWORK_RESPONSE_BODY_PROPERTY,
    NETWORK_RESPONSE_BODY_SIZE_PROPERTY,
    NETWORK_RESPONSE_HEADERS_PROPERTY,
    NETWORK_START_TIME_PROPERTY,
    NETWORK_STATUS_CODE_PROPERTY,
    NETWORK_URL_PROPERTY,
    NETWORK_URL_QUERY_PROPERTY,
)
from telemetry_tracker.sanitizer import redact_body, redact_headers, redact_query

Moment = Union[datetime, float]


@dataclass(frozen=True)
class NetworkCapturePolicy:
    """Which optional parts of a request may be recorded."""

    query_params: bool = False
    headers: bool = False
    bodies: bool = False


def _epoch(moment: Moment) -> float:
    if isinstance(moment, datetime):
        return moment.timestamp()
    return float(moment)


def network_request_data(
    url: str,
    method: str,
    start_time: Moment,
    policy: NetworkCapturePolicy = NetworkCapturePolicy(),
    status_code: Optional[int] = None,
    error_code: Optional[int] = None,
    error_message: Optional[str] = None,
    completion_time: Optional[Moment] = None,
    request_body_size: Optional[int] = None,
    response_body_size: Optional[int] = None,
    request_headers: Optional[Mapping[str, str]] = None,
    response_headers: Optional[Mapping[str, str]] = None,
    request_body: Optional[str] = None,
    response_body: Optional[str] = None,
) -> Dict[str, Any]:
    """Data for ``Network Request``.

    Times are reported as epoch seconds. The URL fragment is never captured.
    """
    data: Dict[str, Any] = {
        NETWORK_URL_PROPERTY: url,
        NETWORK_REQUEST_METHOD_PROPERTY: method,
        NETWORK_START_TIME_PROPERTY: _epoch(start_time),
    }

    if policy.query_params:
        try:
            query = urlsplit(url).query
        except ValueError:
            query = ""
        if query:
            data[NETWORK_URL_QUERY_PROPERTY] = redact_query(query)

    if status_code is not None:
        data[NETWORK_STATUS_CODE_PROPERTY] = status_code
    if error_code is not None:
        data[NETWORK_ERROR_CODE_PROPERTY] = error_code
    if error_message is not None:
        data[NETWORK_ERROR_MESSAGE_PROPERTY] = error_message
    if completion_time is not None:
        data[NETWORK_COMPLETION_TIME_PROPERTY] = _epoch(completion_time)
    if request_body_size is not None:
        data[NETWORK_REQUEST_BODY_SIZE_PROPERTY] = request_body_size
    if response_body_size is not None:
        data[NETWORK_RESPONSE_BODY_SIZE_PROPERTY] = response_body_size

    if policy.headers:
        if request_headers is not None:
            data[NETWORK_REQUEST_HEADERS_PROPERTY] = redact_headers(request_headers)
        if response_headers is not None:
            data[NETWORK_RESPONSE_HEADERS_PROPERTY] = redact_headers(response_headers)

    if policy.bodies:
        if request_body is not None:
            data[NETWORK_REQUEST_BODY_PROPERTY] = redact_body(request_body)
        if response_body is not None:
            data[NETWORK_RESPONSE_BODY_PROPERTY] = redact_body(response_body)

    return data


def connectivity_data(is_online: bool, connection_type: str = "unknown") -> Dict[str, Any]:
    return {
        NETWORK_IS_ONLINE_PROPERTY: is_online,
        NETWORK_CONNECTION_TYPE_PROPERTY: connection_type,
    }
