"""Redaction of sensitive values from event data and captured traffic."""

import re
from typing import Any, Dict, List, Mapping, Tuple

from telemetry_tracker.constants import REDACTED

SENSITIVE_KEYWORDS: Tuple[str, ...] = (
    "password", "passcode", "pwd", "otp", "pin",
    "token", "secret", "apikey", "api_key", "auth",
    "ssn", "social", "credit", "card", "cvv", "iban",
    "email", "phone", "phonenumber",
)

SENSITIVE_HEADER_KEYS = frozenset({
    "authorization", "proxy-authorization", "x-api-key", "api-key",
    "x-auth-token", "cookie", "set-cookie",
})

SENSITIVE_QUERY_PARAMS = frozenset({
    "password", "pass", "pwd", "token", "secret", "apikey", "api_key", "auth",
})

_BODY_PATTERNS: Tuple["re.Pattern[str]", ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r'"password"\s*:\s*"[^"]*"',
        r'"token"\s*:\s*"[^"]*"',
        r'"secret"\s*:\s*"[^"]*"',
        r'api[_-]?key\s*[:=]\s*"[^"]*"',
    )
)


def contains_sensitive_hint(text: str) -> bool:
    """Return True if ``text`` mentions any sensitive keyword, ignoring case."""
    lower = text.lower()
    return any(keyword in lower for keyword in SENSITIVE_KEYWORDS)


def sanitize(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` with sensitive values replaced.

    A value is redacted when its key or, for strings, its content contains a
    sensitive keyword. Nested mappings and lists are walked element-wise.
    Values of any other type are copied through unchanged. The input is never
    modified.
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if contains_sensitive_hint(str(key)):
            sanitized[key] = REDACTED
            continue
        sanitized[key] = _sanitize_value(value)
    return sanitized


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return REDACTED if contains_sensitive_hint(value) else value
    if isinstance(value, Mapping):
        return sanitize(value)
    if isinstance(value, (list, tuple)):
        return _sanitize_list(value)
    return value


def _sanitize_list(items: Any) -> List[Any]:
    return [_sanitize_value(item) for item in items]


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Mask credential-bearing HTTP headers."""
    return {
        name: REDACTED if name.lower() in SENSITIVE_HEADER_KEYS else value
        for name, value in headers.items()
    }


def redact_query(query: str) -> str:
    """Mask values of credential-like query parameters.

    Example:
        >>> redact_query("user=bob&token=abc")
        'user=bob&token=[REDACTED]'
    """
    pairs = []
    for pair in query.split("&"):
        key, sep, _ = pair.partition("=")
        if sep and key.lower() in SENSITIVE_QUERY_PARAMS:
            pairs.append(f"{key}={REDACTED}")
        else:
            pairs.append(pair)
    return "&".join(pairs)


def redact_body(body: str) -> str:
    """Heuristically mask obvious secrets inside a request/response body."""
    redacted = body
    for pattern in _BODY_PATTERNS:
        redacted = pattern.sub(f'"{REDACTED}"', redacted)
    return redacted
