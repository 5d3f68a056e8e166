"""Redaction helpers for safe logging.

Channel addresses, message text and credentials must pass through these
before being logged.
"""

import hashlib
import re
from typing import Any

_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_ACCESS_KEY_PATTERN = re.compile(r"AccessKey\s+\S+", re.IGNORECASE)
_URL_QUERY_PATTERN = re.compile(r"(https?://[^\s?]+)\?\S*")

_REDACTED = "[REDACTED]"


def hash_identifier(value: str) -> str:
    """Non-reversible hash for logging. First 12 chars of sha256."""
    return hashlib.sha256(value.encode()).hexdigest()[:12]


def redact_string(value: str) -> str:
    """Redact PII and credential patterns from a string."""
    result = _ACCESS_KEY_PATTERN.sub(f"AccessKey {_REDACTED}", value)
    result = _URL_QUERY_PATTERN.sub(rf"\1?{_REDACTED}", result)
    result = _PHONE_PATTERN.sub(_REDACTED, result)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # keys only
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}
