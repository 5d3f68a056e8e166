"""MessageBird WhatsApp adapter configuration.

Values come from explicit arguments or environment variables:

- MESSAGEBIRD_ACCESS_KEY: Conversations API access key
- MESSAGEBIRD_SANDBOX_ENABLED: use the WhatsApp sandbox endpoint (default: false)
- MESSAGEBIRD_BUSINESS_NUMBER: our own sending number (loop guard)
- MESSAGEBIRD_TIMEOUT: overall request timeout in seconds (default: 15)
- MESSAGEBIRD_CONNECTION_TIMEOUT: connect timeout in seconds (default: 10)
- MESSAGEBIRD_SIGNING_KEY: webhook signing key; signature check is skipped if unset
- INTERNAL_TASK_SECRET: shared secret for the send-message task route
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TIMEOUT = 15
DEFAULT_CONNECTION_TIMEOUT = 10

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class MessagebirdConfig:
    """Settings consumed by the driver, sender and webhook route."""

    access_key: str = ""
    is_sandbox_enabled: bool = False
    business_number: str = ""
    timeout: int = DEFAULT_TIMEOUT
    connection_timeout: int = DEFAULT_CONNECTION_TIMEOUT
    signing_key: str | None = None
    internal_task_secret: str = ""


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid MessageBird config: {name} must be an integer") from None


def load_config() -> MessagebirdConfig:
    """Build config from environment variables.

    Returns:
        MessagebirdConfig with defaults for anything unset.

    Raises:
        RuntimeError: If a numeric setting is not an integer.
    """
    return MessagebirdConfig(
        access_key=os.environ.get("MESSAGEBIRD_ACCESS_KEY", ""),
        is_sandbox_enabled=_env_bool("MESSAGEBIRD_SANDBOX_ENABLED"),
        business_number=os.environ.get("MESSAGEBIRD_BUSINESS_NUMBER", ""),
        timeout=_env_int("MESSAGEBIRD_TIMEOUT", DEFAULT_TIMEOUT),
        connection_timeout=_env_int("MESSAGEBIRD_CONNECTION_TIMEOUT", DEFAULT_CONNECTION_TIMEOUT),
        signing_key=os.environ.get("MESSAGEBIRD_SIGNING_KEY") or None,
        internal_task_secret=os.environ.get("INTERNAL_TASK_SECRET", ""),
    )
