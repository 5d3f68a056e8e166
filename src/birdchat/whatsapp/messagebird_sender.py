"""Outbound WhatsApp messaging via the MessageBird Conversations API.

Security: NEVER log recipients, text or the access key. Only log hashes
and lengths.
"""

from __future__ import annotations

from typing import Any

import requests

from birdchat.config import MessagebirdConfig
from birdchat.observability.correlation import get_correlation_id
from birdchat.observability.logging import get_logger
from birdchat.observability.redaction import hash_identifier, safe_log_context

from .models import MessageType, OutgoingPayload, ProviderMessage
from .payload import audio_filename, strip_plus

logger = get_logger(__name__)

CONVERSATIONS_API_ENDPOINT = "https://conversations.messagebird.com/v1"
CONVERSATIONS_API_WHATSAPP_SANDBOX_ENDPOINT = "https://whatsapp-sandbox.messagebird.com/v1"

START_CONVERSATION_PATH = "/conversations/start"

# Video messages carry a fixed caption
VIDEO_CAPTION = "video"


class UnsupportedMessageTypeError(Exception):
    """Raised when a payload type has no provider content mapping."""

    pass


class MissingChannelIdError(Exception):
    """Raised when a payload reaches the sender without a channel ID."""

    pass


class ConversationsClient:
    """Minimal Conversations API client.

    One instance per driver; the underlying requests.Session is reused
    for every call made through it.
    """

    def __init__(
        self,
        access_key: str,
        endpoint: str = CONVERSATIONS_API_ENDPOINT,
        timeout: int = 15,
        connection_timeout: int = 10,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.connection_timeout = connection_timeout
        self._access_key = access_key
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"AccessKey {self._access_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def start_conversation(self, message: ProviderMessage) -> dict[str, Any]:
        """POST /conversations/start.

        Raises:
            requests.RequestException: On network errors or non-2xx replies.
        """
        response = self._session.post(
            f"{self.endpoint}{START_CONVERSATION_PATH}",
            json=message.to_request_body(),
            headers=self._headers(),
            timeout=(self.connection_timeout, self.timeout),
        )
        response.raise_for_status()
        if not response.content:
            return {}
        return response.json()

    def close(self) -> None:
        self._session.close()


def resolve_endpoint(config: MessagebirdConfig) -> str:
    """Sandbox endpoint when enabled, production otherwise."""
    if config.is_sandbox_enabled is True:
        return CONVERSATIONS_API_WHATSAPP_SANDBOX_ENDPOINT
    return CONVERSATIONS_API_ENDPOINT


def create_client(config: MessagebirdConfig) -> ConversationsClient:
    """Build the Conversations API client for a config.

    Raises:
        RuntimeError: If the access key is missing.
    """
    if not config.access_key:
        raise RuntimeError("Missing MessageBird config: MESSAGEBIRD_ACCESS_KEY required")

    return ConversationsClient(
        access_key=config.access_key,
        endpoint=resolve_endpoint(config),
        timeout=config.timeout,
        connection_timeout=config.connection_timeout,
    )


def _build_content(payload: OutgoingPayload) -> dict[str, Any]:
    message_type = payload.type
    if message_type == MessageType.TEXT:
        return {"text": payload.text}
    if message_type == MessageType.IMAGE:
        return {"image": {"url": payload.url}}
    if message_type == MessageType.VIDEO:
        return {"video": {"url": payload.url, "caption": VIDEO_CAPTION}}
    if message_type == MessageType.AUDIO:
        return {"audio": {"url": payload.url}}
    if message_type == MessageType.FILE:
        return {"file": {"url": payload.url}}
    if message_type == MessageType.LOCATION:
        return {
            "location": {
                "latitude": payload.latitude,
                "longitude": payload.longitude,
            }
        }
    raise UnsupportedMessageTypeError(f"unsupported message type: {message_type!r}")


def build_provider_message(payload: OutgoingPayload) -> ProviderMessage:
    """Map a canonical payload to the conversations request object.

    Raises:
        UnsupportedMessageTypeError: If payload.type is not a MessageType.
        MissingChannelIdError: If payload.channel_id is unset.
    """
    content = _build_content(payload)

    if not payload.channel_id:
        raise MissingChannelIdError("channel ID could not be resolved for outgoing message")

    return ProviderMessage(
        to=payload.recipient,
        channel_id=payload.channel_id,
        type=MessageType(payload.type),
        content=content,
    )


def send_payload(
    payload: OutgoingPayload,
    client: ConversationsClient,
    business_number: str,
) -> None:
    """Send a payload through the conversations "start" operation.

    Messages addressed to our own business number are dropped silently.

    Args:
        payload: Canonical send parameters.
        client: Conversations API client for this request scope.
        business_number: Our sending number, compared without leading '+'.

    Raises:
        UnsupportedMessageTypeError: If payload.type is not sendable.
        MissingChannelIdError: If no channel ID was resolved.
        requests.RequestException: On network/HTTP errors. Not retried.
    """
    log_ctx = safe_log_context(
        correlationId=get_correlation_id(),
        to_hash=hash_identifier(strip_plus(payload.recipient)),
        type=getattr(payload.type, "value", payload.type),
        text_len=len(payload.text or ""),
        provider="messagebird",
    )

    if strip_plus(business_number) == strip_plus(payload.recipient):
        logger.info(
            "outbound message to own business number skipped",
            extra={"extra_fields": log_ctx},
        )
        return

    message = build_provider_message(payload)

    if message.type == MessageType.AUDIO:
        log_ctx = {**log_ctx, "filename": audio_filename(payload.url or "")}

    logger.info("sending outbound message via messagebird", extra={"extra_fields": log_ctx})

    try:
        result = client.start_conversation(message)
    except requests.RequestException as e:
        status = e.response.status_code if e.response is not None else None
        logger.error(
            "outbound send via messagebird failed",
            extra={
                "extra_fields": safe_log_context(
                    **log_ctx, error_type=type(e).__name__, status=status
                )
            },
        )
        raise

    logger.info(
        "outbound message sent via messagebird",
        extra={
            "extra_fields": safe_log_context(
                **log_ctx, conversation_id_present=bool(isinstance(result, dict) and result.get("id"))
            )
        },
    )
