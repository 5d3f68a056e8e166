"""Outgoing payload builder - bot messages to canonical send parameters."""

from __future__ import annotations

import posixpath
import uuid
from typing import Any
from urllib.parse import urlparse

from birdchat.messages import (
    Audio,
    File,
    Image,
    IncomingMessage,
    Location,
    OutgoingMessage,
    Video,
)

from .messagebird_adapter import get_channel_id
from .models import MessageType, OutgoingPayload

# Extra parameter carrying the fallback channel ID for proactive sends
SENDER_CHANNEL_ID_PARAM = "sender_channel_id"

# Keys owned by OutgoingPayload; caller extras never shadow them
_PAYLOAD_KEYS = frozenset(
    {"recipient", "channelId", "type", "text", "url", "latitude", "longitude"}
)


class UnsupportedAttachmentError(Exception):
    """Raised when an outgoing attachment is not a known variant."""

    pass


def strip_plus(address: str) -> str:
    """Channel address without the leading international prefix marker."""
    return (address or "").lstrip("+")


def audio_filename(url: str) -> str:
    """Unique filename keeping the extension of the source URL.

    e.g. "https://cdn/x/voice.ogg" -> "3f2a...c1.ogg"
    """
    ext = posixpath.splitext(urlparse(url).path)[1]
    return f"{uuid.uuid4().hex}{ext}"


def _resolve_channel_id(
    incoming: IncomingMessage, additional_parameters: dict[str, Any]
) -> str | None:
    """Inbound event channel ID wins over the caller's fallback."""
    channel_id = get_channel_id(incoming.payload)
    if channel_id:
        return channel_id
    if SENDER_CHANNEL_ID_PARAM in additional_parameters:
        return additional_parameters[SENDER_CHANNEL_ID_PARAM]
    return None


def build_service_payload(
    outgoing: OutgoingMessage | str,
    incoming: IncomingMessage,
    additional_parameters: dict[str, Any] | None = None,
) -> OutgoingPayload:
    """Translate an outgoing message into canonical send parameters.

    Args:
        outgoing: Message to send. A bare string is sent as text.
        incoming: Message being answered; its sender becomes the recipient
            and its raw event may carry the channel ID.
        additional_parameters: Seed parameters. `sender_channel_id` is the
            fallback channel ID when the inbound event has none.

    Returns:
        OutgoingPayload. `channel_id` is None when neither source has one.

    Raises:
        UnsupportedAttachmentError: If the attachment is not an Image,
            Video, Audio, File or Location.
    """
    extras = dict(additional_parameters or {})

    fields: dict[str, Any] = {
        "recipient": strip_plus(incoming.sender),
        "channel_id": _resolve_channel_id(incoming, extras),
        "extra": {k: v for k, v in extras.items() if k not in _PAYLOAD_KEYS},
    }

    if isinstance(outgoing, str):
        outgoing = OutgoingMessage(text=outgoing)

    attachment = outgoing.attachment
    if attachment is None:
        return OutgoingPayload(type=MessageType.TEXT, text=outgoing.text, **fields)

    # Image title is not forwarded; the provider message carries url only
    if isinstance(attachment, Image):
        return OutgoingPayload(type=MessageType.IMAGE, url=attachment.url, **fields)
    if isinstance(attachment, Video):
        return OutgoingPayload(type=MessageType.VIDEO, url=attachment.url, **fields)
    if isinstance(attachment, Audio):
        return OutgoingPayload(type=MessageType.AUDIO, url=attachment.url, **fields)
    if isinstance(attachment, File):
        return OutgoingPayload(type=MessageType.FILE, url=attachment.url, **fields)
    if isinstance(attachment, Location):
        return OutgoingPayload(
            type=MessageType.LOCATION,
            latitude=float(attachment.latitude),
            longitude=float(attachment.longitude),
            **fields,
        )

    raise UnsupportedAttachmentError(
        f"unsupported attachment type: {type(attachment).__name__}"
    )
