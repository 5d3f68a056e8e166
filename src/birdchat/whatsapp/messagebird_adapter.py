"""MessageBird Conversations API adapter - match and normalize webhook events.

Handles WhatsApp events delivered by the Conversations API webhook,
including MessageBird-Signature-JWT verification.

Event shape (only the fields we read):
{
  "message": {
    "platform": "whatsapp",
    "channelId": "CHANNEL_ID",
    "from": "+31612345678",
    "to": "+31687654321",
    "direction": "received",
    "type": "text",
    "content": {"text": "hello"}
  }
}
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

import jwt

from birdchat.messages import UNHANDLED_TYPE_TEXT, Audio, Image, IncomingMessage

PLATFORM = "whatsapp"

MESSAGE_TYPE_TEXT = "text"
MESSAGE_TYPE_IMAGE = "image"
MESSAGE_TYPE_AUDIO = "audio"

DIRECTION_SENT = "sent"

SIGNATURE_HEADER = "MessageBird-Signature-JWT"
SIGNATURE_ISSUER = "MessageBird"


class SignatureVerificationError(Exception):
    """Raised when MessageBird-Signature-JWT verification fails."""

    pass


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _get_message(event: dict[str, Any]) -> dict[str, Any]:
    return _as_dict(_as_dict(event).get("message"))


def matches_request(event: dict[str, Any], signature_valid: bool) -> bool:
    """Decide whether this event belongs to the WhatsApp channel.

    Args:
        event: Decoded webhook body.
        signature_valid: Outcome of the authenticity check.

    Returns:
        True only if message.platform is "whatsapp" and the signature is
        valid. A missing platform tag never matches.
    """
    platform = _get_message(event).get("platform")
    if platform is None:
        return False
    return platform == PLATFORM and signature_valid


def get_channel_id(event: dict[str, Any]) -> str | None:
    """Channel ID the event arrived on, or None."""
    channel_id = _get_message(event).get("channelId")
    return channel_id or None


def extract_messages(event: dict[str, Any]) -> tuple[IncomingMessage, ...]:
    """Normalize a webhook event into zero or one IncomingMessage.

    Self-addressed events and echoes of our own outbound messages
    (direction "sent") yield an empty tuple. Unknown content types
    degrade to the "MESSAGE TYPE NOT HANDLED." text. Never raises.

    Args:
        event: Decoded webhook body.

    Returns:
        Tuple with the normalized message, or empty tuple if suppressed.
    """
    message = _get_message(event)

    sender = message.get("from")
    recipient = message.get("to")

    if sender == recipient:
        return ()
    if message.get("direction") == DIRECTION_SENT:
        return ()

    content = _as_dict(message.get("content"))

    images: tuple[Image, ...] = ()
    audio: tuple[Audio, ...] = ()

    message_type = message.get("type")
    if message_type == MESSAGE_TYPE_TEXT:
        text = content.get("text") or ""
    elif message_type == MESSAGE_TYPE_IMAGE:
        image = _as_dict(content.get("image"))
        images = (Image(url=image.get("url", ""), title=image.get("caption") or ""),)
        text = Image.PATTERN
    elif message_type == MESSAGE_TYPE_AUDIO:
        clip = _as_dict(content.get("audio"))
        audio = (Audio(url=clip.get("url", "")),)
        text = Audio.PATTERN
    else:
        text = UNHANDLED_TYPE_TEXT

    return (
        IncomingMessage(
            text=text,
            sender=sender or "",
            recipient=recipient or "",
            payload=event,
            images=images,
            audio=audio,
        ),
    )


def verify_signature(
    body: bytes,
    url: str,
    signature_header: str,
    signing_key: str,
    leeway: int = 1,
) -> None:
    """Verify a MessageBird-Signature-JWT header.

    The token is HS256-signed with the webhook signing key and carries
    `url_hash` (sha256 of the full request URL) and, for non-empty
    bodies, `payload_hash` (sha256 of the raw body).

    Args:
        body: Raw request body bytes.
        url: Full URL the webhook was delivered to, query included.
        signature_header: MessageBird-Signature-JWT header value.
        signing_key: Signing key from the MessageBird dashboard.
        leeway: Clock skew tolerance in seconds for nbf/exp.

    Raises:
        SignatureVerificationError: If the token or any hash does not match.
    """
    if not signature_header:
        raise SignatureVerificationError("missing signature header")

    try:
        claims = jwt.decode(
            signature_header,
            signing_key,
            algorithms=["HS256"],
            issuer=SIGNATURE_ISSUER,
            leeway=leeway,
            options={"require": ["iss", "nbf", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise SignatureVerificationError("signature expired") from e
    except jwt.InvalidTokenError as e:
        raise SignatureVerificationError("invalid signature token") from e

    expected_url_hash = hashlib.sha256(url.encode("utf-8")).hexdigest()
    if not hmac.compare_digest(str(claims.get("url_hash", "")).encode(), expected_url_hash.encode()):
        raise SignatureVerificationError("url hash mismatch")

    payload_hash = claims.get("payload_hash")
    if body:
        expected_payload_hash = hashlib.sha256(body).hexdigest()
        if not payload_hash or not hmac.compare_digest(str(payload_hash).encode(), expected_payload_hash.encode()):
            raise SignatureVerificationError("payload hash mismatch")
    elif payload_hash:
        raise SignatureVerificationError("unexpected payload hash for empty body")
