"""Shared test helper functions for birdchat tests.

Regular functions (not fixtures) importable from conftest.py and test
modules.
"""

from __future__ import annotations

import hashlib
import time

import jwt


def make_event(
    *,
    type: str = "text",
    content: dict | None = None,
    sender: str = "+31612345678",
    recipient: str = "+31687654321",
    direction: str = "received",
    platform: str | None = "whatsapp",
    channel_id: str | None = "chan-inbound",
) -> dict:
    """Build a Conversations API webhook event."""
    message: dict = {
        "id": "msg-1",
        "from": sender,
        "to": recipient,
        "direction": direction,
        "type": type,
        "content": content if content is not None else {"text": "hello"},
    }
    if platform is not None:
        message["platform"] = platform
    if channel_id is not None:
        message["channelId"] = channel_id
    return {"type": "message.created", "message": message}


def make_signature(
    signing_key: str,
    url: str,
    body: bytes,
    issuer: str = "MessageBird",
    expires_in: int = 300,
) -> str:
    """Create a MessageBird-Signature-JWT for a request."""
    now = int(time.time())
    claims = {
        "iss": issuer,
        "nbf": now,
        "exp": now + expires_in,
        "jti": "test-jti",
        "url_hash": hashlib.sha256(url.encode("utf-8")).hexdigest(),
    }
    if body:
        claims["payload_hash"] = hashlib.sha256(body).hexdigest()
    return jwt.encode(claims, signing_key, algorithm="HS256")
