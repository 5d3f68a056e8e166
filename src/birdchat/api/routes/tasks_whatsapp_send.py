"""Task route for proactive WhatsApp sends."""

from __future__ import annotations

import hmac
from typing import Literal

import requests
from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from birdchat.config import MessagebirdConfig
from birdchat.messages import (
    Attachment,
    Audio,
    File,
    Image,
    IncomingMessage,
    Location,
    OutgoingMessage,
    Video,
)
from birdchat.observability.correlation import correlation_scope, get_correlation_id
from birdchat.observability.logging import get_logger
from birdchat.observability.redaction import hash_identifier, safe_log_context
from birdchat.whatsapp.driver import MessagebirdWhatsappDriver
from birdchat.whatsapp.messagebird_sender import (
    ConversationsClient,
    MissingChannelIdError,
    UnsupportedMessageTypeError,
    create_client,
)
from birdchat.whatsapp.payload import SENDER_CHANNEL_ID_PARAM

router = APIRouter(prefix="/tasks/whatsapp", tags=["tasks"])

logger = get_logger(__name__)

INTERNAL_TASK_SECRET_HEADER = "X-Internal-Task-Secret"


class AttachmentRequest(BaseModel):
    """Attachment of a proactive send."""

    type: Literal["image", "video", "audio", "file", "location"]
    url: str | None = None
    title: str = ""
    latitude: float | None = None
    longitude: float | None = None


class SendMessageRequest(BaseModel):
    """Request model for send-message task.

    `channel_id` is required here: there is no inbound event to take
    it from.
    """

    to: str
    channel_id: str
    text: str = ""
    attachment: AttachmentRequest | None = None
    correlation_id: str | None = None


def _get_client(config: MessagebirdConfig) -> ConversationsClient:
    """Build the request-scoped client (allows test injection)."""
    return create_client(config)


def _verify_task_secret(request: Request, config: MessagebirdConfig) -> bool:
    """Fail closed when INTERNAL_TASK_SECRET is not configured."""
    if not config.internal_task_secret:
        return False
    provided = request.headers.get(INTERNAL_TASK_SECRET_HEADER, "")
    return hmac.compare_digest(provided.encode(), config.internal_task_secret.encode())


def _to_attachment(req: AttachmentRequest) -> Attachment:
    if req.type == "location":
        if req.latitude is None or req.longitude is None:
            raise HTTPException(status_code=400, detail="location requires latitude and longitude")
        return Location(latitude=req.latitude, longitude=req.longitude)

    if not req.url:
        raise HTTPException(status_code=400, detail=f"{req.type} requires url")

    if req.type == "image":
        return Image(url=req.url, title=req.title)
    if req.type == "video":
        return Video(url=req.url, title=req.title)
    if req.type == "audio":
        return Audio(url=req.url, title=req.title)
    return File(url=req.url, title=req.title)


@router.post("/send-message")
async def send_message(request: Request, req: SendMessageRequest):
    """Send a WhatsApp message that is not a reply to a webhook.

    Returns:
        {"ok": true} on success (or when the loop guard drops the send).
        401 without a valid X-Internal-Task-Secret.
        400 for an incomplete attachment or unresolvable message.
        502 when the Conversations API call fails.
    """
    correlation_id = req.correlation_id or get_correlation_id()
    config: MessagebirdConfig = request.app.state.config

    if not _verify_task_secret(request, config):
        logger.warning(
            "task auth failed",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        raise HTTPException(status_code=401, detail="Unauthorized")

    attachment = _to_attachment(req.attachment) if req.attachment else None
    outgoing = OutgoingMessage(text=req.text, attachment=attachment)

    # Stand-in for the message being answered: the addressee becomes the sender
    incoming = IncomingMessage(text="", sender=req.to, recipient=config.business_number)

    log_ctx = safe_log_context(
        correlationId=correlation_id,
        to_hash=hash_identifier(req.to.lstrip("+")),
        text_len=len(req.text),
        attachment=attachment.kind.value if attachment else None,
    )
    logger.info("send-message task received", extra={"extra_fields": log_ctx})

    try:
        client = _get_client(config)
    except RuntimeError:
        logger.exception("messagebird client unavailable", extra={"extra_fields": log_ctx})
        return Response(status_code=503, content="not configured")

    try:
        driver = MessagebirdWhatsappDriver({}, config, client=client)
        # Sender logs carry the task's own correlation ID
        with correlation_scope(correlation_id):
            await run_in_threadpool(
                driver.reply,
                outgoing,
                incoming,
                {SENDER_CHANNEL_ID_PARAM: req.channel_id},
            )
    except (MissingChannelIdError, UnsupportedMessageTypeError) as e:
        logger.warning(
            "send-message task rejected",
            extra={"extra_fields": safe_log_context(**log_ctx, error_type=type(e).__name__)},
        )
        raise HTTPException(status_code=400, detail=str(e))
    except requests.RequestException:
        logger.exception("send-message task failed", extra={"extra_fields": log_ctx})
        return Response(status_code=502, content="send failed")
    finally:
        client.close()

    return {"ok": True}
