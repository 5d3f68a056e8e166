"""WhatsApp webhook route - MessageBird Conversations API integration.

Security:
- Channel addresses and message text exist only in memory
- Logs contain NO PII (hashes and lengths only)

Response codes:
- 200 for every delivery we will not act on (foreign platform, bad
  signature, suppressed echo, invalid body) so MessageBird does not retry
- 502 when sending the reply fails at the transport level, so the whole
  delivery is retried by MessageBird
"""

from __future__ import annotations

import json
from typing import Any

import requests
from fastapi import APIRouter, Header, Request, Response
from fastapi.concurrency import run_in_threadpool

from birdchat.config import MessagebirdConfig
from birdchat.observability.correlation import get_correlation_id
from birdchat.observability.logging import get_logger
from birdchat.observability.redaction import hash_identifier, safe_log_context
from birdchat.whatsapp.driver import MessagebirdWhatsappDriver
from birdchat.whatsapp.messagebird_adapter import (
    SIGNATURE_HEADER,
    SignatureVerificationError,
    verify_signature,
)
from birdchat.whatsapp.messagebird_sender import (
    ConversationsClient,
    MissingChannelIdError,
    UnsupportedMessageTypeError,
    create_client,
)
from birdchat.whatsapp.payload import UnsupportedAttachmentError

router = APIRouter(prefix="/webhooks/whatsapp", tags=["webhooks"])

logger = get_logger(__name__)


def _get_client(config: MessagebirdConfig) -> ConversationsClient:
    """Build the request-scoped client (allows test injection)."""
    return create_client(config)


def _check_signature(
    body: bytes, url: str, signature: str | None, config: MessagebirdConfig
) -> bool:
    if not config.signing_key:
        logger.debug(
            "messagebird signing key not configured, signature check skipped",
            extra={"extra_fields": safe_log_context(correlationId=get_correlation_id())},
        )
        return True

    try:
        verify_signature(body, url, signature or "", config.signing_key)
    except SignatureVerificationError as e:
        logger.warning(
            "messagebird signature verification failed",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    error=str(e),
                )
            },
        )
        return False
    return True


@router.post("/messagebird")
async def messagebird_webhook(
    request: Request,
    messagebird_signature_jwt: str | None = Header(None, alias=SIGNATURE_HEADER),
) -> Response:
    """Receive a Conversations API webhook and answer it.

    Each accepted incoming message is passed to the application handler;
    a non-None return value is sent back to the sender.
    """
    correlation_id = get_correlation_id()
    config: MessagebirdConfig = request.app.state.config
    handler = request.app.state.message_handler

    # 1. Raw body, needed for signature verification
    try:
        body = await request.body()
    except Exception:
        logger.warning(
            "failed to read request body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=200, content="ok")

    signature_valid = _check_signature(body, str(request.url), messagebird_signature_jwt, config)

    # 2. Parse JSON
    try:
        event: Any = json.loads(body)
    except ValueError:
        logger.warning(
            "invalid json body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=200, content="ok")

    if not isinstance(event, dict):
        return Response(status_code=200, content="ok")

    # 3. Classify; the client is only built once a reply has to go out
    driver = MessagebirdWhatsappDriver(event, config, signature_valid=signature_valid)

    if not driver.matches_request():
        logger.debug(
            "webhook not handled by whatsapp driver",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    signature_valid=signature_valid,
                )
            },
        )
        return Response(status_code=200, content="ok")

    messages = driver.get_messages()
    if not messages:
        logger.info(
            "whatsapp webhook suppressed",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=200, content="ok")

    try:
        for message in messages:
            log_ctx = safe_log_context(
                correlationId=correlation_id,
                from_hash=hash_identifier(message.sender),
                text_len=len(message.text),
                images=len(message.images),
                audio=len(message.audio),
            )
            logger.info("whatsapp message received", extra={"extra_fields": log_ctx})

            reply = await run_in_threadpool(handler, message)
            if reply is None:
                continue

            if driver.client is None:
                try:
                    driver.client = _get_client(config)
                except RuntimeError:
                    logger.exception(
                        "messagebird client unavailable, reply dropped",
                        extra={"extra_fields": log_ctx},
                    )
                    continue

            try:
                await run_in_threadpool(driver.reply, reply, message)
            except requests.RequestException:
                logger.exception("whatsapp reply send failed", extra={"extra_fields": log_ctx})
                return Response(status_code=502, content="send failed")
            except (
                UnsupportedAttachmentError,
                UnsupportedMessageTypeError,
                MissingChannelIdError,
            ) as e:
                # Retrying the delivery cannot fix these
                logger.error(
                    "whatsapp reply rejected",
                    extra={
                        "extra_fields": safe_log_context(
                            **log_ctx, error_type=type(e).__name__
                        )
                    },
                )
    finally:
        if driver.client is not None:
            driver.client.close()

    return Response(status_code=200, content="ok")
