"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import FastAPI, Request, Response

from birdchat.config import MessagebirdConfig, load_config
from birdchat.messages import IncomingMessage, OutgoingMessage
from birdchat.observability.correlation import (
    CORRELATION_ID_HEADER,
    correlation_scope,
)

from .routers import public
from .routes import tasks_whatsapp_send, webhooks_whatsapp_messagebird

# Application logic: answer an incoming message, or None for no reply
MessageHandler = Callable[[IncomingMessage], OutgoingMessage | str | None]


def _no_reply(message: IncomingMessage) -> None:
    return None


def create_app(
    handler: MessageHandler | None = None,
    config: MessagebirdConfig | None = None,
) -> FastAPI:
    """Create FastAPI app serving the MessageBird WhatsApp webhook.

    Args:
        handler: Called once per accepted incoming message. Its return
            value, if any, is sent back to the sender.
        config: Adapter config. Read from the environment if None.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="birdchat",
        docs_url=None,
        redoc_url=None,
    )

    app.state.config = config if config is not None else load_config()
    app.state.message_handler = handler or _no_reply

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_ID_HEADER)) as cid:
            response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response

    app.include_router(public.router)
    app.include_router(webhooks_whatsapp_messagebird.router)
    app.include_router(tasks_whatsapp_send.router)

    return app
