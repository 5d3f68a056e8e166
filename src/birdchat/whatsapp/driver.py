"""Per-request MessageBird WhatsApp driver.

One driver is built for each webhook delivery (or proactive send). The
inbound event is classified once at construction. The Conversations API
client is only needed to send: it is taken from the caller or created on
the first send, then reused for every send in that scope.
"""

from __future__ import annotations

from typing import Any

from birdchat.config import MessagebirdConfig
from birdchat.messages import Answer, IncomingMessage, OutgoingMessage

from . import messagebird_adapter, messagebird_sender, payload
from .messagebird_sender import ConversationsClient
from .models import OutgoingPayload


class MessagebirdWhatsappDriver:
    """Bridges webhook events and the Conversations API for WhatsApp.

    Args:
        event: Decoded webhook body (empty dict for proactive sends).
        config: Adapter configuration.
        client: Conversations API client. Built from config on the first
            send if omitted.
        signature_valid: Outcome of the webhook authenticity check.
    """

    DRIVER_NAME = "MessagebirdWhatsapp"

    def __init__(
        self,
        event: dict[str, Any],
        config: MessagebirdConfig,
        client: ConversationsClient | None = None,
        signature_valid: bool = True,
    ) -> None:
        self.event = event
        self.config = config
        self.signature_valid = signature_valid
        self.client: ConversationsClient | None = client
        self.messages: tuple[IncomingMessage, ...] = messagebird_adapter.extract_messages(event)

    def matches_request(self) -> bool:
        return messagebird_adapter.matches_request(self.event, self.signature_valid)

    def get_messages(self) -> tuple[IncomingMessage, ...]:
        """Messages of this turn. Same tuple on every call."""
        return self.messages

    def build_service_payload(
        self,
        outgoing: OutgoingMessage | str,
        incoming: IncomingMessage,
        additional_parameters: dict[str, Any] | None = None,
    ) -> OutgoingPayload:
        return payload.build_service_payload(outgoing, incoming, additional_parameters)

    def send_payload(self, service_payload: OutgoingPayload) -> None:
        if self.client is None:
            self.client = messagebird_sender.create_client(self.config)
        messagebird_sender.send_payload(
            service_payload,
            client=self.client,
            business_number=self.config.business_number,
        )

    def reply(
        self,
        outgoing: OutgoingMessage | str,
        incoming: IncomingMessage,
        additional_parameters: dict[str, Any] | None = None,
    ) -> OutgoingPayload:
        """Build and send a reply. Returns the payload handed to the sender."""
        service_payload = self.build_service_payload(outgoing, incoming, additional_parameters)
        self.send_payload(service_payload)
        return service_payload

    def get_conversation_answer(self, message: IncomingMessage) -> Answer:
        return Answer(
            text=message.text,
            value=message.text,
            interactive_reply=True,
            message=message,
        )
