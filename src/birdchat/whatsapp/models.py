"""WhatsApp wire-side models for the MessageBird Conversations API."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageType(str, Enum):
    """Content types accepted by the conversations "start" operation."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"
    LOCATION = "location"


@dataclass(frozen=True)
class OutgoingPayload:
    """Canonical send parameters.

    `type` decides which kind-specific field is set:
    text -> `text`; image/video/audio/file -> `url`;
    location -> `latitude` and `longitude`.

    `extra` keeps the caller-supplied parameters the payload was seeded
    with (e.g. `sender_channel_id`), minus the keys owned by the payload.
    """

    recipient: str
    type: MessageType
    channel_id: str | None = None
    text: str | None = None
    url: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Render populated fields using provider key names."""
        data: dict[str, Any] = dict(self.extra)
        data["recipient"] = self.recipient
        data["type"] = getattr(self.type, "value", self.type)
        if self.channel_id is not None:
            data["channelId"] = self.channel_id
        for key in ("text", "url", "latitude", "longitude"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class ProviderMessage:
    """Request object for the conversations "start" operation.

    Built fresh per send and discarded after the call.
    """

    to: str
    channel_id: str
    type: MessageType
    content: dict[str, Any]

    def to_request_body(self) -> dict[str, Any]:
        return {
            "to": self.to,
            "channelId": self.channel_id,
            "type": self.type.value,
            "content": self.content,
        }
