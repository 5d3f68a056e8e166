"""Generic bot message model.

Provider-agnostic incoming/outgoing messages and the closed set of
attachment variants the WhatsApp channel knows how to send.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

# Text used when an inbound message carries a type this channel cannot read
UNHANDLED_TYPE_TEXT = "MESSAGE TYPE NOT HANDLED."


class AttachmentKind(str, Enum):
    """Tag identifying an attachment variant."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"
    LOCATION = "location"


@dataclass(frozen=True)
class Image:
    """Image attachment. `title` doubles as the caption."""

    PATTERN: ClassVar[str] = "%%%_IMAGE_%%%"
    kind: ClassVar[AttachmentKind] = AttachmentKind.IMAGE

    url: str
    title: str = ""


@dataclass(frozen=True)
class Video:
    PATTERN: ClassVar[str] = "%%%_VIDEO_%%%"
    kind: ClassVar[AttachmentKind] = AttachmentKind.VIDEO

    url: str
    title: str = ""


@dataclass(frozen=True)
class Audio:
    PATTERN: ClassVar[str] = "%%%_AUDIO_%%%"
    kind: ClassVar[AttachmentKind] = AttachmentKind.AUDIO

    url: str
    title: str = ""


@dataclass(frozen=True)
class File:
    PATTERN: ClassVar[str] = "%%%_FILE_%%%"
    kind: ClassVar[AttachmentKind] = AttachmentKind.FILE

    url: str
    title: str = ""


@dataclass(frozen=True)
class Location:
    """Geographic point. Coordinates may arrive as strings from user code."""

    PATTERN: ClassVar[str] = "%%%_LOCATION_%%%"
    kind: ClassVar[AttachmentKind] = AttachmentKind.LOCATION

    latitude: float | str
    longitude: float | str


Attachment = Union[Image, Video, Audio, File, Location]


@dataclass(frozen=True)
class IncomingMessage:
    """Normalized inbound message.

    Exactly one content kind is populated: plain text, a single image,
    a single audio clip, or the unhandled-type sentinel text.

    Attributes:
        text: Message text or a sentinel placeholder for non-text content.
        sender: Channel address of the author (e.g. "+31612345678").
        recipient: Channel address the message was sent to.
        payload: Raw webhook event, untouched.
        images: Zero or one image attachment.
        audio: Zero or one audio attachment.
    """

    text: str
    sender: str
    recipient: str
    payload: dict[str, Any] = field(default_factory=dict, repr=False)
    images: tuple[Image, ...] = ()
    audio: tuple[Audio, ...] = ()


@dataclass(frozen=True)
class OutgoingMessage:
    """Message produced by application logic for delivery."""

    text: str = ""
    attachment: Attachment | None = None


@dataclass(frozen=True)
class Answer:
    """Reply to a conversation question, wrapping the incoming message."""

    text: str
    value: str
    interactive_reply: bool
    message: IncomingMessage
