"""Tests for the outgoing payload builder."""

from dataclasses import dataclass

import pytest

from birdchat.messages import (
    Audio,
    File,
    Image,
    IncomingMessage,
    Location,
    OutgoingMessage,
    Video,
)
from birdchat.whatsapp.models import MessageType
from birdchat.whatsapp.payload import (
    UnsupportedAttachmentError,
    audio_filename,
    build_service_payload,
    strip_plus,
)

from helpers import make_event


def _incoming(sender: str = "+31612345678", channel_id: str | None = "chan-inbound"):
    event = make_event(sender=sender, channel_id=channel_id)
    return IncomingMessage(text="hi", sender=sender, recipient="+31687654321", payload=event)


class TestRecipientAndChannel:
    """Recipient normalization and channel ID precedence."""

    def test_recipient_has_no_leading_plus(self):
        payload = build_service_payload(OutgoingMessage(text="yo"), _incoming("+31612345678"))

        assert payload.recipient == "31612345678"
        assert payload.type == MessageType.TEXT

    def test_recipient_without_plus_unchanged(self):
        payload = build_service_payload(OutgoingMessage(text="yo"), _incoming("31612345678"))
        assert payload.recipient == "31612345678"

    def test_inbound_channel_id_wins_over_fallback(self):
        payload = build_service_payload(
            OutgoingMessage(text="yo"),
            _incoming(channel_id="chan-inbound"),
            {"sender_channel_id": "chan-fallback"},
        )
        assert payload.channel_id == "chan-inbound"

    def test_fallback_channel_id_used_when_inbound_missing(self):
        payload = build_service_payload(
            OutgoingMessage(text="yo"),
            _incoming(channel_id=None),
            {"sender_channel_id": "chan-fallback"},
        )
        assert payload.channel_id == "chan-fallback"

    def test_channel_id_unset_when_no_source(self):
        payload = build_service_payload(OutgoingMessage(text="yo"), _incoming(channel_id=None))

        assert payload.channel_id is None
        assert "channelId" not in payload.to_dict()

    def test_extras_seed_payload_but_never_override(self):
        payload = build_service_payload(
            OutgoingMessage(text="real"),
            _incoming(),
            {"recipient": "999", "text": "seeded", "reference": "order-7"},
        )

        data = payload.to_dict()
        assert data["recipient"] == "31612345678"
        assert data["text"] == "real"
        assert data["reference"] == "order-7"


class TestTextAndAttachments:
    """Type branching over the attachment variants."""

    def test_text_message(self):
        payload = build_service_payload(OutgoingMessage(text="hello there"), _incoming())

        assert payload.type == MessageType.TEXT
        assert payload.text == "hello there"
        assert payload.url is None

    def test_bare_string_is_text(self):
        payload = build_service_payload("plain", _incoming())

        assert payload.type == MessageType.TEXT
        assert payload.text == "plain"

    def test_image_does_not_forward_title(self):
        outgoing = OutgoingMessage(attachment=Image(url="http://x/a.png", title="caption"))

        payload = build_service_payload(outgoing, _incoming())

        assert payload.type == MessageType.IMAGE
        assert payload.url == "http://x/a.png"
        assert "caption" not in payload.to_dict().values()

    @pytest.mark.parametrize(
        "attachment, expected_type",
        [
            (Video(url="http://x/v.mp4"), MessageType.VIDEO),
            (Audio(url="http://x/a.mp3"), MessageType.AUDIO),
            (File(url="http://x/f.pdf"), MessageType.FILE),
        ],
    )
    def test_url_attachments(self, attachment, expected_type):
        payload = build_service_payload(OutgoingMessage(attachment=attachment), _incoming())

        assert payload.type == expected_type
        assert payload.url == attachment.url
        assert payload.text is None

    def test_location(self):
        outgoing = OutgoingMessage(attachment=Location(latitude=52.1, longitude=4.3))

        payload = build_service_payload(outgoing, _incoming())

        assert payload.type == MessageType.LOCATION
        assert payload.latitude == 52.1
        assert payload.longitude == 4.3
        assert isinstance(payload.latitude, float)
        assert isinstance(payload.longitude, float)
        assert "url" not in payload.to_dict()

    def test_location_string_coordinates_become_floats(self):
        outgoing = OutgoingMessage(attachment=Location(latitude="52.1", longitude="4.3"))

        payload = build_service_payload(outgoing, _incoming())

        assert payload.latitude == 52.1
        assert payload.longitude == 4.3

    def test_unknown_attachment_raises(self):
        @dataclass(frozen=True)
        class Sticker:
            url: str

        outgoing = OutgoingMessage(attachment=Sticker(url="http://x/s.webp"))  # type: ignore[arg-type]

        with pytest.raises(UnsupportedAttachmentError, match="Sticker"):
            build_service_payload(outgoing, _incoming())


class TestHelpers:
    def test_strip_plus(self):
        assert strip_plus("+31612345678") == "31612345678"
        assert strip_plus("31612345678") == "31612345678"
        assert strip_plus("") == ""

    def test_audio_filename_keeps_extension(self):
        name = audio_filename("https://cdn.example.com/voice/note.ogg?sig=abc")

        assert name.endswith(".ogg")
        assert len(name) == 32 + len(".ogg")

    def test_audio_filename_is_unique(self):
        url = "https://cdn.example.com/note.mp3"
        assert audio_filename(url) != audio_filename(url)

    def test_audio_filename_without_extension(self):
        name = audio_filename("https://cdn.example.com/stream")
        assert "." not in name
