"""Tests for TwilioWhatsAppAdapter."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.adapters.twilio_whatsapp import (
    TwilioWhatsAppAdapter,
    compute_twilio_signature,
    message_type_for_media,
)
from app.exceptions import PlatformSendError
from app.schemas.inbox import MessageType, OutboundMessage, Platform
from app.schemas.twilio import TwilioWhatsAppForm


def twilio_form(**overrides):
    form = {
        "MessageSid": "SM123",
        "From": "whatsapp:+33600000000",
        "To": "whatsapp:+15550001111",
        "Body": "Bonjour",
        "ProfileName": "Marie",
        "NumMedia": "0",
    }
    form.update(overrides)
    return form


def test_parse_webhook_strips_prefix():
    inbound = TwilioWhatsAppAdapter.parse_webhook(
        TwilioWhatsAppForm.model_validate(twilio_form())
    )
    assert inbound.platform == Platform.WHATSAPP_TWILIO
    assert inbound.external_conversation_id == "whatsapp_+33600000000"
    assert inbound.participant.id == "+33600000000"
    assert inbound.participant.name == "Marie"
    assert inbound.message_id == "SM123"
    assert inbound.text == "Bonjour"
    assert inbound.message_type == MessageType.TEXT


def test_parse_webhook_media():
    inbound = TwilioWhatsAppAdapter.parse_webhook(
        TwilioWhatsAppForm.model_validate(
            twilio_form(
                NumMedia="1",
                MediaUrl0="https://api.twilio.com/media/ME1",
                MediaContentType0="audio/ogg",
            )
        )
    )
    assert inbound.message_type == MessageType.AUDIO
    assert inbound.media_url == "https://api.twilio.com/media/ME1"
    assert inbound.media_type == "audio/ogg"


@pytest.mark.parametrize(
    "content_type,expected",
    [
        ("image/png", MessageType.IMAGE),
        ("video/mp4", MessageType.VIDEO),
        ("application/pdf", MessageType.DOCUMENT),
        (None, MessageType.TEXT),
    ],
)
def test_message_type_for_media(content_type, expected):
    assert message_type_for_media(content_type) == expected


def test_verify_signature():
    adapter = TwilioWhatsAppAdapter("ACxxx", "auth-token")
    url = "https://inbox.example.com/webhooks/twilio/whatsapp"
    params = twilio_form()
    signature = compute_twilio_signature("auth-token", url, params)

    assert adapter.verify_signature(url, params, {"x-twilio-signature": signature})
    assert not adapter.verify_signature(url, params, {"x-twilio-signature": "bogus"})
    assert not adapter.verify_signature(url, params, {})


def _mock_client(response):
    client = MagicMock()
    client.post = AsyncMock(return_value=response)
    client.get = AsyncMock(return_value=response)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


@pytest.mark.asyncio
async def test_send_posts_form_with_basic_auth():
    response = httpx.Response(201, json={"sid": "SM999"})
    client = _mock_client(response)
    adapter = TwilioWhatsAppAdapter("ACxxx", "tok", "whatsapp:+15550001111")

    with patch("app.adapters.twilio_whatsapp.httpx.AsyncClient", return_value=client):
        result = await adapter.send(
            OutboundMessage(
                platform=Platform.WHATSAPP_TWILIO, recipient_id="+33600000000", text="Hi"
            )
        )

    assert result.platform_message_id == "SM999"
    url = client.post.await_args.args[0]
    kwargs = client.post.await_args.kwargs
    assert url.endswith("/Accounts/ACxxx/Messages.json")
    assert kwargs["data"]["To"] == "whatsapp:+33600000000"
    assert kwargs["data"]["From"] == "whatsapp:+15550001111"
    assert kwargs["auth"] == ("ACxxx", "tok")


@pytest.mark.asyncio
async def test_send_non_2xx_raises():
    client = _mock_client(httpx.Response(400, text="bad number"))
    adapter = TwilioWhatsAppAdapter("ACxxx", "tok", "whatsapp:+15550001111")

    with patch("app.adapters.twilio_whatsapp.httpx.AsyncClient", return_value=client):
        with pytest.raises(PlatformSendError) as exc_info:
            await adapter.send(
                OutboundMessage(platform=Platform.WHATSAPP_TWILIO, recipient_id="+1", text="x")
            )
    assert exc_info.value.provider_status == 400


@pytest.mark.asyncio
async def test_validate_credentials_rejected():
    client = _mock_client(httpx.Response(401, json={"message": "Authenticate"}))
    adapter = TwilioWhatsAppAdapter("ACxxx", "wrong")

    with patch("app.adapters.twilio_whatsapp.httpx.AsyncClient", return_value=client):
        with pytest.raises(PlatformSendError):
            await adapter.validate_credentials()
