"""Tests for Meta (Instagram / Facebook) webhook parsing and sends."""

import hashlib
import hmac
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.adapters.meta import MetaAdapter, verify_meta_signature
from app.exceptions import PlatformSendError
from app.schemas.inbox import MessageType, OutboundMessage, Platform
from app.schemas.meta import MetaWebhookPayload

IG_ACCOUNT_ID = "17841400000000001"


def instagram_dm(**message_overrides):
    message = {"mid": "m_1", "text": "Is this in stock?"}
    message.update(message_overrides)
    return {
        "object": "instagram",
        "entry": [
            {
                "id": IG_ACCOUNT_ID,
                "time": 1700000000,
                "messaging": [
                    {
                        "sender": {"id": "555"},
                        "recipient": {"id": IG_ACCOUNT_ID},
                        "timestamp": 1700000000123,
                        "message": message,
                    }
                ],
            }
        ],
    }


def instagram_comment(sender_id="555"):
    return {
        "object": "instagram",
        "entry": [
            {
                "id": IG_ACCOUNT_ID,
                "changes": [
                    {
                        "field": "comments",
                        "value": {
                            "id": "c_1",
                            "text": "Love it",
                            "from": {"id": sender_id, "username": "fan_account"},
                            "media": {"id": "post_9"},
                        },
                    }
                ],
            }
        ],
    }


def test_parse_direct_message():
    events = MetaAdapter.parse_webhook(MetaWebhookPayload.model_validate(instagram_dm()))
    assert len(events) == 1
    event = events[0]
    assert event.platform_account_id == IG_ACCOUNT_ID
    inbound = event.inbound
    assert inbound.platform == Platform.INSTAGRAM
    assert inbound.external_conversation_id == f"instagram_555_{IG_ACCOUNT_ID}"
    assert inbound.participant.id == "555"
    assert inbound.message_id == "m_1"
    assert inbound.text == "Is this in stock?"
    # millisecond timestamps are normalized
    assert inbound.sent_at.year == 2023


def test_parse_direct_message_attachment():
    payload = instagram_dm(
        text=None, attachments=[{"type": "image", "payload": {"url": "https://cdn/x.jpg"}}]
    )
    events = MetaAdapter.parse_webhook(MetaWebhookPayload.model_validate(payload))
    inbound = events[0].inbound
    assert inbound.message_type == MessageType.IMAGE
    assert inbound.media_url == "https://cdn/x.jpg"
    assert inbound.text == ""


def test_echo_is_ignored():
    payload = instagram_dm(is_echo=True)
    assert MetaAdapter.parse_webhook(MetaWebhookPayload.model_validate(payload)) == []


def test_parse_comment():
    events = MetaAdapter.parse_webhook(
        MetaWebhookPayload.model_validate(instagram_comment())
    )
    assert len(events) == 1
    inbound = events[0].inbound
    assert events[0].platform_account_id == IG_ACCOUNT_ID
    assert inbound.external_conversation_id == "instagram_comment_post_9_555"
    assert inbound.tags == ["comment"]
    assert inbound.platform_post_id == "post_9"
    assert inbound.participant.username == "fan_account"
    assert inbound.message_id == "c_1"


def test_own_comment_is_skipped():
    payload = instagram_comment(sender_id=IG_ACCOUNT_ID)
    assert MetaAdapter.parse_webhook(MetaWebhookPayload.model_validate(payload)) == []


def test_facebook_object_maps_to_facebook_platform():
    payload = instagram_dm()
    payload["object"] = "page"
    events = MetaAdapter.parse_webhook(MetaWebhookPayload.model_validate(payload))
    assert events[0].inbound.platform == Platform.FACEBOOK
    assert events[0].inbound.external_conversation_id.startswith("facebook_555_")


def test_verify_meta_signature():
    body = b'{"object":"instagram"}'
    signature = "sha256=" + hmac.new(b"app-secret", body, hashlib.sha256).hexdigest()
    assert verify_meta_signature("app-secret", body, {"X-Hub-Signature-256": signature})
    assert not verify_meta_signature("app-secret", body, {"X-Hub-Signature-256": "sha256=00"})
    assert not verify_meta_signature("app-secret", body, {})


def _mock_client(response):
    client = MagicMock()
    client.post = AsyncMock(return_value=response)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


@pytest.mark.asyncio
async def test_send_direct_message():
    client = _mock_client(httpx.Response(200, json={"message_id": "mid.1"}))
    adapter = MetaAdapter(Platform.INSTAGRAM, IG_ACCOUNT_ID, "token")

    with patch("app.adapters.meta.httpx.AsyncClient", return_value=client):
        result = await adapter.send(
            OutboundMessage(platform=Platform.INSTAGRAM, recipient_id="555", text="Yes!")
        )

    assert result.platform_message_id == "mid.1"
    url = client.post.await_args.args[0]
    assert url == f"https://graph.instagram.com/v18.0/{IG_ACCOUNT_ID}/messages"
    assert client.post.await_args.kwargs["json"] == {
        "recipient": {"id": "555"},
        "message": {"text": "Yes!"},
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "media_type,attachment_type",
    [("image", "image"), ("video", "video"), ("audio", "audio"), ("document", "file")],
)
async def test_send_media_uses_matching_attachment_type(media_type, attachment_type):
    client = _mock_client(httpx.Response(200, json={"message_id": "mid.2"}))
    adapter = MetaAdapter(Platform.INSTAGRAM, IG_ACCOUNT_ID, "token")

    with patch("app.adapters.meta.httpx.AsyncClient", return_value=client):
        await adapter.send(
            OutboundMessage(
                platform=Platform.INSTAGRAM,
                recipient_id="555",
                media_url="https://cdn.example.com/file",
                media_type=media_type,
            )
        )

    assert client.post.await_args.kwargs["json"]["message"] == {
        "attachment": {
            "type": attachment_type,
            "payload": {"url": "https://cdn.example.com/file"},
        }
    }


@pytest.mark.asyncio
async def test_send_comment_reply():
    client = _mock_client(httpx.Response(200, json={"id": "reply_1"}))
    adapter = MetaAdapter(Platform.FACEBOOK, "page_1", "token")

    with patch("app.adapters.meta.httpx.AsyncClient", return_value=client):
        result = await adapter.send(
            OutboundMessage(
                platform=Platform.FACEBOOK,
                recipient_id="555",
                text="Thanks",
                reply_to_comment_id="c_1",
            )
        )

    assert result.platform_message_id == "reply_1"
    assert client.post.await_args.args[0] == "https://graph.facebook.com/v18.0/c_1/replies"


@pytest.mark.asyncio
async def test_send_error_keeps_provider_status():
    client = _mock_client(httpx.Response(403, text="permission denied"))
    adapter = MetaAdapter(Platform.INSTAGRAM, IG_ACCOUNT_ID, "token")

    with patch("app.adapters.meta.httpx.AsyncClient", return_value=client):
        with pytest.raises(PlatformSendError) as exc_info:
            await adapter.send(
                OutboundMessage(platform=Platform.INSTAGRAM, recipient_id="555", text="x")
            )
    assert exc_info.value.provider_status == 403
    assert exc_info.value.status_code == 502
