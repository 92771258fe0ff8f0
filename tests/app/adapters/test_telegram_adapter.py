"""Tests for TelegramAdapter."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.error import BadRequest

from app.adapters.telegram import ALLOWED_UPDATES, TelegramAdapter
from app.exceptions import PlatformSendError
from app.schemas.inbox import MessageType, OutboundMessage, Platform
from app.schemas.telegram import TelegramWebhookUpdate


def minimal_telegram_update(**message_overrides):
    """Minimal valid Telegram webhook update (message with text)."""
    message = {
        "message_id": 456,
        "from": {
            "id": 789,
            "is_bot": False,
            "first_name": "Test",
            "last_name": "User",
            "username": "testuser",
        },
        "chat": {"id": 789, "type": "private"},
        "date": 1609459200,  # Unix timestamp
        "text": "hello",
    }
    message.update(message_overrides)
    return {"update_id": 123, "message": message}


# Token format: digits:rest (e.g. 123456:ABC). Used only for parse tests; no real API calls.
FAKE_TOKEN = "123456:AAHdqTcvCH1vGWJxfSeofSAs0K5P"


@pytest.fixture
def telegram_adapter():
    return TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret=None)


def test_verify_webhook_no_secret(telegram_adapter):
    assert telegram_adapter.verify_webhook(None, {}) is True
    assert (
        telegram_adapter.verify_webhook(None, {"X-Telegram-Bot-Api-Secret-Token": "x"})
        is True
    )


def test_verify_webhook_with_secret():
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret="secret")
    assert adapter.verify_webhook(None, {"X-Telegram-Bot-Api-Secret-Token": "secret"}) is True
    assert adapter.verify_webhook(None, {"X-Telegram-Bot-Api-Secret-Token": "wrong"}) is False
    assert adapter.verify_webhook(None, {}) is False


def test_verify_webhook_case_insensitive_header():
    """Headers are case-insensitive; Starlette/FastAPI lowercases them."""
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret="my-secret")
    assert adapter.verify_webhook(None, {"x-telegram-bot-api-secret-token": "my-secret"})
    assert adapter.verify_webhook(None, {"X-TELEGRAM-BOT-API-SECRET-TOKEN": "my-secret"})


def test_parse_webhook_text(telegram_adapter):
    update = TelegramWebhookUpdate.model_validate(minimal_telegram_update())
    inbound = telegram_adapter.parse_webhook(update)
    assert inbound.platform == Platform.TELEGRAM
    assert inbound.external_conversation_id == "telegram_789"
    assert inbound.participant.id == "789"
    assert inbound.participant.name == "Test User"
    assert inbound.participant.username == "testuser"
    assert inbound.message_id == "456"
    assert inbound.text == "hello"
    assert inbound.message_type == MessageType.TEXT
    assert inbound.media_url is None
    assert inbound.sent_at == datetime(2021, 1, 1, tzinfo=timezone.utc)


def test_parse_webhook_without_last_name(telegram_adapter):
    payload = minimal_telegram_update()
    del payload["message"]["from"]["last_name"]
    inbound = telegram_adapter.parse_webhook(TelegramWebhookUpdate.model_validate(payload))
    assert inbound.participant.name == "Test"


def test_parse_webhook_photo_uses_largest_size(telegram_adapter):
    payload = minimal_telegram_update(
        text=None,
        caption="look at this",
        photo=[
            {"file_id": "small", "width": 90, "height": 90},
            {"file_id": "large", "width": 1280, "height": 1280},
        ],
    )
    inbound = telegram_adapter.parse_webhook(TelegramWebhookUpdate.model_validate(payload))
    assert inbound.message_type == MessageType.IMAGE
    assert inbound.media_type == "image/jpeg"
    assert inbound.media_url == (
        f"https://api.telegram.org/bot{FAKE_TOKEN}/getFile?file_id=large"
    )
    assert inbound.text == "look at this"


def test_parse_webhook_document(telegram_adapter):
    payload = minimal_telegram_update(
        text=None, document={"file_id": "doc1", "mime_type": "application/pdf"}
    )
    inbound = telegram_adapter.parse_webhook(TelegramWebhookUpdate.model_validate(payload))
    assert inbound.message_type == MessageType.DOCUMENT
    assert inbound.media_type == "application/pdf"
    assert inbound.media_url.endswith("file_id=doc1")


def test_parse_webhook_video(telegram_adapter):
    payload = minimal_telegram_update(
        text=None, video={"file_id": "vid1", "mime_type": "video/mp4"}
    )
    inbound = telegram_adapter.parse_webhook(TelegramWebhookUpdate.model_validate(payload))
    assert inbound.message_type == MessageType.VIDEO
    assert inbound.media_type == "video/mp4"


def test_parse_webhook_no_message_returns_none(telegram_adapter):
    update = TelegramWebhookUpdate.model_validate({"update_id": 1})
    assert telegram_adapter.parse_webhook(update) is None


@pytest.mark.asyncio
async def test_send_text(telegram_adapter):
    sent = MagicMock(message_id=999)
    bot = MagicMock()
    bot.send_message = AsyncMock(return_value=sent)
    telegram_adapter._bot = bot

    result = await telegram_adapter.send(
        OutboundMessage(platform=Platform.TELEGRAM, recipient_id="789", text="reply")
    )

    assert result.platform_message_id == "999"
    bot.send_message.assert_awaited_once_with(chat_id="789", text="reply")


@pytest.mark.asyncio
async def test_send_photo_when_media_present(telegram_adapter):
    bot = MagicMock()
    bot.send_photo = AsyncMock(return_value=MagicMock(message_id=1000))
    telegram_adapter._bot = bot

    result = await telegram_adapter.send(
        OutboundMessage(
            platform=Platform.TELEGRAM,
            recipient_id="789",
            text="caption",
            media_url="https://cdn.example.com/a.jpg",
            media_type="image",
        )
    )

    assert result.platform_message_id == "1000"
    bot.send_photo.assert_awaited_once_with(
        chat_id="789", photo="https://cdn.example.com/a.jpg", caption="caption"
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "media_type,method,field",
    [
        ("video", "send_video", "video"),
        ("document", "send_document", "document"),
        ("audio", "send_audio", "audio"),
    ],
)
async def test_send_media_uses_matching_bot_method(telegram_adapter, media_type, method, field):
    bot = MagicMock()
    setattr(bot, method, AsyncMock(return_value=MagicMock(message_id=1001)))
    bot.send_photo = AsyncMock()
    telegram_adapter._bot = bot

    await telegram_adapter.send(
        OutboundMessage(
            platform=Platform.TELEGRAM,
            recipient_id="789",
            text="",
            media_url="https://cdn.example.com/file.bin",
            media_type=media_type,
        )
    )

    getattr(bot, method).assert_awaited_once_with(
        chat_id="789", caption=None, **{field: "https://cdn.example.com/file.bin"}
    )
    bot.send_photo.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_error_raises_platform_send_error(telegram_adapter):
    bot = MagicMock()
    bot.send_message = AsyncMock(side_effect=BadRequest("Chat not found"))
    telegram_adapter._bot = bot

    with pytest.raises(PlatformSendError) as exc_info:
        await telegram_adapter.send(
            OutboundMessage(platform=Platform.TELEGRAM, recipient_id="1", text="x")
        )
    assert exc_info.value.status_code == 502
    assert "Chat not found" in exc_info.value.message
    assert exc_info.value.message.startswith("telegram API error")


@pytest.mark.asyncio
async def test_set_webhook_passes_secret_and_updates(telegram_adapter):
    bot = MagicMock()
    bot.set_webhook = AsyncMock(return_value=True)
    telegram_adapter._bot = bot

    await telegram_adapter.set_webhook("https://x/webhooks/telegram/1", secret_token="s")

    bot.set_webhook.assert_awaited_once_with(
        url="https://x/webhooks/telegram/1",
        secret_token="s",
        allowed_updates=ALLOWED_UPDATES,
    )
    assert ALLOWED_UPDATES == ["message"]
