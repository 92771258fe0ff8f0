"""
Telegram platform adapter.

Uses python-telegram-bot for sending messages and bot setup (getMe, setWebhook);
webhook updates are normalized from the validated update schema.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from telegram import Bot
from telegram.error import TelegramError

from app.adapters.base import BasePlatformAdapter, find_header
from app.exceptions import PlatformSendError
from app.schemas.inbox import (
    InboundMessage,
    MessageType,
    OutboundMessage,
    OutboundSendResult,
    Participant,
    Platform,
)
from app.schemas.telegram import TelegramWebhookUpdate

ALLOWED_UPDATES = ["message"]

# Outbound media type -> (Bot method, file argument)
MEDIA_SENDERS = {
    "image": ("send_photo", "photo"),
    "video": ("send_video", "video"),
    "audio": ("send_audio", "audio"),
    "document": ("send_document", "document"),
}


def telegram_conversation_id(chat_id: int | str) -> str:
    return f"telegram_{chat_id}"


class TelegramAdapter(BasePlatformAdapter):
    """Telegram adapter: parse webhook updates, send messages via Bot API."""

    platform = Platform.TELEGRAM
    TELEGRAM_SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

    def __init__(self, bot_token: str, webhook_secret: Optional[str] = None) -> None:
        self._bot_token = bot_token
        self._webhook_secret = webhook_secret
        self._bot: Optional[Bot] = None

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(token=self._bot_token)
        return self._bot

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """Validate X-Telegram-Bot-Api-Secret-Token if webhook secret is configured."""
        expected = secret or self._webhook_secret
        if not expected:
            return True
        return find_header(request_headers, self.TELEGRAM_SECRET_HEADER) == expected

    def file_url(self, file_id: str) -> str:
        """Bot API getFile URL; the file path is resolved by a later authenticated fetch."""
        return f"https://api.telegram.org/bot{self._bot_token}/getFile?file_id={file_id}"

    def parse_webhook(self, update: TelegramWebhookUpdate) -> Optional[InboundMessage]:
        """Normalize a Telegram update. Returns None when the update carries no message."""
        msg = update.message
        if msg is None:
            return None

        from_user = msg.from_
        participant_id = str(from_user.id) if from_user else str(msg.chat.id)
        name = None
        if from_user:
            name = " ".join(
                part for part in (from_user.first_name, from_user.last_name) if part
            ) or None

        message_type = MessageType.TEXT
        media_url = None
        media_type = None
        if msg.photo:
            message_type = MessageType.IMAGE
            media_url = self.file_url(msg.photo[-1].file_id)
            media_type = "image/jpeg"
        elif msg.document:
            message_type = MessageType.DOCUMENT
            media_url = self.file_url(msg.document.file_id)
            media_type = msg.document.mime_type
        elif msg.video:
            message_type = MessageType.VIDEO
            media_url = self.file_url(msg.video.file_id)
            media_type = msg.video.mime_type

        return InboundMessage(
            platform=Platform.TELEGRAM,
            external_conversation_id=telegram_conversation_id(msg.chat.id),
            participant=Participant(
                id=participant_id,
                username=from_user.username if from_user else None,
                name=name,
            ),
            message_id=str(msg.message_id),
            sent_at=datetime.fromtimestamp(msg.date, tz=timezone.utc),
            message_type=message_type,
            text=msg.text or msg.caption or "",
            media_url=media_url,
            media_type=media_type,
        )

    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Send via Bot API; media goes out with the text as caption."""
        bot = self._get_bot()
        try:
            if outbound.media_url:
                method, field = MEDIA_SENDERS.get(
                    outbound.media_type or "image", MEDIA_SENDERS["document"]
                )
                sent = await getattr(bot, method)(
                    chat_id=outbound.recipient_id,
                    caption=outbound.text or None,
                    **{field: outbound.media_url},
                )
            else:
                sent = await bot.send_message(
                    chat_id=outbound.recipient_id,
                    text=outbound.text,
                )
        except TelegramError as e:
            raise PlatformSendError(self.platform, str(e)) from e
        return OutboundSendResult(platform_message_id=str(sent.message_id))

    async def get_me(self):
        """Validate the token; returns the bot user (id, username, first_name)."""
        return await self._get_bot().get_me()

    async def set_webhook(self, url: str, secret_token: Optional[str] = None) -> bool:
        return await self._get_bot().set_webhook(
            url=url,
            secret_token=secret_token,
            allowed_updates=ALLOWED_UPDATES,
        )
