"""
Telegram webhook payload schemas.

Matches the structure Telegram sends to webhook endpoints (message updates).
Only the fields the inbox reads are declared; everything else is ignored.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    """Telegram user (message.from)."""

    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None


class TelegramChat(BaseModel):
    """Telegram chat (message.chat)."""

    id: int
    type: str = "private"


class TelegramPhotoSize(BaseModel):
    file_id: str
    width: Optional[int] = None
    height: Optional[int] = None


class TelegramFile(BaseModel):
    """Document or video attachment."""

    file_id: str
    mime_type: Optional[str] = None


class TelegramMessage(BaseModel):
    """Telegram message (update.message)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message_id: int
    from_: Optional[TelegramUser] = Field(default=None, alias="from")
    chat: TelegramChat
    date: int
    text: Optional[str] = None
    caption: Optional[str] = None
    photo: Optional[list[TelegramPhotoSize]] = None
    document: Optional[TelegramFile] = None
    video: Optional[TelegramFile] = None


class TelegramWebhookUpdate(BaseModel):
    """Telegram webhook update payload (root object)."""

    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None
