"""
Normalized message contracts for the unified inbox.

Every provider payload is converted into ``InboundMessage`` before it touches
the database; outbound sends use ``OutboundMessage`` and report back with
``OutboundSendResult``. Stable and independent of any single provider.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class Platform(StrEnum):
    """Platforms a conversation can live on."""

    TELEGRAM = "telegram"
    WHATSAPP_TWILIO = "whatsapp_twilio"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    GMAIL = "gmail"
    OUTLOOK = "outlook"


class ConversationStatus(StrEnum):
    UNREAD = "unread"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"
    SNOOZED = "snoozed"


class Priority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Sentiment(StrEnum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class MessageDirection(StrEnum):
    """Canonical direction; ``incoming``/``outgoing`` and ``received``/``sent`` map here."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class MessageType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    STORY_REPLY = "story_reply"
    STORY_MENTION = "story_mention"


class Participant(BaseModel):
    """External party of a conversation as reported by the provider."""

    id: str
    username: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class InboundMessage(BaseModel):
    """Normalized inbound message (adapter → ingestion)."""

    platform: Platform
    external_conversation_id: str
    participant: Participant
    message_id: str
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    direction: MessageDirection = MessageDirection.INBOUND
    message_type: MessageType = MessageType.TEXT
    text: str = ""
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    is_read: bool = False
    # Comment threads (Meta) carry the post they belong to
    platform_post_id: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


class OutboundMessage(BaseModel):
    """Normalized outbound message (send command → adapter)."""

    platform: Platform
    recipient_id: str  # chat id, phone number, PSID/IGSID or email address
    text: str = ""
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    subject: Optional[str] = None
    # Meta comment threads are answered with /{comment_id}/replies
    reply_to_comment_id: Optional[str] = None


class OutboundSendResult(BaseModel):
    """Result of a successful provider send."""

    platform_message_id: str
