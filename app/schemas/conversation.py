"""Pydantic schemas for conversations, messages and inbox operations."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.inbox import ConversationStatus, Priority

# -----------------------------------------------------------------------------
# Read models
# -----------------------------------------------------------------------------


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    platform_message_id: str
    direction: str
    message_type: str
    text_content: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    sender_id: Optional[str] = None
    sender_username: Optional[str] = None
    sender_name: Optional[str] = None
    sent_by_user_id: Optional[UUID] = None
    is_read: bool
    sent_at: datetime
    created_at: datetime


class ConversationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    connected_account_id: Optional[UUID] = None
    platform: str
    platform_conversation_id: str
    participant_id: str
    participant_username: Optional[str] = None
    participant_name: Optional[str] = None
    participant_avatar_url: Optional[str] = None
    platform_post_id: Optional[str] = None
    status: str
    priority: str
    sentiment: Optional[str] = None
    assigned_to: Optional[UUID] = None
    assigned_at: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)
    message_count: int
    last_message_at: datetime
    last_customer_message_at: Optional[datetime] = None
    last_brand_reply_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class InboxStats(BaseModel):
    total: int
    unread: int
    read: int
    replied: int
    archived: int
    unassigned: int


# -----------------------------------------------------------------------------
# Updates
# -----------------------------------------------------------------------------


class ConversationStatusUpdate(BaseModel):
    status: ConversationStatus


class ConversationPriorityUpdate(BaseModel):
    priority: Priority


class ConversationAssign(BaseModel):
    """Assign to a user; null unassigns."""

    user_id: Optional[UUID] = None


class ConversationTagsUpdate(BaseModel):
    tags: list[str] = Field(min_length=1)
