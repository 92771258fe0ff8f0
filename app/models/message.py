"""Message model: one row per inbound or outbound message in a conversation. Append-only."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import utcnow


class Message(Base):
    """direction is 'inbound' (from the participant) or 'outbound' (brand reply)."""

    __tablename__ = "messages"

    __table_args__ = (
        UniqueConstraint(
            "conversation_id",
            "platform_message_id",
            name="uq_messages_conversation_platform_message",
        ),
        Index("ix_messages_conversation_sent_at", "conversation_id", "sent_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    platform_message_id = Column(String(255), nullable=False)
    direction = Column(String(16), nullable=False)
    message_type = Column(String(32), nullable=False, default="text")
    text_content = Column(Text, nullable=True)
    media_url = Column(String(2048), nullable=True)
    media_type = Column(String(128), nullable=True)
    sender_id = Column(String(255), nullable=True)
    sender_username = Column(String(255), nullable=True)
    sender_name = Column(String(255), nullable=True)
    sent_by_user_id = Column(Uuid, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    sent_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    conversation = relationship("Conversation", back_populates="messages")
