"""Conversation model: one thread with one external participant on one platform."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import JSONType, TimestampMixin, utcnow


class Conversation(Base, TimestampMixin):
    """Natural key is (user_id, platform, platform_conversation_id); ingestion upserts on it."""

    __tablename__ = "conversations"

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "platform",
            "platform_conversation_id",
            name="uq_conversations_user_platform_external",
        ),
        Index("ix_conversations_user_last_message_at", "user_id", "last_message_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    connected_account_id = Column(
        Uuid,
        ForeignKey("connected_accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    platform = Column(String(32), nullable=False)
    platform_conversation_id = Column(String(512), nullable=False)

    participant_id = Column(String(255), nullable=False)
    participant_username = Column(String(255), nullable=True)
    participant_name = Column(String(255), nullable=True)
    participant_avatar_url = Column(String(1024), nullable=True)

    platform_post_id = Column(String(255), nullable=True)

    status = Column(String(16), nullable=False, default="unread")  # ConversationStatus
    priority = Column(String(16), nullable=False, default="normal")
    sentiment = Column(String(16), nullable=True)

    assigned_to = Column(Uuid, nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)

    tags = Column(JSONType, nullable=False, default=list)

    message_count = Column(Integer, nullable=False, default=0)
    last_message_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_customer_message_at = Column(DateTime(timezone=True), nullable=True)
    last_brand_reply_at = Column(DateTime(timezone=True), nullable=True)

    connected_account = relationship("ConnectedAccount")
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.sent_at",
    )
    team_assignments = relationship(
        "ConversationTeam",
        back_populates="conversation",
        cascade="all, delete-orphan",
    )
