"""Append-only message store with idempotent inbound insert."""

from __future__ import annotations

import uuid
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.models.conversation import Conversation
from app.models.message import Message
from app.models.mixins import utcnow
from app.schemas.inbox import (
    ConversationStatus,
    InboundMessage,
    MessageDirection,
    MessageType,
    OutboundMessage,
    OutboundSendResult,
)
from app.services.conversation_service import later_of
from app.utils.db.upsert import dialect_insert


class MessageService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_message(self, message_id: UUID) -> Optional[Message]:
        return self.db.get(Message, message_id)

    def get_by_platform_id(
        self, conversation_id: UUID, platform_message_id: str
    ) -> Optional[Message]:
        return (
            self.db.query(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.platform_message_id == platform_message_id,
            )
            .first()
        )

    def list_messages(self, conversation_id: UUID) -> List[Message]:
        """Messages of a conversation, oldest first."""
        return (
            self.db.query(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.sent_at.asc(), Message.created_at.asc())
            .all()
        )

    def latest_inbound(self, conversation_id: UUID) -> Optional[Message]:
        return (
            self.db.query(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.direction == MessageDirection.INBOUND,
            )
            .order_by(Message.sent_at.desc())
            .first()
        )

    def record_inbound(
        self, conversation: Conversation, inbound: InboundMessage
    ) -> Tuple[Message, bool]:
        """
        Insert a provider message unless (conversation, platform_message_id) exists.

        Returns (message, created). Conversation counters and timestamps only
        move when a row was actually inserted.
        """
        table = Message.__table__
        stmt = (
            dialect_insert(self.db, table)
            .values(
                id=uuid.uuid4(),
                conversation_id=conversation.id,
                platform_message_id=inbound.message_id,
                direction=inbound.direction,
                message_type=inbound.message_type,
                text_content=inbound.text,
                media_url=inbound.media_url,
                media_type=inbound.media_type,
                sender_id=inbound.participant.id,
                sender_username=inbound.participant.username,
                sender_name=inbound.participant.name,
                is_read=inbound.is_read,
                sent_at=inbound.sent_at,
                created_at=utcnow(),
            )
            .on_conflict_do_nothing(index_elements=["conversation_id", "platform_message_id"])
            .returning(table.c.id)
        )
        inserted_id = self.db.execute(stmt).scalar_one_or_none()
        if inserted_id is None:
            self.db.commit()
            return self.get_by_platform_id(conversation.id, inbound.message_id), False

        values = {
            "message_count": Conversation.message_count + 1,
            "last_message_at": later_of(Conversation.last_message_at, inbound.sent_at),
        }
        if inbound.direction == MessageDirection.OUTBOUND:
            values["last_brand_reply_at"] = later_of(
                Conversation.last_brand_reply_at, inbound.sent_at
            )
        self.db.execute(
            update(Conversation).where(Conversation.id == conversation.id).values(**values)
        )
        self.db.commit()
        return self.db.get(Message, inserted_id, populate_existing=True), True

    def record_outbound(
        self,
        conversation: Conversation,
        send_result: OutboundSendResult,
        payload: OutboundMessage,
        sent_by_user_id: Optional[UUID] = None,
    ) -> Message:
        """Store a successful brand reply and mark the conversation replied."""
        now = utcnow()
        message = Message(
            conversation_id=conversation.id,
            platform_message_id=send_result.platform_message_id,
            direction=MessageDirection.OUTBOUND,
            message_type=_message_type_for(payload.media_type, payload.media_url),
            text_content=payload.text,
            media_url=payload.media_url,
            media_type=payload.media_type,
            sent_by_user_id=sent_by_user_id,
            is_read=True,
            sent_at=now,
            created_at=now,
        )
        self.db.add(message)
        self.db.flush()
        self.db.execute(
            update(Conversation)
            .where(Conversation.id == conversation.id)
            .values(
                message_count=Conversation.message_count + 1,
                last_message_at=later_of(Conversation.last_message_at, now),
                last_brand_reply_at=now,
                status=ConversationStatus.REPLIED,
                updated_at=now,
            )
        )
        self.db.commit()
        self.db.refresh(message)
        return message


def _message_type_for(media_type: Optional[str], media_url: Optional[str]) -> MessageType:
    if not media_url:
        return MessageType.TEXT
    try:
        return MessageType(media_type or "image")
    except ValueError:
        return MessageType.DOCUMENT
