"""Conversation upsert and inbox operations (list, status, priority, assignment, tags)."""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy import String, case, cast, func, or_, select, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.models.conversation import Conversation
from app.models.message import Message
from app.models.mixins import utcnow
from app.schemas.inbox import ConversationStatus, MessageDirection, Participant, Priority
from app.utils.db.upsert import dialect_insert

UNASSIGNED = "unassigned"
LIKE_ESCAPE = "\\"


def _escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def later_of(column, value):
    """SQL expression for max(column, value) that tolerates a NULL column."""
    return case(
        (column.is_(None), value),
        (value > column, value),
        else_=column,
    )


class ConversationService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_conversation(self, conversation_id: UUID) -> Optional[Conversation]:
        return self.db.get(Conversation, conversation_id, populate_existing=True)

    def get_user_conversation(
        self, user_id: UUID, conversation_id: UUID
    ) -> Optional[Conversation]:
        conversation = self.get_conversation(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            return None
        return conversation

    def find_conversation(
        self, user_id: UUID, platform: str, external_conversation_id: str
    ) -> Optional[Conversation]:
        """Look up a conversation by its external thread key."""
        return (
            self.db.query(Conversation)
            .filter(
                Conversation.user_id == user_id,
                Conversation.platform == platform,
                Conversation.platform_conversation_id == external_conversation_id,
            )
            .first()
        )

    def upsert_conversation(
        self,
        user_id: UUID,
        platform: str,
        external_conversation_id: str,
        participant: Participant,
        timestamp: datetime,
        connected_account_id: Optional[UUID] = None,
        tags: Optional[List[str]] = None,
        platform_post_id: Optional[str] = None,
        direction: MessageDirection = MessageDirection.INBOUND,
    ) -> Conversation:
        """
        Create or refresh the conversation for an external thread in one statement.

        On conflict the participant fields are refreshed when provided and the
        activity timestamps only ever move forward. An inbound message puts the
        conversation back to ``unread``.
        """
        table = Conversation.__table__
        now = utcnow()
        inbound = direction == MessageDirection.INBOUND

        stmt = dialect_insert(self.db, table).values(
            id=uuid.uuid4(),
            user_id=user_id,
            connected_account_id=connected_account_id,
            platform=platform,
            platform_conversation_id=external_conversation_id,
            participant_id=participant.id,
            participant_username=participant.username,
            participant_name=participant.name,
            participant_avatar_url=participant.avatar_url,
            platform_post_id=platform_post_id,
            status=ConversationStatus.UNREAD if inbound else ConversationStatus.READ,
            priority=Priority.NORMAL,
            tags=list(tags or []),
            message_count=0,
            last_message_at=timestamp,
            last_customer_message_at=timestamp if inbound else None,
            last_brand_reply_at=None if inbound else timestamp,
            created_at=now,
            updated_at=now,
        )
        excluded = stmt.excluded
        set_: Dict[str, Any] = {
            "participant_username": func.coalesce(
                excluded.participant_username, table.c.participant_username
            ),
            "participant_name": func.coalesce(
                excluded.participant_name, table.c.participant_name
            ),
            "participant_avatar_url": func.coalesce(
                excluded.participant_avatar_url, table.c.participant_avatar_url
            ),
            "connected_account_id": func.coalesce(
                excluded.connected_account_id, table.c.connected_account_id
            ),
            "last_message_at": later_of(table.c.last_message_at, excluded.last_message_at),
            "updated_at": now,
        }
        if inbound:
            set_["status"] = ConversationStatus.UNREAD
            set_["last_customer_message_at"] = later_of(
                table.c.last_customer_message_at, excluded.last_customer_message_at
            )
        else:
            set_["last_brand_reply_at"] = later_of(
                table.c.last_brand_reply_at, excluded.last_brand_reply_at
            )

        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "platform", "platform_conversation_id"],
            set_=set_,
        ).returning(table.c.id)
        conversation_id = self.db.execute(stmt).scalar_one()
        self.db.commit()
        return self.get_conversation(conversation_id)

    def list_query(
        self,
        user_id: UUID,
        status: Optional[str] = None,
        platform: Optional[str] = None,
        assigned_to: Optional[Union[UUID, str]] = None,
        tag: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Select:
        """Select for the inbox list, newest activity first; paginated by the router."""
        query = select(Conversation).where(Conversation.user_id == user_id)
        if status:
            query = query.where(Conversation.status == status)
        if platform:
            query = query.where(Conversation.platform == platform)
        if assigned_to == UNASSIGNED:
            query = query.where(Conversation.assigned_to.is_(None))
        elif assigned_to:
            query = query.where(Conversation.assigned_to == assigned_to)
        if tag:
            query = query.where(self._has_tag(tag))
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Conversation.participant_name.ilike(pattern),
                    Conversation.participant_username.ilike(pattern),
                )
            )
        return query.order_by(Conversation.last_message_at.desc())

    def _has_tag(self, tag: str):
        if self.db.get_bind().dialect.name == "postgresql":
            return cast(Conversation.tags, JSONB).contains([tag])
        # JSON text form elsewhere; match the serialized element literally
        pattern = "%" + _escape_like(json.dumps(tag)) + "%"
        return cast(Conversation.tags, String).like(pattern, escape=LIKE_ESCAPE)

    def _save(self, conversation: Conversation) -> Conversation:
        self.db.commit()
        self.db.refresh(conversation)
        return conversation

    def update_status(self, conversation: Conversation, status: str) -> Conversation:
        conversation.status = status
        return self._save(conversation)

    def update_priority(self, conversation: Conversation, priority: str) -> Conversation:
        conversation.priority = priority
        return self._save(conversation)

    def assign_user(
        self, conversation: Conversation, user_id: Optional[UUID]
    ) -> Conversation:
        conversation.assigned_to = user_id
        conversation.assigned_at = utcnow() if user_id else None
        return self._save(conversation)

    def add_tags(self, conversation: Conversation, tags: List[str]) -> Conversation:
        current = list(conversation.tags or [])
        for tag in tags:
            if tag not in current:
                current.append(tag)
        conversation.tags = current
        return self._save(conversation)

    def remove_tags(self, conversation: Conversation, tags: List[str]) -> Conversation:
        conversation.tags = [t for t in (conversation.tags or []) if t not in tags]
        return self._save(conversation)

    def mark_as_read(self, conversation: Conversation) -> Conversation:
        """Mark the conversation and all of its inbound messages as read."""
        self.db.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation.id,
                Message.direction == MessageDirection.INBOUND,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
        )
        conversation.status = ConversationStatus.READ
        return self._save(conversation)

    def get_stats(self, user_id: UUID) -> Dict[str, int]:
        rows = self.db.execute(
            select(Conversation.status, func.count())
            .where(Conversation.user_id == user_id)
            .group_by(Conversation.status)
        ).all()
        by_status = {status: count for status, count in rows}
        unassigned = self.db.execute(
            select(func.count())
            .select_from(Conversation)
            .where(
                Conversation.user_id == user_id,
                Conversation.assigned_to.is_(None),
                Conversation.status != ConversationStatus.ARCHIVED,
            )
        ).scalar_one()
        return {
            "total": sum(by_status.values()),
            "unread": by_status.get(ConversationStatus.UNREAD, 0),
            "read": by_status.get(ConversationStatus.READ, 0),
            "replied": by_status.get(ConversationStatus.REPLIED, 0),
            "archived": by_status.get(ConversationStatus.ARCHIVED, 0),
            "unassigned": unassigned,
        }
