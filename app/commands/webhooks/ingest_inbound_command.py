"""
Command to persist a normalized provider message.

Upserts the conversation, inserts the message idempotently and, once the
message is committed, enqueues AI routing for new inbound messages.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.models.connected_account import ConnectedAccount
from app.models.message import Message
from app.schemas.inbox import InboundMessage, MessageDirection
from app.services.connected_account_service import ConnectedAccountService
from app.services.conversation_service import ConversationService
from app.services.message_service import MessageService
from app.tasks.routing_task import analyze_message_routing_task

logger = logging.getLogger(__name__)


class IngestInboundCommand:
    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.conversation_service = ConversationService(db)
        self.message_service = MessageService(db)
        self.account_service = ConnectedAccountService(db)

    def execute(
        self, account: ConnectedAccount, inbound: InboundMessage
    ) -> Tuple[Message, bool]:
        """
        Store one message for the account's owner.

        Returns:
            (message, created): created is False for a redelivered message.
        """
        existing = self._find_delivered(account, inbound)
        if existing is not None:
            # Redelivery must not reopen a conversation that was read or replied to
            logger.info(
                "Duplicate %s message %s skipped", inbound.platform, inbound.message_id
            )
            return existing, False

        conversation = self.conversation_service.upsert_conversation(
            user_id=account.user_id,
            platform=inbound.platform,
            external_conversation_id=inbound.external_conversation_id,
            participant=inbound.participant,
            timestamp=inbound.sent_at,
            connected_account_id=account.id,
            tags=inbound.tags,
            platform_post_id=inbound.platform_post_id,
            direction=inbound.direction,
        )
        message, created = self.message_service.record_inbound(conversation, inbound)
        if not created:
            logger.info(
                "Duplicate %s message %s skipped", inbound.platform, inbound.message_id
            )
            return message, False

        if inbound.direction == MessageDirection.INBOUND:
            self.account_service.increment_received(account.id)
            self._enqueue_routing(conversation.id, message.id)
        return message, True

    def _find_delivered(
        self, account: ConnectedAccount, inbound: InboundMessage
    ) -> Optional[Message]:
        conversation = self.conversation_service.find_conversation(
            account.user_id, inbound.platform, inbound.external_conversation_id
        )
        if conversation is None:
            return None
        return self.message_service.get_by_platform_id(conversation.id, inbound.message_id)

    def _enqueue_routing(self, conversation_id, message_id) -> None:
        if not self.settings.inbox_ai_routing_enabled:
            return
        try:
            analyze_message_routing_task.delay(str(conversation_id), str(message_id))
        except Exception:
            # Routing is best effort; the message is already stored
            logger.exception("Failed to enqueue routing for message %s", message_id)
