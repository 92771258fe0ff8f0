"""
Command to reply to a conversation on its platform.

Resolves the conversation's connected account and adapter, sends via the
platform API, and records the outbound message only after the provider accepted it.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.commands.base_account import BaseAccountCommand
from app.config import Settings
from app.exceptions import AccountUnavailableError, NotFoundError, PlatformSendError
from app.models.conversation import Conversation
from app.models.message import Message
from app.schemas.inbox import OutboundMessage, Platform
from app.schemas.outbound import SendMessageRequest
from app.services.conversation_service import ConversationService
from app.services.message_service import MessageService

logger = logging.getLogger(__name__)

EMAIL_PLATFORMS = {Platform.GMAIL, Platform.OUTLOOK}
META_PLATFORMS = {Platform.INSTAGRAM, Platform.FACEBOOK}
COMMENT_TAG = "comment"


class SendMessageCommand(BaseAccountCommand):
    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        super().__init__(db, settings)
        self.conversation_service = ConversationService(db)
        self.message_service = MessageService(db)

    def _recipient(self, conversation: Conversation, body: SendMessageRequest) -> str:
        if conversation.platform in EMAIL_PLATFORMS and body.to:
            return str(body.to)
        if conversation.platform == Platform.TELEGRAM and body.chat_id:
            return body.chat_id
        return conversation.participant_id

    def _comment_to_reply(self, conversation: Conversation) -> Optional[str]:
        """Comment threads are answered under the latest comment of the participant."""
        if conversation.platform not in META_PLATFORMS:
            return None
        if COMMENT_TAG not in (conversation.tags or []):
            return None
        latest = self.message_service.latest_inbound(conversation.id)
        return latest.platform_message_id if latest else None

    async def execute(self, body: SendMessageRequest, user_id: UUID) -> Message:
        """
        Send the reply and store it.

        Raises:
            NotFoundError: conversation missing or owned by another user.
            AccountUnavailableError: the connected account is gone or inactive.
            UnsupportedPlatformError: no adapter exists for the platform.
            PlatformSendError: the provider rejected the send; nothing is stored.
        """
        conversation = self.conversation_service.get_user_conversation(
            user_id, body.conversation_id
        )
        if conversation is None:
            raise NotFoundError("Conversation not found")

        account = (
            self.account_service.get_account(conversation.connected_account_id)
            if conversation.connected_account_id
            else None
        )
        if account is None or not account.is_active:
            raise AccountUnavailableError(
                f"No active {conversation.platform} account for this conversation"
            )

        adapter = self.get_adapter(account)
        outbound = OutboundMessage(
            platform=conversation.platform,
            recipient_id=self._recipient(conversation, body),
            text=body.text_content or "",
            media_url=body.media_url,
            media_type=body.media_type,
            subject=body.subject,
            reply_to_comment_id=self._comment_to_reply(conversation),
        )
        try:
            result = await adapter.send(outbound)
        except PlatformSendError as e:
            logger.warning(
                "Send failed for conversation %s: %s", conversation.id, e.message
            )
            raise

        message = self.message_service.record_outbound(
            conversation, result, outbound, sent_by_user_id=user_id
        )
        self.account_service.increment_sent(account.id)
        logger.info(
            "Sent %s message %s in conversation %s",
            conversation.platform,
            result.platform_message_id,
            conversation.id,
        )
        return message
