"""Shared pieces of the Gmail and Outlook mailbox adapters."""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from email.utils import parseaddr
from typing import Optional

from app.adapters.base import BasePlatformAdapter
from app.schemas.inbox import (
    InboundMessage,
    MessageDirection,
    OutboundMessage,
    Participant,
    Platform,
)

SYNC_LIMIT = 10


def mailbox_conversation_id(platform: str, contact: str) -> str:
    return f"{platform}_{contact}"


def build_mailbox_message(
    platform: Platform,
    account_email: str,
    message_id: str,
    sender: str,
    recipient: str,
    text: str,
    sent_at: datetime,
) -> InboundMessage:
    """
    Normalize one mailbox message.

    Mail sent from the account's own address is outbound and the counterparty
    is the recipient; everything else is inbound from the sender.
    """
    sender_name, sender_address = parseaddr(sender)
    recipient_name, recipient_address = parseaddr(recipient)
    is_outbound = sender_address.lower() == account_email.lower()
    if is_outbound:
        contact, contact_name = recipient_address or recipient, recipient_name
    else:
        contact, contact_name = sender_address or sender, sender_name
    contact = contact.lower()

    return InboundMessage(
        platform=platform,
        external_conversation_id=mailbox_conversation_id(platform, contact),
        participant=Participant(id=contact, username=contact, name=contact_name or contact),
        message_id=message_id,
        sent_at=sent_at,
        direction=MessageDirection.OUTBOUND if is_outbound else MessageDirection.INBOUND,
        text=text,
        is_read=is_outbound,
    )


class MailboxAdapter(BasePlatformAdapter):
    """Mailbox platforms also support pulling recent messages."""

    def __init__(self, access_token: str, account_email: str) -> None:
        self._access_token = access_token
        self._account_email = account_email

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    @abstractmethod
    async def fetch_recent(self, limit: int = SYNC_LIMIT) -> list[InboundMessage]:
        """Return the most recent messages of the mailbox, normalized."""
        ...

    @staticmethod
    def _require_recipient(recipient: Optional[str]) -> str:
        if not recipient:
            raise ValueError("Email recipient is required")
        return recipient

    @staticmethod
    def _body_text(outbound: OutboundMessage) -> str:
        """Plain-text body; media is linked since no attachment is uploaded."""
        if not outbound.media_url:
            return outbound.text
        if not outbound.text:
            return outbound.media_url
        return f"{outbound.text}\n\n{outbound.media_url}"
