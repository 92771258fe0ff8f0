"""ConnectedAccount model: a user's linked provider account (bot, number, page, mailbox)."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from app.db import Base
from app.models.mixins import JSONType, TimestampMixin


class ConnectedAccount(Base, TimestampMixin):
    """Provider account used to receive and send inbox messages.

    Non-secret settings live in ``config``; tokens and auth secrets are
    Fernet-encrypted into ``encrypted_credentials``.
    """

    __tablename__ = "connected_accounts"

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "platform",
            "platform_account_id",
            name="uq_connected_accounts_user_platform_account",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    platform = Column(String(32), nullable=False)
    platform_account_id = Column(String(255), nullable=False)
    account_name = Column(String(255), nullable=True)
    status = Column(String(16), nullable=False, default="active")
    error_message = Column(Text, nullable=True)
    config = Column(JSONType, nullable=False, default=dict)
    encrypted_credentials = Column(LargeBinary, nullable=True)
    messages_received = Column(Integer, nullable=False, default=0)
    messages_sent = Column(Integer, nullable=False, default=0)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status == "active"
