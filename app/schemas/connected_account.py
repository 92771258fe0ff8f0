"""Pydantic schemas for connected accounts and their encrypted credentials."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.inbox import Platform


# Secret fields per platform (validated before encryption)
class TelegramCredentials(BaseModel):
    bot_token: str
    webhook_secret: Optional[str] = None


class TwilioCredentials(BaseModel):
    account_sid: str
    auth_token: str


class AccessTokenCredentials(BaseModel):
    """OAuth / Graph access token (Meta pages, Gmail, Outlook)."""

    access_token: str
    refresh_token: Optional[str] = None


class ConnectTelegramRequest(BaseModel):
    bot_token: str = Field(..., min_length=10)


class ConnectWhatsAppRequest(BaseModel):
    account_sid: str = Field(..., min_length=1)
    auth_token: str = Field(..., min_length=1)
    phone_number: str = Field(..., pattern=r"^\+?[0-9]{6,20}$")


class ConnectTokenAccountRequest(BaseModel):
    """Accounts authorized by an OAuth access token obtained elsewhere."""

    platform: Literal["instagram", "facebook", "gmail", "outlook"]
    platform_account_id: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None
    account_name: Optional[str] = None
    email: Optional[str] = None


class ConnectedAccountRead(BaseModel):
    """Connected account for API responses. Never includes credentials."""

    id: UUID
    user_id: UUID
    platform: Platform
    platform_account_id: str
    account_name: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    config: dict[str, Any] = Field(default_factory=dict)
    messages_received: int = 0
    messages_sent: int = 0
    last_sync_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ConnectAccountResponse(BaseModel):
    account: ConnectedAccountRead
    webhook_url: str


class MailboxSyncResult(BaseModel):
    synced: int
