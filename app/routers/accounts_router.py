"""Connected accounts API: connect providers, list, disconnect, sync mailboxes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.auth.dependencies import CurrentUser, get_current_user
from app.commands.accounts.connect_telegram_command import ConnectTelegramCommand
from app.commands.accounts.connect_whatsapp_command import ConnectWhatsAppCommand
from app.commands.accounts.sync_mailbox_command import SyncMailboxCommand
from app.config import Settings, get_settings
from app.db import get_db
from app.exceptions import InvalidRequestError
from app.models.connected_account import ConnectedAccount
from app.routers.utils.dependencies import get_account_by_id
from app.schemas.connected_account import (
    ConnectAccountResponse,
    ConnectedAccountRead,
    ConnectTelegramRequest,
    ConnectTokenAccountRequest,
    ConnectWhatsAppRequest,
    MailboxSyncResult,
)
from app.services.connected_account_service import ConnectedAccountService

accounts_router = APIRouter(prefix="/accounts", tags=["Connected account"])


@accounts_router.get("", response_model=list[ConnectedAccountRead])
def list_accounts(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ConnectedAccountService(db).get_accounts(current_user.id)


@accounts_router.post(
    "/telegram",
    response_model=ConnectAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def connect_telegram(
    body: ConnectTelegramRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ConnectAccountResponse:
    """Validate the bot token and point the bot's webhook at this service."""
    return await ConnectTelegramCommand(db, settings).execute(current_user.id, body)


@accounts_router.post(
    "/whatsapp",
    response_model=ConnectAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def connect_whatsapp(
    body: ConnectWhatsAppRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ConnectAccountResponse:
    """Validate Twilio credentials; returns the webhook URL to set in Twilio."""
    return await ConnectWhatsAppCommand(db, settings).execute(current_user.id, body)


@accounts_router.post(
    "/token",
    response_model=ConnectedAccountRead,
    status_code=status.HTTP_201_CREATED,
)
def connect_token_account(
    body: ConnectTokenAccountRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Store an Instagram, Facebook, Gmail or Outlook account authorized elsewhere."""
    credentials = {"access_token": body.access_token}
    if body.refresh_token:
        credentials["refresh_token"] = body.refresh_token
    config = {"email": body.email} if body.email else {}
    try:
        return ConnectedAccountService(db).create_account(
            user_id=current_user.id,
            platform=body.platform,
            platform_account_id=body.platform_account_id,
            credentials=credentials,
            account_name=body.account_name,
            config=config,
        )
    except ValueError as e:
        raise InvalidRequestError(str(e)) from e


@accounts_router.delete("/{account_id}", response_model=ConnectedAccountRead)
def disconnect_account(
    account: ConnectedAccount = Depends(get_account_by_id),
    db: Session = Depends(get_db),
):
    return ConnectedAccountService(db).disconnect_account(account)


@accounts_router.post("/{account_id}/sync", response_model=MailboxSyncResult)
async def sync_account(
    account: ConnectedAccount = Depends(get_account_by_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> MailboxSyncResult:
    """Pull the latest Gmail / Outlook messages now."""
    return await SyncMailboxCommand(db, settings).execute(account)
