"""Command to connect a Telegram bot: validate the token and register its webhook."""

from __future__ import annotations

import logging
import secrets
from uuid import UUID

from telegram.error import TelegramError

from app.adapters.telegram import TelegramAdapter
from app.commands.base_account import BaseAccountCommand
from app.constants.credentials import AccountStatus
from app.exceptions import InvalidRequestError
from app.schemas.connected_account import (
    ConnectAccountResponse,
    ConnectedAccountRead,
    ConnectTelegramRequest,
)
from app.schemas.inbox import Platform

logger = logging.getLogger(__name__)


class ConnectTelegramCommand(BaseAccountCommand):
    def webhook_url(self, account_id: UUID) -> str:
        return f"{self.settings.public_base_url.rstrip('/')}/webhooks/telegram/{account_id}"

    async def execute(
        self, user_id: UUID, body: ConnectTelegramRequest
    ) -> ConnectAccountResponse:
        """
        Raises:
            InvalidRequestError: the token is rejected or the webhook cannot be set.
        """
        adapter = TelegramAdapter(bot_token=body.bot_token)
        try:
            me = await adapter.get_me()
        except TelegramError as e:
            logger.warning("Telegram getMe failed: %s", e)
            raise InvalidRequestError("Invalid Telegram bot token") from e

        webhook_secret = secrets.token_urlsafe(32)
        account = self.account_service.create_account(
            user_id=user_id,
            platform=Platform.TELEGRAM,
            platform_account_id=str(me.id),
            credentials={"bot_token": body.bot_token, "webhook_secret": webhook_secret},
            account_name=f"@{me.username}" if me.username else me.first_name,
            config={"bot_username": me.username},
        )

        url = self.webhook_url(account.id)
        try:
            await adapter.set_webhook(url, secret_token=webhook_secret)
        except TelegramError as e:
            logger.warning("Telegram setWebhook failed for account %s: %s", account.id, e)
            account.status = AccountStatus.ERROR
            account.error_message = str(e)
            self.db.commit()
            raise InvalidRequestError(f"Failed to set Telegram webhook: {e}") from e

        account.config = {**(account.config or {}), "webhook_url": url}
        self.db.commit()
        self.db.refresh(account)
        logger.info("Connected Telegram bot %s for user %s", me.username, user_id)
        return ConnectAccountResponse(
            account=ConnectedAccountRead.model_validate(account), webhook_url=url
        )
