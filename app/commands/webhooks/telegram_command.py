"""
Command to handle Telegram webhook updates.

Each connected bot has its own webhook URL. Validates the bot's secret header,
normalizes the update and stores it. Anything after validation is logged and
swallowed so Telegram always gets a 200 and does not redeliver.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Request
from pydantic import ValidationError

from app.commands.base_account import BaseAccountCommand
from app.commands.webhooks.ingest_inbound_command import IngestInboundCommand
from app.exceptions import WebhookVerificationError
from app.schemas.inbox import Platform
from app.schemas.telegram import TelegramWebhookUpdate

logger = logging.getLogger(__name__)

OK = "OK"


class TelegramWebhookCommand(BaseAccountCommand):
    async def execute(self, account_id: UUID, request: Request) -> str:
        """
        Raises:
            WebhookVerificationError: secret header does not match the bot's secret.
        """
        account = self.account_service.get_account(account_id)
        if account is None or not account.is_active or account.platform != Platform.TELEGRAM:
            logger.warning("Telegram update for unknown or inactive account %s", account_id)
            return OK

        adapter = self.get_adapter(account)
        headers = dict(request.headers) if request.headers else {}
        if not adapter.verify_webhook(None, headers):
            raise WebhookVerificationError("Invalid webhook secret")

        try:
            body = await request.json()
            update = TelegramWebhookUpdate.model_validate(body)
        except (ValueError, ValidationError) as e:
            logger.warning("Telegram webhook ignored malformed payload: %s", e)
            return OK

        inbound = adapter.parse_webhook(update)
        if inbound is None:
            return OK

        try:
            IngestInboundCommand(self.db, self.settings).execute(account, inbound)
        except Exception:
            logger.exception(
                "Failed to store Telegram message %s for account %s",
                inbound.message_id,
                account_id,
            )
            self.db.rollback()
        return OK
