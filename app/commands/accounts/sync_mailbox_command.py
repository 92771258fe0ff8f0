"""Command to pull recent Gmail / Outlook messages into the inbox."""

from __future__ import annotations

import logging

import httpx

from app.adapters.mailbox import MailboxAdapter
from app.commands.base_account import BaseAccountCommand
from app.commands.webhooks.ingest_inbound_command import IngestInboundCommand
from app.exceptions import AccountUnavailableError, InvalidRequestError, PlatformSendError
from app.models.connected_account import ConnectedAccount
from app.schemas.connected_account import MailboxSyncResult

logger = logging.getLogger(__name__)


class SyncMailboxCommand(BaseAccountCommand):
    async def execute(self, account: ConnectedAccount) -> MailboxSyncResult:
        """
        Fetch the latest messages and store the new ones.

        Per-message failures are logged and skipped; ``synced`` counts the
        messages that were actually inserted.

        Raises:
            AccountUnavailableError: the account is not active.
            InvalidRequestError: the account is not a mailbox.
            PlatformSendError: the mailbox API could not be read.
        """
        if not account.is_active:
            raise AccountUnavailableError("Account is not active")
        adapter = self.get_adapter(account)
        if not isinstance(adapter, MailboxAdapter):
            raise InvalidRequestError(f"Sync is not supported for {account.platform}")

        try:
            messages = await adapter.fetch_recent()
        except httpx.HTTPError as e:
            raise PlatformSendError(account.platform, str(e)) from e

        ingest = IngestInboundCommand(self.db, self.settings)
        synced = 0
        for inbound in messages:
            try:
                _, created = ingest.execute(account, inbound)
            except Exception:
                logger.exception(
                    "Failed to store %s message %s", account.platform, inbound.message_id
                )
                self.db.rollback()
                continue
            if created:
                synced += 1

        self.account_service.mark_synced(account)
        logger.info("Synced %d messages for account %s", synced, account.id)
        return MailboxSyncResult(synced=synced)
