"""Celery task for pulling recent mailbox messages."""

from __future__ import annotations

import asyncio
from typing import Optional
from uuid import UUID

from app.commands.accounts.sync_mailbox_command import SyncMailboxCommand
from app.infra.celery_app import celery_app
from app.infra.logging_config import get_logger
from app.services.connected_account_service import ConnectedAccountService
from app.utils.db.db_session_helper import db_session

logger = get_logger("mailbox_sync")


@celery_app.task(name="app.tasks.mailbox_sync_task.sync_mailbox_task")
def sync_mailbox_task(account_id_str: str) -> Optional[int]:
    """Sync one Gmail / Outlook account. Returns the number of new messages."""
    try:
        account_id = UUID(account_id_str)
    except ValueError:
        logger.warning("Invalid account_id for mailbox sync: %s", account_id_str)
        return None

    with db_session() as db:
        account = ConnectedAccountService(db).get_account(account_id)
        if account is None:
            logger.warning("Mailbox sync for unknown account %s", account_id_str)
            return None
        result = asyncio.run(SyncMailboxCommand(db).execute(account))

    return result.synced
