"""
Base command for operations that talk to a connected account's provider.

Provides a shared way to obtain the adapter (with decrypted credentials) for
an account across webhook, outbound and sync commands.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.adapters.base import BasePlatformAdapter
from app.adapters.registry import build_adapter
from app.config import Settings, get_settings
from app.models.connected_account import ConnectedAccount
from app.services.connected_account_service import ConnectedAccountService


class BaseAccountCommand:
    """Base for commands bound to a connected account."""

    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.account_service = ConnectedAccountService(db)

    def get_adapter(self, account: ConnectedAccount) -> BasePlatformAdapter:
        """Return the adapter for the account's platform."""
        credentials = self.account_service.get_credentials(account)
        return build_adapter(account, credentials, self.settings)
