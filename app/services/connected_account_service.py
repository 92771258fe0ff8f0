"""Service for connected account CRUD, lookup by provider identity and counters."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.constants.credentials import AccountStatus
from app.core.credentials import (
    decrypt_credential_fields,
    encrypt_credential_fields,
    validate_credential_fields,
)
from app.models.connected_account import ConnectedAccount


class ConnectedAccountService:
    """Manages provider accounts and their encrypted credentials."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_account(self, account_id: UUID) -> Optional[ConnectedAccount]:
        """Fetch an account by ID."""
        return (
            self.db.query(ConnectedAccount)
            .filter(ConnectedAccount.id == account_id)
            .first()
        )

    def get_user_account(
        self, user_id: UUID, account_id: UUID
    ) -> Optional[ConnectedAccount]:
        """Fetch an account by ID, scoped to its owner."""
        return (
            self.db.query(ConnectedAccount)
            .filter(
                ConnectedAccount.id == account_id,
                ConnectedAccount.user_id == user_id,
            )
            .first()
        )

    def get_accounts(self, user_id: UUID) -> List[ConnectedAccount]:
        """List a user's accounts, newest first."""
        return (
            self.db.query(ConnectedAccount)
            .filter(ConnectedAccount.user_id == user_id)
            .order_by(ConnectedAccount.created_at.desc())
            .all()
        )

    def find_active_by_platform_account(
        self, platform: str, platform_account_id: str
    ) -> Optional[ConnectedAccount]:
        """Resolve the active account a provider event was addressed to."""
        return (
            self.db.query(ConnectedAccount)
            .filter(
                ConnectedAccount.platform == platform,
                ConnectedAccount.platform_account_id == platform_account_id,
                ConnectedAccount.status == AccountStatus.ACTIVE,
            )
            .first()
        )

    def find_active_whatsapp_account(self, to_number: str) -> Optional[ConnectedAccount]:
        """Match the Twilio `To` number against configured WhatsApp numbers."""
        clean_to = to_number.replace("whatsapp:", "")
        candidates = (
            self.db.query(ConnectedAccount)
            .filter(
                ConnectedAccount.platform == "whatsapp_twilio",
                ConnectedAccount.status == AccountStatus.ACTIVE,
            )
            .all()
        )
        for account in candidates:
            config = account.config or {}
            if (
                config.get("whatsapp_number") == to_number
                or config.get("phone_number") == clean_to
            ):
                return account
        return None

    def create_account(
        self,
        user_id: UUID,
        platform: str,
        platform_account_id: str,
        credentials: Dict[str, Any],
        account_name: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> ConnectedAccount:
        """Create (or reconnect) an account; validate and encrypt credentials."""
        validate_credential_fields(platform, credentials)
        encrypted = encrypt_credential_fields(credentials)

        account = (
            self.db.query(ConnectedAccount)
            .filter(
                ConnectedAccount.user_id == user_id,
                ConnectedAccount.platform == platform,
                ConnectedAccount.platform_account_id == platform_account_id,
            )
            .first()
        )
        if account is None:
            account = ConnectedAccount(
                user_id=user_id,
                platform=platform,
                platform_account_id=platform_account_id,
            )
            self.db.add(account)
        account.account_name = account_name
        account.config = dict(config or {})
        account.encrypted_credentials = encrypted
        account.status = AccountStatus.ACTIVE
        account.error_message = None
        self.db.commit()
        self.db.refresh(account)
        return account

    def disconnect_account(self, account: ConnectedAccount) -> ConnectedAccount:
        account.status = AccountStatus.DISCONNECTED
        self.db.commit()
        self.db.refresh(account)
        return account

    def get_credentials(self, account: ConnectedAccount) -> Dict[str, Any]:
        """Decrypt and return credential fields. Internal use only."""
        if not account.encrypted_credentials:
            return {}
        return decrypt_credential_fields(account.encrypted_credentials)

    def increment_received(self, account_id: UUID) -> None:
        self.db.execute(
            update(ConnectedAccount)
            .where(ConnectedAccount.id == account_id)
            .values(messages_received=ConnectedAccount.messages_received + 1)
        )
        self.db.commit()

    def increment_sent(self, account_id: UUID) -> None:
        self.db.execute(
            update(ConnectedAccount)
            .where(ConnectedAccount.id == account_id)
            .values(messages_sent=ConnectedAccount.messages_sent + 1)
        )
        self.db.commit()

    def mark_synced(self, account: ConnectedAccount) -> None:
        account.last_sync_at = datetime.now(timezone.utc)
        self.db.commit()
