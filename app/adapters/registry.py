"""Builds the adapter that talks to a connected account's provider."""

from __future__ import annotations

from typing import Any, Optional

from app.adapters.base import BasePlatformAdapter
from app.adapters.gmail import GmailAdapter
from app.adapters.meta import MetaAdapter
from app.adapters.outlook import OutlookAdapter
from app.adapters.telegram import TelegramAdapter
from app.adapters.twilio_whatsapp import TwilioWhatsAppAdapter
from app.config import Settings, get_settings
from app.exceptions import UnsupportedPlatformError
from app.models.connected_account import ConnectedAccount
from app.schemas.inbox import Platform


def build_adapter(
    account: ConnectedAccount,
    credentials: dict[str, Any],
    settings: Optional[Settings] = None,
) -> BasePlatformAdapter:
    settings = settings or get_settings()
    config = account.config or {}
    try:
        platform = Platform(account.platform)
    except ValueError:
        raise UnsupportedPlatformError(account.platform) from None

    if platform == Platform.TELEGRAM:
        return TelegramAdapter(
            bot_token=credentials["bot_token"],
            webhook_secret=credentials.get("webhook_secret"),
        )
    if platform == Platform.WHATSAPP_TWILIO:
        return TwilioWhatsAppAdapter(
            account_sid=credentials["account_sid"],
            auth_token=credentials["auth_token"],
            whatsapp_number=config.get("whatsapp_number"),
        )
    if platform in (Platform.INSTAGRAM, Platform.FACEBOOK):
        return MetaAdapter(
            platform=platform,
            account_id=account.platform_account_id,
            access_token=credentials["access_token"],
            graph_version=settings.meta_graph_version,
        )
    email = config.get("email") or account.platform_account_id
    if platform == Platform.GMAIL:
        return GmailAdapter(access_token=credentials["access_token"], account_email=email)
    return OutlookAdapter(access_token=credentials["access_token"], account_email=email)
