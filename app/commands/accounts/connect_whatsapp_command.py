"""Command to connect a Twilio WhatsApp sender number."""

from __future__ import annotations

import logging
from uuid import UUID

from app.adapters.twilio_whatsapp import TwilioWhatsAppAdapter
from app.commands.base_account import BaseAccountCommand
from app.exceptions import InvalidRequestError, PlatformSendError
from app.schemas.connected_account import (
    ConnectAccountResponse,
    ConnectedAccountRead,
    ConnectWhatsAppRequest,
)
from app.schemas.inbox import Platform
from app.schemas.twilio import WHATSAPP_PREFIX, strip_whatsapp_prefix

logger = logging.getLogger(__name__)


class ConnectWhatsAppCommand(BaseAccountCommand):
    def webhook_url(self) -> str:
        return f"{self.settings.public_base_url.rstrip('/')}/webhooks/twilio/whatsapp"

    async def execute(
        self, user_id: UUID, body: ConnectWhatsAppRequest
    ) -> ConnectAccountResponse:
        """
        Raises:
            InvalidRequestError: Twilio rejected the account SID / auth token.
        """
        adapter = TwilioWhatsAppAdapter(
            account_sid=body.account_sid, auth_token=body.auth_token
        )
        try:
            twilio_account = await adapter.validate_credentials()
        except PlatformSendError as e:
            raise InvalidRequestError("Invalid Twilio credentials") from e

        phone = strip_whatsapp_prefix(body.phone_number)
        url = self.webhook_url()
        account = self.account_service.create_account(
            user_id=user_id,
            platform=Platform.WHATSAPP_TWILIO,
            platform_account_id=phone,
            credentials={"account_sid": body.account_sid, "auth_token": body.auth_token},
            account_name=twilio_account.get("friendly_name") or phone,
            config={
                "whatsapp_number": f"{WHATSAPP_PREFIX}{phone}",
                "phone_number": phone,
                "webhook_url": url,
            },
        )
        logger.info("Connected WhatsApp number %s for user %s", phone, user_id)
        return ConnectAccountResponse(
            account=ConnectedAccountRead.model_validate(account), webhook_url=url
        )
