"""Command to handle Twilio WhatsApp webhooks (form posts)."""

from __future__ import annotations

import logging

from fastapi import Request
from pydantic import ValidationError

from app.adapters.twilio_whatsapp import TwilioWhatsAppAdapter
from app.commands.base_account import BaseAccountCommand
from app.commands.webhooks.ingest_inbound_command import IngestInboundCommand
from app.exceptions import WebhookVerificationError
from app.schemas.twilio import TwilioWhatsAppForm

logger = logging.getLogger(__name__)

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


class TwilioWhatsAppWebhookCommand(BaseAccountCommand):
    def _public_url(self, request: Request) -> str:
        # Twilio signs the URL it was configured with, not the one behind the proxy
        return f"{self.settings.public_base_url.rstrip('/')}{request.url.path}"

    async def execute(self, request: Request) -> str:
        form_data = await request.form()
        params = {key: str(value) for key, value in form_data.items()}
        try:
            form = TwilioWhatsAppForm.model_validate(params)
        except ValidationError as e:
            logger.warning("Twilio webhook ignored malformed form: %s", e)
            return EMPTY_TWIML

        account = self.account_service.find_active_whatsapp_account(form.to)
        if account is None:
            logger.warning("No active WhatsApp account for number %s", form.to)
            return EMPTY_TWIML

        if self.settings.twilio_validate_signature:
            adapter = self.get_adapter(account)
            headers = dict(request.headers) if request.headers else {}
            if not adapter.verify_signature(self._public_url(request), params, headers):
                raise WebhookVerificationError("Invalid Twilio signature")

        inbound = TwilioWhatsAppAdapter.parse_webhook(form)
        try:
            IngestInboundCommand(self.db, self.settings).execute(account, inbound)
        except Exception:
            logger.exception("Failed to store WhatsApp message %s", form.message_sid)
            self.db.rollback()
        return EMPTY_TWIML
