"""Webhook command handlers."""

from app.commands.webhooks.ingest_inbound_command import IngestInboundCommand
from app.commands.webhooks.meta_command import MetaWebhookCommand
from app.commands.webhooks.telegram_command import TelegramWebhookCommand
from app.commands.webhooks.twilio_command import TwilioWhatsAppWebhookCommand

__all__ = [
    "IngestInboundCommand",
    "MetaWebhookCommand",
    "TelegramWebhookCommand",
    "TwilioWhatsAppWebhookCommand",
]
