"""Platform adapters for inbox integrations."""

from app.adapters.base import BasePlatformAdapter
from app.adapters.gmail import GmailAdapter
from app.adapters.meta import MetaAdapter
from app.adapters.outlook import OutlookAdapter
from app.adapters.telegram import TelegramAdapter
from app.adapters.twilio_whatsapp import TwilioWhatsAppAdapter

__all__ = [
    "BasePlatformAdapter",
    "GmailAdapter",
    "MetaAdapter",
    "OutlookAdapter",
    "TelegramAdapter",
    "TwilioWhatsAppAdapter",
]
