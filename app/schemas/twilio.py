"""Twilio WhatsApp inbound webhook (application/x-www-form-urlencoded)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

WHATSAPP_PREFIX = "whatsapp:"


def strip_whatsapp_prefix(value: str) -> str:
    return value.replace(WHATSAPP_PREFIX, "")


class TwilioWhatsAppForm(BaseModel):
    """Form fields Twilio posts for an incoming WhatsApp message."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message_sid: str = Field(alias="MessageSid")
    from_: str = Field(alias="From")
    to: str = Field(alias="To")
    body: str = Field(default="", alias="Body")
    profile_name: Optional[str] = Field(default=None, alias="ProfileName")
    num_media: int = Field(default=0, alias="NumMedia")
    media_url: Optional[str] = Field(default=None, alias="MediaUrl0")
    media_content_type: Optional[str] = Field(default=None, alias="MediaContentType0")

    @property
    def sender_number(self) -> str:
        return strip_whatsapp_prefix(self.from_)
