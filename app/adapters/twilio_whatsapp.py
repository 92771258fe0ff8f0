"""
WhatsApp via Twilio.

Inbound messages arrive as form posts; outbound messages go through the
Programmable Messaging REST API with HTTP basic auth (account SID / auth token).
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from typing import Mapping, Optional

import httpx

from app.adapters.base import TIMEOUT_SECONDS, BasePlatformAdapter, find_header
from app.exceptions import PlatformSendError
from app.schemas.inbox import (
    InboundMessage,
    MessageType,
    OutboundMessage,
    OutboundSendResult,
    Participant,
    Platform,
)
from app.schemas.twilio import WHATSAPP_PREFIX, TwilioWhatsAppForm, strip_whatsapp_prefix

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
TWILIO_SIGNATURE_HEADER = "X-Twilio-Signature"


def whatsapp_conversation_id(number: str) -> str:
    return f"whatsapp_{number}"


def message_type_for_media(content_type: Optional[str]) -> MessageType:
    if not content_type:
        return MessageType.TEXT
    if content_type.startswith("image/"):
        return MessageType.IMAGE
    if content_type.startswith("video/"):
        return MessageType.VIDEO
    if content_type.startswith("audio/"):
        return MessageType.AUDIO
    return MessageType.DOCUMENT


def compute_twilio_signature(auth_token: str, url: str, params: Mapping[str, str]) -> str:
    """base64(HMAC-SHA1(auth_token, url + concatenated sorted key/value pairs))."""
    payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode(), payload.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


class TwilioWhatsAppAdapter(BasePlatformAdapter):
    """Twilio WhatsApp adapter: parse form posts, send via Messages.json."""

    platform = Platform.WHATSAPP_TWILIO

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        whatsapp_number: Optional[str] = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._whatsapp_number = whatsapp_number

    def verify_signature(
        self,
        url: str,
        params: Mapping[str, str],
        request_headers: Optional[dict[str, str]] = None,
    ) -> bool:
        actual = find_header(request_headers, TWILIO_SIGNATURE_HEADER)
        if not actual:
            return False
        expected = compute_twilio_signature(self._auth_token, url, params)
        return hmac.compare_digest(expected, actual)

    @staticmethod
    def parse_webhook(form: TwilioWhatsAppForm) -> InboundMessage:
        sender = form.sender_number
        has_media = form.num_media > 0 and bool(form.media_url)
        return InboundMessage(
            platform=Platform.WHATSAPP_TWILIO,
            external_conversation_id=whatsapp_conversation_id(sender),
            participant=Participant(
                id=sender,
                username=sender,
                name=form.profile_name or sender,
            ),
            message_id=form.message_sid,
            message_type=(
                message_type_for_media(form.media_content_type)
                if has_media
                else MessageType.TEXT
            ),
            text=form.body or "",
            media_url=form.media_url if has_media else None,
            media_type=form.media_content_type if has_media else None,
        )

    def _auth(self) -> tuple[str, str]:
        return (self._account_sid, self._auth_token)

    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        if not self._whatsapp_number:
            raise PlatformSendError(self.platform, "WhatsApp sender number is not configured")
        form = {
            "To": f"{WHATSAPP_PREFIX}{strip_whatsapp_prefix(outbound.recipient_id)}",
            "From": self._whatsapp_number,
            "Body": outbound.text,
        }
        if outbound.media_url:
            form["MediaUrl"] = outbound.media_url

        url = f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
                response = await client.post(url, data=form, auth=self._auth())
        except httpx.HTTPError as e:
            raise PlatformSendError(self.platform, str(e)) from e

        if response.status_code >= 400:
            raise PlatformSendError(
                self.platform, response.text, provider_status=response.status_code
            )
        return OutboundSendResult(platform_message_id=response.json()["sid"])

    async def validate_credentials(self) -> dict:
        """Fetch the Twilio account resource; raises PlatformSendError if rejected."""
        url = f"{TWILIO_API_BASE}/Accounts/{self._account_sid}.json"
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
                response = await client.get(url, auth=self._auth())
        except httpx.HTTPError as e:
            raise PlatformSendError(self.platform, str(e)) from e
        if response.status_code >= 400:
            logger.warning(
                "Twilio credential check failed with status %s", response.status_code
            )
            raise PlatformSendError(
                self.platform, "Invalid Twilio credentials", provider_status=response.status_code
            )
        return response.json()
