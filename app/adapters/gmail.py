"""Gmail adapter: send RFC 2822 messages and pull recent mail via the Gmail REST API."""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Any, Optional

import httpx

from app.adapters.base import TIMEOUT_SECONDS
from app.adapters.mailbox import SYNC_LIMIT, MailboxAdapter, build_mailbox_message
from app.exceptions import PlatformSendError
from app.schemas.inbox import InboundMessage, OutboundMessage, OutboundSendResult, Platform

logger = logging.getLogger(__name__)

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1/users/me"
SYNC_QUERY = "in:inbox OR in:sent"


def _decode_base64url(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode()).decode("utf-8", errors="replace")


def extract_body(payload: dict[str, Any]) -> str:
    """Body from payload.body, else the first text/plain part (recursing into multiparts)."""
    body_data = (payload.get("body") or {}).get("data")
    if body_data:
        return _decode_base64url(body_data)
    for part in payload.get("parts") or []:
        if part.get("mimeType") == "text/plain" and (part.get("body") or {}).get("data"):
            return _decode_base64url(part["body"]["data"])
    for part in payload.get("parts") or []:
        if part.get("parts"):
            text = extract_body(part)
            if text:
                return text
    return ""


def header_value(headers: list[dict[str, str]], name: str) -> str:
    for header in headers:
        if header.get("name", "").lower() == name.lower():
            return header.get("value", "")
    return ""


class GmailAdapter(MailboxAdapter):
    platform = Platform.GMAIL

    def build_raw_message(self, outbound: OutboundMessage) -> str:
        """RFC 2822 message, base64url-encoded as the send endpoint expects."""
        message = EmailMessage()
        message["To"] = self._require_recipient(outbound.recipient_id)
        message["From"] = self._account_email
        message["Subject"] = outbound.subject or ""
        message.set_content(self._body_text(outbound))
        return base64.urlsafe_b64encode(message.as_bytes()).decode()

    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
                response = await client.post(
                    f"{GMAIL_API_BASE}/messages/send",
                    json={"raw": self.build_raw_message(outbound)},
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            raise PlatformSendError(self.platform, str(e)) from e
        if response.status_code >= 400:
            raise PlatformSendError(
                self.platform, response.text, provider_status=response.status_code
            )
        return OutboundSendResult(platform_message_id=response.json()["id"])

    async def fetch_recent(self, limit: int = SYNC_LIMIT) -> list[InboundMessage]:
        async with httpx.AsyncClient(
            timeout=TIMEOUT_SECONDS, headers=self._headers()
        ) as client:
            listing = await client.get(
                f"{GMAIL_API_BASE}/messages",
                params={"maxResults": limit, "q": SYNC_QUERY},
            )
            listing.raise_for_status()
            messages: list[InboundMessage] = []
            for ref in listing.json().get("messages") or []:
                detail = await client.get(f"{GMAIL_API_BASE}/messages/{ref['id']}")
                if detail.status_code >= 400:
                    logger.warning(
                        "Skipping Gmail message %s: HTTP %s", ref["id"], detail.status_code
                    )
                    continue
                parsed = self._normalize(detail.json())
                if parsed is not None:
                    messages.append(parsed)
        return messages

    def _normalize(self, data: dict[str, Any]) -> Optional[InboundMessage]:
        payload = data.get("payload") or {}
        headers = payload.get("headers") or []
        sender = header_value(headers, "From")
        if not sender:
            return None
        internal_date: Optional[str] = data.get("internalDate")
        sent_at = (
            datetime.fromtimestamp(int(internal_date) / 1000, tz=timezone.utc)
            if internal_date
            else datetime.now(timezone.utc)
        )
        return build_mailbox_message(
            platform=self.platform,
            account_email=self._account_email,
            message_id=data["id"],
            sender=sender,
            recipient=header_value(headers, "To"),
            text=extract_body(payload) or data.get("snippet", ""),
            sent_at=sent_at,
        )
