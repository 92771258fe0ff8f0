"""Outlook adapter (Microsoft Graph mail)."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

import httpx

from app.adapters.base import TIMEOUT_SECONDS
from app.adapters.mailbox import SYNC_LIMIT, MailboxAdapter, build_mailbox_message
from app.exceptions import PlatformSendError
from app.schemas.inbox import InboundMessage, OutboundMessage, OutboundSendResult, Platform

GRAPH_API_BASE = "https://graph.microsoft.com/v1.0/me"


def _address(recipient: dict[str, Any]) -> str:
    email = recipient.get("emailAddress") or {}
    name = email.get("name")
    address = email.get("address", "")
    return f"{name} <{address}>" if name else address


def _parse_graph_time(value: str) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class OutlookAdapter(MailboxAdapter):
    platform = Platform.OUTLOOK

    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        body = {
            "message": {
                "subject": outbound.subject or "",
                "body": {"contentType": "Text", "content": self._body_text(outbound)},
                "toRecipients": [
                    {"emailAddress": {"address": self._require_recipient(outbound.recipient_id)}}
                ],
            },
            "saveToSentItems": True,
        }
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
                response = await client.post(
                    f"{GRAPH_API_BASE}/sendMail", json=body, headers=self._headers()
                )
        except httpx.HTTPError as e:
            raise PlatformSendError(self.platform, str(e)) from e
        if response.status_code >= 400:
            raise PlatformSendError(
                self.platform, response.text, provider_status=response.status_code
            )
        # sendMail answers 202 with no body, so there is no provider id
        return OutboundSendResult(platform_message_id=f"outlook_{int(time.time() * 1000)}")

    async def fetch_recent(self, limit: int = SYNC_LIMIT) -> list[InboundMessage]:
        async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
            response = await client.get(
                f"{GRAPH_API_BASE}/messages",
                params={"$top": limit, "$orderby": "receivedDateTime desc"},
                headers=self._headers(),
            )
        response.raise_for_status()
        messages: list[InboundMessage] = []
        for item in response.json().get("value") or []:
            recipients = item.get("toRecipients") or []
            messages.append(
                build_mailbox_message(
                    platform=self.platform,
                    account_email=self._account_email,
                    message_id=item["id"],
                    sender=_address(item.get("from") or {}),
                    recipient=_address(recipients[0]) if recipients else "",
                    text=(item.get("body") or {}).get("content") or item.get("bodyPreview", ""),
                    sent_at=_parse_graph_time(item.get("receivedDateTime", "")),
                )
            )
        return messages
