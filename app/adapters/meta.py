"""
Instagram / Facebook adapter (Meta Graph API).

One webhook delivery can carry several events for several pages; parsing
returns each event with the provider account it was addressed to.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from app.adapters.base import TIMEOUT_SECONDS, BasePlatformAdapter, find_header
from app.adapters.meta_profile_fetcher import graph_host
from app.exceptions import PlatformSendError
from app.schemas.inbox import (
    InboundMessage,
    MessageType,
    OutboundMessage,
    OutboundSendResult,
    Participant,
    Platform,
)
from app.schemas.meta import MetaChange, MetaMessagingEvent, MetaWebhookPayload

META_SIGNATURE_HEADER = "X-Hub-Signature-256"
COMMENT_FIELDS = {"comments", "feed"}
COMMENT_TAG = "comment"

_ATTACHMENT_TYPES = {
    "image": (MessageType.IMAGE, "image"),
    "video": (MessageType.VIDEO, "video"),
    "audio": (MessageType.AUDIO, "audio"),
    "file": (MessageType.DOCUMENT, "document"),
    "story_mention": (MessageType.STORY_MENTION, "image"),
}

# Outbound media type -> Send API attachment type
OUTBOUND_ATTACHMENT_TYPES = {
    "image": "image",
    "video": "video",
    "audio": "audio",
    "document": "file",
}


@dataclass
class MetaInboundEvent:
    """A normalized message plus the page / IG account id that received it."""

    platform_account_id: str
    inbound: InboundMessage


def platform_for_object(object_type: str) -> Platform:
    return Platform.INSTAGRAM if object_type == "instagram" else Platform.FACEBOOK


def verify_meta_signature(
    app_secret: str, body: bytes, request_headers: Optional[dict[str, str]]
) -> bool:
    """Check X-Hub-Signature-256 (``sha256=<hex hmac of raw body>``)."""
    actual = find_header(request_headers, META_SIGNATURE_HEADER) or ""
    expected = "sha256=" + hmac.new(app_secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, actual)


def _parse_time(value: Any) -> datetime:
    """Meta sends unix seconds, unix milliseconds or ISO strings depending on the field."""
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return datetime.now(timezone.utc)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def _parse_direct_message(
    platform: Platform, event: MetaMessagingEvent
) -> Optional[MetaInboundEvent]:
    msg = event.message
    if msg is None or msg.is_echo:
        return None
    sender_id = event.sender.id
    recipient_id = event.recipient.id

    message_type = MessageType.TEXT
    media_url = None
    media_type = None
    if msg.attachments:
        attachment = msg.attachments[0]
        message_type, media_type = _ATTACHMENT_TYPES.get(
            attachment.type, (MessageType.DOCUMENT, attachment.type)
        )
        media_url = attachment.payload.url

    inbound = InboundMessage(
        platform=platform,
        external_conversation_id=f"{platform}_{sender_id}_{recipient_id}",
        participant=Participant(id=sender_id),
        message_id=msg.mid,
        sent_at=_parse_time(event.timestamp),
        message_type=message_type,
        text=msg.text or "",
        media_url=media_url,
        media_type=media_type,
    )
    return MetaInboundEvent(platform_account_id=recipient_id, inbound=inbound)


def _parse_comment(
    platform: Platform, entry_id: str, change: MetaChange
) -> Optional[MetaInboundEvent]:
    value = change.value
    comment_id = value.get("id") or value.get("comment_id")
    author = value.get("from") or {}
    sender_id = author.get("id")
    if not comment_id or not sender_id:
        return None
    post_id = (value.get("media") or {}).get("id") or value.get("post_id") or ""
    # Page's own replies show up in the feed too
    if sender_id == entry_id:
        return None

    inbound = InboundMessage(
        platform=platform,
        external_conversation_id=f"{platform}_comment_{post_id}_{sender_id}",
        participant=Participant(
            id=sender_id,
            username=author.get("username"),
            name=author.get("username") or author.get("name"),
        ),
        message_id=str(comment_id),
        sent_at=_parse_time(value.get("timestamp") or value.get("created_time")),
        text=value.get("text") or value.get("message") or "",
        platform_post_id=post_id or None,
        tags=[COMMENT_TAG],
    )
    return MetaInboundEvent(platform_account_id=entry_id, inbound=inbound)


class MetaAdapter(BasePlatformAdapter):
    """Send DMs and comment replies for one Instagram account or Facebook page."""

    def __init__(
        self,
        platform: Platform,
        account_id: str,
        access_token: str,
        graph_version: str = "v18.0",
    ) -> None:
        self.platform = platform
        self._account_id = account_id
        self._access_token = access_token
        self._graph_version = graph_version

    @staticmethod
    def parse_webhook(payload: MetaWebhookPayload) -> list[MetaInboundEvent]:
        platform = platform_for_object(payload.object)
        events: list[MetaInboundEvent] = []
        for entry in payload.entry:
            for messaging in entry.messaging:
                event = _parse_direct_message(platform, messaging)
                if event is not None:
                    events.append(event)
            for change in entry.changes:
                if change.field not in COMMENT_FIELDS:
                    continue
                event = _parse_comment(platform, entry.id, change)
                if event is not None:
                    events.append(event)
        return events

    def _url(self, path: str) -> str:
        return f"{graph_host(self.platform)}/{self._graph_version}/{path}"

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
                response = await client.post(
                    url, json=body, params={"access_token": self._access_token}
                )
        except httpx.HTTPError as e:
            raise PlatformSendError(self.platform, str(e)) from e
        if response.status_code >= 400:
            raise PlatformSendError(
                self.platform, response.text, provider_status=response.status_code
            )
        return response.json()

    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        if outbound.reply_to_comment_id:
            data = await self._post(
                self._url(f"{outbound.reply_to_comment_id}/replies"),
                {"message": outbound.text},
            )
            return OutboundSendResult(platform_message_id=str(data["id"]))

        if outbound.media_url:
            message: dict[str, Any] = {
                "attachment": {
                    "type": OUTBOUND_ATTACHMENT_TYPES.get(
                        outbound.media_type or "image", "file"
                    ),
                    "payload": {"url": outbound.media_url},
                }
            }
        else:
            message = {"text": outbound.text}
        data = await self._post(
            self._url(f"{self._account_id}/messages"),
            {"recipient": {"id": outbound.recipient_id}, "message": message},
        )
        return OutboundSendResult(platform_message_id=str(data["message_id"]))
