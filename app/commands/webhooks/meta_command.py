"""
Command to handle Meta (Instagram / Facebook) webhooks.

Supports the subscription handshake, verifies the payload signature when an
app secret is configured, and stores DMs and comments for the addressed account.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import Request
from pydantic import ValidationError

from app.adapters.meta import MetaAdapter, MetaInboundEvent, verify_meta_signature
from app.adapters.meta_profile_fetcher import MetaProfileFetcher
from app.commands.base_account import BaseAccountCommand
from app.commands.webhooks.ingest_inbound_command import IngestInboundCommand
from app.exceptions import WebhookVerificationError
from app.models.connected_account import ConnectedAccount
from app.schemas.meta import MetaWebhookPayload

logger = logging.getLogger(__name__)

SUBSCRIBE_MODE = "subscribe"


class MetaWebhookCommand(BaseAccountCommand):
    def verify_subscription(
        self,
        mode: Optional[str],
        verify_token: Optional[str],
        challenge: Optional[str],
    ) -> str:
        """
        Answer Meta's GET handshake with the challenge.

        Raises:
            WebhookVerificationError: wrong mode or verify token.
        """
        if mode == SUBSCRIBE_MODE and verify_token == self.settings.meta_verify_token:
            logger.info("Meta webhook subscription verified")
            return challenge or ""
        raise WebhookVerificationError("Webhook verification failed")

    async def execute(self, request: Request) -> dict[str, bool]:
        raw_body = await request.body()
        if self.settings.meta_app_secret:
            headers = dict(request.headers) if request.headers else {}
            if not verify_meta_signature(self.settings.meta_app_secret, raw_body, headers):
                raise WebhookVerificationError("Invalid Meta signature")

        try:
            payload = MetaWebhookPayload.model_validate_json(raw_body)
        except ValidationError as e:
            logger.warning("Meta webhook ignored malformed payload: %s", e)
            return {"success": True}

        for event in MetaAdapter.parse_webhook(payload):
            try:
                await self._handle_event(event)
            except Exception:
                logger.exception(
                    "Failed to store %s message %s",
                    event.inbound.platform,
                    event.inbound.message_id,
                )
                self.db.rollback()
        return {"success": True}

    async def _handle_event(self, event: MetaInboundEvent) -> None:
        inbound = event.inbound
        account = self.account_service.find_active_by_platform_account(
            inbound.platform, event.platform_account_id
        )
        if account is None:
            logger.warning(
                "No active %s account for id %s", inbound.platform, event.platform_account_id
            )
            return
        if inbound.participant.name is None:
            await self._enrich_participant(account, event)
        IngestInboundCommand(self.db, self.settings).execute(account, inbound)

    async def _enrich_participant(
        self, account: ConnectedAccount, event: MetaInboundEvent
    ) -> None:
        access_token = self.account_service.get_credentials(account).get("access_token")
        participant = event.inbound.participant
        if not access_token:
            participant.username = participant.username or participant.id
            return
        fetcher = MetaProfileFetcher(access_token)
        profile = await asyncio.to_thread(
            fetcher.fetch, event.inbound.platform, participant.id
        )
        participant.username = profile.username
        participant.name = profile.name
        participant.avatar_url = profile.avatar_url
