"""
Webhook routes for inbound platform updates.

Platforms POST raw updates here; we verify, normalize, persist and return 200.
Webhooks are not behind user auth.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.orm import Session

from app.commands.webhooks.meta_command import MetaWebhookCommand
from app.commands.webhooks.telegram_command import TelegramWebhookCommand
from app.commands.webhooks.twilio_command import TwilioWhatsAppWebhookCommand
from app.config import Settings, get_settings
from app.db import get_db

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/telegram/{account_id}", response_class=PlainTextResponse)
async def telegram_webhook(
    account_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> str:
    """Receive updates for one connected bot. Always "OK" once the secret matches."""
    command = TelegramWebhookCommand(db, settings)
    return await command.execute(account_id, request)


@router.post("/twilio/whatsapp")
async def twilio_whatsapp_webhook(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Receive WhatsApp messages from Twilio; answers with empty TwiML."""
    command = TwilioWhatsAppWebhookCommand(db, settings)
    twiml = await command.execute(request)
    return Response(content=twiml, media_type="text/xml")


@router.get("/meta", response_class=PlainTextResponse)
def meta_webhook_verify(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> str:
    """Meta subscription handshake."""
    command = MetaWebhookCommand(db, settings)
    return command.verify_subscription(hub_mode, hub_verify_token, hub_challenge)


@router.post("/meta")
async def meta_webhook(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict[str, bool]:
    """Receive Instagram / Facebook DMs and comments."""
    command = MetaWebhookCommand(db, settings)
    return await command.execute(request)
