"""
Outbound API: reply to a conversation on its platform.

Resolves the conversation's adapter, sends, persists on success, and returns
{"data": <message>}.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import CurrentUser, get_current_user
from app.commands.outbound.send_message_command import SendMessageCommand
from app.config import Settings, get_settings
from app.db import get_db
from app.schemas.conversation import MessageRead
from app.schemas.outbound import SendMessageRequest

router = APIRouter(prefix="/messages", tags=["outbound"])


@router.post("/send", response_model=dict[str, Any])
async def send_message(
    body: SendMessageRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Send a reply. 502 when the provider rejects it; nothing is stored then."""
    command = SendMessageCommand(db, settings)
    message = await command.execute(body, current_user.id)
    return {"data": MessageRead.model_validate(message).model_dump(mode="json")}
