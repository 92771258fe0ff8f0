"""Internal routing API, called by other services with X-Internal-Token."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import verify_internal_token
from app.commands.routing.analyze_message_routing_command import (
    AnalyzeMessageRoutingCommand,
)
from app.config import Settings, get_settings
from app.db import get_db
from app.schemas.routing import RoutingRequest, RoutingResult

router = APIRouter(
    prefix="/routing",
    tags=["routing"],
    dependencies=[Depends(verify_internal_token)],
)


@router.post("/analyze", response_model=RoutingResult, response_model_exclude_none=True)
async def analyze_message_routing(
    body: RoutingRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> RoutingResult:
    """Run the routing analyzer for one message synchronously."""
    command = AnalyzeMessageRoutingCommand(db, settings=settings)
    return await command.execute(body.conversation_id, body.message_id)
