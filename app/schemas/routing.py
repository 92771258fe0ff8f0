"""Schemas for AI team routing."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class RoutingRequest(BaseModel):
    conversation_id: UUID
    message_id: UUID


class RoutingDecision(BaseModel):
    """The model's answer, parsed from its JSON reply."""

    team_id: Optional[str] = None
    confidence: float = 0.0
    reasoning: Optional[str] = None
    detected_intent: Optional[str] = None
    detected_language: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value):
        if value is None:
            return 0.0
        return min(max(float(value), 0.0), 1.0)

    @field_validator("team_id", mode="before")
    @classmethod
    def blank_team_is_none(cls, value):
        if value in ("", "null", "none", "None"):
            return None
        return None if value is None else str(value)


class RoutingResult(BaseModel):
    success: bool = True
    routed: bool = False
    team_id: Optional[UUID] = Field(default=None)
    confidence: Optional[float] = None
