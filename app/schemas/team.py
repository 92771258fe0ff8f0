"""Pydantic schemas for teams and conversation-team assignments."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    color: str = Field(default="#3B82F6", pattern=HEX_COLOR_PATTERN)


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)


class TeamRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    name: str
    description: Optional[str] = None
    color: str
    member_count: int
    conversation_count: int
    created_at: datetime
    updated_at: datetime


class AssignTeamRequest(BaseModel):
    team_id: UUID


class ConversationTeamRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    team_id: UUID
    auto_assigned: bool
    confidence_score: Optional[float] = None
    ai_reasoning: Optional[str] = None
    assigned_by: Optional[UUID] = None
    assigned_at: datetime
