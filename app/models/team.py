"""Team and ConversationTeam models for inbox routing."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import TimestampMixin, utcnow


class Team(Base, TimestampMixin):
    """User-defined routing destination (e.g. Support, Sales)."""

    __tablename__ = "teams"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=False, default="#3B82F6")
    member_count = Column(Integer, nullable=False, default=0)
    conversation_count = Column(Integer, nullable=False, default=0)

    assignments = relationship(
        "ConversationTeam",
        back_populates="team",
        cascade="all, delete-orphan",
    )


class ConversationTeam(Base):
    """
    Assignment of a conversation to a team.

    Auto assignments carry a confidence score, manual ones the assigning user.
    """

    __tablename__ = "conversation_teams"

    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "team_id", name="uq_conversation_teams_conversation_team"
        ),
        CheckConstraint(
            "(auto_assigned AND confidence_score IS NOT NULL AND assigned_by IS NULL)"
            " OR (NOT auto_assigned AND confidence_score IS NULL AND assigned_by IS NOT NULL)",
            name="ck_conversation_teams_assignment_source",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    team_id = Column(
        Uuid,
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    auto_assigned = Column(Boolean, nullable=False, default=False)
    confidence_score = Column(Float, nullable=True)
    ai_reasoning = Column(Text, nullable=True)
    assigned_by = Column(Uuid, nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    conversation = relationship("Conversation", back_populates="team_assignments")
    team = relationship("Team", back_populates="assignments")
