"""MessageAIAnalysis model: one historical row per routing analysis."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from app.db import Base
from app.models.mixins import JSONType, utcnow


class MessageAIAnalysis(Base):
    __tablename__ = "message_ai_analysis"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    message_id = Column(
        Uuid,
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    conversation_id = Column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    analyzed_content = Column(Text, nullable=True)
    detected_intent = Column(String(64), nullable=True)
    detected_language = Column(String(16), nullable=True)
    suggested_team_ids = Column(JSONType, nullable=False, default=list)
    confidence_scores = Column(JSONType, nullable=False, default=dict)
    ai_reasoning = Column(Text, nullable=True)
    model_used = Column(String(128), nullable=True)
    tokens_used = Column(Integer, nullable=False, default=0)
    processing_time_ms = Column(Integer, nullable=False, default=0)
    analyzed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
