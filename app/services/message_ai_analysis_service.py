"""Persistence for routing analyses; rows are written once and never updated."""

from __future__ import annotations

from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.message_ai_analysis import MessageAIAnalysis


class MessageAIAnalysisService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_analysis(self, **fields) -> MessageAIAnalysis:
        analysis = MessageAIAnalysis(**fields)
        self.db.add(analysis)
        self.db.commit()
        self.db.refresh(analysis)
        return analysis

    def get_for_message(self, message_id: UUID) -> List[MessageAIAnalysis]:
        return (
            self.db.query(MessageAIAnalysis)
            .filter(MessageAIAnalysis.message_id == message_id)
            .order_by(MessageAIAnalysis.analyzed_at.desc())
            .all()
        )
