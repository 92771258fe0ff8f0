"""Team CRUD and conversation-to-team assignments."""

from __future__ import annotations

import uuid
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.models.mixins import utcnow
from app.models.team import ConversationTeam, Team
from app.schemas.team import TeamCreate, TeamUpdate
from app.utils.db.upsert import dialect_insert


class TeamService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_team(self, team_id: UUID) -> Optional[Team]:
        return self.db.query(Team).filter(Team.id == team_id).first()

    def get_user_team(self, user_id: UUID, team_id: UUID) -> Optional[Team]:
        return (
            self.db.query(Team)
            .filter(Team.id == team_id, Team.user_id == user_id)
            .first()
        )

    def get_teams(self, user_id: UUID) -> List[Team]:
        return (
            self.db.query(Team)
            .filter(Team.user_id == user_id)
            .order_by(Team.name.asc())
            .all()
        )

    def create_team(self, user_id: UUID, data: TeamCreate) -> Team:
        team = Team(user_id=user_id, **data.model_dump())
        self.db.add(team)
        self.db.commit()
        self.db.refresh(team)
        return team

    def update_team(self, team: Team, data: TeamUpdate) -> Team:
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(team, key, value)
        self.db.commit()
        self.db.refresh(team)
        return team

    def delete_team(self, team: Team) -> None:
        self.db.delete(team)
        self.db.commit()

    def get_assignment(
        self, conversation_id: UUID, team_id: UUID
    ) -> Optional[ConversationTeam]:
        return (
            self.db.query(ConversationTeam)
            .filter(
                ConversationTeam.conversation_id == conversation_id,
                ConversationTeam.team_id == team_id,
            )
            .first()
        )

    def get_assignments(self, conversation_id: UUID) -> List[ConversationTeam]:
        return (
            self.db.query(ConversationTeam)
            .filter(ConversationTeam.conversation_id == conversation_id)
            .order_by(ConversationTeam.assigned_at.asc())
            .all()
        )

    def _bump_conversation_count(self, team_id: UUID, delta: int) -> None:
        self.db.execute(
            update(Team)
            .where(Team.id == team_id)
            .values(conversation_count=Team.conversation_count + delta)
        )

    def assign_manual(
        self, conversation_id: UUID, team_id: UUID, assigned_by: UUID
    ) -> ConversationTeam:
        """Assign by hand. An existing auto assignment of the pair becomes manual."""
        is_new = self.get_assignment(conversation_id, team_id) is None
        table = ConversationTeam.__table__
        now = utcnow()
        stmt = dialect_insert(self.db, table).values(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            team_id=team_id,
            auto_assigned=False,
            confidence_score=None,
            ai_reasoning=None,
            assigned_by=assigned_by,
            assigned_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["conversation_id", "team_id"],
            set_={
                "auto_assigned": False,
                "confidence_score": None,
                "ai_reasoning": None,
                "assigned_by": assigned_by,
                "assigned_at": now,
            },
        )
        self.db.execute(stmt)
        if is_new:
            self._bump_conversation_count(team_id, 1)
        self.db.commit()
        return self._fresh_assignment(conversation_id, team_id)

    def assign_auto(
        self,
        conversation_id: UUID,
        team_id: UUID,
        confidence: float,
        reasoning: Optional[str] = None,
    ) -> Optional[ConversationTeam]:
        """
        Record an AI assignment.

        A manual assignment of the same pair is left untouched; None is
        returned in that case since no auto row was written.
        """
        is_new = self.get_assignment(conversation_id, team_id) is None
        table = ConversationTeam.__table__
        now = utcnow()
        stmt = dialect_insert(self.db, table).values(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            team_id=team_id,
            auto_assigned=True,
            confidence_score=confidence,
            ai_reasoning=reasoning,
            assigned_by=None,
            assigned_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["conversation_id", "team_id"],
            set_={
                "confidence_score": confidence,
                "ai_reasoning": reasoning,
                "assigned_at": now,
            },
            where=table.c.auto_assigned.is_(True),
        ).returning(table.c.id)
        written_id = self.db.execute(stmt).scalar_one_or_none()
        if written_id is None:
            self.db.commit()
            return None
        if is_new:
            self._bump_conversation_count(team_id, 1)
        self.db.commit()
        return self._fresh_assignment(conversation_id, team_id)

    def remove_assignment(self, assignment: ConversationTeam) -> None:
        team_id = assignment.team_id
        self.db.delete(assignment)
        self._bump_conversation_count(team_id, -1)
        self.db.commit()

    def _fresh_assignment(self, conversation_id: UUID, team_id: UUID) -> ConversationTeam:
        return (
            self.db.query(ConversationTeam)
            .filter(
                ConversationTeam.conversation_id == conversation_id,
                ConversationTeam.team_id == team_id,
            )
            .populate_existing()
            .one()
        )
