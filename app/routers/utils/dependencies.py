from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import CurrentUser, get_current_user
from app.db import get_db
from app.exceptions import NotFoundError
from app.models.connected_account import ConnectedAccount
from app.models.conversation import Conversation
from app.models.team import Team
from app.services.connected_account_service import ConnectedAccountService
from app.services.conversation_service import ConversationService
from app.services.team_service import TeamService


def get_conversation_by_id(
    conversation_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Conversation:
    """FastAPI dependency to get one of the current user's conversations."""
    conversation = ConversationService(db).get_user_conversation(
        current_user.id, conversation_id
    )
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return conversation


def get_team_by_id(
    team_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Team:
    """FastAPI dependency to get one of the current user's teams."""
    team = TeamService(db).get_user_team(current_user.id, team_id)
    if team is None:
        raise NotFoundError("Team not found")
    return team


def get_account_by_id(
    account_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ConnectedAccount:
    """FastAPI dependency to get one of the current user's connected accounts."""
    account = ConnectedAccountService(db).get_user_account(current_user.id, account_id)
    if account is None:
        raise NotFoundError("Account not found")
    return account
