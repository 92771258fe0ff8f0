"""Inbox API: list conversations, read messages, triage and team assignments."""

from __future__ import annotations

from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from app.auth.dependencies import CurrentUser, get_current_user
from app.db import get_db
from app.exceptions import InvalidRequestError, NotFoundError
from app.models.conversation import Conversation
from app.routers.utils.dependencies import get_conversation_by_id
from app.schemas.conversation import (
    ConversationAssign,
    ConversationPriorityUpdate,
    ConversationRead,
    ConversationStatusUpdate,
    ConversationTagsUpdate,
    InboxStats,
    MessageRead,
)
from app.schemas.team import AssignTeamRequest, ConversationTeamRead
from app.services.conversation_service import UNASSIGNED, ConversationService
from app.services.message_service import MessageService
from app.services.team_service import TeamService

conversations_router = APIRouter(prefix="/conversations", tags=["Conversation"])


def _parse_assignee(value: Optional[str]) -> Optional[Union[UUID, str]]:
    if value is None or value == UNASSIGNED:
        return value
    try:
        return UUID(value)
    except ValueError as e:
        raise InvalidRequestError(
            f"assigned_to: expected a user id or '{UNASSIGNED}'"
        ) from e


@conversations_router.get("", response_model=Page[ConversationRead])
def list_conversations(
    params: Params = Depends(),
    status_filter: Optional[str] = Query(None, alias="status"),
    platform: Optional[str] = Query(None),
    assigned_to: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Page[ConversationRead]:
    """List the inbox, most recent activity first."""
    query = ConversationService(db).list_query(
        current_user.id,
        status=status_filter,
        platform=platform,
        assigned_to=_parse_assignee(assigned_to),
        tag=tag,
        search=search,
    )
    return paginate(
        db,
        query,
        params=params,
        transformer=lambda items: [ConversationRead.model_validate(c) for c in items],
    )


@conversations_router.get("/stats", response_model=InboxStats)
def get_inbox_stats(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> InboxStats:
    return InboxStats(**ConversationService(db).get_stats(current_user.id))


@conversations_router.get("/{conversation_id}", response_model=ConversationRead)
def get_conversation(
    conversation: Conversation = Depends(get_conversation_by_id),
) -> Conversation:
    return conversation


@conversations_router.get("/{conversation_id}/messages", response_model=list[MessageRead])
def list_messages(
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
):
    """Messages of a conversation, oldest first."""
    return MessageService(db).list_messages(conversation.id)


@conversations_router.patch("/{conversation_id}/status", response_model=ConversationRead)
def update_status(
    body: ConversationStatusUpdate,
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
):
    return ConversationService(db).update_status(conversation, body.status)


@conversations_router.patch("/{conversation_id}/priority", response_model=ConversationRead)
def update_priority(
    body: ConversationPriorityUpdate,
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
):
    return ConversationService(db).update_priority(conversation, body.priority)


@conversations_router.patch("/{conversation_id}/assign", response_model=ConversationRead)
def assign_conversation(
    body: ConversationAssign,
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
):
    return ConversationService(db).assign_user(conversation, body.user_id)


@conversations_router.post("/{conversation_id}/tags", response_model=ConversationRead)
def add_tags(
    body: ConversationTagsUpdate,
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
):
    return ConversationService(db).add_tags(conversation, body.tags)


@conversations_router.delete("/{conversation_id}/tags", response_model=ConversationRead)
def remove_tags(
    tags: list[str] = Query(..., alias="tag"),
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
):
    return ConversationService(db).remove_tags(conversation, tags)


@conversations_router.post("/{conversation_id}/read", response_model=ConversationRead)
def mark_as_read(
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
):
    """Mark the conversation and its inbound messages as read."""
    return ConversationService(db).mark_as_read(conversation)


@conversations_router.get(
    "/{conversation_id}/teams", response_model=list[ConversationTeamRead]
)
def list_conversation_teams(
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
):
    return TeamService(db).get_assignments(conversation.id)


@conversations_router.post(
    "/{conversation_id}/teams",
    response_model=ConversationTeamRead,
    status_code=status.HTTP_201_CREATED,
)
def assign_conversation_team(
    body: AssignTeamRequest,
    conversation: Conversation = Depends(get_conversation_by_id),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Manually assign a team; replaces an AI assignment of the same team."""
    service = TeamService(db)
    if service.get_user_team(current_user.id, body.team_id) is None:
        raise NotFoundError("Team not found")
    return service.assign_manual(conversation.id, body.team_id, current_user.id)


@conversations_router.delete(
    "/{conversation_id}/teams/{team_id}", status_code=status.HTTP_204_NO_CONTENT
)
def remove_conversation_team(
    team_id: UUID,
    conversation: Conversation = Depends(get_conversation_by_id),
    db: Session = Depends(get_db),
) -> None:
    service = TeamService(db)
    assignment = service.get_assignment(conversation.id, team_id)
    if assignment is None:
        raise NotFoundError("Team assignment not found")
    service.remove_assignment(assignment)
