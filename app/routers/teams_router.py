"""Teams API: the routing destinations of the current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.auth.dependencies import CurrentUser, get_current_user
from app.db import get_db
from app.models.team import Team
from app.routers.utils.dependencies import get_team_by_id
from app.schemas.team import TeamCreate, TeamRead, TeamUpdate
from app.services.team_service import TeamService

teams_router = APIRouter(prefix="/teams", tags=["Team"])


@teams_router.get("", response_model=list[TeamRead])
def list_teams(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TeamService(db).get_teams(current_user.id)


@teams_router.post("", response_model=TeamRead, status_code=status.HTTP_201_CREATED)
def create_team(
    body: TeamCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TeamService(db).create_team(current_user.id, body)


@teams_router.get("/{team_id}", response_model=TeamRead)
def get_team(team: Team = Depends(get_team_by_id)) -> Team:
    return team


@teams_router.patch("/{team_id}", response_model=TeamRead)
def update_team(
    body: TeamUpdate,
    team: Team = Depends(get_team_by_id),
    db: Session = Depends(get_db),
):
    return TeamService(db).update_team(team, body)


@teams_router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    team: Team = Depends(get_team_by_id),
    db: Session = Depends(get_db),
) -> None:
    TeamService(db).delete_team(team)
