"""
Teams router - API endpoints for challenge teams.

Team membership, standings, daily scores and the Wellness Wednesday bonus.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session, func, select

from wellness.cache import ResultCache
from wellness.database import data_access, get_session
from wellness.dependencies import get_cache, get_current_user_id
from wellness.errors import ValidationError
from wellness.models.team import Team
from wellness.models.user import User
from wellness.services.bonus import (
    BonusCheckResult,
    evaluate_wellness_wednesday,
    list_bonus_history,
)
from wellness.services.dates import day_or_today, is_wellness_wednesday
from wellness.services.scores import get_roster, get_team_or_404, team_daily_score, team_rank
from wellness.services import teams as membership

router = APIRouter(prefix="/api/teams", tags=["teams"])


# --- Request/Response Models ---

class CreateTeamRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50, description="Team name")
    banner_url: Optional[str] = Field(default=None, max_length=500, description="Banner image URL")


class CreateTeamResponse(BaseModel):
    id: int
    name: str
    total_points: int
    banner_url: Optional[str]
    creator_id: int


class JoinTeamResponse(BaseModel):
    team_id: int
    team_name: str
    members: int


class TeamSummary(BaseModel):
    id: int
    name: str
    total_points: int
    banner_url: Optional[str]
    members: int


class MemberInfo(BaseModel):
    id: int
    full_name: str
    avatar_url: Optional[str]
    total_points: int


class TeamResponse(BaseModel):
    id: int
    name: str
    total_points: int
    banner_url: Optional[str]
    creator_id: Optional[int]
    created_at: str
    members: list[MemberInfo]


class TeamRankResponse(BaseModel):
    rank: int
    total_teams: int
    points_to_next_rank: int


class DailyScoreResponse(BaseModel):
    team_id: int
    date: str
    average_points: int


class BonusRecordInfo(BaseModel):
    date: str
    achieved: bool
    bonus_points: int


# --- Endpoints ---

@router.get("", response_model=list[TeamSummary])
def get_teams(session: Session = Depends(get_session)):
    """List all teams ordered by total points."""
    with data_access("load teams"):
        teams = session.exec(
            select(Team).order_by(Team.total_points.desc(), Team.id)
        ).all()
        counts = dict(session.exec(
            select(User.team_id, func.count(User.id))
            .where(User.team_id.is_not(None))
            .group_by(User.team_id)
        ).all())

    return [
        TeamSummary(
            id=t.id,
            name=t.name,
            total_points=t.total_points,
            banner_url=t.banner_url,
            members=counts.get(t.id, 0),
        )
        for t in teams
    ]


@router.post("", response_model=CreateTeamResponse, status_code=201)
def create_team(
    request: CreateTeamRequest,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """
    Create a new team.

    The current user becomes its creator and first member. Returns 409 if the
    user is already on a team or the name is taken.
    """
    team = membership.create_team(session, user_id, request.name, request.banner_url, cache)

    return CreateTeamResponse(
        id=team.id,
        name=team.name,
        total_points=team.total_points,
        banner_url=team.banner_url,
        creator_id=team.creator_id,
    )

@router.get("/{team_id}", response_model=TeamResponse)
def get_team(team_id: int, session: Session = Depends(get_session)):
    """Get team details and all members."""
    team = get_team_or_404(session, team_id)
    members = get_roster(session, team_id)

    return TeamResponse(
        id=team.id,
        name=team.name,
        total_points=team.total_points,
        banner_url=team.banner_url,
        creator_id=team.creator_id,
        created_at=team.created_at.isoformat(),
        members=[
            MemberInfo(
                id=m.id,
                full_name=m.full_name,
                avatar_url=m.avatar_url,
                total_points=m.total_points,
            )
            for m in members
        ],
    )


@router.get("/{team_id}/rank", response_model=TeamRankResponse)
def get_team_rank(team_id: int, session: Session = Depends(get_session)):
    return TeamRankResponse(**team_rank(session, team_id))


@router.get("/{team_id}/daily-score", response_model=DailyScoreResponse)
def get_team_daily_score(
    team_id: int,
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD (UTC), defaults to today"),
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """Average points per member for a day."""
    day = day_or_today(date)
    return DailyScoreResponse(
        team_id=team_id,
        date=day.isoformat(),
        average_points=team_daily_score(session, team_id, day, cache),
    )


@router.post("/{team_id}/wellness-wednesday", response_model=BonusCheckResult)
def check_wellness_wednesday(
    team_id: int,
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD (UTC), defaults to today"),
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """
    Check the Wellness Wednesday bonus for a team.

    Awards the bonus once per team and day when all members qualify.
    Only Wednesdays can be checked.
    """
    day = day_or_today(date)
    if not is_wellness_wednesday(day):
        raise ValidationError("date", "Wellness Wednesday bonus only applies on Wednesdays")

    return evaluate_wellness_wednesday(session, team_id, day, cache)


@router.get("/{team_id}/wellness-wednesday", response_model=list[BonusRecordInfo])
def get_wellness_wednesday_history(team_id: int, session: Session = Depends(get_session)):
    """Bonus history for a team, newest first."""
    get_team_or_404(session, team_id)
    return [
        BonusRecordInfo(
            date=r.date.isoformat(),
            achieved=r.achieved,
            bonus_points=r.bonus_points,
        )
        for r in list_bonus_history(session, team_id)
    ]


@router.post("/{team_id}/join", response_model=JoinTeamResponse)
def join_team(
    team_id: int,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """
    Join a team as the current user.

    Returns 409 if the user is already on a team or the team is full.
    """
    team = membership.join_team(session, user_id, team_id, cache)

    return JoinTeamResponse(
        team_id=team.id,
        team_name=team.name,
        members=membership.member_count(session, team.id),
    )


@router.delete("/{team_id}/members/me")
def leave_team(
    team_id: int,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """
    Leave a team.

    Points the user earned for the team stay with the team.
    """
    membership.leave_team(session, user_id, team_id, cache)

    return {"message": "Successfully left the team"}
