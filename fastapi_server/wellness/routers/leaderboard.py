"""
Leaderboard router - individual and team standings.

Both boards are served from the result cache and rebuilt after points change.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from wellness.cache import ResultCache
from wellness.database import get_session
from wellness.dependencies import get_cache
from wellness.services.scores import individual_leaderboard, team_leaderboard

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


class IndividualEntry(BaseModel):
    id: int
    full_name: str
    avatar_url: Optional[str]
    total_points: int
    team_id: Optional[int]
    rank: int
    badge: Optional[str]


class TeamEntry(BaseModel):
    id: int
    name: str
    banner_url: Optional[str]
    total_points: int
    members: int
    avg_points: int
    rank: int
    badge: Optional[str]


@router.get("/individuals", response_model=list[IndividualEntry])
def get_individual_leaderboard(
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """Top users by total points."""
    return individual_leaderboard(session, cache)


@router.get("/teams", response_model=list[TeamEntry])
def get_team_leaderboard(
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """Top teams by total points, with member count and average member points."""
    return team_leaderboard(session, cache)
