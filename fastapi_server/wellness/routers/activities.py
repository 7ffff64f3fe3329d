"""
Activities router - the activity catalogue and the current user's daily log.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlmodel import Session

from wellness.cache import ResultCache
from wellness.database import get_session
from wellness.dependencies import get_cache, get_current_user_id
from wellness.services.activity_log import (
    get_daily_logs,
    list_activities,
    log_activity,
    unlog_activity,
)
from wellness.services.dates import day_or_today

router = APIRouter(prefix="/api/activities", tags=["activities"])


# --- Request/Response Models ---

class ActivityInfo(BaseModel):
    id: int
    name: str
    emoji: str
    points: int
    description: Optional[str]


class DailyLogInfo(BaseModel):
    id: int
    activity_id: int
    log_date: str
    points: int
    completed_at: str


def _log_info(entry) -> DailyLogInfo:
    return DailyLogInfo(
        id=entry.id,
        activity_id=entry.activity_id,
        log_date=entry.log_date.isoformat(),
        points=entry.points,
        completed_at=entry.completed_at.isoformat(),
    )


# --- Endpoints ---

@router.get("", response_model=list[ActivityInfo])
def get_activities(session: Session = Depends(get_session)):
    return [
        ActivityInfo(
            id=a.id,
            name=a.name,
            emoji=a.emoji,
            points=a.points,
            description=a.description,
        )
        for a in list_activities(session)
    ]


@router.get("/logs", response_model=list[DailyLogInfo])
def get_my_logs(
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD (UTC), defaults to today"),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Activities the current user logged on a day."""
    return [_log_info(e) for e in get_daily_logs(session, user_id, day_or_today(date))]


@router.post("/{activity_id}/log", response_model=DailyLogInfo, status_code=201)
def log_my_activity(
    activity_id: int,
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD (UTC), defaults to today"),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """
    Log a completed activity for the current user.

    Each activity can be logged once per day. Returns 409 if already logged.
    """
    entry = log_activity(session, user_id, activity_id, day_or_today(date), cache)
    return _log_info(entry)


@router.delete("/{activity_id}/log", status_code=204)
def unlog_my_activity(
    activity_id: int,
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD (UTC), defaults to today"),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """
    Remove a logged activity for the current user and take its points back.

    Returns 404 if the activity was not logged that day.
    """
    unlog_activity(session, user_id, activity_id, day_or_today(date), cache)
    return Response(status_code=204)
