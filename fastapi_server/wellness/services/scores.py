"""
Point totals, team scores and leaderboards.

Per-member daily totals and leaderboards are memoized in the ResultCache;
writers call invalidate_points() whenever points change.
"""
import math
from datetime import date
from typing import Iterable, Optional

from sqlmodel import Session, func, select

from wellness.cache import ResultCache
from wellness.config import CACHE_TTL_MS
from wellness.database import data_access
from wellness.errors import NotFoundError
from wellness.models.daily_log import DailyLog
from wellness.models.team import Team
from wellness.models.user import User

INDIVIDUAL_LEADERBOARD_KEY = "leaderboard:individuals"
TEAM_LEADERBOARD_KEY = "leaderboard:teams"
INDIVIDUAL_LEADERBOARD_SIZE = 50
TEAM_LEADERBOARD_SIZE = 20
BADGES = ["🥇", "🥈", "🥉"]


# --- Cache Keys ---

def daily_points_key(user_id: int, day: date) -> str:
    return f"daily_points:{user_id}:{day.isoformat()}"


def invalidate_points(cache: ResultCache, user_ids: Iterable[int] = (), day: Optional[date] = None):
    """Drop cached values that depend on point totals."""
    if day is not None:
        for user_id in user_ids:
            cache.clear(daily_points_key(user_id, day))
    cache.clear(INDIVIDUAL_LEADERBOARD_KEY)
    cache.clear(TEAM_LEADERBOARD_KEY)


# --- Lookups ---

def get_team_or_404(session: Session, team_id: int) -> Team:
    with data_access("load team"):
        team = session.get(Team, team_id)
    if not team:
        raise NotFoundError(f"Team {team_id} not found")
    return team


def get_roster(session: Session, team_id: int) -> list[User]:
    """All users currently assigned to the team, oldest first."""
    with data_access("load team members"):
        return list(session.exec(
            select(User)
            .where(User.team_id == team_id)
            .order_by(User.created_at, User.id)
        ).all())


def member_daily_points(
    session: Session,
    user_ids: list[int],
    day: date,
    cache: Optional[ResultCache] = None,
) -> dict[int, int]:
    """
    Points each user earned on a calendar day.

    Users without any log that day get 0. Cached totals are reused and the
    rest are fetched with a single grouped query.
    """
    points: dict[int, int] = {}
    missing = []
    for user_id in user_ids:
        cached = cache.get(daily_points_key(user_id, day)) if cache is not None else None
        if cached is None:
            missing.append(user_id)
        else:
            points[user_id] = cached

    if missing:
        with data_access("load daily points"):
            rows = session.exec(
                select(DailyLog.user_id, func.sum(DailyLog.points))
                .where(DailyLog.user_id.in_(missing))
                .where(DailyLog.log_date == day)
                .group_by(DailyLog.user_id)
            ).all()
        fetched = {user_id: int(total or 0) for user_id, total in rows}

        for user_id in missing:
            points[user_id] = fetched.get(user_id, 0)
            if cache is not None:
                cache.set(daily_points_key(user_id, day), points[user_id], CACHE_TTL_MS)

    return points


def _rounded_average(total: int, count: int) -> int:
    # Half-up rounding, 2.5 -> 3
    return math.floor(total / count + 0.5) if count else 0


# --- Team Scores ---

def team_daily_score(
    session: Session,
    team_id: int,
    day: date,
    cache: Optional[ResultCache] = None,
) -> int:
    """Average points per member for the day."""
    get_team_or_404(session, team_id)
    members = get_roster(session, team_id)
    if not members:
        return 0

    points = member_daily_points(session, [m.id for m in members], day, cache)
    return _rounded_average(sum(points.values()), len(members))


def team_rank(session: Session, team_id: int) -> dict:
    """
    Position of a team when all teams are ordered by total points.

    points_to_next_rank is the gap to the team directly above (0 for the leader).
    """
    get_team_or_404(session, team_id)
    with data_access("load team standings"):
        teams = session.exec(
            select(Team.id, Team.total_points)
            .order_by(Team.total_points.desc(), Team.id)
        ).all()

    index = next(i for i, (tid, _) in enumerate(teams) if tid == team_id)
    gap = teams[index - 1][1] - teams[index][1] if index > 0 else 0

    return {
        "rank": index + 1,
        "total_teams": len(teams),
        "points_to_next_rank": gap,
    }


# --- Leaderboards ---

def name_from_email(email: str) -> str:
    """Build a display name like 'Jane Doe' from 'jane.doe@example.com'."""
    if not email:
        return "Unknown User"

    local_part = email.split("@")[0]
    if local_part.startswith("user-"):
        return f"User {local_part[5:9]}"

    parts = [p for p in local_part.replace("-", ".").replace("_", ".").split(".") if p]
    return " ".join(p[:1].upper() + p[1:] for p in parts) or "Unknown User"


def _badge(index: int) -> Optional[str]:
    return BADGES[index] if index < len(BADGES) else None


def individual_leaderboard(session: Session, cache: Optional[ResultCache] = None) -> list[dict]:
    cached = cache.get(INDIVIDUAL_LEADERBOARD_KEY) if cache is not None else None
    if cached is not None:
        return cached

    with data_access("load individual leaderboard"):
        users = session.exec(
            select(User)
            .order_by(User.total_points.desc(), User.id)
            .limit(INDIVIDUAL_LEADERBOARD_SIZE)
        ).all()

    board = [
        {
            "id": u.id,
            "full_name": u.full_name or name_from_email(u.email),
            "avatar_url": u.avatar_url,
            "total_points": u.total_points,
            "team_id": u.team_id,
            "rank": i + 1,
            "badge": _badge(i),
        }
        for i, u in enumerate(users)
    ]

    if cache is not None:
        cache.set(INDIVIDUAL_LEADERBOARD_KEY, board, CACHE_TTL_MS)
    return board


def team_leaderboard(session: Session, cache: Optional[ResultCache] = None) -> list[dict]:
    cached = cache.get(TEAM_LEADERBOARD_KEY) if cache is not None else None
    if cached is not None:
        return cached

    with data_access("load team leaderboard"):
        teams = session.exec(
            select(Team)
            .order_by(Team.total_points.desc(), Team.id)
            .limit(TEAM_LEADERBOARD_SIZE)
        ).all()

        # Member count and summed member points per team in one query
        member_stats = {
            team_id: (count, total or 0)
            for team_id, count, total in session.exec(
                select(User.team_id, func.count(User.id), func.sum(User.total_points))
                .where(User.team_id.in_([t.id for t in teams]))
                .group_by(User.team_id)
            ).all()
        }

    board = []
    for i, team in enumerate(teams):
        count, total = member_stats.get(team.id, (0, 0))
        board.append({
            "id": team.id,
            "name": team.name,
            "banner_url": team.banner_url,
            "total_points": team.total_points,
            "members": count,
            "avg_points": _rounded_average(total, count),
            "rank": i + 1,
            "badge": _badge(i),
        })

    if cache is not None:
        cache.set(TEAM_LEADERBOARD_KEY, board, CACHE_TTL_MS)
    return board
