"""
Logging completed activities and crediting points.
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from wellness.cache import ResultCache
from wellness.database import data_access
from wellness.errors import ConflictError, DataAccessError, NotFoundError
from wellness.models.activity import Activity
from wellness.models.daily_log import DailyLog
from wellness.models.team import Team
from wellness.models.user import User
from wellness.services.scores import invalidate_points

logger = logging.getLogger(__name__)


def list_activities(session: Session) -> list[Activity]:
    with data_access("load activities"):
        return list(session.exec(select(Activity).order_by(Activity.id)).all())


def get_daily_logs(session: Session, user_id: int, day: date) -> list[DailyLog]:
    with data_access("load daily logs"):
        return list(session.exec(
            select(DailyLog)
            .where(DailyLog.user_id == user_id)
            .where(DailyLog.log_date == day)
            .order_by(DailyLog.completed_at)
        ).all())


def log_activity(
    session: Session,
    user_id: int,
    activity_id: int,
    day: date,
    cache: Optional[ResultCache] = None,
) -> DailyLog:
    """
    Record that a user completed an activity on a day.

    The activity's points are credited to the user and, when the user is on a
    team, to the team in the same transaction. Each activity counts once per
    user per day.
    """
    with data_access("load activity"):
        user = session.get(User, user_id)
        activity = session.get(Activity, activity_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    if not activity:
        raise NotFoundError(f"Activity {activity_id} not found")

    team_id = user.team_id
    activity_name = activity.name
    entry = DailyLog(
        user_id=user_id,
        activity_id=activity_id,
        log_date=day,
        points=activity.points,
        team_id=team_id,
    )
    now = datetime.now(timezone.utc)

    try:
        session.add(entry)
        session.flush()
        session.exec(
            update(User)
            .where(User.id == user_id)
            .values(total_points=User.total_points + activity.points, updated_at=now)
        )
        if team_id is not None:
            session.exec(
                update(Team)
                .where(Team.id == team_id)
                .values(total_points=Team.total_points + activity.points, updated_at=now)
            )
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError(
            f"{activity_name} was already logged for {day.isoformat()}",
            detail=str(e),
        ) from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to log activity %s for user %s: %s", activity_id, user_id, e)
        raise DataAccessError("Failed to log activity", detail=str(e)) from e

    session.refresh(entry)

    if cache is not None:
        invalidate_points(cache, [user_id], day)

    logger.info("User %s logged activity %s on %s (+%s points)", user_id, activity_id, day, entry.points)
    return entry


def find_daily_log(session: Session, user_id: int, activity_id: int, day: date) -> Optional[DailyLog]:
    with data_access("load daily log"):
        return session.exec(
            select(DailyLog)
            .where(DailyLog.user_id == user_id)
            .where(DailyLog.activity_id == activity_id)
            .where(DailyLog.log_date == day)
        ).first()


def unlog_activity(
    session: Session,
    user_id: int,
    activity_id: int,
    day: date,
    cache: Optional[ResultCache] = None,
) -> int:
    """
    Remove a logged activity and take its points back. Returns the points removed.

    The points are debited from the user and from the team that was credited
    when the activity was logged, which may not be the user's current team.
    """
    entry = find_daily_log(session, user_id, activity_id, day)
    if not entry:
        raise NotFoundError(f"Activity {activity_id} was not logged for {day.isoformat()}")

    entry_id = entry.id
    points = entry.points
    team_id = entry.team_id
    now = datetime.now(timezone.utc)

    try:
        # A concurrent unlog may have removed the row since it was read
        removed = session.exec(delete(DailyLog).where(DailyLog.id == entry_id)).rowcount
        if removed != 1:
            session.rollback()
            raise NotFoundError(f"Activity {activity_id} was not logged for {day.isoformat()}")
        session.exec(
            update(User)
            .where(User.id == user_id)
            .values(total_points=User.total_points - points, updated_at=now)
        )
        if team_id is not None:
            session.exec(
                update(Team)
                .where(Team.id == team_id)
                .values(total_points=Team.total_points - points, updated_at=now)
            )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to unlog activity %s for user %s: %s", activity_id, user_id, e)
        raise DataAccessError("Failed to remove activity", detail=str(e)) from e

    if cache is not None:
        invalidate_points(cache, [user_id], day)

    logger.info("User %s unlogged activity %s on %s (-%s points)", user_id, activity_id, day, points)
    return points
