"""
Wellness Wednesday team bonus.

A team earns a one-time bonus for a day when it has exactly
REQUIRED_TEAM_SIZE members and every one of them logged at least
MEMBER_POINTS_THRESHOLD points that day. Awards are recorded in the
wellness_wednesday table, whose unique (team_id, date) constraint keeps
evaluation idempotent even when two requests race for the same team and day.

Only achieved bonuses are persisted; failed checks are recomputed on every call.
The Wednesday gate is applied by callers, so any date can be evaluated here.
"""
import logging
import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from wellness.cache import ResultCache
from wellness.database import data_access
from wellness.errors import DataAccessError, ValidationError
from wellness.models.team import Team
from wellness.models.wellness_wednesday import WellnessWednesday
from wellness.services.dates import parse_day
from wellness.services.scores import (
    get_roster,
    get_team_or_404,
    invalidate_points,
    member_daily_points,
)

logger = logging.getLogger(__name__)

REQUIRED_TEAM_SIZE = 5
MEMBER_POINTS_THRESHOLD = 30
WELLNESS_WEDNESDAY_BONUS = 25


class BonusOutcome(str, Enum):
    ACHIEVED = "achieved"
    ALREADY_RECORDED = "already_recorded"
    ROSTER_SIZE = "roster_size"
    BELOW_THRESHOLD = "below_threshold"


class BonusCheckResult(BaseModel):
    achieved: bool
    message: str
    outcome: BonusOutcome


def validate_team_id(team_id) -> int:
    """Accept a positive int or a string of digits; floats and bools are rejected."""
    if team_id is None or team_id == "":
        raise ValidationError("team_id", "a team id is required")
    if isinstance(team_id, int) and not isinstance(team_id, bool):
        value = team_id
    elif isinstance(team_id, str) and re.fullmatch(r"[0-9]+", team_id.strip()):
        value = int(team_id.strip())
    else:
        raise ValidationError("team_id", f"'{team_id}' is not a valid team id")
    if value <= 0:
        raise ValidationError("team_id", f"'{team_id}' is not a valid team id")
    return value


def find_bonus_record(session: Session, team_id: int, day: date) -> Optional[WellnessWednesday]:
    with data_access("check existing bonus"):
        return session.exec(
            select(WellnessWednesday)
            .where(WellnessWednesday.team_id == team_id)
            .where(WellnessWednesday.date == day)
        ).first()


def _already_recorded() -> BonusCheckResult:
    return BonusCheckResult(
        achieved=True,
        message="Wellness Wednesday bonus was already applied to the team for this date",
        outcome=BonusOutcome.ALREADY_RECORDED,
    )


def evaluate_wellness_wednesday(
    session: Session,
    team_id: Union[int, str],
    day: Union[date, str],
    cache: Optional[ResultCache] = None,
) -> BonusCheckResult:
    """
    Check whether a team earned the bonus for a day and award it once.

    Args:
        session: Database session
        team_id: Team to evaluate
        day: Calendar day (date or YYYY-MM-DD string, UTC)
        cache: Optional result cache for member daily totals

    Returns:
        BonusCheckResult with a user-facing message

    Raises:
        ValidationError: team_id or day is malformed
        NotFoundError: the team does not exist
        DataAccessError: the database failed
    """
    team_id = validate_team_id(team_id)
    day = parse_day(day)

    get_team_or_404(session, team_id)

    if find_bonus_record(session, team_id, day):
        return _already_recorded()

    members = get_roster(session, team_id)
    if len(members) != REQUIRED_TEAM_SIZE:
        return BonusCheckResult(
            achieved=False,
            message=(
                f"Team needs exactly {REQUIRED_TEAM_SIZE} members for the bonus "
                f"(currently has {len(members)}/{REQUIRED_TEAM_SIZE})"
            ),
            outcome=BonusOutcome.ROSTER_SIZE,
        )

    member_ids = [m.id for m in members]
    points = member_daily_points(session, member_ids, day, cache)
    short = [user_id for user_id in member_ids if points[user_id] < MEMBER_POINTS_THRESHOLD]
    if short:
        return BonusCheckResult(
            achieved=False,
            message=(
                f"All team members must earn at least {MEMBER_POINTS_THRESHOLD} points "
                f"on Wednesday for the bonus ({len(short)} of {REQUIRED_TEAM_SIZE} fell short)"
            ),
            outcome=BonusOutcome.BELOW_THRESHOLD,
        )

    return award_bonus(session, team_id, day, cache)


def award_bonus(
    session: Session,
    team_id: int,
    day: date,
    cache: Optional[ResultCache] = None,
) -> BonusCheckResult:
    """Insert the bonus record and credit the team in one transaction."""
    record = WellnessWednesday(
        team_id=team_id,
        date=day,
        achieved=True,
        bonus_points=WELLNESS_WEDNESDAY_BONUS,
    )

    try:
        session.add(record)
        session.flush()  # Unique (team_id, date) is checked here
        session.exec(
            update(Team)
            .where(Team.id == team_id)
            .values(
                total_points=Team.total_points + WELLNESS_WEDNESDAY_BONUS,
                updated_at=datetime.now(timezone.utc),
            )
        )
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if find_bonus_record(session, team_id, day) is None:
            logger.error("Failed to record bonus for team %s on %s: %s", team_id, day, e)
            raise DataAccessError("Failed to apply team bonus", detail=str(e)) from e
        logger.info("Bonus for team %s on %s was recorded by a concurrent request", team_id, day)
        return _already_recorded()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to apply bonus for team %s on %s: %s", team_id, day, e)
        raise DataAccessError("Failed to apply team bonus", detail=str(e)) from e

    if cache is not None:
        invalidate_points(cache)

    logger.info("Awarded %s point Wellness Wednesday bonus to team %s for %s",
                WELLNESS_WEDNESDAY_BONUS, team_id, day)
    return BonusCheckResult(
        achieved=True,
        message=f"Wellness Wednesday bonus of {WELLNESS_WEDNESDAY_BONUS} points applied to the team!",
        outcome=BonusOutcome.ACHIEVED,
    )


def list_bonus_history(session: Session, team_id: Union[int, str]) -> list[WellnessWednesday]:
    """Recorded bonuses for a team, newest date first. Empty when there are none."""
    team_id = validate_team_id(team_id)
    with data_access("load bonus history"):
        return list(session.exec(
            select(WellnessWednesday)
            .where(WellnessWednesday.team_id == team_id)
            .order_by(WellnessWednesday.date.desc())
        ).all())
