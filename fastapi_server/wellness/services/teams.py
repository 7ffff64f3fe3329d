"""
Forming teams: create, join and leave.

A user belongs to at most one team, and a team holds at most MAX_TEAM_SIZE
members. Points already credited to a team stay with it when a member leaves.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, func, select

from wellness.cache import ResultCache
from wellness.database import data_access
from wellness.errors import ConflictError, DataAccessError, ValidationError
from wellness.models.team import Team
from wellness.models.user import User
from wellness.services.bonus import REQUIRED_TEAM_SIZE
from wellness.services.scores import get_team_or_404, invalidate_points
from wellness.services.users import get_user_or_404

logger = logging.getLogger(__name__)

MAX_TEAM_SIZE = REQUIRED_TEAM_SIZE
TEAM_NAME_MAX_LENGTH = 50

ALREADY_ON_A_TEAM = "You are already a member of a team. You can only be part of one team at a time."


def _assign_team(session: Session, user_id: int, team_id: Optional[int], current: Optional[int]) -> int:
    """Move a user between teams only if they are still on `current`. Returns rows changed."""
    membership = User.team_id.is_(None) if current is None else User.team_id == current
    return session.exec(
        update(User)
        .where(User.id == user_id)
        .where(membership)
        .values(team_id=team_id, updated_at=datetime.now(timezone.utc))
    ).rowcount


def member_count(session: Session, team_id: int) -> int:
    with data_access("count team members"):
        return session.exec(
            select(func.count(User.id)).where(User.team_id == team_id)
        ).one()


def create_team(
    session: Session,
    user_id: int,
    name: str,
    banner_url: Optional[str] = None,
    cache: Optional[ResultCache] = None,
) -> Team:
    """
    Create a team with the user as its creator and first member.

    Raises:
        ValidationError: the name is blank or too long
        NotFoundError: the user does not exist
        ConflictError: the user is already on a team, or the name is taken
        DataAccessError: the database failed
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("name", "a team name is required")
    if len(name) > TEAM_NAME_MAX_LENGTH:
        raise ValidationError("name", f"at most {TEAM_NAME_MAX_LENGTH} characters are allowed")

    user = get_user_or_404(session, user_id)
    if user.team_id is not None:
        raise ConflictError(ALREADY_ON_A_TEAM)

    team = Team(name=name, banner_url=banner_url or None, creator_id=user_id)

    try:
        session.add(team)
        session.flush()  # Unique team name is checked here
        if _assign_team(session, user_id, team.id, current=None) != 1:
            session.rollback()
            raise ConflictError(ALREADY_ON_A_TEAM)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError(f"A team named {name} already exists", detail=str(e)) from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to create team %s for user %s: %s", name, user_id, e)
        raise DataAccessError("Failed to create team", detail=str(e)) from e

    session.refresh(team)

    if cache is not None:
        invalidate_points(cache)

    logger.info("User %s created team %s (%s)", user_id, team.id, team.name)
    return team


def join_team(
    session: Session,
    user_id: int,
    team_id: int,
    cache: Optional[ResultCache] = None,
) -> Team:
    """Add a user without a team to a team that still has room."""
    user = get_user_or_404(session, user_id)
    team = get_team_or_404(session, team_id)

    if user.team_id == team.id:
        raise ConflictError("You are already a member of this team")
    if user.team_id is not None:
        raise ConflictError(ALREADY_ON_A_TEAM)
    if member_count(session, team_id) >= MAX_TEAM_SIZE:
        raise ConflictError(f"Team is full ({MAX_TEAM_SIZE} members maximum)")

    try:
        if _assign_team(session, user_id, team_id, current=None) != 1:
            session.rollback()
            raise ConflictError(ALREADY_ON_A_TEAM)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError("Failed to join team", detail=str(e)) from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to add user %s to team %s: %s", user_id, team_id, e)
        raise DataAccessError("Failed to join team", detail=str(e)) from e

    session.refresh(team)

    if cache is not None:
        invalidate_points(cache)

    logger.info("User %s joined team %s", user_id, team_id)
    return team


def leave_team(
    session: Session,
    user_id: int,
    team_id: int,
    cache: Optional[ResultCache] = None,
) -> Team:
    """
    Remove a user from their team.

    The team keeps its points and is never deleted, even when it empties.
    If the creator leaves, the longest-standing remaining member becomes
    creator.
    """
    user = get_user_or_404(session, user_id)
    team = get_team_or_404(session, team_id)

    if user.team_id != team.id:
        raise ConflictError("You are not a member of this team")

    successor = None
    if team.creator_id == user_id:
        with data_access("load team members"):
            successor = session.exec(
                select(User.id)
                .where(User.team_id == team_id)
                .where(User.id != user_id)
                .order_by(User.created_at, User.id)
            ).first()

    try:
        if _assign_team(session, user_id, None, current=team_id) != 1:
            session.rollback()
            raise ConflictError("You are not a member of this team")
        if team.creator_id == user_id:
            session.exec(
                update(Team)
                .where(Team.id == team_id)
                .values(creator_id=successor, updated_at=datetime.now(timezone.utc))
            )
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError("Failed to leave team", detail=str(e)) from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to remove user %s from team %s: %s", user_id, team_id, e)
        raise DataAccessError("Failed to leave team", detail=str(e)) from e

    session.refresh(team)

    if cache is not None:
        invalidate_points(cache)

    logger.info("User %s left team %s", user_id, team_id)
    return team
