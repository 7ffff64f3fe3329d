"""
Challenge participants.
"""
import logging
import re
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from wellness.cache import ResultCache
from wellness.database import data_access
from wellness.errors import ConflictError, DataAccessError, NotFoundError, ValidationError
from wellness.models.user import User
from wellness.services.scores import invalidate_points, name_from_email

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def get_user_or_404(session: Session, user_id: int) -> User:
    with data_access("load user"):
        user = session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def create_user(
    session: Session,
    email: str,
    full_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
    cache: Optional[ResultCache] = None,
) -> User:
    """
    Create a participant profile with no points and no team.

    A blank name is derived from the email address. Emails are unique;
    registering one twice raises ConflictError.
    """
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError("email", f"'{email}' is not an email address")

    user = User(
        email=email,
        full_name=(full_name or "").strip() or name_from_email(email),
        avatar_url=avatar_url,
    )

    try:
        session.add(user)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError(f"A user with email {email} already exists", detail=str(e)) from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to create user %s: %s", email, e)
        raise DataAccessError("Failed to create user", detail=str(e)) from e

    session.refresh(user)

    if cache is not None:
        invalidate_points(cache)

    logger.info("Created user %s", user.id)
    return user
