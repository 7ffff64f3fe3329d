"""
Users router - participant profiles.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from wellness.cache import ResultCache
from wellness.database import get_session
from wellness.dependencies import get_cache, get_current_user_id
from wellness.models.user import User
from wellness.services.users import create_user, get_user_or_404

router = APIRouter(prefix="/api/users", tags=["users"])


# --- Request/Response Models ---

class CreateUserRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254, description="Email address")
    full_name: Optional[str] = Field(default=None, max_length=100, description="Display name")
    avatar_url: Optional[str] = Field(default=None, max_length=500)


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    avatar_url: Optional[str]
    total_points: int
    team_id: Optional[int]
    created_at: str


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
        total_points=user.total_points,
        team_id=user.team_id,
        created_at=user.created_at.isoformat(),
    )


# --- Endpoints ---

@router.post("", response_model=UserResponse, status_code=201)
def register_user(
    request: CreateUserRequest,
    session: Session = Depends(get_session),
    cache: ResultCache = Depends(get_cache),
):
    """
    Create a participant profile.

    The returned id is the value the identity proxy forwards as X-User-Id.
    Returns 409 if the email is already registered.
    """
    user = create_user(session, request.email, request.full_name, request.avatar_url, cache)
    return _user_response(user)


@router.get("/me", response_model=UserResponse)
def get_me(
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Profile of the current user."""
    return _user_response(get_user_or_404(session, user_id))
