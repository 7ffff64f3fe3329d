"""
Teams - Groups of members that share a challenge score.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Team(SQLModel, table=True):
    __tablename__ = "teams"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=50)
    total_points: int = Field(default=0, ge=0)  # Member activity points + awarded bonuses
    banner_url: Optional[str] = None
    creator_id: Optional[int] = None  # users.id, lookup only
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
