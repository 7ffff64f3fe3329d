"""
Wellness Wednesday - Team bonus awards, at most one per team per day.
"""
import datetime as dt
from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint


class WellnessWednesday(SQLModel, table=True):
    __tablename__ = "wellness_wednesday"
    __table_args__ = (
        UniqueConstraint("team_id", "date", name="uq_wellness_wednesday_team_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="teams.id", index=True)
    date: dt.date = Field(index=True)
    achieved: bool = Field(default=False)
    bonus_points: int = Field(default=0)
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
