"""
Daily Logs - One row per activity a user completed on a calendar day.
"""
from datetime import date, datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint


class DailyLog(SQLModel, table=True):
    __tablename__ = "daily_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "activity_id", "log_date", name="uq_daily_log_user_activity_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    activity_id: int = Field(foreign_key="activities.id")
    log_date: date = Field(index=True)  # UTC calendar day
    points: int  # Copied from the activity when logged
    team_id: Optional[int] = None  # Team credited with the points, lookup only
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
