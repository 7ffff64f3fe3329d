"""
SQLModel models for the wellness challenge.
"""
from wellness.models.team import Team
from wellness.models.user import User
from wellness.models.activity import Activity
from wellness.models.daily_log import DailyLog
from wellness.models.wellness_wednesday import WellnessWednesday

__all__ = [
    "Team",
    "User",
    "Activity",
    "DailyLog",
    "WellnessWednesday",
]
