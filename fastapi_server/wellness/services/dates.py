"""
Calendar-day helpers. All challenge days are UTC days.
"""
import re
from datetime import date, datetime, timezone
from typing import Optional, Union

from wellness.errors import ValidationError

WEDNESDAY = 2  # date.weekday()
DAY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def parse_day(value: Union[str, date, None], field: str = "date") -> date:
    """Parse a YYYY-MM-DD string into a date, raising ValidationError when malformed."""
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(field, "a YYYY-MM-DD date is required")

    value = value.strip()
    if not DAY_PATTERN.fullmatch(value):
        raise ValidationError(field, f"'{value}' is not a YYYY-MM-DD date")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(field, f"'{value}' is not a YYYY-MM-DD date")


def day_or_today(value: Optional[str]) -> date:
    return parse_day(value) if value else today_utc()


def is_wellness_wednesday(day: date) -> bool:
    return day.weekday() == WEDNESDAY
