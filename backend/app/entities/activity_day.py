"""
ActivityDay Entity - per-user, per-date aggregate of daily logs.

Derived data: always recomputed from the day's DailyLog documents, never
edited directly.
"""

from pydantic import Field

from app.entities.base import BaseEntity


class ActivityDay(BaseEntity):
    user_id: str
    activity_date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    log_count: int = 0
    total_hours: float = 0
    is_active: bool = False
