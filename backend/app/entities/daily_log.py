"""DailyLog Entity - a user's note about the work done on one day."""

from typing import Optional

from pydantic import Field

from app.entities.base import BaseEntity


class DailyLog(BaseEntity):
    user_id: str
    repo_id: Optional[str] = None
    log_date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    content: str
    hours_worked: float = Field(default=0, ge=0, le=24)
    mood: Optional[str] = None
