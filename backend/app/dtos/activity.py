"""Activity DTOs. Serialized with camelCase keys."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Period = Literal["week", "month", "year", "all"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CalendarDay(CamelModel):
    date: str
    is_active: bool = False
    log_count: int = 0
    total_hours: float = 0


class CalendarView(CamelModel):
    month: int
    year: int
    days: List[CalendarDay]


class Streak(CamelModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_active_date: Optional[str] = None


class ProductivityMetrics(CamelModel):
    total_hours: float = 0
    total_logs: int = 0
    active_days: int = 0
    unique_repos: int = 0
    average_hours_per_day: float = 0
    period: Period
    start_date: str
    end_date: str


class StreakSummary(CamelModel):
    current: int
    longest: int
    last_active: Optional[str] = None


class PeriodSummary(CamelModel):
    active_days: int
    total_hours: float


class AllTimeSummary(PeriodSummary):
    total_repos: int


class ActivitySummary(CamelModel):
    streak: StreakSummary
    this_week: PeriodSummary
    this_month: PeriodSummary
    all_time: AllTimeSummary
