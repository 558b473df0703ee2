"""
Activity aggregation over daily logs.

``activity_days`` holds one derived row per (user, date). Rows are always
rebuilt from the logs of that date, never incremented, so repeated
recomputation cannot drift.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from pymongo.database import Database

from app.dtos.activity import (
    ActivitySummary,
    AllTimeSummary,
    CalendarDay,
    CalendarView,
    PeriodSummary,
    ProductivityMetrics,
    Streak,
    StreakSummary,
)
from app.entities.activity_day import ActivityDay
from app.repositories.activity_day import ActivityDayRepository
from app.repositories.daily_log import DailyLogRepository
from app.utils.datetime import date_range_for_period, dates_in_month, parse_date
from app.utils.datetime import today as utc_today

logger = logging.getLogger(__name__)


def compute_streak(active_dates: List[str], today: date) -> Streak:
    """
    Current and longest runs of consecutive active days.

    ``active_dates`` must be sorted most recent first. The current streak only
    counts if it reaches today.
    """
    if not active_dates:
        return Streak(current_streak=0, longest_streak=0, last_active_date=None)

    days = [parse_date(value) for value in active_dates]

    current = 0
    for offset, day in enumerate(days):
        if day == today - timedelta(days=offset):
            current += 1
        else:
            break

    longest = 0
    run = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    longest = max(longest, run)

    return Streak(
        current_streak=current,
        longest_streak=longest,
        last_active_date=active_dates[0],
    )


class ActivityService:
    def __init__(self, db: Database):
        self.db = db
        self.activity_repo = ActivityDayRepository(db)
        self.log_repo = DailyLogRepository(db)

    def recompute(self, user_id: str, activity_date: str) -> ActivityDay:
        """Rebuild the aggregate row for one user and date from its logs."""
        logs = self.log_repo.find_by_date(user_id, activity_date)
        total_hours = sum(log.hours_worked or 0 for log in logs)
        day = self.activity_repo.replace_day(user_id, activity_date, len(logs), total_hours)
        logger.debug("Activity updated for %s on %s", user_id, activity_date)
        return day

    def get_calendar_view(self, user_id: str, month: int, year: int) -> CalendarView:
        dates = dates_in_month(month, year)
        activities = {
            day.activity_date: day
            for day in self.activity_repo.find_range(user_id, dates[0], dates[-1])
        }

        days = []
        for value in dates:
            activity = activities.get(value)
            days.append(
                CalendarDay(
                    date=value,
                    is_active=activity.is_active if activity else False,
                    log_count=activity.log_count if activity else 0,
                    total_hours=activity.total_hours if activity else 0,
                )
            )
        return CalendarView(month=month, year=year, days=days)

    def calculate_streak(self, user_id: str, today: Optional[date] = None) -> Streak:
        active = self.activity_repo.find_active_desc(user_id)
        return compute_streak([day.activity_date for day in active], today or utc_today())

    def get_productivity_metrics(
        self, user_id: str, period: str = "month", today: Optional[date] = None
    ) -> ProductivityMetrics:
        start_date, end_date = date_range_for_period(period, today)

        activities = self.activity_repo.find_range(user_id, start_date, end_date)
        total_hours = sum(day.total_hours or 0 for day in activities)
        total_logs = sum(day.log_count or 0 for day in activities)
        active_days = sum(1 for day in activities if day.is_active)
        unique_repos = len(self.log_repo.distinct_repo_ids(user_id, start_date, end_date))
        average = total_hours / active_days if active_days > 0 else 0

        return ProductivityMetrics(
            total_hours=round(total_hours, 2),
            total_logs=total_logs,
            active_days=active_days,
            unique_repos=unique_repos,
            average_hours_per_day=round(average, 2),
            period=period,
            start_date=start_date,
            end_date=end_date,
        )

    def get_activity_summary(
        self, user_id: str, today: Optional[date] = None
    ) -> ActivitySummary:
        today = today or utc_today()
        streak = self.calculate_streak(user_id, today)
        week = self.get_productivity_metrics(user_id, "week", today)
        month = self.get_productivity_metrics(user_id, "month", today)
        all_time = self.get_productivity_metrics(user_id, "all", today)

        return ActivitySummary(
            streak=StreakSummary(
                current=streak.current_streak,
                longest=streak.longest_streak,
                last_active=streak.last_active_date,
            ),
            this_week=PeriodSummary(active_days=week.active_days, total_hours=week.total_hours),
            this_month=PeriodSummary(
                active_days=month.active_days, total_hours=month.total_hours
            ),
            all_time=AllTimeSummary(
                active_days=all_time.active_days,
                total_hours=all_time.total_hours,
                total_repos=all_time.unique_repos,
            ),
        )
