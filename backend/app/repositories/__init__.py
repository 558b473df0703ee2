"""Repository layer for database operations"""

from .activity_day import ActivityDayRepository
from .base import BaseRepository
from .daily_log import DailyLogRepository
from .profile import ProfileRepository
from .tracked_repository import TrackedRepositoryRepository

__all__ = [
    "BaseRepository",
    "ProfileRepository",
    "TrackedRepositoryRepository",
    "DailyLogRepository",
    "ActivityDayRepository",
]
