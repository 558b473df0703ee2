"""Database entity models - represents the actual structure stored in MongoDB"""

from .activity_day import ActivityDay
from .base import BaseEntity, PyObjectId
from .daily_log import DailyLog
from .profile import Profile
from .tracked_repository import TrackedRepository

__all__ = [
    # Base
    "BaseEntity",
    "PyObjectId",
    # Accounts
    "Profile",
    # Analysis
    "TrackedRepository",
    # Work logs
    "DailyLog",
    "ActivityDay",
]
