"""Activity Day Repository - derived per-day activity aggregates."""

from typing import List

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.entities.activity_day import ActivityDay
from app.utils.datetime import utc_now

from .base import BaseRepository


class ActivityDayRepository(BaseRepository[ActivityDay]):
    """Repository for the activity_days collection."""

    def __init__(self, db):
        super().__init__(db, "activity_days", ActivityDay)

    def ensure_indexes(self) -> None:
        self.collection.create_index(
            [("user_id", ASCENDING), ("activity_date", ASCENDING)], unique=True
        )

    def replace_day(
        self, user_id: str, activity_date: str, log_count: int, total_hours: float
    ) -> ActivityDay:
        """Overwrite the aggregate for (user, date) with freshly computed values."""
        now = utc_now()
        doc = self.collection.find_one_and_update(
            {"user_id": user_id, "activity_date": activity_date},
            {
                "$set": {
                    "log_count": log_count,
                    "total_hours": total_hours,
                    "is_active": log_count > 0,
                    "updated_at": now,
                },
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return ActivityDay.model_validate(doc)

    def find_range(self, user_id: str, start_date: str, end_date: str) -> List[ActivityDay]:
        return self.find_many(
            {"user_id": user_id, "activity_date": {"$gte": start_date, "$lte": end_date}},
            sort=[("activity_date", ASCENDING)],
        )

    def find_active_desc(self, user_id: str) -> List[ActivityDay]:
        """All active days for the user, most recent first."""
        return self.find_many(
            {"user_id": user_id, "is_active": True},
            sort=[("activity_date", DESCENDING)],
        )
