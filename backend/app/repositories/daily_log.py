"""Daily Log Repository - per-user work log entries."""

from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING

from app.entities.daily_log import DailyLog
from app.utils.datetime import utc_now

from .base import BaseRepository


class DailyLogRepository(BaseRepository[DailyLog]):
    """Repository for the daily_logs collection. Every query is scoped by user_id."""

    def __init__(self, db):
        super().__init__(db, "daily_logs", DailyLog)

    def ensure_indexes(self) -> None:
        # Unique per repository only; logs detached from a deleted repository
        # may share a date with a repo-less entry
        self.collection.create_index(
            [("user_id", ASCENDING), ("repo_id", ASCENDING), ("log_date", ASCENDING)],
            unique=True,
            partialFilterExpression={"repo_id": {"$type": "string"}},
        )
        self.collection.create_index([("user_id", ASCENDING), ("log_date", DESCENDING)])

    def find_duplicate(
        self, user_id: str, repo_id: Optional[str], log_date: str
    ) -> Optional[DailyLog]:
        return self.find_one({"user_id": user_id, "repo_id": repo_id, "log_date": log_date})

    def find_for_user(self, log_id: str, user_id: str) -> Optional[DailyLog]:
        oid = self._to_object_id(log_id)
        if oid is None:
            return None
        return self.find_one({"_id": oid, "user_id": user_id})

    def find_by_date(self, user_id: str, log_date: str) -> List[DailyLog]:
        return self.find_many(
            {"user_id": user_id, "log_date": log_date},
            sort=[("created_at", DESCENDING)],
        )

    def find_by_repo(
        self,
        user_id: str,
        repo_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[DailyLog]:
        query: Dict[str, Any] = {"user_id": user_id, "repo_id": repo_id}
        date_filter: Dict[str, str] = {}
        if start_date:
            date_filter["$gte"] = start_date
        if end_date:
            date_filter["$lte"] = end_date
        if date_filter:
            query["log_date"] = date_filter
        return self.find_many(query, sort=[("log_date", DESCENDING)])

    def find_by_date_range(self, user_id: str, start_date: str, end_date: str) -> List[DailyLog]:
        return self.find_many(
            {"user_id": user_id, "log_date": {"$gte": start_date, "$lte": end_date}},
            sort=[("log_date", DESCENDING)],
        )

    def update_for_user(
        self, log_id: str, user_id: str, updates: Dict[str, Any]
    ) -> Optional[DailyLog]:
        oid = self._to_object_id(log_id)
        if oid is None:
            return None
        return self.find_one_and_update({"_id": oid, "user_id": user_id}, updates)

    def delete_for_user(self, log_id: str, user_id: str) -> Optional[DailyLog]:
        oid = self._to_object_id(log_id)
        if oid is None:
            return None
        return self.find_one_and_delete({"_id": oid, "user_id": user_id})

    def distinct_repo_ids(self, user_id: str, start_date: str, end_date: str) -> List[str]:
        """Repository ids referenced by the user's logs in the range (nulls excluded)."""
        values = self.collection.distinct(
            "repo_id",
            {"user_id": user_id, "log_date": {"$gte": start_date, "$lte": end_date}},
        )
        return [value for value in values if value]

    def detach_repo(self, user_id: str, repo_id: str) -> List[str]:
        """Clear repo_id on the user's logs for a deleted repository. Returns the affected dates."""
        query = {"user_id": user_id, "repo_id": repo_id}
        dates = self.collection.distinct("log_date", query)
        if dates:
            self.collection.update_many(
                query, {"$set": {"repo_id": None, "updated_at": utc_now()}}
            )
        return sorted(dates)
