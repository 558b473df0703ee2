"""Tracked Repository Repository - analyzed GitHub repositories per user."""

import re
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from app.entities.tracked_repository import TrackedRepository

from .base import BaseRepository


class TrackedRepositoryRepository(BaseRepository[TrackedRepository]):
    """Repository for the repositories collection. Every query is scoped by user_id."""

    def __init__(self, db):
        super().__init__(db, "repositories", TrackedRepository)

    def ensure_indexes(self) -> None:
        self.collection.create_index(
            [("user_id", ASCENDING), ("github_url", ASCENDING)], unique=True
        )
        self.collection.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

    def find_by_url(self, user_id: str, github_url: str) -> Optional[TrackedRepository]:
        return self.find_one({"user_id": user_id, "github_url": github_url})

    def find_for_user(self, repo_id: str, user_id: str) -> Optional[TrackedRepository]:
        oid = self._to_object_id(repo_id)
        if oid is None:
            return None
        return self.find_one({"_id": oid, "user_id": user_id})

    def list_for_user(
        self,
        user_id: str,
        language: Optional[str] = None,
        difficulty: Optional[str] = None,
        tags: Optional[List[str]] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[TrackedRepository], int]:
        """
        List a user's repositories, newest first.

        Args:
            language: Exact match on primary language
            difficulty: Exact match on difficulty level
            tags: Repository must carry every listed tag
        """
        query: Dict[str, Any] = {"user_id": user_id}
        if language:
            query["language"] = language
        if difficulty:
            query["difficulty_level"] = difficulty
        if tags:
            query["tags"] = {"$all": tags}

        return self.paginate(query, sort=[("created_at", DESCENDING)], skip=skip, limit=limit)

    def search_for_user(
        self, user_id: str, text: str, skip: int = 0, limit: int = 20
    ) -> Tuple[List[TrackedRepository], int]:
        """Case-insensitive substring search over name, description and summary."""
        pattern = {"$regex": re.escape(text), "$options": "i"}
        query = {
            "user_id": user_id,
            "$or": [
                {"name": pattern},
                {"description": pattern},
                {"summary": pattern},
            ],
        }
        return self.paginate(query, sort=[("created_at", DESCENDING)], skip=skip, limit=limit)

    def update_for_user(
        self, repo_id: str, user_id: str, updates: Dict[str, Any]
    ) -> Optional[TrackedRepository]:
        oid = self._to_object_id(repo_id)
        if oid is None:
            return None
        return self.find_one_and_update({"_id": oid, "user_id": user_id}, updates)

    def delete_for_user(self, repo_id: str, user_id: str) -> Optional[TrackedRepository]:
        """Delete and return the removed document, or None if the user has no such repo."""
        oid = self._to_object_id(repo_id)
        if oid is None:
            return None
        return self.find_one_and_delete({"_id": oid, "user_id": user_id})
