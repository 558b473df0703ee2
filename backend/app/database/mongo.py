"""
MongoDB connection helpers.
"""

from __future__ import annotations

import logging

from pymongo import MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

_client: MongoClient | None = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        # Import settings lazily to ensure env vars are loaded
        from app.config import settings

        logger.info("Initializing MongoClient for database %s", settings.MONGODB_DB_NAME)
        _client = MongoClient(
            settings.MONGODB_URI, tz_aware=True, serverSelectionTimeoutMS=5000
        )
    return _client


def get_database() -> Database:
    from app.config import settings

    client = get_client()
    return client[settings.MONGODB_DB_NAME]


def get_db():
    db = get_database()
    try:
        yield db
    finally:
        # PyMongo manages connection pooling automatically; nothing to close here.
        pass


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


def ensure_indexes(db: Database) -> None:
    """
    Create the indexes the service relies on for uniqueness and lookups.

    The unique indexes are what enforce one record per (user, url), one log
    per (user, repo-or-none, date) and one aggregate per (user, date).
    """
    # Imported here to keep this module free of repository imports at load time
    from app.repositories.activity_day import ActivityDayRepository
    from app.repositories.daily_log import DailyLogRepository
    from app.repositories.tracked_repository import TrackedRepositoryRepository

    TrackedRepositoryRepository(db).ensure_indexes()
    DailyLogRepository(db).ensure_indexes()
    ActivityDayRepository(db).ensure_indexes()
    logger.info("MongoDB indexes ensured")
