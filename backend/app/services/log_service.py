import logging
from typing import List

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from app.core.exceptions import ConflictError, NotFoundError
from app.dtos import CreateLogRequest, LogResponse, UpdateLogRequest
from app.entities.daily_log import DailyLog
from app.repositories.daily_log import DailyLogRepository
from app.repositories.tracked_repository import TrackedRepositoryRepository
from app.services.activity_service import ActivityService

logger = logging.getLogger(__name__)

DUPLICATE_LOG_MESSAGE = "Log entry already exists for this date and repository"


def _serialize_log(log: DailyLog) -> LogResponse:
    return LogResponse.model_validate(log.model_dump(by_alias=True))


class LogService:
    def __init__(self, db: Database):
        self.db = db
        self.log_repo = DailyLogRepository(db)
        self.repo_repo = TrackedRepositoryRepository(db)
        self.activity_service = ActivityService(db)

    def _refresh_activity(self, user_id: str, log_date: str) -> None:
        # The log write already succeeded; a stale aggregate is fixed by the next write
        try:
            self.activity_service.recompute(user_id, log_date)
        except Exception as e:
            logger.error("Error updating activity for %s on %s: %s", user_id, log_date, e)

    def create_log(self, user_id: str, payload: CreateLogRequest) -> LogResponse:
        if payload.repo_id and not self.repo_repo.find_for_user(payload.repo_id, user_id):
            raise NotFoundError("Repository not found")
        if self.log_repo.find_duplicate(user_id, payload.repo_id, payload.log_date):
            raise ConflictError(DUPLICATE_LOG_MESSAGE)

        entity = DailyLog(
            user_id=user_id,
            repo_id=payload.repo_id,
            log_date=payload.log_date,
            content=payload.content,
            hours_worked=payload.hours_worked,
            mood=payload.mood,
        )
        try:
            saved = self.log_repo.insert_one(entity)
        except DuplicateKeyError:
            raise ConflictError(DUPLICATE_LOG_MESSAGE)

        logger.info("Log created for user %s on %s", user_id, payload.log_date)
        self._refresh_activity(user_id, payload.log_date)
        return _serialize_log(saved)

    def get_logs_by_date(self, user_id: str, log_date: str) -> List[LogResponse]:
        return [_serialize_log(log) for log in self.log_repo.find_by_date(user_id, log_date)]

    def get_logs_by_repo(
        self,
        user_id: str,
        repo_id: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> List[LogResponse]:
        logs = self.log_repo.find_by_repo(user_id, repo_id, start_date, end_date)
        return [_serialize_log(log) for log in logs]

    def get_logs_by_date_range(
        self, user_id: str, start_date: str, end_date: str
    ) -> List[LogResponse]:
        logs = self.log_repo.find_by_date_range(user_id, start_date, end_date)
        return [_serialize_log(log) for log in logs]

    def get_log(self, log_id: str, user_id: str) -> LogResponse:
        log = self.log_repo.find_for_user(log_id, user_id)
        if not log:
            raise NotFoundError("Log entry not found")
        return _serialize_log(log)

    def update_log(self, log_id: str, user_id: str, payload: UpdateLogRequest) -> LogResponse:
        updates = payload.model_dump(exclude_none=True)
        if updates:
            log = self.log_repo.update_for_user(log_id, user_id, updates)
        else:
            log = self.log_repo.find_for_user(log_id, user_id)
        if not log:
            raise NotFoundError("Log entry not found or update failed")

        logger.info("Log updated: %s", log_id)
        self._refresh_activity(user_id, log.log_date)
        return _serialize_log(log)

    def delete_log(self, log_id: str, user_id: str) -> None:
        removed = self.log_repo.delete_for_user(log_id, user_id)
        if not removed:
            raise NotFoundError("Log entry not found or delete failed")

        logger.info("Log deleted: %s", log_id)
        self._refresh_activity(user_id, removed.log_date)
