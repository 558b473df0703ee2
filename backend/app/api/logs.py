from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pymongo.database import Database

from app.database.mongo import get_db
from app.dtos import CreateLogRequest, UpdateLogRequest
from app.dtos.common import format_response
from app.dtos.log import DATE_PATTERN, OBJECT_ID_PATTERN
from app.middleware.auth import get_current_user
from app.middleware.rate_limit import LOG_CREATE_POLICY, limit_per_user
from app.services.log_service import LogService
from app.utils.datetime import format_date, today

router = APIRouter(prefix="/logs", tags=["Daily Logs"])

DEFAULT_LOOKBACK_DAYS = 30


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_per_user(LOG_CREATE_POLICY))],
)
def create_log(
    payload: CreateLogRequest,
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    log = LogService(db).create_log(user["id"], payload)
    return format_response(
        data={"log": log.model_dump(mode="json")}, message="Log created successfully"
    )


@router.get("")
def list_logs(
    date: Optional[str] = Query(None, pattern=DATE_PATTERN),
    repo_id: Optional[str] = Query(None, alias="repoId", pattern=OBJECT_ID_PATTERN),
    start_date: Optional[str] = Query(None, alias="startDate", pattern=DATE_PATTERN),
    end_date: Optional[str] = Query(None, alias="endDate", pattern=DATE_PATTERN),
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """
    List logs. Filters apply in order of precedence: a single ``date``, then
    ``repoId`` (optionally bounded by the range), then a full
    ``startDate``/``endDate`` range; otherwise the last 30 days.
    """
    service = LogService(db)
    if date:
        logs = service.get_logs_by_date(user["id"], date)
    elif repo_id:
        logs = service.get_logs_by_repo(user["id"], repo_id, start_date, end_date)
    elif start_date and end_date:
        logs = service.get_logs_by_date_range(user["id"], start_date, end_date)
    else:
        end = today()
        start = end - timedelta(days=DEFAULT_LOOKBACK_DAYS)
        logs = service.get_logs_by_date_range(user["id"], format_date(start), format_date(end))

    return format_response(
        data={"logs": [log.model_dump(mode="json") for log in logs], "count": len(logs)}
    )


@router.get("/{log_id}")
def get_log(
    log_id: str = Path(...),
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    log = LogService(db).get_log(log_id, user["id"])
    return format_response(data={"log": log.model_dump(mode="json")})


@router.patch("/{log_id}")
def update_log(
    payload: UpdateLogRequest,
    log_id: str = Path(...),
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    log = LogService(db).update_log(log_id, user["id"], payload)
    return format_response(
        data={"log": log.model_dump(mode="json")}, message="Log updated successfully"
    )


@router.delete("/{log_id}")
def delete_log(
    log_id: str = Path(...),
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    LogService(db).delete_log(log_id, user["id"])
    return format_response(message="Log deleted successfully")
