from fastapi import APIRouter, Depends, Query
from pymongo.database import Database

from app.database.mongo import get_db
from app.dtos.activity import Period
from app.dtos.common import format_response
from app.middleware.auth import get_current_user
from app.services.activity_service import ActivityService

router = APIRouter(prefix="/activity", tags=["Activity"])


@router.get("/calendar")
def get_calendar(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Every day of the month with its activity, zero-filled."""
    calendar = ActivityService(db).get_calendar_view(user["id"], month, year)
    return format_response(data={"calendar": calendar.model_dump(by_alias=True)})


@router.get("/streak")
def get_streak(
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    streak = ActivityService(db).calculate_streak(user["id"])
    return format_response(data={"streak": streak.model_dump(by_alias=True)})


@router.get("/metrics")
def get_metrics(
    period: Period = Query("month"),
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    metrics = ActivityService(db).get_productivity_metrics(user["id"], period)
    return format_response(data={"metrics": metrics.model_dump(by_alias=True)})


@router.get("/summary")
def get_summary(
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    summary = ActivityService(db).get_activity_summary(user["id"])
    return format_response(data={"summary": summary.model_dump(by_alias=True)})
