"""Daily log DTOs"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.entities.base import PyObjectIdStr
from app.utils.datetime import parse_date

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"


class CreateLogRequest(BaseModel):
    repo_id: Optional[str] = Field(default=None, alias="repoId", pattern=OBJECT_ID_PATTERN)
    log_date: str = Field(..., alias="logDate", pattern=DATE_PATTERN)
    content: str = Field(..., min_length=1)
    hours_worked: float = Field(default=0, alias="hoursWorked", ge=0, le=24)
    mood: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("log_date")
    @classmethod
    def check_calendar_date(cls, value: str) -> str:
        try:
            parse_date(value)
        except ValueError as exc:
            raise ValueError("Date must be a valid calendar date") from exc
        return value


class UpdateLogRequest(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    hours_worked: Optional[float] = Field(default=None, alias="hoursWorked", ge=0, le=24)
    mood: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class LogResponse(BaseModel):
    id: PyObjectIdStr = Field(..., alias="_id")
    user_id: str
    repo_id: Optional[str] = None
    log_date: str
    content: str
    hours_worked: float = 0
    mood: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)
