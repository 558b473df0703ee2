"""Tracked repository DTOs"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.entities.base import PyObjectIdStr

GITHUB_REPO_URL_PATTERN = r"^https?://(www\.)?github\.com/[\w-]+/[\w.-]+/?$"


class AnalyzeRepoRequest(BaseModel):
    github_url: str = Field(..., alias="githubUrl", pattern=GITHUB_REPO_URL_PATTERN)

    model_config = ConfigDict(populate_by_name=True)


class UpdateRepoRequest(BaseModel):
    tags: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None


class RepoResponse(BaseModel):
    id: PyObjectIdStr = Field(..., alias="_id")
    user_id: str
    github_url: str
    name: str
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = 0
    forks: int = 0
    complexity_score: int = 0
    difficulty_level: Optional[str] = None
    vibe_classification: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = []
    metadata: Dict[str, Any] = {}
    last_analyzed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class RepoListResponse(BaseModel):
    repositories: List[RepoResponse]
    total: int
    page: int
    limit: int
