"""
TrackedRepository Entity - a GitHub repository analyzed on behalf of a user.

One document per (user_id, github_url). Descriptive fields come from GitHub,
derived fields from the scanner and the insight generator.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.entities.base import BaseEntity
from app.utils.datetime import utc_now


class TrackedRepository(BaseEntity):
    """Analyzed repository owned by a single user."""

    user_id: str
    github_url: str

    name: str
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = 0
    forks: int = 0

    complexity_score: int = Field(default=0, ge=0, le=100)
    difficulty_level: Optional[str] = None
    vibe_classification: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    # owner, full_name, default_branch, totals, languages, frameworks,
    # dependencies and improvements
    metadata: Dict[str, Any] = Field(default_factory=dict)

    last_analyzed_at: datetime = Field(default_factory=utc_now)
