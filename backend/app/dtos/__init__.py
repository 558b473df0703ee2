"""Request/response DTOs"""

from .activity import (
    ActivitySummary,
    AllTimeSummary,
    CalendarDay,
    CalendarView,
    PeriodSummary,
    ProductivityMetrics,
    Streak,
    StreakSummary,
)
from .auth import (
    AuthResult,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from .common import format_response
from .github import (
    CodePatterns,
    FileTreeNode,
    InsightResult,
    RateLimitStatus,
    RepoMetadata,
    ScanResult,
)
from .log import CreateLogRequest, LogResponse, UpdateLogRequest
from .repository import (
    AnalyzeRepoRequest,
    RepoListResponse,
    RepoResponse,
    UpdateRepoRequest,
)

__all__ = [
    "format_response",
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "UpdateProfileRequest",
    "UserResponse",
    "AuthResult",
    # Repositories
    "AnalyzeRepoRequest",
    "UpdateRepoRequest",
    "RepoResponse",
    "RepoListResponse",
    # GitHub analysis
    "RepoMetadata",
    "FileTreeNode",
    "RateLimitStatus",
    "ScanResult",
    "CodePatterns",
    "InsightResult",
    # Logs
    "CreateLogRequest",
    "UpdateLogRequest",
    "LogResponse",
    # Activity
    "CalendarDay",
    "CalendarView",
    "Streak",
    "ProductivityMetrics",
    "StreakSummary",
    "PeriodSummary",
    "AllTimeSummary",
    "ActivitySummary",
]
