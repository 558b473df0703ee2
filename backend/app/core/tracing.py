"""
Tracing Context - Request-scoped context for log correlation.

Uses Python's contextvars so every coroutine handling a request sees its own
values. The request middleware in ``app.main`` sets the correlation id, the
auth dependency adds the user id, and the analysis pipeline adds the
repository URL it is working on.

Usage:
    TracingContext.set(correlation_id="abc-123", user_id="user-1")
    ctx = TracingContext.get()          # picked up by JSONFormatter
    TracingContext.clear()
"""

import uuid
from contextvars import ContextVar
from typing import Dict

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_user_id: ContextVar[str] = ContextVar("user_id", default="")
_repo_url: ContextVar[str] = ContextVar("repo_url", default="")


class TracingContext:
    """Context-local tracing values for the current request."""

    @staticmethod
    def set(
        correlation_id: str = "",
        user_id: str = "",
        repo_url: str = "",
    ) -> None:
        """Set tracing context for current execution."""
        if correlation_id:
            _correlation_id.set(correlation_id)
        if user_id:
            _user_id.set(user_id)
        if repo_url:
            _repo_url.set(repo_url)

    @staticmethod
    def get() -> Dict[str, str]:
        """Get current tracing context as dict."""
        return {
            "correlation_id": _correlation_id.get(),
            "user_id": _user_id.get(),
            "repo_url": _repo_url.get(),
        }

    @staticmethod
    def get_or_create_correlation_id() -> str:
        """Get current correlation ID or create a new one."""
        corr_id = _correlation_id.get()
        if not corr_id:
            corr_id = str(uuid.uuid4())
            _correlation_id.set(corr_id)
        return corr_id

    @staticmethod
    def clear() -> None:
        _correlation_id.set("")
        _user_id.set("")
        _repo_url.set("")
