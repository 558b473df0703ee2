"""Errors raised by the GitHub client.

They subclass AppError so the global handler can turn them into responses
directly; each carries the HTTP status the client should see.
"""

from __future__ import annotations

from app.core.exceptions import AppError


class GithubError(AppError):
    """Generic failure talking to GitHub."""

    status_code = 500


class GithubInvalidUrlError(GithubError):
    """Raised when a URL does not point at a GitHub repository."""

    status_code = 400


class GithubNotFoundError(GithubError):
    """Raised when the repository (or path) does not exist."""

    status_code = 404


class GithubAccessDeniedError(GithubError):
    """Raised when the repository is private or the token lacks access."""

    status_code = 403


class GithubRateLimitError(GithubError):
    """Raised when the upstream service enforces a rate limit."""

    status_code = 429

    def __init__(self, message: str, retry_after: int | float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class GithubRetryableError(GithubError):
    """Raised for transient issues where retrying later may succeed."""
