"""Typed application errors.

Services raise these; the handlers registered in ``app.middleware.errors``
turn them into the standard response envelope.
"""

from __future__ import annotations

from typing import Any, Optional

from app.middleware.error_codes import ErrorCode, get_error_code


class AppError(Exception):
    """Base error carrying an HTTP status and a client-safe message."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    @property
    def code(self) -> ErrorCode:
        return get_error_code(self.status_code)


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AccessDeniedError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class RateLimitError(AppError):
    status_code = 429

    def __init__(self, message: str, retry_after: int | float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(AppError):
    """An external collaborator failed in a way the client cannot fix."""

    status_code = 500
