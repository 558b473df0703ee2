"""Exception handlers that render every error in the standard envelope."""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.exceptions import AppError, RateLimitError
from app.dtos.common import format_response
from app.middleware.error_codes import get_error_code
from app.services.github.exceptions import GithubRateLimitError

logger = logging.getLogger(__name__)


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix FastAPI puts on every location
        loc = [str(part) for part in error.get("loc", ())[1:]]
        details.append({"path": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return details


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.error(
        "AppError [%s]: %s (%s %s)",
        exc.code.value,
        exc.message,
        request.method,
        request.url.path,
    )
    headers = None
    if isinstance(exc, (RateLimitError, GithubRateLimitError)) and exc.retry_after:
        headers = {"Retry-After": str(int(exc.retry_after))}
    return JSONResponse(
        status_code=exc.status_code,
        content=format_response(success=False, error=exc.message, details=exc.details),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = _validation_details(exc)
    logger.warning("Validation failed for %s %s: %s", request.method, request.url.path, details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=format_response(success=False, error="Validation failed", details=details),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        logger.warning("404 Not Found: %s %s", request.method, request.url.path)
        message = "Route not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=format_response(success=False, error=message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unexpected error [%s] on %s %s: %s",
        get_error_code(500).value,
        request.method,
        request.url.path,
        exc,
    )
    if settings.is_production:
        body = format_response(success=False, error="Internal server error")
    else:
        body = format_response(
            success=False,
            error=str(exc) or "Internal server error",
            details={"stack": traceback.format_exception(type(exc), exc, exc.__traceback__)},
        )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
