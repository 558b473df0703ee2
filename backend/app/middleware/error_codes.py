"""Semantic error codes attached to error logs.

Clients only see the envelope's ``error`` message; the code makes log lines
for the same failure class easy to filter.
"""

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    ACCESS_DENIED = "ACCESS_DENIED"
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE = "DUPLICATE"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# 422 only reaches us relayed from the identity provider
STATUS_TO_ERROR_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_INPUT,
    401: ErrorCode.UNAUTHENTICATED,
    403: ErrorCode.ACCESS_DENIED,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.DUPLICATE,
    422: ErrorCode.PROVIDER_REJECTED,
    429: ErrorCode.RATE_LIMITED,
}


def get_error_code(status_code: int) -> ErrorCode:
    return STATUS_TO_ERROR_CODE.get(status_code, ErrorCode.INTERNAL_ERROR)
