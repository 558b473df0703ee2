"""Response envelope shared by every endpoint."""

from typing import Any, Dict, Optional


def format_response(
    success: bool = True,
    data: Any = None,
    message: Optional[str] = None,
    error: Optional[str] = None,
    details: Any = None,
) -> Dict[str, Any]:
    """Build ``{success, data?, message?, error?, details?}`` omitting empty keys."""
    body: Dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    if error:
        body["error"] = error
    if details is not None:
        body["details"] = details
    return body
