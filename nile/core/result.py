"""
SafeResult: the only success/failure channel of the dispatch core.
Ok and Err are plain dicts so they serialize to transports as-is; normalize()
strips the discriminants before a result leaves the executor.
"""
from enum import Enum
from typing import Any, Dict, Optional, TypedDict


class SafeResult(TypedDict):
    status: bool
    message: str
    data: Any
    is_ok: bool
    is_error: bool


class ErrorKind(str, Enum):
    """Stable error categories adapters map to transport codes."""

    SERVICE_NOT_FOUND = "service-not-found"
    ACTION_NOT_FOUND = "action-not-found"
    AUTH_FAILED = "auth-failed"
    NO_AUTH_HANDLER = "no-auth-handler"
    VALIDATION_FAILED = "validation-failed"
    EXECUTION_ERROR = "execution-error"


def ok(data: Any = None, message: str = "Success") -> SafeResult:
    return {
        "status": True,
        "message": message,
        "data": data,
        "is_ok": True,
        "is_error": False,
    }


def safe_error(message: str, error_id: Any, **other: Any) -> SafeResult:
    """Build an Err. error_id is a category (ErrorKind) or a correlation id."""
    if isinstance(error_id, ErrorKind):
        error_id = error_id.value
    return {
        "status": False,
        "message": message,
        "data": {"error_id": error_id, **other},
        "is_ok": False,
        "is_error": True,
    }


def is_ok(result: Any) -> bool:
    return isinstance(result, dict) and result.get("status") is True


def is_error(result: Any) -> bool:
    return isinstance(result, dict) and result.get("status") is False


def is_safe_result(result: Any) -> bool:
    """
    Shape check for values returned by user handlers.
    Discriminants are optional (normalized results drop them) but must agree with status.
    """
    if not isinstance(result, dict):
        return False
    status = result.get("status")
    if not isinstance(status, bool) or "data" not in result:
        return False
    if not isinstance(result.get("message", ""), str):
        return False
    if "is_ok" in result and result["is_ok"] is not status:
        return False
    if "is_error" in result and result["is_error"] is status:
        return False
    if status is False:
        data = result.get("data")
        return isinstance(data, dict) and "error_id" in data
    return True


def error_kind(result: Any) -> Optional[ErrorKind]:
    """ErrorKind of an Err, or None for successes and correlation-id errors."""
    if not is_error(result):
        return None
    data = result.get("data") or {}
    try:
        return ErrorKind(data.get("error_id"))
    except ValueError:
        return None


def normalize(result: SafeResult) -> Dict[str, Any]:
    """Transport shape: status, message, data."""
    return {
        "status": result.get("status") is True,
        "message": result.get("message") or "",
        "data": result.get("data"),
    }
