from nile.core.context import HookContext, HookLogEntry, NileContext, RequestContext, TransportContext
from nile.core.errors import ConfigurationError, HookNotFoundError, NileError, NoAuthHandlerError
from nile.core.result import (
    ErrorKind,
    SafeResult,
    error_kind,
    is_error,
    is_ok,
    is_safe_result,
    normalize,
    ok,
    safe_error,
)

__all__ = [
    "ConfigurationError",
    "ErrorKind",
    "HookContext",
    "HookLogEntry",
    "HookNotFoundError",
    "NileContext",
    "NileError",
    "NoAuthHandlerError",
    "RequestContext",
    "SafeResult",
    "TransportContext",
    "error_kind",
    "is_error",
    "is_ok",
    "is_safe_result",
    "normalize",
    "ok",
    "safe_error",
]
