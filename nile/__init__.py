from nile.actions import (
    Action,
    ActionHooks,
    ActionResultConfig,
    HookDefinition,
    Service,
    SubService,
    UnifiedExecutor,
    Validation,
    Visibility,
    execute_unified,
)
from nile.config import AuthConfig, DatabaseConfig, RateLimitConfig, ServerConfig, Settings
from nile.core import ErrorKind, NileContext, ok, safe_error

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionHooks",
    "ActionResultConfig",
    "AuthConfig",
    "DatabaseConfig",
    "ErrorKind",
    "HookDefinition",
    "NileContext",
    "RateLimitConfig",
    "ServerConfig",
    "Service",
    "Settings",
    "SubService",
    "UnifiedExecutor",
    "Validation",
    "Visibility",
    "execute_unified",
    "ok",
    "safe_error",
]
