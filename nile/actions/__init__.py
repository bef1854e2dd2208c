from nile.actions.hooks import HookExecutor
from nile.actions.protocol import (
    Action,
    ActionHooks,
    ActionResultConfig,
    HookDefinition,
    Service,
    SubService,
    Visibility,
)
from nile.actions.registry import ActionCatalog, sanitize_for_url_safety, validate_server_config
from nile.actions.runner import UnifiedExecutor, execute_unified
from nile.actions.validation import Validation

__all__ = [
    "Action",
    "ActionCatalog",
    "ActionHooks",
    "ActionResultConfig",
    "HookDefinition",
    "HookExecutor",
    "Service",
    "SubService",
    "UnifiedExecutor",
    "Validation",
    "Visibility",
    "execute_unified",
    "sanitize_for_url_safety",
    "validate_server_config",
]
