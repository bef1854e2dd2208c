"""
UnifiedExecutor: lookup -> auth gate -> global before hook -> validation -> hooks/handler
-> global after hook -> normalized result.
Every adapter funnels through execute(). Per-request failures come back as Err results;
only ConfigurationError is raised.
"""
import logging
from typing import Any, Dict, Optional

from nile.actions.hooks import HookExecutor, call_handler
from nile.actions.protocol import Action
from nile.actions.registry import ActionCatalog, validate_server_config
from nile.actions.validation import validate_payload
from nile.auth.context import AuthContext, AuthInput
from nile.auth.handlers import AuthHandler, run_auth_handler
from nile.auth.resolver import resolve_auth_handler
from nile.core.context import NileContext, TransportContext
from nile.core.errors import NoAuthHandlerError
from nile.core.logs import log_error
from nile.core.result import ErrorKind, SafeResult, is_ok, is_safe_result, normalize, safe_error
from nile.policies.runner import as_handlers, run_action_handlers

logger = logging.getLogger(__name__)

# identities that were synthesized rather than verified from a user credential
SYNTHETIC_METHODS = ("agent", "system")


def _merge_identity(payload: Any, identity: Dict[str, Any]) -> Any:
    if not isinstance(payload, dict):
        return payload
    merged = {
        **payload,
        "user_id": identity.get("user_id"),
        "organization_id": identity.get("organization_id"),
        "userId": identity.get("user_id"),
        "organizationId": identity.get("organization_id"),
    }
    if identity.get("triggered_by"):
        merged["triggered_by"] = identity["triggered_by"]
    return merged


class UnifiedExecutor:
    """
    Binds a ServerConfig to a frozen ActionCatalog.
    Construction validates the config, assembles the catalog and resolves the auth handler,
    so a broken deployment fails at startup rather than on the first request.
    """

    def __init__(self, config: Any, catalog: Optional[ActionCatalog] = None):
        validate_server_config(config)
        self.config = config
        self.catalog = catalog or ActionCatalog(config)
        self._auth_handler = resolve_auth_handler(config)
        self._on_action = as_handlers(getattr(config, "on_action_handler", None))

    @property
    def auth_handler(self) -> Optional[AuthHandler]:
        return self._auth_handler

    async def _authenticate(
        self,
        service_name: str,
        action: Action,
        auth_input: Optional[AuthInput],
        context: NileContext,
        auth_handler: Optional[AuthHandler],
    ) -> Optional[SafeResult]:
        """None when the call may proceed; an Err when authentication failed."""
        if action.is_protected is False:
            return None

        handler = auth_handler or self._auth_handler
        if handler is None:
            raise NoAuthHandlerError(
                f"Action '{service_name}.{action.name}' is protected but no auth handler is configured. "
                "Set auth.auth_handler or pass an explicit handler."
            )

        request = context.transport.raw if context.transport is not None else None
        auth_context = AuthContext.from_input(auth_input, request=request)
        result = await run_auth_handler(handler, auth_context, f"{service_name}.{action.name}")

        if not is_ok(result):
            data = result.get("data") if isinstance(result, dict) else None
            reason = data.get("error_id") if isinstance(data, dict) else None
            message = (result.get("message") if isinstance(result, dict) else None) or "Authentication failed"
            return safe_error(message, ErrorKind.AUTH_FAILED, reason=reason)

        identity = result.get("data") or {}
        if identity.get("method") == "agent" and not action.agentic:
            error_id = log_error(
                logger,
                f"Action {action.name} not available for agent execution",
                at_function="_authenticate",
                data={"service_name": service_name, "organization_id": identity.get("organization_id")},
            )
            return safe_error(
                f"Action {action.name} not available for agent execution",
                ErrorKind.AUTH_FAILED,
                reason="agent-not-allowed",
                correlation_id=error_id,
            )
        context.auth = identity
        return None

    async def _gate(self, stage: str, service_name: str, action: Action, payload: Any, result: Any = None) -> Optional[SafeResult]:
        if not self._on_action:
            return None
        event: Dict[str, Any] = {
            "action_name": action.name,
            "service_name": service_name,
            "payload": payload,
            "stage": stage,
        }
        if stage == "after":
            event["result"] = result
        allowed, decision = await run_action_handlers(self._on_action, event, action, payload)
        if allowed:
            return None
        logger.info(f"on_action_handler rejected {service_name}.{action.name} at {stage}: {decision['message']}")
        return safe_error(decision["message"], ErrorKind.EXECUTION_ERROR, stage=stage, detail=decision.get("detail"))

    async def _run(self, service_name: str, action: Action, payload: Any, context: NileContext) -> SafeResult:
        try:
            if action.hooks:
                executor = HookExecutor(self.catalog.hook_actions(service_name))
                return await executor.execute_action_with_hooks(action, payload, context)
            result = await call_handler(action.handler, payload, context)
        except Exception as e:
            error_id = log_error(
                logger,
                f"Action '{service_name}.{action.name}' raised",
                at_function="_run",
                exc_info=e,
            )
            return safe_error(
                f"Action '{action.name}' failed: {e}",
                ErrorKind.EXECUTION_ERROR,
                correlation_id=error_id,
            )
        if not is_safe_result(result):
            error_id = log_error(
                logger,
                f"Action '{service_name}.{action.name}' returned a malformed result",
                at_function="_run",
                data={"result_type": type(result).__name__},
            )
            return safe_error(
                f"Action '{action.name}' returned a malformed result",
                ErrorKind.EXECUTION_ERROR,
                correlation_id=error_id,
            )
        return result

    async def execute(
        self,
        service_name: str,
        action_name: str,
        payload: Any = None,
        auth_input: Optional[AuthInput] = None,
        interface_context: Optional[TransportContext] = None,
        auth_handler: Optional[AuthHandler] = None,
    ) -> Dict[str, Any]:
        """
        Run one action. Returns the normalized {status, message, data}.
        Raises ConfigurationError only (missing auth handler, broken auth handler).
        """
        if self.catalog.find_service(service_name) is None:
            return normalize(safe_error(f"Service '{service_name}' not found", ErrorKind.SERVICE_NOT_FOUND))
        action = self.catalog.get_action(service_name, action_name)
        if action is None:
            return normalize(
                safe_error(
                    f"Action '{action_name}' not found in service '{service_name}'",
                    ErrorKind.ACTION_NOT_FOUND,
                )
            )

        context = NileContext(transport=interface_context)
        failed = await self._authenticate(service_name, action, auth_input, context, auth_handler)
        if failed is not None:
            return normalize(failed)

        rejected = await self._gate("before", service_name, action, payload)
        if rejected is not None:
            return normalize(rejected)

        identity = context.auth or {}
        if action.type == "auto" and identity.get("method") in SYNTHETIC_METHODS:
            payload = _merge_identity(payload, identity)

        errors = validate_payload(self.catalog.validation_model(service_name, action_name), payload)
        if errors:
            return normalize(safe_error("Validation failed", ErrorKind.VALIDATION_FAILED, errors=errors))

        result = await self._run(service_name, action, payload, context)

        rejected = await self._gate("after", service_name, action, payload, normalize(result))
        if rejected is not None:
            return normalize(rejected)
        return normalize(result)


async def execute_unified(
    config: Any,
    service_name: str,
    action_name: str,
    payload: Any = None,
    auth_input: Optional[AuthInput] = None,
    interface_context: Optional[TransportContext] = None,
    auth_handler: Optional[AuthHandler] = None,
) -> Dict[str, Any]:
    """One-shot form of UnifiedExecutor(config).execute(...)."""
    executor = UnifiedExecutor(config)
    return await executor.execute(
        service_name,
        action_name,
        payload,
        auth_input=auth_input,
        interface_context=interface_context,
        auth_handler=auth_handler,
    )
