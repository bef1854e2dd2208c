"""
In-process RPC adapter: the same catalog and executor, called directly from Python
(background jobs, agents, other services in the same process).
results_mode="json" returns JSON strings instead of dicts.
"""
import json
from typing import Any, Dict, Mapping, Optional, Union

from nile.actions.runner import UnifiedExecutor
from nile.api.services import get_action_details, get_schemas, get_service_details, get_services, resolve_action
from nile.auth.context import offer_token
from nile.auth.handlers import AuthHandler, create_rpc_auth_handler
from nile.core.context import MappingTransport
from nile.core.errors import ConfigurationError
from nile.core.result import ErrorKind, normalize, safe_error

PROTOCOL = "rpc"
RESULTS_MODES = ("data", "json")

RPCResult = Union[Dict[str, Any], str]


class RPC:
    def __init__(
        self,
        executor: UnifiedExecutor,
        results_mode: str = "data",
        auth_handler: Optional[AuthHandler] = None,
    ):
        if results_mode not in RESULTS_MODES:
            raise ConfigurationError(f"Unknown results mode: {results_mode}")
        self.executor = executor
        self.results_mode = results_mode
        self._auth_handler = auth_handler

    @property
    def _catalog(self):
        return self.executor.catalog

    @property
    def _server_name(self) -> str:
        return self.executor.config.server_name

    def _format(self, result: Dict[str, Any]) -> RPCResult:
        body = normalize(result)
        if self.results_mode == "json":
            return json.dumps(body, default=str)
        return body

    def get_services(self) -> RPCResult:
        return self._format(get_services(self._catalog, self._server_name, PROTOCOL))

    def get_service_details(self, service: str) -> RPCResult:
        return self._format(get_service_details(self._catalog, service, PROTOCOL))

    def get_action_details(self, service: str, action: str) -> RPCResult:
        return self._format(get_action_details(self._catalog, service, action, PROTOCOL))

    def get_schemas(self) -> RPCResult:
        return self._format(get_schemas(self._catalog, self._server_name, PROTOCOL))

    async def execute_service_action(
        self,
        service: str,
        request: Mapping[str, Any],
        headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
    ) -> RPCResult:
        """request: {"action": str, "payload": Any, "auth": {"token": str}?}."""
        action_name = request.get("action") if isinstance(request, Mapping) else None
        if not isinstance(action_name, str) or not action_name:
            return self._format(
                safe_error(
                    "Invalid request format",
                    ErrorKind.VALIDATION_FAILED,
                    errors=[{"field": "action", "message": "Field required", "type": "missing"}],
                )
            )

        target, action, error = resolve_action(self._catalog, service, action_name, PROTOCOL)
        if error is not None:
            return self._format(error)

        auth = request.get("auth")
        token = auth.get("token") if isinstance(auth, Mapping) else None
        auth_input = offer_token(token, self.executor.config.auth, headers=headers, cookies=cookies)
        transport = MappingTransport(protocol=PROTOCOL, headers=auth_input.headers, cookies=auth_input.cookies)
        result = await self.executor.execute(
            target.name,
            action.name,
            request.get("payload"),
            auth_input=auth_input,
            interface_context=transport,
            auth_handler=self._auth_handler,
        )
        return self._format(result)


def create_rpc(
    server_config: Any,
    results_mode: str = "data",
    agent_mode: bool = False,
    organization_id: Optional[str] = None,
    executor: Optional[UnifiedExecutor] = None,
) -> RPC:
    """
    Agent mode and an explicit organization id both switch identity resolution to the
    RPC auth handler (synthetic agent/system identities). Otherwise the server's configured
    auth handler is used, falling back to RPC JWT verification when none is configured.
    """
    executor = executor or UnifiedExecutor(server_config)
    auth_handler = None
    if agent_mode or organization_id or executor.auth_handler is None:
        auth_handler = create_rpc_auth_handler(server_config, agent_mode=agent_mode, organization_id=organization_id)
    return RPC(executor, results_mode=results_mode, auth_handler=auth_handler)
