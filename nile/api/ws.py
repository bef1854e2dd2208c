"""
WebSocket adapter. Authentication happens once, at the handshake; a rejected handshake is
closed with 1008 before it is accepted, a handshake whose auth handler raises with 1011.
Messages are {"event", "id", "data"} and every reply is {"event", "id", "response"}
where response is a normalized SafeResult.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette import status

from nile.actions.runner import UnifiedExecutor
from nile.api.services import get_action_details, get_schemas, get_service_details, get_services, resolve_action
from nile.auth.context import AuthContext, AuthInput, offer_token
from nile.auth.handlers import run_auth_handler
from nile.core.context import TransportContext
from nile.core.errors import ConfigurationError, NoAuthHandlerError
from nile.core.logs import log_error
from nile.core.result import ErrorKind, is_ok, normalize, safe_error

logger = logging.getLogger(__name__)

PROTOCOL = "ws"


class WebSocketTransport(TransportContext):
    protocol = PROTOCOL

    def __init__(self, websocket: WebSocket, auth_input: AuthInput):
        super().__init__(websocket)
        self.auth_input = auth_input

    def get_header(self, name: str) -> Optional[str]:
        return self.raw.headers.get(name)

    def get_cookie(self, name: str) -> Optional[str]:
        return self.raw.cookies.get(name)


def handshake_auth_input(websocket: WebSocket, auth_config: Any = None) -> AuthInput:
    """Handshake credentials; a ?token= query param works whichever extraction method is configured."""
    return offer_token(
        websocket.query_params.get("token") or None,
        auth_config,
        headers=dict(websocket.headers.items()),
        cookies=dict(websocket.cookies),
    )


def create_ws_router(executor: UnifiedExecutor) -> APIRouter:
    config = executor.config
    catalog = executor.catalog
    router = APIRouter()
    path = f"{config.base_url}/{config.api_version}/ws"

    async def authenticate(auth_input: AuthInput) -> bool:
        """Without a configured auth handler every handshake is accepted; protected actions still fail per call."""
        handler = executor.auth_handler
        if handler is None:
            return True
        result = await run_auth_handler(handler, AuthContext.from_input(auth_input), "websocket handshake")
        if not is_ok(result):
            reason = result.get("message") if isinstance(result, dict) else result
            logger.info(f"WebSocket handshake rejected: {reason}")
            return False
        return True

    async def dispatch(event: str, data: Dict[str, Any], transport: WebSocketTransport) -> Dict[str, Any]:
        if event == "listServices":
            return get_services(catalog, config.server_name, PROTOCOL)
        if event == "getSchemas":
            return get_schemas(catalog, config.server_name, PROTOCOL)
        if event == "getServiceDetails":
            return get_service_details(catalog, str(data.get("service") or ""), PROTOCOL)
        if event == "getActionDetails":
            return get_action_details(catalog, str(data.get("service") or ""), str(data.get("action") or ""), PROTOCOL)
        if event == "executeAction":
            service, action, error = resolve_action(
                catalog, str(data.get("service") or ""), str(data.get("action") or ""), PROTOCOL
            )
            if error is not None:
                return error
            try:
                return await executor.execute(
                    service.name,
                    action.name,
                    data.get("payload"),
                    auth_input=transport.auth_input,
                    interface_context=transport,
                )
            except NoAuthHandlerError as e:
                log_error(logger, str(e), at_function="dispatch")
                return safe_error("Unauthorized", ErrorKind.NO_AUTH_HANDLER)
        return safe_error(f"Unknown event '{event}'", "unknown-event")

    @router.websocket(path)
    async def websocket_endpoint(websocket: WebSocket):
        auth_input = handshake_auth_input(websocket, config.auth)
        try:
            accepted = await authenticate(auth_input)
        except ConfigurationError as e:
            log_error(logger, str(e), at_function="websocket_endpoint", exc_info=e)
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return
        if not accepted:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        await websocket.accept()
        transport = WebSocketTransport(websocket, auth_input)

        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                break
            except (ValueError, KeyError):
                await websocket.send_json(
                    {"event": "error", "id": None, "response": normalize(safe_error("Invalid message format", "invalid-message"))}
                )
                continue

            if not isinstance(message, dict) or not isinstance(message.get("event"), str):
                await websocket.send_json(
                    {"event": "error", "id": None, "response": normalize(safe_error("Invalid message format", "invalid-message"))}
                )
                continue

            event = message["event"]
            data = message.get("data") if isinstance(message.get("data"), dict) else {}
            response = await dispatch(event, data, transport)
            await websocket.send_json({"event": event, "id": message.get("id"), "response": normalize(response)})

    return router
