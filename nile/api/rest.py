"""
REST adapter: POST {base_url}/{api_version}/services/{service} with {action, payload, auth?}
as JSON, or as form fields (multipart/form-data or urlencoded) where `action` and
`auth_token` are reserved and every other field is payload.
POST .../services/agentic forwards {input} plus the caller's identity to the configured
agentic handler.
Status codes: 200 ok, 401 auth-failed / no-auth-handler, 429 rate limited, 400 everything else.
"""
import inspect
import logging
import time
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from nile.actions.runner import UnifiedExecutor
from nile.actions.validation import format_errors
from nile.api.rate_limit import RateLimiter
from nile.api.services import get_action_details, get_schemas, get_service_details, get_services, resolve_action
from nile.auth.context import AuthContext, AuthInput
from nile.auth.handlers import run_auth_handler
from nile.core.context import TransportContext
from nile.core.errors import NoAuthHandlerError
from nile.core.logs import log_error
from nile.core.result import ErrorKind, SafeResult, error_kind, is_ok, normalize, ok, safe_error

logger = logging.getLogger(__name__)

PROTOCOL = "rest"
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")
FORM_ACTION_FIELD = "action"
FORM_TOKEN_FIELD = "auth_token"


class AuthToken(BaseModel):
    token: Optional[str] = None


class ActionRequest(BaseModel):
    action: str
    payload: Any = None
    auth: Optional[AuthToken] = None


class RestTransport(TransportContext):
    protocol = PROTOCOL

    def __init__(self, request: Request):
        super().__init__(request)

    def get_header(self, name: str) -> Optional[str]:
        return self.raw.headers.get(name)

    def get_cookie(self, name: str) -> Optional[str]:
        return self.raw.cookies.get(name)


def status_code_for(result: Dict[str, Any]) -> int:
    if result.get("status") is True:
        return 200
    if error_kind(result) in (ErrorKind.AUTH_FAILED, ErrorKind.NO_AUTH_HANDLER):
        return 401
    return 400


def respond(result: Dict[str, Any]) -> JSONResponse:
    body = normalize(result)
    return JSONResponse(content=body, status_code=status_code_for(body))


def is_form_request(request: Request) -> bool:
    content_type = request.headers.get("content-type") or ""
    return any(t in content_type for t in FORM_CONTENT_TYPES)


async def read_json_request(request: Request) -> Tuple[Optional[ActionRequest], Optional[SafeResult]]:
    try:
        body = await request.json()
    except ValueError:
        body = None
    try:
        return ActionRequest.model_validate(body if isinstance(body, dict) else {}), None
    except ValidationError as e:
        return None, safe_error("Invalid request format", ErrorKind.VALIDATION_FAILED, errors=format_errors(e))


async def read_form_request(request: Request) -> Tuple[Optional[ActionRequest], Optional[SafeResult]]:
    """Repeated fields become lists; uploaded files are passed through as UploadFile."""
    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException) as e:
        logger.info(f"Unreadable form body: {e}")
        return None, safe_error("No form data provided", ErrorKind.VALIDATION_FAILED)

    action = form.get(FORM_ACTION_FIELD)
    if not isinstance(action, str) or not action:
        return None, safe_error(
            "No action specified or invalid in form fields",
            ErrorKind.VALIDATION_FAILED,
            errors=[{"field": FORM_ACTION_FIELD, "message": "Field required", "type": "missing"}],
        )

    payload: Dict[str, Any] = {}
    for key, value in form.multi_items():
        if key in (FORM_ACTION_FIELD, FORM_TOKEN_FIELD):
            continue
        if key in payload:
            existing = payload[key]
            payload[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            payload[key] = value

    token = form.get(FORM_TOKEN_FIELD)
    auth = AuthToken(token=token) if isinstance(token, str) and token else None
    return ActionRequest(action=action, payload=payload, auth=auth), None


def request_auth_input(request: Request, parsed: ActionRequest) -> AuthInput:
    return AuthInput(
        headers=dict(request.headers),
        cookies=dict(request.cookies),
        payload_auth_token=parsed.auth.token if parsed.auth else None,
    )


def create_rest_router(executor: UnifiedExecutor) -> APIRouter:
    config = executor.config
    catalog = executor.catalog
    router = APIRouter(prefix=config.services_prefix, tags=["services"])

    limiter = None
    rate_limiting = getattr(config, "rate_limiting", None)
    if rate_limiting is not None:
        limiter = RateLimiter(rate_limiting.limit, rate_limiting.window_sec, rate_limiting.store)

    async def rate_limited(request: Request) -> Optional[JSONResponse]:
        if limiter is None:
            return None
        key = request.headers.get(rate_limiting.limiting_header)
        if not key:
            return JSONResponse(
                content=normalize(
                    safe_error(f"Missing {rate_limiting.limiting_header} header", "rate-limit-header-missing")
                ),
                status_code=400,
            )
        decision = await limiter.check(key)
        if decision.allowed:
            return None
        logger.info(f"Rate limit exceeded for {rate_limiting.limiting_header}={key}")
        return JSONResponse(
            content=normalize(safe_error("Too many requests", "rate-limit-exceeded", reset_at=decision.reset_at)),
            status_code=429,
            headers={"Retry-After": str(max(0, decision.reset_at - int(time.time())))},
        )

    async def identify(request: Request, auth_input: AuthInput) -> SafeResult:
        """Caller identity for routes that sit outside the executor."""
        handler = executor.auth_handler
        if handler is None:
            return safe_error("Unauthorized", ErrorKind.NO_AUTH_HANDLER)
        result = await run_auth_handler(handler, AuthContext.from_input(auth_input, request=request), "agentic")
        if not is_ok(result):
            data = result.get("data") if isinstance(result, dict) else None
            reason = data.get("error_id") if isinstance(data, dict) else None
            return safe_error("Unauthorized", ErrorKind.AUTH_FAILED, reason=reason)
        return result

    @router.get("")
    async def list_services(request: Request):
        limited = await rate_limited(request)
        if limited is not None:
            return limited
        return respond(get_services(catalog, config.server_name, PROTOCOL))

    @router.get("/schema")
    async def services_schema(request: Request):
        limited = await rate_limited(request)
        if limited is not None:
            return limited
        return respond(get_schemas(catalog, config.server_name, PROTOCOL))

    @router.get("/{service}")
    async def service_details(service: str, request: Request):
        limited = await rate_limited(request)
        if limited is not None:
            return limited
        return respond(get_service_details(catalog, service, PROTOCOL))

    @router.get("/{service}/{action}")
    async def action_details(service: str, action: str, request: Request):
        limited = await rate_limited(request)
        if limited is not None:
            return limited
        return respond(get_action_details(catalog, service, action, PROTOCOL))

    # registered before /{service} so it is not taken for a service name
    @router.post("/agentic")
    async def agentic(request: Request):
        limited = await rate_limited(request)
        if limited is not None:
            return limited
        agentic_handler = getattr(config, "agentic_handler", None)
        if agentic_handler is None:
            return respond(safe_error("Agentic handler not configured", "agentic-not-configured"))

        try:
            body = await request.json()
        except ValueError:
            body = None
        payload = body.get("payload") if isinstance(body, dict) else None
        text = payload.get("input") if isinstance(payload, dict) else None
        if not isinstance(text, str) or not text:
            return respond(safe_error("Input required in payload", ErrorKind.VALIDATION_FAILED))

        auth = body.get("auth")
        token = auth.get("token") if isinstance(auth, dict) else None
        auth_input = AuthInput(
            headers=dict(request.headers),
            cookies=dict(request.cookies),
            payload_auth_token=token if isinstance(token, str) else None,
        )
        identity = await identify(request, auth_input)
        if not is_ok(identity):
            return respond(identity)

        caller = identity.get("data") or {}
        agent_payload = {
            "input": text,
            "user_id": caller.get("user_id"),
            "organization_id": caller.get("organization_id"),
        }
        try:
            response = agentic_handler(agent_payload)
            if inspect.isawaitable(response):
                response = await response
        except Exception as e:
            error_id = log_error(logger, "Agent processing error", at_function="agentic", exc_info=e)
            return respond(safe_error("Agent processing error", error_id, error=str(e)))
        return respond(ok({"response": response}, "Agent response"))

    @router.post("/{service}")
    async def execute_action(service: str, request: Request):
        limited = await rate_limited(request)
        if limited is not None:
            return limited
        if is_form_request(request):
            parsed, error = await read_form_request(request)
        else:
            parsed, error = await read_json_request(request)
        if error is not None:
            return respond(error)

        target, action, error = resolve_action(catalog, service, parsed.action, PROTOCOL)
        if error is not None:
            return respond(error)

        try:
            result = await executor.execute(
                target.name,
                action.name,
                parsed.payload,
                auth_input=request_auth_input(request, parsed),
                interface_context=RestTransport(request),
            )
        except NoAuthHandlerError as e:
            log_error(logger, str(e), at_function="execute_action")
            return respond(safe_error("Unauthorized", ErrorKind.NO_AUTH_HANDLER))
        return respond(result)

    return router
