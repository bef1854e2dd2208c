"""
Concrete auth handlers: (AuthContext) -> SafeResult[identity].
Ordinary failures (missing/invalid/expired credential, missing identity fields) are Err values;
handlers raise only for configuration mistakes.
"""
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import jwt

from nile.auth.context import AuthContext
from nile.auth.extractor import extract_token
from nile.config import AuthConfig, ServerConfig
from nile.core.errors import ConfigurationError, MalformedCredentialError
from nile.core.logs import log_error
from nile.core.result import SafeResult, ok, safe_error

logger = logging.getLogger(__name__)

AuthHandler = Callable[[AuthContext], Union[SafeResult, Awaitable[SafeResult]]]

JWT_ALGORITHMS = ["HS256"]
USER_ID_KEYS = ("userId", "user_id", "id", "sub")
ORGANIZATION_ID_KEYS = ("organizationId", "organization_id")


async def run_auth_handler(handler: AuthHandler, context: AuthContext, target: str) -> Any:
    """
    Call a sync or async AuthHandler. A handler that raises is a broken deployment rather than
    a rejected credential, so the error is re-raised as ConfigurationError.
    """
    try:
        result = handler(context)
        if inspect.isawaitable(result):
            result = await result
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Auth handler raised for '{target}': {e}") from e
    return result


def _first(source: Any, keys: tuple) -> Optional[str]:
    if not isinstance(source, dict):
        return None
    for key in keys:
        value = source.get(key)
        if value:
            return value
    return None


def extract_user_id(user: Any) -> Optional[str]:
    return _first(user, USER_ID_KEYS)


def extract_organization_id(user: Any, session: Any = None) -> Optional[str]:
    return _first(user, ORGANIZATION_ID_KEYS) or _first(session, ORGANIZATION_ID_KEYS)


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify signature and expiry. Raises jwt.InvalidTokenError subclasses."""
    return jwt.decode(token, key=secret, algorithms=JWT_ALGORITHMS, options={"verify_aud": False})


def create_session_handler(session_provider: Any) -> AuthHandler:
    """
    Handler backed by an identity provider exposing get_session(headers) -> {"user", "session"} | None.
    """

    async def handler(context: AuthContext) -> SafeResult:
        headers = context.headers or getattr(context.request, "headers", None)
        if not headers:
            return safe_error("No headers provided for betterauth authentication", "betterauth-no-headers")
        try:
            result = session_provider.get_session(headers)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning(f"Session provider lookup failed: {e}")
            return safe_error(f"BetterAuth authentication failed: {e}", "betterauth-error")

        user = (result or {}).get("user")
        session = (result or {}).get("session")
        if not (user and session):
            return safe_error("No valid betterauth session found", "betterauth-no-session")

        user_id = extract_user_id(user)
        organization_id = extract_organization_id(user, session)
        if not (user_id and organization_id):
            return safe_error("Missing userId or organizationId in betterauth session", "betterauth-missing-fields")

        return ok(
            {
                "user_id": user_id,
                "organization_id": organization_id,
                "user": user,
                "session": session,
                "method": "betterauth",
            }
        )

    return handler


def create_jwt_handler(
    secret: str,
    method: str = "payload",
    cookie_name: str = "auth_token",
    header_name: str = "authorization",
) -> AuthHandler:
    if not secret:
        raise ConfigurationError("jwt handler requires a secret")
    extraction = AuthConfig(secret=secret, method=method, cookie_name=cookie_name, header_name=header_name)

    def handler(context: AuthContext) -> SafeResult:
        try:
            token = extract_token(context, extraction)
        except MalformedCredentialError as e:
            return safe_error(str(e), "jwt-invalid-header-format")
        if not token:
            return safe_error(f"No JWT token found in {method}", "jwt-no-token")

        try:
            claims = decode_token(token, secret)
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired JWT")
            return safe_error("JWT authentication failed: token has expired", "jwt-expired")
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected invalid JWT: {e}")
            return safe_error(f"JWT authentication failed: {e}", "jwt-invalid-token")

        user_id = extract_user_id(claims)
        organization_id = extract_organization_id(claims)
        if not (user_id and organization_id):
            return safe_error("Missing userId or organizationId in JWT token", "jwt-missing-fields")

        return ok(
            {
                "user_id": user_id,
                "organization_id": organization_id,
                "user": claims,
                "method": "agent" if claims.get("type") == "agent" else "jwt",
            }
        )

    return handler


def agent_identity(organization_id: str, triggered_by: Optional[str] = None) -> Dict[str, Any]:
    agent_id = f"agent-{organization_id}"
    identity: Dict[str, Any] = {
        "user_id": agent_id,
        "organization_id": organization_id,
        "method": "agent",
        "type": "agent",
        "user": {"id": agent_id, "user_id": agent_id, "type": "agent"},
    }
    if triggered_by:
        identity["triggered_by"] = triggered_by
        identity["user"]["triggered_by"] = triggered_by
    return identity


def create_agent_handler(organization_id: str) -> AuthHandler:
    """Synthetic identity for system/AI driven calls; no token is verified."""
    if not organization_id:
        raise ConfigurationError("agent handler requires an organization id")

    def handler(context: AuthContext) -> SafeResult:
        return ok(agent_identity(organization_id), "Agent authenticated")

    return handler


def create_rpc_auth_handler(
    config: ServerConfig,
    agent_mode: bool = False,
    organization_id: Optional[str] = None,
) -> AuthHandler:
    """
    In-process RPC identity resolution:
    agent mode -> agent identity (org from organization_id or token claims);
    explicit organization_id -> system identity;
    otherwise the caller's JWT is verified.
    """
    auth_config = config.auth
    secret = auth_config.secret if auth_config else None

    def claims_of(token: Optional[str]) -> Optional[Dict[str, Any]]:
        if not (token and secret):
            return None
        try:
            return decode_token(token, secret)
        except jwt.InvalidTokenError:
            return None

    def handler(context: AuthContext) -> SafeResult:
        try:
            token = extract_token(context, auth_config)
        except MalformedCredentialError:
            token = None
        claims = claims_of(token)

        if agent_mode:
            org_id = organization_id or extract_organization_id(claims)
            if not org_id:
                error_id = log_error(
                    logger,
                    "No organization context available for agent",
                    at_function="rpc_auth_handler",
                    data={"has_claims": claims is not None},
                )
                return safe_error("No organization context available for agent", error_id)
            return ok(agent_identity(org_id, extract_user_id(claims)), "Agent authenticated")

        if organization_id:
            return ok(
                {
                    "user_id": "system",
                    "organization_id": organization_id,
                    "method": "system",
                    "user": {"id": "system", "user_id": "system", "type": "system"},
                },
                "System authenticated",
            )

        if not token:
            error_id = log_error(logger, "Unauthorized - no authentication token found", at_function="rpc_auth_handler")
            return safe_error("Unauthorized - no authentication token found", error_id)
        if not secret:
            raise ConfigurationError("RPC authentication requires auth.secret")
        if claims is None:
            error_id = log_error(logger, "Unauthorized - token verification failed", at_function="rpc_auth_handler")
            return safe_error("Unauthorized - token verification failed", error_id)

        user_id = extract_user_id(claims)
        org_id = extract_organization_id(claims)
        if not (user_id and org_id):
            return safe_error("Missing userId or organizationId in JWT token", "jwt-missing-fields")
        return ok(
            {
                "user_id": user_id,
                "organization_id": org_id,
                "user": {"id": user_id, "user_id": user_id, "type": "user", **claims},
                "method": "jwt",
            },
            "User authenticated",
        )

    return handler
