"""
Pull a raw credential from the location the server is configured to read.
"""
from typing import Any, Optional

from nile.auth.context import BEARER_PREFIX, AuthContext
from nile.core.errors import ConfigurationError, MalformedCredentialError


def _token_from_payload(context: AuthContext) -> Optional[str]:
    payload = context.payload or {}
    auth = payload.get("auth") if isinstance(payload, dict) else None
    if not isinstance(auth, dict):
        return None
    return auth.get("token") or None


def _token_from_cookie(context: AuthContext, cookie_name: str) -> Optional[str]:
    return context.cookies.get(cookie_name) or None


def _token_from_header(context: AuthContext, header_name: str) -> Optional[str]:
    value = context.get_header(header_name)
    if not value:
        return None
    if not value.startswith(BEARER_PREFIX):
        raise MalformedCredentialError(f"{header_name} header must use Bearer scheme")
    return value[len(BEARER_PREFIX) :] or None


def extract_token(context: AuthContext, auth_config: Any = None) -> Optional[str]:
    """
    Return the token, or None when the configured location is empty.
    Raises MalformedCredentialError when a header is present but not a Bearer credential.
    Without a configured method the payload location is used.
    """
    method = getattr(auth_config, "method", None)
    if auth_config is None or not method:
        return _token_from_payload(context)
    if method == "cookie":
        return _token_from_cookie(context, getattr(auth_config, "cookie_name", None) or "auth_token")
    if method == "header":
        return _token_from_header(context, getattr(auth_config, "header_name", None) or "authorization")
    if method == "payload":
        return _token_from_payload(context)
    raise ConfigurationError(f"Unknown auth method: {method}")
