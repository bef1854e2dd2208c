from nile.auth.context import AuthContext, AuthInput, offer_token
from nile.auth.extractor import extract_token
from nile.auth.handlers import (
    AuthHandler,
    create_agent_handler,
    create_jwt_handler,
    create_rpc_auth_handler,
    create_session_handler,
    run_auth_handler,
)
from nile.auth.resolver import resolve_auth_handler
from nile.auth.tokens import create_agent_token, sign_token

__all__ = [
    "AuthContext",
    "AuthHandler",
    "AuthInput",
    "create_agent_handler",
    "create_agent_token",
    "create_jwt_handler",
    "create_rpc_auth_handler",
    "create_session_handler",
    "extract_token",
    "offer_token",
    "resolve_auth_handler",
    "run_auth_handler",
    "sign_token",
]
