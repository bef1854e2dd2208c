"""
Turn the declarative auth selector of a server config into a single AuthHandler.
"""
from typing import Optional

from nile.auth.handlers import AuthHandler, create_jwt_handler, create_session_handler
from nile.config import ServerConfig
from nile.core.errors import ConfigurationError


def resolve_auth_handler(config: ServerConfig) -> Optional[AuthHandler]:
    """
    Returns None when no auth_handler is configured (no authentication available).
    Raises ConfigurationError for a selector that cannot be built.
    """
    auth = config.auth
    selector = auth.auth_handler if auth else None
    if not selector:
        return None

    if callable(selector):
        return selector

    if selector == "betterauth":
        if config.session_provider is None:
            raise ConfigurationError("betterauth handler selected but no session provider configured")
        return create_session_handler(config.session_provider)

    if selector == "jwt":
        if not auth.secret:
            raise ConfigurationError("jwt handler selected but no auth.secret provided")
        return create_jwt_handler(
            auth.secret,
            method=auth.method or "payload",
            cookie_name=auth.cookie_name,
            header_name=auth.header_name,
        )

    if selector == "agent":
        raise ConfigurationError("agent handler requires an organization id - use create_agent_handler() directly")

    raise ConfigurationError(f"Unknown auth handler: {selector}")
