import time
from typing import Any, Dict, Optional

import jwt

from nile.auth.handlers import JWT_ALGORITHMS
from nile.core.errors import ConfigurationError

AGENT_TOKEN_TTL_SEC = 365 * 24 * 60 * 60


def sign_token(claims: Dict[str, Any], secret: str, expires_in: Optional[int] = None) -> str:
    if not secret:
        raise ConfigurationError("a secret is required to sign tokens")
    now = int(time.time())
    payload = {"iat": now, **claims}
    if expires_in is not None:
        payload["exp"] = now + int(expires_in)
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHMS[0])


def create_agent_token(secret: str, organization_id: Optional[str] = None, ttl: int = AGENT_TOKEN_TTL_SEC) -> str:
    """Long-lived token for the system agent; verifies through the jwt strategy as method 'agent'."""
    claims: Dict[str, Any] = {"sub": "system-agent", "type": "agent"}
    if organization_id:
        claims["organizationId"] = organization_id
    return sign_token(claims, secret, expires_in=ttl)
