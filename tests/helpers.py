import time
from typing import Any, Dict, Optional

import jwt
from pydantic import BaseModel

from nile.core.result import ok

SECRET = "test-secret-that-is-at-least-32-characters-long!!"


def make_token(claims: Optional[Dict[str, Any]] = None, secret: str = SECRET, expires_in: int = 3600) -> str:
    now = int(time.time())
    payload = {"userId": "u-1", "organizationId": "org-1", "iat": now, "exp": now + expires_in}
    payload.update(claims or {})
    return jwt.encode(payload, secret, algorithm="HS256")


class UserRow(BaseModel):
    id: Optional[str] = None
    name: str
    email: Optional[str] = None


def ping(data, context):
    return ok({"pong": True})
