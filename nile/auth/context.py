"""
Transport-agnostic credential bundle handed to auth handlers.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

BEARER_PREFIX = "Bearer "


@dataclass
class AuthInput:
    """Raw credential locations an adapter collected for one call."""

    headers: Optional[Mapping[str, str]] = None
    cookies: Optional[Mapping[str, str]] = None
    payload_auth_token: Optional[str] = None


@dataclass
class AuthContext:
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    payload: Optional[Dict[str, Any]] = None
    request: Any = None

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    @classmethod
    def from_input(cls, auth_input: Optional[AuthInput], request: Any = None) -> "AuthContext":
        auth_input = auth_input or AuthInput()
        headers = {str(k).lower(): v for k, v in (auth_input.headers or {}).items()}
        payload = None
        if auth_input.payload_auth_token:
            payload = {"auth": {"token": auth_input.payload_auth_token}}
        return cls(
            headers=headers,
            cookies=dict(auth_input.cookies or {}),
            payload=payload,
            request=request,
        )


def offer_token(
    token: Optional[str],
    auth_config: Any = None,
    headers: Optional[Mapping[str, str]] = None,
    cookies: Optional[Mapping[str, str]] = None,
) -> AuthInput:
    """
    AuthInput with a bare token placed in every location (header, cookie, payload),
    for transports where the caller hands over a token rather than an HTTP request.
    Credentials already present in headers/cookies are kept.
    """
    merged_headers: Dict[str, str] = {str(k).lower(): v for k, v in (headers or {}).items()}
    merged_cookies: Dict[str, str] = dict(cookies or {})
    if token and token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX) :]
    if token:
        header_name = (getattr(auth_config, "header_name", None) or "authorization").lower()
        cookie_name = getattr(auth_config, "cookie_name", None) or "auth_token"
        merged_headers.setdefault(header_name, f"{BEARER_PREFIX}{token}")
        merged_cookies.setdefault(cookie_name, token)
    return AuthInput(headers=merged_headers, cookies=merged_cookies, payload_auth_token=token or None)
