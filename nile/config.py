"""
Server configuration.
Settings are read from the environment; ServerConfig is what the executor and adapters consume.
"""
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

AUTH_METHODS = ("cookie", "header", "payload")


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass
class AuthConfig:
    secret: Optional[str] = None
    method: Optional[str] = None  # cookie | header | payload
    cookie_name: str = "auth_token"
    header_name: str = "authorization"
    auth_handler: Union[Callable[..., Any], str, None] = None  # callable | betterauth | jwt | agent


@dataclass
class RateLimitConfig:
    limiting_header: str
    limit: int = 100
    window_sec: int = 15 * 60
    store: Any = None  # RateLimitStore; memory when None


@dataclass
class DatabaseConfig:
    """Table stores keyed by table name, used by auto services."""

    tables: Dict[str, Any] = field(default_factory=dict)
    instance: Any = None


@dataclass
class Settings:
    """Environment-derived settings."""

    server_name: str = "nile"
    base_url: str = ""
    api_version: str = "v1"
    auth_secret: Optional[str] = None
    auth_method: Optional[str] = None
    auth_handler: Optional[str] = None
    auth_cookie_name: str = "auth_token"
    auth_header_name: str = "authorization"
    allowed_origins: List[str] = field(default_factory=list)
    rate_limit_header: Optional[str] = None
    rate_limit: int = 100
    rate_limit_window_sec: int = 15 * 60
    redis_url: Optional[str] = None
    database_url: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            server_name=os.getenv("NILE_SERVER_NAME", "nile"),
            base_url=os.getenv("NILE_BASE_URL", "").rstrip("/"),
            api_version=os.getenv("NILE_API_VERSION", "v1"),
            auth_secret=os.getenv("NILE_AUTH_SECRET") or None,
            auth_method=os.getenv("NILE_AUTH_METHOD") or None,
            auth_handler=os.getenv("NILE_AUTH_HANDLER") or None,
            auth_cookie_name=os.getenv("NILE_AUTH_COOKIE_NAME", "auth_token"),
            auth_header_name=os.getenv("NILE_AUTH_HEADER_NAME", "authorization"),
            allowed_origins=_env_list("NILE_ALLOWED_ORIGINS"),
            rate_limit_header=os.getenv("NILE_RATE_LIMIT_HEADER") or None,
            rate_limit=int(os.getenv("NILE_RATE_LIMIT", "100")),
            rate_limit_window_sec=int(os.getenv("NILE_RATE_LIMIT_WINDOW_SEC", str(15 * 60))),
            redis_url=os.getenv("REDIS_URL") or None,
            database_url=os.getenv("DATABASE_URL") or None,
            log_level=os.getenv("NILE_LOG_LEVEL", "INFO").upper(),
        )


@dataclass
class ServerConfig:
    services: Sequence[Any]
    server_name: str = "nile"
    base_url: str = ""
    api_version: str = "v1"
    auth: Optional[AuthConfig] = None
    session_provider: Any = None  # SessionProvider for the betterauth strategy
    on_action_handler: Any = None  # callable or list of callables
    allowed_origins: List[str] = field(default_factory=list)
    rate_limiting: Optional[RateLimitConfig] = None
    db: Optional[DatabaseConfig] = None
    enable_status: bool = False
    agentic_handler: Any = None  # ({input, user_id, organization_id}) -> response, sync or async

    @property
    def services_prefix(self) -> str:
        return f"{self.base_url}/{self.api_version}/services"

    @classmethod
    def from_settings(cls, services: Sequence[Any], settings: Optional[Settings] = None, **overrides: Any) -> "ServerConfig":
        settings = settings or Settings.from_env()
        auth = None
        if settings.auth_secret or settings.auth_handler:
            auth = AuthConfig(
                secret=settings.auth_secret,
                method=settings.auth_method,
                cookie_name=settings.auth_cookie_name,
                header_name=settings.auth_header_name,
                auth_handler=settings.auth_handler,
            )
        rate_limiting = None
        if settings.rate_limit_header:
            store = None
            if settings.redis_url:
                from nile.api.rate_limit import RedisRateLimitStore

                store = RedisRateLimitStore.from_url(settings.redis_url)
            rate_limiting = RateLimitConfig(
                limiting_header=settings.rate_limit_header,
                limit=settings.rate_limit,
                window_sec=settings.rate_limit_window_sec,
                store=store,
            )
        kwargs: Dict[str, Any] = dict(
            services=services,
            server_name=settings.server_name,
            base_url=settings.base_url,
            api_version=settings.api_version,
            auth=auth,
            allowed_origins=settings.allowed_origins,
            rate_limiting=rate_limiting,
        )
        kwargs.update(overrides)
        return cls(**kwargs)
