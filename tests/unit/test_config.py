from nile.actions.protocol import Action, Service
from nile.api.rate_limit import RedisRateLimitStore
from nile.config import ServerConfig, Settings
from tests.helpers import ping

SERVICES = [Service(name="svc", actions=[Action(name="ping", handler=ping)])]


def test_settings_defaults(monkeypatch):
    for name in ("NILE_BASE_URL", "NILE_AUTH_SECRET", "NILE_RATE_LIMIT_HEADER", "REDIS_URL", "NILE_ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.api_version == "v1"
    assert settings.auth_secret is None
    assert settings.allowed_origins == []
    config = ServerConfig.from_settings(SERVICES, settings)
    assert config.auth is None
    assert config.rate_limiting is None
    assert config.services_prefix == "/v1/services"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("NILE_SERVER_NAME", "orders")
    monkeypatch.setenv("NILE_BASE_URL", "/api/")
    monkeypatch.setenv("NILE_API_VERSION", "v2")
    monkeypatch.setenv("NILE_AUTH_SECRET", "s3cret")
    monkeypatch.setenv("NILE_AUTH_METHOD", "cookie")
    monkeypatch.setenv("NILE_AUTH_HANDLER", "jwt")
    monkeypatch.setenv("NILE_ALLOWED_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("NILE_RATE_LIMIT_HEADER", "x-api-key")
    monkeypatch.setenv("NILE_RATE_LIMIT", "5")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")

    config = ServerConfig.from_settings(SERVICES)
    assert config.server_name == "orders"
    assert config.services_prefix == "/api/v2/services"
    assert config.auth.secret == "s3cret"
    assert config.auth.method == "cookie"
    assert config.auth.auth_handler == "jwt"
    assert config.allowed_origins == ["https://a.example", "https://b.example"]
    assert config.rate_limiting.limiting_header == "x-api-key"
    assert config.rate_limiting.limit == 5
    assert isinstance(config.rate_limiting.store, RedisRateLimitStore)


def test_overrides_win(monkeypatch):
    monkeypatch.delenv("NILE_SERVER_NAME", raising=False)
    config = ServerConfig.from_settings(SERVICES, Settings(), server_name="custom", enable_status=True)
    assert config.server_name == "custom"
    assert config.enable_status is True
