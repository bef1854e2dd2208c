import pytest

from nile.auth.context import AuthContext, AuthInput, offer_token
from nile.auth.extractor import extract_token
from nile.config import AuthConfig
from nile.core.errors import ConfigurationError, MalformedCredentialError


def ctx(headers=None, cookies=None, token=None):
    return AuthContext.from_input(AuthInput(headers=headers, cookies=cookies, payload_auth_token=token))


def test_header_bearer_token():
    config = AuthConfig(method="header")
    assert extract_token(ctx(headers={"Authorization": "Bearer abc"}), config) == "abc"


def test_header_without_bearer_is_malformed_not_absent():
    config = AuthConfig(method="header")
    with pytest.raises(MalformedCredentialError):
        extract_token(ctx(headers={"Authorization": "Token abc"}), config)


def test_header_absent_is_none():
    assert extract_token(ctx(), AuthConfig(method="header")) is None


def test_custom_header_name():
    config = AuthConfig(method="header", header_name="X-Auth")
    assert extract_token(ctx(headers={"x-auth": "Bearer t1"}), config) == "t1"


def test_cookie_token():
    config = AuthConfig(method="cookie", cookie_name="sid")
    assert extract_token(ctx(cookies={"sid": "c-1"}), config) == "c-1"
    assert extract_token(ctx(cookies={"other": "c-1"}), config) is None


def test_payload_token():
    assert extract_token(ctx(token="p-1"), AuthConfig(method="payload")) == "p-1"
    assert extract_token(ctx(), AuthConfig(method="payload")) is None
    assert extract_token(ctx(headers={"Authorization": "Bearer h-1"}), AuthConfig(method="payload")) is None


def test_no_config_falls_back_to_payload():
    assert extract_token(ctx(token="p-2")) == "p-2"
    assert extract_token(ctx(token="p-3"), AuthConfig()) == "p-3"
    assert extract_token(ctx(headers={"authorization": "Bearer h"})) is None


def test_unknown_method_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        extract_token(ctx(token="x"), AuthConfig(method="carrier-pigeon"))


def test_offer_token_fills_every_location():
    auth_input = offer_token("Bearer tok", AuthConfig(cookie_name="sid"))
    assert auth_input.payload_auth_token == "tok"
    assert auth_input.headers["authorization"] == "Bearer tok"
    assert auth_input.cookies["sid"] == "tok"


def test_offer_token_keeps_existing_credentials():
    auth_input = offer_token("tok", None, headers={"Authorization": "Bearer mine"})
    assert auth_input.headers["authorization"] == "Bearer mine"
