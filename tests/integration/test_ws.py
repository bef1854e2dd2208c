import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from nile.actions.protocol import Action, Service
from nile.config import AuthConfig, ServerConfig
from nile.main import create_app
from tests.helpers import make_token, ping

WS = "/v1/ws"


@pytest.fixture
def client(server_config):
    return TestClient(create_app(server_config))


def test_handshake_without_token_is_rejected(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(WS):
            pass
    assert exc.value.code == 1008


def test_handshake_with_expired_token_is_rejected(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"{WS}?token={make_token(expires_in=-30)}"):
            pass
    assert exc.value.code == 1008


def test_execute_action_with_query_token(client):
    with client.websocket_connect(f"{WS}?token={make_token()}") as ws:
        ws.send_json({"event": "executeAction", "id": "req-1", "data": {"service": "users", "action": "getOne", "payload": {"id": "u-2"}}})
        reply = ws.receive_json()
    assert reply["event"] == "executeAction"
    assert reply["id"] == "req-1"
    assert reply["response"]["status"] is True
    assert reply["response"]["data"]["name"] == "Grace"


def test_execute_action_with_authorization_header(client):
    headers = {"Authorization": f"Bearer {make_token()}"}
    with client.websocket_connect(WS, headers=headers) as ws:
        ws.send_json({"event": "listServices", "id": 1})
        listed = ws.receive_json()
        ws.send_json({"event": "getActionDetails", "id": 2, "data": {"service": "users", "action": "update"}})
        details = ws.receive_json()
        ws.send_json({"event": "teleport", "id": 3})
        unknown = ws.receive_json()
    assert listed["response"]["data"] == ["accounts", "users"]
    assert details["response"]["data"]["name"] == "update"
    assert unknown["response"]["data"]["error_id"] == "unknown-event"


def test_invalid_message_gets_error_reply(client):
    with client.websocket_connect(f"{WS}?token={make_token()}") as ws:
        ws.send_text("{not json")
        reply = ws.receive_json()
    assert reply["event"] == "error"
    assert reply["response"]["data"]["error_id"] == "invalid-message"


def test_handshake_with_failing_auth_handler_closes_with_internal_error():
    def handler(context):
        raise RuntimeError("provider down")

    config = ServerConfig(
        services=[Service(name="svc", actions=[Action(name="ping", handler=ping)])],
        auth=AuthConfig(auth_handler=handler),
    )
    client = TestClient(create_app(config))
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(WS):
            pass
    assert exc.value.code == 1011
