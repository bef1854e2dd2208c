import pytest

from nile.actions.protocol import Action, Service, SubService
from nile.config import AuthConfig, DatabaseConfig, ServerConfig
from nile.storage.memory import MemoryTableStore
from tests.helpers import SECRET, UserRow, ping


@pytest.fixture
def users_store():
    return MemoryTableStore(
        "users",
        rows=[
            {"id": "u-1", "name": "Ada", "email": "ada@example.com"},
            {"id": "u-2", "name": "Grace"},
        ],
    )


@pytest.fixture
def server_config(users_store):
    return ServerConfig(
        services=[
            Service(
                name="accounts",
                description="Accounts",
                actions=[Action(name="ping", handler=ping, is_protected=False)],
                auto_service=True,
                subs=[SubService(name="users", table_name="users", model=UserRow, description="Users")],
            )
        ],
        auth=AuthConfig(secret=SECRET, method="header", auth_handler="jwt"),
        db=DatabaseConfig(tables={"users": users_store}),
    )
