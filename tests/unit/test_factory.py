import pytest

from nile.actions.factory import AUTO_ACTIONS, generate_actions
from nile.actions.protocol import SubService
from nile.storage.memory import MemoryTableStore
from nile.storage.protocol import StoreError
from tests.helpers import UserRow


@pytest.fixture
def store():
    return MemoryTableStore(
        "users",
        rows=[
            {"id": "u-1", "name": "Ada", "team": "core"},
            {"id": "u-2", "name": "Grace", "team": "core"},
            {"id": "u-3", "name": "Linus", "team": "infra"},
        ],
    )


@pytest.fixture
def actions(store):
    sub = SubService(name="users", table_name="users", model=UserRow, public_actions=("getEvery",))
    return {a.name: a for a in generate_actions(sub, store)}


def test_all_crud_actions_generated(actions):
    assert set(actions) == set(AUTO_ACTIONS)
    assert actions["getEvery"].is_protected is False
    assert actions["getOne"].is_protected is True


@pytest.mark.asyncio
async def test_get_one_and_not_found(actions):
    r = await actions["getOne"].handler({"id": "u-2"})
    assert r["data"]["name"] == "Grace"
    missing = await actions["getOne"].handler({"id": "nope"})
    assert missing["status"] is False
    assert missing["data"]["error_id"] == "record-not-found"


@pytest.mark.asyncio
async def test_create_strips_identity_fields(actions, store):
    r = await actions["create"].handler({"name": "Bot", "user_id": "agent-o", "organizationId": "o"})
    assert r["status"] is True
    row = await store.get_one("id", r["data"]["id"])
    assert row == {"id": r["data"]["id"], "name": "Bot"}


@pytest.mark.asyncio
async def test_update_and_delete(actions, store):
    r = await actions["update"].handler({"id": "u-1", "name": "Ada L."})
    assert r["data"]["name"] == "Ada L."
    deleted = await actions["delete"].handler({"id": "u-1"})
    assert deleted["data"]["id"] == "u-1"
    assert await store.get_one("id", "u-1") is None
    missing_id = await actions["update"].handler({"name": "x"})
    assert missing_id["status"] is False


@pytest.mark.asyncio
async def test_get_all_by_property(actions):
    r = await actions["getAll"].handler({"property": "team", "value": "core"})
    assert [row["id"] for row in r["data"]] == ["u-1", "u-2"]


@pytest.mark.asyncio
async def test_get_many_with_paginates_and_sorts(actions):
    r = await actions["getManyWith"].handler(
        {"page": 1, "perPage": 2, "sort": [{"field": "name", "direction": "desc"}]}
    )
    assert r["data"]["total"] == 3
    assert [row["name"] for row in r["data"]["items"]] == ["Linus", "Grace"]

    filtered = await actions["getManyWith"].handler({"filters": {"team": "infra"}})
    assert [row["id"] for row in filtered["data"]["items"]] == ["u-3"]


@pytest.mark.asyncio
async def test_get_one_with_and_delete_all(actions):
    r = await actions["getOneWith"].handler({"filters": {"name": "Linus"}})
    assert r["data"]["id"] == "u-3"
    cleared = await actions["deleteAll"].handler({})
    assert cleared["data"] == {"deleted": 3}
    every = await actions["getEvery"].handler({})
    assert every["data"] == []


class BrokenStore(MemoryTableStore):
    async def get_all(self):
        raise StoreError("connection refused")


@pytest.mark.asyncio
async def test_store_errors_become_correlated_errors():
    sub = SubService(name="users", table_name="users")
    actions = {a.name: a for a in generate_actions(sub, BrokenStore("users"))}
    r = await actions["getEvery"].handler({})
    assert r["status"] is False
    assert r["message"] == "Error getting every record from users"
    assert len(r["data"]["error_id"]) == 32


def test_validation_descriptors(actions):
    assert actions["create"].validation.operation == "create"
    assert actions["update"].validation.operation == "update"
    assert "user_id" in actions["create"].validation.custom_fields
