import pytest

from nile.storage.memory import MemoryTableStore
from nile.storage.protocol import StoreError


@pytest.fixture
def store():
    return MemoryTableStore(
        "tasks",
        rows=[
            {"id": "t1", "title": "b", "done": False},
            {"id": "t2", "title": "a", "done": True},
            {"id": "t3", "title": "c", "done": False},
        ],
    )


@pytest.mark.asyncio
async def test_create_assigns_id_and_rejects_duplicates(store):
    row = await store.create_item({"title": "d"})
    assert row["id"]
    with pytest.raises(StoreError):
        await store.create_item({"id": "t1", "title": "again"})


@pytest.mark.asyncio
async def test_returned_rows_are_copies(store):
    row = await store.get_one("id", "t1")
    row["title"] = "mutated"
    assert (await store.get_one("id", "t1"))["title"] == "b"


@pytest.mark.asyncio
async def test_update_keeps_id(store):
    updated = await store.update_item("id", "t1", {"id": "other", "done": True})
    assert updated == {"id": "t1", "title": "b", "done": True}
    assert await store.update_item("id", "missing", {"done": True}) is None


@pytest.mark.asyncio
async def test_get_many_with_filters_sort_and_pages(store):
    page = await store.get_many_with(page=1, per_page=1, sort=[{"field": "title", "direction": "asc"}], filters={"done": False})
    assert page["total"] == 2
    assert [r["id"] for r in page["items"]] == ["t1"]

    second = await store.get_many_with(page=2, per_page=1, sort=[{"field": "title", "direction": "asc"}], filters={"done": False})
    assert [r["id"] for r in second["items"]] == ["t3"]


@pytest.mark.asyncio
async def test_delete(store):
    assert (await store.delete_one("id", "t2"))["title"] == "a"
    assert await store.delete_one("id", "t2") is None
    assert await store.delete_all() == 2
    assert await store.get_all() == []
