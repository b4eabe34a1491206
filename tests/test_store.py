"""Tests for the document store adapter."""
import asyncio

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, OperationFailure

from app.core.exceptions import StoreError
from app.db.store import DocumentStore, as_object_id


def test_as_object_id():
    oid = ObjectId()

    assert as_object_id(oid) is oid
    assert as_object_id(str(oid)) == oid
    assert as_object_id(None) is None
    assert as_object_id("invalid_id") is None


@pytest.mark.asyncio
async def test_call_retries_transient_errors(test_db):
    store = DocumentStore(test_db, timeout=1, max_retries=3, backoff=0)
    attempts = 0

    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise AutoReconnect("primary stepped down")
        return "ok"

    assert await store._call("flaky operation", flaky) == "ok"
    assert attempts == 3


@pytest.mark.asyncio
async def test_call_gives_up_after_max_retries(test_db):
    store = DocumentStore(test_db, timeout=1, max_retries=2, backoff=0)
    attempts = 0

    async def down():
        nonlocal attempts
        attempts += 1
        raise AutoReconnect("no primary")

    with pytest.raises(StoreError) as exc_info:
        await store._call("down operation", down)

    assert attempts == 2
    assert isinstance(exc_info.value.cause, AutoReconnect)


@pytest.mark.asyncio
async def test_call_does_not_retry_permanent_errors(test_db):
    store = DocumentStore(test_db, timeout=1, max_retries=3, backoff=0)
    attempts = 0

    async def forbidden():
        nonlocal attempts
        attempts += 1
        raise OperationFailure("not authorized")

    with pytest.raises(StoreError):
        await store._call("forbidden operation", forbidden)

    assert attempts == 1


@pytest.mark.asyncio
async def test_call_times_out(test_db):
    store = DocumentStore(test_db, timeout=0.01, max_retries=2, backoff=0)

    async def hang():
        await asyncio.sleep(1)

    with pytest.raises(StoreError) as exc_info:
        await store._call("slow operation", hang)

    assert isinstance(exc_info.value.cause, asyncio.TimeoutError)


@pytest.mark.asyncio
async def test_crud_round_trip(store):
    oid = await store.insert("folders", {"name": "Area 1", "parent_id": None, "assignees": []})

    assert (await store.get("folders", str(oid)))["name"] == "Area 1"
    assert [doc["_id"] for doc in await store.find("folders", {"parent_id": None})] == [oid]
    assert await store.count("folders", {"name": "Area 1"}) == 1

    member = {"user_id": "u1", "name": "U", "role": "Owner", "description": ""}
    await store.update("folders", oid, add_to_set={"assignees": member})
    doc = await store.update("folders", oid, add_to_set={"assignees": member})
    assert doc["assignees"] == [member]

    doc = await store.update("folders", oid, pull={"assignees": member}, set={"name": "Area 2"})
    assert doc["assignees"] == []
    assert doc["name"] == "Area 2"

    assert await store.delete("folders", oid) is True
    assert await store.delete("folders", oid) is False
    assert await store.get("folders", oid) is None


@pytest.mark.asyncio
async def test_missing_and_malformed_ids(store):
    assert await store.get("folders", ObjectId()) is None
    assert await store.get("folders", "invalid_id") is None
    assert await store.update("folders", "invalid_id", set={"name": "x"}) is None
    assert await store.update("folders", ObjectId(), set={"name": "x"}) is None
    assert await store.delete("files", "invalid_id") is False


class ReplyLostCollection:
    """Collection whose first find_one_and_update is applied but never acknowledged."""

    def __init__(self, collection):
        self.collection = collection
        self.lost = False

    def __getattr__(self, name):
        return getattr(self.collection, name)

    async def find_one_and_update(self, *args, **kwargs):
        result = await self.collection.find_one_and_update(*args, **kwargs)
        if not self.lost:
            self.lost = True
            raise AutoReconnect("connection reset")
        return result


class ReplyLostDatabase:
    def __init__(self, db):
        self.db = db
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = ReplyLostCollection(self.db[name])
        return self.collections[name]


@pytest.mark.asyncio
async def test_increment_is_not_reapplied_after_lost_reply(test_db):
    store = DocumentStore(ReplyLostDatabase(test_db), timeout=1, max_retries=3, backoff=0)
    oid = await store.insert("folders", {"name": "Area 1", "file_count": 0})

    with pytest.raises(StoreError) as exc_info:
        await store.update("folders", oid, inc={"file_count": 1})

    assert isinstance(exc_info.value.cause, AutoReconnect)
    assert (await test_db["folders"].find_one({"_id": oid}))["file_count"] == 1


@pytest.mark.asyncio
async def test_set_update_is_retried_after_lost_reply(test_db):
    store = DocumentStore(ReplyLostDatabase(test_db), timeout=1, max_retries=3, backoff=0)
    oid = await store.insert("folders", {"name": "Area 1", "file_count": 0})

    doc = await store.update("folders", oid, set={"name": "Area 2"})

    assert doc["name"] == "Area 2"
    assert doc["file_count"] == 0
