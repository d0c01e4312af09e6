from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from medreminder.db.schedules import MAX_SCHEDULES_PER_USER, ScheduleLimitError, ScheduleStore
from medreminder.models.schedule import Schedule, ScheduleCreate

SCHEDULE_ID = ObjectId("65a1f0c2e4b0a1b2c3d4e5f6")


def make_doc(**overrides) -> dict:
    doc = {
        "_id": SCHEDULE_ID,
        "medicine": "Aspirin",
        "frequency": 5,
        "duration": 3,
        "user_id": "user-1",
        "created_at": datetime(2024, 1, 1, 10, 30),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def collection() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store(collection: MagicMock) -> ScheduleStore:
    db = MagicMock()
    db.__getitem__.return_value = collection
    return ScheduleStore(db)


class TestEnsureIndexes:
    async def test_creates_user_indexes(self, store, collection):
        collection.create_indexes = AsyncMock()
        await store.ensure_indexes()
        indexes = collection.create_indexes.await_args.args[0]
        keys = [index.document["key"] for index in indexes]
        assert list(keys[0].keys()) == ["user_id"]
        assert list(keys[1].keys()) == ["user_id", "created_at"]

    async def test_reraises_driver_errors(self, store, collection):
        collection.create_indexes = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            await store.ensure_indexes()


class TestCreateSchedule:
    async def test_inserts_with_creation_time(self, store, collection):
        collection.count_documents = AsyncMock(return_value=0)
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=SCHEDULE_ID))
        payload = ScheduleCreate(medicine="Aspirin", frequency=5, duration=3, user_id="user-1")

        schedule_id = await store.create_schedule(payload)

        assert schedule_id == str(SCHEDULE_ID)
        doc = collection.insert_one.await_args.args[0]
        assert doc["medicine"] == "Aspirin"
        assert doc["frequency"] == 5
        assert doc["duration"] == 3
        assert doc["user_id"] == "user-1"
        assert isinstance(doc["created_at"], datetime)

    async def test_reraises_insert_failure(self, store, collection):
        collection.count_documents = AsyncMock(return_value=0)
        collection.insert_one = AsyncMock(side_effect=RuntimeError("write failed"))
        payload = ScheduleCreate(medicine="Aspirin", user_id="user-1")
        with pytest.raises(RuntimeError):
            await store.create_schedule(payload)

    async def test_rejects_user_at_schedule_limit(self, store, collection):
        collection.count_documents = AsyncMock(return_value=MAX_SCHEDULES_PER_USER)
        collection.insert_one = AsyncMock()
        payload = ScheduleCreate(medicine="Aspirin", user_id="user-1")

        with pytest.raises(ScheduleLimitError):
            await store.create_schedule(payload)

        collection.count_documents.assert_awaited_once_with({"user_id": "user-1"})
        collection.insert_one.assert_not_awaited()


class TestGetSchedule:
    async def test_returns_schedule(self, store, collection):
        collection.find_one = AsyncMock(return_value=make_doc())

        schedule = await store.get_schedule("user-1", str(SCHEDULE_ID))

        assert isinstance(schedule, Schedule)
        assert schedule.id == str(SCHEDULE_ID)
        assert schedule.medicine == "Aspirin"
        collection.find_one.assert_awaited_once_with({"_id": SCHEDULE_ID, "user_id": "user-1"})

    async def test_missing_schedule(self, store, collection):
        collection.find_one = AsyncMock(return_value=None)
        assert await store.get_schedule("user-1", str(SCHEDULE_ID)) is None

    async def test_malformed_id_skips_query(self, store, collection):
        collection.find_one = AsyncMock()
        assert await store.get_schedule("user-1", "not-an-id") is None
        collection.find_one.assert_not_awaited()


class TestListSchedules:
    async def test_lists_user_schedules(self, store, collection):
        cursor = collection.find.return_value.sort.return_value
        cursor.to_list = AsyncMock(
            return_value=[make_doc(), make_doc(_id=ObjectId(), medicine="Zinc", frequency=0)]
        )

        schedules = await store.list_schedules("user-1")

        assert [s.medicine for s in schedules] == ["Aspirin", "Zinc"]
        collection.find.assert_called_once_with({"user_id": "user-1"})

    async def test_lists_every_schedule_without_truncating(self, store, collection):
        count = MAX_SCHEDULES_PER_USER + 1
        cursor = collection.find.return_value.sort.return_value
        cursor.to_list = AsyncMock(
            return_value=[make_doc(_id=ObjectId(), medicine=f"Med {i}") for i in range(count)]
        )

        schedules = await store.list_schedules("user-1")

        assert len(schedules) == count
        cursor.to_list.assert_awaited_once_with(length=None)
        cursor.limit.assert_not_called()

    async def test_empty(self, store, collection):
        cursor = collection.find.return_value.sort.return_value
        cursor.to_list = AsyncMock(return_value=[])
        assert await store.list_schedules("user-1") == []


class TestDeleteSchedule:
    async def test_deletes(self, store, collection):
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
        assert await store.delete_schedule(str(SCHEDULE_ID)) is True
        collection.delete_one.assert_awaited_once_with({"_id": SCHEDULE_ID})

    async def test_nothing_deleted(self, store, collection):
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))
        assert await store.delete_schedule(str(SCHEDULE_ID)) is False

    async def test_malformed_id(self, store, collection):
        collection.delete_one = AsyncMock()
        assert await store.delete_schedule("42") is False
        collection.delete_one.assert_not_awaited()
