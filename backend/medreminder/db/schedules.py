import logging
from typing import Optional, List
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import IndexModel, ASCENDING
from pymongo.asynchronous.database import AsyncDatabase
from medreminder.models.schedule import Schedule, ScheduleCreate

logger = logging.getLogger(__name__)


MAX_SCHEDULES_PER_USER = 500


class ScheduleLimitError(ValueError):
    pass


def _to_object_id(schedule_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(schedule_id)
    except (InvalidId, TypeError):
        return None


class ScheduleStore:

    def __init__(self, db: AsyncDatabase):
        self.collection = db["schedules"]

#------This Function creates database indexes---------
    async def ensure_indexes(self):
        try:
            indexes = [
                IndexModel([("user_id", ASCENDING)]),
                IndexModel([("user_id", ASCENDING), ("created_at", ASCENDING)]),
            ]
            await self.collection.create_indexes(indexes)
        except Exception as e:
            logger.error(f"Failed to create indexes: {e}")
            raise

#------This Function inserts a schedule---------
    async def create_schedule(self, payload: ScheduleCreate) -> str:
        doc = payload.model_dump()
        doc["created_at"] = datetime.utcnow()

        try:
            count = await self.collection.count_documents({"user_id": payload.user_id})
            if count >= MAX_SCHEDULES_PER_USER:
                logger.warning(f"User {payload.user_id} already has {count} schedules")
                raise ScheduleLimitError(
                    f"user cannot have more than {MAX_SCHEDULES_PER_USER} schedules"
                )

            result = await self.collection.insert_one(doc)
            return str(result.inserted_id)
        except ScheduleLimitError:
            raise
        except Exception as e:
            logger.error(f"Failed to insert schedule for user {payload.user_id}: {e}")
            raise

#------This Function gets one schedule of a user---------
    async def get_schedule(self, user_id: str, schedule_id: str) -> Optional[Schedule]:
        oid = _to_object_id(schedule_id)
        if oid is None:
            return None

        try:
            doc = await self.collection.find_one({"_id": oid, "user_id": user_id})
            return self._to_schedule(doc) if doc else None
        except Exception as e:
            logger.error(f"Failed to get schedule {schedule_id}: {e}")
            raise

#------This Function lists the schedules of a user---------
    async def list_schedules(self, user_id: str) -> List[Schedule]:
        try:
            cursor = self.collection.find({"user_id": user_id}).sort("created_at", ASCENDING)
            docs = await cursor.to_list(length=None)
            return [self._to_schedule(doc) for doc in docs]
        except Exception as e:
            logger.error(f"Failed to list schedules for user {user_id}: {e}")
            raise

#------This Function deletes a schedule---------
    async def delete_schedule(self, schedule_id: str) -> bool:
        oid = _to_object_id(schedule_id)
        if oid is None:
            return False

        try:
            result = await self.collection.delete_one({"_id": oid})
            return result.deleted_count > 0
        except Exception as e:
            logger.error(f"Failed to delete schedule {schedule_id}: {e}")
            raise

    def _to_schedule(self, doc: dict) -> Schedule:
        return Schedule(
            id=str(doc["_id"]),
            medicine=doc["medicine"],
            frequency=doc.get("frequency", 0),
            duration=doc.get("duration", 1),
            user_id=doc["user_id"],
            created_at=doc["created_at"],
        )
