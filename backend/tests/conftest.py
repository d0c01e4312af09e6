"""Shared fixtures for the medication reminder tests.

Covers:
- an in-memory schedule store with the same async surface as ``ScheduleStore``
- an app built around that store, with a pinned clock
- an httpx client talking to the app over ASGI
"""

from __future__ import annotations

from datetime import datetime

import httpx
import pytest
import pytz
from fastapi import FastAPI

from medreminder.core.dependencies import get_now
from medreminder.db.schedules import MAX_SCHEDULES_PER_USER, ScheduleLimitError
from medreminder.main import create_app
from medreminder.models.schedule import Schedule, ScheduleCreate

BERLIN = pytz.timezone("Europe/Berlin")


class InMemoryScheduleStore:
    """Dict-backed stand-in for the MongoDB schedule store."""

    def __init__(self) -> None:
        self.schedules: dict[str, Schedule] = {}
        self._counter = 0

    def add(self, **fields) -> Schedule:
        self._counter += 1
        schedule_id = f"{self._counter:024x}"
        schedule = Schedule(id=schedule_id, **fields)
        self.schedules[schedule_id] = schedule
        return schedule

    async def create_schedule(self, payload: ScheduleCreate) -> str:
        if len(await self.list_schedules(payload.user_id)) >= MAX_SCHEDULES_PER_USER:
            raise ScheduleLimitError(
                f"user cannot have more than {MAX_SCHEDULES_PER_USER} schedules"
            )
        schedule = self.add(**payload.model_dump(), created_at=datetime.now(pytz.utc))
        return schedule.id

    async def get_schedule(self, user_id: str, schedule_id: str) -> Schedule | None:
        schedule = self.schedules.get(schedule_id)
        if schedule is None or schedule.user_id != user_id:
            return None
        return schedule

    async def list_schedules(self, user_id: str) -> list[Schedule]:
        return [s for s in self.schedules.values() if s.user_id == user_id]

    async def delete_schedule(self, schedule_id: str) -> bool:
        return self.schedules.pop(schedule_id, None) is not None


@pytest.fixture
def store() -> InMemoryScheduleStore:
    return InMemoryScheduleStore()


@pytest.fixture
def now() -> datetime:
    return BERLIN.localize(datetime(2024, 1, 3, 9, 0))


@pytest.fixture
def app(store: InMemoryScheduleStore, now: datetime) -> FastAPI:
    app = create_app(store=store)
    app.dependency_overrides[get_now] = lambda: now
    return app


@pytest.fixture
async def client(app: FastAPI):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
