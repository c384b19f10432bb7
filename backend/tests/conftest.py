from datetime import date, timedelta

import pytest
import pytest_asyncio

from tribe_track.client.queue_store import SyncQueueStore
from tribe_track.core.database import create_session_factory, init_db
from tribe_track.schemas.track import CreateWorkoutLogRequest
from tribe_track.services.track import InMemoryWorkoutStore
from tribe_track.services.track.validation import ValidatedWorkoutLog

# Friday; the week starts on Monday 2026-10-12
TODAY = date(2026, 10, 16)
USER_ID = "user-1"


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def store():
    return InMemoryWorkoutStore()


@pytest.fixture
def make_request():
    def factory(**overrides) -> CreateWorkoutLogRequest:
        fields = {
            "workoutDate": TODAY.isoformat(),
            "durationMinutes": 45,
            "workoutType": "reformer",
            "rpe": 6,
            "focusAreas": ["core"],
        }
        fields.update(overrides)
        return CreateWorkoutLogRequest(**fields)

    return factory


@pytest.fixture
def add_log():
    """Insert a log straight into a store, skipping the backfill window."""
    async def insert(
        store,
        workout_date: date,
        duration: int = 30,
        workout_type: str = "mat",
        rpe: int = 5,
        focus_areas=None,
        user_id: str = USER_ID,
        calories: int = 100,
        client_id=None,
    ):
        fields = ValidatedWorkoutLog(
            workout_date=workout_date,
            duration_minutes=duration,
            workout_type=workout_type,
            rpe=rpe,
            focus_areas=list(focus_areas or []),
        )
        log, _ = await store.create_workout_log(user_id, fields, calories, client_id=client_id)
        return log

    return insert


@pytest_asyncio.fixture
async def sql_factory(tmp_path):
    engine, factory = create_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'track.db'}")
    await init_db(engine)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def sql_session(sql_factory):
    async with sql_factory() as session:
        yield session


@pytest_asyncio.fixture
async def queue_store(tmp_path):
    queue_store = SyncQueueStore(f"sqlite+aiosqlite:///{tmp_path / 'queue.db'}")
    await queue_store.init()
    yield queue_store
    await queue_store.close()
