from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from tribe_track.core.database import epoch_ms
from tribe_track.core.errors import ValidationError
from tribe_track.models import CommunityPost, WorkoutLog
from tribe_track.services.track import (
    SqlWorkoutStore,
    StatsAggregator,
    StatsSnapshot,
    WorkoutLogService,
)
from tribe_track.services.track.types import DateWindow, LogFilters

from conftest import TODAY, USER_ID, days_ago


@pytest.fixture
def sql_store(sql_session):
    return SqlWorkoutStore(sql_session)


@pytest.mark.asyncio
async def test_create_is_idempotent_on_client_id(sql_store, sql_session, add_log):
    first = await add_log(sql_store, TODAY, client_id="local-1")
    second = await add_log(sql_store, TODAY, client_id="local-1")

    assert second.id == first.id
    rows = (await sql_session.execute(select(WorkoutLog))).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_logs_without_client_id_are_all_kept(sql_store, add_log):
    await add_log(sql_store, TODAY)
    await add_log(sql_store, TODAY)

    assert (await sql_store.aggregate_logs(USER_ID)).count == 2


@pytest.mark.asyncio
async def test_focus_areas_round_trip(sql_store, add_log):
    log = await add_log(sql_store, TODAY, focus_areas=["core", "posture"])

    stored = await sql_store.get_log(USER_ID, str(log.id))
    assert stored.focus_areas == ["core", "posture"]
    assert stored.to_dict()["workoutDate"] == TODAY.isoformat()


@pytest.mark.asyncio
async def test_get_log_checks_owner_and_format(sql_store, add_log):
    log = await add_log(sql_store, TODAY)

    assert await sql_store.get_log("user-2", str(log.id)) is None
    assert await sql_store.get_log(USER_ID, "not-a-uuid") is None


@pytest.mark.asyncio
async def test_aggregates_and_windows(sql_store, add_log):
    await add_log(sql_store, TODAY, duration=30, workout_type="mat", rpe=5, calories=120)
    await add_log(sql_store, days_ago(3), duration=45, workout_type="reformer", rpe=8, calories=200)
    await add_log(sql_store, days_ago(20), duration=60, workout_type="mat", rpe=6, calories=250)
    await add_log(sql_store, TODAY, user_id="user-2", duration=90)

    total = await sql_store.aggregate_logs(USER_ID)
    assert (total.count, total.duration_sum, total.calorie_sum) == (3, 135, 570)

    recent = await sql_store.aggregate_logs(USER_ID, DateWindow(start=days_ago(7), end=TODAY))
    assert (recent.count, recent.duration_sum) == (2, 75)

    empty = await sql_store.aggregate_logs("nobody")
    assert (empty.count, empty.duration_sum, empty.calorie_sum) == (0, 0, 0)

    assert await sql_store.average_rpe(USER_ID) == pytest.approx(19 / 3)
    assert await sql_store.average_rpe("nobody") is None
    assert await sql_store.count_by_type(USER_ID) == {"mat": 2, "reformer": 1}


@pytest.mark.asyncio
async def test_workout_dates_are_distinct_and_ascending(sql_store, add_log):
    await add_log(sql_store, TODAY)
    await add_log(sql_store, days_ago(2))
    await add_log(sql_store, TODAY)

    assert await sql_store.workout_dates(USER_ID) == [days_ago(2), TODAY]
    assert await sql_store.workout_dates(USER_ID, DateWindow(start=days_ago(1))) == [TODAY]


@pytest.mark.asyncio
async def test_query_logs_cursor_pagination(sql_store, add_log):
    oldest = await add_log(sql_store, days_ago(2))
    middle = await add_log(sql_store, days_ago(1))
    newest = await add_log(sql_store, TODAY)

    page = await sql_store.query_logs(USER_ID, LogFilters(limit=2))
    assert [log.id for log in page] == [newest.id, middle.id]

    page = await sql_store.query_logs(USER_ID, LogFilters(cursor=str(middle.id), limit=2))
    assert [log.id for log in page] == [oldest.id]

    with pytest.raises(ValidationError):
        await sql_store.query_logs(USER_ID, LogFilters(cursor="garbage"))


@pytest.mark.asyncio
async def test_upsert_stats_last_write_wins(sql_store):
    assert await sql_store.get_stats(USER_ID) is None

    await sql_store.upsert_stats(USER_ID, StatsSnapshot(total_workouts=3, focus_area_counts={"core": 1}))
    await sql_store.upsert_stats(
        USER_ID,
        StatsSnapshot(total_workouts=4, current_streak=2, last_workout_date=TODAY),
    )

    cached = await sql_store.get_stats(USER_ID)
    assert cached.total_workouts == 4
    assert cached.current_streak == 2
    assert cached.last_workout_date == TODAY
    assert cached.focus_area_counts == {}


@pytest.mark.asyncio
async def test_concurrent_first_stats_writes_do_not_collide(sql_factory):
    async with sql_factory() as first_session, sql_factory() as second_session:
        first = SqlWorkoutStore(first_session)
        second = SqlWorkoutStore(second_session)

        # Both cold paths see no snapshot before either one writes
        assert await second.get_stats(USER_ID) is None
        assert await first.get_stats(USER_ID) is None

        await first.upsert_stats(USER_ID, StatsSnapshot(total_workouts=1, current_streak=1))
        await first_session.commit()

        await second.upsert_stats(USER_ID, StatsSnapshot(total_workouts=2, current_streak=2))
        await second_session.commit()

        cached = await first.get_stats(USER_ID)
        assert cached.total_workouts == 2
        assert cached.current_streak == 2


@pytest.mark.asyncio
async def test_stats_end_to_end(sql_store, make_request):
    service = WorkoutLogService(sql_store)
    await service.create_log(USER_ID, make_request(workoutDate=days_ago(1).isoformat()), TODAY)
    await service.create_log(USER_ID, make_request(focusAreas=["core", "arms"]), TODAY)

    response = await StatsAggregator(sql_store).get_stats(USER_ID, TODAY)

    assert response.stats.totalWorkouts == 2
    assert response.stats.currentStreak == 2
    assert response.stats.focusAreaCounts == {"core": 2, "arms": 1}
    assert response.stats.averageRpe == 6.0


@pytest.mark.asyncio
async def test_share_unshare_and_delete(sql_store, sql_session, make_request):
    service = WorkoutLogService(sql_store)
    log, _ = await service.create_log(USER_ID, make_request(), TODAY)

    post = await service.share_log(USER_ID, str(log.id), caption="Morning reformer")
    assert log.shared_post_id == post.id

    await service.unshare_log(USER_ID, str(log.id))
    assert await sql_session.get(CommunityPost, post.id) is None

    post = await service.share_log(USER_ID, str(log.id), caption="Again")
    await service.delete_log(USER_ID, str(log.id), TODAY)

    kept = await sql_session.get(CommunityPost, post.id)
    assert kept.post_type == "general"


@pytest.mark.asyncio
async def test_timestamps_are_utc(sql_store, store, add_log):
    aware = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
    assert epoch_ms(aware) == 1792152000000
    # SQLite hands back naive values
    assert epoch_ms(aware.replace(tzinfo=None)) == epoch_ms(aware)

    in_memory = await add_log(store, TODAY)
    assert in_memory.created_at.tzinfo is not None

    stored = await add_log(sql_store, TODAY)
    created_ms = stored.to_dict()["createdAt"]
    assert abs(created_ms - epoch_ms(in_memory.created_at)) < 60_000
