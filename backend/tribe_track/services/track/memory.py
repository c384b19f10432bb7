"""
In-memory workout store.

Keeps everything in process; used for tests and local tooling where a
database is not wanted.
"""
import uuid
from collections import Counter
from datetime import date
from typing import Dict, List, Optional, Tuple

from tribe_track.core.database import utc_now
from tribe_track.core.errors import ValidationError
from tribe_track.models.community_post import CommunityPost
from tribe_track.models.workout_log import WorkoutLog
from tribe_track.services.track.store import WorkoutStore
from tribe_track.services.track.types import DateWindow, LogAggregate, LogFilters, StatsSnapshot
from tribe_track.services.track.validation import ValidatedWorkoutLog


class InMemoryWorkoutStore(WorkoutStore):
    """Dictionary-backed WorkoutStore."""

    def __init__(self):
        self._logs: Dict[str, WorkoutLog] = {}
        self._sequence: Dict[str, int] = {}
        self._stats: Dict[str, StatsSnapshot] = {}
        self._posts: Dict[str, CommunityPost] = {}
        self._next_seq = 0

    # ========================================
    # Helpers
    # ========================================

    def _user_logs(self, user_id: str, window: Optional[DateWindow] = None) -> List[WorkoutLog]:
        logs = [log for log in self._logs.values() if log.user_id == user_id]
        if window is not None:
            logs = [log for log in logs if window.contains(log.workout_date)]
        return logs

    def _sort_key(self, log: WorkoutLog) -> tuple:
        return (log.workout_date, log.created_at, self._sequence[str(log.id)])

    @property
    def posts(self) -> Dict[str, CommunityPost]:
        """Community posts by id."""
        return self._posts

    # ========================================
    # Workout logs
    # ========================================

    async def create_workout_log(
        self,
        user_id: str,
        fields: ValidatedWorkoutLog,
        calorie_estimate: int,
        client_id: Optional[str] = None
    ) -> Tuple[WorkoutLog, bool]:
        if client_id:
            existing = await self.find_by_client_id(user_id, client_id)
            if existing is not None:
                return existing, False

        now = utc_now()
        log = WorkoutLog(
            id=uuid.uuid4(),
            user_id=user_id,
            client_id=client_id,
            workout_date=fields.workout_date,
            duration_minutes=fields.duration_minutes,
            workout_type=fields.workout_type,
            rpe=fields.rpe,
            notes=fields.notes,
            focus_areas=list(fields.focus_areas),
            calorie_estimate=calorie_estimate,
            studio_id=fields.studio_id,
            custom_studio_name=fields.custom_studio_name,
            session_id=fields.session_id,
            image_url=fields.image_url,
            is_shared=False,
            shared_post_id=None,
            created_at=now,
            updated_at=now,
        )
        key = str(log.id)
        self._logs[key] = log
        self._sequence[key] = self._next_seq
        self._next_seq += 1
        return log, True

    async def find_by_client_id(self, user_id: str, client_id: str) -> Optional[WorkoutLog]:
        for log in self._user_logs(user_id):
            if log.client_id == client_id:
                return log
        return None

    async def get_log(self, user_id: str, log_id: str) -> Optional[WorkoutLog]:
        log = self._logs.get(log_id)
        if log is None or log.user_id != user_id:
            return None
        return log

    async def delete_log(self, log: WorkoutLog) -> None:
        key = str(log.id)
        self._logs.pop(key, None)
        self._sequence.pop(key, None)

    async def query_logs(self, user_id: str, filters: LogFilters) -> List[WorkoutLog]:
        logs = sorted(self._user_logs(user_id, filters.window), key=self._sort_key, reverse=True)

        if filters.cursor:
            anchor = await self.get_log(user_id, filters.cursor)
            if anchor is None:
                raise ValidationError("Invalid cursor", field="cursor")
            anchor_key = self._sort_key(anchor)
            logs = [log for log in logs if self._sort_key(log) < anchor_key]

        if filters.limit is not None:
            logs = logs[:filters.limit]
        return logs

    async def workout_dates(self, user_id: str, window: Optional[DateWindow] = None) -> List[date]:
        return sorted({log.workout_date for log in self._user_logs(user_id, window)})

    async def aggregate_logs(self, user_id: str, window: Optional[DateWindow] = None) -> LogAggregate:
        logs = self._user_logs(user_id, window)
        return LogAggregate(
            count=len(logs),
            duration_sum=sum(log.duration_minutes for log in logs),
            calorie_sum=sum(log.calorie_estimate or 0 for log in logs),
        )

    async def average_rpe(self, user_id: str) -> Optional[float]:
        logs = self._user_logs(user_id)
        if not logs:
            return None
        return sum(log.rpe for log in logs) / len(logs)

    async def count_by_type(self, user_id: str) -> Dict[str, int]:
        return dict(Counter(log.workout_type for log in self._user_logs(user_id)))

    # ========================================
    # Cached stats
    # ========================================

    async def get_stats(self, user_id: str) -> Optional[StatsSnapshot]:
        return self._stats.get(user_id)

    async def upsert_stats(self, user_id: str, snapshot: StatsSnapshot) -> None:
        self._stats[user_id] = snapshot

    # ========================================
    # Community sharing
    # ========================================

    async def attach_post(self, log: WorkoutLog, caption: str) -> CommunityPost:
        post = CommunityPost(
            id=uuid.uuid4(),
            user_id=log.user_id,
            caption=caption,
            post_type="workout_recap",
            status="approved",
            media_url=log.image_url,
            created_at=utc_now(),
        )
        self._posts[str(post.id)] = post
        log.is_shared = True
        log.shared_post_id = post.id
        return post

    async def detach_post(self, log: WorkoutLog) -> None:
        if log.shared_post_id is not None:
            self._posts.pop(str(log.shared_post_id), None)
        log.is_shared = False
        log.shared_post_id = None

    async def demote_post(self, log: WorkoutLog) -> None:
        if log.shared_post_id is None:
            return
        post = self._posts.get(str(log.shared_post_id))
        if post is not None:
            post.post_type = "general"
