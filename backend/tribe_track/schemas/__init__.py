from tribe_track.schemas.track import (
    CreateWorkoutLogRequest,
    CreateWorkoutLogResponse,
    SharePostResponse,
    ShareWorkoutLogRequest,
    TrackStatsResponse,
    WorkoutLogListResponse,
    WorkoutLogResponse,
    WorkoutStatsResponse,
)

__all__ = [
    "CreateWorkoutLogRequest",
    "CreateWorkoutLogResponse",
    "SharePostResponse",
    "ShareWorkoutLogRequest",
    "TrackStatsResponse",
    "WorkoutLogListResponse",
    "WorkoutLogResponse",
    "WorkoutStatsResponse",
]
