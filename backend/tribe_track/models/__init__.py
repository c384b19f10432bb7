from tribe_track.models.community_post import CommunityPost
from tribe_track.models.user_stats import UserWorkoutStats
from tribe_track.models.workout_log import FocusArea, WorkoutLog, WorkoutType

__all__ = [
    "CommunityPost",
    "FocusArea",
    "UserWorkoutStats",
    "WorkoutLog",
    "WorkoutType",
]
