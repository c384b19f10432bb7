"""
Workout tracking wire schemas.

Shared by the HTTP routes and the offline client so both sides agree
on field names.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field


# ========================================
# Request Schemas
# ========================================

class CreateWorkoutLogRequest(BaseModel):
    """Request to create a new workout log."""
    clientId: Optional[str] = Field(
        None, max_length=64, description="Client-generated id used to de-duplicate retries"
    )
    workoutDate: Optional[str] = Field(None, description="Workout date (YYYY-MM-DD), defaults to today")
    durationMinutes: int = Field(..., description="Duration in minutes")
    workoutType: str = Field(..., description="reformer, mat, tower or other")
    rpe: int = Field(..., description="Rate of perceived exertion (1-10)")
    notes: Optional[str] = None
    focusAreas: list[str] = Field(default_factory=list)
    studioId: Optional[str] = None
    customStudioName: Optional[str] = None
    sessionId: Optional[str] = None
    imageUrl: Optional[str] = None
    calorieEstimate: Optional[int] = Field(None, description="Overrides the estimate when set and non-zero")


class ShareWorkoutLogRequest(BaseModel):
    """Request to share a workout log to the community."""
    caption: Optional[str] = None


# ========================================
# Response Schemas
# ========================================

class WorkoutLogResponse(BaseModel):
    """Workout log response."""
    id: str
    clientId: Optional[str] = None
    userId: str
    workoutDate: str
    durationMinutes: int
    workoutType: str
    rpe: int
    notes: Optional[str] = None
    calorieEstimate: int
    focusAreas: list[str]
    studioId: Optional[str] = None
    customStudioName: Optional[str] = None
    sessionId: Optional[str] = None
    imageUrl: Optional[str] = None
    isShared: bool = False
    sharedPostId: Optional[str] = None
    createdAt: int


class CreateWorkoutLogResponse(BaseModel):
    """Response to a create; created is False when the clientId was already seen."""
    success: bool = True
    created: bool
    log: WorkoutLogResponse


class WorkoutLogListResponse(BaseModel):
    """Page of workout logs, newest first."""
    logs: list[WorkoutLogResponse]
    nextCursor: Optional[str] = None
    hasMore: bool = False


class WorkoutStatsResponse(BaseModel):
    """Client-facing stats read model."""
    currentStreak: int = 0
    longestStreak: int = 0
    lastWorkoutDate: Optional[str] = None
    streakStartDate: Optional[str] = None
    totalWorkouts: int = 0
    totalMinutes: int = 0
    weeklyMinutes: int = 0
    monthlyMinutes: int = 0
    focusAreaCounts: dict[str, int] = Field(default_factory=dict)
    totalCalories: int = 0
    averageRpe: Optional[float] = None
    workoutTypeBreakdown: dict[str, int] = Field(default_factory=dict)


class TrackStatsResponse(BaseModel):
    """Stats plus Monday-first weekly progress."""
    stats: WorkoutStatsResponse
    weeklyProgress: list[bool]


class SharePostResponse(BaseModel):
    """Result of sharing a workout log."""
    success: bool = True
    post: dict[str, Any]
    message: str
