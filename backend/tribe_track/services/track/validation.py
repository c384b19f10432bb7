"""
Workout log validation.

Runs before anything is persisted or queued, on the server and in the
offline client alike.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, List, Optional

from tribe_track.core.config import settings
from tribe_track.core.errors import ValidationError
from tribe_track.models.workout_log import FocusArea, WorkoutType
from tribe_track.schemas.track import CreateWorkoutLogRequest

WORKOUT_TYPES = {t.value for t in WorkoutType}
FOCUS_AREAS = {f.value for f in FocusArea}


@dataclass
class ValidatedWorkoutLog:
    """Normalized fields of a workout log ready for persistence."""
    workout_date: date
    duration_minutes: int
    workout_type: str
    rpe: int
    focus_areas: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    studio_id: Optional[str] = None
    custom_studio_name: Optional[str] = None
    session_id: Optional[str] = None
    image_url: Optional[str] = None
    calorie_estimate: Optional[int] = None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_duration(minutes: Any) -> bool:
    """Whole minutes in (0, MAX_DURATION_MINUTES]."""
    return _is_int(minutes) and 0 < minutes <= settings.MAX_DURATION_MINUTES


def is_valid_rpe(rpe: Any) -> bool:
    """Whole number in [1, 10]."""
    return _is_int(rpe) and 1 <= rpe <= 10


def is_valid_workout_type(workout_type: Any) -> bool:
    """Known workout type, case-insensitive."""
    return isinstance(workout_type, str) and workout_type.lower() in WORKOUT_TYPES


def parse_workout_date(value: Optional[str], today: date) -> date:
    """
    Parse and range-check a workout date.

    Accepts YYYY-MM-DD or a full ISO timestamp; missing means today.
    A workout may not be in the future or older than BACKFILL_DAYS.
    """
    if not value:
        return today

    try:
        parsed = date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError(f"Invalid workout date: {value}", field="workoutDate")

    if parsed > today:
        raise ValidationError("Cannot log workouts in the future", field="workoutDate")

    if parsed < today - timedelta(days=settings.BACKFILL_DAYS):
        raise ValidationError(
            f"Can only backfill workouts up to {settings.BACKFILL_DAYS} days",
            field="workoutDate"
        )

    return parsed


def normalize_focus_areas(areas: List[str]) -> List[str]:
    """Lower-case, check against known areas, drop duplicates keeping order."""
    result: List[str] = []
    for area in areas:
        key = area.lower() if isinstance(area, str) else area
        if key not in FOCUS_AREAS:
            raise ValidationError(f"Invalid focus area: {area}", field="focusAreas")
        if key not in result:
            result.append(key)
    return result


def validate_workout_log(request: CreateWorkoutLogRequest, today: date) -> ValidatedWorkoutLog:
    """
    Validate a create request and return normalized fields.

    Args:
        request: Incoming create request
        today: Current date of the caller

    Returns:
        ValidatedWorkoutLog

    Raises:
        ValidationError: First failing field
    """
    if not is_valid_duration(request.durationMinutes):
        raise ValidationError(
            f"Duration must be between 1 and {settings.MAX_DURATION_MINUTES} minutes",
            field="durationMinutes"
        )

    if not is_valid_rpe(request.rpe):
        raise ValidationError("RPE must be between 1 and 10", field="rpe")

    if not is_valid_workout_type(request.workoutType):
        raise ValidationError(f"Invalid workout type: {request.workoutType}", field="workoutType")

    if request.calorieEstimate is not None and request.calorieEstimate < 0:
        raise ValidationError("Calorie estimate cannot be negative", field="calorieEstimate")

    workout_date = parse_workout_date(request.workoutDate, today)
    focus_areas = normalize_focus_areas(request.focusAreas)

    # A studio from the directory wins over a free-text name
    custom_studio_name = None if request.studioId else (request.customStudioName or None)

    return ValidatedWorkoutLog(
        workout_date=workout_date,
        duration_minutes=request.durationMinutes,
        workout_type=request.workoutType.lower(),
        rpe=request.rpe,
        focus_areas=focus_areas,
        notes=request.notes or None,
        studio_id=request.studioId or None,
        custom_studio_name=custom_studio_name,
        session_id=request.sessionId or None,
        image_url=request.imageUrl or None,
        calorie_estimate=request.calorieEstimate,
    )
