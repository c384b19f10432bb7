"""
Calorie estimation for Pilates workouts.

Formula: Calories = MET x intensity x weight(kg) x duration(hours)

The result is an estimate; individual burn varies with body
composition and fitness level.
"""
import math
from typing import Dict, Optional

from tribe_track.core.config import settings

# Base MET values by workout type (Compendium of Physical Activities)
BASE_METS: Dict[str, float] = {
    "mat": 3.0,
    "reformer": 3.5,
    "tower": 3.8,
    "other": 3.2,
}


def intensity_multiplier(rpe: int) -> float:
    """Linear in RPE: 0.84 at RPE 1, 1.2 at RPE 10."""
    return 0.8 + (rpe / 10) * 0.4


def estimate_calories(
    duration_minutes: int,
    workout_type: str,
    rpe: int,
    weight_kg: Optional[float] = None
) -> int:
    """
    Estimate calories burned during a Pilates workout.

    Inputs must already be validated; unknown workout types use the
    "other" MET value.

    Args:
        duration_minutes: Workout duration in minutes
        workout_type: reformer, mat, tower or other
        rpe: Rate of Perceived Exertion (1-10)
        weight_kg: Body weight, defaults to settings.DEFAULT_WEIGHT_KG

    Returns:
        Estimated calories, rounded half up to a whole number
    """
    if weight_kg is None:
        weight_kg = settings.DEFAULT_WEIGHT_KG

    base_met = BASE_METS.get(workout_type.lower(), BASE_METS["other"])
    adjusted_met = base_met * intensity_multiplier(rpe)
    calories = adjusted_met * weight_kg * (duration_minutes / 60)

    return int(math.floor(calories + 0.5))


def rpe_label(rpe: int) -> str:
    """Short descriptive label for an RPE value."""
    if rpe <= 2:
        return "Very light"
    if rpe <= 4:
        return "Light"
    if rpe <= 6:
        return "Moderate"
    if rpe <= 8:
        return "Hard"
    return "All-out"
