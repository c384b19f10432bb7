import random
from datetime import date, timedelta

from tribe_track.services.track.streak import (
    StreakResult,
    calculate_streak,
    start_of_week,
    weekly_progress,
)

TODAY = date(2026, 10, 16)


def ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def test_no_logs():
    assert calculate_streak([], TODAY) == StreakResult()


def test_single_log_today():
    result = calculate_streak([TODAY], TODAY)
    assert result.current_streak == 1
    assert result.longest_streak == 1
    assert result.streak_start_date == TODAY
    assert result.last_workout_date == TODAY


def test_three_consecutive_days():
    result = calculate_streak([TODAY, ago(1), ago(2)], TODAY)
    assert result.current_streak == 3
    assert result.longest_streak == 3
    assert result.streak_start_date == ago(2)


def test_yesterday_keeps_streak_alive():
    result = calculate_streak([ago(1), ago(2)], TODAY)
    assert result.current_streak == 2
    assert result.streak_start_date == ago(2)


def test_gap_of_two_days_breaks_streak():
    result = calculate_streak([ago(3)], TODAY)
    assert result.current_streak == 0
    assert result.longest_streak == 1
    assert result.streak_start_date is None
    assert result.last_workout_date == ago(3)


def test_today_and_three_days_ago():
    result = calculate_streak([TODAY, ago(3)], TODAY)
    assert result.current_streak == 1
    assert result.longest_streak == 1


def test_longest_run_in_the_past():
    result = calculate_streak([TODAY, ago(5), ago(6), ago(7)], TODAY)
    assert result.longest_streak == 3
    assert result.current_streak == 1
    assert result.streak_start_date == TODAY


def test_same_day_logs_count_once_and_order_is_irrelevant():
    result = calculate_streak([ago(1), TODAY, ago(1), TODAY, ago(2)], TODAY)
    assert result.current_streak == 3
    assert result.longest_streak == 3


def test_current_never_exceeds_longest_for_random_dates():
    rng = random.Random(1234)
    for _ in range(500):
        dates = [ago(rng.randint(0, 60)) for _ in range(rng.randint(0, 30))]
        result = calculate_streak(dates, TODAY)
        assert 0 <= result.current_streak <= result.longest_streak
        if dates:
            assert result.last_workout_date == max(dates)


def test_start_of_week_is_monday():
    assert start_of_week(TODAY) == date(2026, 10, 12)
    assert start_of_week(date(2026, 10, 18)) == date(2026, 10, 12)
    assert start_of_week(date(2026, 10, 12)) == date(2026, 10, 12)


def test_weekly_progress_monday_and_thursday():
    monday = date(2026, 10, 12)
    thursday = date(2026, 10, 15)
    assert weekly_progress([monday, thursday], TODAY) == [True, False, False, True, False, False, False]


def test_weekly_progress_ignores_other_weeks():
    last_sunday = date(2026, 10, 11)
    next_monday = date(2026, 10, 19)
    assert weekly_progress([last_sunday, next_monday], TODAY) == [False] * 7


def test_weekly_progress_on_sunday():
    sunday = date(2026, 10, 18)
    assert weekly_progress([sunday, date(2026, 10, 12)], sunday) == [True, False, False, False, False, False, True]
