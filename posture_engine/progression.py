# Score progression over time - daily decay and routine boosts
from datetime import date
from typing import Optional, Tuple

from posture_engine.config import (
    DAILY_DECAY_RATE,
    DECAY_FLOOR,
    ROUTINE_BOOSTS,
    DEFAULT_ROUTINE_BOOST,
    ROUTINE_FULL_DURATION_SECONDS,
    ROUTINE_DURATION_BONUS,
)
from posture_engine.utils import clamp, days_between


def apply_daily_decay(current_score: int) -> int:
    """One day without a check-in"""
    return decayed_score(current_score, 1)


def decayed_score(score: int, days_elapsed: int) -> int:
    """
    Score after `days_elapsed` days without a check-in

    Fixed per-day penalty, never below DECAY_FLOOR. A score already at or
    under the floor is left as is.
    """
    if days_elapsed <= 0 or score <= DECAY_FLOOR:
        return score
    return max(DECAY_FLOOR, score - DAILY_DECAY_RATE * days_elapsed)


def display_score(latest_score: int, latest_date: date, today: date,
                  checked_in_today: bool = False) -> Tuple[int, bool, int]:
    """
    Score to show on the dashboard, decayed at read time

    Args:
        latest_score: total_score of the user's most recent record
        latest_date: score_date of that record
        today: the reader's calendar day
        checked_in_today: a check-in already exists for today

    Returns:
        Tuple of (score, decay_applied, days_elapsed)
    """
    days_elapsed = days_between(latest_date, today)
    if checked_in_today or days_elapsed <= 0:
        return latest_score, False, 0

    score = decayed_score(latest_score, days_elapsed)
    return score, score != latest_score, days_elapsed


def calculate_routine_boost(routine_type: str, duration_seconds: float) -> int:
    base_boost = ROUTINE_BOOSTS.get(routine_type, DEFAULT_ROUTINE_BOOST)
    duration_bonus = ROUTINE_DURATION_BONUS if duration_seconds >= ROUTINE_FULL_DURATION_SECONDS else 0
    return base_boost + duration_bonus


def boosted_score(current_score: Optional[int], boost: int) -> int:
    return clamp((current_score or 0) + boost, 0, 100)
