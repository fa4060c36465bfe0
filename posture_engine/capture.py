# Score Discretization - rolling alignment history and functional test tiers
from collections import deque
from typing import Iterable, List, Optional

from posture_engine.config import (
    HISTORY_MAX_FRAMES,
    MIN_FRAMES_FOR_CAPTURE,
    DEFAULT_CAPTURE_SCORE,
    TIER_FAIL,
    TIER_PARTIAL,
    TIER_SUCCESS,
    TIER_THRESHOLDS,
    MANUAL_TIER_CHOICES,
    WALL_ANGEL_MAX_CONTACTS,
)
from posture_engine.models import CaptureResult
from posture_engine.utils import round_half_up

VALID_TIERS = (TIER_FAIL, TIER_PARTIAL, TIER_SUCCESS)


class AlignmentScoreHistory:
    """
    Bounded FIFO of the most recent per-frame alignment scores.

    Owned by whoever runs the scan (one per scan session); append on every
    frame, read once at capture time.
    """

    def __init__(self, max_frames: int = HISTORY_MAX_FRAMES, scores: Optional[Iterable[int]] = None):
        self._scores = deque(maxlen=max_frames)
        if scores:
            self.extend(scores)

    def append(self, score: int) -> None:
        self._scores.append(int(score))

    def extend(self, scores: Iterable[int]) -> None:
        for score in scores:
            self.append(score)

    def clear(self) -> None:
        self._scores.clear()

    def values(self) -> List[int]:
        return list(self._scores)

    @property
    def max_frames(self) -> int:
        return self._scores.maxlen

    @property
    def is_ready(self) -> bool:
        return len(self._scores) >= MIN_FRAMES_FOR_CAPTURE

    def average(self) -> int:
        if not self._scores:
            return DEFAULT_CAPTURE_SCORE
        return round_half_up(sum(self._scores) / len(self._scores))

    def __len__(self) -> int:
        return len(self._scores)


def tier_for_score(average_score: float) -> float:
    """
    Map an averaged alignment score onto the functional test tier

    >=80 -> 3 (touches everywhere), >=50 -> 1.5 (partial), else 0
    """
    if average_score >= TIER_THRESHOLDS["success"]:
        return TIER_SUCCESS
    elif average_score >= TIER_THRESHOLDS["partial"]:
        return TIER_PARTIAL
    return TIER_FAIL


def tier_to_wall_angel_contacts(tier: float) -> int:
    return round_half_up((tier / TIER_SUCCESS) * WALL_ANGEL_MAX_CONTACTS)


def manual_tier(choice: str) -> float:
    """Tier from the three-button fallback (fail / partial / success)"""
    try:
        return MANUAL_TIER_CHOICES[choice.lower()]
    except KeyError:
        raise ValueError(f"Unknown tier choice '{choice}', expected one of {sorted(MANUAL_TIER_CHOICES)}")


def is_valid_tier(tier: float) -> bool:
    return tier in VALID_TIERS


def capture(history: AlignmentScoreHistory) -> CaptureResult:
    """Stabilize the scan into a single tier at the moment the user captures"""
    average_score = history.average()
    tier = tier_for_score(average_score)

    return CaptureResult(
        average_score=average_score,
        tier=tier,
        wall_angel_contacts=tier_to_wall_angel_contacts(tier),
        frames_used=len(history),
    )
