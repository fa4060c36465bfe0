import pytest

from posture_engine.capture import (
    AlignmentScoreHistory,
    capture,
    manual_tier,
    tier_for_score,
    tier_to_wall_angel_contacts,
    is_valid_tier,
)


def test_history_keeps_only_the_latest_90_scores():
    history = AlignmentScoreHistory()
    for score in range(200):
        history.append(score)

    assert len(history) == 90
    assert history.values() == list(range(110, 200))


def test_empty_history_captures_neutral_default():
    result = capture(AlignmentScoreHistory())
    assert result.average_score == 50
    assert result.tier == 1.5
    assert result.wall_angel_contacts == 3
    assert result.frames_used == 0


def test_average_rounds_half_up():
    assert AlignmentScoreHistory(scores=[1, 2]).average() == 2
    assert AlignmentScoreHistory(scores=[80, 79, 79]).average() == 79


def test_high_average_maps_to_full_contacts():
    result = capture(AlignmentScoreHistory(scores=[85] * 90))
    assert result.average_score == 85
    assert result.tier == 3
    assert result.wall_angel_contacts == 5


@pytest.mark.parametrize("score, tier", [
    (0, 0), (49, 0), (50, 1.5), (79, 1.5), (80, 3), (100, 3),
])
def test_tier_boundaries(score, tier):
    assert tier_for_score(score) == tier


def test_tier_is_monotonic():
    tiers = [tier_for_score(score) for score in range(0, 101)]
    assert tiers == sorted(tiers)


def test_tier_to_contacts():
    assert tier_to_wall_angel_contacts(0) == 0
    assert tier_to_wall_angel_contacts(1.5) == 3
    assert tier_to_wall_angel_contacts(3) == 5


def test_manual_fallback_produces_scanner_tiers():
    assert [manual_tier(c) for c in ("fail", "partial", "SUCCESS")] == [0, 1.5, 3]
    assert all(is_valid_tier(manual_tier(c)) for c in ("fail", "partial", "success"))
    with pytest.raises(ValueError):
        manual_tier("maybe")


def test_ready_flag_and_clear():
    history = AlignmentScoreHistory(scores=[70] * 29)
    assert not history.is_ready
    history.append(70)
    assert history.is_ready
    history.clear()
    assert len(history) == 0
    assert history.average() == 50
