import math

import pytest

from posture_engine.landmarks import calculate_posture_metrics, select_side, to_landmarks


def test_upright_profile_scores_full_marks(frame_factory):
    metrics = calculate_posture_metrics(frame_factory())
    assert metrics.alignment_score == 100
    assert metrics.neck_score == 100
    assert metrics.torso_score == 100
    assert not metrics.is_forward_head
    assert not metrics.is_slouching
    assert not metrics.is_indeterminate


def test_forward_head_flagged_when_ear_ahead_of_shoulder(frame_factory):
    # headOffset = (0.60 - 0.50) * 100 = 10 > 8
    metrics = calculate_posture_metrics(frame_factory(ear=(0.60, 0.2), shoulder=(0.50, 0.3)))
    assert metrics.is_forward_head
    assert round(metrics.head_offset_percent, 6) == 10.0
    assert metrics.neck_score == 50
    assert metrics.torso_score == 100
    assert metrics.alignment_score == 75


def test_small_head_offset_is_not_forward_head(frame_factory):
    metrics = calculate_posture_metrics(frame_factory(ear=(0.55, 0.2)))
    assert not metrics.is_forward_head
    assert metrics.neck_score == 75


def test_slouch_detected_from_torso_lean(frame_factory):
    # dx = 10, dy*100 = 30 -> atan2 ~ 18.43 degrees
    metrics = calculate_posture_metrics(
        frame_factory(ear=(0.6, 0.2), shoulder=(0.6, 0.3), hip=(0.5, 0.6))
    )
    assert metrics.is_slouching
    assert 18.4 < metrics.torso_angle_degrees < 18.5
    assert metrics.torso_score == 26
    assert metrics.neck_score == 100
    assert metrics.alignment_score == 63


def test_too_few_landmarks_yield_sentinel(frame_factory):
    metrics = calculate_posture_metrics(frame_factory()[:20])
    assert metrics.is_indeterminate
    assert metrics.alignment_score == 0
    assert metrics.is_forward_head and metrics.is_slouching
    assert metrics.head_offset_percent == 0
    assert metrics.torso_angle_degrees == 0


def test_missing_visibility_counts_as_unresolvable(frame_factory):
    frame = frame_factory()
    for idx in range(24, 33):
        frame[idx] = {"x": 0.5, "y": 0.5}
    assert calculate_posture_metrics(frame).is_indeterminate


def test_twenty_five_resolvable_landmarks_are_enough(frame_factory):
    frame = frame_factory()
    for idx in range(25, 33):
        frame[idx] = {"x": 0.5, "y": 0.5}
    metrics = calculate_posture_metrics(frame)
    assert not metrics.is_indeterminate
    assert metrics.alignment_score == 100


@pytest.mark.parametrize("point", [
    {"ear": (math.nan, 0.2)},
    {"shoulder": (0.5, math.inf)},
    {"hip": (-math.inf, 0.6)},
])
def test_non_finite_coordinates_are_indeterminate(frame_factory, point):
    metrics = calculate_posture_metrics(frame_factory(**point))
    assert metrics.is_indeterminate
    assert metrics.alignment_score == 0


def test_non_finite_visibility_is_indeterminate(frame_factory):
    assert calculate_posture_metrics(frame_factory(visible=math.nan, hidden=math.nan)).is_indeterminate


def test_low_visibility_on_both_sides_is_indeterminate(frame_factory):
    frame = frame_factory(visible=0.3, hidden=0.2)
    assert calculate_posture_metrics(frame).is_indeterminate


def test_none_frame_is_indeterminate():
    assert calculate_posture_metrics(None).is_indeterminate


def test_more_visible_side_is_used(frame_factory):
    landmarks = to_landmarks(frame_factory(side="right"))
    side, visibility = select_side(landmarks)
    assert side == "right"
    assert visibility > 0.9


def test_scores_stay_bounded_for_extreme_geometry(frame_factory):
    frames = [
        frame_factory(ear=(1.0, 0.0), shoulder=(0.0, 0.5), hip=(1.0, 1.0)),
        frame_factory(ear=(0.5, 0.5), shoulder=(0.5, 0.5), hip=(0.5, 0.5)),
        frame_factory(shoulder=(0.5, 0.7), hip=(0.5, 0.2)),  # hip above shoulder
        frame_factory(ear=(-3.0, 0.1), shoulder=(4.0, 0.3), hip=(-2.0, 0.9)),
    ]
    for frame in frames:
        metrics = calculate_posture_metrics(frame)
        for score in (metrics.alignment_score, metrics.neck_score, metrics.torso_score):
            assert 0 <= score <= 100


def test_hip_above_shoulder_gives_zero_torso_score(frame_factory):
    metrics = calculate_posture_metrics(frame_factory(shoulder=(0.5, 0.7), hip=(0.5, 0.2)))
    assert metrics.torso_score == 0
    assert metrics.is_slouching


def test_mirrored_frames_score_identically(frame_factory):
    left = frame_factory(ear=(0.56, 0.2), shoulder=(0.5, 0.3), hip=(0.45, 0.6), side="left")
    right = frame_factory(ear=(0.44, 0.2), shoulder=(0.5, 0.3), hip=(0.55, 0.6), side="right")

    left_metrics = calculate_posture_metrics(left)
    right_metrics = calculate_posture_metrics(right)

    assert left_metrics.alignment_score == right_metrics.alignment_score
    assert left_metrics.neck_score == right_metrics.neck_score
    assert left_metrics.torso_score == right_metrics.torso_score


def test_identical_input_is_deterministic(frame_factory):
    frame = frame_factory(ear=(0.58, 0.2), shoulder=(0.52, 0.3), hip=(0.47, 0.62))
    assert calculate_posture_metrics(frame) == calculate_posture_metrics(frame)
