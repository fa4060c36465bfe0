# Landmark Geometry Analyzer - per-frame posture metrics (Procedural)
import math
from typing import Dict, Iterable, List, Tuple, Union

from posture_engine.config import (
    LANDMARK_INDEX,
    MIN_LANDMARKS,
    MIN_SIDE_VISIBILITY,
    FORWARD_HEAD_THRESHOLD,
    MAX_HEAD_OFFSET,
    SLOUCH_ANGLE_THRESHOLD,
    MAX_TORSO_ANGLE,
    NECK_WEIGHT,
    TORSO_WEIGHT,
)
from posture_engine.models import Landmark, PostureMetrics
from posture_engine.utils import clamp, round_half_up

LandmarkInput = Union[Landmark, Dict[str, float]]


def indeterminate_metrics() -> PostureMetrics:
    """Zero-confidence result for frames that cannot be scored"""
    return PostureMetrics(
        alignment_score=0,
        neck_score=0,
        torso_score=0,
        is_forward_head=True,
        is_slouching=True,
        head_offset_percent=0.0,
        torso_angle_degrees=0.0,
        is_indeterminate=True,
    )


def to_landmarks(raw: Iterable[LandmarkInput]) -> List[Landmark]:
    return [lm if isinstance(lm, Landmark) else Landmark(**lm) for lm in raw]


def count_resolvable(landmarks: List[Landmark]) -> int:
    return sum(1 for lm in landmarks if lm.visibility is not None)


def select_side(landmarks: List[Landmark]) -> Tuple[str, float]:
    """
    Pick the body side whose ear/shoulder/hip triplet is most visible

    Ties go to the right side.

    Returns:
        Tuple of ("left" | "right", mean visibility of that side)
    """
    means = {}
    for side in ("left", "right"):
        triplet = [landmarks[LANDMARK_INDEX[f"{side}_{part}"]] for part in ("ear", "shoulder", "hip")]
        means[side] = sum((lm.visibility or 0.0) for lm in triplet) / 3

    side = "left" if means["left"] > means["right"] else "right"
    return side, means[side]


def evaluate_neck(ear: Landmark, shoulder: Landmark) -> Tuple[float, int, bool]:
    """Tech neck: horizontal ear-to-shoulder offset in % of frame width"""
    head_offset = (ear.x - shoulder.x) * 100
    is_forward_head = head_offset > FORWARD_HEAD_THRESHOLD

    capped_offset = min(abs(head_offset), MAX_HEAD_OFFSET)
    neck_score = round_half_up(100 - (capped_offset / MAX_HEAD_OFFSET) * 100)

    return head_offset, neck_score, is_forward_head


def evaluate_torso(shoulder: Landmark, hip: Landmark) -> Tuple[float, int, bool]:
    """Slouch: lean of the shoulder-hip segment away from vertical, in degrees"""
    dx = (shoulder.x - hip.x) * 100
    dy = hip.y - shoulder.y
    torso_angle = math.atan2(dx, dy * 100) * (180 / math.pi)
    is_slouching = abs(torso_angle) > SLOUCH_ANGLE_THRESHOLD

    capped_angle = min(abs(torso_angle), MAX_TORSO_ANGLE)
    torso_score = round_half_up(100 - (capped_angle / MAX_TORSO_ANGLE) * 100)

    return torso_angle, torso_score, is_slouching


def calculate_posture_metrics(raw_landmarks: Iterable[LandmarkInput]) -> PostureMetrics:
    """
    Convert one frame of body keypoints into posture metrics

    Args:
        raw_landmarks: Positional landmarks (33-point topology), each with
            normalized x/y and a visibility in [0, 1]

    Returns:
        PostureMetrics; the indeterminate sentinel when the frame has too
        few resolvable keypoints or the chosen side is barely visible
    """
    if raw_landmarks is None:
        return indeterminate_metrics()

    landmarks = to_landmarks(raw_landmarks)
    if len(landmarks) < MIN_LANDMARKS or count_resolvable(landmarks) < MIN_LANDMARKS:
        return indeterminate_metrics()

    side, side_visibility = select_side(landmarks)
    if not math.isfinite(side_visibility) or side_visibility < MIN_SIDE_VISIBILITY:
        return indeterminate_metrics()

    ear = landmarks[LANDMARK_INDEX[f"{side}_ear"]]
    shoulder = landmarks[LANDMARK_INDEX[f"{side}_shoulder"]]
    hip = landmarks[LANDMARK_INDEX[f"{side}_hip"]]

    if not all(math.isfinite(lm.x) and math.isfinite(lm.y) for lm in (ear, shoulder, hip)):
        return indeterminate_metrics()

    head_offset, neck_score, is_forward_head = evaluate_neck(ear, shoulder)
    torso_angle, torso_score, is_slouching = evaluate_torso(shoulder, hip)

    alignment_score = round_half_up(neck_score * NECK_WEIGHT + torso_score * TORSO_WEIGHT)

    return PostureMetrics(
        alignment_score=clamp(alignment_score, 0, 100),
        neck_score=clamp(neck_score, 0, 100),
        torso_score=clamp(torso_score, 0, 100),
        is_forward_head=is_forward_head,
        is_slouching=is_slouching,
        head_offset_percent=head_offset,
        torso_angle_degrees=torso_angle,
    )
