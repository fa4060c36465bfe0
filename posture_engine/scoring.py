# Core scoring logic - NIVO composite health score
import math

from posture_engine.config import (
    WEIGHT_SUBJ,
    WEIGHT_FUNC,
    WEIGHT_LOAD,
    SUBJECTIVE_WEIGHTS,
    VAS_RANGE,
    STRESS_RANGE,
    FINGER_FLOOR_REFERENCE_CM,
    PLANK_REFERENCE_SECONDS,
    WALL_ANGEL_MAX_CONTACTS,
    MAX_HOURS_SEATED,
    SEDENTARY_FREE_HOURS,
    SEDENTARY_PENALTY_BASE,
    SEDENTARY_WARNING_HOURS,
    STRESS_MAX_PENALTY,
    STATUS_BANDS,
    STATUS_RECOMMENDATIONS,
)
from posture_engine.models import DailyLog, PhysicalAssessment, NivoScoreResult, ScoreDetails
from posture_engine.utils import clamp, normalize, round_half_up, classify_band


def _vas(value: float) -> float:
    return clamp(value, *VAS_RANGE)


def derive_stress_level(fatigue_vas: float) -> int:
    """Stress is not asked directly: ceil(fatigue / 20), kept within 1-5"""
    return int(clamp(math.ceil(_vas(fatigue_vas) / 20), *STRESS_RANGE))


def is_sedentary_risk(hours_seated: float) -> bool:
    return hours_seated >= SEDENTARY_WARNING_HOURS


def calculate_subjective_index(log: DailyLog) -> int:
    """
    Subjective index (weight 0.45)

    VAS values are inverted (0 pain = 100 health); pain counts most.
    """
    pain_score = 100 - _vas(log.pain_vas)
    stiffness_score = 100 - _vas(log.stiffness_vas)
    fatigue_score = 100 - _vas(log.fatigue_vas)

    weighted_score = (
        pain_score * SUBJECTIVE_WEIGHTS["pain"]
        + stiffness_score * SUBJECTIVE_WEIGHTS["stiffness"]
        + fatigue_score * SUBJECTIVE_WEIGHTS["fatigue"]
    )

    return clamp(round_half_up(weighted_score), 0, 100)


def calculate_functional_index(assessment: PhysicalAssessment) -> int:
    """
    Functional index (weight 0.30)

    Equal-weight mean of the three self-administered tests, each scored
    against its reference value.
    """
    finger_floor = clamp(assessment.finger_floor_distance_cm, 0, FINGER_FLOOR_REFERENCE_CM)
    finger_floor_score = normalize(FINGER_FLOOR_REFERENCE_CM - finger_floor, 0, FINGER_FLOOR_REFERENCE_CM)

    contacts = clamp(assessment.wall_angel_contacts, 0, WALL_ANGEL_MAX_CONTACTS)
    wall_angel_score = (contacts / WALL_ANGEL_MAX_CONTACTS) * 100

    plank = clamp(assessment.mcgill_plank_seconds, 0, PLANK_REFERENCE_SECONDS)
    plank_score = normalize(plank, 0, PLANK_REFERENCE_SECONDS)

    average_score = (finger_floor_score + wall_angel_score + plank_score) / 3

    return clamp(round_half_up(average_score), 0, 100)


def sedentary_penalty(hours_seated: float) -> float:
    hours = clamp(hours_seated, 0, MAX_HOURS_SEATED)
    if hours <= SEDENTARY_FREE_HOURS:
        return 0.0
    return SEDENTARY_PENALTY_BASE ** (hours - SEDENTARY_FREE_HOURS)


def stress_penalty(stress_level: float) -> float:
    low, high = STRESS_RANGE
    stress = clamp(stress_level, low, high)
    return ((stress - low) / (high - low)) * STRESS_MAX_PENALTY


def calculate_load_index(log: DailyLog) -> int:
    """Load index (weight 0.25): exponential sedentary penalty after 2h, plus stress"""
    load_score = 100 - sedentary_penalty(log.hours_seated) - stress_penalty(log.stress_level)
    return clamp(round_half_up(load_score), 0, 100)


def score_status(global_score: int) -> str:
    return classify_band(global_score, STATUS_BANDS) or "critical"


def calculate_nivo_score(log: DailyLog, assessment: PhysicalAssessment) -> NivoScoreResult:
    """
    Compute the NIVO score from one day of self-report and physical tests

    Pure function: no I/O, never raises for numeric input (out-of-range
    values are clamped before use).

    Args:
        log: Daily subjective check-in (pain/fatigue/stiffness, hours seated, stress)
        assessment: Physical test results

    Returns:
        NivoScoreResult with global score, sub-indices, status band and advice
    """
    subj = calculate_subjective_index(log)
    func = calculate_functional_index(assessment)
    load = calculate_load_index(log)

    global_score = clamp(
        round_half_up(subj * WEIGHT_SUBJ + func * WEIGHT_FUNC + load * WEIGHT_LOAD),
        0,
        100,
    )
    status = score_status(global_score)

    return NivoScoreResult(
        global_score=global_score,
        details=ScoreDetails(subj=subj, func=func, load=load),
        status=status,
        recommendation=STATUS_RECOMMENDATIONS[status],
    )
