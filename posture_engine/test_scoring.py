import itertools

from posture_engine.models import DailyLog, PhysicalAssessment
from posture_engine.scoring import (
    calculate_functional_index,
    calculate_load_index,
    calculate_nivo_score,
    calculate_subjective_index,
    derive_stress_level,
    is_sedentary_risk,
    score_status,
)

BEST_ASSESSMENT = PhysicalAssessment(finger_floor_distance_cm=0, wall_angel_contacts=5, mcgill_plank_seconds=60)


def daily_log(pain=0, fatigue=0, stiffness=0, hours=2, stress=1):
    return DailyLog(pain_vas=pain, fatigue_vas=fatigue, stiffness_vas=stiffness,
                    hours_seated=hours, stress_level=stress)


def test_all_positive_day_scores_high():
    result = calculate_nivo_score(daily_log(), BEST_ASSESSMENT)
    assert result.global_score >= 80
    assert result.global_score == 100
    assert result.details.subj == 100
    assert result.details.func == 100
    assert result.details.load == 100
    assert result.status == "optimal"


def test_long_sitting_day_scores_lower():
    relaxed = calculate_nivo_score(daily_log(hours=2), BEST_ASSESSMENT)
    seated = calculate_nivo_score(daily_log(hours=14), BEST_ASSESSMENT)
    assert seated.global_score < relaxed.global_score
    assert seated.details.load == 0
    assert seated.global_score == 75


def test_subjective_index_weights_pain_most():
    assert calculate_subjective_index(daily_log(pain=50)) == 75
    assert calculate_subjective_index(daily_log(stiffness=50)) == 85
    assert calculate_subjective_index(daily_log(fatigue=50)) == 90


def test_functional_index_against_reference_values():
    assessment = PhysicalAssessment(finger_floor_distance_cm=15, wall_angel_contacts=3, mcgill_plank_seconds=30)
    assert calculate_functional_index(assessment) == 53


def test_load_index_combines_sitting_and_stress():
    assert calculate_load_index(daily_log(hours=4, stress=3)) == 88
    assert calculate_load_index(daily_log(hours=2, stress=5)) == 80


def test_load_decreases_with_hours_seated():
    loads = [calculate_load_index(daily_log(hours=h)) for h in range(0, 17)]
    assert loads == sorted(loads, reverse=True)
    assert loads[2] == 100
    assert loads[6] < loads[5]


def test_out_of_range_inputs_are_clamped():
    wild = DailyLog(pain_vas=150, fatigue_vas=-20, stiffness_vas=300, hours_seated=-5, stress_level=9)
    assessment = PhysicalAssessment(finger_floor_distance_cm=-10, wall_angel_contacts=12, mcgill_plank_seconds=600)
    result = calculate_nivo_score(wild, assessment)
    assert 0 <= result.global_score <= 100
    assert result.details.subj == 20
    assert result.details.func == 100
    assert result.details.load == 80
    assert calculate_load_index(daily_log(hours=40)) == calculate_load_index(daily_log(hours=16))


def test_score_is_deterministic_and_bounded():
    values = (0, 50, 100)
    for pain, fatigue, stiffness in itertools.product(values, repeat=3):
        for hours in (0, 6, 16):
            log = daily_log(pain, fatigue, stiffness, hours, derive_stress_level(fatigue))
            for contacts in (0, 3, 5):
                assessment = PhysicalAssessment(finger_floor_distance_cm=30 - contacts * 6,
                                                wall_angel_contacts=contacts,
                                                mcgill_plank_seconds=contacts * 12)
                first = calculate_nivo_score(log, assessment)
                assert first == calculate_nivo_score(log, assessment)
                assert 0 <= first.global_score <= 100


def test_stress_derived_from_fatigue():
    assert derive_stress_level(0) == 1
    assert derive_stress_level(20) == 1
    assert derive_stress_level(21) == 2
    assert derive_stress_level(100) == 5
    assert derive_stress_level(250) == 5


def test_status_bands():
    assert score_status(0) == "critical"
    assert score_status(39) == "critical"
    assert score_status(40) == "warning"
    assert score_status(60) == "stable"
    assert score_status(79) == "stable"
    assert score_status(80) == "optimal"
    assert score_status(100) == "optimal"


def test_sedentary_warning_from_six_hours():
    assert not is_sedentary_risk(5.5)
    assert is_sedentary_risk(6)
