# All tunable posture and scoring thresholds
# posture_engine/config.py

# ---------------------------------------------------------------------------
# Landmark topology (33-point body pose model)
# ---------------------------------------------------------------------------
LANDMARK_INDEX = {
    "left_ear": 7,
    "right_ear": 8,
    "left_shoulder": 11,
    "right_shoulder": 12,
    "left_hip": 23,
    "right_hip": 24,
}

MIN_LANDMARKS = 25           # fewer resolvable keypoints -> indeterminate frame
MIN_SIDE_VISIBILITY = 0.5    # mean visibility of the chosen ear/shoulder/hip

# ---------------------------------------------------------------------------
# Per-frame geometry
# ---------------------------------------------------------------------------
FORWARD_HEAD_THRESHOLD = 8   # percentage points of frame width
MAX_HEAD_OFFSET = 20         # normalization cap for |headOffset|
SLOUCH_ANGLE_THRESHOLD = 10  # degrees
MAX_TORSO_ANGLE = 25         # normalization cap for |torsoAngle|
NECK_WEIGHT = 0.5
TORSO_WEIGHT = 0.5

# ---------------------------------------------------------------------------
# Rolling history / capture
# ---------------------------------------------------------------------------
HISTORY_MAX_FRAMES = 90      # ~3 seconds at 30 fps
MIN_FRAMES_FOR_CAPTURE = 30
DEFAULT_CAPTURE_SCORE = 50   # neutral average when nothing was recorded

TIER_FAIL = 0.0
TIER_PARTIAL = 1.5
TIER_SUCCESS = 3.0
TIER_THRESHOLDS = {
    "success": 80,           # >=80
    "partial": 50,           # >=50
}
MANUAL_TIER_CHOICES = {
    "fail": TIER_FAIL,
    "partial": TIER_PARTIAL,
    "success": TIER_SUCCESS,
}

# ---------------------------------------------------------------------------
# NIVO composite score
# ---------------------------------------------------------------------------
WEIGHT_SUBJ = 0.45
WEIGHT_FUNC = 0.30
WEIGHT_LOAD = 0.25

SUBJECTIVE_WEIGHTS = {
    "pain": 0.5,
    "stiffness": 0.3,
    "fatigue": 0.2,
}

VAS_RANGE = (0, 100)
STRESS_RANGE = (1, 5)
FINGER_FLOOR_REFERENCE_CM = 30   # 0cm = 100pts, 30cm+ = 0pts
PLANK_REFERENCE_SECONDS = 60     # 60s+ = 100pts
WALL_ANGEL_MAX_CONTACTS = 5      # head, shoulders, elbows, wrists, lower back

MAX_HOURS_SEATED = 16
SEDENTARY_FREE_HOURS = 2         # no penalty up to 2h seated
SEDENTARY_PENALTY_BASE = 1.5     # penalty = 1.5 ** (hours - 2)
SEDENTARY_WARNING_HOURS = 6
STRESS_MAX_PENALTY = 20

STATUS_BANDS = {
    "critical": (0, 40),     # <40
    "warning": (40, 60),     # 40-59
    "stable": (60, 80),      # 60-79
    "optimal": (80, 101),    # >=80
}

STATUS_RECOMMENDATIONS = {
    "critical": "Your system needs immediate attention. The emergency protocol is recommended.",
    "warning": "Signs of tension detected. A maintenance routine is recommended.",
    "stable": "System stable. Keep up your daily routine.",
    "optimal": "Peak performance. Preventive maintenance mode.",
}

# ---------------------------------------------------------------------------
# Decay, boosts and engagement
# ---------------------------------------------------------------------------
DAILY_DECAY_RATE = 2
DECAY_FLOOR = 20
CALIBRATION_COOLDOWN_HOURS = 24

ROUTINE_BOOSTS = {
    "daily_loop": 5,
    "reset": 8,
    "stiffness": 8,
    "decompression": 6,
    "emergency": 10,
    "advanced": 12,
}
DEFAULT_ROUTINE_BOOST = 5
ROUTINE_FULL_DURATION_SECONDS = 480   # 8 min
ROUTINE_DURATION_BONUS = 2

CRISIS_PAIN_THRESHOLD = 60
PLATEAU_WINDOW = 14
PLATEAU_MAX_SPREAD = 5
