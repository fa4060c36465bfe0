from pydantic import BaseModel
from typing import Optional


class Landmark(BaseModel):
    x: float
    y: float
    z: Optional[float] = None
    visibility: Optional[float] = None


class PostureMetrics(BaseModel):
    alignment_score: int
    neck_score: int
    torso_score: int
    is_forward_head: bool
    is_slouching: bool
    head_offset_percent: float
    torso_angle_degrees: float
    is_indeterminate: bool = False


class CaptureResult(BaseModel):
    average_score: int
    tier: float
    wall_angel_contacts: int
    frames_used: int


class DailyLog(BaseModel):
    pain_vas: float
    fatigue_vas: float
    stiffness_vas: float
    hours_seated: float
    stress_level: float = 1


class PhysicalAssessment(BaseModel):
    finger_floor_distance_cm: float
    wall_angel_contacts: float
    mcgill_plank_seconds: float


class ScoreDetails(BaseModel):
    subj: int
    func: int
    load: int


class NivoScoreResult(BaseModel):
    global_score: int
    details: ScoreDetails
    status: str
    recommendation: str


class PaywallTrigger(BaseModel):
    trigger: Optional[str] = None
    message: Optional[str] = None
