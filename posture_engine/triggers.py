# Contextual upgrade triggers derived from the score stream
from typing import List

from posture_engine.config import CRISIS_PAIN_THRESHOLD, PLATEAU_WINDOW, PLATEAU_MAX_SPREAD
from posture_engine.models import DailyLog, PaywallTrigger

CRISIS_MESSAGE = "High pain detected. Unlock the Emergency Protocol for targeted relief."
PLATEAU_MESSAGE = "Progress has stalled. Move to the Advanced Stability Cycle to unlock your potential."


def is_plateau(score_history: List[int]) -> bool:
    if len(score_history) < PLATEAU_WINDOW:
        return False
    window = score_history[-PLATEAU_WINDOW:]
    return max(window) - min(window) < PLATEAU_MAX_SPREAD


def check_paywall_trigger(log: DailyLog, score_history: List[int], is_pro: bool) -> PaywallTrigger:
    """
    Decide whether an upgrade prompt applies

    Args:
        log: Today's check-in
        score_history: Past total scores, oldest first
        is_pro: Current entitlement

    Returns:
        PaywallTrigger with trigger "crisis", "plateau" or None
    """
    if is_pro:
        return PaywallTrigger()

    if log.pain_vas > CRISIS_PAIN_THRESHOLD:
        return PaywallTrigger(trigger="crisis", message=CRISIS_MESSAGE)

    if is_plateau(score_history):
        return PaywallTrigger(trigger="plateau", message=PLATEAU_MESSAGE)

    return PaywallTrigger()
