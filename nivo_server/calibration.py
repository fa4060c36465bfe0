# Calibration Engine - daily check-in, NIVO scoring and score read-back (Procedural)
from datetime import datetime, date, timedelta
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select, insert, update
from posture_engine.capture import tier_to_wall_angel_contacts
from posture_engine.config import CALIBRATION_COOLDOWN_HOURS, PLATEAU_WINDOW, VAS_RANGE, MAX_HOURS_SEATED
from posture_engine.models import DailyLog, PhysicalAssessment
from posture_engine.progression import display_score, calculate_routine_boost, boosted_score
from posture_engine.scoring import calculate_nivo_score, derive_stress_level, is_sedentary_risk, score_status
from posture_engine.triggers import check_paywall_trigger
from posture_engine.utils import clamp, round_half_up
from nivo_server.database import (
    users_table, daily_checkins_table, physical_assessments_table, nivo_scores_table,
    get_connection, upsert
)
from nivo_server import logger


def check_cooldown(last_calibration_at: Optional[datetime], now: Optional[datetime] = None) -> Tuple[bool, int]:
    """
    Check the minimum gap between two daily calibrations

    Returns:
        Tuple of (allowed, seconds remaining before the next calibration)
    """
    if last_calibration_at is None:
        return True, 0

    now = now or datetime.utcnow()
    next_allowed = last_calibration_at + timedelta(hours=CALIBRATION_COOLDOWN_HOURS)
    if now >= next_allowed:
        return True, 0
    return False, int((next_allowed - now).total_seconds())


def get_cooldown_status(user_id: int, now: Optional[datetime] = None) -> Optional[Dict]:
    try:
        with get_connection() as conn:
            row = conn.execute(
                select(users_table.c.last_calibration_at).where(users_table.c.id == user_id)
            ).first()

        if row is None:
            return None

        allowed, remaining = check_cooldown(row[0], now)
        return {
            "allowed": allowed,
            "remaining_seconds": remaining,
            "last_calibration_at": row[0].isoformat() if row[0] else None,
        }

    except Exception as e:
        logger.log_error("Cooldown Check Failed", e, {"user_id": user_id})
        return None


def _fetch_score_history(conn, user_id: int, limit: int) -> List[int]:
    """Most recent total scores, oldest first"""
    rows = conn.execute(
        select(nivo_scores_table.c.total_score)
        .where(nivo_scores_table.c.user_id == user_id)
        .order_by(nivo_scores_table.c.score_date.desc(), nivo_scores_table.c.id.desc())
        .limit(limit)
    ).fetchall()
    return [row[0] for row in reversed(rows)]


def run_daily_calibration(user_id: int, pain_vas: float, stiffness_vas: float, fatigue_vas: float,
                          hours_seated: float, finger_floor_distance_cm: float,
                          mcgill_plank_seconds: float, functional_tier: float,
                          functional_source: str = "manual",
                          now: Optional[datetime] = None) -> Tuple[bool, str, Optional[Dict]]:
    """
    Daily calibration flow

    Step 1: upsert today's check-in and physical assessment (one transaction)
    Step 2: read both rows back and compute the NIVO score
    Step 3: append the score record and stamp the cooldown

    The cooldown gate is checked by the caller before this runs. Inputs are
    clamped to their daily domains before they are stored.

    Returns:
        Tuple of (success, message, payload)
    """
    now = now or datetime.utcnow()
    today = now.date()

    pain_vas = clamp(pain_vas, *VAS_RANGE)
    stiffness_vas = clamp(stiffness_vas, *VAS_RANGE)
    fatigue_vas = clamp(fatigue_vas, *VAS_RANGE)
    hours_seated = clamp(round_half_up(hours_seated), 0, MAX_HOURS_SEATED)
    finger_floor_distance_cm = max(0.0, finger_floor_distance_cm)
    mcgill_plank_seconds = max(0.0, mcgill_plank_seconds)

    stress_level = derive_stress_level(fatigue_vas)
    wall_angel_contacts = tier_to_wall_angel_contacts(functional_tier)

    logger.log_calibration("Calibration Started", {
        "user_id": user_id,
        "date": today.isoformat(),
        "tier": functional_tier,
        "source": functional_source
    })

    # Step 1: both upserts commit together or not at all
    try:
        with get_connection() as conn:
            upsert(conn, daily_checkins_table, {
                "user_id": user_id,
                "checkin_date": today,
                "pain_vas": pain_vas,
                "stiffness_vas": stiffness_vas,
                "fatigue_vas": fatigue_vas,
                "hours_seated": hours_seated,
                "stress_level": stress_level,
                "updated_at": now,
            }, ["user_id", "checkin_date"])

            upsert(conn, physical_assessments_table, {
                "user_id": user_id,
                "assessment_date": today,
                "finger_floor_distance_cm": finger_floor_distance_cm,
                "wall_angel_contacts": wall_angel_contacts,
                "mcgill_plank_seconds": mcgill_plank_seconds,
                "functional_tier": functional_tier,
                "functional_source": functional_source,
                "updated_at": now,
            }, ["user_id", "assessment_date"])

            conn.commit()

        logger.log_db("Check-in Stored", {"user_id": user_id, "date": today.isoformat()})

    except Exception as e:
        logger.log_error("Check-in Upsert Failed", e, {"user_id": user_id})
        return False, f"Check-in could not be saved: {str(e)}", None

    # Step 2 + 3: score from committed values, then append
    try:
        with get_connection() as conn:
            checkin = conn.execute(select(daily_checkins_table).where(
                (daily_checkins_table.c.user_id == user_id) &
                (daily_checkins_table.c.checkin_date == today)
            )).first()._mapping

            assessment = conn.execute(select(physical_assessments_table).where(
                (physical_assessments_table.c.user_id == user_id) &
                (physical_assessments_table.c.assessment_date == today)
            )).first()._mapping

            daily_log = DailyLog(
                pain_vas=checkin["pain_vas"],
                fatigue_vas=checkin["fatigue_vas"],
                stiffness_vas=checkin["stiffness_vas"],
                hours_seated=checkin["hours_seated"],
                stress_level=checkin["stress_level"],
            )
            physical = PhysicalAssessment(
                finger_floor_distance_cm=assessment["finger_floor_distance_cm"],
                wall_angel_contacts=assessment["wall_angel_contacts"],
                mcgill_plank_seconds=assessment["mcgill_plank_seconds"],
            )

            result = calculate_nivo_score(daily_log, physical)

            is_pro = conn.execute(
                select(users_table.c.is_pro).where(users_table.c.id == user_id)
            ).scalar()
            score_history = _fetch_score_history(conn, user_id, PLATEAU_WINDOW - 1)

            inserted = conn.execute(insert(nivo_scores_table).values(
                user_id=user_id,
                score_date=today,
                total_score=result.global_score,
                subjective_index=result.details.subj,
                functional_index=result.details.func,
                load_index=result.details.load,
                decay_applied=False,
                source="calibration",
                created_at=now
            ))
            conn.execute(update(users_table).where(users_table.c.id == user_id).values(
                last_calibration_at=now
            ))
            conn.commit()
            score_id = inserted.inserted_primary_key[0]

    except Exception as e:
        logger.log_error("Calibration Scoring Failed", e, {"user_id": user_id})
        return False, f"Score could not be saved: {str(e)}", None

    trigger = check_paywall_trigger(daily_log, score_history + [result.global_score], bool(is_pro))

    logger.log_calibration("Daily Score", {
        "user_id": user_id,
        "global_score": result.global_score,
        "subj": result.details.subj,
        "func": result.details.func,
        "load": result.details.load,
        "status": result.status
    })

    return True, "Calibration complete", {
        "score_id": score_id,
        "score_date": today.isoformat(),
        "result": result,
        "stress_level": stress_level,
        "wall_angel_contacts": wall_angel_contacts,
        "sedentary_warning": is_sedentary_risk(hours_seated),
        "paywall": trigger,
        "next_calibration_at": (now + timedelta(hours=CALIBRATION_COOLDOWN_HOURS)).isoformat(),
    }


def _latest_score(conn, user_id: int):
    return conn.execute(
        select(nivo_scores_table)
        .where(nivo_scores_table.c.user_id == user_id)
        .order_by(nivo_scores_table.c.score_date.desc(), nivo_scores_table.c.id.desc())
        .limit(1)
    ).first()


def _has_checkin(conn, user_id: int, day: date) -> bool:
    return conn.execute(
        select(daily_checkins_table.c.id).where(
            (daily_checkins_table.c.user_id == user_id) &
            (daily_checkins_table.c.checkin_date == day)
        )
    ).first() is not None


def get_current_score(user_id: int, today: Optional[date] = None) -> Optional[Dict]:
    """
    Dashboard score: the latest record, decayed at read time

    Returns:
        Dict with displayed score and breakdown, or None if the user has no score yet
    """
    today = today or datetime.utcnow().date()

    try:
        with get_connection() as conn:
            latest = _latest_score(conn, user_id)
            if latest is None:
                return None
            latest = dict(latest._mapping)
            checked_in_today = _has_checkin(conn, user_id, today)

    except Exception as e:
        logger.log_error("Current Score Fetch Failed", e, {"user_id": user_id})
        return None

    score, decay_applied, days_elapsed = display_score(
        latest["total_score"], latest["score_date"], today, checked_in_today
    )

    if decay_applied:
        logger.log_engine("Decay Applied", {
            "user_id": user_id,
            "stored": latest["total_score"],
            "displayed": score,
            "days": days_elapsed
        })

    return {
        "total_score": score,
        "stored_score": latest["total_score"],
        "score_date": latest["score_date"].isoformat(),
        "decay_applied": decay_applied,
        "days_since_score": days_elapsed,
        "status": score_status(score),
        "details": {
            "subj": latest["subjective_index"],
            "func": latest["functional_index"],
            "load": latest["load_index"],
        },
    }


def get_score_history(user_id: int, limit: int = 90) -> List[Dict]:
    """Score records, oldest first"""
    try:
        with get_connection() as conn:
            rows = conn.execute(
                select(nivo_scores_table)
                .where(nivo_scores_table.c.user_id == user_id)
                .order_by(nivo_scores_table.c.score_date.desc(), nivo_scores_table.c.id.desc())
                .limit(limit)
            ).fetchall()

        history = []
        for row in reversed(rows):
            record = dict(row._mapping)
            history.append({
                "id": record["id"],
                "score_date": record["score_date"].isoformat(),
                "total_score": record["total_score"],
                "subjective_index": record["subjective_index"],
                "functional_index": record["functional_index"],
                "load_index": record["load_index"],
                "decay_applied": bool(record["decay_applied"]),
                "source": record["source"],
            })
        return history

    except Exception as e:
        logger.log_error("Score History Fetch Failed", e, {"user_id": user_id})
        return []


def apply_routine_boost(user_id: int, routine_type: str, duration_seconds: float,
                        today: Optional[date] = None) -> Tuple[bool, str, Optional[Dict]]:
    """
    Layer a routine completion bonus on top of today's displayed score

    Appends a new record for today; earlier records are left untouched.

    Returns:
        Tuple of (success, message, payload)
    """
    today = today or datetime.utcnow().date()
    current = get_current_score(user_id, today)

    if current is None:
        return False, "No score yet, complete a calibration first", None

    boost = calculate_routine_boost(routine_type, duration_seconds)
    new_score = boosted_score(current["total_score"], boost)

    try:
        with get_connection() as conn:
            inserted = conn.execute(insert(nivo_scores_table).values(
                user_id=user_id,
                score_date=today,
                total_score=new_score,
                subjective_index=current["details"]["subj"],
                functional_index=current["details"]["func"],
                load_index=current["details"]["load"],
                decay_applied=current["decay_applied"],
                source="routine"
            ))
            conn.commit()
            score_id = inserted.inserted_primary_key[0]

    except Exception as e:
        logger.log_error("Routine Boost Failed", e, {"user_id": user_id})
        return False, f"Boost could not be saved: {str(e)}", None

    logger.log_engine("Routine Boost Applied", {
        "user_id": user_id,
        "routine": routine_type,
        "boost": boost,
        "score": f"{current['total_score']} -> {new_score}"
    })

    return True, "Routine boost applied", {
        "score_id": score_id,
        "previous_score": current["total_score"],
        "boost": boost,
        "total_score": new_score,
        "score_date": today.isoformat(),
    }
