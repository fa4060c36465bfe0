# Scan Sessions - per-frame posture analysis with caller-owned history (Procedural)
import threading
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from posture_engine.capture import AlignmentScoreHistory, capture
from posture_engine.landmarks import calculate_posture_metrics
from posture_engine.models import CaptureResult, Landmark, PostureMetrics
from nivo_server import config
from nivo_server import logger

# In-memory scan sessions: scan_id -> {user_id, history, last_metrics, frames_processed, ...}
_scan_sessions: Dict[str, Dict] = {}
_sessions_lock = threading.Lock()


def start_scan(user_id: int) -> str:
    """Open a scan session with an empty alignment history"""
    scan_id = uuid.uuid4().hex
    now = datetime.utcnow()

    with _sessions_lock:
        _purge_expired(now)
        _scan_sessions[scan_id] = {
            "user_id": user_id,
            "history": AlignmentScoreHistory(),
            "last_metrics": None,
            "frames_processed": 0,
            "indeterminate_frames": 0,
            "started_at": now,
            "last_frame_at": now,
        }

    logger.log_scan("Scan Started", {"scan_id": scan_id, "user_id": user_id})
    return scan_id


def _purge_expired(now: datetime):
    ttl = timedelta(minutes=config.SCAN_SESSION_TTL_MINUTES)
    expired = [sid for sid, s in _scan_sessions.items() if now - s["last_frame_at"] > ttl]
    for sid in expired:
        del _scan_sessions[sid]
    if expired:
        logger.log_warning("Idle Scans Dropped", {"count": len(expired)})


def _get_owned(scan_id: str, user_id: int) -> Optional[Dict]:
    session = _scan_sessions.get(scan_id)
    if not session or session["user_id"] != user_id:
        return None
    return session


def process_frame(scan_id: str, user_id: int, landmarks: List[Landmark]) -> Optional[Dict]:
    """
    Score one frame and push its alignment score into the scan history

    Indeterminate frames are reported back but not recorded.

    Returns:
        Dict with metrics and history size, or None if the scan is unknown
    """
    with _sessions_lock:
        session = _get_owned(scan_id, user_id)
        if session is None:
            return None

        metrics = calculate_posture_metrics(landmarks)
        session["frames_processed"] += 1
        session["last_frame_at"] = datetime.utcnow()
        session["last_metrics"] = metrics

        if metrics.is_indeterminate:
            session["indeterminate_frames"] += 1
        else:
            session["history"].append(metrics.alignment_score)

        frames_processed = session["frames_processed"]
        history: AlignmentScoreHistory = session["history"]
        history_size = len(history)
        ready = history.is_ready

    if frames_processed % config.FRAME_LOG_INTERVAL == 0:
        logger.log_scan("Frames Processed", {
            "scan_id": scan_id,
            "frames": frames_processed,
            "history_size": history_size,
            "last_alignment": metrics.alignment_score
        })

    return {
        "metrics": metrics,
        "history_size": history_size,
        "ready_to_capture": ready,
    }


def get_scan_status(scan_id: str, user_id: int) -> Optional[Dict]:
    with _sessions_lock:
        session = _get_owned(scan_id, user_id)
        if session is None:
            return None

        history: AlignmentScoreHistory = session["history"]
        last_metrics: Optional[PostureMetrics] = session["last_metrics"]
        return {
            "scan_id": scan_id,
            "frames_processed": session["frames_processed"],
            "indeterminate_frames": session["indeterminate_frames"],
            "history_size": len(history),
            "running_average": history.average(),
            "ready_to_capture": history.is_ready,
            "last_metrics": last_metrics,
            "started_at": session["started_at"].isoformat(),
        }


def reset_scan(scan_id: str, user_id: int) -> bool:
    """Discard the recorded history but keep the scan open"""
    with _sessions_lock:
        session = _get_owned(scan_id, user_id)
        if session is None:
            return False
        session["history"].clear()
        session["last_metrics"] = None

    logger.log_scan("Scan Reset", {"scan_id": scan_id})
    return True


def capture_scan(scan_id: str, user_id: int) -> Optional[CaptureResult]:
    """
    Average the history into a functional tier and close the scan

    Returns:
        CaptureResult, or None if the scan is unknown
    """
    with _sessions_lock:
        session = _get_owned(scan_id, user_id)
        if session is None:
            return None
        result = capture(session["history"])
        del _scan_sessions[scan_id]

    logger.log_scan("Scan Captured", {
        "scan_id": scan_id,
        "average_score": result.average_score,
        "tier": result.tier,
        "wall_angel_contacts": result.wall_angel_contacts,
        "frames_used": result.frames_used
    })
    return result


def discard_scan(scan_id: str, user_id: int) -> bool:
    with _sessions_lock:
        if _get_owned(scan_id, user_id) is None:
            return False
        del _scan_sessions[scan_id]

    logger.log_info("Scan Discarded", {"scan_id": scan_id})
    return True


def active_scan_count() -> int:
    with _sessions_lock:
        return len(_scan_sessions)
