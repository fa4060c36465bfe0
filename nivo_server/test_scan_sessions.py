from datetime import datetime, timedelta

from posture_engine.models import Landmark
from nivo_server import config, scan_sessions


def _landmarks(frame):
    return [Landmark(**point) for point in frame]


def test_frames_fill_history_until_ready(frame_factory):
    scan_id = scan_sessions.start_scan(user_id=1)
    for _ in range(29):
        result = scan_sessions.process_frame(scan_id, 1, _landmarks(frame_factory()))
    assert result["history_size"] == 29
    assert result["ready_to_capture"] is False

    result = scan_sessions.process_frame(scan_id, 1, _landmarks(frame_factory()))
    assert result["ready_to_capture"] is True
    assert result["metrics"].alignment_score == 100


def test_indeterminate_frames_are_counted_not_recorded(frame_factory):
    scan_id = scan_sessions.start_scan(user_id=1)
    scan_sessions.process_frame(scan_id, 1, _landmarks(frame_factory(visible=0.2, hidden=0.1)))
    scan_sessions.process_frame(scan_id, 1, [])

    status = scan_sessions.get_scan_status(scan_id, 1)
    assert status["frames_processed"] == 2
    assert status["indeterminate_frames"] == 2
    assert status["history_size"] == 0
    assert status["last_metrics"].is_indeterminate


def test_capture_closes_the_scan(frame_factory):
    scan_id = scan_sessions.start_scan(user_id=1)
    scan_sessions.process_frame(scan_id, 1, _landmarks(frame_factory(ear=(0.6, 0.2))))

    result = scan_sessions.capture_scan(scan_id, 1)
    assert result.average_score == 75
    assert result.tier == 1.5
    assert result.frames_used == 1
    assert scan_sessions.capture_scan(scan_id, 1) is None
    assert scan_sessions.process_frame(scan_id, 1, []) is None


def test_other_users_cannot_touch_a_scan():
    scan_id = scan_sessions.start_scan(user_id=1)
    assert scan_sessions.get_scan_status(scan_id, 2) is None
    assert not scan_sessions.reset_scan(scan_id, 2)
    assert not scan_sessions.discard_scan(scan_id, 2)
    assert scan_sessions.discard_scan(scan_id, 1)


def test_idle_scans_expire():
    stale_id = scan_sessions.start_scan(user_id=1)
    idle = timedelta(minutes=config.SCAN_SESSION_TTL_MINUTES + 1)
    scan_sessions._scan_sessions[stale_id]["last_frame_at"] = datetime.utcnow() - idle

    scan_sessions.start_scan(user_id=1)
    assert scan_sessions.get_scan_status(stale_id, 1) is None
