# Main FastAPI Application - NIVO Posture Scoring Server
from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from posture_engine.capture import is_valid_tier, manual_tier
from posture_engine.models import Landmark, DailyLog, PhysicalAssessment
from posture_engine.scoring import calculate_nivo_score
from nivo_server import config
from nivo_server import database
from nivo_server import logger
from nivo_server import auth
from nivo_server import scan_sessions
from nivo_server import calibration

# Initialize FastAPI
app = FastAPI(
    title="NIVO Posture Scoring API",
    description="Landmark posture scanner, daily calibration and NIVO score",
    version="1.0.0"
)

# Security scheme for Swagger UI
security = HTTPBearer()


# ============================================================================
# PYDANTIC MODELS
# ============================================================================

class RegisterRequest(BaseModel):
    username: str
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class FrameRequest(BaseModel):
    landmarks: List[Landmark]


class CalibrationRequest(BaseModel):
    pain_vas: float
    stiffness_vas: float
    fatigue_vas: float
    hours_seated: float
    finger_floor_distance_cm: float
    mcgill_plank_seconds: float
    functional_tier: Optional[float] = None   # from POST /scans/{id}/capture
    manual_choice: Optional[str] = None       # fail / partial / success fallback


class CalculateRequest(BaseModel):
    daily_log: DailyLog
    assessment: PhysicalAssessment


class RoutineRequest(BaseModel):
    routine_type: str
    duration_seconds: float = 0


# ============================================================================
# DEPENDENCY INJECTION - JWT Auth
# ============================================================================

def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> int:
    """
    Extract user_id from JWT token in Authorization header

    Raises HTTPException if token is missing or invalid
    """
    user_id = auth.extract_user_id(credentials.credentials)

    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return user_id


# ============================================================================
# STARTUP/SHUTDOWN EVENTS
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    logger.log_lifecycle("STARTUP", "Initializing NIVO Posture Scoring Server")

    db_ok = database.test_connection()
    init_ok = database.init_database()

    if db_ok and init_ok:
        logger.log_success("Server Ready", {
            "database": database.engine.dialect.name,
            "scan_ttl_min": config.SCAN_SESSION_TTL_MINUTES
        })
    else:
        logger.log_error("Startup Failed", Exception("Database initialization issue"))


@app.on_event("shutdown")
async def shutdown_event():
    logger.log_lifecycle("SHUTDOWN", f"Dropping {scan_sessions.active_scan_count()} open scans")


# ============================================================================
# HEALTH CHECK
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    db_ok = database.test_connection()

    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "active_scans": scan_sessions.active_scan_count(),
        "timestamp": datetime.utcnow().isoformat()
    }


# ============================================================================
# AUTHENTICATION ROUTES
# ============================================================================

@app.post("/auth/register")
async def register(request: RegisterRequest):
    logger.log_api("POST /auth/register", {"username": request.username})

    success, message, user_id = auth.register_user(
        username=request.username,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name
    )

    if not success:
        raise HTTPException(status_code=400, detail=message)

    return {"success": True, "message": message, "user_id": user_id}


@app.post("/auth/login")
async def login(request: LoginRequest):
    logger.log_api("POST /auth/login", {"username": request.username})

    success, message, token, user_data = auth.login_user(
        username=request.username,
        password=request.password
    )

    if not success:
        raise HTTPException(status_code=401, detail=message)

    return {"success": True, "message": message, "token": token, "user": user_data}


@app.get("/auth/profile")
async def get_profile(user_id: int = Depends(get_current_user)):
    profile = auth.get_user_profile(user_id)

    if not profile:
        raise HTTPException(status_code=404, detail="User not found")

    return profile


# ============================================================================
# SCAN ROUTES (camera capture path)
# ============================================================================

@app.post("/scans/start")
async def start_scan(user_id: int = Depends(get_current_user)):
    """
    Open a posture scan

    Stream landmark frames to POST /scans/{scan_id}/frames, then capture.
    """
    logger.log_api("POST /scans/start", {"user_id": user_id})

    scan_id = scan_sessions.start_scan(user_id)
    return {"success": True, "scan_id": scan_id}


@app.post("/scans/{scan_id}/frames")
async def ingest_frame(scan_id: str, request: FrameRequest, user_id: int = Depends(get_current_user)):
    """
    Score one frame of body landmarks

    Returns the per-frame posture metrics; indeterminate frames come back
    with is_indeterminate=true ("positioning needed").
    """
    result = scan_sessions.process_frame(scan_id, user_id, request.landmarks)

    if result is None:
        raise HTTPException(status_code=404, detail="Scan not found")

    return result


@app.get("/scans/{scan_id}")
async def get_scan(scan_id: str, user_id: int = Depends(get_current_user)):
    status = scan_sessions.get_scan_status(scan_id, user_id)

    if status is None:
        raise HTTPException(status_code=404, detail="Scan not found")

    return status


@app.post("/scans/{scan_id}/reset")
async def reset_scan(scan_id: str, user_id: int = Depends(get_current_user)):
    logger.log_api("POST /scans/{scan_id}/reset", {"scan_id": scan_id})

    if not scan_sessions.reset_scan(scan_id, user_id):
        raise HTTPException(status_code=404, detail="Scan not found")

    return {"success": True, "scan_id": scan_id, "history_size": 0}


@app.post("/scans/{scan_id}/capture")
async def capture_scan(scan_id: str, user_id: int = Depends(get_current_user)):
    """
    Average the last ~3 seconds into a functional tier (0, 1.5 or 3)

    The scan is closed afterwards. Pass the tier to POST /calibrations.
    """
    logger.log_api("POST /scans/{scan_id}/capture", {"scan_id": scan_id})

    result = scan_sessions.capture_scan(scan_id, user_id)

    if result is None:
        raise HTTPException(status_code=404, detail="Scan not found")

    return result


@app.delete("/scans/{scan_id}")
async def discard_scan(scan_id: str, user_id: int = Depends(get_current_user)):
    if not scan_sessions.discard_scan(scan_id, user_id):
        raise HTTPException(status_code=404, detail="Scan not found")

    return {"success": True, "scan_id": scan_id}


# ============================================================================
# SCORING & CALIBRATION ROUTES
# ============================================================================

@app.post("/scores/calculate")
async def calculate_score(request: CalculateRequest):
    """Pure NIVO calculation, nothing is stored"""
    return calculate_nivo_score(request.daily_log, request.assessment)


@app.get("/calibrations/cooldown")
async def get_cooldown(user_id: int = Depends(get_current_user)):
    status = calibration.get_cooldown_status(user_id)

    if status is None:
        raise HTTPException(status_code=404, detail="User not found")

    return status


@app.post("/calibrations")
async def submit_calibration(request: CalibrationRequest, user_id: int = Depends(get_current_user)):
    """
    Daily calibration: check-in + physical tests -> NIVO score record

    The functional tier comes either from a scan capture (functional_tier)
    or from the manual three-button fallback (manual_choice); both yield
    the same tier values.
    """
    logger.log_api("POST /calibrations", {"user_id": user_id})

    if request.manual_choice is not None:
        try:
            tier = manual_tier(request.manual_choice)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        source = "manual"
    elif request.functional_tier is not None:
        if not is_valid_tier(request.functional_tier):
            raise HTTPException(status_code=400, detail="functional_tier must be one of 0, 1.5 or 3")
        tier = request.functional_tier
        source = "scanner"
    else:
        raise HTTPException(status_code=400, detail="Provide functional_tier or manual_choice")

    cooldown = calibration.get_cooldown_status(user_id)
    if cooldown is None:
        raise HTTPException(status_code=404, detail="User not found")

    if not cooldown["allowed"]:
        logger.log_warning("Calibration Blocked", {
            "user_id": user_id,
            "remaining_seconds": cooldown["remaining_seconds"]
        })
        raise HTTPException(
            status_code=429,
            detail=f"Calibration already done, next one available in {cooldown['remaining_seconds']} seconds"
        )

    success, message, payload = calibration.run_daily_calibration(
        user_id=user_id,
        pain_vas=request.pain_vas,
        stiffness_vas=request.stiffness_vas,
        fatigue_vas=request.fatigue_vas,
        hours_seated=request.hours_seated,
        finger_floor_distance_cm=request.finger_floor_distance_cm,
        mcgill_plank_seconds=request.mcgill_plank_seconds,
        functional_tier=tier,
        functional_source=source
    )

    if not success:
        raise HTTPException(status_code=500, detail=message)

    return {"success": True, "message": message, **payload}


@app.get("/scores/current")
async def get_current_score(user_id: int = Depends(get_current_user)):
    """Latest NIVO score with day-over-day decay applied"""
    current = calibration.get_current_score(user_id)

    if current is None:
        raise HTTPException(status_code=404, detail="No score yet")

    return current


@app.get("/scores/history")
async def get_score_history(limit: int = Query(90, ge=1, le=365), user_id: int = Depends(get_current_user)):
    history = calibration.get_score_history(user_id, limit)
    return {"user_id": user_id, "total_records": len(history), "records": history}


@app.post("/routines/complete")
async def complete_routine(request: RoutineRequest, user_id: int = Depends(get_current_user)):
    logger.log_api("POST /routines/complete", {"user_id": user_id, "routine": request.routine_type})

    if request.routine_type not in config.ROUTINE_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown routine type '{request.routine_type}'")

    success, message, payload = calibration.apply_routine_boost(
        user_id, request.routine_type, request.duration_seconds
    )

    if not success:
        raise HTTPException(status_code=400, detail=message)

    return {"success": True, "message": message, **payload}


# ============================================================================
# ROOT ENDPOINT
# ============================================================================

@app.get("/")
async def root():
    """API information"""
    return {
        "name": "NIVO Posture Scoring API",
        "version": "1.0.0",
        "endpoints": {
            "auth": ["/auth/register", "/auth/login", "/auth/profile"],
            "scans": ["/scans/start", "/scans/{id}/frames", "/scans/{id}", "/scans/{id}/reset", "/scans/{id}/capture"],
            "calibration": ["/calibrations", "/calibrations/cooldown"],
            "scores": ["/scores/calculate", "/scores/current", "/scores/history", "/routines/complete"],
            "health": ["/health"]
        },
        "documentation": "/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
