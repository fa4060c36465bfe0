# Authentication Module - JWT-based Auth (Procedural)
import jwt
import hashlib
from datetime import datetime, timedelta
from typing import Optional, Dict, Tuple
from sqlalchemy import select, insert, update
from nivo_server import config
from nivo_server import logger
from nivo_server.database import users_table, get_connection


def hash_password(password: str) -> str:
    """Hash password using SHA-256"""
    return hashlib.sha256(password.encode()).hexdigest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    return hash_password(plain_password) == hashed_password


def create_jwt_token(user_id: int, username: str) -> str:
    """
    Create JWT token for user

    Args:
        user_id: User's database ID
        username: Username

    Returns:
        JWT token string
    """
    expiration = datetime.utcnow() + timedelta(hours=config.JWT_EXPIRATION_HOURS)

    payload = {
        "user_id": user_id,
        "username": username,
        "exp": expiration,
        "iat": datetime.utcnow()
    }

    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_jwt_token(token: str) -> Optional[Dict]:
    """
    Decode and verify JWT token

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.log_warning("JWT Expired", {})
        return None
    except jwt.InvalidTokenError as e:
        logger.log_error("JWT Decode Failed", e)
        return None


def extract_user_id(token: str) -> Optional[int]:
    payload = decode_jwt_token(token)
    if payload:
        return payload.get("user_id")
    return None


def _public_user(user_dict: Dict) -> Dict:
    return {
        "id": user_dict['id'],
        "username": user_dict['username'],
        "first_name": user_dict['first_name'],
        "last_name": user_dict['last_name'],
        "is_pro": bool(user_dict['is_pro']),
    }


def register_user(username: str, password: str, first_name: Optional[str] = None,
                  last_name: Optional[str] = None, is_pro: bool = False) -> Tuple[bool, str, Optional[int]]:
    """
    Register a new user

    Returns:
        Tuple of (success: bool, message: str, user_id: Optional[int])
    """
    try:
        with get_connection() as conn:
            existing = conn.execute(
                select(users_table.c.id).where(users_table.c.username == username)
            ).first()

            if existing:
                logger.log_warning("Registration Refused", {"username": username, "reason": "Username already exists"})
                return False, "Username already exists", None

            result = conn.execute(insert(users_table).values(
                username=username,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                is_pro=is_pro
            ))
            conn.commit()
            user_id = result.inserted_primary_key[0]

        logger.log_auth("User Registered", {"user_id": user_id, "username": username})
        return True, "User registered successfully", user_id

    except Exception as e:
        logger.log_error("Registration Failed", e, {"username": username})
        return False, f"Registration error: {str(e)}", None


def login_user(username: str, password: str) -> Tuple[bool, str, Optional[str], Optional[Dict]]:
    """
    Authenticate user and generate JWT token

    Returns:
        Tuple of (success, message, token, user_data)
    """
    try:
        with get_connection() as conn:
            result = conn.execute(select(users_table).where(users_table.c.username == username)).first()

        if not result:
            logger.log_warning("Login Refused", {"username": username, "reason": "User not found"})
            return False, "Invalid credentials", None, None

        user_dict = dict(result._mapping)
        if not verify_password(password, user_dict['password_hash']):
            logger.log_warning("Login Refused", {"username": username, "reason": "Incorrect password"})
            return False, "Invalid credentials", None, None

        token = create_jwt_token(user_dict['id'], username)
        logger.log_auth("User Login", {"user_id": user_dict['id'], "username": username})

        return True, "Login successful", token, _public_user(user_dict)

    except Exception as e:
        logger.log_error("Login Failed", e, {"username": username})
        return False, f"Login error: {str(e)}", None, None


def get_user_profile(user_id: int) -> Optional[Dict]:
    """
    Fetch user profile by ID, including entitlement and last calibration
    """
    try:
        with get_connection() as conn:
            result = conn.execute(select(users_table).where(users_table.c.id == user_id)).first()

        if not result:
            return None

        user_dict = dict(result._mapping)
        profile = _public_user(user_dict)
        profile["last_calibration_at"] = (
            user_dict['last_calibration_at'].isoformat() if user_dict['last_calibration_at'] else None
        )
        return profile

    except Exception as e:
        logger.log_error("Profile Fetch Failed", e, {"user_id": user_id})
        return None


def set_pro_status(user_id: int, is_pro: bool) -> bool:
    """Entitlement flag, flipped by the payment collaborator"""
    try:
        with get_connection() as conn:
            conn.execute(update(users_table).where(users_table.c.id == user_id).values(is_pro=is_pro))
            conn.commit()
        logger.log_auth("Entitlement Updated", {"user_id": user_id, "is_pro": is_pro})
        return True
    except Exception as e:
        logger.log_error("Entitlement Update Failed", e, {"user_id": user_id})
        return False


# Helper function to create default demo user
def create_demo_user():
    """Create a default demo user for development"""
    success, message, user_id = register_user(
        username=config.DEMO_USERNAME,
        password=config.DEMO_PASSWORD,
        first_name="Demo"
    )

    if not success:
        logger.log_warning("Demo User Creation", {"message": message})

    return success, user_id
