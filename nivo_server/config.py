# Configuration Module - Procedural approach with module-level variables
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./nivo.db")  # postgresql://... in production

# JWT Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")  # Required: Set in .env file
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Scan Session Configuration
SCAN_SESSION_TTL_MINUTES = int(os.getenv("SCAN_SESSION_TTL_MINUTES", "15"))  # idle scans are dropped
FRAME_LOG_INTERVAL = 100  # log every Nth frame of a scan

# Demo account created by `python -m nivo_server.bootstrap --demo-user`
DEMO_USERNAME = os.getenv("DEMO_USERNAME", "demo_user")
DEMO_PASSWORD = os.getenv("DEMO_PASSWORD", "test123")

# Routine types accepted by POST /routines/complete
ROUTINE_TYPES = ["daily_loop", "reset", "stiffness", "decompression", "emergency", "advanced"]
