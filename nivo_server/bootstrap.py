# Bootstrap Script for NIVO Posture Scoring Server
# Run: python -m nivo_server.bootstrap [--fresh] [--demo-user]
import argparse

from nivo_server import config
from nivo_server import logger
from nivo_server.auth import create_demo_user
from nivo_server.database import init_database, test_connection, drop_all_tables


def setup_database(fresh_start=False):
    """Initialize database"""
    logger.log_lifecycle("SETUP", "Setting up database...")

    if not test_connection():
        logger.log_error("Database Setup Failed", Exception("Cannot connect to database"))
        return False

    if fresh_start:
        logger.log_warning("Fresh Start", {"action": "Dropping all tables"})
        drop_all_tables()

    if not init_database():
        return False

    logger.log_success("Database Ready", {})
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Initialize the NIVO scoring database")
    parser.add_argument("--fresh", action="store_true", help="drop existing tables first")
    parser.add_argument("--demo-user", action="store_true", help=f"create '{config.DEMO_USERNAME}'")
    args = parser.parse_args(argv)

    if not setup_database(fresh_start=args.fresh):
        return 1

    if args.demo_user:
        success, user_id = create_demo_user()
        if success:
            logger.log_success("Demo User Ready", {"username": config.DEMO_USERNAME, "user_id": user_id})

    logger.log_lifecycle("SETUP COMPLETE", "")
    print("Next steps:")
    print("  1. Run server: uvicorn nivo_server.main:app --reload --port 8000")
    print("  2. Access API docs: http://localhost:8000/docs")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
