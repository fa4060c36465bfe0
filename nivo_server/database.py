# Database Module - SQLAlchemy Core (Procedural, No ORM Classes)
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, Float, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.sql import func
from nivo_server import config
from nivo_server import logger

# Create engine - Convert postgresql:// to postgresql+psycopg:// for psycopg3
database_url = config.DATABASE_URL
if database_url.startswith("postgresql://"):
    database_url = database_url.replace("postgresql://", "postgresql+psycopg://", 1)

connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}

engine = create_engine(database_url, echo=False, pool_pre_ping=True, connect_args=connect_args)
metadata = MetaData()

# Table Definitions

# Users Table (identity + entitlement + calibration cooldown stamp)
users_table = Table(
    'users',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('username', String(100), unique=True, nullable=False, index=True),
    Column('password_hash', String(255), nullable=False),
    Column('first_name', String(100), nullable=True),
    Column('last_name', String(100), nullable=True),
    Column('is_pro', Boolean, nullable=False, default=False),
    Column('last_calibration_at', DateTime, nullable=True),
    Column('created_at', DateTime, server_default=func.now()),
)

# Daily Check-ins Table (one row per user per day, upserted)
daily_checkins_table = Table(
    'daily_checkins',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('user_id', Integer, ForeignKey('users.id'), nullable=False, index=True),
    Column('checkin_date', Date, nullable=False),
    Column('pain_vas', Float, nullable=False),
    Column('stiffness_vas', Float, nullable=False),
    Column('fatigue_vas', Float, nullable=False),
    Column('hours_seated', Float, nullable=False),
    Column('stress_level', Integer, nullable=False),
    Column('updated_at', DateTime, server_default=func.now()),
    UniqueConstraint('user_id', 'checkin_date', name='uq_daily_checkin')
)

# Physical Assessments Table (one row per user per day, upserted)
physical_assessments_table = Table(
    'physical_assessments',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('user_id', Integer, ForeignKey('users.id'), nullable=False, index=True),
    Column('assessment_date', Date, nullable=False),
    Column('finger_floor_distance_cm', Float, nullable=False),
    Column('wall_angel_contacts', Integer, nullable=False),
    Column('mcgill_plank_seconds', Float, nullable=False),
    Column('functional_tier', Float, nullable=False),
    Column('functional_source', String(20), nullable=False),  # scanner or manual
    Column('updated_at', DateTime, server_default=func.now()),
    UniqueConstraint('user_id', 'assessment_date', name='uq_physical_assessment')
)

# NIVO Scores Table (append-only, several rows per day allowed)
nivo_scores_table = Table(
    'nivo_scores',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('user_id', Integer, ForeignKey('users.id'), nullable=False, index=True),
    Column('score_date', Date, nullable=False, index=True),
    Column('total_score', Integer, nullable=False),
    Column('subjective_index', Integer, nullable=False),
    Column('functional_index', Integer, nullable=False),
    Column('load_index', Integer, nullable=False),
    Column('decay_applied', Boolean, nullable=False, default=False),
    Column('source', String(20), nullable=False, default='calibration'),  # calibration or routine
    Column('created_at', DateTime, server_default=func.now()),
)


# Database Initialization Functions

def init_database():
    """Create all tables if they don't exist"""
    try:
        metadata.create_all(engine)
        logger.log_db("Tables Ready", {"tables": ", ".join(metadata.tables.keys())})
        return True
    except Exception as e:
        logger.log_error("Database Initialization Failed", e)
        return False


def test_connection():
    """Test database connectivity"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.log_error("Database Connection Failed", e)
        return False


def drop_all_tables():
    """Drop all tables managed by this metadata (use with caution!)"""
    try:
        metadata.drop_all(engine, checkfirst=True)
        logger.log_warning("All Managed Tables Dropped", {})
        return True
    except Exception as e:
        logger.log_error("Drop Tables Failed", e)
        return False


def get_connection():
    """Get a database connection"""
    return engine.connect()


def upsert(conn, table, values: dict, index_elements: list):
    """
    INSERT ... ON CONFLICT DO UPDATE for PostgreSQL and SQLite

    Every column in `values` other than the conflict keys is overwritten.
    """
    dialect_insert = postgresql.insert if engine.dialect.name == "postgresql" else sqlite.insert
    stmt = dialect_insert(table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=index_elements,
        set_={key: stmt.excluded[key] for key in values if key not in index_elements}
    )
    return conn.execute(stmt)
