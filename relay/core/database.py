"""
Database engine and session management.
"""
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from relay.core.config import Settings
from relay.core.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def create_db_engine(settings: Settings) -> Engine:
    """Create the database engine with bounded connection waits."""
    url = settings.database_url
    timeout = settings.database_timeout_seconds
    connect_args = {}
    engine_kwargs = {}

    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        # Seconds to wait on a locked database before failing
        connect_args["timeout"] = timeout

        # Extract file path from sqlite:///./path/to/db.db and ensure directory exists
        db_path = url.replace("sqlite:///", "")
        if db_path and db_path != ":memory:" and not db_path.startswith("sqlite:"):
            db_dir = Path(db_path).parent
            if not db_dir.exists():
                db_dir.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created database directory: {db_dir}")
    else:
        engine_kwargs["pool_timeout"] = timeout
        if url.startswith("postgresql"):
            connect_args["connect_timeout"] = int(timeout)

    engine = create_engine(
        url,
        connect_args=connect_args,
        echo=settings.debug,
        pool_pre_ping=True,
        **engine_kwargs,
    )

    logger.info("Database engine created", extra={"extra_data": {"database_url": engine.url.render_as_string(hide_password=True)}})
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """Create database tables."""
    from relay.models import message  # noqa: F401 - Import to register models

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def check_db_connection(engine: Engine) -> bool:
    """Check if database is reachable."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
