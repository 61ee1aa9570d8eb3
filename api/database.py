"""
Database configuration and session management using SQLAlchemy 2.0.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
import logging

from config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """Pool and timeout options for the configured backend."""
    if url.startswith("sqlite"):
        # Local development and tests share one in-process connection
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }

    options = {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": settings.DB_TIMEOUT_SECONDS,
    }
    if url.startswith("postgresql"):
        options["connect_args"] = {
            "connect_timeout": settings.DB_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={settings.DB_TIMEOUT_SECONDS * 1000}",
        }
    return options


# Create database engine
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for SQLAlchemy models
Base = declarative_base()


def get_db():
    """
    Dependency for FastAPI to get database session.

    Usage:
        @app.get("/items")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database tables (called during startup)."""
    # Import all models here to ensure they're registered
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
