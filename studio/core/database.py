"""
Database Configuration
SQLAlchemy engine and session management.
Supports SQLite (default) and any other SQLAlchemy backend.
"""

import logging
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from studio.core.config import settings

logger = logging.getLogger(__name__)

# Detect if using SQLite
is_sqlite = settings.DATABASE_URL.startswith("sqlite")


def _ensure_sqlite_dir(url: str):
    """Create the parent directory of a file-based SQLite database."""
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def enable_sqlite_pragmas(engine):
    """Turn on WAL journaling and foreign keys for every SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create database engine with appropriate settings
if is_sqlite:
    _ensure_sqlite_dir(settings.DATABASE_URL)
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},  # Needed for SQLite
    )
    enable_sqlite_pragmas(engine)
else:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def init_db():
    """Initialize database tables and storage directories."""
    from studio.models import GenerationJob, GeneratedImage, Setting  # noqa

    Base.metadata.create_all(bind=engine)
    Path(settings.IMAGES_DIR).mkdir(parents=True, exist_ok=True)
    Path(settings.THUMBNAILS_DIR).mkdir(parents=True, exist_ok=True)
    logger.info(f"[DB] Tables ready on {engine.url.render_as_string(hide_password=True)}")
