"""Database engine and session management for picture metadata."""

import logging
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from picture_store.models import Base
from config import get_settings

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for ``database_url``.

    For file-backed SQLite the parent directory is created first.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

    # sqlite:///path/to/db.sqlite3
    db_path = database_url.replace("sqlite:///", "")
    if db_path and db_path != ":memory:" and database_url.startswith("sqlite:///"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    # Endpoints run in the threadpool, sessions may cross threads
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        echo=echo,
    )


settings = get_settings()

engine = create_db_engine(settings.database_url, echo=settings.database_echo)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def get_db() -> Generator[Session, None, None]:
    """Dependency to get database session.

    Yields a database session and ensures it's closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create the pictures table if it does not exist."""
    logger.info(f"Creating database tables at {settings.database_url}")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

