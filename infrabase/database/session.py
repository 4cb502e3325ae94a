# infrabase/database/session.py
"""
Database Session Management
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import logging

from infrabase.config import Settings
from .models import Base

logger = logging.getLogger(__name__)


def _create_engine(database_url: str, echo: bool = False,
                   pool_size: int = 5, max_overflow: int = 10) -> Engine:
    """Create engine based on database URL"""
    if database_url.startswith("sqlite"):
        # SQLite specific settings
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )

        # Enable foreign keys for SQLite
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # PostgreSQL or other databases
    return create_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        echo=echo,
    )


class Database:
    """
    Owns the engine and session factory for one process
    """

    def __init__(self, database_url: str, echo: bool = False,
                 pool_size: int = 5, max_overflow: int = 10):
        self.engine = _create_engine(database_url, echo, pool_size, max_overflow)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    def init_db(self) -> None:
        """
        Initialize database tables
        """
        logger.info("Initializing database...")
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database initialized successfully")

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """
        One unit of work: commit on success, roll back on error,
        and always release the connection.

        Usage:
            with database.transaction() as db:
                ...
        """
        db = self.SessionLocal()
        try:
            with db.begin():
                yield db
        finally:
            db.close()

    def get_db(self) -> Generator[Session, None, None]:
        """Session generator for FastAPI dependencies"""
        with self.transaction() as db:
            yield db

    def check_connection(self) -> bool:
        """Check if database connection is healthy"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()
