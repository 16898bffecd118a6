"""
Database connection management for Extension Shelf.
"""

import functools
import logging
import random
import shutil
import threading
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import OperationalError, DatabaseError, InterfaceError

from .models import Base


logger = logging.getLogger(__name__)


RETRYABLE_ERRORS = (
    'database is locked',
    'database table is locked',
    'cannot commit transaction - sql statements in progress',
    'cannot start a transaction within a transaction',
    'cursor needed to be reset',
)


def _is_retryable(error: Exception) -> bool:
    error_msg = str(error).lower()
    return any(pattern in error_msg for pattern in RETRYABLE_ERRORS)


def _backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff with 10% jitter."""
    delay = min(base_delay * (2 ** attempt), max_delay)
    return delay + random.uniform(0, delay * 0.1)


def database_retry(max_retries: int = 5, base_delay: float = 0.1, max_delay: float = 2.0):
    """Decorator for database operations with exponential backoff retry logic."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            func_name = f"{func.__module__}.{func.__qualname__}"

            for attempt in range(max_retries):
                try:
                    result = func(*args, **kwargs)
                    if attempt > 0:
                        logger.info(f"DB_RETRY: {func_name} succeeded after {attempt + 1} attempts")
                    return result

                except (OperationalError, DatabaseError, InterfaceError) as e:
                    if not _is_retryable(e) or attempt == max_retries - 1:
                        logger.error(f"DB_RETRY: {func_name} failed with {type(e).__name__}: {e}")
                        raise

                    logger.debug(f"DB_RETRY: {func_name} attempt {attempt + 1} failed, retrying: {e}")
                    time.sleep(_backoff_delay(attempt, base_delay, max_delay))

        return wrapper
    return decorator


class DatabaseManager:
    """Manages database connections and operations with session pooling."""

    def __init__(self, database_path: str, max_concurrent_sessions: int = 1):
        self.database_path = Path(database_path)
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

        # Session pool management - serialized access by default
        self.max_concurrent_sessions = max_concurrent_sessions
        self._session_semaphore = threading.Semaphore(max_concurrent_sessions)
        self._session_wait_timeout = 5.0  # seconds

    def initialize_database(self) -> None:
        """Initialize database connection and create tables."""
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

        database_url = f"sqlite:///{self.database_path}"

        self.engine = create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={
                "check_same_thread": False,  # Sessions are used from worker threads
                "timeout": 30,
            },
            echo=False,
        )

        self._configure_sqlite()

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

        Base.metadata.create_all(bind=self.engine)

        if not self.test_connection():
            raise RuntimeError("Database connection test failed")

        logger.info(f"Database initialized at {self.database_path}")

    def _configure_sqlite(self) -> None:
        """Configure SQLite for optimal performance."""
        @event.listens_for(self.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")  # Write-Ahead Logging
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA temp_store=MEMORY")
            cursor.close()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get database session, limiting concurrent access through the session pool."""
        if not self.SessionLocal:
            raise RuntimeError("Database not initialized. Call initialize_database() first.")

        acquired = self._session_semaphore.acquire(timeout=self._session_wait_timeout)
        if not acquired:
            raise RuntimeError(f"Failed to acquire database session within {self._session_wait_timeout}s timeout. "
                               f"Maximum {self.max_concurrent_sessions} concurrent sessions exceeded.")

        session = self.SessionLocal()
        try:
            yield session
            self._commit_with_retry(session)
        except Exception:
            try:
                session.rollback()
            except Exception as rollback_error:
                logger.error(f"SESSION: Failed to rollback session {id(session)}: {rollback_error}")
            raise
        finally:
            session.close()
            self._session_semaphore.release()

    def _commit_with_retry(self, session: Session, max_retries: int = 5, base_delay: float = 0.1):
        """Commit session with retry logic for locking conflicts."""
        for attempt in range(max_retries):
            try:
                session.commit()
                if attempt > 0:
                    logger.info(f"SESSION: Session {id(session)} commit succeeded after {attempt + 1} attempts")
                return

            except (OperationalError, DatabaseError, InterfaceError) as e:
                if not _is_retryable(e) or attempt == max_retries - 1:
                    raise

                session.rollback()
                time.sleep(_backoff_delay(attempt, base_delay, 2.0))

    def create_backup(self, backup_path: Optional[str] = None) -> Path:
        """Create a manual database backup."""
        if not self.database_path.exists():
            raise FileNotFoundError("Database file does not exist")

        if backup_path:
            backup_file = Path(backup_path)
        else:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup_file = self.database_path.parent / f"extension_shelf_backup_{timestamp}.db"

        # Flush WAL content into the main file first
        with self.engine.connect() as conn:
            conn.execute(text("PRAGMA wal_checkpoint(FULL)"))

        backup_file.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(self.database_path, backup_file)
        logger.info(f"Created database backup: {backup_file}")

        return backup_file

    def get_database_info(self) -> dict:
        """Get database information and statistics."""
        if not self.engine:
            return {"status": "not_initialized"}

        info = {
            "status": "initialized",
            "path": str(self.database_path),
            "exists": self.database_path.exists(),
        }

        from .models import Extension, Setting

        with self.get_session() as session:
            info["table_counts"] = {
                "extensions": session.query(Extension).count(),
                "settings": session.query(Setting).count(),
            }

        return info

    def close(self) -> None:
        """Close database connections."""
        if self.engine:
            self.engine.dispose()
            logger.info("Database connections closed")

    def test_connection(self) -> bool:
        """Test database connection."""
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
            return True
        except (OperationalError, DatabaseError) as e:
            logger.error(f"Database connection test failed: {e}")
            return False
