"""Database connection management for A2A Desk.

One DatabaseHandle owns the engine, a single long-lived session and the
exclusive lock that serializes every store operation. The handle is created
at startup and passed explicitly to each store.

Usage:
    from a2a_desk.db.connection import DatabaseHandle, create_db_engine, init_db

    engine = create_db_engine()
    init_db(engine)
    handle = DatabaseHandle(engine)
    with handle.locked() as session:
        # ... use session; committed on exit
"""

import logging
import os
import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from a2a_desk.db.models import Base
from a2a_desk.errors.domain import DomainError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0


def get_database_url() -> str:
    """Get database URL from environment or use the default SQLite file.

    Precedence:
    1. DATABASE_URL (canonical)
    2. A2A_DESK_DB_PATH (converted to sqlite URL)
    3. sqlite:///<user data dir>/a2a-client-db/index.db
    """
    database_url = os.environ.get("DATABASE_URL", "").strip()
    if database_url:
        return database_url

    db_path = os.environ.get("A2A_DESK_DB_PATH", "").strip()
    if db_path:
        if db_path.startswith("sqlite:"):
            return db_path
        return f"sqlite:///{db_path}"

    from a2a_desk.utils.paths import ensure_dirs_exist, get_default_db_path

    ensure_dirs_exist()
    return f"sqlite:///{get_default_db_path()}"


def create_db_engine(url: str | None = None) -> Engine:
    """Create the sync engine for the configuration database.

    Args:
        url: SQLAlchemy URL. Resolved via get_database_url() when None.

    Returns:
        Engine with SQLite pragmas installed.
    """
    url = url or get_database_url()
    is_sqlite = url.startswith("sqlite")
    in_memory = is_sqlite and ":memory:" in url
    kwargs: dict[str, Any] = {}
    if in_memory:
        # One connection shared by every thread, or each thread sees an empty DB
        kwargs["poolclass"] = StaticPool
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        echo=os.environ.get("SQL_ECHO", "").lower() == "true",
        **kwargs,
    )

    if is_sqlite and not in_memory:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
            """Enable WAL so external readers never block the app's writer."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.close()

    logger.info("Database URL: %s", engine.url.render_as_string(hide_password=True))
    return engine


class DatabaseHandle:
    """Shared session guarded by one exclusive lock.

    Every store call runs inside locked(), so check-then-write sequences
    (uniqueness validation followed by insert) are atomic with respect to
    other store callers. Two separate locked() blocks are not atomic as a
    pair.

    Args:
        engine: Engine bound to the configuration database.
        lock_timeout: Seconds to wait for the lock before StorageError.
    """

    def __init__(
        self, engine: Engine, lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self._engine = engine
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._session = Session(bind=engine, autoflush=False)

    @property
    def engine(self) -> Engine:
        """Engine the handle's session is bound to."""
        return self._engine

    @contextmanager
    def locked(self) -> Generator[Session, None, None]:
        """Hold the exclusive lock for one store operation.

        Commits on normal exit. Rolls back and re-raises DomainError
        unchanged; wraps SQLAlchemy failures in StorageError.

        Yields:
            The shared Session.

        Raises:
            StorageError: Lock not acquired in time, or statement failure.
        """
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise StorageError(
                f"failed to acquire DB lock within {self._lock_timeout:.0f}s"
            )
        try:
            yield self._session
            self._session.commit()
        except DomainError:
            self._session.rollback()
            raise
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("Database statement failed: %s", e)
            raise StorageError(f"database operation failed: {e}") from e
        except Exception:
            self._session.rollback()
            raise
        finally:
            self._lock.release()

    def close(self) -> None:
        """Close the session and dispose of the connection pool."""
        with self._lock:
            self._session.close()
        self._engine.dispose()


# Initialization functions

# Columns introduced after the first release. Pre-existing tables may lack
# them; (column, DDL) pairs are probed and added on every startup.
_OPTIONAL_COLUMNS: dict[str, list[tuple[str, str]]] = {
    "tb_setting_model": [
        ("created_at", "ALTER TABLE tb_setting_model ADD COLUMN created_at TEXT"),
        ("updated_at", "ALTER TABLE tb_setting_model ADD COLUMN updated_at TEXT"),
    ],
    "tb_setting_a2a_server": [
        (
            "agent_card_json",
            "ALTER TABLE tb_setting_a2a_server ADD COLUMN agent_card_json TEXT",
        ),
        (
            "custom_header_json",
            "ALTER TABLE tb_setting_a2a_server ADD COLUMN custom_header_json TEXT",
        ),
        (
            "protocol_data_object_settings",
            "ALTER TABLE tb_setting_a2a_server "
            "ADD COLUMN protocol_data_object_settings TEXT",
        ),
        ("created_at", "ALTER TABLE tb_setting_a2a_server ADD COLUMN created_at TEXT"),
        ("updated_at", "ALTER TABLE tb_setting_a2a_server ADD COLUMN updated_at TEXT"),
    ],
}


def _ensure_columns_exist(conn: Any) -> None:
    """Add optional columns to existing tables if missing (SQLite only).

    Uses PRAGMA table_info to introspect columns and ALTER TABLE to add
    missing ones. Idempotent; safe to call on every startup. A failed
    ALTER (typically a concurrent initializer winning the race) is logged
    as a warning and skipped.

    Args:
        conn: SQLAlchemy Connection.
    """
    if conn.dialect.name != "sqlite":
        return

    for table, migrations in _OPTIONAL_COLUMNS.items():
        result = conn.execute(text(f"PRAGMA table_info({table})"))
        existing = {row[1] for row in result.fetchall()}
        if not existing:
            continue

        for col_name, ddl in migrations:
            if col_name in existing:
                continue
            logger.info("Migrating table %s: adding %s column", table, col_name)
            try:
                conn.execute(text(ddl))
            except OperationalError as e:
                logger.warning(
                    "Failed to add column %s.%s: %s. Another initializer may "
                    "have added it already.",
                    table, col_name, e,
                )


def init_db(engine: Engine) -> None:
    """Create all tables and add missing optional columns.

    Safe to call multiple times; existing tables are never recreated.

    Args:
        engine: Engine bound to the configuration database.
    """
    Base.metadata.create_all(bind=engine)
    with engine.begin() as conn:
        _ensure_columns_exist(conn)
    logger.info("Configuration tables initialized")
