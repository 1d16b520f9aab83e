"""SQLite engine setup for the snapshot repository."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from kursplan.persistence.tables import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

MEMORY = ":memory:"
BUSY_TIMEOUT_MS = 5000

# Applied to every new DBAPI connection; the snapshot tables rely on foreign keys
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",
    f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}",
)


def _apply_pragmas(dbapi_connection: Any, _connection_record: object) -> None:
    cursor = dbapi_connection.cursor()
    try:
        for pragma in CONNECTION_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def _build_engine(db_path: str) -> Engine:
    if db_path == MEMORY:
        # A single shared connection, otherwise each session gets its own empty database
        return create_engine(
            "sqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    # The API serves requests from a thread pool
    return create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})


class Database:
    """Lazily created engine and sessions for one planner database.

    Use ``":memory:"`` for a throwaway database; any other value is a file
    path whose parent directory is created on first use.
    """

    def __init__(self, db_path: str = "kursplan.db") -> None:
        self.db_path = db_path
        self._engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = _build_engine(self.db_path)
            event.listen(self._engine, "connect", _apply_pragmas)
        return self._engine

    def create_tables(self) -> None:
        """Create the snapshot tables that do not exist yet."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        if self._sessions is None:
            self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._sessions()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on any error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def journal_mode(self) -> str:
        """Current SQLite journal mode, lower case (``"memory"`` for ``:memory:``)."""
        with self.engine.connect() as conn:
            return str(conn.execute(text("PRAGMA journal_mode")).scalar()).lower()

    def is_wal_mode(self) -> bool:
        return self.journal_mode() == "wal"

    def close(self) -> None:
        """Dispose of the engine; the next use opens a new one."""
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._sessions = None
