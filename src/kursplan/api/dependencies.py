"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends

from kursplan.config import PlannerConfig
from kursplan.persistence import SqlSnapshotRepository
from kursplan.store import DataStore

# Global DataStore instance (initialized on app startup)
_store: DataStore | None = None


def init_store(db_path: str = "kursplan.db", config: PlannerConfig | None = None) -> DataStore:
    """Initialize the global DataStore over a SQLite snapshot repository and load it."""
    global _store  # noqa: PLW0603
    _store = DataStore(backend=SqlSnapshotRepository(db_path), config=config)
    _store.load()
    return _store


def close_store() -> None:
    """Close the global DataStore instance."""
    global _store  # noqa: PLW0603
    if _store is not None:
        _store.close()
        _store = None


def get_store() -> Generator[DataStore, None, None]:
    """Dependency that provides the DataStore instance."""
    if _store is None:
        raise RuntimeError("DataStore not initialized. Call init_store() first.")
    yield _store


# Type alias for dependency injection
StoreDep = Annotated[DataStore, Depends(get_store)]
