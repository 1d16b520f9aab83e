"""Persistence - snapshot schema, seed data and snapshot backends."""

from typing import Protocol

from kursplan.persistence.http import HttpSnapshotClient
from kursplan.persistence.repository import SqlSnapshotRepository
from kursplan.persistence.schema import SCHEMA_VERSION, Snapshot, parse_snapshot
from kursplan.persistence.seed import build_seed_data


class SnapshotBackend(Protocol):
    """Anything that can load and save a whole snapshot."""

    def load(self) -> Snapshot: ...

    def save(self, snapshot: Snapshot) -> None: ...

    def close(self) -> None: ...


__all__ = [
    "SCHEMA_VERSION",
    "HttpSnapshotClient",
    "Snapshot",
    "SnapshotBackend",
    "SqlSnapshotRepository",
    "build_seed_data",
    "parse_snapshot",
]
