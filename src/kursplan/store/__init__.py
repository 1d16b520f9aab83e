"""Store - the planning state façade and its error types."""

from kursplan.entities.events import EventManager
from kursplan.entities.exceptions import (
    AvailabilityLockedError,
    BusinessRuleError,
    DataIntegrityError,
    EntityNotFoundError,
    ExamDateLockedError,
    PersistenceError,
    PlannerError,
    SnapshotSchemaError,
    ValidationError,
)
from kursplan.store.store import DataStore

__all__ = [
    "AvailabilityLockedError",
    "BusinessRuleError",
    "DataIntegrityError",
    "DataStore",
    "EntityNotFoundError",
    "EventManager",
    "ExamDateLockedError",
    "PersistenceError",
    "PlannerError",
    "SnapshotSchemaError",
    "ValidationError",
]
