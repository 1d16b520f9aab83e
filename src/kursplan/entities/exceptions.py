"""Custom exceptions for course planning."""


class PlannerError(Exception):
    """Base exception for planning store errors."""


class ValidationError(PlannerError):
    """Hard validation failure that blocks a mutation or save."""


class BusinessRuleError(PlannerError):
    """Input rejected before any mutation was attempted."""


class EntityNotFoundError(PlannerError):
    """Entity with given ID does not exist."""


class DataIntegrityError(PlannerError):
    """A record refers to an entity that is missing from the store."""


class AvailabilityLockedError(PlannerError):
    """Slot is partially unavailable and must be edited per day."""


class ExamDateLockedError(PlannerError):
    """Exam date is locked and must be unlocked before re-selection."""


class PersistenceError(PlannerError):
    """Snapshot could not be persisted; in-memory state was rolled back."""


class SnapshotSchemaError(PlannerError):
    """Snapshot payload is malformed or has an unsupported schema version."""
