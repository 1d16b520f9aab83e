"""Entities - records, errors and per-collection managers of the planning data."""

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
from kursplan.entities.models import (
    AvailabilityType,
    Cohort,
    Course,
    CourseRun,
    CourseSlot,
    CourseSlotDay,
    DayState,
    Department,
    ExamDate,
    LawType,
    PlanningData,
    Slot,
    SlotDay,
    Teacher,
    TeacherAvailability,
    TeachingDay,
)

__all__ = [
    "AvailabilityLockedError",
    "AvailabilityType",
    "BusinessRuleError",
    "Cohort",
    "Course",
    "CourseRun",
    "CourseSlot",
    "CourseSlotDay",
    "DataIntegrityError",
    "DayState",
    "Department",
    "EntityNotFoundError",
    "EventManager",
    "ExamDate",
    "ExamDateLockedError",
    "LawType",
    "PersistenceError",
    "PlanningData",
    "PlannerError",
    "SnapshotSchemaError",
    "Slot",
    "SlotDay",
    "Teacher",
    "TeacherAvailability",
    "TeachingDay",
    "ValidationError",
]
