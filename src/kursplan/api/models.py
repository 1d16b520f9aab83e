"""Pydantic models for REST API."""

from datetime import date
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Reconciliation models


class ProblemResponse(BaseModel):
    """A prerequisite problem of one cohort."""

    model_config = ConfigDict(from_attributes=True)

    type: str
    cohort_id: int
    cohort_name: str
    course_id: int
    course_name: str
    course_code: str
    run_id: int
    missing_prereq_id: int
    missing_prereq_name: str
    missing_prereq_code: str


class TeacherConflictResponse(BaseModel):
    """A teacher dropped from a run by the double-booking check."""

    model_config = ConfigDict(from_attributes=True)

    slot_id: int
    run_id: int
    teacher_id: int
    kept_course_id: int
    dropped_course_id: int


class RemovedCourseResponse(BaseModel):
    """Runs removed because no teacher could take them."""

    model_config = ConfigDict(from_attributes=True)

    course_id: int
    course_name: str
    course_code: str
    slot_id: int
    run_ids: list[int]
    cohort_ids: list[int]
    cohort_names: list[str]


class ReconciliationResponse(BaseModel):
    """Response model for a reconciliation pass."""

    model_config = ConfigDict(from_attributes=True)

    changed: bool
    pruned_run_ids: list[int]
    teacher_conflicts: list[TeacherConflictResponse]
    removed_courses: list[RemovedCourseResponse]
    problems: list[ProblemResponse]
    new_problems: list[ProblemResponse]


def report_to_response(report: Any) -> ReconciliationResponse:
    """Convert a ReconciliationReport to ReconciliationResponse."""
    return ReconciliationResponse.model_validate(report)


# Planning models


class RankedCourseResponse(BaseModel):
    """A course ranked for a cohort's next slot."""

    model_config = ConfigDict(from_attributes=True)

    course_id: int
    code: str
    name: str
    score: int
    info: str
    preferred_order_index: int | None
    missing_prerequisites: list[int]


class MergeSuggestionResponse(BaseModel):
    """An existing run a cohort could join."""

    model_config = ConfigDict(from_attributes=True)

    run_id: int
    slot_id: int
    teacher_ids: list[int]
    new_planned_students: int
    reason: str
    warnings: list[str]


class CapacityResponse(BaseModel):
    """Capacity verdict for a student count."""

    model_config = ConfigDict(from_attributes=True)

    valid: bool
    errors: list[str]
    warnings: list[str]


# Availability models


class CoverageResponse(BaseModel):
    """How much of a slot a teacher is marked busy for."""

    model_config = ConfigDict(from_attributes=True)

    teacher_id: int
    slot_id: int
    grain: str
    covered_days: list[date]
    total_days: int
    fraction: float
    is_full: bool
    is_partial: bool


class SlotToggleResponse(BaseModel):
    """Result of toggling a teacher's unavailability for a slot."""

    unavailable: bool
    coverage: CoverageResponse


class DayToggleResponse(BaseModel):
    """Result of toggling a teacher's unavailability for a day."""

    teacher_id: int
    day: date
    unavailable: bool
