"""Business rules for course planning.

Capacity checks, the law-course track and teacher busy-period overlap.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from kursplan.entities.managers.business_logic import (
    MAX_STUDENTS_HARD,
    MAX_STUDENTS_PREFERRED,
    CapacityLimits,
)
from kursplan.entities.models import Cohort, Course, CourseRun, LawType, TeacherAvailability
from kursplan.normalizer import to_iso

__all__ = [
    "MAX_STUDENTS_HARD",
    "MAX_STUDENTS_PREFERRED",
    "AvailabilityCheck",
    "CapacityCheck",
    "CapacityLimits",
    "LAW_COURSES",
    "TWO_BLOCK_COURSES",
    "calculate_planned_students",
    "check_teacher_availability",
    "get_recommended_law_course_order",
    "is_multi_block_course",
    "validate_capacity",
    "validate_law_prerequisites",
]

LAW_COURSES: dict[LawType, str] = {
    LawType.OVERVIEW: "AI180U",
    LawType.GENERAL: "AI192U",
    LawType.SPECIAL: "AI182U",
    LawType.BOSTADSRATT: "AI191U",
    LawType.BESKATTNING: "AI186U",
    LawType.QUALIFIED: "AI189U",
}

TWO_BLOCK_COURSES = ("AI180U", "AI184U")


@dataclass
class CapacityCheck:
    """Result of validate_capacity."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class AvailabilityCheck:
    """Result of check_teacher_availability."""

    available: bool
    reason: str | None = None


def validate_capacity(planned_students: int, limits: CapacityLimits | None = None) -> CapacityCheck:
    """Check a run's student count against the caps.

    Above the hard cap is an error, above the preferred cap a warning.
    """
    limits = limits or CapacityLimits()
    errors: list[str] = []
    warnings: list[str] = []
    if planned_students > limits.hard:
        errors.append(f"För många studenter ({planned_students} > {limits.hard})")
    elif planned_students > limits.preferred:
        warnings.append(f"Varning: Många studenter ({planned_students} > {limits.preferred})")
    return CapacityCheck(valid=not errors, errors=errors, warnings=warnings)


def calculate_planned_students(run: CourseRun, cohorts: Iterable[Cohort]) -> int:
    sizes = {c.cohort_id: c.planned_size for c in cohorts}
    return sum(sizes.get(cohort_id, 0) for cohort_id in run.cohorts)


def check_teacher_availability(
    teacher_id: int,
    start: date,
    end: date,
    records: Iterable[TeacherAvailability],
) -> AvailabilityCheck:
    """Check whether any busy period of a teacher intersects [start, end]."""
    for busy in records:
        if busy.teacher_id != teacher_id or not busy.is_busy:
            continue
        if start <= busy.to_date and end >= busy.from_date:
            return AvailabilityCheck(
                available=False,
                reason=f"Lärare upptagen {to_iso(busy.from_date)} - {to_iso(busy.to_date)}",
            )
    return AvailabilityCheck(available=True)


def is_multi_block_course(course_code: str) -> bool:
    return course_code in TWO_BLOCK_COURSES


def validate_law_prerequisites(
    cohort: Cohort,
    course: Course,
    runs: Iterable[CourseRun],
    courses: Iterable[Course],
) -> CapacityCheck:
    """A law course other than the overview requires the overview in the cohort's sequence."""
    if not course.is_law_course or course.code == LAW_COURSES[LawType.OVERVIEW]:
        return CapacityCheck(valid=True)
    overview = next((c for c in courses if c.code == LAW_COURSES[LawType.OVERVIEW]), None)
    if overview is None:
        return CapacityCheck(valid=True)
    has_overview = any(
        r.course_id == overview.course_id and cohort.cohort_id in r.cohorts for r in runs
    )
    if has_overview:
        return CapacityCheck(valid=True)
    return CapacityCheck(
        valid=False,
        errors=[
            f"{cohort.name} måste genomföra Juridisk översiktskurs före denna juridikkurs"
        ],
    )


def get_recommended_law_course_order(courses: Iterable[Course]) -> list[Course]:
    """Law courses present in the catalogue, in recommended reading order."""
    by_code = {c.code: c for c in courses}
    return [by_code[code] for code in LAW_COURSES.values() if code in by_code]


