"""Rules - prerequisites, validation, availability and co-reading heuristics."""

from kursplan.rules.availability import AvailabilityEngine
from kursplan.rules.business import (
    LAW_COURSES,
    MAX_STUDENTS_HARD,
    MAX_STUDENTS_PREFERRED,
    TWO_BLOCK_COURSES,
    AvailabilityCheck,
    CapacityCheck,
    CapacityLimits,
    calculate_planned_students,
    check_teacher_availability,
    get_recommended_law_course_order,
    is_multi_block_course,
    validate_capacity,
    validate_law_prerequisites,
)
from kursplan.rules.matching import MatchingHeuristic
from kursplan.rules.models import (
    Coverage,
    CoverageGrain,
    MergeSuggestion,
    PrerequisiteClosure,
    Problem,
    ProblemType,
    RankedCourse,
    ReconciliationReport,
    RemovedCourse,
    TeacherConflict,
)
from kursplan.rules.prerequisites import PrerequisiteManager
from kursplan.rules.validator import DataValidator, assert_non_overlapping_ranges

__all__ = [
    "LAW_COURSES",
    "MAX_STUDENTS_HARD",
    "MAX_STUDENTS_PREFERRED",
    "TWO_BLOCK_COURSES",
    "AvailabilityCheck",
    "AvailabilityEngine",
    "CapacityCheck",
    "CapacityLimits",
    "Coverage",
    "CoverageGrain",
    "DataValidator",
    "MatchingHeuristic",
    "MergeSuggestion",
    "PrerequisiteClosure",
    "PrerequisiteManager",
    "Problem",
    "ProblemType",
    "RankedCourse",
    "ReconciliationReport",
    "RemovedCourse",
    "TeacherConflict",
    "assert_non_overlapping_ranges",
    "calculate_planned_students",
    "check_teacher_availability",
    "get_recommended_law_course_order",
    "is_multi_block_course",
    "validate_capacity",
    "validate_law_prerequisites",
]
