"""Result records produced by the planning rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date  # noqa: TC003 - used at runtime by dataclasses
from enum import StrEnum


class ProblemType(StrEnum):
    """Kind of prerequisite problem."""

    MISSING = "missing"
    BEFORE_PREREQUISITE = "before_prerequisite"


class CoverageGrain(StrEnum):
    """Granularity at which a teacher is marked unavailable for a slot."""

    NONE = "none"
    DAY = "day"
    SLOT = "slot"


@dataclass(frozen=True)
class Problem:
    """A prerequisite ordering problem for one cohort and course run."""

    type: ProblemType
    cohort_id: int
    cohort_name: str
    course_id: int
    course_name: str
    course_code: str
    run_id: int
    missing_prereq_id: int
    missing_prereq_name: str
    missing_prereq_code: str

    @property
    def key(self) -> tuple[str, int, int, int]:
        return (self.type.value, self.cohort_id, self.course_id, self.missing_prereq_id)


@dataclass
class PrerequisiteClosure:
    """Transitive prerequisites of a course.

    Attributes:
        course_id: The course the closure was computed for.
        course_ids: Prerequisites, direct ones first.
        cycle_detected: True if the walk reached a course already on its path.
    """

    course_id: int
    course_ids: list[int] = field(default_factory=list)
    cycle_detected: bool = False

    def __contains__(self, course_id: object) -> bool:
        return course_id in self.course_ids


@dataclass(frozen=True)
class TeacherConflict:
    """A teacher dropped from a run because another course claimed them in the slot."""

    slot_id: int
    run_id: int
    teacher_id: int
    kept_course_id: int
    dropped_course_id: int


@dataclass
class RemovedCourse:
    """Runs of a course removed from a slot because no teacher could take them."""

    course_id: int
    course_name: str
    course_code: str
    slot_id: int
    run_ids: list[int] = field(default_factory=list)
    cohort_ids: list[int] = field(default_factory=list)
    cohort_names: list[str] = field(default_factory=list)


@dataclass
class ReconciliationReport:
    """Everything the reconciliation pass changed or found."""

    pruned_run_ids: list[int] = field(default_factory=list)
    teacher_conflicts: list[TeacherConflict] = field(default_factory=list)
    removed_courses: list[RemovedCourse] = field(default_factory=list)
    problems: list[Problem] = field(default_factory=list)
    new_problems: list[Problem] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """True if the pass modified the state."""
        return bool(self.pruned_run_ids or self.teacher_conflicts or self.removed_courses)


@dataclass
class Coverage:
    """How much of a slot a teacher is marked busy for."""

    teacher_id: int
    slot_id: int
    grain: CoverageGrain
    covered_days: list[date] = field(default_factory=list)
    total_days: int = 0

    @property
    def fraction(self) -> float:
        if self.grain == CoverageGrain.SLOT:
            return 1.0
        if self.total_days == 0:
            return 0.0
        return len(self.covered_days) / self.total_days

    @property
    def is_full(self) -> bool:
        if self.grain == CoverageGrain.SLOT:
            return True
        return self.total_days > 0 and len(self.covered_days) == self.total_days

    @property
    def is_partial(self) -> bool:
        return not self.is_full and bool(self.covered_days)


@dataclass
class MergeSuggestion:
    """An existing run a cohort could join (co-reading)."""

    run_id: int
    slot_id: int
    teacher_ids: list[int]
    new_planned_students: int
    reason: str
    warnings: list[str] = field(default_factory=list)


@dataclass
class RankedCourse:
    """A depot course ranked for a cohort's next slot."""

    course_id: int
    code: str
    name: str
    score: int = 0
    info: str = ""
    preferred_order_index: int | None = None
    missing_prerequisites: list[int] = field(default_factory=list)
