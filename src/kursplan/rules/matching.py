"""Co-reading (samläsning) suggestions and depot ranking for cohorts."""

from __future__ import annotations

import logging

from kursplan.entities.managers.availability import AvailabilityManager  # noqa: TC001
from kursplan.entities.managers.business_logic import BusinessLogicManager  # noqa: TC001
from kursplan.entities.managers.cohorts import CohortsManager  # noqa: TC001
from kursplan.entities.managers.course_runs import CourseRunsManager  # noqa: TC001
from kursplan.entities.managers.courses import CoursesManager  # noqa: TC001
from kursplan.entities.managers.slots import SlotsManager  # noqa: TC001
from kursplan.entities.models import Cohort, Course, CourseRun, LawType
from kursplan.rules.availability import AvailabilityEngine  # noqa: TC001
from kursplan.rules.business import check_teacher_availability, validate_capacity
from kursplan.rules.models import MergeSuggestion, RankedCourse
from kursplan.rules.prerequisites import PrerequisiteManager  # noqa: TC001

logger = logging.getLogger(__name__)

DEFAULT_COHORT_SIZE = 30
MISSING_ORDER_INDEX = 999
MERGE_REASON = "Kan samläsas med befintlig kursomgång"


class MatchingHeuristic:
    """Matches cohorts to existing course runs under the capacity caps."""

    def __init__(
        self,
        courses: CoursesManager,
        cohorts: CohortsManager,
        runs: CourseRunsManager,
        slots: SlotsManager,
        availability: AvailabilityManager,
        engine: AvailabilityEngine,
        prerequisites: PrerequisiteManager,
        business_logic: BusinessLogicManager,
        default_cohort_size: int = DEFAULT_COHORT_SIZE,
    ) -> None:
        self._courses = courses
        self._cohorts = cohorts
        self._runs = runs
        self._slots = slots
        self._availability = availability
        self._engine = engine
        self._prerequisites = prerequisites
        self._business_logic = business_logic
        self._default_cohort_size = default_cohort_size

    def suggest_course_run_merge(self, course_id: int, cohort_id: int) -> list[MergeSuggestion]:
        """Find existing runs of a course the cohort could join.

        A run qualifies when none of its teachers is unavailable for the run's
        slot and the new total stays within the hard cap.

        Args:
            course_id: Course the cohort wants to read.
            cohort_id: Cohort to place.

        Returns:
            Suggestions ordered by run ID.

        Raises:
            EntityNotFoundError: If the course or cohort does not exist.
        """
        self._courses.require(course_id)
        cohort = self._cohorts.require(cohort_id)
        limits = self._business_logic.limits()
        suggestions: list[MergeSuggestion] = []

        for run in sorted(self._runs.for_course(course_id), key=lambda r: r.run_id):
            if cohort_id in run.cohorts:
                continue
            slot = self._slots.get(run.slot_id)
            if slot is None:
                continue
            if any(
                self._engine.is_teacher_unavailable(t, slot_id=slot.slot_id) for t in run.teachers
            ):
                continue

            new_total = run.planned_students + cohort.planned_size
            capacity = validate_capacity(new_total, limits)
            if not capacity.valid:
                continue

            warnings = list(capacity.warnings)
            for teacher_id in run.teachers:
                check = check_teacher_availability(
                    teacher_id, slot.start_date, slot.end_date, self._availability.all()
                )
                if not check.available and check.reason:
                    warnings.append(check.reason)

            suggestions.append(
                MergeSuggestion(
                    run_id=run.run_id,
                    slot_id=run.slot_id,
                    teacher_ids=list(run.teachers),
                    new_planned_students=new_total,
                    reason=MERGE_REASON,
                    warnings=warnings,
                )
            )
        return suggestions

    def rank_available_courses(
        self, cohort_id: int, exclude_run_id: int | None = None
    ) -> list[RankedCourse]:
        """Rank the courses a cohort could read next.

        Courses already in the cohort's sequence are left out, and law courses
        other than the overview stay hidden until the overview is in the
        sequence. The rest are sorted by co-reading potential, then by
        preferred order. When the cohort has no course yet and nobody reads
        anything at its first available slot, the overview course goes first.

        Args:
            cohort_id: Cohort to rank for.
            exclude_run_id: A run of the cohort to ignore (the row being edited).

        Returns:
            Ranked courses, best first.
        """
        cohort = self._cohorts.require(cohort_id)
        cohort_size = cohort.planned_size or self._default_cohort_size
        cohort_runs = [r for r in self._runs.for_cohort(cohort_id) if r.run_id != exclude_run_id]
        used = {r.course_id for r in cohort_runs}
        has_overview = any(self._is_overview(self._courses.get(r.course_id)) for r in cohort_runs)

        available_starts = sorted(
            {s.start_date for s in self._slots.all() if s.start_date >= cohort.start_date}
        )
        score_colocation = self._business_logic.is_enabled("maximizeColocation")

        ranked: list[RankedCourse] = []
        for course in self._courses.all():
            if course.course_id in used:
                continue
            if course.is_law_course and not self._is_overview(course) and not has_overview:
                continue
            entry = RankedCourse(
                course_id=course.course_id,
                code=course.code,
                name=course.name,
                preferred_order_index=course.preferred_order_index,
                missing_prerequisites=self._prerequisites.get_missing_prerequisites(
                    cohort_id, course.course_id
                ),
            )
            if score_colocation:
                entry.score, entry.info = self._co_reading_score(
                    course, cohort, cohort_size, set(available_starts)
                )
            ranked.append(entry)

        overview_first = not cohort_runs and not self._others_at_first_date(
            cohort, available_starts
        )
        overview_ids = {c.course_id for c in self._courses.all() if self._is_overview(c)}

        def sort_key(entry: RankedCourse) -> tuple[int, int, int]:
            index = entry.preferred_order_index
            return (
                0 if overview_first and entry.course_id in overview_ids else 1,
                -entry.score,
                MISSING_ORDER_INDEX if index is None else index,
            )

        ranked.sort(key=sort_key)
        return ranked

    def _co_reading_score(
        self, course: Course, cohort: Cohort, cohort_size: int, available_starts: set
    ) -> tuple[int, str]:
        """Score the best run of other cohorts this cohort could join.

        The first run within the preferred cap wins outright; otherwise the
        last run within the hard cap gives a lower score.
        """
        limits = self._business_logic.limits()
        near_limit: tuple[int, str] | None = None
        for run in self._candidate_runs(course, cohort, available_starts):
            current = run.planned_students
            total = current + cohort_size
            if total <= limits.preferred:
                return (
                    limits.preferred - total,
                    f" ★ Samläsning möjlig ({current}+{cohort_size}={total} stud)",
                )
            if total <= limits.hard:
                near_limit = (50 - total, f" ⚠ Samläsning nära gräns ({total} stud)")
        return near_limit or (0, "")

    def _candidate_runs(
        self, course: Course, cohort: Cohort, available_starts: set
    ) -> list[CourseRun]:
        candidates = []
        for run in sorted(self._runs.for_course(course.course_id), key=lambda r: r.run_id):
            if cohort.cohort_id in run.cohorts:
                continue
            slot = self._slots.get(run.slot_id)
            if slot is not None and slot.start_date in available_starts:
                candidates.append(run)
        return candidates

    def _others_at_first_date(self, cohort: Cohort, available_starts: list) -> bool:
        if not available_starts:
            return False
        first = available_starts[0]
        for run in self._runs.all():
            if cohort.cohort_id in run.cohorts:
                continue
            slot = self._slots.get(run.slot_id)
            if slot is not None and slot.start_date == first:
                return True
        return False

    @staticmethod
    def _is_overview(course: Course | None) -> bool:
        return course is not None and course.law_type == LawType.OVERVIEW
