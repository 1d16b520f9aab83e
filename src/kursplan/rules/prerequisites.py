"""PrerequisiteManager - prerequisite closure and ordering checks."""

from __future__ import annotations

import logging

from kursplan.entities.exceptions import DataIntegrityError
from kursplan.entities.managers.cohorts import CohortsManager  # noqa: TC001
from kursplan.entities.managers.course_runs import CourseRunsManager  # noqa: TC001
from kursplan.entities.managers.courses import CoursesManager  # noqa: TC001
from kursplan.entities.managers.slots import SlotsManager  # noqa: TC001
from kursplan.entities.models import Cohort, Course, CourseRun, Slot
from kursplan.rules.models import PrerequisiteClosure, Problem, ProblemType

logger = logging.getLogger(__name__)


class PrerequisiteManager:
    """Resolves prerequisite chains and scans cohorts for ordering violations.

    Only direct prerequisites are checked against the schedule; the transitive
    closure is used for ranking hints.
    """

    def __init__(
        self,
        courses: CoursesManager,
        cohorts: CohortsManager,
        runs: CourseRunsManager,
        slots: SlotsManager,
    ) -> None:
        self._courses = courses
        self._cohorts = cohorts
        self._runs = runs
        self._slots = slots

    def get_all_prerequisites(self, course_id: int) -> PrerequisiteClosure:
        """Compute the transitive prerequisites of a course.

        Direct prerequisites come first, followed by theirs. A cycle stops
        expansion along that path and sets ``cycle_detected``; this never raises.

        Args:
            course_id: Course to resolve.

        Returns:
            The closure, without the course itself.
        """
        closure = PrerequisiteClosure(course_id=course_id)
        expanded: set[int] = set()

        def walk(current_id: int, path: frozenset[int]) -> None:
            course = self._courses.get(current_id)
            if course is None:
                return
            followers: list[int] = []
            for prereq_id in course.prerequisites:
                if prereq_id in path:
                    closure.cycle_detected = True
                    continue
                if prereq_id not in closure.course_ids:
                    closure.course_ids.append(prereq_id)
                followers.append(prereq_id)
            for prereq_id in followers:
                if prereq_id in expanded:
                    continue
                expanded.add(prereq_id)
                walk(prereq_id, path | {prereq_id})

        walk(course_id, frozenset({course_id}))
        if closure.cycle_detected:
            logger.warning("Prerequisite cycle reachable from course %s", course_id)
        return closure

    def find_courses_with_missing_prerequisites(self) -> list[Problem]:
        """Scan every cohort's runs for missing or mis-ordered prerequisites.

        A prerequisite is satisfied when the cohort has a run of it whose slot
        ends strictly before the dependent run's slot starts.

        Returns:
            One problem per (cohort, run, direct prerequisite) violation.

        Raises:
            DataIntegrityError: If a run refers to a missing course or slot.
        """
        courses = {c.course_id: c for c in self._courses.all()}
        slots = {s.slot_id: s for s in self._slots.all()}
        problems: list[Problem] = []

        for cohort in self._cohorts.all():
            cohort_runs = sorted(self._runs.for_cohort(cohort.cohort_id), key=lambda r: r.run_id)
            for run in cohort_runs:
                course = courses.get(run.course_id)
                if course is None:
                    raise DataIntegrityError(
                        f"Course run {run.run_id} refers to missing course {run.course_id}"
                    )
                slot = self._slot_for(run, slots)
                for prereq_id in course.prerequisites:
                    prereq = courses.get(prereq_id)
                    if prereq is None:
                        continue
                    prereq_run = next((r for r in cohort_runs if r.course_id == prereq_id), None)
                    if prereq_run is None:
                        problems.append(
                            self._problem(ProblemType.MISSING, cohort, course, run, prereq)
                        )
                        continue
                    prereq_slot = self._slot_for(prereq_run, slots)
                    if slot.start_date <= prereq_slot.end_date:
                        problems.append(
                            self._problem(
                                ProblemType.BEFORE_PREREQUISITE, cohort, course, run, prereq
                            )
                        )
        return problems

    def get_missing_prerequisites(self, cohort_id: int, course_id: int) -> list[int]:
        """Transitive prerequisites of a course the cohort has no run for."""
        taken = {r.course_id for r in self._runs.for_cohort(cohort_id)}
        closure = self.get_all_prerequisites(course_id)
        return [p for p in closure.course_ids if p not in taken and self._courses.get(p)]

    def get_prerequisite_chain_for_cohort(self, cohort_id: int) -> dict[int, list[int]]:
        """Map each course the cohort reads to its transitive prerequisites."""
        chain: dict[int, list[int]] = {}
        for run in sorted(self._runs.for_cohort(cohort_id), key=lambda r: r.run_id):
            if run.course_id not in chain:
                chain[run.course_id] = self.get_all_prerequisites(run.course_id).course_ids
        return chain

    def is_prerequisite_satisfied(self, cohort_id: int, course_id: int, slot_id: int) -> bool:
        """Check that every direct prerequisite ends before ``slot_id`` starts for the cohort."""
        course = self._courses.require(course_id)
        slot = self._slots.require(slot_id)
        cohort_runs = self._runs.for_cohort(cohort_id)
        for prereq_id in course.prerequisites:
            if self._courses.get(prereq_id) is None:
                continue
            ends = []
            for run in cohort_runs:
                prereq_slot = self._slots.get(run.slot_id)
                if run.course_id == prereq_id and prereq_slot is not None:
                    ends.append(prereq_slot.end_date)
            if not ends or min(ends) >= slot.start_date:
                return False
        return True

    def _slot_for(self, run: CourseRun, slots: dict[int, Slot]) -> Slot:
        slot = slots.get(run.slot_id)
        if slot is None:
            raise DataIntegrityError(
                f"Course run {run.run_id} refers to missing slot {run.slot_id}"
            )
        return slot

    @staticmethod
    def _problem(
        problem_type: ProblemType, cohort: Cohort, course: Course, run: CourseRun, prereq: Course
    ) -> Problem:
        return Problem(
            type=problem_type,
            cohort_id=cohort.cohort_id,
            cohort_name=cohort.name,
            course_id=course.course_id,
            course_name=course.name,
            course_code=course.code,
            run_id=run.run_id,
            missing_prereq_id=prereq.course_id,
            missing_prereq_name=prereq.name,
            missing_prereq_code=prereq.code,
        )
