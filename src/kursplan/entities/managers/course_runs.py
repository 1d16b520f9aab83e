"""CourseRunsManager - owns course runs and the derived course-slot links."""

from __future__ import annotations

import logging
from typing import Any

from kursplan.entities.exceptions import EntityNotFoundError
from kursplan.entities.managers.base import next_id
from kursplan.entities.managers.cohorts import CohortsManager  # noqa: TC001
from kursplan.entities.models import DEFAULT_RUN_STATUS, CourseRun, CourseSlot
from kursplan.normalizer import unique_ids

logger = logging.getLogger(__name__)


class CourseRunsManager:
    """CRUD for course runs.

    ``planned_students`` is always the sum of the enrolled cohorts' planned
    sizes. Each distinct (course, slot) pair among the runs gets exactly one
    CourseSlot link.
    """

    def __init__(self, cohorts: CohortsManager) -> None:
        self._cohorts = cohorts
        self.runs: list[CourseRun] = []
        self.course_slots: list[CourseSlot] = []

    def load(self, runs: list[CourseRun], course_slots: list[CourseSlot] | None = None) -> None:
        self.runs = list(runs)
        self.course_slots = list(course_slots or [])
        self.recompute_planned_students()
        self.ensure_course_slots_from_runs()

    def all(self) -> list[CourseRun]:
        return list(self.runs)

    def get(self, run_id: int) -> CourseRun | None:
        return next((r for r in self.runs if r.run_id == run_id), None)

    def require(self, run_id: int) -> CourseRun:
        """Get a run by ID.

        Raises:
            EntityNotFoundError: If the run does not exist.
        """
        run = self.get(run_id)
        if run is None:
            raise EntityNotFoundError(f"Course run {run_id} not found")
        return run

    def for_slot(self, slot_id: int) -> list[CourseRun]:
        return [r for r in self.runs if r.slot_id == slot_id]

    def for_course(self, course_id: int) -> list[CourseRun]:
        return [r for r in self.runs if r.course_id == course_id]

    def for_cohort(self, cohort_id: int) -> list[CourseRun]:
        return [r for r in self.runs if cohort_id in r.cohorts]

    def add(
        self,
        course_id: int,
        slot_id: int,
        teachers: list[int] | None = None,
        cohorts: list[int] | None = None,
        status: str = DEFAULT_RUN_STATUS,
        run_id: int | None = None,
    ) -> CourseRun:
        """Add a course run and make sure its course-slot link exists."""
        run = CourseRun(
            run_id=run_id if run_id is not None else next_id(self.runs, "run_id"),
            course_id=course_id,
            slot_id=slot_id,
            teachers=unique_ids(teachers),
            cohorts=unique_ids(cohorts),
            status=status or DEFAULT_RUN_STATUS,
        )
        run.planned_students = self.calculate_planned_students(run)
        self.runs.append(run)
        self.ensure_course_slots_from_runs()
        return run

    def update(self, run_id: int, **updates: Any) -> CourseRun:
        run = self.require(run_id)
        for key in ("course_id", "slot_id", "status"):
            if key in updates:
                setattr(run, key, updates.pop(key))
        if "teachers" in updates:
            run.teachers = unique_ids(updates.pop("teachers"))
        if "cohorts" in updates:
            run.cohorts = unique_ids(updates.pop("cohorts"))
        if updates:
            raise ValueError(f"Unknown course run fields: {', '.join(sorted(updates))}")
        run.planned_students = self.calculate_planned_students(run)
        self.ensure_course_slots_from_runs()
        return run

    def delete(self, run_id: int) -> CourseRun:
        run = self.require(run_id)
        self.runs.remove(run)
        self.ensure_course_slots_from_runs()
        return run

    def delete_many(self, run_ids: list[int]) -> None:
        self.runs = [r for r in self.runs if r.run_id not in run_ids]
        self.ensure_course_slots_from_runs()

    def delete_for_course(self, course_id: int) -> list[CourseRun]:
        removed = self.for_course(course_id)
        self.delete_many([r.run_id for r in removed])
        return removed

    def add_cohort(self, run_id: int, cohort_id: int) -> CourseRun:
        """Enroll a cohort in an existing run (co-reading)."""
        run = self.require(run_id)
        if cohort_id not in run.cohorts:
            run.cohorts.append(cohort_id)
        run.planned_students = self.calculate_planned_students(run)
        return run

    def remove_cohort(self, cohort_id: int) -> None:
        """Remove a cohort from every run; runs left empty are pruned."""
        for run in self.runs:
            if cohort_id in run.cohorts:
                run.cohorts = [c for c in run.cohorts if c != cohort_id]
        self.prune_empty_runs()
        self.recompute_planned_students()

    def remove_teacher(self, teacher_id: int) -> None:
        for run in self.runs:
            if teacher_id in run.teachers:
                run.teachers = [t for t in run.teachers if t != teacher_id]

    def prune_empty_runs(self) -> list[CourseRun]:
        """Remove runs without cohorts and return them."""
        removed = [r for r in self.runs if not r.cohorts]
        if removed:
            self.runs = [r for r in self.runs if r.cohorts]
            self.ensure_course_slots_from_runs()
            logger.debug("Pruned %d empty course runs", len(removed))
        return removed

    def calculate_planned_students(self, run: CourseRun) -> int:
        return sum(self._cohorts.planned_size(cohort_id) for cohort_id in run.cohorts)

    def recompute_planned_students(self) -> None:
        for run in self.runs:
            run.planned_students = self.calculate_planned_students(run)

    # --- Course slots ---

    def ensure_course_slots_from_runs(self) -> None:
        """Create missing course-slot links and drop links without runs."""
        pairs = {(r.course_id, r.slot_id) for r in self.runs}
        kept = [cs for cs in self.course_slots if (cs.course_id, cs.slot_id) in pairs]
        seen: set[tuple[int, int]] = set()
        unique: list[CourseSlot] = []
        for cs in kept:
            key = (cs.course_id, cs.slot_id)
            if key not in seen:
                seen.add(key)
                unique.append(cs)
        identifier = next_id(self.course_slots, "course_slot_id")
        for run in self.runs:
            key = (run.course_id, run.slot_id)
            if key not in seen:
                seen.add(key)
                unique.append(CourseSlot(identifier, run.course_id, run.slot_id))
                identifier += 1
        self.course_slots = unique

    def get_course_slot(self, course_id: int, slot_id: int) -> CourseSlot | None:
        return next(
            (cs for cs in self.course_slots if cs.course_id == course_id and cs.slot_id == slot_id),
            None,
        )

    def course_slots_in_slot(self, slot_id: int) -> list[CourseSlot]:
        return [cs for cs in self.course_slots if cs.slot_id == slot_id]
