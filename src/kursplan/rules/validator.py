"""DataValidator - hard slot validation and the reconciliation pass."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from kursplan.entities.exceptions import ValidationError
from kursplan.entities.managers.cohorts import CohortsManager  # noqa: TC001
from kursplan.entities.managers.course_runs import CourseRunsManager  # noqa: TC001
from kursplan.entities.managers.courses import CoursesManager  # noqa: TC001
from kursplan.entities.managers.slots import SlotsManager  # noqa: TC001
from kursplan.entities.managers.teachers import TeachersManager  # noqa: TC001
from kursplan.entities.managers.teaching_days import TeachingDaysManager  # noqa: TC001
from kursplan.entities.models import CourseRun
from kursplan.normalizer import parse_date, to_iso
from kursplan.rules.availability import AvailabilityEngine  # noqa: TC001
from kursplan.rules.models import Problem, ReconciliationReport, RemovedCourse, TeacherConflict
from kursplan.rules.prerequisites import PrerequisiteManager  # noqa: TC001

logger = logging.getLogger(__name__)

INVALID_SLOT_DATES_MESSAGE = "Alla slots måste ha giltiga start- och slutdatum."


def assert_non_overlapping_ranges(ranges: Iterable[tuple[Any, Any]]) -> None:
    """Fail if any two inclusive date ranges share a day.

    Args:
        ranges: (start, end) pairs in any form accepted by parse_date.

    Raises:
        ValidationError: If a range has an unusable date or two ranges overlap.
    """
    parsed: list[tuple[date, date]] = []
    for start_raw, end_raw in ranges:
        start = parse_date(start_raw)
        end = parse_date(end_raw)
        if start is None or end is None:
            raise ValidationError(INVALID_SLOT_DATES_MESSAGE)
        parsed.append((start, end))

    parsed.sort(key=lambda r: r[0])
    for (prev_start, prev_end), (start, end) in zip(parsed, parsed[1:]):
        if start <= prev_end:
            raise ValidationError(
                f"Slots {to_iso(prev_start)}–{to_iso(prev_end)} och "
                f"{to_iso(start)}–{to_iso(end)} får inte överlappa."
            )


class DataValidator:
    """Checks the whole planning state and repairs what can be repaired.

    Overlapping slots are a hard failure. Double-booked teachers and
    teacherless course groups are corrected in place and reported.
    """

    def __init__(
        self,
        slots: SlotsManager,
        courses: CoursesManager,
        teachers: TeachersManager,
        cohorts: CohortsManager,
        runs: CourseRunsManager,
        teaching_days: TeachingDaysManager,
        engine: AvailabilityEngine,
        prerequisites: PrerequisiteManager,
    ) -> None:
        self._slots = slots
        self._courses = courses
        self._teachers = teachers
        self._cohorts = cohorts
        self._runs = runs
        self._teaching_days = teaching_days
        self._engine = engine
        self._prerequisites = prerequisites

    def assert_all_slots_non_overlapping(self) -> None:
        """Raises ValidationError if any two slots overlap."""
        assert_non_overlapping_ranges((s.start_date, s.end_date) for s in self._slots.all())

    def _runs_by_slot(self) -> dict[int, list[CourseRun]]:
        grouped: dict[int, list[CourseRun]] = {}
        for run in sorted(self._runs.all(), key=lambda r: r.run_id):
            grouped.setdefault(run.slot_id, []).append(run)
        return grouped

    def validate_teacher_assignments(self) -> list[TeacherConflict]:
        """Drop teachers who teach two different courses in the same slot.

        Within a slot the run with the lowest ``run_id`` claims a teacher for
        its course. Runs of the same course keep the teacher.

        Returns:
            One record per dropped assignment.
        """
        conflicts: list[TeacherConflict] = []
        for slot_id, slot_runs in self._runs_by_slot().items():
            claimed: dict[int, int] = {}
            for run in slot_runs:
                kept: list[int] = []
                for teacher_id in run.teachers:
                    owner = claimed.setdefault(teacher_id, run.course_id)
                    if owner == run.course_id:
                        kept.append(teacher_id)
                        continue
                    conflicts.append(
                        TeacherConflict(
                            slot_id=slot_id,
                            run_id=run.run_id,
                            teacher_id=teacher_id,
                            kept_course_id=owner,
                            dropped_course_id=run.course_id,
                        )
                    )
                run.teachers = kept

        for conflict in conflicts:
            logger.warning(
                "Teacher %s dropped from run %s in slot %s (already teaching course %s)",
                conflict.teacher_id,
                conflict.run_id,
                conflict.slot_id,
                conflict.kept_course_id,
            )
        return conflicts

    def validate_courses_have_teachers(self) -> list[RemovedCourse]:
        """Remove course groups no teacher can take.

        Runs are grouped per (slot, course). A group where no run has a
        teacher is removed when none of the course's compatible teachers is
        available for the slot.

        Returns:
            One record per removed group.
        """
        groups: dict[tuple[int, int], list[CourseRun]] = {}
        for run in sorted(self._runs.all(), key=lambda r: r.run_id):
            groups.setdefault((run.slot_id, run.course_id), []).append(run)

        removed: list[RemovedCourse] = []
        for (slot_id, course_id), group in groups.items():
            if not any(r.cohorts for r in group):
                continue
            slot = self._slots.get(slot_id)
            if slot is None or slot.start_date is None:
                continue
            if any(r.teachers for r in group):
                continue

            available = [
                t
                for t in self._teachers.compatible_teachers(course_id)
                if not self._engine.is_teacher_unavailable(t.teacher_id, slot_id=slot_id)
            ]
            if available:
                continue

            course = self._courses.get(course_id)
            cohort_ids = [c for r in group for c in r.cohorts]
            cohort_names = []
            for cohort_id in cohort_ids:
                cohort = self._cohorts.get(cohort_id)
                if cohort is not None:
                    cohort_names.append(cohort.name)
            record = RemovedCourse(
                course_id=course_id,
                course_name=course.name if course else "Okänd kurs",
                course_code=course.code if course else "",
                slot_id=slot_id,
                run_ids=[r.run_id for r in group],
                cohort_ids=cohort_ids,
                cohort_names=cohort_names,
            )
            self._runs.delete_many(record.run_ids)
            removed.append(record)
            logger.warning(
                "Removed %s from slot %s: no available teacher (cohorts: %s)",
                record.course_code or course_id,
                slot_id,
                ", ".join(cohort_names),
            )
        return removed

    def reconcile(self, previous_problems: Iterable[Problem] | None = None) -> ReconciliationReport:
        """Run the full reconciliation pass over the current state.

        Steps, in order: prune empty runs, recompute planned students, drop
        double-booked teachers, remove teacherless groups, rebuild course
        slots and their day overrides, scan prerequisites.

        Args:
            previous_problems: Problems from the last pass; anything not among
                them is reported in ``new_problems``.

        Returns:
            The report of what changed and what was found.
        """
        report = ReconciliationReport()
        report.pruned_run_ids = [r.run_id for r in self._runs.prune_empty_runs()]
        self._runs.recompute_planned_students()
        report.teacher_conflicts = self.validate_teacher_assignments()
        report.removed_courses = self.validate_courses_have_teachers()
        self._runs.ensure_course_slots_from_runs()
        self._teaching_days.retain_course_slots(
            {cs.course_slot_id for cs in self._runs.course_slots}
        )
        report.problems = self._prerequisites.find_courses_with_missing_prerequisites()

        known = {p.key for p in previous_problems or []}
        report.new_problems = [p for p in report.problems if p.key not in known]
        if report.changed:
            logger.info(
                "Reconciliation pruned %d runs, dropped %d assignments, removed %d courses",
                len(report.pruned_run_ids),
                len(report.teacher_conflicts),
                len(report.removed_courses),
            )
        return report
