"""DataStore - the single mutation entry point of the planner.

Every mutating call runs through ``mutate``: the state is snapshotted, the
change applied, slots checked for overlap, the reconciliation pass run,
observers notified and the result persisted. Any failure restores the
snapshot.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar

from kursplan.config import PlannerConfig
from kursplan.entities.events import EventManager
from kursplan.entities.exceptions import BusinessRuleError, PersistenceError
from kursplan.entities.managers.availability import AvailabilityManager
from kursplan.entities.managers.business_logic import BusinessLogicManager
from kursplan.entities.managers.cohorts import CohortsManager
from kursplan.entities.managers.course_runs import CourseRunsManager
from kursplan.entities.managers.courses import CoursesManager
from kursplan.entities.managers.exam_dates import ExamDatesManager
from kursplan.entities.managers.slots import SlotsManager
from kursplan.entities.managers.teachers import TeachersManager
from kursplan.entities.managers.teaching_days import TeachingDaysManager
from kursplan.entities.models import (
    AvailabilityType,
    Cohort,
    Course,
    CourseRun,
    DayState,
    ExamDate,
    PlanningData,
    Slot,
    Teacher,
    TeacherAvailability,
)
from kursplan.persistence import SnapshotBackend  # noqa: TC001
from kursplan.persistence.schema import Snapshot, parse_snapshot
from kursplan.persistence.seed import build_seed_data
from kursplan.rules.availability import AvailabilityEngine
from kursplan.rules.business import CapacityCheck, validate_capacity
from kursplan.rules.matching import MatchingHeuristic
from kursplan.rules.models import MergeSuggestion, Problem, RankedCourse, ReconciliationReport
from kursplan.rules.prerequisites import PrerequisiteManager
from kursplan.rules.validator import DataValidator

logger = logging.getLogger(__name__)

T = TypeVar("T")

EXAMINATOR_MESSAGE = "Examinator måste vara en av de kompatibla lärarna."
SLOT_IN_USE_MESSAGE = "Kan inte ta bort slot som har tilldelade kurskörningar."


class DataStore:
    """In-memory planning state with validation, notification and persistence.

    Args:
        backend: Where snapshots are loaded from and saved to. Without one the
            store lives in memory only.
        config: Planner configuration; defaults apply when omitted.
    """

    def __init__(
        self,
        backend: SnapshotBackend | None = None,
        config: PlannerConfig | None = None,
    ) -> None:
        self.backend = backend
        self.config = config or PlannerConfig()
        self.events = EventManager()

        self.courses = CoursesManager()
        self.teachers = TeachersManager()
        self.cohorts = CohortsManager()
        self.slots = SlotsManager()
        self.runs = CourseRunsManager(self.cohorts)
        self.availability = AvailabilityManager()
        self.exam_dates = ExamDatesManager()
        self.teaching_days = TeachingDaysManager()
        self.business_logic = BusinessLogicManager(self.config.scheduling.business_logic())

        self.prerequisites = PrerequisiteManager(self.courses, self.cohorts, self.runs, self.slots)
        self.engine = AvailabilityEngine(
            self.slots, self.availability, self.teaching_days, self.runs, self.exam_dates
        )
        self.validator = DataValidator(
            self.slots,
            self.courses,
            self.teachers,
            self.cohorts,
            self.runs,
            self.teaching_days,
            self.engine,
            self.prerequisites,
        )
        self.matching = MatchingHeuristic(
            self.courses,
            self.cohorts,
            self.runs,
            self.slots,
            self.availability,
            self.engine,
            self.prerequisites,
            self.business_logic,
            default_cohort_size=self.config.scheduling.default_cohort_size,
        )

        self.last_report = ReconciliationReport()
        self._depth = 0

    # --- Observers ---

    def subscribe(self, callback: Callable[[], None]) -> str:
        """Register a zero-argument callback run after every committed mutation."""
        return self.events.subscribe(callback)

    def unsubscribe(self, subscriber_id: str) -> None:
        self.events.unsubscribe(subscriber_id)

    # --- State snapshots ---

    def to_data(self) -> PlanningData:
        """Deep copy of the current state."""
        return copy.deepcopy(
            PlanningData(
                courses=self.courses.courses,
                teachers=self.teachers.teachers,
                cohorts=self.cohorts.cohorts,
                slots=self.slots.slots,
                course_runs=self.runs.runs,
                course_slots=self.runs.course_slots,
                teacher_availability=self.availability.records,
                teaching_days=self.teaching_days.teaching_days,
                slot_days=self.slots.slot_days,
                course_slot_days=self.teaching_days.course_slot_days,
                exam_dates=list(self.exam_dates.exam_dates.values()),
                business_logic=self.business_logic.get(),
            )
        )

    def _apply(self, data: PlanningData) -> None:
        """Replace the whole state with ``data``."""
        data = copy.deepcopy(data)
        self.courses.load(data.courses)
        self.teachers.load(data.teachers)
        self.cohorts.load(data.cohorts)
        self.cohorts.renumber()
        self.slots.load(data.slots, data.slot_days)
        self.runs.load(data.course_runs, data.course_slots)
        self.availability.load(data.teacher_availability)
        self.teaching_days.load(data.teaching_days, data.course_slot_days)
        self.exam_dates.load(data.exam_dates)
        self.business_logic.load(
            data.business_logic
            if data.business_logic
            else self.config.scheduling.business_logic()
        )

    def mutate(self, action: Callable[[], T]) -> T:
        """Apply a change as one transaction.

        Nested calls join the outermost transaction.

        Args:
            action: Callable that changes the managers and returns a result.

        Returns:
            Whatever ``action`` returned.

        Raises:
            ValidationError: If the change leaves overlapping slots.
            PersistenceError: If the backend rejects the new state.
            PlannerError: Whatever ``action`` raised. The state is restored first.
        """
        if self._depth:
            return action()

        before = self.to_data()
        self._depth += 1
        try:
            result = action()
            self.validator.assert_all_slots_non_overlapping()
            self.last_report = self.validator.reconcile(self.last_report.problems)
        except Exception:
            self._apply(before)
            raise
        finally:
            self._depth -= 1

        self.events.notify()
        self._persist(before)
        return result

    def _persist(self, before: PlanningData) -> None:
        if self.backend is None:
            return
        try:
            self.backend.save(Snapshot.from_data(self.to_data()))
        except Exception as e:
            logger.error("Persisting planning state failed, rolling back: %s", e)
            self._apply(before)
            self.events.notify()
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Kunde inte spara planeringen: {e}") from e

    # --- Courses ---

    def _check_examinator(self, course: Course) -> None:
        examinator = course.examinator_teacher_id
        if examinator is None:
            return
        if examinator not in self.teachers.compatible_teacher_ids(course.course_id):
            raise BusinessRuleError(EXAMINATOR_MESSAGE)

    def add_course(self, compatible_teachers: list[int] | None = None, **fields: Any) -> Course:
        """Add a course.

        Args:
            compatible_teachers: Teachers able to teach the course.
            **fields: Course fields accepted by CoursesManager.add.

        Raises:
            BusinessRuleError: On duplicate code or name, or an examinator
                outside the compatible teachers.
        """

        def action() -> Course:
            course = self.courses.add(**fields)
            if compatible_teachers is not None:
                self.teachers.add_course_to_teachers(course.course_id, compatible_teachers)
            self._check_examinator(course)
            return course

        return self.mutate(action)

    def update_course(
        self, course_id: int, compatible_teachers: list[int] | None = None, **updates: Any
    ) -> Course:
        """Update a course; ``compatible_teachers`` replaces its teacher set."""

        def action() -> Course:
            course = self.courses.update(course_id, **updates)
            if compatible_teachers is not None:
                self.teachers.sync_course_to_teachers(course_id, compatible_teachers)
            self._check_examinator(course)
            return course

        return self.mutate(action)

    def delete_course(self, course_id: int) -> Course:
        """Delete a course with its runs, teacher links and day overrides."""

        def action() -> Course:
            course = self.courses.delete(course_id)
            self.teachers.remove_course(course_id)
            self.runs.delete_for_course(course_id)
            self.teaching_days.remove_for_course(course_id)
            return course

        return self.mutate(action)

    # --- Teachers ---

    def _existing_courses(self, course_ids: list[int] | None) -> list[int] | None:
        if course_ids is None:
            return None
        return [c for c in course_ids if self.courses.get(c) is not None]

    def add_teacher(
        self,
        name: str,
        home_department: str,
        compatible_courses: list[int] | None = None,
        teacher_id: int | None = None,
    ) -> Teacher:
        return self.mutate(
            lambda: self.teachers.add(
                name=name,
                home_department=home_department,
                compatible_courses=self._existing_courses(compatible_courses),
                teacher_id=teacher_id,
            )
        )

    def update_teacher(
        self,
        teacher_id: int,
        name: str | None = None,
        home_department: str | None = None,
        compatible_courses: list[int] | None = None,
    ) -> Teacher:
        """Update a teacher.

        Removing a course the teacher examines is rejected because it would
        leave the examinator outside the compatible set.
        """

        def action() -> Teacher:
            teacher = self.teachers.update(
                teacher_id,
                name=name,
                home_department=home_department,
                compatible_courses=self._existing_courses(compatible_courses),
            )
            for course in self.courses.examinator_courses(teacher_id):
                self._check_examinator(course)
            return teacher

        return self.mutate(action)

    def delete_teacher(self, teacher_id: int) -> Teacher:
        """Delete a teacher and every reference to them."""

        def action() -> Teacher:
            teacher = self.teachers.delete(teacher_id)
            self.runs.remove_teacher(teacher_id)
            self.availability.remove_for_teacher(teacher_id)
            self.courses.clear_teacher(teacher_id)
            return teacher

        return self.mutate(action)

    # --- Cohorts ---

    def add_cohort(self, start_date: date | str, planned_size: int) -> Cohort:
        return self.mutate(lambda: self.cohorts.add(start_date, planned_size))

    def update_cohort(
        self,
        cohort_id: int,
        start_date: date | str | None = None,
        planned_size: int | None = None,
    ) -> Cohort:
        def action() -> Cohort:
            cohort = self.cohorts.update(cohort_id, start_date, planned_size)
            self.runs.recompute_planned_students()
            return cohort

        return self.mutate(action)

    def delete_cohort(self, cohort_id: int) -> Cohort:
        """Delete a cohort; runs left without cohorts are pruned."""

        def action() -> Cohort:
            cohort = self.cohorts.delete(cohort_id)
            self.runs.remove_cohort(cohort_id)
            return cohort

        return self.mutate(action)

    # --- Slots ---

    def add_slot(self, start_date: date | str, **fields: Any) -> Slot:
        return self.mutate(lambda: self.slots.add(start_date, **fields))

    def update_slot(self, slot_id: int, **updates: Any) -> Slot:
        return self.mutate(lambda: self.slots.update(slot_id, **updates))

    def delete_slot(self, slot_id: int) -> Slot:
        """Delete an unused slot with its availability, teaching days and exam date.

        Raises:
            BusinessRuleError: If course runs are scheduled in the slot.
        """

        def action() -> Slot:
            if self.runs.for_slot(slot_id):
                raise BusinessRuleError(SLOT_IN_USE_MESSAGE)
            slot = self.slots.delete(slot_id)
            self.availability.remove_for_slot(slot_id)
            self.teaching_days.remove_for_slot(slot_id)
            self.exam_dates.clear(slot_id)
            return slot

        return self.mutate(action)

    # --- Course runs ---

    def add_course_run(
        self,
        course_id: int,
        slot_id: int,
        teachers: list[int] | None = None,
        cohorts: list[int] | None = None,
        status: str = "",
    ) -> CourseRun:
        """Schedule a course in a slot.

        The run may be removed again by reconciliation, e.g. when it has no
        cohorts; check ``last_report`` after the call.

        Raises:
            EntityNotFoundError: If the course or slot does not exist.
        """

        def action() -> CourseRun:
            self.courses.require(course_id)
            self.slots.require(slot_id)
            return self.runs.add(course_id, slot_id, teachers, cohorts, status)

        return self.mutate(action)

    def update_course_run(self, run_id: int, **updates: Any) -> CourseRun:
        return self.mutate(lambda: self.runs.update(run_id, **updates))

    def delete_course_run(self, run_id: int) -> CourseRun:
        return self.mutate(lambda: self.runs.delete(run_id))

    def join_course_run(self, run_id: int, cohort_id: int) -> CourseRun:
        """Let a cohort co-read an existing run."""

        def action() -> CourseRun:
            self.cohorts.require(cohort_id)
            return self.runs.add_cohort(run_id, cohort_id)

        return self.mutate(action)

    # --- Teacher availability ---

    def add_teacher_availability(
        self,
        teacher_id: int,
        from_date: date | str,
        to_date: date | str | None = None,
        slot_id: int | None = None,
        type: AvailabilityType = AvailabilityType.BUSY,
    ) -> TeacherAvailability:
        def action() -> TeacherAvailability:
            self.teachers.require(teacher_id)
            return self.availability.add(teacher_id, from_date, to_date, slot_id, type)

        return self.mutate(action)

    def remove_teacher_availability(self, record_id: int) -> bool:
        return self.mutate(lambda: self.availability.remove(record_id))

    def toggle_teacher_availability_for_slot(
        self, teacher_id: int, slot_id: int, force: bool = False
    ) -> bool:
        """Toggle whole-slot unavailability; True if the teacher is now unavailable."""

        def action() -> bool:
            self.teachers.require(teacher_id)
            return self.engine.toggle_teacher_availability_for_slot(teacher_id, slot_id, force)

        return self.mutate(action)

    def toggle_teacher_availability_for_day(
        self, teacher_id: int, day: date | str, slot_id: int | None = None
    ) -> bool:
        """Toggle single-day unavailability; True if the teacher is now unavailable."""

        def action() -> bool:
            self.teachers.require(teacher_id)
            return self.engine.toggle_teacher_availability_for_day(teacher_id, day, slot_id)

        return self.mutate(action)

    def is_teacher_unavailable(self, teacher_id: int, slot_id: int) -> bool:
        return self.engine.is_teacher_unavailable(teacher_id, slot_id=slot_id)

    # --- Teaching days and exam dates ---

    def toggle_teaching_day(
        self, slot_id: int, day: date | str, course_id: int | None = None
    ) -> DayState | None:
        return self.mutate(lambda: self.engine.toggle_teaching_day(slot_id, day, course_id))

    def get_teaching_day_state(
        self, slot_id: int, day: date | str, course_id: int | None = None
    ) -> DayState | None:
        return self.engine.get_teaching_day_state(slot_id, day, course_id)

    def set_exam_date(self, slot_id: int, day: date | str) -> ExamDate:
        return self.mutate(lambda: self.engine.set_exam_date(slot_id, day))

    def lock_exam_date(self, slot_id: int) -> ExamDate | None:
        return self.mutate(lambda: self.engine.lock_exam_date(slot_id))

    def unlock_exam_date(self, slot_id: int) -> ExamDate | None:
        return self.mutate(lambda: self.engine.unlock_exam_date(slot_id))

    def clear_exam_date(self, slot_id: int) -> bool:
        return self.mutate(lambda: self.engine.clear_exam_date(slot_id))

    # --- Business logic ---

    def set_business_logic(self, business_logic: dict[str, Any]) -> dict[str, Any]:
        return self.mutate(lambda: self.business_logic.set(business_logic))

    # --- Queries ---

    def find_prerequisite_problems(self) -> list[Problem]:
        return self.prerequisites.find_courses_with_missing_prerequisites()

    def rank_available_courses(
        self, cohort_id: int, exclude_run_id: int | None = None
    ) -> list[RankedCourse]:
        return self.matching.rank_available_courses(cohort_id, exclude_run_id)

    def suggest_course_run_merge(self, course_id: int, cohort_id: int) -> list[MergeSuggestion]:
        return self.matching.suggest_course_run_merge(course_id, cohort_id)

    def validate_capacity(self, planned_students: int) -> CapacityCheck:
        return validate_capacity(planned_students, self.business_logic.limits())

    def reconcile(self) -> ReconciliationReport:
        """Run the reconciliation pass on its own and return its report."""
        self.mutate(lambda: None)
        return self.last_report

    # --- Lifecycle ---

    def load(self) -> ReconciliationReport:
        """Load the state from the backend.

        When every primary collection is empty and seeding is enabled, the
        built-in dataset is used instead and saved back.

        Returns:
            The reconciliation report of the loaded state.

        Raises:
            PersistenceError: If the backend cannot be read.
            SnapshotSchemaError: If the stored snapshot is invalid.
            ValidationError: If the stored slots overlap. The current state is kept.
        """
        data = self.backend.load().to_data() if self.backend is not None else PlanningData()
        seeded = False
        if data.is_empty() and self.config.seed:
            data = build_seed_data()
            seeded = True
            logger.info("Backend held no planning data, using the built-in dataset")

        before = self.to_data()
        try:
            self._apply(data)
            self.validator.assert_all_slots_non_overlapping()
            self.last_report = self.validator.reconcile()
        except Exception:
            self._apply(before)
            raise
        if seeded:
            self._persist(PlanningData())
        self.events.notify()
        logger.info(
            "Loaded %d courses, %d cohorts, %d slots, %d runs",
            len(self.courses.courses),
            len(self.cohorts.cohorts),
            len(self.slots.slots),
            len(self.runs.runs),
        )
        return self.last_report

    def save(self) -> None:
        """Push the current state to the backend."""
        if self.backend is None:
            return
        self.backend.save(self.export_snapshot())

    def export_snapshot(self) -> Snapshot:
        return Snapshot.from_data(self.to_data())

    def import_snapshot(self, payload: Snapshot | dict[str, Any]) -> ReconciliationReport:
        """Replace the whole state with a snapshot.

        Raises:
            SnapshotSchemaError: If the payload is not a valid snapshot.
            BusinessRuleError: If two course codes share a course name.
            ValidationError: If its slots overlap. The current state is kept.
        """
        snapshot = payload if isinstance(payload, Snapshot) else parse_snapshot(payload)
        data = snapshot.to_data()
        self.mutate(lambda: self._apply(data))
        return self.last_report

    def reset_to_seed_data(self) -> ReconciliationReport:
        """Replace the whole state with the built-in dataset."""
        data = build_seed_data()
        self.mutate(lambda: self._apply(data))
        return self.last_report

    def close(self) -> None:
        """Drop subscribers and close the backend."""
        self.events.clear()
        if self.backend is not None:
            self.backend.close()
