"""AvailabilityEngine - teacher coverage, teaching-day state and exam dates.

Teacher unavailability exists at two grains: a slot record blocks a whole
slot, a day record blocks one calendar day. Both are read through a single
coverage view (``coverage``) and converted between grains only by the toggle
methods here, so a slot record and day records never describe the same days
at once.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from kursplan.entities.exceptions import (
    AvailabilityLockedError,
    BusinessRuleError,
    ExamDateLockedError,
    ValidationError,
)
from kursplan.entities.managers.availability import AvailabilityManager  # noqa: TC001
from kursplan.entities.managers.course_runs import CourseRunsManager  # noqa: TC001
from kursplan.entities.managers.exam_dates import ExamDatesManager  # noqa: TC001
from kursplan.entities.managers.slots import SlotsManager  # noqa: TC001
from kursplan.entities.managers.teaching_days import TeachingDaysManager  # noqa: TC001
from kursplan.entities.models import CourseSlot, DayState, ExamDate, Slot
from kursplan.normalizer import parse_date
from kursplan.rules.models import Coverage, CoverageGrain

logger = logging.getLogger(__name__)


class AvailabilityEngine:
    """Resolves teacher availability and teaching-day state."""

    def __init__(
        self,
        slots: SlotsManager,
        availability: AvailabilityManager,
        teaching_days: TeachingDaysManager,
        runs: CourseRunsManager,
        exam_dates: ExamDatesManager,
    ) -> None:
        self._slots = slots
        self._availability = availability
        self._teaching_days = teaching_days
        self._runs = runs
        self._exam_dates = exam_dates

    # --- Teacher coverage ---

    def _resolve_slot(self, slot_date: date | str | None, slot_id: int | None) -> Slot | None:
        if slot_id is not None:
            return self._slots.get(slot_id)
        if slot_date is None:
            return None
        return self._slots.find_by_start(slot_date)

    def coverage(self, teacher_id: int, slot_id: int) -> Coverage:
        """Compute how much of a slot a teacher is marked busy for."""
        days = self._slots.get_slot_days(slot_id)
        if self._availability.find_slot_entry(teacher_id, slot_id) is not None:
            return Coverage(teacher_id, slot_id, CoverageGrain.SLOT, list(days), len(days))
        covered = [d for d in days if self._availability.find_day_entry(teacher_id, d)]
        grain = CoverageGrain.DAY if covered else CoverageGrain.NONE
        return Coverage(teacher_id, slot_id, grain, covered, len(days))

    def is_teacher_unavailable(
        self, teacher_id: int, slot_date: date | str | None = None, slot_id: int | None = None
    ) -> bool:
        """True if the teacher is busy for the whole slot.

        Either a slot record exists, or every day of the slot has a day
        record. Partial coverage counts as available.

        Args:
            teacher_id: Teacher to check.
            slot_date: Slot start date, used to find the slot when no ID is given.
            slot_id: Slot to check.
        """
        slot = self._resolve_slot(slot_date, slot_id)
        if slot is None:
            return False
        return self.coverage(teacher_id, slot.slot_id).is_full

    def get_teacher_unavailable_percentage_for_slot(
        self, teacher_id: int, slot_date: date | str | None = None, slot_id: int | None = None
    ) -> float:
        """Share of the slot's days the teacher is busy (1.0 for a slot record)."""
        slot = self._resolve_slot(slot_date, slot_id)
        if slot is None:
            return 0.0
        return self.coverage(teacher_id, slot.slot_id).fraction

    def is_teacher_unavailable_on_day(self, teacher_id: int, day: date | str) -> bool:
        """True if a day record covers ``day`` or a slot record covers its slot."""
        target = parse_date(day)
        if target is None:
            return False
        if self._availability.find_day_entry(teacher_id, target) is not None:
            return True
        slot = self._slots.get_slot_for_date(target)
        if slot is None:
            return False
        return self._availability.find_slot_entry(teacher_id, slot.slot_id) is not None

    def is_slot_locked_for_teacher(self, teacher_id: int, slot_id: int) -> bool:
        """Partially covered slots can only be edited per day."""
        return self.coverage(teacher_id, slot_id).is_partial

    def toggle_teacher_availability_for_slot(
        self, teacher_id: int, slot_id: int, force: bool = False
    ) -> bool:
        """Toggle a teacher's unavailability for a whole slot.

        A slot record is removed together with any day records inside the
        slot. Full day-level coverage is removed. Otherwise a slot record is
        added, replacing any day records inside the slot.

        Args:
            teacher_id: Teacher to toggle.
            slot_id: Slot to toggle.
            force: Allow converting a partially covered slot to a slot record.

        Returns:
            True if the teacher is now unavailable for the slot.

        Raises:
            AvailabilityLockedError: If the slot is partially covered and force is False.
        """
        slot = self._slots.require(slot_id)
        cov = self.coverage(teacher_id, slot_id)
        day_entries = self._day_entries_in_slot(teacher_id, slot_id)

        if cov.grain == CoverageGrain.SLOT:
            entry = self._availability.find_slot_entry(teacher_id, slot_id)
            self._availability.remove_many([entry, *day_entries])  # type: ignore[list-item]
            return False

        if cov.is_full:
            self._availability.remove_many(day_entries)
            return False

        if cov.is_partial and not force:
            raise AvailabilityLockedError(
                f"Teacher {teacher_id} is partially unavailable in slot {slot_id}; edit per day"
            )

        self._availability.remove_many(day_entries)
        self._availability.add(
            teacher_id=teacher_id,
            from_date=slot.start_date,
            to_date=slot.end_date,
            slot_id=slot_id,
        )
        return True

    def toggle_teacher_availability_for_day(
        self, teacher_id: int, day: date | str, slot_id: int | None = None
    ) -> bool:
        """Toggle a teacher's unavailability for a single day.

        A slot record covering the day is split into day records for every
        other day of the slot, leaving the toggled day available.

        Returns:
            True if the teacher is now unavailable on the day.

        Raises:
            ValidationError: If the date cannot be parsed.
        """
        target = parse_date(day)
        if target is None:
            raise ValidationError("Ogiltigt datum.")
        if slot_id is not None:
            slot = self._slots.get(slot_id)
        else:
            slot = self._slots.get_slot_for_date(target)

        if slot is not None:
            entry = self._availability.find_slot_entry(teacher_id, slot.slot_id)
            if entry is not None:
                self._availability.remove(entry.id)
                for other in self._slots.get_slot_days(slot.slot_id):
                    if other == target:
                        continue
                    if self._availability.find_day_entry(teacher_id, other) is None:
                        self._availability.add(teacher_id, other, other)
                logger.debug(
                    "Split slot record for teacher %s in slot %s", teacher_id, slot.slot_id
                )
                return False

        existing = self._availability.find_day_entry(teacher_id, target)
        if existing is not None:
            self._availability.remove(existing.id)
            if existing.from_date < target:
                self._availability.add(teacher_id, existing.from_date, target - timedelta(days=1))
            if target < existing.to_date:
                self._availability.add(teacher_id, target + timedelta(days=1), existing.to_date)
            return False

        self._availability.add(teacher_id, target, target)
        return True

    def _day_entries_in_slot(self, teacher_id: int, slot_id: int) -> list:
        days = set(self._slots.get_slot_days(slot_id))
        return [
            a
            for a in self._availability.for_teacher(teacher_id)
            if not a.is_slot_level and a.is_busy and a.from_date in days and a.to_date in days
        ]

    # --- Teaching days ---

    def get_default_teaching_days(self, slot_id: int) -> list[date]:
        return self._slots.get_default_teaching_days(slot_id)

    def get_teaching_day_state(
        self, slot_id: int, day: date | str, course_id: int | None = None
    ) -> DayState | None:
        """Resolve a day's teaching state.

        Order: per-course override, slot-wide override, computed default.

        Args:
            slot_id: Slot containing the day.
            day: Date to resolve.
            course_id: Course to resolve for; None resolves for the whole slot,
                aggregating the per-course overrides of courses in the slot.

        Returns:
            The state, or None if the day is neither a default nor overridden.
        """
        target = parse_date(day)
        if target is None:
            return None
        if course_id is not None:
            course_slot = self._runs.get_course_slot(course_id, slot_id)
            if course_slot is not None:
                record = self._teaching_days.find_course_slot_day(
                    course_slot.course_slot_id, target
                )
                if record is not None:
                    return DayState(is_default=record.is_default, active=record.active)
            legacy = self._teaching_days.find_teaching_day(slot_id, target, course_id)
            if legacy is not None:
                return DayState(is_default=legacy.is_default, active=legacy.active)
        else:
            aggregated = self._aggregate_course_state(slot_id, target)
            if aggregated is not None:
                return aggregated

        slot_wide = self._teaching_days.find_teaching_day(slot_id, target, None)
        if slot_wide is not None:
            return DayState(is_default=slot_wide.is_default, active=slot_wide.active)
        if target in self.get_default_teaching_days(slot_id):
            return DayState(is_default=True, active=True)
        return None

    def _aggregate_course_state(self, slot_id: int, day: date) -> DayState | None:
        matches = []
        for course_slot in self._runs.course_slots_in_slot(slot_id):
            record = self._teaching_days.find_course_slot_day(course_slot.course_slot_id, day)
            if record is not None:
                matches.append(record)
        if not matches:
            return None
        if any(m.active for m in matches):
            return DayState(is_default=any(m.is_default for m in matches), active=True)
        if any(m.is_default for m in matches):
            return DayState(is_default=True, active=False)
        return DayState(is_default=False, active=False)

    def toggle_teaching_day(
        self, slot_id: int, day: date | str, course_id: int | None = None
    ) -> DayState | None:
        """Toggle a teaching day for one course, or for every course in the slot.

        Default days flip between active and deactivated; non-default days
        are added as extra days or removed again.

        Returns:
            The resolved state after toggling.

        Raises:
            BusinessRuleError: If the day is outside the slot or the course is not
                scheduled in the slot.
        """
        self._slots.require(slot_id)
        target = parse_date(day)
        if target is None or target not in self._slots.get_slot_days(slot_id):
            raise BusinessRuleError("Dagen ligger utanför sloten.")
        is_default = target in self.get_default_teaching_days(slot_id)

        if course_id is not None:
            course_slot = self._runs.get_course_slot(course_id, slot_id)
            if course_slot is None:
                raise BusinessRuleError("Kursen är inte schemalagd i denna slot.")
            self._toggle_course_slot_day(course_slot, target, is_default)
            return self.get_teaching_day_state(slot_id, target, course_id)

        course_slots = self._runs.course_slots_in_slot(slot_id)
        if course_slots:
            for course_slot in course_slots:
                self._toggle_course_slot_day(course_slot, target, is_default)
        else:
            record = self._teaching_days.find_teaching_day(slot_id, target, None)
            if record is None:
                self._teaching_days.add_teaching_day(
                    slot_id, target, None, is_default=is_default, active=not is_default
                )
            elif record.is_default:
                record.active = not record.active
            else:
                self._teaching_days.remove_teaching_day(record)
        return self.get_teaching_day_state(slot_id, target)

    def _toggle_course_slot_day(self, course_slot: CourseSlot, day: date, is_default: bool) -> None:
        record = self._teaching_days.find_course_slot_day(course_slot.course_slot_id, day)
        if record is None:
            self._teaching_days.add_course_slot_day(
                course_slot.course_slot_id, day, is_default=is_default, active=not is_default
            )
        elif record.is_default:
            record.active = not record.active
        else:
            self._teaching_days.remove_course_slot_day(record)

    def get_active_teaching_days(self, slot_id: int, course_id: int | None = None) -> list[date]:
        """Days of the slot whose resolved state is active."""
        days = []
        for day in self._slots.get_slot_days(slot_id):
            state = self.get_teaching_day_state(slot_id, day, course_id)
            if state is not None and state.active:
                days.append(day)
        return days

    # --- Exam dates ---

    def set_exam_date(self, slot_id: int, day: date | str) -> ExamDate:
        """Select the exam date of a slot, replacing any earlier one.

        The new date is stored locked.

        Raises:
            ExamDateLockedError: If the current exam date is locked.
            BusinessRuleError: If the date is not an active teaching day of the slot.
        """
        self._slots.require(slot_id)
        target = parse_date(day)
        current = self._exam_dates.get(slot_id)
        if current is not None and current.locked and current.date != target:
            raise ExamDateLockedError(
                "Examinationsdatumet är låst. Lås upp det innan du väljer ett nytt datum."
            )
        if target is None or target not in self.get_active_teaching_days(slot_id):
            raise BusinessRuleError("Examinationsdatum måste vara en undervisningsdag i sloten.")
        return self._exam_dates.set(slot_id, target, locked=True)

    def get_exam_date(self, slot_id: int) -> ExamDate | None:
        return self._exam_dates.get(slot_id)

    def is_exam_date(self, slot_id: int, day: date | str) -> bool:
        target = parse_date(day)
        return target is not None and self._exam_dates.is_exam_date(slot_id, target)

    def is_exam_date_locked(self, slot_id: int) -> bool:
        return self._exam_dates.is_locked(slot_id)

    def unlock_exam_date(self, slot_id: int) -> ExamDate | None:
        return self._exam_dates.set_locked(slot_id, False)

    def lock_exam_date(self, slot_id: int) -> ExamDate | None:
        return self._exam_dates.set_locked(slot_id, True)

    def clear_exam_date(self, slot_id: int) -> bool:
        return self._exam_dates.clear(slot_id)
