"""TeachingDaysManager - owns teaching-day override records."""

from __future__ import annotations

from datetime import date

from kursplan.entities.managers.base import next_id
from kursplan.entities.models import CourseSlotDay, TeachingDay


class TeachingDaysManager:
    """Storage for slot-wide and per-course teaching-day overrides.

    ``teaching_days`` hold slot-wide overrides (course_id None) and legacy
    per-course overrides; ``course_slot_days`` hold per-course overrides keyed
    by course slot. State resolution lives in the AvailabilityEngine.
    """

    def __init__(self) -> None:
        self.teaching_days: list[TeachingDay] = []
        self.course_slot_days: list[CourseSlotDay] = []

    def load(
        self,
        teaching_days: list[TeachingDay] | None = None,
        course_slot_days: list[CourseSlotDay] | None = None,
    ) -> None:
        self.teaching_days = list(teaching_days or [])
        self.course_slot_days = list(course_slot_days or [])

    def find_teaching_day(
        self, slot_id: int, day: date, course_id: int | None = None
    ) -> TeachingDay | None:
        return next(
            (
                td
                for td in self.teaching_days
                if td.slot_id == slot_id and td.date == day and td.course_id == course_id
            ),
            None,
        )

    def add_teaching_day(
        self, slot_id: int, day: date, course_id: int | None, is_default: bool, active: bool
    ) -> TeachingDay:
        record = TeachingDay(
            slot_id=slot_id, date=day, course_id=course_id, is_default=is_default, active=active
        )
        self.teaching_days.append(record)
        return record

    def remove_teaching_day(self, record: TeachingDay) -> None:
        self.teaching_days.remove(record)

    def find_course_slot_day(self, course_slot_id: int, day: date) -> CourseSlotDay | None:
        return next(
            (
                csd
                for csd in self.course_slot_days
                if csd.course_slot_id == course_slot_id and csd.date == day
            ),
            None,
        )

    def add_course_slot_day(
        self, course_slot_id: int, day: date, is_default: bool, active: bool
    ) -> CourseSlotDay:
        record = CourseSlotDay(
            course_slot_day_id=next_id(self.course_slot_days, "course_slot_day_id"),
            course_slot_id=course_slot_id,
            date=day,
            is_default=is_default,
            active=active,
        )
        self.course_slot_days.append(record)
        return record

    def remove_course_slot_day(self, record: CourseSlotDay) -> None:
        self.course_slot_days.remove(record)

    def remove_for_slot(self, slot_id: int) -> None:
        self.teaching_days = [td for td in self.teaching_days if td.slot_id != slot_id]

    def remove_for_course(self, course_id: int) -> None:
        self.teaching_days = [td for td in self.teaching_days if td.course_id != course_id]

    def retain_course_slots(self, course_slot_ids: set[int]) -> None:
        """Drop per-course overrides whose course slot no longer exists."""
        self.course_slot_days = [
            csd for csd in self.course_slot_days if csd.course_slot_id in course_slot_ids
        ]
