"""AvailabilityManager - owns teacher unavailability records."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from kursplan.entities.exceptions import BusinessRuleError
from kursplan.entities.managers.base import next_id
from kursplan.entities.models import AvailabilityType, TeacherAvailability
from kursplan.normalizer import parse_date


class AvailabilityManager:
    """Record-level CRUD for teacher availability.

    Coverage semantics (slot vs day grain, toggling) live in the
    AvailabilityEngine; this class only stores and finds records.
    """

    def __init__(self) -> None:
        self.records: list[TeacherAvailability] = []

    def load(self, records: list[TeacherAvailability]) -> None:
        self.records = list(records)

    def all(self) -> list[TeacherAvailability]:
        return list(self.records)

    def for_teacher(self, teacher_id: int) -> list[TeacherAvailability]:
        return [a for a in self.records if a.teacher_id == teacher_id]

    def add(
        self,
        teacher_id: int,
        from_date: date | str,
        to_date: date | str | None = None,
        slot_id: int | None = None,
        type: AvailabilityType | str = AvailabilityType.BUSY,  # noqa: A002
    ) -> TeacherAvailability:
        """Add an availability record.

        Raises:
            BusinessRuleError: If the dates are invalid.
        """
        start = parse_date(from_date)
        end = parse_date(to_date) if to_date is not None else start
        if start is None or end is None:
            raise BusinessRuleError("Tillgänglighet behöver giltiga datum.")
        if end < start:
            raise BusinessRuleError("Slutdatum får inte vara före startdatum.")
        record = TeacherAvailability(
            id=next_id(self.records, "id"),
            teacher_id=teacher_id,
            from_date=start,
            to_date=end,
            slot_id=slot_id,
            type=AvailabilityType(type),
        )
        self.records.append(record)
        return record

    def remove(self, record_id: int) -> bool:
        before = len(self.records)
        self.records = [a for a in self.records if a.id != record_id]
        return len(self.records) != before

    def remove_many(self, records: Iterable[TeacherAvailability]) -> None:
        ids = {r.id for r in records}
        self.records = [a for a in self.records if a.id not in ids]

    def remove_for_teacher(self, teacher_id: int) -> None:
        self.records = [a for a in self.records if a.teacher_id != teacher_id]

    def remove_for_slot(self, slot_id: int) -> None:
        self.records = [a for a in self.records if a.slot_id != slot_id]

    def find_slot_entry(self, teacher_id: int, slot_id: int) -> TeacherAvailability | None:
        """Busy slot-grain record for a teacher and slot."""
        return next(
            (
                a
                for a in self.records
                if a.teacher_id == teacher_id and a.slot_id == slot_id and a.is_busy
            ),
            None,
        )

    def find_day_entry(self, teacher_id: int, day: date) -> TeacherAvailability | None:
        """Busy day-grain record covering ``day``."""
        return next(
            (
                a
                for a in self.records
                if a.teacher_id == teacher_id
                and not a.is_slot_level
                and a.is_busy
                and a.from_date <= day <= a.to_date
            ),
            None,
        )

    def busy_periods(self, teacher_id: int) -> list[TeacherAvailability]:
        return [a for a in self.records if a.teacher_id == teacher_id and a.is_busy]
