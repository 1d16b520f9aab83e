"""ExamDatesManager - one exam date per slot."""

from __future__ import annotations

from datetime import date

from kursplan.entities.models import ExamDate


class ExamDatesManager:
    """Stores exam dates keyed by slot.

    Setting a date replaces any earlier one for the same slot. Whether the
    date is allowed is decided by the AvailabilityEngine.
    """

    def __init__(self) -> None:
        self.exam_dates: dict[int, ExamDate] = {}

    def load(self, exam_dates: list[ExamDate]) -> None:
        self.exam_dates = {e.slot_id: e for e in exam_dates}

    def all(self) -> list[ExamDate]:
        return sorted(self.exam_dates.values(), key=lambda e: e.slot_id)

    def get(self, slot_id: int) -> ExamDate | None:
        return self.exam_dates.get(slot_id)

    def set(self, slot_id: int, day: date, locked: bool = True) -> ExamDate:
        exam = ExamDate(slot_id=slot_id, date=day, locked=locked)
        self.exam_dates[slot_id] = exam
        return exam

    def clear(self, slot_id: int) -> bool:
        return self.exam_dates.pop(slot_id, None) is not None

    def is_exam_date(self, slot_id: int, day: date) -> bool:
        exam = self.exam_dates.get(slot_id)
        return exam is not None and exam.date == day

    def is_locked(self, slot_id: int) -> bool:
        exam = self.exam_dates.get(slot_id)
        return exam is not None and exam.locked

    def set_locked(self, slot_id: int, locked: bool) -> ExamDate | None:
        exam = self.exam_dates.get(slot_id)
        if exam is not None:
            exam.locked = locked
        return exam
