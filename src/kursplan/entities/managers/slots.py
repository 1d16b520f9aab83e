"""SlotsManager - owns teaching periods and their calendar days."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from kursplan.entities.exceptions import BusinessRuleError, EntityNotFoundError
from kursplan.entities.managers.base import next_id
from kursplan.entities.models import Slot, SlotDay
from kursplan.normalizer import (
    date_range,
    default_slot_end_date,
    parse_date,
    parse_evening_pattern,
)

logger = logging.getLogger(__name__)

# (week offset, weekday) pairs used when a slot has no usable evening pattern
FALLBACK_TEACHING_PATTERN: tuple[tuple[int, int], ...] = (
    (0, 0),
    (0, 3),
    (1, 1),
    (1, 3),
    (2, 1),
    (2, 3),
    (3, 0),
    (3, 4),
)


class SlotsManager:
    """CRUD for slots plus day-range computation.

    Slot days are materialized per slot and kept in sync whenever slot dates
    change. A slot's days run from its start to the earlier of its end date
    and the day before the next slot starts.
    """

    def __init__(self) -> None:
        self.slots: list[Slot] = []
        self.slot_days: list[SlotDay] = []

    def load(self, slots: list[Slot], slot_days: list[SlotDay] | None = None) -> None:
        self.slots = list(slots)
        self.slot_days = list(slot_days or [])
        self.sync_slot_days()

    def all(self) -> list[Slot]:
        return list(self.slots)

    def sorted_slots(self) -> list[Slot]:
        return sorted(self.slots, key=lambda s: (s.start_date, s.slot_id))

    def get(self, slot_id: int) -> Slot | None:
        return next((s for s in self.slots if s.slot_id == slot_id), None)

    def require(self, slot_id: int) -> Slot:
        """Get a slot by ID.

        Raises:
            EntityNotFoundError: If the slot does not exist.
        """
        slot = self.get(slot_id)
        if slot is None:
            raise EntityNotFoundError(f"Slot {slot_id} not found")
        return slot

    def find_by_start(self, start: date | str) -> Slot | None:
        wanted = parse_date(start)
        return next((s for s in self.slots if s.start_date == wanted), None)

    def find_overlapping_slot(
        self, start: date, end: date, exclude_id: int | None = None
    ) -> Slot | None:
        """Return the first slot whose range intersects [start, end]."""
        for slot in self.slots:
            if slot.slot_id == exclude_id:
                continue
            if start <= slot.end_date and end >= slot.start_date:
                return slot
        return None

    def _resolve_range(self, start_raw: Any, end_raw: Any, start_message: str) -> tuple[date, date]:
        start = parse_date(start_raw)
        if start is None:
            raise BusinessRuleError(start_message)
        if end_raw is None or end_raw == "":
            end = default_slot_end_date(start)
        else:
            end = parse_date(end_raw)
            if end is None:
                raise BusinessRuleError("Slot behöver giltigt slutdatum.")
        if end <= start:
            raise BusinessRuleError("Slotens slutdatum måste vara efter startdatum.")
        return start, end

    def _check_collision(self, start: date, end: date, exclude_id: int | None = None) -> None:
        overlapping = self.find_overlapping_slot(start, end, exclude_id)
        if overlapping is not None:
            raise BusinessRuleError(
                f"Slot {start.isoformat()}–{end.isoformat()} krockar med befintlig slot "
                f"{overlapping.start_date.isoformat()}–{overlapping.end_date.isoformat()}."
            )

    def add(
        self,
        start_date: date | str,
        end_date: date | str | None = None,
        evening_pattern: str = "",
        is_placeholder: bool = False,
        location: str = "",
        is_law_period: bool = False,
        slot_id: int | None = None,
    ) -> Slot:
        """Add a slot.

        Args:
            start_date: First day of the slot.
            end_date: Last day; defaults to start + 27 days.
            evening_pattern: Weekday pattern such as "tis/tor".
            is_placeholder: Whether the slot is a placeholder.
            location: Where teaching happens.
            is_law_period: Whether the slot is reserved for law courses.
            slot_id: Explicit ID, used when importing.

        Returns:
            The created slot.

        Raises:
            BusinessRuleError: If dates are invalid or collide with another slot.
        """
        start, end = self._resolve_range(
            start_date, end_date, "Kan inte skapa slot utan giltigt startdatum."
        )
        self._check_collision(start, end)
        slot = Slot(
            slot_id=slot_id if slot_id is not None else next_id(self.slots, "slot_id"),
            start_date=start,
            end_date=end,
            evening_pattern=evening_pattern or "",
            is_placeholder=is_placeholder,
            location=location or "",
            is_law_period=is_law_period,
        )
        self.slots.append(slot)
        self.sync_slot_days()
        return slot

    def update(self, slot_id: int, **updates: Any) -> Slot:
        """Update a slot.

        Raises:
            EntityNotFoundError: If the slot does not exist.
            BusinessRuleError: If the new dates are invalid or collide.
        """
        slot = self.require(slot_id)
        start, end = self._resolve_range(
            updates.pop("start_date", slot.start_date),
            updates.pop("end_date", slot.end_date),
            "Slot behöver giltigt startdatum.",
        )
        self._check_collision(start, end, exclude_id=slot_id)
        for key in ("evening_pattern", "is_placeholder", "location", "is_law_period"):
            if key in updates:
                setattr(slot, key, updates.pop(key))
        if updates:
            raise ValueError(f"Unknown slot fields: {', '.join(sorted(updates))}")
        slot.start_date = start
        slot.end_date = end
        self.sync_slot_days()
        return slot

    def delete(self, slot_id: int) -> Slot:
        slot = self.require(slot_id)
        self.slots.remove(slot)
        self.sync_slot_days()
        return slot

    # --- Day computation ---

    def compute_slot_day_range(self, slot: Slot) -> list[date]:
        """Compute the calendar days of a slot, clipped at the next slot's start."""
        end = slot.end_date or default_slot_end_date(slot.start_date)
        for other in self.sorted_slots():
            if other.start_date > slot.start_date:
                candidate_end = other.start_date - timedelta(days=1)
                if candidate_end < end:
                    end = candidate_end
                break
        return date_range(slot.start_date, end)

    def sync_slot_days(self) -> None:
        """Materialize slot days, keeping IDs of days that did not change."""
        existing = {(d.slot_id, d.date): d for d in self.slot_days}
        wanted: list[tuple[int, date]] = []
        for slot in self.sorted_slots():
            wanted.extend((slot.slot_id, day) for day in self.compute_slot_day_range(slot))
        wanted_keys = set(wanted)
        kept = [d for key, d in existing.items() if key in wanted_keys]
        identifier = next_id(kept, "slot_day_id")
        for key in wanted:
            if key not in existing:
                kept.append(SlotDay(slot_day_id=identifier, slot_id=key[0], date=key[1]))
                identifier += 1
        self.slot_days = sorted(kept, key=lambda d: (d.date, d.slot_id))

    def get_slot_days(self, slot_id: int) -> list[date]:
        """Return the sorted calendar days of a slot."""
        stored = [d.date for d in self.slot_days if d.slot_id == slot_id]
        if stored:
            return sorted(stored)
        slot = self.get(slot_id)
        return self.compute_slot_day_range(slot) if slot else []

    def get_slot_for_date(self, day: date) -> Slot | None:
        """Return the slot whose day range contains ``day``."""
        for slot in self.slots:
            if day in self.get_slot_days(slot.slot_id):
                return slot
        return None

    def get_default_teaching_days(self, slot_id: int) -> list[date]:
        """Default teaching days of a slot.

        Expands the evening pattern over the slot's days. Without a usable
        pattern, four weeks of Mon+Thu, Tue+Thu, Tue+Thu, Mon+Fri counted from
        the slot start are used.
        """
        slot = self.get(slot_id)
        if slot is None:
            return []
        weekdays = parse_evening_pattern(slot.evening_pattern)
        if weekdays:
            return [d for d in self.get_slot_days(slot_id) if d.weekday() in weekdays]
        days = []
        for week, weekday in FALLBACK_TEACHING_PATTERN:
            base = slot.start_date + timedelta(days=week * 7)
            days.append(base + timedelta(days=(weekday - base.weekday()) % 7))
        return days
