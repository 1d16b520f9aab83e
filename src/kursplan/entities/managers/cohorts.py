"""CohortsManager - owns cohorts and their "Kull N" numbering."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from kursplan.entities.exceptions import BusinessRuleError, EntityNotFoundError
from kursplan.entities.managers.base import next_id
from kursplan.entities.models import Cohort
from kursplan.normalizer import parse_date

logger = logging.getLogger(__name__)


class CohortsManager:
    """CRUD for cohorts.

    Display names are derived: after every add, start-date update and delete
    the cohorts are renamed "Kull 1".."Kull N" by ascending start date.
    """

    def __init__(self) -> None:
        self.cohorts: list[Cohort] = []

    def load(self, cohorts: list[Cohort]) -> None:
        self.cohorts = list(cohorts)

    def all(self) -> list[Cohort]:
        return list(self.cohorts)

    def get(self, cohort_id: int) -> Cohort | None:
        return next((c for c in self.cohorts if c.cohort_id == cohort_id), None)

    def require(self, cohort_id: int) -> Cohort:
        """Get a cohort by ID.

        Raises:
            EntityNotFoundError: If the cohort does not exist.
        """
        cohort = self.get(cohort_id)
        if cohort is None:
            raise EntityNotFoundError(f"Cohort {cohort_id} not found")
        return cohort

    def _validate(
        self, start: date | None, planned_size: Any, exclude_id: int | None = None
    ) -> int:
        if start is None:
            raise BusinessRuleError("Startdatum måste anges.")
        if any(c.start_date == start and c.cohort_id != exclude_id for c in self.cohorts):
            raise BusinessRuleError("En kull med detta startdatum finns redan.")
        try:
            size = int(planned_size)
        except (TypeError, ValueError):
            size = 0
        if size <= 0:
            raise BusinessRuleError("Planerat antal studenter måste vara ett positivt tal.")
        return size

    def add(
        self, start_date: date | str, planned_size: int, cohort_id: int | None = None
    ) -> Cohort:
        """Add a cohort and renumber all cohorts.

        Raises:
            BusinessRuleError: If the start date is missing or taken, or size is not positive.
        """
        start = parse_date(start_date)
        size = self._validate(start, planned_size)
        cohort = Cohort(
            cohort_id=cohort_id if cohort_id is not None else next_id(self.cohorts, "cohort_id"),
            name="",
            start_date=start,  # type: ignore[arg-type]
            planned_size=size,
        )
        self.cohorts.append(cohort)
        self.renumber()
        return cohort

    def update(
        self,
        cohort_id: int,
        start_date: date | str | None = None,
        planned_size: int | None = None,
    ) -> Cohort:
        """Update a cohort; renumbers when the start date changes."""
        cohort = self.require(cohort_id)
        start = parse_date(start_date) if start_date is not None else cohort.start_date
        size = self._validate(
            start,
            planned_size if planned_size is not None else cohort.planned_size,
            exclude_id=cohort_id,
        )
        changed_start = start != cohort.start_date
        cohort.start_date = start  # type: ignore[assignment]
        cohort.planned_size = size
        if changed_start:
            self.renumber()
        return cohort

    def delete(self, cohort_id: int) -> Cohort:
        cohort = self.require(cohort_id)
        self.cohorts.remove(cohort)
        self.renumber()
        logger.debug("Deleted cohort %s", cohort_id)
        return cohort

    def renumber(self) -> None:
        """Rename cohorts "Kull N" by ascending start date (ties by ID)."""
        ordered = sorted(self.cohorts, key=lambda c: (c.start_date, c.cohort_id))
        for rank, cohort in enumerate(ordered, start=1):
            cohort.name = f"Kull {rank}"
        self.cohorts = ordered

    def planned_size(self, cohort_id: int) -> int:
        cohort = self.get(cohort_id)
        return cohort.planned_size if cohort else 0
