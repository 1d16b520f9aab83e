"""Shared pytest fixtures and configuration."""

from collections.abc import Generator

import pytest

from kursplan.config import PlannerConfig
from kursplan.store import DataStore


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture
def store() -> Generator[DataStore, None, None]:
    """Empty in-memory store that does not seed itself."""
    s = DataStore(config=PlannerConfig(seed=False))
    yield s
    s.close()


@pytest.fixture
def planned_store(store: DataStore) -> DataStore:
    """Store with a small program and no course runs.

    Courses: 1 AI180U (law overview, 15 hp), 2 AI192U (law, requires 1),
    3 AI183U. Teachers: 1 Anna Lind (courses 1 and 2), 2 Bo Ek (course 3).
    Cohorts: 1 "Kull 1" from 2025-01-08 (30), 2 "Kull 2" from 2025-02-05 (40).
    Slots (tis/tor): 1 from 2025-01-13, 2 from 2025-02-10, 3 from 2025-03-10,
    each 28 days long.
    """
    store.add_course(
        code="AI180U",
        name="Juridisk översiktskurs",
        credits=15,
        is_law_course=True,
        law_type="overview",
        preferred_order_index=0,
    )
    store.add_course(
        code="AI192U",
        name="Allmän fastighetsrätt",
        is_law_course=True,
        law_type="general",
        prerequisites=[1],
        preferred_order_index=5,
    )
    store.add_course(code="AI183U", name="Husbyggnadsteknik", preferred_order_index=2)
    store.add_teacher("Anna Lind", "AIJ", compatible_courses=[1, 2])
    store.add_teacher("Bo Ek", "AIE", compatible_courses=[3])
    store.add_cohort("2025-01-08", 30)
    store.add_cohort("2025-02-05", 40)
    for start in ("2025-01-13", "2025-02-10", "2025-03-10"):
        store.add_slot(start, evening_pattern="tis/tor")
    return store
