"""Unit tests for capacity, law-track and busy-period rules."""

from datetime import date

import pytest

from kursplan.entities import Cohort, Course, CourseRun, LawType, TeacherAvailability
from kursplan.rules import (
    CapacityLimits,
    calculate_planned_students,
    check_teacher_availability,
    get_recommended_law_course_order,
    is_multi_block_course,
    validate_capacity,
    validate_law_prerequisites,
)


@pytest.fixture
def law_courses() -> list[Course]:
    """Overview, general law and a non-law course."""
    return [
        Course(1, "AI180U", "Översikt", is_law_course=True, law_type=LawType.OVERVIEW),
        Course(2, "AI192U", "Allmän", is_law_course=True, law_type=LawType.GENERAL),
        Course(3, "AI183U", "Husbyggnadsteknik"),
    ]


@pytest.mark.unit
class TestValidateCapacity:
    """Tests for validate_capacity."""

    def test_within_preferred(self) -> None:
        result = validate_capacity(100)

        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_above_preferred_warns(self) -> None:
        result = validate_capacity(101)

        assert result.valid
        assert result.warnings == ["Varning: Många studenter (101 > 100)"]

    def test_above_hard_is_error(self) -> None:
        result = validate_capacity(131)

        assert not result.valid
        assert result.errors == ["För många studenter (131 > 130)"]
        assert result.warnings == []

    def test_custom_limits(self) -> None:
        limits = CapacityLimits(hard=60, preferred=40)

        assert validate_capacity(50, limits).warnings == ["Varning: Många studenter (50 > 40)"]
        assert not validate_capacity(61, limits).valid


@pytest.mark.unit
class TestPlannedStudents:
    """Tests for calculate_planned_students."""

    def test_sums_enrolled_cohorts(self) -> None:
        cohorts = [
            Cohort(1, "Kull 1", date(2025, 1, 8), 30),
            Cohort(2, "Kull 2", date(2025, 2, 5), 40),
        ]
        run = CourseRun(run_id=1, course_id=1, slot_id=1, cohorts=[1, 2, 9])

        assert calculate_planned_students(run, cohorts) == 70


@pytest.mark.unit
class TestTeacherBusyPeriods:
    """Tests for check_teacher_availability."""

    def test_overlapping_busy_period(self) -> None:
        records = [TeacherAvailability(1, 7, date(2025, 1, 20), date(2025, 1, 22))]

        result = check_teacher_availability(7, date(2025, 1, 13), date(2025, 2, 9), records)

        assert not result.available
        assert result.reason == "Lärare upptagen 2025-01-20 - 2025-01-22"

    def test_other_teacher_and_free_records_ignored(self) -> None:
        records = [
            TeacherAvailability(1, 8, date(2025, 1, 20), date(2025, 1, 22)),
            TeacherAvailability(2, 7, date(2025, 1, 20), date(2025, 1, 22), type="free"),
        ]

        result = check_teacher_availability(7, date(2025, 1, 13), date(2025, 2, 9), records)

        assert result.available
        assert result.reason is None


@pytest.mark.unit
class TestLawTrack:
    """Tests for law-course helpers."""

    def test_overview_required_before_other_law_courses(self, law_courses: list[Course]) -> None:
        cohort = Cohort(1, "Kull 1", date(2025, 1, 8), 30)

        result = validate_law_prerequisites(cohort, law_courses[1], [], law_courses)

        assert not result.valid
        assert "Kull 1" in result.errors[0]

    def test_overview_taken(self, law_courses: list[Course]) -> None:
        cohort = Cohort(1, "Kull 1", date(2025, 1, 8), 30)
        runs = [CourseRun(run_id=1, course_id=1, slot_id=1, cohorts=[1])]

        assert validate_law_prerequisites(cohort, law_courses[1], runs, law_courses).valid

    def test_non_law_and_overview_always_valid(self, law_courses: list[Course]) -> None:
        cohort = Cohort(1, "Kull 1", date(2025, 1, 8), 30)

        assert validate_law_prerequisites(cohort, law_courses[0], [], law_courses).valid
        assert validate_law_prerequisites(cohort, law_courses[2], [], law_courses).valid

    def test_recommended_order(self, law_courses: list[Course]) -> None:
        ordered = get_recommended_law_course_order(reversed(law_courses))

        assert [c.code for c in ordered] == ["AI180U", "AI192U"]

    def test_multi_block_courses(self) -> None:
        assert is_multi_block_course("AI180U")
        assert is_multi_block_course("AI184U")
        assert not is_multi_block_course("AI183U")
