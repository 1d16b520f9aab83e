"""Unit tests for the per-collection entity managers."""

from datetime import date

import pytest

from kursplan.entities import (
    BusinessRuleError,
    Department,
    EntityNotFoundError,
    LawType,
    Slot,
)
from kursplan.entities.managers import (
    AvailabilityManager,
    CohortsManager,
    CourseRunsManager,
    CoursesManager,
    ExamDatesManager,
    SlotsManager,
    TeachersManager,
)


@pytest.fixture
def courses() -> CoursesManager:
    manager = CoursesManager()
    manager.add(code="AI180U", name="Juridisk översiktskurs", credits=15, law_type="overview")
    manager.add(code="AI192U", name="Allmän fastighetsrätt", prerequisites=[1])
    return manager


@pytest.fixture
def cohorts() -> CohortsManager:
    manager = CohortsManager()
    manager.add("2025-02-05", 40)
    manager.add("2025-01-08", 30)
    return manager


@pytest.mark.unit
class TestCoursesManager:
    """Tests for CoursesManager."""

    def test_add_normalizes_fields(self) -> None:
        manager = CoursesManager()
        course = manager.add(
            code=" ai183u ",
            name=" Husbyggnads  teknik ",
            credits=10,
            prerequisites=[1, 1, 2],
            course_id=2,
        )

        assert course.code == "AI183U"
        assert course.name == "Husbyggnads teknik"
        assert course.credits == 7.5
        # Self-references are dropped
        assert course.prerequisites == [1]

    def test_ids_are_sequential(self, courses: CoursesManager) -> None:
        assert [c.course_id for c in courses.all()] == [1, 2]
        assert courses.get(1).law_type == LawType.OVERVIEW

    def test_duplicate_code_rejected(self, courses: CoursesManager) -> None:
        with pytest.raises(BusinessRuleError, match="samma kurskod"):
            courses.add(code="ai180u", name="Annan kurs")

    def test_duplicate_name_rejected_case_insensitive(self, courses: CoursesManager) -> None:
        with pytest.raises(BusinessRuleError, match="samma kursnamn"):
            courses.add(code="AI999U", name="juridisk   ÖVERSIKTSKURS")

    def test_missing_code_rejected(self) -> None:
        with pytest.raises(BusinessRuleError, match="Kurskod måste anges"):
            CoursesManager().add(code="  ", name="Kurs")

    def test_update_keeps_own_code(self, courses: CoursesManager) -> None:
        updated = courses.update(1, name="Juridisk översikt", preferred_order_index=0)

        assert updated.code == "AI180U"
        assert updated.name == "Juridisk översikt"
        assert updated.preferred_order_index == 0

    def test_update_unknown_field(self, courses: CoursesManager) -> None:
        with pytest.raises(ValueError, match="Unknown course fields"):
            courses.update(1, colour="red")

    def test_delete_strips_prerequisite_references(self, courses: CoursesManager) -> None:
        courses.delete(1)

        assert courses.get(2).prerequisites == []

    def test_require_missing(self, courses: CoursesManager) -> None:
        with pytest.raises(EntityNotFoundError):
            courses.require(99)

    def test_clear_teacher(self, courses: CoursesManager) -> None:
        courses.update(1, examinator_teacher_id=7, kursansvarig_teacher_id=7)

        courses.clear_teacher(7)

        assert courses.get(1).examinator_teacher_id is None
        assert courses.get(1).kursansvarig_teacher_id is None


@pytest.mark.unit
class TestTeachersManager:
    """Tests for TeachersManager."""

    def test_add(self) -> None:
        manager = TeachersManager()
        teacher = manager.add(" Anna  Lind ", "AIJ", compatible_courses=[2, 2, 1])

        assert teacher.teacher_id == 1
        assert teacher.name == "Anna Lind"
        assert teacher.home_department == Department.AIJ
        assert teacher.compatible_courses == [2, 1]

    def test_unknown_department(self) -> None:
        with pytest.raises(BusinessRuleError, match="Okänd avdelning"):
            TeachersManager().add("Anna", "XYZ")

    def test_duplicate_name(self) -> None:
        manager = TeachersManager()
        manager.add("Anna Lind", "AIJ")

        with pytest.raises(BusinessRuleError, match="samma namn"):
            manager.add("anna lind", "AIE")

    def test_update_partial(self) -> None:
        manager = TeachersManager()
        manager.add("Anna Lind", "AIJ", compatible_courses=[1])

        teacher = manager.update(1, home_department="AF")

        assert teacher.name == "Anna Lind"
        assert teacher.home_department == Department.AF
        assert teacher.compatible_courses == [1]

    def test_sync_course_to_teachers(self) -> None:
        manager = TeachersManager()
        manager.add("Anna", "AIJ", compatible_courses=[1])
        manager.add("Bo", "AIE")

        manager.sync_course_to_teachers(1, [2])

        assert manager.compatible_teacher_ids(1) == [2]
        assert manager.get(1).compatible_courses == []


@pytest.mark.unit
class TestCohortsManager:
    """Tests for CohortsManager."""

    def test_names_follow_start_date(self, cohorts: CohortsManager) -> None:
        """Cohorts are named Kull 1..N by ascending start date."""
        by_id = {c.cohort_id: c.name for c in cohorts.all()}

        assert by_id == {1: "Kull 2", 2: "Kull 1"}

    def test_update_start_renumbers(self, cohorts: CohortsManager) -> None:
        cohorts.update(1, start_date="2024-12-01")

        assert cohorts.get(1).name == "Kull 1"
        assert cohorts.get(2).name == "Kull 2"

    def test_delete_renumbers(self, cohorts: CohortsManager) -> None:
        cohorts.delete(2)

        assert cohorts.get(1).name == "Kull 1"

    def test_duplicate_start_date(self, cohorts: CohortsManager) -> None:
        with pytest.raises(BusinessRuleError, match="startdatum finns redan"):
            cohorts.add("2025-01-08", 20)

    @pytest.mark.parametrize("size", [0, -5, "abc", None])
    def test_size_must_be_positive(self, size: object) -> None:
        with pytest.raises(BusinessRuleError, match="positivt tal"):
            CohortsManager().add("2025-01-08", size)

    def test_missing_start_date(self) -> None:
        with pytest.raises(BusinessRuleError, match="Startdatum"):
            CohortsManager().add("", 30)


@pytest.mark.unit
class TestSlotsManager:
    """Tests for SlotsManager."""

    def test_add_defaults_end_date(self) -> None:
        slot = SlotsManager().add("2025-01-13")

        assert slot.end_date == date(2025, 2, 9)

    def test_end_before_start_rejected(self) -> None:
        with pytest.raises(BusinessRuleError, match="efter startdatum"):
            SlotsManager().add("2025-01-13", "2025-01-10")

    def test_missing_start_rejected(self) -> None:
        with pytest.raises(BusinessRuleError, match="giltigt startdatum"):
            SlotsManager().add("")

    def test_collision_rejected(self) -> None:
        manager = SlotsManager()
        manager.add("2025-01-13")

        with pytest.raises(BusinessRuleError, match="krockar"):
            manager.add("2025-02-01")

    def test_update_collision_rejected(self) -> None:
        manager = SlotsManager()
        manager.add("2025-01-13")
        manager.add("2025-02-10")

        with pytest.raises(BusinessRuleError, match="krockar"):
            manager.update(2, start_date="2025-02-05")

    def test_slot_days_materialized(self) -> None:
        manager = SlotsManager()
        manager.add("2025-01-13")

        days = manager.get_slot_days(1)

        assert len(days) == 28
        assert days[0] == date(2025, 1, 13)
        assert days[-1] == date(2025, 2, 9)
        assert len(manager.slot_days) == 28

    def test_slot_days_clipped_at_next_slot(self) -> None:
        """A slot's days stop the day before the next slot starts."""
        manager = SlotsManager()
        manager.load(
            [
                Slot(slot_id=1, start_date=date(2025, 1, 13), end_date=date(2025, 2, 20)),
                Slot(slot_id=2, start_date=date(2025, 2, 10), end_date=date(2025, 3, 9)),
            ]
        )

        assert manager.get_slot_days(1)[-1] == date(2025, 2, 9)
        assert manager.get_slot_days(2)[0] == date(2025, 2, 10)

    def test_slot_day_ids_kept_on_resync(self) -> None:
        manager = SlotsManager()
        manager.add("2025-01-13")
        first_ids = {(d.slot_id, d.date): d.slot_day_id for d in manager.slot_days}

        manager.add("2025-02-10")

        for day in manager.slot_days:
            if day.slot_id == 1:
                assert first_ids[(1, day.date)] == day.slot_day_id

    def test_default_teaching_days_from_pattern(self) -> None:
        manager = SlotsManager()
        manager.add("2025-01-13", evening_pattern="tis/tor")

        assert manager.get_default_teaching_days(1) == [
            date(2025, 1, 14),
            date(2025, 1, 16),
            date(2025, 1, 21),
            date(2025, 1, 23),
            date(2025, 1, 28),
            date(2025, 1, 30),
            date(2025, 2, 4),
            date(2025, 2, 6),
        ]

    def test_default_teaching_days_fallback(self) -> None:
        """Without a pattern: Mon+Thu, Tue+Thu, Tue+Thu, Mon+Fri."""
        manager = SlotsManager()
        manager.add("2025-01-13")

        assert manager.get_default_teaching_days(1) == [
            date(2025, 1, 13),
            date(2025, 1, 16),
            date(2025, 1, 21),
            date(2025, 1, 23),
            date(2025, 1, 28),
            date(2025, 1, 30),
            date(2025, 2, 3),
            date(2025, 2, 7),
        ]

    def test_get_slot_for_date(self) -> None:
        manager = SlotsManager()
        manager.add("2025-01-13")
        manager.add("2025-02-10")

        assert manager.get_slot_for_date(date(2025, 2, 9)).slot_id == 1
        assert manager.get_slot_for_date(date(2025, 2, 10)).slot_id == 2
        assert manager.get_slot_for_date(date(2024, 1, 1)) is None


@pytest.mark.unit
class TestCourseRunsManager:
    """Tests for CourseRunsManager."""

    def test_planned_students_is_sum_of_cohorts(self, cohorts: CohortsManager) -> None:
        runs = CourseRunsManager(cohorts)

        run = runs.add(course_id=1, slot_id=1, cohorts=[1, 2])

        assert run.planned_students == 70

    def test_one_course_slot_per_course_and_slot(self, cohorts: CohortsManager) -> None:
        runs = CourseRunsManager(cohorts)
        runs.add(course_id=1, slot_id=1, cohorts=[1])
        runs.add(course_id=1, slot_id=1, cohorts=[2])
        runs.add(course_id=2, slot_id=1, cohorts=[2])

        pairs = [(cs.course_id, cs.slot_id) for cs in runs.course_slots]

        assert sorted(pairs) == [(1, 1), (2, 1)]

    def test_course_slot_dropped_with_last_run(self, cohorts: CohortsManager) -> None:
        runs = CourseRunsManager(cohorts)
        run = runs.add(course_id=1, slot_id=1, cohorts=[1])

        runs.delete(run.run_id)

        assert runs.course_slots == []

    def test_remove_cohort_prunes_empty_runs(self, cohorts: CohortsManager) -> None:
        runs = CourseRunsManager(cohorts)
        runs.add(course_id=1, slot_id=1, cohorts=[1])
        shared = runs.add(course_id=2, slot_id=2, cohorts=[1, 2])

        runs.remove_cohort(1)

        assert [r.run_id for r in runs.all()] == [shared.run_id]
        assert shared.planned_students == 30

    def test_update_unknown_field(self, cohorts: CohortsManager) -> None:
        runs = CourseRunsManager(cohorts)
        runs.add(course_id=1, slot_id=1, cohorts=[1])

        with pytest.raises(ValueError, match="Unknown course run fields"):
            runs.update(1, room="A1")


@pytest.mark.unit
class TestAvailabilityManager:
    """Tests for AvailabilityManager."""

    def test_single_day_record(self) -> None:
        manager = AvailabilityManager()
        record = manager.add(1, "2025-01-14")

        assert record.from_date == record.to_date == date(2025, 1, 14)
        assert manager.find_day_entry(1, date(2025, 1, 14)) is record
        assert manager.find_day_entry(2, date(2025, 1, 14)) is None

    def test_end_before_start(self) -> None:
        with pytest.raises(BusinessRuleError, match="före startdatum"):
            AvailabilityManager().add(1, "2025-01-14", "2025-01-10")

    def test_slot_records_are_not_day_records(self) -> None:
        manager = AvailabilityManager()
        manager.add(1, "2025-01-13", "2025-02-09", slot_id=1)

        assert manager.find_slot_entry(1, 1) is not None
        assert manager.find_day_entry(1, date(2025, 1, 14)) is None

    def test_free_records_do_not_block(self) -> None:
        manager = AvailabilityManager()
        manager.add(1, "2025-01-14", type="free")

        assert manager.find_day_entry(1, date(2025, 1, 14)) is None
        assert manager.busy_periods(1) == []


@pytest.mark.unit
class TestExamDatesManager:
    """Tests for ExamDatesManager."""

    def test_one_date_per_slot(self) -> None:
        manager = ExamDatesManager()
        manager.set(1, date(2025, 1, 14))
        manager.set(1, date(2025, 1, 16), locked=False)

        assert len(manager.all()) == 1
        assert manager.is_exam_date(1, date(2025, 1, 16))
        assert not manager.is_locked(1)

    def test_clear(self) -> None:
        manager = ExamDatesManager()
        manager.set(1, date(2025, 1, 14))

        assert manager.clear(1) is True
        assert manager.clear(1) is False
