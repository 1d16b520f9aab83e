"""Unit tests for slot validation and the reconciliation pass."""

from datetime import date

import pytest

from kursplan.entities import CourseRun, ValidationError
from kursplan.rules import assert_non_overlapping_ranges
from kursplan.store import DataStore


@pytest.mark.unit
class TestNonOverlappingRanges:
    """Tests for assert_non_overlapping_ranges."""

    def test_adjacent_ranges_pass(self) -> None:
        assert_non_overlapping_ranges(
            [("2025-02-10", "2025-03-09"), ("2025-01-13", "2025-02-09")]
        )

    def test_shared_day_is_overlap(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            assert_non_overlapping_ranges(
                [("2025-01-13", "2025-02-09"), ("2025-02-09", "2025-03-01")]
            )

        assert str(exc_info.value) == (
            "Slots 2025-01-13–2025-02-09 och 2025-02-09–2025-03-01 får inte överlappa."
        )

    def test_date_objects_accepted(self) -> None:
        assert_non_overlapping_ranges([(date(2025, 1, 1), date(2025, 1, 5))])

    def test_unusable_date(self) -> None:
        with pytest.raises(ValidationError, match="giltiga start- och slutdatum"):
            assert_non_overlapping_ranges([("2025-01-13", None)])

    def test_empty(self) -> None:
        assert_non_overlapping_ranges([])


@pytest.mark.unit
class TestTeacherAssignments:
    """Tests for double-booking resolution."""

    def test_lowest_run_id_keeps_teacher(self, planned_store: DataStore) -> None:
        planned_store.add_course_run(1, 1, teachers=[1], cohorts=[1])
        planned_store.add_course_run(2, 1, teachers=[1], cohorts=[2])

        conflicts = planned_store.last_report.teacher_conflicts
        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.run_id == 2
        assert conflict.teacher_id == 1
        assert conflict.kept_course_id == 1
        assert conflict.dropped_course_id == 2
        assert planned_store.runs.require(1).teachers == [1]
        assert planned_store.runs.require(2).teachers == []

    def test_same_course_runs_share_teacher(self, planned_store: DataStore) -> None:
        planned_store.add_course_run(1, 1, teachers=[1], cohorts=[1])
        planned_store.add_course_run(1, 1, teachers=[1], cohorts=[2])

        assert planned_store.last_report.teacher_conflicts == []
        assert planned_store.runs.require(2).teachers == [1]

    def test_different_slots_do_not_conflict(self, planned_store: DataStore) -> None:
        planned_store.add_course_run(1, 1, teachers=[1], cohorts=[1])
        planned_store.add_course_run(2, 2, teachers=[1], cohorts=[1])

        assert planned_store.last_report.teacher_conflicts == []

    def test_second_pass_finds_nothing(self, planned_store: DataStore) -> None:
        planned_store.add_course_run(1, 1, teachers=[1], cohorts=[1])
        planned_store.add_course_run(2, 1, teachers=[1], cohorts=[2])

        assert planned_store.validator.validate_teacher_assignments() == []
        assert planned_store.runs.require(1).teachers == [1]
        assert planned_store.runs.require(2).teachers == []


@pytest.mark.unit
class TestCoursesHaveTeachers:
    """Tests for removal of teacherless course groups."""

    def test_group_kept_while_a_teacher_is_available(self, planned_store: DataStore) -> None:
        run = planned_store.add_course_run(2, 1, cohorts=[1])

        assert planned_store.runs.get(run.run_id) is not None
        assert planned_store.last_report.removed_courses == []

    def test_group_removed_when_no_teacher_available(self, planned_store: DataStore) -> None:
        planned_store.toggle_teacher_availability_for_slot(1, 1)

        run = planned_store.add_course_run(2, 1, cohorts=[1])

        assert planned_store.runs.get(run.run_id) is None
        removed = planned_store.last_report.removed_courses
        assert len(removed) == 1
        assert removed[0].course_code == "AI192U"
        assert removed[0].slot_id == 1
        assert removed[0].run_ids == [run.run_id]
        assert removed[0].cohort_names == ["Kull 1"]
        assert planned_store.last_report.changed

    def test_assigned_teacher_keeps_group(self, planned_store: DataStore) -> None:
        planned_store.toggle_teacher_availability_for_slot(1, 1)

        run = planned_store.add_course_run(2, 1, teachers=[1], cohorts=[1])

        assert planned_store.runs.get(run.run_id) is not None

    def test_partial_unavailability_keeps_group(self, planned_store: DataStore) -> None:
        planned_store.toggle_teacher_availability_for_day(1, "2025-01-14")

        run = planned_store.add_course_run(2, 1, cohorts=[1])

        assert planned_store.runs.get(run.run_id) is not None


@pytest.mark.unit
class TestReconcile:
    """Tests for the full reconciliation pass."""

    def test_empty_runs_pruned(self, planned_store: DataStore) -> None:
        run = planned_store.add_course_run(3, 1, teachers=[2], cohorts=[])

        assert planned_store.runs.get(run.run_id) is None
        assert planned_store.last_report.pruned_run_ids == [run.run_id]
        assert planned_store.runs.course_slots == []

    def test_planned_students_recomputed(self, planned_store: DataStore) -> None:
        planned_store.runs.load([CourseRun(run_id=1, course_id=3, slot_id=1, cohorts=[1, 2])])
        planned_store.runs.runs[0].planned_students = 5

        planned_store.reconcile()

        assert planned_store.runs.require(1).planned_students == 70

    def test_orphaned_course_slot_days_dropped(self, planned_store: DataStore) -> None:
        run = planned_store.add_course_run(3, 1, teachers=[2], cohorts=[1])
        planned_store.toggle_teaching_day(1, "2025-01-14", course_id=3)
        assert len(planned_store.teaching_days.course_slot_days) == 1

        planned_store.delete_course_run(run.run_id)

        assert planned_store.teaching_days.course_slot_days == []

    def test_clean_state_reports_nothing(self, planned_store: DataStore) -> None:
        report = planned_store.reconcile()

        assert not report.changed
        assert report.problems == []

    def test_overlapping_slots_rejected(self, planned_store: DataStore) -> None:
        planned_store.slots.slots[1].start_date = date(2025, 2, 1)

        with pytest.raises(ValidationError, match="får inte överlappa"):
            planned_store.validator.assert_all_slots_non_overlapping()
