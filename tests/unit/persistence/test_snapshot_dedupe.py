"""Unit tests for duplicate folding of incoming snapshots."""

from datetime import date

import pytest

from kursplan.entities import BusinessRuleError
from kursplan.persistence import parse_snapshot
from kursplan.store import DataStore


def _duplicated_course_payload() -> dict:
    return {
        "courses": [
            {"course_id": 1, "code": "ai180u", "name": "Juridik"},
            {"course_id": 2, "code": "AI180U ", "name": "juridik "},
            {"course_id": 3, "code": "AI192U", "name": "Allmän  fastighetsrätt"},
        ],
        "coursePrerequisites": [{"course_id": 3, "prerequisite_course_id": 2}],
        "teachers": [{"teacher_id": 1, "name": "Bo Ek", "home_department": "AIE"}],
        "teacherCourses": [{"teacher_id": 1, "course_id": 2}],
        "cohorts": [{"cohort_id": 1, "start_date": "2025-01-08", "planned_size": 30}],
        "slots": [{"slot_id": 1, "start_date": "2025-01-13", "end_date": "2025-02-09"}],
        "courseRuns": [
            {"run_id": 1, "course_id": 2, "slot_id": 1, "teachers": [1], "cohorts": [1]},
        ],
        "courseSlots": [
            {"course_slot_id": 1, "course_id": 1, "slot_id": 1},
            {"course_slot_id": 2, "course_id": 2, "slot_id": 1},
        ],
        "courseSlotDays": [
            {"course_slot_day_id": 1, "course_slot_id": 2, "date": "2025-01-14"},
        ],
    }


@pytest.mark.unit
class TestCourseFolding:
    """Courses sharing a normalized code become one course."""

    def test_codes_and_names_normalized(self) -> None:
        data = parse_snapshot(_duplicated_course_payload()).to_data()

        assert [(c.course_id, c.code, c.name) for c in data.courses] == [
            (1, "AI180U", "Juridik"),
            (3, "AI192U", "Allmän fastighetsrätt"),
        ]

    def test_references_follow_kept_course(self) -> None:
        data = parse_snapshot(_duplicated_course_payload()).to_data()

        assert data.course_runs[0].course_id == 1
        assert data.courses[1].prerequisites == [1]
        assert data.teachers[0].compatible_courses == [1]
        assert [(cs.course_slot_id, cs.course_id) for cs in data.course_slots] == [(1, 1)]
        assert [d.course_slot_id for d in data.course_slot_days] == [1]

    def test_distinct_codes_with_same_name_rejected(self) -> None:
        payload = {
            "courses": [
                {"course_id": 1, "code": "AI180U", "name": "Juridik"},
                {"course_id": 2, "code": "AI181U", "name": " JURIDIK"},
            ]
        }

        with pytest.raises(BusinessRuleError, match="samma kursnamn"):
            parse_snapshot(payload).to_data()


@pytest.mark.unit
class TestTeacherAndCohortFolding:
    """Teachers fold on their name, cohorts on their start date."""

    def test_teachers_merged(self) -> None:
        payload = {
            "courses": [
                {"course_id": 1, "code": "AI180U", "name": "Juridik"},
                {"course_id": 2, "code": "AI183U", "name": "Husbyggnadsteknik"},
            ],
            "teachers": [
                {"teacher_id": 1, "name": "Bo Ek", "home_department": "AIE"},
                {"teacher_id": 2, "name": " bo  EK", "home_department": "AF"},
            ],
            "teacherCourses": [
                {"teacher_id": 1, "course_id": 1},
                {"teacher_id": 2, "course_id": 2},
            ],
            "courseExaminators": [{"course_id": 2, "teacher_id": 2}],
            "teacherAvailability": [
                {"id": 1, "teacher_id": 2, "from_date": "2025-01-20", "to_date": "2025-01-20"},
            ],
        }

        data = parse_snapshot(payload).to_data()

        assert [(t.teacher_id, t.name) for t in data.teachers] == [(1, "Bo Ek")]
        assert data.teachers[0].compatible_courses == [1, 2]
        assert data.courses[1].examinator_teacher_id == 1
        assert data.teacher_availability[0].teacher_id == 1

    def test_cohorts_on_same_start_date_merged(self) -> None:
        payload = {
            "courses": [{"course_id": 1, "code": "AI183U", "name": "Husbyggnadsteknik"}],
            "cohorts": [
                {"cohort_id": 3, "start_date": "2025-01-08", "planned_size": 25},
                {"cohort_id": 1, "start_date": "2025-01-08", "planned_size": 30},
            ],
            "courseRuns": [{"run_id": 1, "course_id": 1, "slot_id": 1, "cohorts": [3, 1]}],
        }

        data = parse_snapshot(payload).to_data()

        assert [(c.cohort_id, c.start_date) for c in data.cohorts] == [(1, date(2025, 1, 8))]
        assert data.course_runs[0].cohorts == [1]

    def test_clean_snapshot_untouched(self) -> None:
        payload = {
            "courses": [{"course_id": 1, "code": "AI183U", "name": "Husbyggnadsteknik"}],
            "cohorts": [
                {"cohort_id": 1, "start_date": "2025-01-08", "planned_size": 30},
                {"cohort_id": 2, "start_date": "2025-02-05", "planned_size": 40},
            ],
        }

        data = parse_snapshot(payload).to_data()

        assert [c.cohort_id for c in data.cohorts] == [1, 2]


@pytest.mark.unit
class TestImportFolding:
    """Tests for DataStore.import_snapshot with duplicated input."""

    def test_import_merges_duplicate_codes(self, store: DataStore) -> None:
        store.import_snapshot(_duplicated_course_payload())

        assert [(c.course_id, c.code) for c in store.courses.all()] == [
            (1, "AI180U"),
            (3, "AI192U"),
        ]
        assert store.runs.require(1).course_id == 1

    def test_rejected_import_keeps_state(self, planned_store: DataStore) -> None:
        payload = {
            "courses": [
                {"course_id": 1, "code": "AI180U", "name": "Juridik"},
                {"course_id": 2, "code": "AI181U", "name": "juridik"},
            ]
        }

        with pytest.raises(BusinessRuleError):
            planned_store.import_snapshot(payload)

        assert len(planned_store.courses.all()) == 3

    def test_duplicate_teachers_keep_lowest_id(self, store: DataStore) -> None:
        teachers = [
            {"teacher_id": 4, "name": "Cia Berg", "home_department": "AF"},
            {"teacher_id": 2, "name": "cia berg", "home_department": "AF"},
        ]

        store.import_snapshot({"teachers": teachers})

        assert [t.teacher_id for t in store.teachers.all()] == [2]
