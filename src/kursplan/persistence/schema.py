"""Snapshot wire format.

A snapshot carries every collection of the planning state as flat records.
Collection keys are camelCase; record fields are snake_case.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003 - used at runtime by pydantic
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from kursplan.entities.exceptions import SnapshotSchemaError
from kursplan.entities.managers.business_logic import normalize_business_logic
from kursplan.entities.models import (
    AvailabilityType,
    Cohort,
    Course,
    CourseRun,
    CourseSlot,
    CourseSlotDay,
    Department,
    ExamDate,
    LawType,
    PlanningData,
    Slot,
    SlotDay,
    Teacher,
    TeacherAvailability,
    TeachingDay,
)
from kursplan.normalizer import normalize_credits, unique_ids
from kursplan.persistence.dedupe import dedupe_planning_data

SCHEMA_VERSION = 1


class CourseRecord(BaseModel):
    course_id: int
    code: str
    name: str
    credits: float = 7.5
    is_law_course: bool = False
    law_type: LawType | None = None
    preferred_order_index: int | None = None
    default_block_length: int = 1
    kursansvarig_teacher_id: int | None = None


class CoursePrerequisiteRecord(BaseModel):
    course_id: int
    prerequisite_course_id: int


class CourseExaminatorRecord(BaseModel):
    course_id: int
    teacher_id: int


class TeacherRecord(BaseModel):
    teacher_id: int
    name: str
    home_department: Department


class TeacherCourseRecord(BaseModel):
    teacher_id: int
    course_id: int


class CohortRecord(BaseModel):
    cohort_id: int
    name: str = ""
    start_date: dt.date
    planned_size: int


class SlotRecord(BaseModel):
    slot_id: int
    start_date: dt.date
    end_date: dt.date
    evening_pattern: str = ""
    is_placeholder: bool = False
    location: str = ""
    is_law_period: bool = False


class CourseRunRecord(BaseModel):
    run_id: int
    course_id: int
    slot_id: int
    teachers: list[int] = Field(default_factory=list)
    cohorts: list[int] = Field(default_factory=list)
    planned_students: int = 0
    status: str = "planerad"


class CourseSlotRecord(BaseModel):
    course_slot_id: int
    course_id: int
    slot_id: int


class TeacherAvailabilityRecord(BaseModel):
    id: int
    teacher_id: int
    from_date: dt.date
    to_date: dt.date
    slot_id: int | None = None
    type: AvailabilityType = AvailabilityType.BUSY


class TeachingDayRecord(BaseModel):
    slot_id: int
    date: dt.date
    course_id: int | None = None
    is_default: bool = False
    active: bool = True


class SlotDayRecord(BaseModel):
    slot_day_id: int
    slot_id: int
    date: dt.date


class CourseSlotDayRecord(BaseModel):
    course_slot_day_id: int
    course_slot_id: int
    date: dt.date
    is_default: bool = True
    active: bool = True


class ExamDateRecord(BaseModel):
    slot_id: int
    date: dt.date
    locked: bool = True


class Snapshot(BaseModel):
    """Versioned bulk representation of the planning state."""

    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = SCHEMA_VERSION
    courses: list[CourseRecord] = Field(default_factory=list)
    course_prerequisites: list[CoursePrerequisiteRecord] = Field(
        default_factory=list, alias="coursePrerequisites"
    )
    course_examinators: list[CourseExaminatorRecord] = Field(
        default_factory=list, alias="courseExaminators"
    )
    teachers: list[TeacherRecord] = Field(default_factory=list)
    teacher_courses: list[TeacherCourseRecord] = Field(
        default_factory=list, alias="teacherCourses"
    )
    cohorts: list[CohortRecord] = Field(default_factory=list)
    slots: list[SlotRecord] = Field(default_factory=list)
    course_runs: list[CourseRunRecord] = Field(default_factory=list, alias="courseRuns")
    course_slots: list[CourseSlotRecord] = Field(default_factory=list, alias="courseSlots")
    teacher_availability: list[TeacherAvailabilityRecord] = Field(
        default_factory=list, alias="teacherAvailability"
    )
    teaching_days: list[TeachingDayRecord] = Field(default_factory=list, alias="teachingDays")
    slot_days: list[SlotDayRecord] = Field(default_factory=list, alias="slotDays")
    course_slot_days: list[CourseSlotDayRecord] = Field(
        default_factory=list, alias="courseSlotDays"
    )
    exam_dates: list[ExamDateRecord] = Field(default_factory=list, alias="examDates")
    business_logic: dict[str, Any] | None = Field(default=None, alias="businessLogic")

    @field_validator("schema_version")
    @classmethod
    def check_version(cls, value: int) -> int:
        if value != SCHEMA_VERSION:
            raise ValueError(f"unsupported schema version {value}")
        return value

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict with camelCase collection keys."""
        return self.model_dump(mode="json", by_alias=True)

    def is_empty(self) -> bool:
        return not (self.courses or self.teachers or self.cohorts or self.slots)

    @classmethod
    def from_data(cls, data: PlanningData) -> Snapshot:
        """Flatten the in-memory collections into a snapshot."""
        return cls(
            courses=[
                CourseRecord(
                    course_id=c.course_id,
                    code=c.code,
                    name=c.name,
                    credits=c.credits,
                    is_law_course=c.is_law_course,
                    law_type=c.law_type,
                    preferred_order_index=c.preferred_order_index,
                    default_block_length=c.default_block_length,
                    kursansvarig_teacher_id=c.kursansvarig_teacher_id,
                )
                for c in data.courses
            ],
            course_prerequisites=[
                CoursePrerequisiteRecord(course_id=c.course_id, prerequisite_course_id=p)
                for c in data.courses
                for p in c.prerequisites
            ],
            course_examinators=[
                CourseExaminatorRecord(course_id=c.course_id, teacher_id=c.examinator_teacher_id)
                for c in data.courses
                if c.examinator_teacher_id is not None
            ],
            teachers=[
                TeacherRecord(
                    teacher_id=t.teacher_id, name=t.name, home_department=t.home_department
                )
                for t in data.teachers
            ],
            teacher_courses=[
                TeacherCourseRecord(teacher_id=t.teacher_id, course_id=course_id)
                for t in data.teachers
                for course_id in t.compatible_courses
            ],
            cohorts=[CohortRecord(**vars(c)) for c in data.cohorts],
            slots=[SlotRecord(**vars(s)) for s in data.slots],
            course_runs=[
                CourseRunRecord(
                    run_id=r.run_id,
                    course_id=r.course_id,
                    slot_id=r.slot_id,
                    teachers=list(r.teachers),
                    cohorts=list(r.cohorts),
                    planned_students=r.planned_students,
                    status=r.status,
                )
                for r in data.course_runs
            ],
            course_slots=[CourseSlotRecord(**vars(cs)) for cs in data.course_slots],
            teacher_availability=[
                TeacherAvailabilityRecord(**vars(a)) for a in data.teacher_availability
            ],
            teaching_days=[TeachingDayRecord(**vars(td)) for td in data.teaching_days],
            slot_days=[SlotDayRecord(**vars(sd)) for sd in data.slot_days],
            course_slot_days=[CourseSlotDayRecord(**vars(csd)) for csd in data.course_slot_days],
            exam_dates=[ExamDateRecord(**vars(e)) for e in data.exam_dates],
            business_logic=data.business_logic,
        )

    def to_data(self) -> PlanningData:
        """Rebuild the in-memory collections from the flat records.

        Prerequisite, examinator and compatibility rows referring to unknown
        ids are dropped. Codes and names are normalized and duplicate
        courses, teachers and cohorts merged (see dedupe_planning_data).

        Raises:
            BusinessRuleError: If two course codes share a course name.
        """
        course_ids = {c.course_id for c in self.courses}
        teacher_ids = {t.teacher_id for t in self.teachers}

        prerequisites: dict[int, list[int]] = {}
        for row in self.course_prerequisites:
            if row.course_id in course_ids and row.prerequisite_course_id in course_ids:
                prerequisites.setdefault(row.course_id, []).append(row.prerequisite_course_id)
        examinators = {
            row.course_id: row.teacher_id
            for row in self.course_examinators
            if row.teacher_id in teacher_ids
        }
        compatible: dict[int, list[int]] = {}
        for row in self.teacher_courses:
            if row.course_id in course_ids:
                compatible.setdefault(row.teacher_id, []).append(row.course_id)

        courses = [
            Course(
                course_id=c.course_id,
                code=c.code,
                name=c.name,
                credits=normalize_credits(c.credits),
                prerequisites=unique_ids(prerequisites.get(c.course_id), exclude=c.course_id),
                is_law_course=c.is_law_course,
                law_type=c.law_type,
                preferred_order_index=c.preferred_order_index,
                default_block_length=c.default_block_length,
                examinator_teacher_id=examinators.get(c.course_id),
                kursansvarig_teacher_id=(
                    c.kursansvarig_teacher_id if c.kursansvarig_teacher_id in teacher_ids else None
                ),
            )
            for c in self.courses
        ]
        teachers = [
            Teacher(
                teacher_id=t.teacher_id,
                name=t.name,
                home_department=t.home_department,
                compatible_courses=unique_ids(compatible.get(t.teacher_id)),
            )
            for t in self.teachers
        ]
        data = PlanningData(
            courses=courses,
            teachers=teachers,
            cohorts=[Cohort(**c.model_dump()) for c in self.cohorts],
            slots=[Slot(**s.model_dump()) for s in self.slots],
            course_runs=[CourseRun(**r.model_dump()) for r in self.course_runs],
            course_slots=[CourseSlot(**cs.model_dump()) for cs in self.course_slots],
            teacher_availability=[
                TeacherAvailability(**a.model_dump()) for a in self.teacher_availability
            ],
            teaching_days=[TeachingDay(**td.model_dump()) for td in self.teaching_days],
            slot_days=[SlotDay(**sd.model_dump()) for sd in self.slot_days],
            course_slot_days=[CourseSlotDay(**csd.model_dump()) for csd in self.course_slot_days],
            exam_dates=[ExamDate(**e.model_dump()) for e in self.exam_dates],
            business_logic=normalize_business_logic(self.business_logic)
            if self.business_logic is not None
            else None,
        )
        return dedupe_planning_data(data)


def parse_snapshot(payload: Mapping[str, Any] | None) -> Snapshot:
    """Validate a raw snapshot payload.

    A missing ``schema_version`` is read as the current version.

    Raises:
        SnapshotSchemaError: If the payload does not match the snapshot schema.
    """
    if payload is None:
        return Snapshot()
    if not isinstance(payload, Mapping):
        raise SnapshotSchemaError("Snapshot must be a mapping")
    try:
        return Snapshot.model_validate(dict(payload))
    except PydanticValidationError as e:
        raise SnapshotSchemaError(f"Invalid snapshot: {e}") from e
