"""Entity records for the planning store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date  # noqa: TC003 - used at runtime by dataclasses
from enum import StrEnum


class Department(StrEnum):
    """Home department of a teacher."""

    AIJ = "AIJ"
    AIE = "AIE"
    AF = "AF"


class LawType(StrEnum):
    """Kind of law course."""

    OVERVIEW = "overview"
    GENERAL = "general"
    SPECIAL = "special"
    BOSTADSRATT = "bostadsratt"
    BESKATTNING = "beskattning"
    QUALIFIED = "qualified"


class AvailabilityType(StrEnum):
    """Type of a teacher availability record."""

    BUSY = "busy"
    FREE = "free"


DEFAULT_RUN_STATUS = "planerad"


@dataclass
class Course:
    """A course in the program catalogue."""

    course_id: int
    code: str
    name: str
    credits: float = 7.5
    prerequisites: list[int] = field(default_factory=list)
    is_law_course: bool = False
    law_type: LawType | None = None
    preferred_order_index: int | None = None
    default_block_length: int = 1
    examinator_teacher_id: int | None = None
    kursansvarig_teacher_id: int | None = None


@dataclass
class Teacher:
    """A teacher and the courses they can teach."""

    teacher_id: int
    name: str
    home_department: Department
    compatible_courses: list[int] = field(default_factory=list)


@dataclass
class Cohort:
    """A cohort ("kull") of students starting together."""

    cohort_id: int
    name: str
    start_date: date
    planned_size: int


@dataclass
class Slot:
    """A teaching period."""

    slot_id: int
    start_date: date
    end_date: date
    evening_pattern: str = ""
    is_placeholder: bool = False
    location: str = ""
    is_law_period: bool = False


@dataclass
class CourseRun:
    """A course given in a slot to one or more cohorts."""

    run_id: int
    course_id: int
    slot_id: int
    teachers: list[int] = field(default_factory=list)
    cohorts: list[int] = field(default_factory=list)
    planned_students: int = 0
    status: str = DEFAULT_RUN_STATUS


@dataclass
class CourseSlot:
    """Unique (course, slot) link derived from course runs."""

    course_slot_id: int
    course_id: int
    slot_id: int


@dataclass
class SlotDay:
    """A materialized calendar day of a slot."""

    slot_day_id: int
    slot_id: int
    date: date


@dataclass
class TeachingDay:
    """Slot-wide (course_id None) or per-course teaching-day override."""

    slot_id: int
    date: date
    course_id: int | None = None
    is_default: bool = False
    active: bool = True


@dataclass
class CourseSlotDay:
    """Per-course teaching-day override within a course slot."""

    course_slot_day_id: int
    course_slot_id: int
    date: date
    is_default: bool = True
    active: bool = True


@dataclass
class ExamDate:
    """The exam date of a slot."""

    slot_id: int
    date: date
    locked: bool = True


@dataclass
class TeacherAvailability:
    """Unavailability record for a teacher.

    Slot grain when ``slot_id`` is set (covers the whole slot), day grain
    otherwise (``from_date == to_date``).
    """

    id: int
    teacher_id: int
    from_date: date
    to_date: date
    slot_id: int | None = None
    type: AvailabilityType = AvailabilityType.BUSY

    @property
    def is_slot_level(self) -> bool:
        return self.slot_id is not None

    @property
    def is_busy(self) -> bool:
        return self.type == AvailabilityType.BUSY


@dataclass(frozen=True)
class DayState:
    """Resolved state of a teaching day."""

    is_default: bool
    active: bool


@dataclass
class PlanningData:
    """Every collection of the planning state, as plain records."""

    courses: list[Course] = field(default_factory=list)
    teachers: list[Teacher] = field(default_factory=list)
    cohorts: list[Cohort] = field(default_factory=list)
    slots: list[Slot] = field(default_factory=list)
    course_runs: list[CourseRun] = field(default_factory=list)
    course_slots: list[CourseSlot] = field(default_factory=list)
    teacher_availability: list[TeacherAvailability] = field(default_factory=list)
    teaching_days: list[TeachingDay] = field(default_factory=list)
    slot_days: list[SlotDay] = field(default_factory=list)
    course_slot_days: list[CourseSlotDay] = field(default_factory=list)
    exam_dates: list[ExamDate] = field(default_factory=list)
    business_logic: dict | None = None

    def is_empty(self) -> bool:
        """True if none of the primary collections holds anything."""
        return not (self.courses or self.teachers or self.cohorts or self.slots)
