"""SQLAlchemy tables for the snapshot repository."""

from __future__ import annotations

import datetime as dt  # noqa: TC003 - used at runtime for SQLAlchemy

from sqlalchemy import Boolean, Date, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all tables."""

    pass


class CourseRow(Base):
    __tablename__ = "courses"

    course_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    credits: Mapped[float] = mapped_column(Float, nullable=False, default=7.5)
    is_law_course: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    law_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    preferred_order_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    default_block_length: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    kursansvarig_teacher_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class CoursePrerequisiteRow(Base):
    __tablename__ = "course_prerequisites"

    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), primary_key=True
    )
    prerequisite_course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CourseExaminatorRow(Base):
    __tablename__ = "course_examinators"

    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), primary_key=True
    )
    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teachers.teacher_id"), nullable=False
    )


class TeacherRow(Base):
    __tablename__ = "teachers"

    teacher_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    home_department: Mapped[str] = mapped_column(String(10), nullable=False)


class TeacherCourseRow(Base):
    __tablename__ = "teacher_courses"

    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teachers.teacher_id"), primary_key=True
    )
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), primary_key=True
    )


class CohortRow(Base):
    __tablename__ = "cohorts"

    cohort_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False, unique=True)
    planned_size: Mapped[int] = mapped_column(Integer, nullable=False)


class SlotRow(Base):
    __tablename__ = "slots"

    slot_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    evening_pattern: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    is_placeholder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    is_law_period: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class CourseRunRow(Base):
    __tablename__ = "course_runs"

    run_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), nullable=False
    )
    slot_id: Mapped[int] = mapped_column(Integer, ForeignKey("slots.slot_id"), nullable=False)
    planned_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="planerad")


class CourseRunTeacherRow(Base):
    __tablename__ = "course_run_teachers"

    run_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("course_runs.run_id"), primary_key=True
    )
    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teachers.teacher_id"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CourseRunCohortRow(Base):
    __tablename__ = "course_run_cohorts"

    run_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("course_runs.run_id"), primary_key=True
    )
    cohort_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cohorts.cohort_id"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CourseSlotRow(Base):
    __tablename__ = "course_slots"
    __table_args__ = (UniqueConstraint("course_id", "slot_id"),)

    course_slot_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), nullable=False
    )
    slot_id: Mapped[int] = mapped_column(Integer, ForeignKey("slots.slot_id"), nullable=False)


class TeacherAvailabilityRow(Base):
    __tablename__ = "teacher_availability"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    teacher_id: Mapped[int] = mapped_column(Integer, nullable=False)
    from_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    to_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    slot_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="busy")


class TeachingDayRow(Base):
    __tablename__ = "teaching_days"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slot_id: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    course_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class SlotDayRow(Base):
    __tablename__ = "slot_days"

    slot_day_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slot_id: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)


class CourseSlotDayRow(Base):
    __tablename__ = "course_slot_days"

    course_slot_day_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_slot_id: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ExamDateRow(Base):
    __tablename__ = "exam_dates"

    slot_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class BusinessLogicRow(Base):
    """Single-row table holding the business logic document as JSON."""

    __tablename__ = "business_logic"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    document: Mapped[str] = mapped_column(Text, nullable=False)
