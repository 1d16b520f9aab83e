"""SqlSnapshotRepository - bulk load and save of snapshots through SQLAlchemy."""

from __future__ import annotations

import json
import logging
from collections import defaultdict

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session  # noqa: TC002

from kursplan.entities.exceptions import PersistenceError
from kursplan.persistence.database import Database
from kursplan.persistence.schema import (
    CohortRecord,
    CourseExaminatorRecord,
    CoursePrerequisiteRecord,
    CourseRecord,
    CourseRunRecord,
    CourseSlotDayRecord,
    CourseSlotRecord,
    ExamDateRecord,
    SlotDayRecord,
    SlotRecord,
    Snapshot,
    TeacherAvailabilityRecord,
    TeacherCourseRecord,
    TeacherRecord,
    TeachingDayRecord,
)
from kursplan.persistence.tables import (
    Base,
    BusinessLogicRow,
    CohortRow,
    CourseExaminatorRow,
    CoursePrerequisiteRow,
    CourseRow,
    CourseRunCohortRow,
    CourseRunRow,
    CourseRunTeacherRow,
    CourseSlotDayRow,
    CourseSlotRow,
    ExamDateRow,
    SlotDayRow,
    SlotRow,
    TeacherAvailabilityRow,
    TeacherCourseRow,
    TeacherRow,
    TeachingDayRow,
)

logger = logging.getLogger(__name__)


class SqlSnapshotRepository:
    """Stores the whole planning state in SQLite.

    A save clears every table and inserts the snapshot in one transaction,
    so the database always holds exactly the last saved snapshot.
    """

    def __init__(self, db_path: str = "kursplan.db") -> None:
        """Open the database and create tables if they don't exist.

        Args:
            db_path: Path to SQLite database file
        """
        self._db = Database(db_path)
        self._db.create_tables()

    @property
    def database(self) -> Database:
        return self._db

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def load(self) -> Snapshot:
        """Read the stored snapshot (empty if nothing was saved).

        Raises:
            PersistenceError: If the database cannot be read.
        """
        try:
            with self._db.transaction() as session:
                snapshot = self._read(session)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load snapshot: {e}") from e
        logger.info(
            "Loaded snapshot: %d courses, %d cohorts, %d slots, %d runs",
            len(snapshot.courses),
            len(snapshot.cohorts),
            len(snapshot.slots),
            len(snapshot.course_runs),
        )
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """Replace the stored state with ``snapshot``.

        Raises:
            PersistenceError: If the write fails; the database is left unchanged.
        """
        try:
            with self._db.transaction() as session:
                self._clear(session)
                self._write(session, snapshot)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save snapshot: {e}") from e
        logger.debug("Saved snapshot with %d course runs", len(snapshot.course_runs))

    # --- Internals ---

    @staticmethod
    def _clear(session: Session) -> None:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(delete(table))

    @staticmethod
    def _write(session: Session, snapshot: Snapshot) -> None:
        # Flushed tier by tier so referenced rows exist before their references
        session.add_all(
            CourseRow(**c.model_dump(mode="python")) for c in snapshot.courses
        )
        session.add_all(
            TeacherRow(
                teacher_id=t.teacher_id, name=t.name, home_department=str(t.home_department)
            )
            for t in snapshot.teachers
        )
        session.add_all(CohortRow(**c.model_dump()) for c in snapshot.cohorts)
        session.add_all(SlotRow(**s.model_dump()) for s in snapshot.slots)
        session.flush()

        session.add_all(
            CoursePrerequisiteRow(
                course_id=p.course_id, prerequisite_course_id=p.prerequisite_course_id, position=i
            )
            for i, p in enumerate(snapshot.course_prerequisites)
        )
        session.add_all(CourseExaminatorRow(**e.model_dump()) for e in snapshot.course_examinators)
        session.add_all(TeacherCourseRow(**tc.model_dump()) for tc in snapshot.teacher_courses)
        session.add_all(
            CourseRunRow(
                run_id=r.run_id,
                course_id=r.course_id,
                slot_id=r.slot_id,
                planned_students=r.planned_students,
                status=r.status,
            )
            for r in snapshot.course_runs
        )
        session.add_all(CourseSlotRow(**cs.model_dump()) for cs in snapshot.course_slots)
        session.flush()

        for run in snapshot.course_runs:
            session.add_all(
                CourseRunTeacherRow(run_id=run.run_id, teacher_id=t, position=i)
                for i, t in enumerate(run.teachers)
            )
            session.add_all(
                CourseRunCohortRow(run_id=run.run_id, cohort_id=c, position=i)
                for i, c in enumerate(run.cohorts)
            )
        session.add_all(
            TeacherAvailabilityRow(
                id=a.id,
                teacher_id=a.teacher_id,
                from_date=a.from_date,
                to_date=a.to_date,
                slot_id=a.slot_id,
                type=str(a.type),
            )
            for a in snapshot.teacher_availability
        )
        session.add_all(TeachingDayRow(**td.model_dump()) for td in snapshot.teaching_days)
        session.add_all(SlotDayRow(**sd.model_dump()) for sd in snapshot.slot_days)
        session.add_all(CourseSlotDayRow(**csd.model_dump()) for csd in snapshot.course_slot_days)
        session.add_all(ExamDateRow(**e.model_dump()) for e in snapshot.exam_dates)
        if snapshot.business_logic is not None:
            session.add(BusinessLogicRow(id=1, document=json.dumps(snapshot.business_logic)))

    @staticmethod
    def _read(session: Session) -> Snapshot:
        def rows(model: type[Base]) -> list:
            return list(session.execute(select(model)).scalars())

        run_teachers: dict[int, list[CourseRunTeacherRow]] = defaultdict(list)
        for row in rows(CourseRunTeacherRow):
            run_teachers[row.run_id].append(row)
        run_cohorts: dict[int, list[CourseRunCohortRow]] = defaultdict(list)
        for row in rows(CourseRunCohortRow):
            run_cohorts[row.run_id].append(row)

        business_row = session.get(BusinessLogicRow, 1)
        prerequisites = sorted(rows(CoursePrerequisiteRow), key=lambda p: p.position)
        teaching_days = sorted(rows(TeachingDayRow), key=lambda td: td.id)

        return Snapshot(
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
                for c in sorted(rows(CourseRow), key=lambda c: c.course_id)
            ],
            course_prerequisites=[
                CoursePrerequisiteRecord(
                    course_id=p.course_id, prerequisite_course_id=p.prerequisite_course_id
                )
                for p in prerequisites
            ],
            course_examinators=[
                CourseExaminatorRecord(course_id=e.course_id, teacher_id=e.teacher_id)
                for e in rows(CourseExaminatorRow)
            ],
            teachers=[
                TeacherRecord(
                    teacher_id=t.teacher_id, name=t.name, home_department=t.home_department
                )
                for t in sorted(rows(TeacherRow), key=lambda t: t.teacher_id)
            ],
            teacher_courses=[
                TeacherCourseRecord(teacher_id=tc.teacher_id, course_id=tc.course_id)
                for tc in rows(TeacherCourseRow)
            ],
            cohorts=[
                CohortRecord(
                    cohort_id=c.cohort_id,
                    name=c.name,
                    start_date=c.start_date,
                    planned_size=c.planned_size,
                )
                for c in sorted(rows(CohortRow), key=lambda c: c.cohort_id)
            ],
            slots=[
                SlotRecord(
                    slot_id=s.slot_id,
                    start_date=s.start_date,
                    end_date=s.end_date,
                    evening_pattern=s.evening_pattern,
                    is_placeholder=s.is_placeholder,
                    location=s.location,
                    is_law_period=s.is_law_period,
                )
                for s in sorted(rows(SlotRow), key=lambda s: s.slot_id)
            ],
            course_runs=[
                CourseRunRecord(
                    run_id=r.run_id,
                    course_id=r.course_id,
                    slot_id=r.slot_id,
                    teachers=[
                        t.teacher_id
                        for t in sorted(run_teachers[r.run_id], key=lambda t: t.position)
                    ],
                    cohorts=[
                        c.cohort_id
                        for c in sorted(run_cohorts[r.run_id], key=lambda c: c.position)
                    ],
                    planned_students=r.planned_students,
                    status=r.status,
                )
                for r in sorted(rows(CourseRunRow), key=lambda r: r.run_id)
            ],
            course_slots=[
                CourseSlotRecord(
                    course_slot_id=cs.course_slot_id, course_id=cs.course_id, slot_id=cs.slot_id
                )
                for cs in sorted(rows(CourseSlotRow), key=lambda cs: cs.course_slot_id)
            ],
            teacher_availability=[
                TeacherAvailabilityRecord(
                    id=a.id,
                    teacher_id=a.teacher_id,
                    from_date=a.from_date,
                    to_date=a.to_date,
                    slot_id=a.slot_id,
                    type=a.type,
                )
                for a in sorted(rows(TeacherAvailabilityRow), key=lambda a: a.id)
            ],
            teaching_days=[
                TeachingDayRecord(
                    slot_id=td.slot_id,
                    date=td.date,
                    course_id=td.course_id,
                    is_default=td.is_default,
                    active=td.active,
                )
                for td in teaching_days
            ],
            slot_days=[
                SlotDayRecord(slot_day_id=sd.slot_day_id, slot_id=sd.slot_id, date=sd.date)
                for sd in sorted(rows(SlotDayRow), key=lambda sd: sd.slot_day_id)
            ],
            course_slot_days=[
                CourseSlotDayRecord(
                    course_slot_day_id=csd.course_slot_day_id,
                    course_slot_id=csd.course_slot_id,
                    date=csd.date,
                    is_default=csd.is_default,
                    active=csd.active,
                )
                for csd in sorted(rows(CourseSlotDayRow), key=lambda csd: csd.course_slot_day_id)
            ],
            exam_dates=[
                ExamDateRecord(slot_id=e.slot_id, date=e.date, locked=e.locked)
                for e in sorted(rows(ExamDateRow), key=lambda e: e.slot_id)
            ],
            business_logic=json.loads(business_row.document) if business_row else None,
        )
