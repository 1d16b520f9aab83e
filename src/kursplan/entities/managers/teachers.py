"""TeachersManager - owns teachers and their course compatibility."""

from __future__ import annotations

import logging

from kursplan.entities.exceptions import BusinessRuleError, EntityNotFoundError
from kursplan.entities.managers.base import next_id
from kursplan.entities.models import Department, Teacher
from kursplan.normalizer import clean_text, normalize_teacher_name, unique_ids

logger = logging.getLogger(__name__)


class TeachersManager:
    """CRUD for teachers plus compatibility queries."""

    def __init__(self) -> None:
        self.teachers: list[Teacher] = []

    def load(self, teachers: list[Teacher]) -> None:
        self.teachers = list(teachers)

    def all(self) -> list[Teacher]:
        return list(self.teachers)

    def get(self, teacher_id: int) -> Teacher | None:
        return next((t for t in self.teachers if t.teacher_id == teacher_id), None)

    def require(self, teacher_id: int) -> Teacher:
        """Get a teacher by ID.

        Raises:
            EntityNotFoundError: If the teacher does not exist.
        """
        teacher = self.get(teacher_id)
        if teacher is None:
            raise EntityNotFoundError(f"Teacher {teacher_id} not found")
        return teacher

    def _validate(self, name: str, department: str | None, exclude_id: int | None = None) -> None:
        wanted = normalize_teacher_name(name)
        if not wanted:
            raise BusinessRuleError("Lärarens namn måste anges.")
        if not department:
            raise BusinessRuleError("Avdelning måste väljas.")
        if department not in {d.value for d in Department}:
            raise BusinessRuleError(f"Okänd avdelning: {department}")
        for teacher in self.teachers:
            if teacher.teacher_id != exclude_id and normalize_teacher_name(teacher.name) == wanted:
                raise BusinessRuleError("En lärare med samma namn finns redan.")

    def add(
        self,
        name: str,
        home_department: Department | str,
        compatible_courses: list[int] | None = None,
        teacher_id: int | None = None,
    ) -> Teacher:
        """Add a teacher.

        Raises:
            BusinessRuleError: If name or department is missing, unknown or duplicated.
        """
        self._validate(name, home_department)
        teacher = Teacher(
            teacher_id=(
                teacher_id if teacher_id is not None else next_id(self.teachers, "teacher_id")
            ),
            name=clean_text(name),
            home_department=Department(home_department),
            compatible_courses=unique_ids(compatible_courses),
        )
        self.teachers.append(teacher)
        return teacher

    def update(
        self,
        teacher_id: int,
        name: str | None = None,
        home_department: Department | str | None = None,
        compatible_courses: list[int] | None = None,
    ) -> Teacher:
        """Update a teacher. Only the given fields change."""
        teacher = self.require(teacher_id)
        next_name = name if name is not None else teacher.name
        next_department = (
            home_department if home_department is not None else teacher.home_department
        )
        self._validate(next_name, next_department, exclude_id=teacher_id)
        teacher.name = clean_text(next_name)
        teacher.home_department = Department(next_department)
        if compatible_courses is not None:
            teacher.compatible_courses = unique_ids(compatible_courses)
        return teacher

    def delete(self, teacher_id: int) -> Teacher:
        teacher = self.require(teacher_id)
        self.teachers.remove(teacher)
        logger.debug("Deleted teacher %s", teacher_id)
        return teacher

    def compatible_teachers(self, course_id: int) -> list[Teacher]:
        return [t for t in self.teachers if course_id in t.compatible_courses]

    def compatible_teacher_ids(self, course_id: int) -> list[int]:
        return [t.teacher_id for t in self.compatible_teachers(course_id)]

    def remove_course(self, course_id: int) -> None:
        """Drop a course from every teacher's compatible list."""
        for teacher in self.teachers:
            if course_id in teacher.compatible_courses:
                teacher.compatible_courses = [
                    c for c in teacher.compatible_courses if c != course_id
                ]

    def add_course_to_teachers(self, course_id: int, teacher_ids: list[int]) -> None:
        """Mark the given teachers as compatible with a course."""
        for teacher in self.teachers:
            if teacher.teacher_id in teacher_ids and course_id not in teacher.compatible_courses:
                teacher.compatible_courses.append(course_id)

    def sync_course_to_teachers(self, course_id: int, teacher_ids: list[int]) -> None:
        """Make exactly ``teacher_ids`` compatible with a course."""
        for teacher in self.teachers:
            has_course = course_id in teacher.compatible_courses
            wanted = teacher.teacher_id in teacher_ids
            if wanted and not has_course:
                teacher.compatible_courses.append(course_id)
            elif has_course and not wanted:
                teacher.compatible_courses = [
                    c for c in teacher.compatible_courses if c != course_id
                ]
