"""CoursesManager - owns the course catalogue."""

from __future__ import annotations

import logging
from typing import Any

from kursplan.entities.exceptions import BusinessRuleError, EntityNotFoundError
from kursplan.entities.managers.base import next_id
from kursplan.entities.models import Course, LawType
from kursplan.normalizer import (
    clean_text,
    normalize_course_code,
    normalize_course_name,
    normalize_credits,
    unique_ids,
)

logger = logging.getLogger(__name__)

_UPDATABLE = {
    "code",
    "name",
    "credits",
    "prerequisites",
    "is_law_course",
    "law_type",
    "preferred_order_index",
    "default_block_length",
    "examinator_teacher_id",
    "kursansvarig_teacher_id",
}


class CoursesManager:
    """CRUD and lookups for courses.

    Codes are stored upper-cased; names keep their case but are compared
    case- and whitespace-insensitively.
    """

    def __init__(self) -> None:
        self.courses: list[Course] = []

    def load(self, courses: list[Course]) -> None:
        self.courses = list(courses)

    def all(self) -> list[Course]:
        return list(self.courses)

    def get(self, course_id: int) -> Course | None:
        return next((c for c in self.courses if c.course_id == course_id), None)

    def require(self, course_id: int) -> Course:
        """Get a course by ID.

        Raises:
            EntityNotFoundError: If the course does not exist.
        """
        course = self.get(course_id)
        if course is None:
            raise EntityNotFoundError(f"Course {course_id} not found")
        return course

    def find_by_code(self, code: str) -> Course | None:
        wanted = normalize_course_code(code)
        return next((c for c in self.courses if c.code == wanted), None)

    def check_unique(self, code: str, name: str, exclude_id: int | None = None) -> None:
        """Reject a code or name already used by another course.

        Raises:
            BusinessRuleError: On a required-field or uniqueness violation.
        """
        wanted_code = normalize_course_code(code)
        wanted_name = normalize_course_name(name)
        if not wanted_code:
            raise BusinessRuleError("Kurskod måste anges.")
        if not wanted_name:
            raise BusinessRuleError("Kursnamn måste anges.")
        for course in self.courses:
            if course.course_id == exclude_id:
                continue
            if course.code == wanted_code:
                raise BusinessRuleError("En kurs med samma kurskod finns redan.")
            if normalize_course_name(course.name) == wanted_name:
                raise BusinessRuleError("En kurs med samma kursnamn finns redan.")

    def add(
        self,
        code: str,
        name: str,
        credits: float = 7.5,
        prerequisites: list[int] | None = None,
        is_law_course: bool = False,
        law_type: LawType | str | None = None,
        preferred_order_index: int | None = None,
        default_block_length: int = 1,
        examinator_teacher_id: int | None = None,
        kursansvarig_teacher_id: int | None = None,
        course_id: int | None = None,
    ) -> Course:
        """Add a course.

        Args:
            code: Course code (normalized to upper case).
            name: Course name.
            credits: 7.5 or 15; other values coerce to 7.5.
            prerequisites: Prerequisite course IDs.
            is_law_course: Whether the course is part of the law track.
            law_type: Kind of law course.
            preferred_order_index: Ordering hint for depot sorting.
            default_block_length: Number of slots the course usually spans.
            examinator_teacher_id: Examinator (validated by the caller).
            kursansvarig_teacher_id: Responsible teacher.
            course_id: Explicit ID, used when importing.

        Returns:
            The created course.

        Raises:
            BusinessRuleError: If code or name is missing or already taken.
        """
        self.check_unique(code, name)
        new_id = course_id if course_id is not None else next_id(self.courses, "course_id")
        course = Course(
            course_id=new_id,
            code=normalize_course_code(code),
            name=clean_text(name),
            credits=normalize_credits(credits),
            prerequisites=unique_ids(prerequisites, exclude=new_id),
            is_law_course=is_law_course,
            law_type=LawType(law_type) if law_type else None,
            preferred_order_index=preferred_order_index,
            default_block_length=default_block_length,
            examinator_teacher_id=examinator_teacher_id,
            kursansvarig_teacher_id=kursansvarig_teacher_id,
        )
        self.courses.append(course)
        logger.debug("Added course %s (%s)", course.course_id, course.code)
        return course

    def update(self, course_id: int, **updates: Any) -> Course:
        """Update fields of a course.

        Raises:
            EntityNotFoundError: If the course does not exist.
            BusinessRuleError: If the new code or name collides.
        """
        course = self.require(course_id)
        unknown = set(updates) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown course fields: {', '.join(sorted(unknown))}")

        code = updates.get("code", course.code)
        name = updates.get("name", course.name)
        self.check_unique(code, name, exclude_id=course_id)

        course.code = normalize_course_code(code)
        course.name = clean_text(name)
        if "credits" in updates:
            course.credits = normalize_credits(updates["credits"])
        if "prerequisites" in updates:
            course.prerequisites = unique_ids(updates["prerequisites"], exclude=course_id)
        if "law_type" in updates:
            course.law_type = LawType(updates["law_type"]) if updates["law_type"] else None
        for key in (
            "is_law_course",
            "preferred_order_index",
            "default_block_length",
            "examinator_teacher_id",
            "kursansvarig_teacher_id",
        ):
            if key in updates:
                setattr(course, key, updates[key])
        return course

    def delete(self, course_id: int) -> Course:
        """Delete a course and drop it from every prerequisite list.

        Runs, teacher compatibility and course slots are cascaded by the store.

        Raises:
            EntityNotFoundError: If the course does not exist.
        """
        course = self.require(course_id)
        self.courses.remove(course)
        for other in self.courses:
            if course_id in other.prerequisites:
                other.prerequisites = [p for p in other.prerequisites if p != course_id]
        logger.debug("Deleted course %s (%s)", course.course_id, course.code)
        return course

    def clear_teacher(self, teacher_id: int) -> None:
        """Clear examinator and kursansvarig references to a teacher."""
        for course in self.courses:
            if course.examinator_teacher_id == teacher_id:
                course.examinator_teacher_id = None
            if course.kursansvarig_teacher_id == teacher_id:
                course.kursansvarig_teacher_id = None

    def examinator_courses(self, teacher_id: int) -> list[Course]:
        return [c for c in self.courses if c.examinator_teacher_id == teacher_id]
