"""Duplicate folding for incoming snapshots.

Bulk input may carry the same course, teacher or cohort twice (a code typed
in lower case, a teacher name with extra spaces, two cohorts on one start
date). Duplicates are merged into the record with the lowest id and every
reference to a dropped id is pointed at the kept one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from typing import TypeVar

from kursplan.entities.exceptions import BusinessRuleError
from kursplan.entities.models import PlanningData
from kursplan.normalizer import (
    clean_text,
    normalize_course_code,
    normalize_course_name,
    normalize_teacher_name,
    unique_ids,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

DUPLICATE_COURSE_NAME = "En kurs med samma kursnamn finns redan."


def _fold(
    records: list[R], key: Callable[[R], Hashable], id_of: Callable[[R], int]
) -> tuple[list[R], dict[int, int], list[tuple[R, R]]]:
    """Keep the lowest-id record per key.

    Returns:
        Kept records in input order, a dropped-id to kept-id mapping and the
        (kept, dropped) pairs.
    """
    kept: dict[Hashable, R] = {}
    pairs: list[tuple[R, R]] = []
    for record in sorted(records, key=id_of):
        k = key(record)
        if k in kept:
            pairs.append((kept[k], record))
        else:
            kept[k] = record
    survivors = {id(r) for r in kept.values()}
    mapping = {id_of(drop): id_of(keep) for keep, drop in pairs}
    return [r for r in records if id(r) in survivors], mapping, pairs


def _remap(value: int | None, mapping: dict[int, int]) -> int | None:
    return mapping.get(value, value) if value is not None else None


def dedupe_planning_data(data: PlanningData) -> PlanningData:
    """Normalize names and codes and merge duplicate records in place.

    Courses fold on their code, teachers on their case-insensitive name and
    cohorts on their start date. Two courses with different codes but the
    same name cannot be merged.

    Raises:
        BusinessRuleError: If distinct course codes share a course name.
    """
    for course in data.courses:
        course.code = normalize_course_code(course.code)
        course.name = clean_text(course.name)
    for teacher in data.teachers:
        teacher.name = clean_text(teacher.name)

    data.courses, course_map, _ = _fold(data.courses, lambda c: c.code, lambda c: c.course_id)
    data.teachers, teacher_map, teacher_pairs = _fold(
        data.teachers, lambda t: normalize_teacher_name(t.name), lambda t: t.teacher_id
    )
    data.cohorts, cohort_map, _ = _fold(
        data.cohorts, lambda c: c.start_date, lambda c: c.cohort_id
    )

    names: set[str] = set()
    for course in data.courses:
        name = normalize_course_name(course.name)
        if name in names:
            raise BusinessRuleError(DUPLICATE_COURSE_NAME)
        names.add(name)

    for keep, drop in teacher_pairs:
        keep.compatible_courses = keep.compatible_courses + drop.compatible_courses

    if not (course_map or teacher_map or cohort_map):
        return data

    for course in data.courses:
        course.prerequisites = unique_ids(
            (course_map.get(p, p) for p in course.prerequisites), exclude=course.course_id
        )
        course.examinator_teacher_id = _remap(course.examinator_teacher_id, teacher_map)
        course.kursansvarig_teacher_id = _remap(course.kursansvarig_teacher_id, teacher_map)
    for teacher in data.teachers:
        teacher.compatible_courses = unique_ids(
            course_map.get(c, c) for c in teacher.compatible_courses
        )
    for run in data.course_runs:
        run.course_id = course_map.get(run.course_id, run.course_id)
        run.teachers = unique_ids(teacher_map.get(t, t) for t in run.teachers)
        run.cohorts = unique_ids(cohort_map.get(c, c) for c in run.cohorts)
    for record in data.teacher_availability:
        record.teacher_id = teacher_map.get(record.teacher_id, record.teacher_id)
    seen_days: set[tuple] = set()
    teaching_days = []
    for teaching_day in data.teaching_days:
        teaching_day.course_id = _remap(teaching_day.course_id, course_map)
        key = (teaching_day.slot_id, teaching_day.date, teaching_day.course_id)
        if key not in seen_days:
            seen_days.add(key)
            teaching_days.append(teaching_day)
    data.teaching_days = teaching_days

    for course_slot in data.course_slots:
        course_slot.course_id = course_map.get(course_slot.course_id, course_slot.course_id)
    data.course_slots, course_slot_map, _ = _fold(
        data.course_slots,
        lambda cs: (cs.course_id, cs.slot_id),
        lambda cs: cs.course_slot_id,
    )
    for day in data.course_slot_days:
        day.course_slot_id = course_slot_map.get(day.course_slot_id, day.course_slot_id)
    data.course_slot_days, _, _ = _fold(
        data.course_slot_days,
        lambda d: (d.course_slot_id, d.date),
        lambda d: d.course_slot_day_id,
    )

    logger.warning(
        "Merged duplicates in snapshot: %d courses, %d teachers, %d cohorts",
        len(course_map),
        len(teacher_map),
        len(cohort_map),
    )
    return data

