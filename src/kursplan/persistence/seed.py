"""Built-in dataset used when the backend holds no planning data.

Courses, cohorts, teachers and slots of the real-estate agent program.
No course runs are seeded.
"""

from __future__ import annotations

import logging
from typing import Any

from kursplan.entities.managers.cohorts import CohortsManager
from kursplan.entities.managers.courses import CoursesManager
from kursplan.entities.managers.slots import SlotsManager
from kursplan.entities.managers.teachers import TeachersManager
from kursplan.entities.models import PlanningData
from kursplan.normalizer import coerce_course

logger = logging.getLogger(__name__)

SEED_LOCATION = "FEI Campus"

SEED_COURSES: list[dict[str, Any]] = [
    {
        "code": "AI180U",
        "name": "Juridisk översiktskurs",
        "hp": 15.0,
        "is_law_course": True,
        "law_type": "overview",
        "default_block_length": 2,
        "preferred_order_index": 0,
    },
    {
        "code": "AI188U",
        "name": "Marknadsanalys och marknadsföring för fastighetsmäklare",
        "hp": 7.5,
        "preferred_order_index": 1,
    },
    {"code": "AI183U", "name": "Husbyggnadsteknik", "hp": 7.5, "preferred_order_index": 2},
    {
        "code": "AI184U",
        "name": "Fastighetsförmedling introduktion",
        "hp": 15.0,
        "default_block_length": 2,
        "preferred_order_index": 3,
    },
    {
        "code": "AI190U",
        "name": "Fastighetsvärdering för fastighetsmäklare",
        "hp": 7.5,
        "preferred_order_index": 4,
    },
    {
        "code": "AI192U",
        "name": "Allmän fastighetsrätt för fastighetsförmedlare",
        "hp": 7.5,
        "is_law_course": True,
        "law_type": "general",
        "preferred_order_index": 5,
        "prerequisite_codes": ["AI180U"],
    },
    {
        "code": "AI191U",
        "name": "Bostadsrätt för fastighetsmäklare",
        "hp": 7.5,
        "is_law_course": True,
        "law_type": "bostadsratt",
        "preferred_order_index": 6,
    },
    {
        "code": "AI181U",
        "name": "Extern redovisning för fastighetsmäklare",
        "hp": 7.5,
        "preferred_order_index": 8,
    },
    {
        "code": "AI185U",
        "name": "Ekonomistyrning för fastighetsmäklare",
        "hp": 7.5,
        "preferred_order_index": 9,
    },
    {
        "code": "AI186U",
        "name": "Beskattningsrätt för fastighetsmäklare",
        "hp": 7.5,
        "is_law_course": True,
        "law_type": "beskattning",
        "preferred_order_index": 10,
    },
    {
        "code": "AI182U",
        "name": "Speciell fastighetsrätt för fastighetsförmedlare",
        "hp": 7.5,
        "is_law_course": True,
        "law_type": "special",
        "preferred_order_index": 7,
        "prerequisite_codes": ["AI192U"],
    },
    {
        "code": "AI189U",
        "name": "Fastighetsförmedling - kvalificerad fastighetsmäklarjuridik",
        "hp": 7.5,
        "is_law_course": True,
        "law_type": "qualified",
        "preferred_order_index": 11,
    },
    {
        "code": "AI187U",
        "name": "Arbetsmarknad och företagande för fastighetsmäklare",
        "hp": 7.5,
        "preferred_order_index": 12,
    },
    {
        "code": "AI181U_KOMM",
        "name": "Fastighetsförmedling - kommunikation",
        "hp": 7.5,
        "preferred_order_index": 13,
    },
]

SEED_COHORTS: list[tuple[str, int]] = [
    ("2024-06-05", 30),
    ("2024-09-06", 28),
    ("2024-10-03", 32),
    ("2024-10-30", 25),
    ("2025-01-08", 29),
    ("2025-02-05", 31),
    ("2025-04-02", 27),
    ("2025-04-28", 26),
    ("2025-08-13", 30),
    ("2025-10-08", 28),
]

SEED_TEACHERS: list[tuple[str, str]] = [
    ("Annina Persson", "AIJ"),
    ("Anna Broback", "AIE"),
    ("Annika Gram", "AF"),
    ("Henry Muyingo", "AIJ"),
    ("Jonny Flodin", "AIJ"),
    ("Ny adjunkt", "AIE"),
    ("Tim", "AIJ"),
    ("Rickard Engström", "AIE"),
    ("Torun Widström", "AF"),
    ("Inga-Lill Söderberg", "AIE"),
    ("Ulrika Myślinski", "AIJ"),
    ("Jenny Paulsson", "AIJ"),
]

SEED_SLOTS: list[tuple[str, str, str]] = [
    ("2024-06-10", "2024-07-05", "tis/tor"),
    ("2024-09-09", "2024-10-04", "mån/fre"),
    ("2024-10-07", "2024-11-01", "tis/tor"),
    ("2025-01-13", "2025-02-07", "mån/fre"),
    ("2025-02-10", "2025-03-07", "tis/tor"),
    ("2025-03-10", "2025-04-04", "mån/fre"),
    ("2025-04-07", "2025-05-02", "tis/tor"),
    ("2025-05-05", "2025-05-30", "mån/fre"),
    ("2025-06-02", "2025-06-27", "tis/tor"),
    ("2025-08-18", "2025-09-12", "mån/fre"),
    ("2025-10-13", "2025-11-07", "tis/tor"),
    ("2025-11-10", "2025-12-05", "mån/fre"),
    ("2026-02-16", "2026-03-13", "tis/tor"),
    ("2026-03-16", "2026-04-10", "mån/fre"),
    ("2026-04-13", "2026-05-08", "tis/tor"),
    ("2026-05-11", "2026-06-05", "mån/fre"),
    ("2026-06-08", "2026-07-03", "tis/tor"),
    ("2026-08-17", "2026-09-11", "mån/fre"),
    ("2026-09-14", "2026-10-09", "tis/tor"),
    ("2026-10-12", "2026-11-06", "mån/fre"),
    ("2026-11-09", "2026-12-04", "tis/tor"),
    ("2026-12-07", "2027-01-22", "mån/fre"),
    ("2027-01-25", "2027-02-19", "tis/tor"),
    ("2027-02-22", "2027-03-19", "mån/fre"),
    ("2027-03-22", "2027-04-16", "tis/tor"),
    ("2027-04-19", "2027-05-14", "mån/fre"),
    ("2027-05-17", "2027-06-11", "tis/tor"),
    ("2027-06-14", "2027-07-09", "mån/fre"),
    ("2027-08-09", "2027-09-03", "tis/tor"),
    ("2027-09-06", "2027-10-01", "mån/fre"),
]


def build_seed_data() -> PlanningData:
    """Build the built-in dataset through the entity managers.

    Prerequisite codes are resolved to IDs after all courses exist.
    """
    courses = CoursesManager()
    for entry in SEED_COURSES:
        courses.add(**coerce_course(entry))
    for entry in SEED_COURSES:
        codes = entry.get("prerequisite_codes") or []
        if not codes:
            continue
        course = courses.find_by_code(entry["code"])
        prerequisite_ids = []
        for code in codes:
            prerequisite = courses.find_by_code(code)
            if prerequisite is not None:
                prerequisite_ids.append(prerequisite.course_id)
        if course is not None:
            courses.update(course.course_id, prerequisites=prerequisite_ids)

    teachers = TeachersManager()
    for name, department in SEED_TEACHERS:
        teachers.add(name=name, home_department=department)

    cohorts = CohortsManager()
    for start_date, planned_size in SEED_COHORTS:
        cohorts.add(start_date=start_date, planned_size=planned_size)

    slots = SlotsManager()
    for start_date, end_date, pattern in SEED_SLOTS:
        slots.add(
            start_date=start_date,
            end_date=end_date,
            evening_pattern=pattern,
            location=SEED_LOCATION,
        )

    logger.info(
        "Built seed data: %d courses, %d teachers, %d cohorts, %d slots",
        len(courses.courses),
        len(teachers.teachers),
        len(cohorts.cohorts),
        len(slots.slots),
    )
    return PlanningData(
        courses=courses.all(),
        teachers=teachers.all(),
        cohorts=cohorts.all(),
        slots=slots.all(),
        slot_days=list(slots.slot_days),
    )
