"""Entity managers, one per collection."""

from kursplan.entities.managers.availability import AvailabilityManager
from kursplan.entities.managers.business_logic import BusinessLogicManager
from kursplan.entities.managers.cohorts import CohortsManager
from kursplan.entities.managers.course_runs import CourseRunsManager
from kursplan.entities.managers.courses import CoursesManager
from kursplan.entities.managers.exam_dates import ExamDatesManager
from kursplan.entities.managers.slots import SlotsManager
from kursplan.entities.managers.teachers import TeachersManager
from kursplan.entities.managers.teaching_days import TeachingDaysManager

__all__ = [
    "AvailabilityManager",
    "BusinessLogicManager",
    "CohortsManager",
    "CourseRunsManager",
    "CoursesManager",
    "ExamDatesManager",
    "SlotsManager",
    "TeachersManager",
    "TeachingDaysManager",
]
