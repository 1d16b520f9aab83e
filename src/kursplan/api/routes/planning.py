"""Planning query endpoints: prerequisites, ranking, co-reading and capacity."""

from fastapi import APIRouter

from kursplan.api.dependencies import StoreDep
from kursplan.api.models import (
    APIResponse,
    CapacityResponse,
    MergeSuggestionResponse,
    ProblemResponse,
    RankedCourseResponse,
    ReconciliationResponse,
    report_to_response,
)

router = APIRouter(tags=["planning"])


@router.get("/problems/prerequisites", response_model=APIResponse[list[ProblemResponse]])
def list_prerequisite_problems(store: StoreDep) -> APIResponse[list[ProblemResponse]]:
    """List every cohort's missing or mis-ordered prerequisites."""
    problems = store.find_prerequisite_problems()
    return APIResponse(data=[ProblemResponse.model_validate(p) for p in problems])


@router.post("/reconcile", response_model=APIResponse[ReconciliationResponse])
def reconcile(store: StoreDep) -> APIResponse[ReconciliationResponse]:
    """Run the reconciliation pass and persist its result."""
    return APIResponse(data=report_to_response(store.reconcile()))


@router.get(
    "/cohorts/{cohort_id}/available-courses",
    response_model=APIResponse[list[RankedCourseResponse]],
)
def list_available_courses(
    cohort_id: int, store: StoreDep, exclude_run_id: int | None = None
) -> APIResponse[list[RankedCourseResponse]]:
    """Rank the courses a cohort could read next."""
    ranked = store.rank_available_courses(cohort_id, exclude_run_id)
    return APIResponse(data=[RankedCourseResponse.model_validate(r) for r in ranked])


@router.get(
    "/cohorts/{cohort_id}/courses/{course_id}/merge-suggestions",
    response_model=APIResponse[list[MergeSuggestionResponse]],
)
def list_merge_suggestions(
    cohort_id: int, course_id: int, store: StoreDep
) -> APIResponse[list[MergeSuggestionResponse]]:
    """List existing runs of a course the cohort could join."""
    suggestions = store.suggest_course_run_merge(course_id, cohort_id)
    return APIResponse(data=[MergeSuggestionResponse.model_validate(s) for s in suggestions])


@router.get("/capacity/{students}", response_model=APIResponse[CapacityResponse])
def check_capacity(students: int, store: StoreDep) -> APIResponse[CapacityResponse]:
    """Check a student count against the capacity caps."""
    return APIResponse(data=CapacityResponse.model_validate(store.validate_capacity(students)))
