"""Teacher availability endpoints."""

from fastapi import APIRouter

from kursplan.api.dependencies import StoreDep
from kursplan.api.models import (
    APIResponse,
    CoverageResponse,
    DayToggleResponse,
    SlotToggleResponse,
)
from kursplan.entities.exceptions import ValidationError
from kursplan.normalizer import parse_date

router = APIRouter(prefix="/teachers/{teacher_id}", tags=["availability"])


@router.get(
    "/slots/{slot_id}/availability",
    response_model=APIResponse[CoverageResponse],
)
def get_slot_availability(
    teacher_id: int, slot_id: int, store: StoreDep
) -> APIResponse[CoverageResponse]:
    """Get how much of a slot the teacher is unavailable for."""
    store.teachers.require(teacher_id)
    store.slots.require(slot_id)
    coverage = store.engine.coverage(teacher_id, slot_id)
    return APIResponse(data=CoverageResponse.model_validate(coverage))


@router.post(
    "/slots/{slot_id}/availability/toggle",
    response_model=APIResponse[SlotToggleResponse],
)
def toggle_slot_availability(
    teacher_id: int, slot_id: int, store: StoreDep, force: bool = False
) -> APIResponse[SlotToggleResponse]:
    """Toggle the teacher's unavailability for a whole slot.

    A partially covered slot is rejected with 409 unless ``force`` is set.
    """
    unavailable = store.toggle_teacher_availability_for_slot(teacher_id, slot_id, force)
    coverage = store.engine.coverage(teacher_id, slot_id)
    return APIResponse(
        data=SlotToggleResponse(
            unavailable=unavailable, coverage=CoverageResponse.model_validate(coverage)
        )
    )


@router.post(
    "/days/{day}/availability/toggle",
    response_model=APIResponse[DayToggleResponse],
)
def toggle_day_availability(
    teacher_id: int, day: str, store: StoreDep
) -> APIResponse[DayToggleResponse]:
    """Toggle the teacher's unavailability for one day (YYYY-MM-DD)."""
    target = parse_date(day)
    if target is None:
        raise ValidationError("Ogiltigt datum.")
    unavailable = store.toggle_teacher_availability_for_day(teacher_id, target)
    return APIResponse(
        data=DayToggleResponse(teacher_id=teacher_id, day=target, unavailable=unavailable)
    )
