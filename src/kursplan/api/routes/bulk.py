"""Whole-snapshot load and save endpoints."""

from typing import Any

from fastapi import APIRouter, Body

from kursplan.api.dependencies import StoreDep
from kursplan.api.models import APIResponse, ReconciliationResponse, report_to_response

router = APIRouter(tags=["bulk"])


@router.get("/bulk-load", response_model=APIResponse[dict[str, Any]])
def bulk_load(store: StoreDep) -> APIResponse[dict[str, Any]]:
    """Return the whole planning state as a snapshot."""
    return APIResponse(data=store.export_snapshot().to_wire())


@router.post("/bulk-save", response_model=APIResponse[ReconciliationResponse])
def bulk_save(
    store: StoreDep, payload: dict[str, Any] = Body(...)
) -> APIResponse[ReconciliationResponse]:
    """Replace the whole planning state with a snapshot.

    The snapshot is validated and reconciled before it is stored; the
    response reports what reconciliation changed.
    """
    report = store.import_snapshot(payload)
    return APIResponse(data=report_to_response(report))
