"""REST API for kursplan."""

from kursplan.api.app import app, create_app
from kursplan.api.models import (
    APIResponse,
    MergeSuggestionResponse,
    RankedCourseResponse,
    ReconciliationResponse,
)

__all__ = [
    "APIResponse",
    "MergeSuggestionResponse",
    "RankedCourseResponse",
    "ReconciliationResponse",
    "app",
    "create_app",
]
