"""Shared helpers for entity managers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def next_id(records: Iterable[Any], attr: str) -> int:
    """Return max(existing ids) + 1, starting at 1 for an empty collection."""
    return max((getattr(record, attr) or 0 for record in records), default=0) + 1
