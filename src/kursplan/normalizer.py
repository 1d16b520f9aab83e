"""Date and shape normalization helpers.

Pure functions with no dependencies on the rest of the package. Everything
that enters the store passes through here first, so the managers can assume
``date`` objects and canonical course/teacher strings.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, timedelta
from typing import Any

DEFAULT_SLOT_LENGTH_DAYS = 28
ALLOWED_CREDITS = (7.5, 15.0)

# Monday == 0, matching date.weekday()
WEEKDAY_ALIASES: dict[str, int] = {
    "mån": 0,
    "man": 0,
    "mon": 0,
    "tis": 1,
    "tue": 1,
    "ons": 2,
    "wed": 2,
    "tor": 3,
    "tors": 3,
    "thu": 3,
    "fre": 4,
    "fri": 4,
    "lör": 5,
    "lor": 5,
    "sat": 5,
    "sön": 6,
    "son": 6,
    "sun": 6,
}

_PATTERN_SPLIT = re.compile(r"[/,\-\s+&]+")
_WHITESPACE = re.compile(r"\s+")


def parse_date(value: Any) -> date | None:
    """Parse a date-only value.

    Accepts ``date``/``datetime`` objects and ISO strings with or without a
    time part. Anything blank or unparseable yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def to_iso(value: date | None) -> str | None:
    """Format a date as YYYY-MM-DD."""
    return value.isoformat() if value is not None else None


def default_slot_end_date(start: date) -> date:
    """Return the default end date for a slot starting on ``start``."""
    return start + timedelta(days=DEFAULT_SLOT_LENGTH_DAYS - 1)


def slot_range(start: Any, end: Any = None) -> tuple[date, date] | None:
    """Resolve a slot's inclusive date range.

    Args:
        start: Slot start date (any form accepted by parse_date).
        end: Slot end date. Falls back to the default slot length when missing.

    Returns:
        (start, end) tuple, or None if the start date is unusable.
    """
    start_date = parse_date(start)
    if start_date is None:
        return None
    end_date = parse_date(end) or default_slot_end_date(start_date)
    return start_date, end_date


def date_range(start: date, end: date) -> list[date]:
    """Return every date from ``start`` to ``end`` inclusive."""
    if end < start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def parse_evening_pattern(pattern: str | None) -> list[int]:
    """Parse an evening pattern such as "tis/tor" or "Mon, Fri".

    Returns:
        Sorted weekday numbers (Monday == 0). Unknown tokens are ignored.
    """
    if not pattern:
        return []
    weekdays: set[int] = set()
    for token in _PATTERN_SPLIT.split(pattern.strip().lower()):
        if not token:
            continue
        weekday = WEEKDAY_ALIASES.get(token)
        if weekday is None:
            weekday = WEEKDAY_ALIASES.get(token[:3])
        if weekday is not None:
            weekdays.add(weekday)
    return sorted(weekdays)


def normalize_course_code(code: Any) -> str:
    return str(code or "").strip().upper()


def normalize_course_name(name: Any) -> str:
    """Canonical form used for course name uniqueness checks."""
    return _WHITESPACE.sub(" ", str(name or "").strip()).lower()


def normalize_teacher_name(name: Any) -> str:
    return _WHITESPACE.sub(" ", str(name or "").strip()).lower()


def clean_text(value: Any) -> str:
    """Strip and collapse whitespace while keeping the original case."""
    return _WHITESPACE.sub(" ", str(value or "").strip())


def normalize_credits(value: Any) -> float:
    """Coerce credits to one of the two allowed values (15 or 7.5)."""
    try:
        credits = float(value)
    except (TypeError, ValueError):
        return 7.5
    return 15.0 if credits == 15 else 7.5


def unique_ids(values: Any, exclude: int | None = None) -> list[int]:
    """Return ``values`` as an ordered, duplicate-free list of ints."""
    seen: list[int] = []
    for raw in values or []:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            continue
        if value == exclude or value in seen:
            continue
        seen.append(value)
    return seen


def coerce_course(data: Mapping[str, Any]) -> dict[str, Any]:
    """Coerce loosely shaped course input into canonical keyword arguments.

    Accepts the ``hp`` alias for credits and either ``prerequisites`` or
    ``prerequisite_ids``. Prerequisite codes must be resolved by the caller.

    Args:
        data: Raw course mapping (form input, CSV row, seed entry).

    Returns:
        Keyword arguments suitable for ``CoursesManager.add``.
    """
    credits = data.get("credits", data.get("hp", 7.5))
    prerequisites = data.get("prerequisites", data.get("prerequisite_ids", []))
    order_index = data.get("preferred_order_index")
    return {
        "code": normalize_course_code(data.get("code")),
        "name": clean_text(data.get("name")),
        "credits": normalize_credits(credits),
        "prerequisites": unique_ids(prerequisites),
        "is_law_course": bool(data.get("is_law_course", False)),
        "law_type": data.get("law_type") or None,
        "preferred_order_index": int(order_index) if order_index is not None else None,
        "default_block_length": int(data.get("default_block_length") or 1),
        "examinator_teacher_id": data.get("examinator_teacher_id"),
        "kursansvarig_teacher_id": data.get("kursansvarig_teacher_id"),
    }
