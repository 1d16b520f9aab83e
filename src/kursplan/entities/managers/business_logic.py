"""BusinessLogicManager - holds the scheduling rule configuration.

The business logic document carries the scheduling parameters (student caps,
replanning scope) and the hard/soft rule toggles shown to planners.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

MAX_STUDENTS_PREFERRED = 100
MAX_STUDENTS_HARD = 130
BUSINESS_LOGIC_VERSION = 1


@dataclass(frozen=True)
class CapacityLimits:
    """Student caps for a single course run."""

    hard: int = MAX_STUDENTS_HARD
    preferred: int = MAX_STUDENTS_PREFERRED


HARD_RULES_DEFAULT: list[dict[str, Any]] = [
    {
        "id": "prerequisitesOrder",
        "label": "Spärrkursordning",
        "description": "Kurs får inte starta innan alla spärrkurser är klara.",
        "enabled": True,
        "locked": True,
    },
    {
        "id": "maxOneCoursePerSlot",
        "label": "Max 1 kurs per slot (per kull)",
        "description": "En kull får inte läsa två kurser i samma slot.",
        "enabled": True,
        "locked": True,
    },
    {
        "id": "maxStudentsHard",
        "label": "Max studenter per kurs (hard)",
        "description": "Över denna gräns är inte tillåtet.",
        "enabled": True,
        "locked": False,
    },
    {
        "id": "noSkewedOverlap15hp",
        "label": "15hp får ej överlappa snett",
        "description": (
            "Om en 15hp-kurs spänner över två slots måste andra kullar "
            "starta den i samma start-slot."
        ),
        "enabled": True,
        "locked": True,
    },
    {
        "id": "requireAvailableCompatibleTeachers",
        "label": "Kräv tillgänglig kompatibel lärare",
        "description": (
            "Blockera schemaläggning om ingen kompatibel lärare är tillgänglig i perioden."
        ),
        "enabled": False,
        "locked": False,
    },
]

SOFT_RULES_DEFAULT: list[dict[str, Any]] = [
    {
        "id": "maximizeColocation",
        "label": "Samläsning först (matcha slot)",
        "description": (
            "Välj i första hand en kurs som redan startar i samma slot i andra kullar."
        ),
        "enabled": True,
    },
    {
        "id": "preferAvailableCompatibleTeachers",
        "label": "Prioritera tillgänglig kompatibel lärare",
        "description": "Välj alternativ med fler kompatibla lärare som är tillgängliga.",
        "enabled": True,
    },
    {
        "id": "packTowardHardCap",
        "label": "Packa inom samläsning (mot max)",
        "description": "Välj det alternativ som gör att totalen hamnar närmast max.",
        "enabled": True,
    },
    {
        "id": "futureJoinCapacity",
        "label": "Framåtblick: lämna plats",
        "description": "Lämna kapacitet så kommande kullar kan samläsa samma kurs.",
        "enabled": True,
    },
    {
        "id": "avoidEmptySlots",
        "label": "Undvik tomma slots",
        "description": "Prioritera val som gör att nästa slot också kan fyllas.",
        "enabled": True,
    },
    {
        "id": "avoidOverPreferred",
        "label": "Undvik > preferred",
        "description": "Undvik att överstiga preferred-gränsen när det finns alternativ.",
        "enabled": True,
    },
]

DEFAULT_BUSINESS_LOGIC: dict[str, Any] = {
    "version": BUSINESS_LOGIC_VERSION,
    "scheduling": {
        "params": {
            "maxStudentsHard": MAX_STUDENTS_HARD,
            "maxStudentsPreferred": MAX_STUDENTS_PREFERRED,
            "futureOnlyReplan": True,
        },
        "hardRules": HARD_RULES_DEFAULT,
        "softRules": SOFT_RULES_DEFAULT,
    },
}


def _normalize_rule_list(
    rules: Any, defaults: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    by_id = {rule["id"]: rule for rule in defaults}
    used: set[str] = set()
    result: list[dict[str, Any]] = []
    if isinstance(rules, list):
        for rule in rules:
            rule_id = rule.get("id") if isinstance(rule, Mapping) else None
            if rule_id not in by_id or rule_id in used:
                continue
            used.add(rule_id)
            base = by_id[rule_id]
            enabled = rule.get("enabled")
            flag = base["enabled"] if enabled is None else bool(enabled)
            result.append({**base, "enabled": flag})
    result.extend(dict(rule) for rule in defaults if rule["id"] not in used)
    return result


def _number_or(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_business_logic(data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Fill in defaults for a business logic document.

    Unknown rule IDs are dropped, known rules keep their order and only the
    ``enabled`` flag is taken from the input; missing rules are appended.
    """
    scheduling = (data or {}).get("scheduling") or {}
    params = scheduling.get("params") or {}
    defaults = DEFAULT_BUSINESS_LOGIC["scheduling"]["params"]
    future_only = params.get("futureOnlyReplan")
    return {
        "version": BUSINESS_LOGIC_VERSION,
        "scheduling": {
            "params": {
                "maxStudentsHard": _number_or(
                    params.get("maxStudentsHard"), defaults["maxStudentsHard"]
                ),
                "maxStudentsPreferred": _number_or(
                    params.get("maxStudentsPreferred"), defaults["maxStudentsPreferred"]
                ),
                "futureOnlyReplan": (
                    future_only if isinstance(future_only, bool) else defaults["futureOnlyReplan"]
                ),
            },
            "hardRules": _normalize_rule_list(scheduling.get("hardRules"), HARD_RULES_DEFAULT),
            "softRules": _normalize_rule_list(scheduling.get("softRules"), SOFT_RULES_DEFAULT),
        },
    }


def default_business_logic() -> dict[str, Any]:
    return copy.deepcopy(DEFAULT_BUSINESS_LOGIC)


def capacity_limits(business_logic: Mapping[str, Any]) -> CapacityLimits:
    params = business_logic["scheduling"]["params"]
    return CapacityLimits(hard=params["maxStudentsHard"], preferred=params["maxStudentsPreferred"])


def is_rule_enabled(business_logic: Mapping[str, Any], rule_id: str) -> bool:
    scheduling = business_logic["scheduling"]
    for rule in [*scheduling["hardRules"], *scheduling["softRules"]]:
        if rule["id"] == rule_id:
            return bool(rule["enabled"])
    return False


class BusinessLogicManager:
    """Owns the normalized business logic document."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self.business_logic: dict[str, Any] = (
            normalize_business_logic(initial) if initial else default_business_logic()
        )

    def load(self, business_logic: Mapping[str, Any] | None) -> None:
        self.business_logic = normalize_business_logic(business_logic)

    def get(self) -> dict[str, Any]:
        return self.business_logic

    def set(self, business_logic: Mapping[str, Any]) -> dict[str, Any]:
        self.business_logic = normalize_business_logic(business_logic)
        return self.business_logic

    def limits(self) -> CapacityLimits:
        return capacity_limits(self.business_logic)

    def is_enabled(self, rule_id: str) -> bool:
        return is_rule_enabled(self.business_logic, rule_id)
