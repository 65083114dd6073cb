"""
Battle components - data-only pydantic records.

Components hold validated data. Logic that works across them lives in the
battle services and the status tracker.
"""

from rpg_framework.components.stats import (
    Stats,
    StatBag,
    BASE_STAT_NAMES,
)
from rpg_framework.components.status import (
    Element,
    StatusType,
    StatusCategory,
    StatusEffect,
    DEFAULT_CATEGORIES,
    DISABLING_STATUSES,
    STAT_MODIFIERS,
    stat_multiplier,
)

__all__ = [
    # Stats
    "Stats",
    "StatBag",
    "BASE_STAT_NAMES",
    # Status
    "Element",
    "StatusType",
    "StatusCategory",
    "StatusEffect",
    "DEFAULT_CATEGORIES",
    "DISABLING_STATUSES",
    "STAT_MODIFIERS",
    "stat_multiplier",
]
