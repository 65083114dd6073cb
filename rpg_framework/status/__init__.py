"""
Status effect rules.
"""

from rpg_framework.status.tracker import (
    StatusTracker,
    StatusEffectTracker,
    StatusApplyResult,
    TickResult,
)

__all__ = [
    "StatusTracker",
    "StatusEffectTracker",
    "StatusApplyResult",
    "TickResult",
]
