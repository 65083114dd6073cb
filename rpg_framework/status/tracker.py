"""
Status effect tracking.

The battle system talks to status rules only through the StatusTracker
protocol, so a game can swap in its own rules. StatusEffectTracker is the
default implementation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Protocol

from rpg_framework.components.status import (
    DISABLING_STATUSES,
    StatusCategory,
    StatusEffect,
    StatusType,
)

if TYPE_CHECKING:
    from rpg_framework.battle.combatant import Combatant

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """
    What one round of status processing did to a combatant.

    Attributes:
        combatant_id: Combatant that was ticked
        expired_ids: Ids of effects that ran out and were removed
        hp_delta: Net HP change (negative for damage over time)
    """
    combatant_id: str
    expired_ids: list[str] = field(default_factory=list)
    hp_delta: int = 0


@dataclass
class StatusApplyResult:
    success: bool
    reason: Optional[str] = None
    effect: Optional[StatusEffect] = None


class StatusTracker(Protocol):
    """Status rules the battle system depends on."""

    def can_act(self, combatant: Combatant) -> bool:
        ...

    def tick(self, combatant: Combatant) -> TickResult:
        ...

    def apply(self, combatant: Combatant, effect: StatusEffect) -> StatusApplyResult:
        ...


class StatusEffectTracker:
    """
    Default status rules.

    - Reapplying a type the combatant already has adds a stack (up to
      max_stack) and refreshes the duration
    - PARALYSIS, SLEEP and STUN prevent acting
    - POISON and BURN deal power per stack each round, REGENERATION heals it
    - Durations count down once per round; expired effects are removed
    """

    def apply(self, combatant: Combatant, effect: StatusEffect) -> StatusApplyResult:
        """
        Apply a status effect.

        Returns:
            StatusApplyResult; failure reasons are "target_defeated",
            "immune" and "max_stack"
        """
        if not combatant.is_alive:
            return StatusApplyResult(False, "target_defeated")
        if effect.status_type in combatant.immunities:
            return StatusApplyResult(False, "immune")

        existing = combatant.get_status(effect.status_type)
        if existing is None:
            combatant.status_effects.append(effect)
            logger.debug("%s gains %s", combatant.id, effect.status_type.name)
            return StatusApplyResult(True, effect=effect)

        if not existing.can_stack:
            return StatusApplyResult(False, "max_stack", existing)

        existing.stack_count += 1
        existing.duration = max(existing.duration, effect.duration)
        existing.max_duration = max(existing.max_duration, effect.duration)
        existing.power = max(existing.power, effect.power)
        logger.debug(
            "%s %s stacks to %d", combatant.id, existing.status_type.name, existing.stack_count
        )
        return StatusApplyResult(True, "stacked", existing)

    def can_act(self, combatant: Combatant) -> bool:
        if not combatant.is_alive:
            return False
        return not any(e.status_type in DISABLING_STATUSES for e in combatant.status_effects)

    def tick(self, combatant: Combatant) -> TickResult:
        """Apply damage/healing over time and count down durations."""
        result = TickResult(combatant_id=combatant.id)

        for effect in combatant.status_effects:
            amount = math.floor(effect.power * effect.stack_count)
            if amount <= 0 or not combatant.is_alive:
                continue
            if effect.category == StatusCategory.DOT:
                result.hp_delta -= combatant.take_damage(amount)
            elif effect.category == StatusCategory.HOT:
                result.hp_delta += combatant.heal(amount)

        remaining = []
        for effect in combatant.status_effects:
            effect.duration = max(0, effect.duration - 1)
            if effect.is_expired:
                result.expired_ids.append(effect.id)
            else:
                remaining.append(effect)
        combatant.status_effects = remaining

        if result.expired_ids:
            logger.debug("%s: effects expired %s", combatant.id, result.expired_ids)
        return result

    def remove(self, combatant: Combatant, status_type: StatusType) -> bool:
        """Remove a status effect by type."""
        for i, effect in enumerate(combatant.status_effects):
            if effect.status_type == status_type:
                combatant.status_effects.pop(i)
                return True
        return False

    def has(self, combatant: Combatant, status_type: StatusType) -> bool:
        return combatant.has_status(status_type)

    def dispel(self, combatant: Combatant, debuffs_only: bool = True) -> int:
        """
        Remove dispellable effects.

        Args:
            combatant: Combatant to cleanse
            debuffs_only: Keep buffs and regeneration

        Returns:
            Number of effects removed
        """
        original_count = len(combatant.status_effects)
        combatant.status_effects = [
            e for e in combatant.status_effects
            if not e.can_be_dispelled or (debuffs_only and not e.is_debuff)
        ]
        return original_count - len(combatant.status_effects)

    def clear(self, combatant: Combatant) -> None:
        combatant.status_effects.clear()
