"""
Battle actions - attack, skill, item, defend, escape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from rpg_engine.core.config import CombatConfig, DEFAULT_CONFIG
from rpg_engine.core.rng import RandomSource, default_source
from rpg_framework.components.status import StatusEffect, StatusType
from rpg_framework.battle.accuracy import compute_hit_rate, roll_hit
from rpg_framework.battle.combatant import Combatant
from rpg_framework.battle.damage import compute_damage, compute_heal
from rpg_framework.battle.skills import BASIC_ATTACK, Skill, SkillType
from rpg_framework.status.tracker import StatusEffectTracker, StatusTracker

if TYPE_CHECKING:
    from rpg_framework.inventory.items import ItemHandler

logger = logging.getLogger(__name__)


class ActionType(Enum):
    """Types of battle actions."""
    ATTACK = auto()
    SKILL = auto()
    ITEM = auto()
    DEFEND = auto()
    ESCAPE = auto()


@dataclass
class BattleAction:
    """
    A fully specified action, ready to resolve.

    Attributes:
        actor: Combatant taking the action
        action_type: What kind of action
        skill: Skill for SKILL actions (ATTACK resolves as BASIC_ATTACK)
        item_id: Item for ITEM actions
        targets: Chosen targets, empty for DEFEND and ESCAPE
    """
    actor: Combatant
    action_type: ActionType
    skill: Optional[Skill] = None
    item_id: Optional[str] = None
    targets: list[Combatant] = field(default_factory=list)

    @classmethod
    def defend(cls, actor: Combatant) -> BattleAction:
        return cls(actor=actor, action_type=ActionType.DEFEND)


@dataclass
class TargetOutcome:
    """Per-target part of an action result."""
    target_id: str
    hit: bool = False
    critical: bool = False
    damage: int = 0
    healing: int = 0
    statuses_applied: list[StatusType] = field(default_factory=list)
    defeated: bool = False


@dataclass
class ActionOutcome:
    """
    Result of resolving one action.

    reason is a short machine-readable code when success is False
    ("not_enough_mp", "invalid_target", "escape_failed", ...).
    """
    actor_id: str
    action_type: Optional[ActionType]
    success: bool = True
    reason: Optional[str] = None
    skill_id: Optional[str] = None
    item_id: Optional[str] = None
    mp_spent: int = 0
    targets: list[TargetOutcome] = field(default_factory=list)
    escaped: bool = False
    skipped: bool = False

    @property
    def total_damage(self) -> int:
        return sum(t.damage for t in self.targets)

    @property
    def defeated_ids(self) -> list[str]:
        return [t.target_id for t in self.targets if t.defeated]


class BattleActionExecutor:
    """
    Resolves battle actions against live combatants.

    Args:
        config: Combat tuning
        rng: Random source for every roll
        status_tracker: Status rules used for skill side effects
        item_handler: Item rules; ITEM actions fail without one
    """

    def __init__(
        self,
        config: CombatConfig = DEFAULT_CONFIG,
        rng: Optional[RandomSource] = None,
        status_tracker: Optional[StatusTracker] = None,
        item_handler: Optional[ItemHandler] = None,
    ):
        self.config = config
        self.rng = rng or default_source()
        self.status_tracker = status_tracker or StatusEffectTracker()
        self.item_handler = item_handler

    def execute(self, action: BattleAction, escape_attempt: int = 1) -> ActionOutcome:
        """Dispatch on action type."""
        if action.action_type == ActionType.ATTACK:
            return self.execute_attack(action.actor, action.targets)
        if action.action_type == ActionType.SKILL:
            if action.skill is None:
                return ActionOutcome(action.actor.id, ActionType.SKILL, False, "no_skill")
            return self.execute_skill(action.actor, action.skill, action.targets)
        if action.action_type == ActionType.ITEM:
            return self.execute_item(action.actor, action.item_id, action.targets)
        if action.action_type == ActionType.DEFEND:
            return self.execute_defend(action.actor)
        return self.execute_escape(action.actor, escape_attempt)

    def execute_attack(self, attacker: Combatant, targets: list[Combatant]) -> ActionOutcome:
        """Execute a basic attack."""
        outcome = self.execute_skill(attacker, BASIC_ATTACK, targets)
        outcome.action_type = ActionType.ATTACK
        outcome.skill_id = None
        return outcome

    def execute_skill(
        self,
        user: Combatant,
        skill: Skill,
        targets: list[Combatant],
    ) -> ActionOutcome:
        """
        Execute a skill.

        MP is paid once up front. Targets already defeated (including by an
        earlier hit of the same action) are skipped.
        """
        outcome = ActionOutcome(user.id, ActionType.SKILL, skill_id=skill.id)

        if not any(t.is_alive for t in targets):
            outcome.success = False
            outcome.reason = "invalid_target"
            return outcome

        if skill.mp_cost > 0:
            if not user.spend_mp(skill.mp_cost):
                outcome.success = False
                outcome.reason = "not_enough_mp"
                return outcome
            outcome.mp_spent = skill.mp_cost

        for target in targets:
            if not target.is_alive:
                continue
            outcome.targets.append(self._resolve_on_target(user, skill, target))

        logger.debug(
            "%s used %s: %s",
            user.id, skill.id,
            ", ".join(f"{t.target_id}={t.damage or t.healing}" for t in outcome.targets),
        )
        return outcome

    def execute_item(
        self,
        user: Combatant,
        item_id: Optional[str],
        targets: list[Combatant],
    ) -> ActionOutcome:
        """
        Execute an item use through the item handler.

        The item is applied to every target it can be used on and one unit
        is consumed for the whole action. The action fails only when no
        target was affected, in which case nothing is consumed.
        """
        outcome = ActionOutcome(user.id, ActionType.ITEM, item_id=item_id)

        if self.item_handler is None or item_id is None:
            outcome.success = False
            outcome.reason = "no_item"
            return outcome
        if not targets:
            outcome.success = False
            outcome.reason = "invalid_target"
            return outcome

        reason = "item_unusable"
        for target in targets:
            try:
                if not self.item_handler.can_use_item(item_id, target):
                    continue
                was_alive = target.is_alive
                result = self.item_handler.apply_item(item_id, target)
            except Exception:
                logger.exception("Item handler failed using %s on %s", item_id, target.id)
                reason = "item_handler_error"
                continue

            if not result.success:
                reason = result.reason or "item_unusable"
                continue

            outcome.targets.append(TargetOutcome(
                target_id=target.id,
                hit=True,
                damage=result.damage_dealt,
                healing=result.hp_restored,
                defeated=was_alive and not target.is_alive,
            ))

        if not outcome.targets:
            outcome.success = False
            outcome.reason = reason
            return outcome

        try:
            self.item_handler.consume(item_id)
        except Exception:
            logger.exception("Item handler failed consuming %s", item_id)
        return outcome

    def execute_defend(self, actor: Combatant) -> ActionOutcome:
        """Halve the next incoming hit."""
        actor.is_defending = True
        return ActionOutcome(actor.id, ActionType.DEFEND)

    def execute_escape(self, actor: Combatant, attempt: int) -> ActionOutcome:
        """
        Attempt to escape.

        Args:
            actor: Combatant trying to run
            attempt: 1-based escape attempt number within the battle
        """
        chance = self.config.escape_chance(attempt)
        escaped = roll_hit(chance, rng=self.rng)
        logger.debug("Escape attempt %d (%.2f): %s", attempt, chance, escaped)
        return ActionOutcome(
            actor.id,
            ActionType.ESCAPE,
            success=escaped,
            reason=None if escaped else "escape_failed",
            escaped=escaped,
        )

    def _resolve_on_target(self, user: Combatant, skill: Skill, target: Combatant) -> TargetOutcome:
        result = TargetOutcome(target_id=target.id)

        if skill.is_heal:
            result.hit = True
            result.healing = target.heal(compute_heal(user, target, skill, self.config, self.rng))
        elif skill.is_offensive:
            damage = compute_damage(user, target, skill, self.config, self.rng)
            result.hit = damage.was_hit
            result.critical = damage.is_critical
            if damage.was_hit:
                result.damage = target.take_damage(damage.final_damage)
                target.is_defending = False
        elif skill.skill_type == SkillType.DEBUFF and target.side != user.side:
            result.hit = roll_hit(compute_hit_rate(user, target, skill, self.config), rng=self.rng)
        else:
            result.hit = True

        if result.hit and target.is_alive:
            result.statuses_applied = self._apply_statuses(user, skill, target)

        result.defeated = not target.is_alive
        return result

    def _apply_statuses(self, user: Combatant, skill: Skill, target: Combatant) -> list[StatusType]:
        applied = []
        for application in skill.status_effects:
            if not roll_hit(application.probability, rng=self.rng):
                continue
            effect = StatusEffect(
                status_type=application.status_type,
                duration=application.duration,
                power=application.power,
                source_id=user.id,
            )
            if self.status_tracker.apply(target, effect).success:
                applied.append(application.status_type)
        return applied
