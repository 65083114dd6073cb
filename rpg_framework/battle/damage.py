"""
Damage and healing calculation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from rpg_engine.core.config import CombatConfig, DEFAULT_CONFIG
from rpg_engine.core.rng import RandomSource, default_source
from rpg_framework.components.status import Element, stat_multiplier
from rpg_framework.battle.accuracy import (
    compute_hit_rate,
    compute_critical_rate,
    roll_hit,
    roll_critical,
    stats_of,
)
from rpg_framework.battle.skills import Skill


@dataclass
class DamageResult:
    """
    Outcome of one damage calculation.

    Attributes:
        final_damage: HP the target should lose (never negative)
        base_damage: Damage before element, defend, variance and critical
        is_critical: Whether the hit was critical
        was_hit: Whether the attack landed
        elemental_modifier: Target's multiplier for the skill's element
        variance: Random spread factor that was applied
    """
    final_damage: int = 0
    base_damage: int = 0
    is_critical: bool = False
    was_hit: bool = False
    elemental_modifier: float = 1.0
    variance: float = 1.0


def effective_stat(participant: Any, stat_name: str, config: CombatConfig = DEFAULT_CONFIG) -> float:
    """Base stat adjusted by up/down statuses on the participant."""
    value = getattr(stats_of(participant), stat_name)
    effects = getattr(participant, "status_effects", ())
    return value * stat_multiplier(effects, stat_name, config.stat_modifier_per_stack)


def elemental_modifier(target: Any, element: Element) -> float:
    if element == Element.NONE:
        return 1.0
    return getattr(target, "element_resistance", {}).get(element, 1.0)


def compute_damage(
    attacker: Any,
    target: Any,
    skill: Skill,
    config: CombatConfig = DEFAULT_CONFIG,
    rng: Optional[RandomSource] = None,
) -> DamageResult:
    """
    Roll hit and critical, then compute damage.

    Samples are drawn in a fixed order: hit, critical, variance. A miss
    draws nothing further.

    Args:
        attacker: Combatant using the skill
        target: Combatant receiving it
        skill: Offensive skill (BASIC_ATTACK for plain attacks)
        config: Combat tuning
        rng: Random source, the process default if omitted

    Returns:
        DamageResult; final_damage is at least 1 on a hit unless the
        target is immune to the element
    """
    rng = rng or default_source()

    if not roll_hit(compute_hit_rate(attacker, target, skill, config), rng=rng):
        return DamageResult(was_hit=False)

    is_critical = roll_critical(compute_critical_rate(attacker, skill, config), rng=rng)

    if skill.uses_magic_stats:
        offense = effective_stat(attacker, "magic", config)
        defense = effective_stat(target, "magic_defense", config)
    else:
        offense = effective_stat(attacker, "attack", config)
        defense = effective_stat(target, "defense", config)

    base = max(1, math.floor(offense * skill.power - defense))
    modifier = elemental_modifier(target, skill.element)
    variance = 1 + rng.uniform(-1.0, 1.0) * config.damage_variance

    amount = base * modifier
    if getattr(target, "is_defending", False):
        amount *= 1 - config.defend_damage_reduction
    amount *= variance
    if is_critical:
        amount *= config.critical_multiplier

    if modifier <= 0:
        final = 0
    else:
        final = max(1, math.floor(amount))

    return DamageResult(
        final_damage=final,
        base_damage=base,
        is_critical=is_critical,
        was_hit=True,
        elemental_modifier=modifier,
        variance=variance,
    )


def compute_heal(
    caster: Any,
    target: Any,
    skill: Skill,
    config: CombatConfig = DEFAULT_CONFIG,
    rng: Optional[RandomSource] = None,
) -> int:
    """
    Healing done by skill. Heals always land and never crit.

    Returns:
        magic * power with +-heal_variance spread, at least 1, capped at
        the target's missing HP
    """
    rng = rng or default_source()
    variance = 1 + rng.uniform(-1.0, 1.0) * config.heal_variance
    amount = max(1, math.floor(effective_stat(caster, "magic", config) * skill.power * variance))

    target_stats = stats_of(target)
    current = getattr(target, "current_hp", None)
    if current is None:
        return amount
    return min(amount, target_stats.max_hp - current)
