"""
Turn order.

Order is deterministic: living combatants by descending effective speed,
ties broken by side (party first) and then roster position.
"""

from __future__ import annotations

from typing import Sequence

from rpg_engine.core.config import CombatConfig, DEFAULT_CONFIG
from rpg_framework.battle.combatant import Combatant, Side
from rpg_framework.battle.damage import effective_stat


def effective_speed(combatant: Combatant, config: CombatConfig = DEFAULT_CONFIG) -> float:
    """Speed after speed up/down statuses."""
    return effective_stat(combatant, "speed", config)


def compute_turn_order(
    player_party: Sequence[Combatant],
    enemy_group: Sequence[Combatant],
    config: CombatConfig = DEFAULT_CONFIG,
    preemptive: bool = False,
) -> list[Combatant]:
    """
    Build the acting order for one round.

    Args:
        player_party: Party roster (defeated members are skipped)
        enemy_group: Enemy roster (defeated members are skipped)
        config: Combat tuning
        preemptive: Leave enemies out of the round entirely

    Returns:
        Combatants in acting order
    """
    living = [c for c in player_party if c.is_alive]
    if not preemptive:
        living.extend(c for c in enemy_group if c.is_alive)

    return sorted(
        living,
        key=lambda c: (
            -effective_speed(c, config),
            0 if c.side == Side.PLAYER else 1,
            c.position,
        ),
    )


def average_speed(combatants: Sequence[Combatant], config: CombatConfig = DEFAULT_CONFIG) -> float:
    living = [c for c in combatants if c.is_alive]
    if not living:
        return 0.0
    return sum(effective_speed(c, config) for c in living) / len(living)


def check_preemptive_strike(
    player_party: Sequence[Combatant],
    enemy_group: Sequence[Combatant],
    config: CombatConfig = DEFAULT_CONFIG,
) -> bool:
    """Whether the party is fast enough to get a free opening round."""
    lead = average_speed(player_party, config) - average_speed(enemy_group, config)
    return lead >= config.preemptive_strike_threshold
