"""
Battle rewards - experience, money and item drops from defeated enemies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from rpg_engine.core.rng import RandomSource, default_source
from rpg_framework.battle.accuracy import roll_hit
from rpg_framework.battle.combatant import Combatant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DropItem:
    """An item an enemy may drop."""
    item_id: str
    probability: float = 1.0
    quantity: int = 1


@dataclass
class BattleRewards:
    """Rewards from winning a battle."""
    exp: int = 0
    money: int = 0
    items: list[DropItem] = field(default_factory=list)


def compute_rewards(
    enemy_group: Sequence[Combatant],
    rng: Optional[RandomSource] = None,
) -> BattleRewards:
    """
    Total the rewards of every defeated enemy.

    Each drop is rolled once against its probability.
    """
    rng = rng or default_source()
    rewards = BattleRewards()

    for enemy in enemy_group:
        if enemy.is_alive:
            continue
        rewards.exp += enemy.exp_reward
        rewards.money += enemy.money_reward
        for drop in enemy.drop_items:
            if roll_hit(drop.probability, rng=rng):
                rewards.items.append(drop)

    logger.debug(
        "Rewards: %d exp, %d money, %d items", rewards.exp, rewards.money, len(rewards.items)
    )
    return rewards


def distribute_exp(party: Sequence[Combatant], exp: int) -> dict[str, int]:
    """
    Split exp evenly (rounded down) between living party members.

    Returns:
        Exp granted per combatant id
    """
    living = [c for c in party if c.is_alive]
    if not living:
        return {}

    share = exp // len(living)
    distribution = {}
    for member in living:
        member.current_exp += share
        distribution[member.id] = share
    return distribution
