"""
Combatants - participants in a battle.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from rpg_framework.components import Element, Stats, StatBag, StatusEffect, StatusType
from rpg_framework.battle.skills import Skill


class Side(Enum):
    """Which roster a combatant belongs to."""
    PLAYER = auto()
    ENEMY = auto()


@dataclass
class Combatant:
    """
    A participant in battle.

    HP and MP are clamped to [0, max] on construction and after every
    mutation. A combatant at 0 HP is defeated; it stays in its roster but is
    skipped by targeting and turn order.
    """
    id: str
    name: str
    side: Side
    stats: StatBag = field(default_factory=Stats)
    current_hp: Optional[int] = None
    current_mp: Optional[int] = None
    position: int = 0

    status_effects: list[StatusEffect] = field(default_factory=list)
    skills: list[Skill] = field(default_factory=list)
    element_resistance: dict[Element, float] = field(default_factory=dict)
    immunities: set[StatusType] = field(default_factory=set)

    # Battle state
    is_defending: bool = False
    current_exp: int = 0

    # Enemy metadata
    ai_strategy: Optional[str] = None
    exp_reward: int = 0
    money_reward: int = 0
    drop_items: list = field(default_factory=list)

    def __post_init__(self):
        if self.current_hp is None:
            self.current_hp = self.stats.max_hp
        if self.current_mp is None:
            self.current_mp = self.stats.max_mp
        self.current_hp = _clamp(int(self.current_hp), self.stats.max_hp)
        self.current_mp = _clamp(int(self.current_mp), self.stats.max_mp)

    @property
    def max_hp(self) -> int:
        return self.stats.max_hp

    @property
    def max_mp(self) -> int:
        return self.stats.max_mp

    @property
    def is_alive(self) -> bool:
        return self.current_hp > 0

    @property
    def is_player_controlled(self) -> bool:
        return self.side == Side.PLAYER

    @property
    def hp_rate(self) -> float:
        """Current HP as a fraction of max HP."""
        return self.current_hp / self.stats.max_hp if self.stats.max_hp else 0.0

    @property
    def mp_rate(self) -> float:
        return self.current_mp / self.stats.max_mp if self.stats.max_mp else 0.0

    def take_damage(self, amount: int) -> int:
        """
        Reduce HP.

        Returns:
            HP actually lost
        """
        before = self.current_hp
        self.current_hp = _clamp(before - max(0, int(amount)), self.stats.max_hp)
        return before - self.current_hp

    def heal(self, amount: int) -> int:
        """Restore HP. Returns HP actually gained."""
        before = self.current_hp
        self.current_hp = _clamp(before + max(0, int(amount)), self.stats.max_hp)
        return self.current_hp - before

    def spend_mp(self, amount: int) -> bool:
        """Spend MP. Returns False and spends nothing if MP is short."""
        if amount > self.current_mp:
            return False
        self.current_mp = _clamp(self.current_mp - max(0, int(amount)), self.stats.max_mp)
        return True

    def restore_mp(self, amount: int) -> int:
        before = self.current_mp
        self.current_mp = _clamp(before + max(0, int(amount)), self.stats.max_mp)
        return self.current_mp - before

    def can_afford(self, skill: Skill) -> bool:
        return self.current_mp >= skill.mp_cost

    def resistance_to(self, element: Element) -> float:
        """Damage multiplier for an element (1.0 is neutral)."""
        if element == Element.NONE:
            return 1.0
        return self.element_resistance.get(element, 1.0)

    def has_status(self, status_type: StatusType) -> bool:
        return any(e.status_type == status_type for e in self.status_effects)

    def get_status(self, status_type: StatusType) -> Optional[StatusEffect]:
        for effect in self.status_effects:
            if effect.status_type == status_type:
                return effect
        return None

    def snapshot(self) -> Combatant:
        """Deep copy for readers outside the battle."""
        return copy.deepcopy(self)


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper))


@dataclass
class EnemyData:
    """Static data for enemy types."""
    id: str
    name: str
    stats: Stats = field(default_factory=Stats)
    skills: list[Skill] = field(default_factory=list)
    ai_strategy: str = "balanced"

    # Rewards
    exp_reward: int = 10
    money_reward: int = 5
    drops: list = field(default_factory=list)  # DropItem

    # Resistances
    element_resistance: dict[Element, float] = field(default_factory=dict)
    immunities: set[StatusType] = field(default_factory=set)


def create_enemy_combatant(
    enemy_data: EnemyData,
    combatant_id: Optional[str] = None,
    position: int = 0,
) -> Combatant:
    """
    Create a Combatant from enemy data.

    Args:
        enemy_data: Static enemy definition
        combatant_id: Battle-unique id, defaults to "<enemy id>_<position>"
        position: Roster index
    """
    return Combatant(
        id=combatant_id or f"{enemy_data.id}_{position}",
        name=enemy_data.name,
        side=Side.ENEMY,
        stats=enemy_data.stats.clone(),
        position=position,
        skills=list(enemy_data.skills),
        element_resistance=dict(enemy_data.element_resistance),
        immunities=set(enemy_data.immunities),
        ai_strategy=enemy_data.ai_strategy,
        exp_reward=enemy_data.exp_reward,
        money_reward=enemy_data.money_reward,
        drop_items=list(enemy_data.drops),
    )
