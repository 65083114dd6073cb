"""
Status components - elements, status effect types and status instances.
"""

from __future__ import annotations

import itertools
from enum import Enum, auto
from typing import Iterable, Optional

from pydantic import Field

from rpg_engine.core.component import Component, register_component


class Element(Enum):
    """Elemental tags for skills and resistances."""
    NONE = auto()
    FIRE = auto()
    WATER = auto()
    EARTH = auto()
    WIND = auto()
    LIGHTNING = auto()
    ICE = auto()
    LIGHT = auto()
    DARK = auto()


class StatusType(Enum):
    """Status effect types."""
    # Damage over time
    POISON = auto()
    BURN = auto()
    # Disables
    PARALYSIS = auto()
    SLEEP = auto()
    STUN = auto()
    # Other debuffs
    CONFUSION = auto()
    SILENCE = auto()
    BLIND = auto()
    ATTACK_DOWN = auto()
    DEFENSE_DOWN = auto()
    SPEED_DOWN = auto()
    # Buffs
    REGENERATION = auto()
    ATTACK_UP = auto()
    DEFENSE_UP = auto()
    SPEED_UP = auto()


class StatusCategory(Enum):
    """Broad grouping used for cleansing and AI decisions."""
    DEBUFF = auto()
    BUFF = auto()
    DOT = auto()
    HOT = auto()
    DISABLE = auto()


DEFAULT_CATEGORIES: dict[StatusType, StatusCategory] = {
    StatusType.POISON: StatusCategory.DOT,
    StatusType.BURN: StatusCategory.DOT,
    StatusType.PARALYSIS: StatusCategory.DISABLE,
    StatusType.SLEEP: StatusCategory.DISABLE,
    StatusType.STUN: StatusCategory.DISABLE,
    StatusType.CONFUSION: StatusCategory.DEBUFF,
    StatusType.SILENCE: StatusCategory.DEBUFF,
    StatusType.BLIND: StatusCategory.DEBUFF,
    StatusType.ATTACK_DOWN: StatusCategory.DEBUFF,
    StatusType.DEFENSE_DOWN: StatusCategory.DEBUFF,
    StatusType.SPEED_DOWN: StatusCategory.DEBUFF,
    StatusType.REGENERATION: StatusCategory.HOT,
    StatusType.ATTACK_UP: StatusCategory.BUFF,
    StatusType.DEFENSE_UP: StatusCategory.BUFF,
    StatusType.SPEED_UP: StatusCategory.BUFF,
}

# stat name -> (raising status, lowering status)
STAT_MODIFIERS: dict[str, tuple[StatusType, StatusType]] = {
    "attack": (StatusType.ATTACK_UP, StatusType.ATTACK_DOWN),
    "defense": (StatusType.DEFENSE_UP, StatusType.DEFENSE_DOWN),
    "speed": (StatusType.SPEED_UP, StatusType.SPEED_DOWN),
}

DISABLING_STATUSES = frozenset({StatusType.PARALYSIS, StatusType.SLEEP, StatusType.STUN})

_effect_ids = itertools.count(1)


def _next_effect_id() -> str:
    return f"effect-{next(_effect_ids)}"


@register_component
class StatusEffect(Component):
    """
    A single status effect instance on a combatant.

    Attributes:
        id: Unique instance id (reported back when the effect expires)
        status_type: Type of status
        category: Grouping, derived from the type when omitted
        power: Strength (HP per tick for DoT/HoT, unused for disables)
        duration: Remaining rounds
        max_duration: Duration the effect was applied with
        stack_count: Current stacks
        max_stack: Maximum stacks
        can_be_dispelled: Whether cleansing may remove it
        source_id: Combatant id that applied it
    """
    id: str = Field(default_factory=_next_effect_id)
    status_type: StatusType
    category: Optional[StatusCategory] = None
    power: float = 0
    duration: int = Field(default=3, ge=0)
    max_duration: int = Field(default=0, ge=0)
    stack_count: int = Field(default=1, ge=1)
    max_stack: int = Field(default=1, ge=1)
    can_be_dispelled: bool = True
    source_id: Optional[str] = None

    def model_post_init(self, __context) -> None:
        """Fill derived fields."""
        if self.category is None:
            self.category = DEFAULT_CATEGORIES.get(self.status_type, StatusCategory.DEBUFF)
        if self.max_duration < self.duration:
            self.max_duration = self.duration

    @property
    def is_debuff(self) -> bool:
        """Check if this is a negative effect."""
        return self.category in (StatusCategory.DEBUFF, StatusCategory.DOT, StatusCategory.DISABLE)

    @property
    def is_expired(self) -> bool:
        return self.duration <= 0

    @property
    def can_stack(self) -> bool:
        return self.stack_count < self.max_stack


def stat_multiplier(effects: Iterable[StatusEffect], stat_name: str, per_stack: float) -> float:
    """
    Multiplier that up/down statuses put on a base stat.

    Each stack of the raising status adds per_stack, each stack of the
    lowering one removes it. The result never drops below 0.
    """
    pair = STAT_MODIFIERS.get(stat_name)
    if pair is None:
        return 1.0
    up, down = pair
    net = 0
    for effect in effects:
        if effect.status_type == up:
            net += effect.stack_count
        elif effect.status_type == down:
            net -= effect.stack_count
    return max(0.0, 1.0 + net * per_stack)
