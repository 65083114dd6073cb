"""
Skill definitions.

Skills are immutable values shared between combatants; the battle code
never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from rpg_framework.components.status import Element, StatusType


class SkillType(Enum):
    """How a skill resolves."""
    PHYSICAL = auto()
    MAGIC = auto()
    HEAL = auto()
    BUFF = auto()
    DEBUFF = auto()
    SPECIAL = auto()


class TargetType(Enum):
    """Action targeting types."""
    SINGLE_ENEMY = auto()
    ALL_ENEMIES = auto()
    SINGLE_ALLY = auto()
    ALL_ALLIES = auto()
    SELF = auto()

    @property
    def is_multi(self) -> bool:
        return self in (TargetType.ALL_ENEMIES, TargetType.ALL_ALLIES)

    @property
    def targets_enemies(self) -> bool:
        return self in (TargetType.SINGLE_ENEMY, TargetType.ALL_ENEMIES)


@dataclass(frozen=True)
class StatusEffectApplication:
    """
    A status a skill may inflict on hit.

    Attributes:
        status_type: Status to apply
        probability: Chance per hit target (0.0-1.0)
        duration: Rounds the status lasts
        power: Strength passed to the status effect
    """
    status_type: StatusType
    probability: float = 1.0
    duration: int = 3
    power: float = 0


@dataclass(frozen=True)
class Skill:
    """Static data for a skill."""
    id: str
    name: str
    skill_type: SkillType = SkillType.PHYSICAL
    target_type: TargetType = TargetType.SINGLE_ENEMY
    element: Element = Element.NONE
    power: float = 1.0
    mp_cost: int = 0
    accuracy: float = 1.0
    critical_bonus: float = 0.0
    is_guaranteed_hit: bool = False
    status_effects: tuple[StatusEffectApplication, ...] = ()
    description: str = ""

    @property
    def is_heal(self) -> bool:
        return self.skill_type == SkillType.HEAL

    @property
    def is_offensive(self) -> bool:
        """Whether the skill goes through the hit/damage path."""
        return self.skill_type in (SkillType.PHYSICAL, SkillType.MAGIC, SkillType.SPECIAL)

    @property
    def uses_magic_stats(self) -> bool:
        return self.skill_type in (SkillType.MAGIC, SkillType.HEAL)


BASIC_ATTACK = Skill(
    id="basic_attack",
    name="Attack",
    skill_type=SkillType.PHYSICAL,
    target_type=TargetType.SINGLE_ENEMY,
    element=Element.NONE,
    power=1.0,
    mp_cost=0,
    accuracy=0.95,
    critical_bonus=0.0,
    description="A plain weapon strike.",
)
