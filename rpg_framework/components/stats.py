"""
Stat components - the numeric attributes every combatant carries.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import ConfigDict, Field

from rpg_engine.core.component import Component, register_component

BASE_STAT_NAMES: tuple[str, ...] = (
    "max_hp",
    "max_mp",
    "attack",
    "defense",
    "magic",
    "magic_defense",
    "speed",
    "luck",
    "accuracy",
    "evasion",
    "critical_rate",
)


@runtime_checkable
class StatBag(Protocol):
    """
    The stat contract the battle code depends on.

    Anything exposing these attributes can be used as combatant stats;
    extra attributes are ignored by every formula.
    """
    max_hp: int
    max_mp: int
    attack: int
    defense: int
    magic: int
    magic_defense: int
    speed: int
    luck: int
    accuracy: float
    evasion: float
    critical_rate: float


@register_component
class Stats(Component):
    """
    Default stat block.

    Games may pass additional numeric stats as keyword arguments
    (Stats(max_hp=50, strength=12)); they are kept as extra fields and
    can be read with get().

    Attributes:
        max_hp: Maximum hit points
        max_mp: Maximum magic points
        attack: Physical offense
        defense: Physical damage reduction
        magic: Magical offense and healing power
        magic_defense: Magical damage reduction
        speed: Turn order priority
        luck: Feeds the critical chance
        accuracy: Hit bonus in percentage points
        evasion: Dodge bonus in percentage points
        critical_rate: Flat critical chance added to rolls (0.0-1.0)
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra='allow',
    )

    max_hp: int = Field(default=100, ge=1)
    max_mp: int = Field(default=0, ge=0)
    attack: int = 10
    defense: int = 10
    magic: int = 10
    magic_defense: int = 10
    speed: int = 10
    luck: int = 0
    accuracy: float = 0.0
    evasion: float = 0.0
    critical_rate: float = 0.0

    def get(self, name: str, default: float = 0) -> float:
        """Read a base or custom stat by name."""
        if name in type(self).model_fields:
            return getattr(self, name)
        extra = self.model_extra or {}
        return extra.get(name, default)

    @property
    def custom_stats(self) -> dict[str, float]:
        """Caller-defined stats beyond the base set."""
        return dict(self.model_extra or {})
