"""
RPG Battle Engine

Infrastructure shared by the battle framework: typed events, validated data
components, combat configuration, injectable randomness and static data
loading.

Quick Start:
    from rpg_engine.core import CombatConfig, EventBus, RandomSource
    from rpg_framework.battle import BattleSystem

    system = BattleSystem(config=CombatConfig(), rng=RandomSource(seed=7))
    state = system.start_battle(party, enemies)
"""

__version__ = "0.1.0"

from rpg_engine.core import (
    EventBus,
    Event,
    Component,
    register_component,
    CombatConfig,
    RandomSource,
    FixedRandom,
    InvalidInvocationError,
    DataValidationError,
)

__all__ = [
    # Events
    "EventBus",
    "Event",
    # Components
    "Component",
    "register_component",
    # Config
    "CombatConfig",
    # Randomness
    "RandomSource",
    "FixedRandom",
    # Errors
    "InvalidInvocationError",
    "DataValidationError",
]
