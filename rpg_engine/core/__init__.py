"""
Engine core - shared infrastructure for the battle framework.

Exports:
- EventBus, Event: typed publish/subscribe
- Component: pydantic base for data records
- CombatConfig: validated combat tuning
- RandomSource, FixedRandom: injectable randomness
- InvalidInvocationError, DataValidationError: error types
"""

from rpg_engine.core.events import EventBus, Event, EventHandler
from rpg_engine.core.component import (
    Component,
    register_component,
    get_component_type,
    build_component,
)
from rpg_engine.core.config import CombatConfig, DEFAULT_CONFIG
from rpg_engine.core.rng import RandomSource, FixedRandom, default_source
from rpg_engine.core.errors import (
    EngineError,
    InvalidInvocationError,
    DataValidationError,
)

__all__ = [
    "EventBus",
    "Event",
    "EventHandler",
    "Component",
    "register_component",
    "get_component_type",
    "build_component",
    "CombatConfig",
    "DEFAULT_CONFIG",
    "RandomSource",
    "FixedRandom",
    "default_source",
    "EngineError",
    "InvalidInvocationError",
    "DataValidationError",
]
