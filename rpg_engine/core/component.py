"""
Component base class for validated data records.

Stat blocks, status effects and similar records are pydantic models so they
get validation, defaults and JSON round-tripping for free. Behaviour that
spans several records (damage, turn order, status ticks) lives in the battle
services, not here.

Usage:
    @register_component
    class Stats(Component):
        max_hp: int = 100
        attack: int = 10
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class Component(BaseModel):
    """
    Base class for all data components.

    Validation runs on construction and on every assignment, so a
    component can never hold a value of the wrong type.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra='forbid',
    )

    # Name used by the registry; defaults to the class name
    _type_name: ClassVar[str] = ""

    @classmethod
    def get_type_name(cls) -> str:
        """Get the component type name used for lookup."""
        return cls._type_name or cls.__name__

    def clone(self) -> Component:
        """Create a deep copy of this component."""
        return self.model_copy(deep=True)


_component_registry: dict[str, type[Component]] = {}


def register_component(cls: type[Component]) -> type[Component]:
    """
    Decorator registering a component type by name.

    Registered types can be rebuilt from plain dicts with
    build_component(), which the static data loader relies on.
    """
    _component_registry[cls.get_type_name()] = cls
    return cls


def get_component_type(type_name: str) -> type[Component] | None:
    """Get component class by type name."""
    return _component_registry.get(type_name)


def build_component(type_name: str, data: dict) -> Component:
    """Validate data into a registered component type."""
    cls = get_component_type(type_name)
    if cls is None:
        raise KeyError(f"Unknown component type: {type_name}")
    return cls.model_validate(data)
