"""
Battle item use - item definitions, a counted inventory and the default
item handler.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Protocol

from rpg_framework.components.status import StatusType
from rpg_framework.battle.skills import TargetType

if TYPE_CHECKING:
    from rpg_framework.battle.combatant import Combatant

logger = logging.getLogger(__name__)


@dataclass
class ItemData:
    """Static data for a usable item."""
    id: str
    name: str
    description: str = ""

    # Targeting
    target_type: TargetType = TargetType.SINGLE_ALLY

    # Effects
    hp_restore: int = 0
    hp_restore_percent: float = 0.0
    mp_restore: int = 0
    mp_restore_percent: float = 0.0

    # Status
    cures_status: set[StatusType] = field(default_factory=set)

    # Special
    revive: bool = False
    revive_hp_percent: float = 0.5

    # Damage (for offensive items)
    damage: int = 0

    def default_conditions(self) -> ItemUseConditions:
        if self.revive:
            return ItemUseConditions(target_alive=False, target_dead=True)
        return ItemUseConditions()


@dataclass
class ItemUseConditions:
    """
    Preconditions on the target of an item.

    Attributes:
        target_alive: Target must be alive
        target_dead: Target must be defeated
        min_hp_rate: Target HP rate must be at least this
        max_hp_rate: Target HP rate must be below this (e.g. 1.0 = not full)
    """
    target_alive: bool = True
    target_dead: bool = False
    min_hp_rate: Optional[float] = None
    max_hp_rate: Optional[float] = None


@dataclass
class ItemUseResult:
    success: bool
    reason: Optional[str] = None
    hp_restored: int = 0
    mp_restored: int = 0
    damage_dealt: int = 0
    revived: bool = False
    cured: list[StatusType] = field(default_factory=list)


class ItemHandler(Protocol):
    """
    Item rules the battle system depends on.

    Applying and consuming are separate so one action can affect several
    targets while using up a single item.
    """

    def available_items(self, actor: Combatant) -> list[ItemData]:
        ...

    def can_use_item(
        self,
        item_id: str,
        target: Combatant,
        conditions: Optional[ItemUseConditions] = None,
    ) -> bool:
        ...

    def apply_item(
        self,
        item_id: str,
        target: Combatant,
        conditions: Optional[ItemUseConditions] = None,
    ) -> ItemUseResult:
        ...

    def consume(self, item_id: str) -> bool:
        ...


class Inventory:
    """Item counts keyed by item id."""

    def __init__(self, counts: Optional[dict[str, int]] = None):
        self._counts: dict[str, int] = {}
        for item_id, quantity in (counts or {}).items():
            self.add(item_id, quantity)

    def add(self, item_id: str, quantity: int = 1) -> int:
        """Add items. Returns the new count."""
        if quantity < 0:
            raise ValueError(f"Cannot add a negative quantity: {quantity}")
        self._counts[item_id] = self._counts.get(item_id, 0) + quantity
        return self._counts[item_id]

    def remove(self, item_id: str, quantity: int = 1) -> bool:
        """Remove items. Returns False and removes nothing if short."""
        if self.count(item_id) < quantity:
            return False
        self._counts[item_id] -= quantity
        if self._counts[item_id] == 0:
            del self._counts[item_id]
        return True

    def count(self, item_id: str) -> int:
        return self._counts.get(item_id, 0)

    def has(self, item_id: str, quantity: int = 1) -> bool:
        return self.count(item_id) >= quantity

    def item_ids(self) -> list[str]:
        return list(self._counts)


class ItemService:
    """
    Default item handler: one shared inventory, items defined by ItemData.

    Args:
        items: Item definitions by id
        inventory: Counts the party owns
    """

    def __init__(self, items: dict[str, ItemData], inventory: Optional[Inventory] = None):
        self._items = dict(items)
        self.inventory = inventory or Inventory()

    def get_item(self, item_id: str) -> Optional[ItemData]:
        return self._items.get(item_id)

    def available_items(self, actor: Combatant) -> list[ItemData]:
        """Items the actor's side owns at least one of."""
        return [
            self._items[item_id] for item_id in self.inventory.item_ids()
            if item_id in self._items and self.inventory.has(item_id)
        ]

    def can_use_item(
        self,
        item_id: str,
        target: Combatant,
        conditions: Optional[ItemUseConditions] = None,
    ) -> bool:
        return self._check(item_id, target, conditions) is None

    def use_item(
        self,
        item_id: str,
        target: Combatant,
        conditions: Optional[ItemUseConditions] = None,
    ) -> ItemUseResult:
        """
        Apply an item to a target and consume one from the inventory.

        Returns:
            ItemUseResult; nothing is consumed on failure
        """
        result = self.apply_item(item_id, target, conditions)
        if result.success:
            self.consume(item_id)
        return result

    def consume(self, item_id: str) -> bool:
        """Remove one item. Returns False if none was left."""
        return self.inventory.remove(item_id)

    def apply_item(
        self,
        item_id: str,
        target: Combatant,
        conditions: Optional[ItemUseConditions] = None,
    ) -> ItemUseResult:
        """Apply an item's effects to one target without consuming it."""
        reason = self._check(item_id, target, conditions)
        if reason is not None:
            return ItemUseResult(False, reason)

        item = self._items[item_id]
        result = ItemUseResult(True)

        if item.revive and not target.is_alive:
            target.heal(max(1, math.floor(target.max_hp * item.revive_hp_percent)))
            result.revived = True

        if target.is_alive:
            hp = item.hp_restore + math.floor(target.max_hp * item.hp_restore_percent)
            mp = item.mp_restore + math.floor(target.max_mp * item.mp_restore_percent)
            if hp:
                result.hp_restored = target.heal(hp)
            if mp:
                result.mp_restored = target.restore_mp(mp)
            if item.damage:
                result.damage_dealt = target.take_damage(item.damage)

            for status_type in item.cures_status:
                before = len(target.status_effects)
                target.status_effects = [
                    e for e in target.status_effects if e.status_type != status_type
                ]
                if len(target.status_effects) != before:
                    result.cured.append(status_type)

        logger.debug("Applied %s to %s", item_id, target.id)
        return result

    def _check(
        self,
        item_id: str,
        target: Combatant,
        conditions: Optional[ItemUseConditions],
    ) -> Optional[str]:
        item = self._items.get(item_id)
        if item is None:
            return "unknown_item"
        if not self.inventory.has(item_id):
            return "out_of_stock"

        conditions = conditions or item.default_conditions()
        if conditions.target_alive and not target.is_alive:
            return "target_defeated"
        if conditions.target_dead and target.is_alive:
            return "target_alive"
        if conditions.min_hp_rate is not None and target.hp_rate < conditions.min_hp_rate:
            return "hp_too_low"
        if conditions.max_hp_rate is not None and target.hp_rate >= conditions.max_hp_rate:
            return "hp_too_high"
        return None
