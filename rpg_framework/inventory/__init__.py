"""
Inventory - counted items and battle item use.
"""

from rpg_framework.inventory.items import (
    ItemData,
    ItemUseConditions,
    ItemUseResult,
    ItemHandler,
    Inventory,
    ItemService,
)

__all__ = [
    "ItemData",
    "ItemUseConditions",
    "ItemUseResult",
    "ItemHandler",
    "Inventory",
    "ItemService",
]
