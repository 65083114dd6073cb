"""
Resources module - static data loading.
"""

from rpg_engine.resources.database import Database

__all__ = [
    "Database",
]
