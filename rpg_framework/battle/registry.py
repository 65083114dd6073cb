"""
Battle data registry - turns validated database records into battle objects.

    db = Database("game/data")
    db.load_all()
    registry = BattleRegistry.from_database(db)
    slime = create_enemy_combatant(registry.enemies["slime"], position=0)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, TypeVar

from pydantic import ValidationError

from rpg_engine.core.component import build_component
from rpg_engine.core.errors import DataValidationError
from rpg_engine.resources.database import Database
from rpg_framework.components.stats import Stats
from rpg_framework.components.status import Element, StatusType
from rpg_framework.battle.combatant import EnemyData
from rpg_framework.battle.rewards import DropItem
from rpg_framework.battle.skills import Skill, SkillType, StatusEffectApplication, TargetType
from rpg_framework.inventory.items import ItemData

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=Enum)


def _enum(enum_type: type[E], name: str, source: str) -> E:
    try:
        return enum_type[name.upper()]
    except KeyError:
        raise DataValidationError(f"Unknown {enum_type.__name__} '{name}'", source) from None


def parse_skill(data: dict[str, Any]) -> Skill:
    """Parse a skill from JSON data."""
    source = f"skill {data['id']}"
    return Skill(
        id=data['id'],
        name=data['name'],
        skill_type=_enum(SkillType, data.get('type', 'physical'), source),
        target_type=_enum(TargetType, data.get('target', 'single_enemy'), source),
        element=_enum(Element, data.get('element', 'none'), source),
        power=data.get('power', 1.0),
        mp_cost=data.get('mp_cost', 0),
        accuracy=data.get('accuracy', 1.0),
        critical_bonus=data.get('critical_bonus', 0.0),
        is_guaranteed_hit=data.get('guaranteed_hit', False),
        status_effects=tuple(
            StatusEffectApplication(
                status_type=_enum(StatusType, entry['status'], source),
                probability=entry.get('probability', 1.0),
                duration=entry.get('duration', 3),
                power=entry.get('power', 0),
            )
            for entry in data.get('status_effects', [])
        ),
        description=data.get('description', ''),
    )


def parse_item(data: dict[str, Any]) -> ItemData:
    """Parse an item from JSON data."""
    source = f"item {data['id']}"
    return ItemData(
        id=data['id'],
        name=data['name'],
        description=data.get('description', ''),
        target_type=_enum(TargetType, data.get('target', 'single_ally'), source),
        hp_restore=data.get('hp_restore', 0),
        hp_restore_percent=data.get('hp_restore_percent', 0.0),
        mp_restore=data.get('mp_restore', 0),
        mp_restore_percent=data.get('mp_restore_percent', 0.0),
        cures_status={_enum(StatusType, name, source) for name in data.get('cures', [])},
        revive=data.get('revive', False),
        revive_hp_percent=data.get('revive_hp_percent', 0.5),
        damage=data.get('damage', 0),
    )


def parse_enemy(data: dict[str, Any], skills: dict[str, Skill]) -> EnemyData:
    """
    Parse an enemy from JSON data.

    Args:
        data: Validated enemy record
        skills: Parsed skills by id; every skill the enemy names must exist
    """
    source = f"enemy {data['id']}"
    try:
        stats = build_component(Stats.get_type_name(), data['stats'])
    except ValidationError as e:
        raise DataValidationError(str(e), source) from e

    known_skills = []
    for skill_id in data.get('skills', []):
        if skill_id not in skills:
            raise DataValidationError(f"Unknown skill '{skill_id}'", source)
        known_skills.append(skills[skill_id])

    return EnemyData(
        id=data['id'],
        name=data['name'],
        stats=stats,
        skills=known_skills,
        ai_strategy=data.get('ai_strategy', 'balanced'),
        exp_reward=data.get('exp_reward', 0),
        money_reward=data.get('money_reward', 0),
        drops=[
            DropItem(
                item_id=drop['item_id'],
                probability=drop['probability'],
                quantity=drop.get('quantity', 1),
            )
            for drop in data.get('drops', [])
        ],
        element_resistance={
            _enum(Element, name, source): value
            for name, value in data.get('element_resistance', {}).items()
        },
        immunities={_enum(StatusType, name, source) for name in data.get('immunities', [])},
    )


class BattleRegistry:
    """Parsed skills, enemies and items by id."""

    def __init__(self):
        self.skills: dict[str, Skill] = {}
        self.enemies: dict[str, EnemyData] = {}
        self.items: dict[str, ItemData] = {}

    @classmethod
    def from_database(cls, database: Database) -> BattleRegistry:
        """
        Build battle objects from a loaded database.

        Skills are parsed first so enemies can reference them.

        Raises:
            DataValidationError: A record names an unknown enum value or skill
        """
        registry = cls()
        for skill_id, data in database.skills.items():
            registry.skills[skill_id] = parse_skill(data)
        for item_id, data in database.items.items():
            registry.items[item_id] = parse_item(data)
        for enemy_id, data in database.enemies.items():
            registry.enemies[enemy_id] = parse_enemy(data, registry.skills)

        logger.info(
            "Registered %d skills, %d enemies, %d items",
            len(registry.skills), len(registry.enemies), len(registry.items),
        )
        return registry
