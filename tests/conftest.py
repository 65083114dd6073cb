import os
import sys
import pytest

# Ensure engine modules can be imported
sys.path.append(os.getcwd())


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from rpg_engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def config():
    from rpg_engine.core.config import CombatConfig
    return CombatConfig()


@pytest.fixture
def seeded_rng():
    from rpg_engine.core.rng import RandomSource
    return RandomSource(seed=1234)


@pytest.fixture
def make_combatant():
    """Factory for combatants with a default stat block."""
    from rpg_framework.battle.combatant import Combatant, Side
    from rpg_framework.components import Stats

    def factory(cid="hero", side=Side.PLAYER, skills=None, current_hp=None, current_mp=None, **stats):
        return Combatant(
            id=cid,
            name=cid.title(),
            side=side,
            stats=Stats(**stats),
            skills=list(skills or []),
            current_hp=current_hp,
            current_mp=current_mp,
        )

    return factory


@pytest.fixture
def hero(make_combatant):
    """Scenario party member: attack 50, speed 60."""
    return make_combatant("hero", attack=50, speed=60, max_hp=120, max_mp=30)


@pytest.fixture
def slime(make_combatant):
    """Scenario enemy: defense 30, speed 30, max HP 50."""
    from rpg_framework.battle.combatant import Side
    return make_combatant("slime", side=Side.ENEMY, defense=30, speed=30, max_hp=50, attack=20)


@pytest.fixture
def fire():
    from rpg_framework.battle.skills import Skill, SkillType
    from rpg_framework.components import Element
    return Skill(
        id="fire",
        name="Fire",
        skill_type=SkillType.MAGIC,
        element=Element.FIRE,
        power=1.5,
        mp_cost=5,
        accuracy=1.0,
    )


@pytest.fixture
def cure():
    from rpg_framework.battle.skills import Skill, SkillType, TargetType
    return Skill(
        id="cure",
        name="Cure",
        skill_type=SkillType.HEAL,
        target_type=TargetType.SINGLE_ALLY,
        power=2.0,
        mp_cost=4,
    )
