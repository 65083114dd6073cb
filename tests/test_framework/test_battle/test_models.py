import pytest
from dataclasses import FrozenInstanceError
from pydantic import ValidationError

from rpg_framework.components import (
    Element,
    Stats,
    StatBag,
    StatusCategory,
    StatusEffect,
    StatusType,
    stat_multiplier,
)
from rpg_framework.battle.combatant import Combatant, Side, EnemyData, create_enemy_combatant
from rpg_framework.battle.skills import BASIC_ATTACK, SkillType, TargetType
from rpg_framework.battle.rewards import DropItem

def test_stats_init():
    stats = Stats(max_hp=80, attack=12)
    assert stats.max_hp == 80
    assert stats.attack == 12
    assert stats.speed == 10
    assert isinstance(stats, StatBag)

def test_stats_custom_fields():
    stats = Stats(max_hp=50, strength=14)
    assert stats.get("strength") == 14
    assert stats.get("attack") == 10
    assert stats.get("charisma", 3) == 3
    assert stats.custom_stats == {"strength": 14}

def test_stats_validation():
    with pytest.raises(ValidationError):
        Stats(max_hp=0)

def test_any_stat_bag_works():
    class Bag:
        max_hp = 40
        max_mp = 0
        attack = 5
        defense = 5
        magic = 5
        magic_defense = 5
        speed = 5
        luck = 0
        accuracy = 0.0
        evasion = 0.0
        critical_rate = 0.0

    c = Combatant(id="bag", name="Bag", side=Side.PLAYER, stats=Bag())
    assert c.current_hp == 40
    assert isinstance(Bag(), StatBag)

def test_combatant_init_clamps():
    c = Combatant(id="hero", name="Hero", side=Side.PLAYER, stats=Stats(max_hp=100, max_mp=20),
                  current_hp=150, current_mp=-5)
    assert c.current_hp == 100
    assert c.current_mp == 0
    assert c.is_player_controlled

def test_combatant_damage_and_heal(make_combatant):
    c = make_combatant(max_hp=100)

    assert c.take_damage(20) == 20
    assert c.current_hp == 80
    assert c.take_damage(500) == 80
    assert c.current_hp == 0
    assert not c.is_alive

    assert c.heal(30) == 30
    assert c.heal(500) == 70
    assert c.current_hp == 100

def test_combatant_mp(make_combatant):
    c = make_combatant(max_mp=10)
    assert c.spend_mp(4)
    assert c.current_mp == 6
    assert not c.spend_mp(7)
    assert c.current_mp == 6
    assert c.restore_mp(50) == 4
    assert c.current_mp == 10

def test_snapshot_is_independent(make_combatant):
    c = make_combatant()
    c.status_effects.append(StatusEffect(status_type=StatusType.POISON, power=5))
    copy = c.snapshot()

    copy.take_damage(10)
    copy.status_effects.clear()
    copy.stats.attack = 99

    assert c.current_hp == c.max_hp
    assert len(c.status_effects) == 1
    assert c.stats.attack == 10

def test_element_resistance(make_combatant):
    c = make_combatant()
    c.element_resistance[Element.FIRE] = 0.5
    assert c.resistance_to(Element.FIRE) == 0.5
    assert c.resistance_to(Element.ICE) == 1.0
    assert c.resistance_to(Element.NONE) == 1.0

def test_create_enemy_combatant():
    data = EnemyData(
        id="slime",
        name="Slime",
        stats=Stats(max_hp=30, defense=4),
        exp_reward=7,
        money_reward=3,
        drops=[DropItem("jelly", 0.5)],
        immunities={StatusType.POISON},
    )
    a = create_enemy_combatant(data, position=0)
    b = create_enemy_combatant(data, position=1)

    assert a.id == "slime_0" and b.id == "slime_1"
    assert a.side == Side.ENEMY
    assert a.current_hp == 30
    assert a.exp_reward == 7
    assert a.ai_strategy == "balanced"
    assert StatusType.POISON in a.immunities

    a.stats.defense = 1
    assert b.stats.defense == 4
    assert data.stats.defense == 4

def test_status_effect_defaults():
    effect = StatusEffect(status_type=StatusType.POISON, duration=4)
    assert effect.category == StatusCategory.DOT
    assert effect.max_duration == 4
    assert effect.is_debuff
    assert effect.id.startswith("effect-")

    buff = StatusEffect(status_type=StatusType.ATTACK_UP)
    assert buff.category == StatusCategory.BUFF
    assert not buff.is_debuff
    assert buff.id != effect.id

def test_stat_multiplier():
    effects = [
        StatusEffect(status_type=StatusType.SPEED_UP, stack_count=2, max_stack=3),
        StatusEffect(status_type=StatusType.SPEED_DOWN),
    ]
    assert stat_multiplier(effects, "speed", 0.25) == pytest.approx(1.25)
    assert stat_multiplier(effects, "attack", 0.25) == 1.0
    assert stat_multiplier(effects, "luck", 0.25) == 1.0

def test_basic_attack():
    assert BASIC_ATTACK.skill_type == SkillType.PHYSICAL
    assert BASIC_ATTACK.target_type == TargetType.SINGLE_ENEMY
    assert BASIC_ATTACK.power == 1.0
    assert BASIC_ATTACK.accuracy == 0.95
    assert BASIC_ATTACK.mp_cost == 0

    with pytest.raises(FrozenInstanceError):
        BASIC_ATTACK.power = 2.0
