import pytest

from rpg_engine.core.config import CombatConfig
from rpg_engine.core.rng import FixedRandom, RandomSource
from rpg_framework.battle.damage import compute_damage, compute_heal
from rpg_framework.battle.skills import BASIC_ATTACK, Skill, SkillType
from rpg_framework.components import STAT_MODIFIERS, Element, StatusEffect, StatusType

# Sample order per hit: hit roll, critical roll, variance.
# 0.5 as the variance sample means a spread factor of exactly 1.0.
HIT_NO_CRIT = [0.0, 0.99, 0.5]
HIT_CRIT = [0.0, 0.0, 0.5]


def test_basic_damage(hero, slime):
    result = compute_damage(hero, slime, BASIC_ATTACK, rng=FixedRandom(HIT_NO_CRIT))
    assert result.was_hit
    assert not result.is_critical
    assert result.base_damage == 20
    assert result.final_damage == 20
    assert result.variance == pytest.approx(1.0)


def test_miss_deals_nothing(hero, slime):
    rng = FixedRandom([0.99])
    result = compute_damage(hero, slime, BASIC_ATTACK, rng=rng)
    assert not result.was_hit
    assert result.final_damage == 0
    assert not result.is_critical
    # No critical or variance roll after a miss
    assert rng.consumed == 1


def test_critical_multiplier(hero, slime):
    result = compute_damage(hero, slime, BASIC_ATTACK, rng=FixedRandom(HIT_CRIT))
    assert result.is_critical
    assert result.final_damage == 40

    config = CombatConfig(critical_multiplier=1.5)
    result = compute_damage(hero, slime, BASIC_ATTACK, config, rng=FixedRandom(HIT_CRIT))
    assert result.final_damage == 30


def test_variance_bounds(hero, slime):
    low = compute_damage(hero, slime, BASIC_ATTACK, rng=FixedRandom([0.0, 0.99, 0.0]))
    assert low.final_damage == 18

    rng = RandomSource(seed=3)
    for _ in range(200):
        result = compute_damage(hero, slime, BASIC_ATTACK, rng=rng)
        if result.was_hit and not result.is_critical:
            assert 18 <= result.final_damage <= 22


def test_minimum_one_damage(make_combatant):
    weak = make_combatant("weak", attack=1)
    wall = make_combatant("wall", defense=999)
    result = compute_damage(weak, wall, BASIC_ATTACK, rng=FixedRandom([0.0, 0.99, 0.0]))
    assert result.was_hit
    assert result.final_damage == 1


def test_damage_never_negative(make_combatant):
    rng = RandomSource(seed=11)
    attacker = make_combatant("a", attack=5)
    for defense in (0, 5, 50, 500):
        target = make_combatant("t", defense=defense)
        for _ in range(50):
            assert compute_damage(attacker, target, BASIC_ATTACK, rng=rng).final_damage >= 0


def test_elemental_modifier(make_combatant, fire):
    mage = make_combatant("mage", magic=40)
    target = make_combatant("t", magic_defense=20)

    neutral = compute_damage(mage, target, fire, rng=FixedRandom(HIT_NO_CRIT))
    assert neutral.final_damage == 40

    target.element_resistance[Element.FIRE] = 2.0
    weak = compute_damage(mage, target, fire, rng=FixedRandom(HIT_NO_CRIT))
    assert weak.elemental_modifier == 2.0
    assert weak.final_damage == 80

    target.element_resistance[Element.FIRE] = 0.0
    immune = compute_damage(mage, target, fire, rng=FixedRandom(HIT_NO_CRIT))
    assert immune.was_hit
    assert immune.final_damage == 0


def test_magic_uses_magic_stats(make_combatant, fire):
    mage = make_combatant("mage", attack=1, magic=30)
    target = make_combatant("t", defense=999, magic_defense=10)
    result = compute_damage(mage, target, fire, rng=FixedRandom(HIT_NO_CRIT))
    assert result.base_damage == 35


def test_magic_defense_modifiers_apply(make_combatant, fire, monkeypatch):
    monkeypatch.setitem(
        STAT_MODIFIERS,
        "magic_defense",
        (StatusType.DEFENSE_UP, StatusType.DEFENSE_DOWN),
    )
    mage = make_combatant("mage", magic=40)
    target = make_combatant("t", magic_defense=20)
    plain = compute_damage(mage, target, fire, rng=FixedRandom(HIT_NO_CRIT))
    assert plain.base_damage == 40

    target.status_effects.append(StatusEffect(status_type=StatusType.DEFENSE_UP))
    shielded = compute_damage(mage, target, fire, rng=FixedRandom(HIT_NO_CRIT))
    # 40 * 1.5 - 20 * 1.25
    assert shielded.base_damage == 35


def test_defending_target(hero, slime):
    slime.is_defending = True
    result = compute_damage(hero, slime, BASIC_ATTACK, rng=FixedRandom(HIT_NO_CRIT))
    assert result.final_damage == 10

    config = CombatConfig(defend_damage_reduction=0.75)
    result = compute_damage(hero, slime, BASIC_ATTACK, config, rng=FixedRandom(HIT_NO_CRIT))
    assert result.final_damage == 5


def test_attack_buff(hero, slime):
    hero.status_effects.append(StatusEffect(status_type=StatusType.ATTACK_UP))
    result = compute_damage(hero, slime, BASIC_ATTACK, rng=FixedRandom(HIT_NO_CRIT))
    # 50 * 1.25 - 30
    assert result.base_damage == 32


def test_heal(make_combatant, cure):
    healer = make_combatant("healer", magic=20)
    patient = make_combatant("patient", max_hp=200, current_hp=50)

    assert compute_heal(healer, patient, cure, rng=FixedRandom([0.5])) == 40
    assert compute_heal(healer, patient, cure, rng=FixedRandom([0.0])) == 38

    nearly_full = make_combatant("full", max_hp=200, current_hp=190)
    assert compute_heal(healer, nearly_full, cure, rng=FixedRandom([0.5])) == 10


def test_heal_minimum_one(make_combatant):
    feeble = make_combatant("feeble", magic=0)
    patient = make_combatant("patient", max_hp=100, current_hp=10)
    weak_cure = Skill(id="c", name="C", skill_type=SkillType.HEAL, power=1.0)
    assert compute_heal(feeble, patient, weak_cure, rng=FixedRandom([0.5])) == 1
