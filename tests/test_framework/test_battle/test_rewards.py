from rpg_engine.core.rng import FixedRandom
from rpg_framework.battle.combatant import Side
from rpg_framework.battle.rewards import DropItem, compute_rewards, distribute_exp


def make_enemy(make_combatant, cid, exp, money, drops=(), defeated=True):
    enemy = make_combatant(cid, side=Side.ENEMY)
    enemy.exp_reward = exp
    enemy.money_reward = money
    enemy.drop_items = list(drops)
    if defeated:
        enemy.take_damage(9999)
    return enemy


def test_only_defeated_enemies_count(make_combatant):
    enemies = [
        make_enemy(make_combatant, "a", 10, 5),
        make_enemy(make_combatant, "b", 20, 7),
        make_enemy(make_combatant, "c", 100, 100, defeated=False),
    ]
    rewards = compute_rewards(enemies)
    assert rewards.exp == 30
    assert rewards.money == 12


def test_drops_rolled_against_probability(make_combatant):
    drops = [DropItem("potion", 0.5), DropItem("gem", 0.1, quantity=2)]
    enemy = make_enemy(make_combatant, "a", 0, 0, drops)

    rewards = compute_rewards([enemy], rng=FixedRandom([0.3, 0.3]))
    assert [d.item_id for d in rewards.items] == ["potion"]

    rewards = compute_rewards([enemy], rng=FixedRandom([0.0, 0.05]))
    assert [(d.item_id, d.quantity) for d in rewards.items] == [("potion", 1), ("gem", 2)]


def test_exp_split_between_survivors(make_combatant):
    a, b, c = make_combatant("a"), make_combatant("b"), make_combatant("c")
    c.take_damage(9999)

    assert distribute_exp([a, b, c], 25) == {"a": 12, "b": 12}
    assert a.current_exp == 12
    assert c.current_exp == 0


def test_exp_with_no_survivors(make_combatant):
    a = make_combatant("a")
    a.take_damage(9999)
    assert distribute_exp([a], 100) == {}
