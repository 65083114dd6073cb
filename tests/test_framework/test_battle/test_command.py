from types import SimpleNamespace

import pytest

from rpg_engine.core.errors import InvalidInvocationError
from rpg_framework.battle.actions import ActionType
from rpg_framework.battle.combatant import Side
from rpg_framework.battle.command import CommandSelector, CommandStage
from rpg_framework.battle.skills import Skill, SkillType, TargetType
from rpg_framework.inventory.items import Inventory, ItemData, ItemService


@pytest.fixture
def field(hero, slime):
    return SimpleNamespace(player_party=[hero], enemy_group=[slime])


@pytest.fixture
def selector():
    return CommandSelector()


def test_skill_hidden_when_unaffordable(selector, field, make_combatant, fire):
    broke = make_combatant("broke", skills=[fire], max_mp=30, current_mp=2)
    field.player_party.append(broke)

    state = selector.start_selection(broke, field)
    assert ActionType.SKILL not in state.available_commands

    result = selector.select_command(ActionType.SKILL)
    assert not result.success
    assert state.stage == CommandStage.SELECTING_ACTION
    assert state.available_skills == []


def test_available_commands_with_affordable_skill(selector, field, hero, fire):
    hero.skills.append(fire)
    state = selector.start_selection(hero, field)
    assert state.available_commands == [
        ActionType.ATTACK, ActionType.SKILL, ActionType.DEFEND, ActionType.ESCAPE,
    ]


def test_cancel_from_target_returns_to_action(selector, field, hero, slime):
    state = selector.start_selection(hero, field)
    assert selector.select_command(ActionType.ATTACK).success
    assert state.stage == CommandStage.SELECTING_TARGET
    assert selector.select_target(slime).success
    assert state.stage == CommandStage.CONFIRMED

    assert selector.cancel().success
    assert state.stage == CommandStage.SELECTING_ACTION
    assert state.selected_command is None
    assert state.selected_targets == []


def test_cancel_from_skill_target_returns_to_skill(selector, field, hero, slime, fire):
    hero.skills.append(fire)
    state = selector.start_selection(hero, field)
    selector.select_command(ActionType.SKILL)
    selector.select_skill("fire")
    assert state.stage == CommandStage.SELECTING_TARGET

    selector.cancel()
    assert state.stage == CommandStage.SELECTING_SKILL
    assert state.selected_skill is None
    assert state.selected_command == ActionType.SKILL

    selector.cancel()
    assert state.stage == CommandStage.SELECTING_ACTION
    assert not selector.cancel().success


def test_confirm_attack(selector, field, hero, slime):
    selector.start_selection(hero, field)
    selector.select_command(ActionType.ATTACK)
    selector.select_target(slime)

    action = selector.confirm()
    assert action.actor is hero
    assert action.action_type == ActionType.ATTACK
    assert action.targets == [slime]
    assert not selector.is_active


def test_defend_confirms_immediately(selector, field, hero):
    state = selector.start_selection(hero, field)
    selector.select_command(ActionType.DEFEND)
    assert state.stage == CommandStage.CONFIRMED
    assert selector.confirm().action_type == ActionType.DEFEND


def test_multi_and_self_targets_skip_target_stage(selector, field, hero, make_combatant):
    second = make_combatant("second_slime", side=Side.ENEMY)
    field.enemy_group.append(second)
    quake = Skill(id="quake", name="Quake", skill_type=SkillType.PHYSICAL, target_type=TargetType.ALL_ENEMIES)
    focus = Skill(id="focus", name="Focus", skill_type=SkillType.BUFF, target_type=TargetType.SELF)
    hero.skills.extend([quake, focus])

    state = selector.start_selection(hero, field)
    selector.select_command(ActionType.SKILL)
    selector.select_skill("quake")
    assert state.stage == CommandStage.CONFIRMED
    assert [t.id for t in state.selected_targets] == ["slime", "second_slime"]

    selector.cancel()
    selector.select_skill("focus")
    assert state.selected_targets == [hero]


def test_invalid_targets_rejected(selector, field, hero, slime, make_combatant):
    state = selector.start_selection(hero, field)
    selector.select_command(ActionType.ATTACK)

    stranger = make_combatant("stranger", side=Side.ENEMY)
    assert selector.select_target(stranger).reason == "invalid_target"
    assert selector.select_target(hero).reason == "invalid_target"
    assert selector.select_targets([slime, slime]).reason == "invalid_target_count"
    assert state.stage == CommandStage.SELECTING_TARGET


def test_defeated_enemies_not_offered(selector, field, hero, slime, make_combatant):
    fallen = make_combatant("fallen", side=Side.ENEMY)
    fallen.take_damage(9999)
    field.enemy_group.append(fallen)

    state = selector.start_selection(hero, field)
    selector.select_command(ActionType.ATTACK)
    assert state.available_targets == [slime]


def test_item_flow(field, hero):
    hero.current_hp = 10
    service = ItemService(
        {"potion": ItemData(id="potion", name="Potion", hp_restore=50)},
        Inventory({"potion": 1}),
    )
    selector = CommandSelector(item_handler=service)

    state = selector.start_selection(hero, field)
    assert ActionType.ITEM in state.available_commands
    selector.select_command(ActionType.ITEM)
    assert selector.select_item("ether").reason == "item_unavailable"
    assert selector.select_item("potion").success
    selector.select_target(hero)

    action = selector.confirm()
    assert action.action_type == ActionType.ITEM
    assert action.item_id == "potion"
    assert action.targets == [hero]


def test_out_of_order_calls_raise(selector, field, hero):
    with pytest.raises(InvalidInvocationError):
        selector.select_command(ActionType.ATTACK)
    with pytest.raises(InvalidInvocationError):
        selector.cancel()

    selector.start_selection(hero, field)
    with pytest.raises(InvalidInvocationError):
        selector.confirm()

    assert selector.select_skill("fire").reason == "wrong_stage"


def test_defeated_actor_cannot_select(selector, field, hero):
    hero.take_damage(9999)
    with pytest.raises(InvalidInvocationError):
        selector.start_selection(hero, field)
