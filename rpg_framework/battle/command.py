"""
Command selection - the menu flow a player goes through to build an action.

    SELECTING_ACTION -> (SELECTING_SKILL | SELECTING_ITEM) -> SELECTING_TARGET -> CONFIRMED

cancel() walks back one step. Bad menu input (an option that was never
offered, an unaffordable skill, a target outside the list) is reported
through CommandResult and leaves the state as it was; calling the selector
out of order raises InvalidInvocationError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Optional

from rpg_engine.core.errors import InvalidInvocationError
from rpg_framework.battle.actions import ActionType, BattleAction
from rpg_framework.battle.combatant import Combatant, Side
from rpg_framework.battle.skills import BASIC_ATTACK, Skill, TargetType

if TYPE_CHECKING:
    from rpg_framework.inventory.items import ItemData, ItemHandler

logger = logging.getLogger(__name__)

COMMAND_ORDER = (
    ActionType.ATTACK,
    ActionType.SKILL,
    ActionType.ITEM,
    ActionType.DEFEND,
    ActionType.ESCAPE,
)


class CommandStage(Enum):
    """Where the player is in the command menu."""
    SELECTING_ACTION = auto()
    SELECTING_SKILL = auto()
    SELECTING_ITEM = auto()
    SELECTING_TARGET = auto()
    CONFIRMED = auto()


@dataclass
class CommandState:
    """Selections made so far plus the options currently on offer."""
    actor: Combatant
    stage: CommandStage = CommandStage.SELECTING_ACTION
    selected_command: Optional[ActionType] = None
    selected_skill: Optional[Skill] = None
    selected_item_id: Optional[str] = None
    selected_targets: list[Combatant] = field(default_factory=list)

    available_commands: list[ActionType] = field(default_factory=list)
    available_skills: list[Skill] = field(default_factory=list)
    available_items: list[ItemData] = field(default_factory=list)
    available_targets: list[Combatant] = field(default_factory=list)


@dataclass
class CommandResult:
    success: bool
    reason: Optional[str] = None


class CommandSelector:
    """
    Drives one actor's command selection.

    Args:
        item_handler: Source of usable items; the ITEM command is never
            offered without one
    """

    def __init__(self, item_handler: Optional[ItemHandler] = None):
        self.item_handler = item_handler
        self._state: Optional[CommandState] = None
        self._battle: Any = None

    @property
    def state(self) -> CommandState:
        return self._require_state()

    @property
    def is_active(self) -> bool:
        return self._state is not None

    def start_selection(self, actor: Combatant, battle_state: Any) -> CommandState:
        """
        Begin selecting a command for actor.

        Args:
            actor: Living combatant whose turn it is
            battle_state: Anything exposing player_party and enemy_group
        """
        if not actor.is_alive:
            raise InvalidInvocationError(f"{actor.id} is defeated and cannot act")

        self._battle = battle_state
        self._state = CommandState(
            actor=actor,
            available_commands=self.get_available_commands(actor),
        )
        return self._state

    def get_available_commands(self, actor: Combatant) -> list[ActionType]:
        """ATTACK, DEFEND and ESCAPE always; SKILL and ITEM only when usable."""
        commands = []
        for command in COMMAND_ORDER:
            if command == ActionType.SKILL and not self.get_usable_skills(actor):
                continue
            if command == ActionType.ITEM and not self._usable_items(actor):
                continue
            commands.append(command)
        return commands

    def get_usable_skills(self, actor: Combatant) -> list[Skill]:
        return [s for s in actor.skills if actor.can_afford(s)]

    def select_command(self, command: ActionType) -> CommandResult:
        state = self._require_state()
        if state.stage != CommandStage.SELECTING_ACTION:
            return CommandResult(False, "wrong_stage")
        if command not in state.available_commands:
            return CommandResult(False, "command_unavailable")

        if command == ActionType.ATTACK:
            targets = self._candidates(BASIC_ATTACK.target_type)
            if not targets:
                return CommandResult(False, "no_valid_targets")
            state.selected_command = command
            self._enter_targeting(BASIC_ATTACK.target_type, targets)
        elif command == ActionType.SKILL:
            skills = self.get_usable_skills(state.actor)
            if not skills:
                return CommandResult(False, "no_usable_skills")
            state.selected_command = command
            state.available_skills = skills
            state.stage = CommandStage.SELECTING_SKILL
        elif command == ActionType.ITEM:
            items = self._usable_items(state.actor)
            if not items:
                return CommandResult(False, "no_usable_items")
            state.selected_command = command
            state.available_items = items
            state.stage = CommandStage.SELECTING_ITEM
        else:
            state.selected_command = command
            state.stage = CommandStage.CONFIRMED

        return CommandResult(True)

    def select_skill(self, skill: Skill | str) -> CommandResult:
        state = self._require_state()
        if state.stage != CommandStage.SELECTING_SKILL:
            return CommandResult(False, "wrong_stage")

        skill_id = skill if isinstance(skill, str) else skill.id
        known = next((s for s in state.actor.skills if s.id == skill_id), None)
        if known is None:
            return CommandResult(False, "unknown_skill")
        if not state.actor.can_afford(known):
            return CommandResult(False, "not_enough_mp")

        targets = self._candidates(known.target_type)
        if not targets:
            return CommandResult(False, "no_valid_targets")

        state.selected_skill = known
        self._enter_targeting(known.target_type, targets)
        return CommandResult(True)

    def select_item(self, item_id: str) -> CommandResult:
        state = self._require_state()
        if state.stage != CommandStage.SELECTING_ITEM:
            return CommandResult(False, "wrong_stage")

        item = next((i for i in state.available_items if i.id == item_id), None)
        if item is None:
            return CommandResult(False, "item_unavailable")

        targets = self._item_candidates(item)
        if not targets:
            return CommandResult(False, "no_valid_targets")

        state.selected_item_id = item.id
        self._enter_targeting(item.target_type, targets)
        return CommandResult(True)

    def select_target(self, target: Combatant) -> CommandResult:
        return self.select_targets([target])

    def select_targets(self, targets: list[Combatant]) -> CommandResult:
        """Choose targets explicitly. Single-target commands take exactly one."""
        state = self._require_state()
        if state.stage != CommandStage.SELECTING_TARGET:
            return CommandResult(False, "wrong_stage")
        if len(targets) != 1:
            return CommandResult(False, "invalid_target_count")

        available_ids = {c.id for c in state.available_targets}
        if any(t.id not in available_ids for t in targets):
            return CommandResult(False, "invalid_target")

        state.selected_targets = list(targets)
        state.stage = CommandStage.CONFIRMED
        return CommandResult(True)

    def cancel(self) -> CommandResult:
        """Step back one stage, clearing what that stage had selected."""
        state = self._require_state()

        if state.stage == CommandStage.SELECTING_ACTION:
            return CommandResult(False, "nothing_to_cancel")

        if state.stage in (CommandStage.SELECTING_SKILL, CommandStage.SELECTING_ITEM):
            self._back_to_action(state)
            return CommandResult(True)

        # SELECTING_TARGET and CONFIRMED step back the same way
        state.selected_targets = []
        state.available_targets = []
        if state.selected_skill is not None:
            state.selected_skill = None
            state.stage = CommandStage.SELECTING_SKILL
        elif state.selected_item_id is not None:
            state.selected_item_id = None
            state.stage = CommandStage.SELECTING_ITEM
        else:
            self._back_to_action(state)
        return CommandResult(True)

    def confirm(self) -> BattleAction:
        """Turn the confirmed selection into an action and end the session."""
        state = self._require_state()
        if state.stage != CommandStage.CONFIRMED:
            raise InvalidInvocationError(
                f"Cannot confirm a command in stage {state.stage.name}"
            )

        action = BattleAction(
            actor=state.actor,
            action_type=state.selected_command,
            skill=state.selected_skill,
            item_id=state.selected_item_id,
            targets=list(state.selected_targets),
        )
        self.reset()
        return action

    def reset(self) -> None:
        self._state = None
        self._battle = None

    def _require_state(self) -> CommandState:
        if self._state is None:
            raise InvalidInvocationError("No command selection in progress")
        return self._state

    def _back_to_action(self, state: CommandState) -> None:
        state.stage = CommandStage.SELECTING_ACTION
        state.selected_command = None
        state.selected_skill = None
        state.selected_item_id = None
        state.selected_targets = []
        state.available_skills = []
        state.available_items = []
        state.available_targets = []

    def _enter_targeting(self, target_type: TargetType, targets: list[Combatant]) -> None:
        state = self._state
        state.available_targets = targets
        if target_type.is_multi or target_type == TargetType.SELF:
            state.selected_targets = list(targets)
            state.stage = CommandStage.CONFIRMED
        else:
            state.stage = CommandStage.SELECTING_TARGET

    def _rosters(self) -> tuple[list[Combatant], list[Combatant]]:
        """(allies, opponents) from the current actor's point of view."""
        party = list(self._battle.player_party)
        enemies = list(self._battle.enemy_group)
        if self._state.actor.side == Side.PLAYER:
            return party, enemies
        return enemies, party

    def _candidates(self, target_type: TargetType) -> list[Combatant]:
        if target_type == TargetType.SELF:
            return [self._state.actor]
        allies, opponents = self._rosters()
        pool = opponents if target_type.targets_enemies else allies
        return [c for c in pool if c.is_alive]

    def _item_candidates(self, item: ItemData) -> list[Combatant]:
        if item.target_type == TargetType.SELF:
            pool = [self._state.actor]
        else:
            allies, opponents = self._rosters()
            pool = opponents if item.target_type.targets_enemies else allies
        return [c for c in pool if self.item_handler.can_use_item(item.id, c)]

    def _usable_items(self, actor: Combatant) -> list[ItemData]:
        if self.item_handler is None:
            return []
        return list(self.item_handler.available_items(actor))
