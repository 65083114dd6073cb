"""
Battle UI Controller - headless front end for a BattleSystem.

Wraps the battle so a UI only has to:
- Subscribe to state snapshots (and/or BattleEvent on the event bus)
- Forward menu input (submit_command / submit_skill / submit_target / cancel / confirm)
- Collect rewards after a victory

Enemy turns (and party turns in auto battle) run by themselves between
player inputs.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from rpg_engine.core.errors import InvalidInvocationError
from rpg_engine.core.events import EventBus
from rpg_framework.battle.actions import ActionOutcome, ActionType
from rpg_framework.battle.combatant import Combatant
from rpg_framework.battle.command import CommandResult, CommandState
from rpg_framework.battle.rewards import BattleRewards, compute_rewards, distribute_exp
from rpg_framework.battle.skills import Skill
from rpg_framework.battle.system import BattlePhase, BattleState, BattleSystem

logger = logging.getLogger(__name__)

StateListener = Callable[[BattleState], None]


class BattleController:
    """
    Controller that drives a BattleSystem on behalf of a UI.

    Usage:
        controller = BattleController(BattleSystem(item_handler=items))
        controller.subscribe(render)
        controller.start_battle(party, enemies)

        controller.submit_command(ActionType.ATTACK)
        controller.submit_target(enemy)
        controller.confirm()
    """

    def __init__(self, battle_system: Optional[BattleSystem] = None):
        self.battle = battle_system or BattleSystem()
        self._listeners: list[StateListener] = []
        self._last_outcomes: list[ActionOutcome] = []

    @property
    def events(self) -> EventBus:
        return self.battle.events

    @property
    def command_state(self) -> Optional[CommandState]:
        """Menu state of the current party member, if one is choosing."""
        if not self.battle.selector.is_active:
            return None
        return self.battle.selector.state

    @property
    def last_outcomes(self) -> list[ActionOutcome]:
        """Outcomes resolved by the last start_battle() or confirm()."""
        return list(self._last_outcomes)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Receive a state snapshot after every change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Lifecycle

    def start_battle(self, party: Sequence[Combatant], enemies: Sequence[Combatant]) -> BattleState:
        self.battle.start_battle(party, enemies)
        self._last_outcomes = self._run_automatic()
        return self._notify()

    def get_state(self) -> BattleState:
        return self.battle.get_state()

    # Menu input

    def submit_command(self, command: ActionType) -> CommandResult:
        return self._selector().select_command(command)

    def submit_skill(self, skill: Skill | str) -> CommandResult:
        return self._selector().select_skill(skill)

    def submit_item(self, item_id: str) -> CommandResult:
        return self._selector().select_item(item_id)

    def submit_target(self, target: Combatant) -> CommandResult:
        return self._selector().select_target(self._live(target))

    def submit_targets(self, targets: list[Combatant]) -> CommandResult:
        return self._selector().select_targets([self._live(t) for t in targets])

    def cancel(self) -> CommandResult:
        return self._selector().cancel()

    def confirm(self) -> ActionOutcome:
        """
        Resolve the confirmed command, then every automatic turn after it.

        Returns:
            Outcome of the player's own action
        """
        self._selector()
        outcome = self.battle.confirm_command()
        self._last_outcomes = [outcome] + self._run_automatic()
        self._notify()
        return outcome

    # Results

    def collect_rewards(self) -> BattleRewards:
        """Compute rewards after a victory and share exp across the party."""
        if self.battle.phase != BattlePhase.VICTORY:
            raise InvalidInvocationError("Rewards are only available after a victory")

        state = self.battle.get_state()
        if state.rewards is not None:
            return state.rewards

        rewards = compute_rewards(state.enemy_group, rng=self.battle.rng)
        distribute_exp(self.battle.live_party, rewards.exp)
        self.battle.record_rewards(rewards)
        self._notify()
        return rewards

    # Internals

    def _selector(self):
        if self.battle.is_over:
            raise InvalidInvocationError("Battle is over")
        if not self.battle.selector.is_active:
            raise InvalidInvocationError("No party member is choosing a command")
        return self.battle.selector

    def _live(self, combatant: Combatant) -> Combatant:
        """Map a snapshot copy back to the combatant the battle owns."""
        live = self.battle.find_combatant(combatant.id)
        return live if live is not None else combatant

    def _run_automatic(self) -> list[ActionOutcome]:
        outcomes = []
        if not self.battle.is_over:
            outcomes = self.battle.run_until_input()
        if self.battle.needs_player_input:
            self.battle.start_command_selection()
        return outcomes

    def _notify(self) -> BattleState:
        state = self.battle.get_state()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Error in battle state listener")
        return state

