"""
Battle system - the turn-based combat state machine.

One BattleSystem owns a battle from start_battle() to a terminal phase. It
sequences turns, asks the player (through submit_action or the command
selector) or an AI policy for each actor's action, resolves it, ticks
statuses at round end and checks win/lose conditions after every step.

Readers outside the battle get deep-copied snapshots from get_state().
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional, Sequence

from rpg_engine.core.config import CombatConfig, DEFAULT_CONFIG
from rpg_engine.core.errors import InvalidInvocationError
from rpg_engine.core.events import EventBus
from rpg_engine.core.rng import RandomSource, default_source
from rpg_framework.battle.actions import (
    ActionOutcome,
    ActionType,
    BattleAction,
    BattleActionExecutor,
)
from rpg_framework.battle.ai import AIPolicy, BasicEnemyAI
from rpg_framework.battle.combatant import Combatant, Side
from rpg_framework.battle.command import CommandSelector, CommandState
from rpg_framework.battle.rewards import BattleRewards
from rpg_framework.battle.skills import TargetType
from rpg_framework.battle.turn_order import check_preemptive_strike, compute_turn_order
from rpg_framework.status.tracker import StatusEffectTracker, StatusTracker

if TYPE_CHECKING:
    from rpg_framework.inventory.items import ItemHandler

logger = logging.getLogger(__name__)


class BattlePhase(Enum):
    """State of the battle."""
    INITIALIZING = auto()
    PLAYER_TURN = auto()
    ENEMY_TURN = auto()
    RESOLVING = auto()
    VICTORY = auto()
    DEFEAT = auto()
    ESCAPED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (BattlePhase.VICTORY, BattlePhase.DEFEAT, BattlePhase.ESCAPED)


class BattleEvent(Enum):
    """Events published on the battle's EventBus."""
    BATTLE_STARTED = auto()
    TURN_STARTED = auto()
    ACTION_RESOLVED = auto()
    ACTOR_DEFEATED = auto()
    STATUS_EXPIRED = auto()
    BATTLE_ENDED = auto()


@dataclass
class ActionRecord:
    """One entry of the action history."""
    turn_number: int
    action: Optional[BattleAction]
    outcome: ActionOutcome


@dataclass
class BattleState:
    """Everything a battle knows. Mutated only by its BattleSystem."""
    phase: BattlePhase = BattlePhase.INITIALIZING
    turn_number: int = 0
    player_party: list[Combatant] = field(default_factory=list)
    enemy_group: list[Combatant] = field(default_factory=list)
    turn_order: list[Combatant] = field(default_factory=list)
    current_actor_index: int = 0
    action_history: list[ActionRecord] = field(default_factory=list)
    escape_attempts: int = 0
    preemptive: bool = False
    rewards: Optional[BattleRewards] = None

    @property
    def current_actor(self) -> Optional[Combatant]:
        if 0 <= self.current_actor_index < len(self.turn_order):
            return self.turn_order[self.current_actor_index]
        return None

    def find(self, combatant_id: str) -> Optional[Combatant]:
        for combatant in self.player_party + self.enemy_group:
            if combatant.id == combatant_id:
                return combatant
        return None


class BattleSystem:
    """
    Turn-based battle controller.

    Manages:
    - Battle initialization and preemptive strikes
    - Turn order
    - Player input (direct actions or the command selector)
    - Enemy AI turns
    - Round-end status ticks
    - Win/lose/escape conditions

    Args:
        config: Combat tuning
        rng: Random source for every roll in the battle
        status_tracker: Status rules
        item_handler: Item rules; the ITEM command is unavailable without one
        enemy_ai: Policy driving enemy turns
        party_ai: Policy driving party turns when auto_battle is on
        auto_battle: Let party_ai play the party too
        events: Bus receiving BattleEvent notifications
    """

    def __init__(
        self,
        config: CombatConfig = DEFAULT_CONFIG,
        rng: Optional[RandomSource] = None,
        status_tracker: Optional[StatusTracker] = None,
        item_handler: Optional[ItemHandler] = None,
        enemy_ai: Optional[AIPolicy] = None,
        party_ai: Optional[AIPolicy] = None,
        auto_battle: bool = False,
        events: Optional[EventBus] = None,
    ):
        self.config = config
        self.rng = rng or default_source()
        self.status_tracker = status_tracker or StatusEffectTracker()
        self.item_handler = item_handler
        self.enemy_ai = enemy_ai or BasicEnemyAI(rng=self.rng)
        self.party_ai = party_ai or BasicEnemyAI(rng=self.rng)
        self.auto_battle = auto_battle
        self.events = events or EventBus()

        self._executor = BattleActionExecutor(
            config=config,
            rng=self.rng,
            status_tracker=self.status_tracker,
            item_handler=item_handler,
        )
        self.selector = CommandSelector(item_handler=item_handler)
        self._state: Optional[BattleState] = None

    # Lifecycle

    def start_battle(
        self,
        player_party: Sequence[Combatant],
        enemy_group: Sequence[Combatant],
    ) -> BattleState:
        """
        Start a battle.

        Rosters must be non-empty and combatant ids unique across both.
        Positions and sides are (re)assigned from roster order.

        Returns:
            Snapshot of the state at the first actor's turn
        """
        if self._state is not None and not self._state.phase.is_terminal:
            raise InvalidInvocationError("A battle is already in progress")
        if not player_party or not enemy_group:
            raise ValueError("Both rosters need at least one combatant")
        ids = [c.id for c in list(player_party) + list(enemy_group)]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Combatant ids must be unique: {ids}")

        for side, roster in ((Side.PLAYER, player_party), (Side.ENEMY, enemy_group)):
            for position, combatant in enumerate(roster):
                combatant.side = side
                combatant.position = position
                combatant.is_defending = False

        state = BattleState(
            phase=BattlePhase.INITIALIZING,
            turn_number=1,
            player_party=list(player_party),
            enemy_group=list(enemy_group),
        )
        state.preemptive = check_preemptive_strike(state.player_party, state.enemy_group, self.config)
        state.turn_order = compute_turn_order(
            state.player_party, state.enemy_group, self.config, preemptive=state.preemptive
        )
        self._state = state
        self.selector.reset()

        logger.info(
            "Battle started: %d vs %d%s",
            len(state.player_party), len(state.enemy_group),
            " (preemptive)" if state.preemptive else "",
        )
        self.events.publish(
            BattleEvent.BATTLE_STARTED,
            preemptive=state.preemptive,
            turn_order=[c.id for c in state.turn_order],
        )

        if not self._check_end():
            self._begin_turn()
        return self.get_state()

    def get_state(self) -> BattleState:
        """Deep copy of the current state."""
        if self._state is None:
            raise InvalidInvocationError("No battle has been started")
        return copy.deepcopy(self._state)

    @property
    def phase(self) -> BattlePhase:
        return self._state.phase if self._state else BattlePhase.INITIALIZING

    @property
    def is_over(self) -> bool:
        return self._state is not None and self._state.phase.is_terminal

    @property
    def current_actor(self) -> Optional[Combatant]:
        if self._state is None or self._state.phase.is_terminal:
            return None
        return self._state.current_actor

    @property
    def needs_player_input(self) -> bool:
        return self.phase == BattlePhase.PLAYER_TURN and not self.auto_battle

    @property
    def live_party(self) -> list[Combatant]:
        """The party combatants themselves (not copies), for post-battle bookkeeping."""
        return list(self._state.player_party) if self._state else []

    def find_combatant(self, combatant_id: str) -> Optional[Combatant]:
        return self._state.find(combatant_id) if self._state else None

    def record_rewards(self, rewards: BattleRewards) -> None:
        """Attach rewards to a won battle. Allowed once, only after VICTORY."""
        if self.phase != BattlePhase.VICTORY:
            raise InvalidInvocationError("Rewards can only be recorded after a victory")
        if self._state.rewards is not None:
            raise InvalidInvocationError("Rewards were already recorded")
        self._state.rewards = rewards

    # Player input

    def start_command_selection(self) -> CommandState:
        """Open the command menu for the current party member."""
        actor = self._require_turn(BattlePhase.PLAYER_TURN)
        return self.selector.start_selection(actor, self._state)

    def confirm_command(self) -> ActionOutcome:
        """Confirm the command menu and resolve the resulting action."""
        self._require_turn(BattlePhase.PLAYER_TURN)
        return self.submit_action(self.selector.confirm())

    def submit_action(self, action: BattleAction) -> ActionOutcome:
        """
        Resolve an action for the current party member.

        An action that is not legal (unknown or unaffordable skill, a target
        that is defeated or on the wrong side) is replaced by DEFEND.
        """
        actor = self._require_turn(BattlePhase.PLAYER_TURN)
        if action.actor is not actor and action.actor.id != actor.id:
            raise InvalidInvocationError(
                f"It is {actor.id}'s turn, not {action.actor.id}'s"
            )
        action.actor = actor

        reason = self._validate(action)
        if reason is not None:
            logger.warning("Invalid action from %s (%s), defending instead", actor.id, reason)
            action = BattleAction.defend(actor)
        return self._resolve(action)

    # Automatic turns

    def run_ai_turn(self) -> ActionOutcome:
        """Let the AI act for the current actor (an enemy, or anyone in auto battle)."""
        state = self._require_active()
        actor = state.current_actor
        if state.phase == BattlePhase.PLAYER_TURN and not self.auto_battle:
            raise InvalidInvocationError("The current actor waits for player input")
        if state.phase not in (BattlePhase.PLAYER_TURN, BattlePhase.ENEMY_TURN) or actor is None:
            raise InvalidInvocationError(f"No actor can act in phase {state.phase.name}")

        policy = self.party_ai if actor.side == Side.PLAYER else self.enemy_ai
        try:
            action = policy.choose_action(actor, self._state)
        except Exception:
            logger.exception("AI policy failed for %s", actor.id)
            action = None

        if action is None:
            logger.warning("No action chosen for %s, defending", actor.id)
            action = BattleAction.defend(actor)
        else:
            action.actor = actor
            reason = self._validate(action)
            if reason is not None:
                logger.warning("AI chose an invalid action for %s (%s), defending", actor.id, reason)
                action = BattleAction.defend(actor)

        return self._resolve(action)

    def run_enemy_turns(self) -> list[ActionOutcome]:
        """Resolve enemy turns until the party must act or the battle ends."""
        self._require_active()
        outcomes = []
        while self._state.phase == BattlePhase.ENEMY_TURN:
            outcomes.append(self.run_ai_turn())
        return outcomes

    def run_until_input(self) -> list[ActionOutcome]:
        """Resolve every automatically driven turn until input is needed or the battle ends."""
        self._require_active()
        outcomes = []
        while self._state.phase == BattlePhase.ENEMY_TURN or (
            self._state.phase == BattlePhase.PLAYER_TURN and self.auto_battle
        ):
            outcomes.append(self.run_ai_turn())
        return outcomes

    # Internals

    def _require_active(self) -> BattleState:
        if self._state is None:
            raise InvalidInvocationError("No battle has been started")
        if self._state.phase.is_terminal:
            raise InvalidInvocationError(f"Battle is over ({self._state.phase.name})")
        return self._state

    def _require_turn(self, phase: BattlePhase) -> Combatant:
        state = self._require_active()
        if state.phase != phase:
            raise InvalidInvocationError(
                f"Expected phase {phase.name}, battle is in {state.phase.name}"
            )
        actor = state.current_actor
        if actor is None or not actor.is_alive:
            raise InvalidInvocationError("The current actor cannot act")
        return actor

    def _validate(self, action: BattleAction) -> Optional[str]:
        """Reason the action is illegal, or None."""
        actor = action.actor
        allies, opponents = self._rosters(actor)

        if action.action_type == ActionType.ESCAPE and actor.side != Side.PLAYER:
            return "enemy_cannot_escape"
        if action.action_type in (ActionType.DEFEND, ActionType.ESCAPE):
            return None

        if action.action_type == ActionType.ITEM:
            if self.item_handler is None or action.item_id is None:
                return "no_item"
            if not action.targets:
                return "no_target"
            targets = [self._state.find(t.id) for t in action.targets]
            if any(t is None for t in targets):
                return "invalid_target"
            action.targets = targets
            return None

        if action.action_type == ActionType.ATTACK:
            target_type = TargetType.SINGLE_ENEMY
        else:
            skill = action.skill
            if skill is None or all(s.id != skill.id for s in actor.skills):
                return "unknown_skill"
            if not actor.can_afford(skill):
                return "not_enough_mp"
            target_type = skill.target_type

        if not action.targets:
            return "no_target"
        if not target_type.is_multi and len(action.targets) != 1:
            return "invalid_target_count"

        if target_type == TargetType.SELF:
            pool = [actor]
        elif target_type.targets_enemies:
            pool = opponents
        else:
            pool = allies
        pool_ids = {c.id for c in pool if c.is_alive}
        if any(t.id not in pool_ids for t in action.targets):
            return "invalid_target"

        # Resolve against the live combatants, not caller copies
        action.targets = [self._state.find(t.id) for t in action.targets]
        return None

    def _rosters(self, actor: Combatant) -> tuple[list[Combatant], list[Combatant]]:
        if actor.side == Side.PLAYER:
            return self._state.player_party, self._state.enemy_group
        return self._state.enemy_group, self._state.player_party

    def _resolve(self, action: BattleAction) -> ActionOutcome:
        state = self._state
        state.phase = BattlePhase.RESOLVING
        self.selector.reset()

        alive_before = {c.id for c in state.player_party + state.enemy_group if c.is_alive}

        attempt = 1
        if action.action_type == ActionType.ESCAPE:
            state.escape_attempts += 1
            attempt = state.escape_attempts

        outcome = self._executor.execute(action, escape_attempt=attempt)
        state.action_history.append(ActionRecord(state.turn_number, action, outcome))
        logger.debug(
            "Turn %d: %s -> %s%s",
            state.turn_number, action.actor.id, action.action_type.name,
            "" if outcome.success else f" failed ({outcome.reason})",
        )
        self.events.publish(BattleEvent.ACTION_RESOLVED, outcome=outcome)
        self._announce_defeats(alive_before)

        if outcome.escaped:
            self._finish(BattlePhase.ESCAPED)
        elif not self._check_end():
            self._advance()
        return outcome

    def _announce_defeats(self, alive_before: set[str]) -> None:
        for combatant in self._state.player_party + self._state.enemy_group:
            if combatant.id in alive_before and not combatant.is_alive:
                combatant.is_defending = False
                logger.debug("%s was defeated", combatant.id)
                self.events.publish(BattleEvent.ACTOR_DEFEATED, combatant_id=combatant.id)

    def _advance(self) -> None:
        self._state.current_actor_index += 1
        self._begin_turn()

    def _begin_turn(self) -> None:
        """Move to the next actor able to act, ending rounds as needed."""
        state = self._state
        while True:
            if state.current_actor_index >= len(state.turn_order):
                if self._end_round():
                    return

            actor = state.turn_order[state.current_actor_index]
            actor.is_defending = False

            if actor.is_alive and self.status_tracker.can_act(actor):
                break

            reason = "defeated" if not actor.is_alive else "cannot_act"
            outcome = ActionOutcome(actor.id, None, success=False, reason=reason, skipped=True)
            state.action_history.append(ActionRecord(state.turn_number, None, outcome))
            logger.debug("Turn %d: %s skipped (%s)", state.turn_number, actor.id, reason)
            if actor.is_alive:
                self.events.publish(BattleEvent.ACTION_RESOLVED, outcome=outcome)
            state.current_actor_index += 1

        state.phase = BattlePhase.PLAYER_TURN if actor.side == Side.PLAYER else BattlePhase.ENEMY_TURN
        logger.debug("Turn %d: %s to act", state.turn_number, actor.id)
        self.events.publish(
            BattleEvent.TURN_STARTED,
            actor_id=actor.id,
            turn_number=state.turn_number,
            phase=state.phase,
        )

    def _end_round(self) -> bool:
        """
        Tick statuses and set up the next round.

        Returns:
            True if the battle ended during the tick
        """
        state = self._state
        state.turn_number += 1
        alive_before = {c.id for c in state.player_party + state.enemy_group if c.is_alive}

        for combatant in state.player_party + state.enemy_group:
            if not combatant.is_alive:
                continue
            tick = self.status_tracker.tick(combatant)
            if tick.expired_ids:
                self.events.publish(
                    BattleEvent.STATUS_EXPIRED,
                    combatant_id=combatant.id,
                    effect_ids=list(tick.expired_ids),
                )

        self._announce_defeats(alive_before)
        if self._check_end():
            return True

        state.preemptive = False
        state.turn_order = compute_turn_order(state.player_party, state.enemy_group, self.config)
        state.current_actor_index = 0
        return False

    def _check_end(self) -> bool:
        state = self._state
        if not any(c.is_alive for c in state.enemy_group):
            self._finish(BattlePhase.VICTORY)
            return True
        if not any(c.is_alive for c in state.player_party):
            self._finish(BattlePhase.DEFEAT)
            return True
        return False

    def _finish(self, phase: BattlePhase) -> None:
        self._state.phase = phase
        self.selector.reset()
        for combatant in self._state.player_party + self._state.enemy_group:
            combatant.is_defending = False
        logger.info("Battle ended: %s after %d turns", phase.name, self._state.turn_number)
        self.events.publish(BattleEvent.BATTLE_ENDED, phase=phase)
