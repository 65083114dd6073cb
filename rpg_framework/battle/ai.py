"""
Enemy AI - picks a skill and targets by scoring the battle situation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional, Protocol

from rpg_engine.core.rng import RandomSource, default_source
from rpg_framework.battle.actions import ActionType, BattleAction
from rpg_framework.battle.combatant import Combatant, Side
from rpg_framework.battle.skills import Skill, SkillType, TargetType

logger = logging.getLogger(__name__)


class AIStrategy(Enum):
    """AI behavior archetypes."""
    AGGRESSIVE = auto()  # Highest scoring target
    DEFENSIVE = auto()   # First target in line
    BALANCED = auto()
    RANDOM = auto()      # Random skill and target
    SUPPORT = auto()     # Favors heals and buffs

    @classmethod
    def parse(cls, value: Any, default: AIStrategy) -> AIStrategy:
        if isinstance(value, cls):
            return value
        if not value:
            return default
        try:
            return cls[str(value).upper()]
        except KeyError:
            logger.warning("Unknown AI strategy '%s', using %s", value, default.name)
            return default


class AIPolicy(Protocol):
    """Chooses actions for automatically driven combatants."""

    def choose_action(self, actor: Combatant, battle_state: Any) -> Optional[BattleAction]:
        ...


@dataclass
class BattleSituation:
    """Summary of the field from the acting combatant's side."""
    turn: int
    allies: list[Combatant]
    opponents: list[Combatant]
    average_ally_hp_rate: float
    average_opponent_hp_rate: float


@dataclass
class SkillEvaluation:
    skill: Skill
    score: float


@dataclass
class TargetEvaluation:
    target: Combatant
    score: float
    expected_damage: float


class BasicEnemyAI:
    """
    Scoring AI.

    Skill score:
        power * 10
        +50 for heals while allies average under half HP
        +30 * opponents' average HP rate for damaging skills
        +10 per living opponent for ALL_ENEMIES skills
        -2 * mp_cost when the actor is under 30% MP
        +30 for heals and buffs under SUPPORT

    Target score:
        (1 - hp_rate) * 50 + (100 - defense) / 2 + expected_damage / 10

    Args:
        rng: Random source for the RANDOM strategy and fallback targets
        default_strategy: Used when a combatant names no strategy
    """

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        default_strategy: AIStrategy = AIStrategy.BALANCED,
    ):
        self.rng = rng or default_source()
        self.default_strategy = default_strategy

    def choose_action(self, actor: Combatant, battle_state: Any) -> Optional[BattleAction]:
        """
        Decide what actor does this turn.

        Returns:
            The chosen action, or None when nothing can be targeted
        """
        situation = self.build_situation(actor, battle_state)
        strategy = AIStrategy.parse(actor.ai_strategy, self.default_strategy)

        living_opponents = [c for c in situation.opponents if c.is_alive]
        skills = [s for s in actor.skills if actor.can_afford(s)]

        if not skills:
            if not living_opponents:
                return None
            return BattleAction(
                actor=actor,
                action_type=ActionType.ATTACK,
                targets=[self.rng.choice(living_opponents)],
            )

        evaluations = self.evaluate_skills(actor, skills, situation, strategy)
        skill = self.select_best_skill(evaluations, strategy)

        candidates = self.possible_targets(actor, skill, situation)
        if not candidates:
            return None

        if skill.target_type.is_multi:
            targets = candidates
        else:
            target_evaluations = self.evaluate_targets(actor, skill, candidates)
            targets = [self.select_best_target(target_evaluations, strategy)]

        return BattleAction(actor=actor, action_type=ActionType.SKILL, skill=skill, targets=targets)

    def build_situation(self, actor: Combatant, battle_state: Any) -> BattleSituation:
        party = list(battle_state.player_party)
        enemies = list(battle_state.enemy_group)
        allies, opponents = (party, enemies) if actor.side == Side.PLAYER else (enemies, party)

        return BattleSituation(
            turn=getattr(battle_state, "turn_number", 1),
            allies=allies,
            opponents=opponents,
            average_ally_hp_rate=_average_hp_rate(allies),
            average_opponent_hp_rate=_average_hp_rate(opponents),
        )

    def evaluate_skills(
        self,
        actor: Combatant,
        skills: list[Skill],
        situation: BattleSituation,
        strategy: AIStrategy = AIStrategy.BALANCED,
    ) -> list[SkillEvaluation]:
        evaluations = []
        for skill in skills:
            score = skill.power * 10

            if skill.skill_type == SkillType.HEAL and situation.average_ally_hp_rate < 0.5:
                score += 50
            elif skill.skill_type in (SkillType.PHYSICAL, SkillType.MAGIC):
                score += situation.average_opponent_hp_rate * 30

            if skill.target_type == TargetType.ALL_ENEMIES:
                score += sum(1 for c in situation.opponents if c.is_alive) * 10

            if skill.mp_cost > 0 and actor.max_mp > 0 and actor.mp_rate < 0.3:
                score -= skill.mp_cost * 2

            if strategy == AIStrategy.SUPPORT and skill.skill_type in (SkillType.HEAL, SkillType.BUFF):
                score += 30

            evaluations.append(SkillEvaluation(skill, score))
        return evaluations

    def evaluate_targets(
        self,
        actor: Combatant,
        skill: Skill,
        targets: list[Combatant],
    ) -> list[TargetEvaluation]:
        evaluations = []
        for target in targets:
            score = (1 - target.hp_rate) * 50

            expected = 0.0
            if skill.skill_type == SkillType.PHYSICAL:
                score += (100 - target.stats.defense) / 2
                expected = max(1, (actor.stats.attack - target.stats.defense) * skill.power)
            elif skill.skill_type == SkillType.MAGIC:
                score += (100 - target.stats.magic_defense) / 2
                expected = max(1, (actor.stats.magic - target.stats.magic_defense) * skill.power)

            score += expected / 10
            evaluations.append(TargetEvaluation(target, score, expected))
        return evaluations

    def select_best_skill(self, evaluations: list[SkillEvaluation], strategy: AIStrategy) -> Skill:
        if not evaluations:
            raise ValueError("No skills available")
        if strategy == AIStrategy.RANDOM:
            return self.rng.choice(evaluations).skill
        # max() keeps the first of equal scores
        return max(evaluations, key=lambda e: e.score).skill

    def select_best_target(self, evaluations: list[TargetEvaluation], strategy: AIStrategy) -> Combatant:
        if not evaluations:
            raise ValueError("No targets available")
        if strategy == AIStrategy.RANDOM:
            return self.rng.choice(evaluations).target
        if strategy == AIStrategy.DEFENSIVE:
            return evaluations[0].target
        return max(evaluations, key=lambda e: e.score).target

    def possible_targets(
        self,
        actor: Combatant,
        skill: Skill,
        situation: BattleSituation,
    ) -> list[Combatant]:
        if skill.target_type == TargetType.SELF:
            return [actor] if actor.is_alive else []
        pool = situation.opponents if skill.target_type.targets_enemies else situation.allies
        return [c for c in pool if c.is_alive]


def _average_hp_rate(combatants: list[Combatant]) -> float:
    living = [c for c in combatants if c.is_alive]
    if not living:
        return 0.0
    return sum(c.hp_rate for c in living) / len(living)
