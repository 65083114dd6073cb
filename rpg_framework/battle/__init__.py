"""
Battle module - turn-based combat system.

Provides:
- Combatants (party members, enemies)
- Skills and the basic attack
- Hit, critical and damage calculation
- Action execution (attack, skill, item, defend, escape)
- Command selection for player turns
- Enemy AI
- Turn order management
- Win/lose conditions
- Reward calculation

Static data loading lives in rpg_framework.battle.registry.
"""

from rpg_framework.battle.skills import (
    Skill,
    SkillType,
    TargetType,
    StatusEffectApplication,
    BASIC_ATTACK,
)
from rpg_framework.battle.combatant import (
    Combatant,
    Side,
    EnemyData,
    create_enemy_combatant,
)
from rpg_framework.battle.accuracy import (
    MIN_HIT_RATE,
    compute_hit_rate,
    roll_hit,
    compute_critical_rate,
    roll_critical,
)
from rpg_framework.battle.damage import (
    DamageResult,
    compute_damage,
    compute_heal,
    effective_stat,
)
from rpg_framework.battle.turn_order import (
    compute_turn_order,
    effective_speed,
    check_preemptive_strike,
)
from rpg_framework.battle.actions import (
    BattleActionExecutor,
    ActionType,
    BattleAction,
    ActionOutcome,
    TargetOutcome,
)
from rpg_framework.battle.command import (
    CommandSelector,
    CommandStage,
    CommandState,
    CommandResult,
)
from rpg_framework.battle.ai import (
    AIPolicy,
    AIStrategy,
    BasicEnemyAI,
)
from rpg_framework.battle.rewards import (
    BattleRewards,
    DropItem,
    compute_rewards,
    distribute_exp,
)
from rpg_framework.battle.system import (
    BattleSystem,
    BattleState,
    BattlePhase,
    BattleEvent,
    ActionRecord,
)
from rpg_framework.battle.ui_controller import BattleController

__all__ = [
    # Skills
    "Skill",
    "SkillType",
    "TargetType",
    "StatusEffectApplication",
    "BASIC_ATTACK",
    # Combatant
    "Combatant",
    "Side",
    "EnemyData",
    "create_enemy_combatant",
    # Accuracy
    "MIN_HIT_RATE",
    "compute_hit_rate",
    "roll_hit",
    "compute_critical_rate",
    "roll_critical",
    # Damage
    "DamageResult",
    "compute_damage",
    "compute_heal",
    "effective_stat",
    # Turn order
    "compute_turn_order",
    "effective_speed",
    "check_preemptive_strike",
    # Actions
    "BattleActionExecutor",
    "ActionType",
    "BattleAction",
    "ActionOutcome",
    "TargetOutcome",
    # Command selection
    "CommandSelector",
    "CommandStage",
    "CommandState",
    "CommandResult",
    # AI
    "AIPolicy",
    "AIStrategy",
    "BasicEnemyAI",
    # Rewards
    "BattleRewards",
    "DropItem",
    "compute_rewards",
    "distribute_exp",
    # System
    "BattleSystem",
    "BattleState",
    "BattlePhase",
    "BattleEvent",
    "ActionRecord",
    "BattleController",
]
