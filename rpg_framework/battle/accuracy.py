"""
Hit and critical chance resolution.

Rates are pure functions of the participants' stats. Rolls take an optional
pre-drawn sample in [0, 1) so callers can pin the outcome; without one a
sample is drawn from the given RandomSource.
"""

from __future__ import annotations

from typing import Any, Optional

from rpg_engine.core.config import CombatConfig, DEFAULT_CONFIG
from rpg_engine.core.rng import RandomSource, default_source
from rpg_framework.components.stats import StatBag
from rpg_framework.battle.skills import Skill

MIN_HIT_RATE = 0.05


def stats_of(participant: Any) -> StatBag:
    """Accept either a combatant or a bare stat bag."""
    return getattr(participant, "stats", participant)


def compute_hit_rate(
    attacker: Any,
    target: Any,
    skill: Skill,
    config: CombatConfig = DEFAULT_CONFIG,
) -> float:
    """
    Chance that skill used by attacker lands on target.

    Guaranteed-hit skills return exactly 1.0. Otherwise the rate is
    skill.accuracy + attacker.accuracy/100 - target.evasion/100, clamped to
    [config.min_hit_rate, 1.0].

    Args:
        attacker: Combatant or stat bag using the skill
        target: Combatant or stat bag receiving it
        skill: The skill being used
        config: Combat tuning; may carry a replacement formula

    Returns:
        Hit rate in [min_hit_rate, 1.0]
    """
    if skill.is_guaranteed_hit:
        return 1.0

    if config.hit_rate_formula is not None:
        rate = config.hit_rate_formula(attacker, target, skill)
    else:
        rate = (
            skill.accuracy
            + stats_of(attacker).accuracy / 100
            - stats_of(target).evasion / 100
        )

    return max(config.min_hit_rate, min(1.0, rate))


def roll_hit(
    hit_rate: float,
    sample: Optional[float] = None,
    rng: Optional[RandomSource] = None,
) -> bool:
    """
    Hit when the uniform sample falls below hit_rate.

    A sample is always drawn, so 1.0 always hits and 0.0 never does while
    the number of samples consumed per roll stays fixed.
    """
    return _draw(sample, rng) < hit_rate


def compute_critical_rate(
    attacker: Any,
    skill: Skill,
    config: CombatConfig = DEFAULT_CONFIG,
) -> float:
    """
    Chance that a landed hit is critical, clamped to [0, 1].

    base_critical_rate + luck * luck_critical_factor + skill.critical_bonus
    + attacker.critical_rate
    """
    if config.critical_rate_formula is not None:
        rate = config.critical_rate_formula(attacker, skill, config)
    else:
        stats = stats_of(attacker)
        rate = (
            config.base_critical_rate
            + stats.luck * config.luck_critical_factor
            + skill.critical_bonus
            + stats.critical_rate
        )

    return max(0.0, min(1.0, rate))


def roll_critical(
    critical_rate: float,
    sample: Optional[float] = None,
    rng: Optional[RandomSource] = None,
) -> bool:
    return _draw(sample, rng) < critical_rate


def _draw(sample: Optional[float], rng: Optional[RandomSource]) -> float:
    if sample is None:
        return (rng or default_source()).random()
    if not 0.0 <= sample < 1.0:
        raise ValueError(f"Sample must be in [0, 1), got {sample}")
    return sample
