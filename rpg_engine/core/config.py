"""
Combat configuration.

All tunable numbers of the battle rules live in one validated model so a
game can ship its own balance file:

    config = CombatConfig.from_file("data/combat.json")
    system = BattleSystem(config=config)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rpg_engine.core.errors import DataValidationError

logger = logging.getLogger(__name__)


class CombatConfig(BaseModel):
    """
    Tunable combat parameters.

    Attributes:
        base_critical_rate: Critical chance every attacker starts with
        luck_critical_factor: Critical chance added per point of luck
        critical_multiplier: Damage multiplier on a critical hit
        damage_variance: Half-width of the random damage spread (0.1 = +-10%)
        heal_variance: Half-width of the random healing spread
        min_hit_rate: Floor for computed hit chances
        defend_damage_reduction: Fraction of damage removed while defending
        escape_base_rate: Chance of the first escape attempt
        escape_rate_increment: Chance added per failed escape attempt
        preemptive_strike_threshold: Average speed lead needed for a free round
        stat_modifier_per_stack: Stat fraction per attack/defense/speed up or down stack
        hit_rate_formula: Optional replacement for the default hit formula,
            called as f(attacker, target, skill) -> float
        critical_rate_formula: Optional replacement for the default critical
            formula, called as f(attacker, skill, config) -> float
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid',
    )

    base_critical_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    luck_critical_factor: float = Field(default=0.001, ge=0.0)
    critical_multiplier: float = Field(default=2.0, gt=1.0)
    damage_variance: float = Field(default=0.1, ge=0.0, lt=1.0)
    heal_variance: float = Field(default=0.05, ge=0.0, lt=1.0)
    min_hit_rate: float = Field(default=0.05, gt=0.0, le=1.0)
    defend_damage_reduction: float = Field(default=0.5, ge=0.0, le=1.0)
    escape_base_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    escape_rate_increment: float = Field(default=0.1, ge=0.0, le=1.0)
    preemptive_strike_threshold: float = Field(default=50, ge=0)
    stat_modifier_per_stack: float = Field(default=0.25, ge=0.0, lt=1.0)

    hit_rate_formula: Optional[Callable[..., float]] = Field(default=None, exclude=True)
    critical_rate_formula: Optional[Callable[..., float]] = Field(default=None, exclude=True)

    @field_validator('hit_rate_formula', 'critical_rate_formula')
    @classmethod
    def _check_callable(cls, value: Any) -> Any:
        if value is not None and not callable(value):
            raise ValueError("formula must be callable")
        return value

    def escape_chance(self, attempt: int) -> float:
        """
        Chance of the given escape attempt (1-based) succeeding.

        The k-th attempt uses min(1, base + increment * (k - 1)).
        """
        if attempt < 1:
            raise ValueError(f"Escape attempts are 1-based, got {attempt}")
        return min(1.0, self.escape_base_rate + self.escape_rate_increment * (attempt - 1))

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str | None = None) -> CombatConfig:
        """Validate a plain dict, wrapping pydantic errors."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DataValidationError(str(e), source) from e

    @classmethod
    def from_file(cls, path: Path | str) -> CombatConfig:
        """Load a config from a JSON file."""
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataValidationError(f"Cannot read combat config: {e}", str(path)) from e

        config = cls.from_dict(data, str(path))
        logger.info("Loaded combat config from %s", path)
        return config


DEFAULT_CONFIG = CombatConfig()
