import json
import pytest
from pydantic import ValidationError

from rpg_engine.core.config import CombatConfig, DEFAULT_CONFIG
from rpg_engine.core.errors import DataValidationError, InvalidInvocationError


def test_defaults():
    config = CombatConfig()
    assert config.base_critical_rate == 0.05
    assert config.luck_critical_factor == 0.001
    assert config.critical_multiplier == 2.0
    assert config.damage_variance == 0.1
    assert config.defend_damage_reduction == 0.5
    assert config.escape_base_rate == 0.5
    assert config.escape_rate_increment == 0.1
    assert config.preemptive_strike_threshold == 50
    assert DEFAULT_CONFIG == config


def test_critical_multiplier_must_exceed_one():
    with pytest.raises(ValidationError):
        CombatConfig(critical_multiplier=1.0)


def test_validate_assignment():
    config = CombatConfig()
    with pytest.raises(ValidationError):
        config.damage_variance = -0.5


def test_unknown_field_rejected():
    with pytest.raises(ValidationError):
        CombatConfig(critical_chance=0.2)


def test_escape_chance_progression():
    config = CombatConfig(escape_base_rate=0.3, escape_rate_increment=0.25)
    assert config.escape_chance(1) == pytest.approx(0.3)
    assert config.escape_chance(2) == pytest.approx(0.55)
    assert config.escape_chance(3) == pytest.approx(0.8)
    assert config.escape_chance(4) == 1.0
    assert config.escape_chance(10) == 1.0

    with pytest.raises(ValueError):
        config.escape_chance(0)


def test_formula_must_be_callable():
    with pytest.raises(ValidationError):
        CombatConfig(hit_rate_formula=3)

    config = CombatConfig(hit_rate_formula=lambda a, t, s: 0.5)
    assert config.hit_rate_formula(None, None, None) == 0.5


def test_from_file(tmp_path):
    path = tmp_path / "combat.json"
    path.write_text(json.dumps({"critical_multiplier": 1.5, "escape_base_rate": 0.4}))

    config = CombatConfig.from_file(path)
    assert config.critical_multiplier == 1.5
    assert config.escape_base_rate == 0.4


def test_from_file_errors(tmp_path):
    bad_value = tmp_path / "bad.json"
    bad_value.write_text(json.dumps({"critical_multiplier": 0.5}))
    with pytest.raises(DataValidationError) as exc_info:
        CombatConfig.from_file(bad_value)
    assert exc_info.value.source == str(bad_value)
    assert isinstance(exc_info.value, ValueError)

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(DataValidationError):
        CombatConfig.from_file(broken)


def test_error_hierarchy():
    assert issubclass(InvalidInvocationError, RuntimeError)
    assert issubclass(DataValidationError, ValueError)
