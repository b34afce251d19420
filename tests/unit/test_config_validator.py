import pytest
from pydantic import ValidationError

from src.socklog.config import validate_config


# This function creates a valid raw dictionary for testing.
def _valid_raw(overrides=None):
    base = {
        "target": "  tcp://logs.internal:5140 ",
        "connection_timeout": 2.5,
        "timeout": 5,
        "level": "info",
    }
    if overrides:
        base.update(overrides)
    return base


def test_normalizes_target_and_level_and_applies_defaults():
    cfg = validate_config(_valid_raw())
    assert cfg.target == "tcp://logs.internal:5140"
    assert cfg.level == "INFO"
    assert cfg.connection_timeout == 2.5
    assert cfg.timeout == 5
    assert cfg.persistent is False  # default applied
    assert cfg.encoding == "utf-8"
    assert cfg.terminator == "\n"
    print("✅test_normalizes_target_and_level_and_applies_defaults passed")


def test_default_connection_timeout_is_sixty_seconds():
    cfg = validate_config({"target": "tcp://h:1"})
    assert cfg.connection_timeout == 60.0
    assert cfg.timeout == 0


def test_rejects_missing_or_blank_target():
    with pytest.raises(ValidationError):
        _ = validate_config({})
    with pytest.raises(ValidationError):
        _ = validate_config(_valid_raw({"target": "   "}))


def test_rejects_negative_timeouts():
    with pytest.raises(ValidationError):
        _ = validate_config(_valid_raw({"connection_timeout": -1}))
    with pytest.raises(ValidationError):
        _ = validate_config(_valid_raw({"timeout": -3}))


def test_rejects_fractional_io_timeout():
    with pytest.raises(ValidationError):
        _ = validate_config(_valid_raw({"timeout": 1.5}))


def test_rejects_unknown_level_and_encoding():
    with pytest.raises(ValidationError):
        _ = validate_config(_valid_raw({"level": "LOUD"}))
    with pytest.raises(ValidationError):
        _ = validate_config(_valid_raw({"encoding": "klingon-8"}))
    print("✅test_rejects_unknown_level_and_encoding passed")


def test_rejects_non_finite_connection_timeout():
    with pytest.raises(ValidationError):
        _ = validate_config(_valid_raw({"connection_timeout": float("nan")}))
    with pytest.raises(ValidationError):
        _ = validate_config(_valid_raw({"connection_timeout": float("inf")}))
