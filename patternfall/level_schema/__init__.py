"""Level schema - descriptor models, rule DSL and validation."""

from .descriptor import LevelDescriptor, CellEntry, HintEntry, StartEventEntry
from .rule_dsl import (
    Rule,
    Condition,
    Effect,
    ConditionType,
    EffectType,
    DeathHint,
    StartEvent,
    parse_condition,
    parse_effect,
    parse_rules,
)
from .validation import validate_level, ValidationResult, LevelValidationError

__all__ = [
    "LevelDescriptor",
    "CellEntry",
    "HintEntry",
    "StartEventEntry",
    "Rule",
    "Condition",
    "Effect",
    "ConditionType",
    "EffectType",
    "DeathHint",
    "StartEvent",
    "parse_condition",
    "parse_effect",
    "parse_rules",
    "validate_level",
    "ValidationResult",
    "LevelValidationError",
]
