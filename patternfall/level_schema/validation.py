"""
Level Validation - Semantic checks for level descriptors.

The kernel tolerates every problem reported here (unknown identifiers
become inert, out-of-range cells are ignored). Validation exists so level
authors find those problems before players do.

Errors (level will not behave as authored):
1. Empty pattern_break patterns / sequence_violates sequences
2. Teleport targets outside the grid
3. idle_seconds rules that never wait

Warnings (level still plays, possibly not as intended):
- Unknown mechanic, condition, effect or hint trigger names
- Unregistered custom rules
- Cells outside the grid, duplicate cell ids
- Start/exit out of range or on the same cell
- Sounds missing from music_patterns
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from .descriptor import LevelDescriptor
from .rule_dsl import (
    AllOf,
    AnyOf,
    Condition,
    CustomRule,
    IdleSeconds,
    PatternBreak,
    PlaySound,
    SequenceViolates,
    Teleport,
    UnsupportedCondition,
    UnsupportedEffect,
    parse_condition,
    parse_effect,
)
from ..engine_core.mechanics import MechanicType
from ..engine_core.player import BorderPolicy

if TYPE_CHECKING:
    from ..engine_core.conditions import CustomRuleRegistry


class LevelValidationError(Exception):
    """Raised by require_valid() when validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Level validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_level(
    descriptor: LevelDescriptor,
    custom_rules: CustomRuleRegistry | None = None,
) -> ValidationResult:
    """
    Validate a level descriptor.

    Returns ValidationResult with errors and warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []
    size = descriptor.grid_size

    def in_grid(col: int, row: int) -> bool:
        return 0 <= col < size and 0 <= row < size

    # Start / exit
    for label, position in (("start", descriptor.start), ("exit", descriptor.exit)):
        if position is not None and not in_grid(*position):
            warnings.append(f"{label} {list(position)} is outside the {size}x{size} grid; default corner used")
    start = descriptor.start or (0, 0)
    exit_ = descriptor.exit or (size - 1, size - 1)
    if tuple(start) == tuple(exit_):
        warnings.append("start and exit are the same cell")

    if descriptor.border_behavior is not None:
        try:
            BorderPolicy(descriptor.border_behavior)
        except ValueError:
            warnings.append(f"Unknown border_behavior '{descriptor.border_behavior}', treated as 'block'")

    # Cells
    seen_ids: set[Any] = set()
    for entry in descriptor.cells:
        if not in_grid(*entry.position):
            warnings.append(f"Cell '{entry.id}' at {list(entry.position)} is outside the grid and will be ignored")
            continue
        if entry.id is not None:
            if entry.id in seen_ids:
                warnings.append(f"Duplicate cell id '{entry.id}'")
            seen_ids.add(entry.id)
        if MechanicType.from_name(entry.mechanic) == MechanicType.UNSUPPORTED:
            warnings.append(f"Cell '{entry.id}' has unknown mechanic '{entry.mechanic}'")

    # Rules
    for index, raw in enumerate(descriptor.rules):
        prefix = f"Rule {index}"
        condition = parse_condition(raw.get("condition"))
        _validate_condition(condition, prefix, errors, warnings, custom_rules)

        effect = parse_effect(raw.get("effect"))
        if isinstance(effect, UnsupportedEffect):
            warnings.append(f"{prefix}: unknown effect type '{effect.type_name}'")
        elif isinstance(effect, Teleport) and not in_grid(effect.target_col, effect.target_row):
            errors.append(
                f"{prefix}: teleport target [{effect.target_col}, {effect.target_row}] is outside the grid"
            )
        elif isinstance(effect, PlaySound) and effect.sound_id not in descriptor.music_patterns:
            warnings.append(f"{prefix}: sound '{effect.sound_id}' not found in music_patterns")

    # Hints
    for hint in descriptor.hints:
        if hint.trigger != "death_count":
            warnings.append(f"Hint trigger '{hint.trigger}' is not supported")

    # Start events
    for event in descriptor.on_start:
        if event.type not in {"show_hint", "show_sequence", "play_sound"}:
            warnings.append(f"on_start event type '{event.type}' is not supported")

    if not descriptor.rules and descriptor.border_behavior != "exit":
        warnings.append("No rules defined - level cannot be won")

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def require_valid(
    descriptor: LevelDescriptor,
    custom_rules: CustomRuleRegistry | None = None,
) -> ValidationResult:
    """validate_level(), raising LevelValidationError if there are errors."""
    result = validate_level(descriptor, custom_rules)
    if not result.valid:
        raise LevelValidationError(result.errors)
    return result


def _validate_condition(
    condition: Condition,
    prefix: str,
    errors: list[str],
    warnings: list[str],
    custom_rules: CustomRuleRegistry | None,
):
    """Validate a condition tree, recursing into AND/OR."""
    if isinstance(condition, UnsupportedCondition):
        warnings.append(f"{prefix}: unknown condition type '{condition.type_name}'")
    elif isinstance(condition, PatternBreak) and not condition.pattern:
        errors.append(f"{prefix}: pattern_break has an empty pattern")
    elif isinstance(condition, SequenceViolates) and not condition.sequence:
        errors.append(f"{prefix}: sequence_violates has an empty sequence")
    elif isinstance(condition, IdleSeconds) and condition.seconds <= 0:
        errors.append(f"{prefix}: idle_seconds must be positive")
    elif isinstance(condition, CustomRule):
        if custom_rules is None or condition.name not in custom_rules:
            warnings.append(f"{prefix}: custom_rule '{condition.name}' is not registered")
    elif isinstance(condition, (AllOf, AnyOf)):
        for child in condition.conditions:
            _validate_condition(child, prefix, errors, warnings, custom_rules)
