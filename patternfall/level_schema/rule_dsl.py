"""
Rule DSL - Condition/Effect variants for level rules.

Levels describe their logic as an ordered list of rules:

    {"condition": {"type": "reach_exit"}, "effect": {"type": "win"}}

Rules are:
- Declarative: parsed once at level load into immutable variants
- Ordered: the interpreter stops at the first matching rule
- Closed: every condition/effect `type` tag maps to exactly one variant

Unknown tags are not errors. They parse to UnsupportedCondition /
UnsupportedEffect, which evaluate to false / do nothing.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union
import logging

logger = logging.getLogger(__name__)


class ConditionType(Enum):
    """Condition tags recognized in level descriptors."""
    TOUCH_CELL = "touch_cell"
    TOUCH_CELL_COLOR = "touch_cell_color"
    REACH_EXIT = "reach_exit"
    TWO_CONSECUTIVE_SAME = "two_consecutive_same"
    TWO_CONSECUTIVE_SAME_SOLID = "two_consecutive_same_solid"
    PATTERN_BREAK = "pattern_break"
    SEQUENCE_VIOLATES = "sequence_violates"
    IDLE_SECONDS = "idle_seconds"
    MUSIC_PLAYING = "music_playing"
    TOTAL_STEPS_EQUALS = "total_steps_equals"
    AND = "AND"
    OR = "OR"
    CUSTOM_RULE = "custom_rule"


class EffectType(Enum):
    """Effect tags recognized in level descriptors."""
    KILL = "kill"
    WIN = "win"
    TELEPORT = "teleport"
    SHOW_HINT = "show_hint"
    PLAY_SOUND = "play_sound"
    STOP_SOUND = "stop_sound"


# ============================================================================
# Conditions
# ============================================================================

@dataclass(frozen=True)
class TouchCell:
    cell_id: Any


@dataclass(frozen=True)
class TouchCellColor:
    color: str


@dataclass(frozen=True)
class ReachExit:
    pass


@dataclass(frozen=True)
class TwoConsecutiveSame:
    color: str


@dataclass(frozen=True)
class TwoConsecutiveSameSolid:
    color: str


@dataclass(frozen=True)
class PatternBreak:
    """Cyclic reference pattern, e.g. B B Y B B Y..."""
    pattern: tuple[str, ...]


@dataclass(frozen=True)
class SequenceViolates:
    """Exact sequence the first len(sequence) landings must follow."""
    sequence: tuple[str, ...]


@dataclass(frozen=True)
class IdleSeconds:
    seconds: float


@dataclass(frozen=True)
class MusicPlaying:
    pass


@dataclass(frozen=True)
class TotalStepsEquals:
    steps: int


@dataclass(frozen=True)
class AllOf:
    """AND combinator."""
    conditions: tuple[Condition, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AnyOf:
    """OR combinator."""
    conditions: tuple[Condition, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CustomRule:
    name: str


@dataclass(frozen=True)
class UnsupportedCondition:
    type_name: str


Condition = Union[
    TouchCell,
    TouchCellColor,
    ReachExit,
    TwoConsecutiveSame,
    TwoConsecutiveSameSolid,
    PatternBreak,
    SequenceViolates,
    IdleSeconds,
    MusicPlaying,
    TotalStepsEquals,
    AllOf,
    AnyOf,
    CustomRule,
    UnsupportedCondition,
]


# ============================================================================
# Effects
# ============================================================================

@dataclass(frozen=True)
class Kill:
    pass


@dataclass(frozen=True)
class Win:
    pass


@dataclass(frozen=True)
class Teleport:
    target_col: int
    target_row: int


@dataclass(frozen=True)
class ShowHint:
    hint_text: str
    duration_ms: int = 3000


@dataclass(frozen=True)
class PlaySound:
    sound_id: str | None


@dataclass(frozen=True)
class StopSound:
    pass


@dataclass(frozen=True)
class UnsupportedEffect:
    type_name: str


Effect = Union[Kill, Win, Teleport, ShowHint, PlaySound, StopSound, UnsupportedEffect]


@dataclass(frozen=True)
class Rule:
    """An ordered (condition, effect) pair from a level descriptor."""
    condition: Condition
    effect: Effect


@dataclass(frozen=True)
class DeathHint:
    """Hint shown once the level's death counter reaches a threshold."""
    threshold: int
    text: str
    duration_ms: int = 4000


@dataclass(frozen=True)
class StartEvent:
    """
    Presentation event scheduled when a level starts.

    kind is "show_hint", "show_sequence" or "play_sound"; params keeps the
    remaining descriptor keys (hint_text, colors, label, sound_id, duration).
    """
    kind: str
    delay_ms: int = 0
    params: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Parsing
# ============================================================================

def _colors(raw: Any) -> tuple[str, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    return tuple(str(c) for c in raw)


def _number(raw: Any, default: float = 0) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return default
    return raw


def parse_condition(raw: Any) -> Condition:
    """
    Parse a condition tree from descriptor JSON.

    Never raises: malformed nodes and unknown tags become UnsupportedCondition.
    """
    if not isinstance(raw, dict):
        return UnsupportedCondition(type_name=repr(raw))

    type_name = raw.get("type")
    try:
        ctype = ConditionType(type_name)
    except ValueError:
        logger.warning("Unsupported condition type %r", type_name)
        return UnsupportedCondition(type_name=str(type_name))

    if ctype == ConditionType.TOUCH_CELL:
        return TouchCell(cell_id=raw.get("cell_id"))
    elif ctype == ConditionType.TOUCH_CELL_COLOR:
        return TouchCellColor(color=str(raw.get("color") or ""))
    elif ctype == ConditionType.REACH_EXIT:
        return ReachExit()
    elif ctype == ConditionType.TWO_CONSECUTIVE_SAME:
        return TwoConsecutiveSame(color=str(raw.get("color") or ""))
    elif ctype == ConditionType.TWO_CONSECUTIVE_SAME_SOLID:
        return TwoConsecutiveSameSolid(color=str(raw.get("color") or ""))
    elif ctype == ConditionType.PATTERN_BREAK:
        return PatternBreak(pattern=_colors(raw.get("pattern")))
    elif ctype == ConditionType.SEQUENCE_VIOLATES:
        return SequenceViolates(sequence=_colors(raw.get("sequence")))
    elif ctype == ConditionType.IDLE_SECONDS:
        return IdleSeconds(seconds=_number(raw.get("seconds")))
    elif ctype == ConditionType.MUSIC_PLAYING:
        return MusicPlaying()
    elif ctype == ConditionType.TOTAL_STEPS_EQUALS:
        return TotalStepsEquals(steps=int(_number(raw.get("steps"), default=-1)))
    elif ctype == ConditionType.AND:
        return AllOf(conditions=tuple(parse_condition(c) for c in raw.get("conditions") or []))
    elif ctype == ConditionType.OR:
        return AnyOf(conditions=tuple(parse_condition(c) for c in raw.get("conditions") or []))
    elif ctype == ConditionType.CUSTOM_RULE:
        return CustomRule(name=str(raw.get("name") or ""))

    return UnsupportedCondition(type_name=str(type_name))


def parse_effect(raw: Any) -> Effect:
    """Parse an effect record. Unknown tags become UnsupportedEffect."""
    if not isinstance(raw, dict):
        return UnsupportedEffect(type_name=repr(raw))

    type_name = raw.get("type")
    try:
        etype = EffectType(type_name)
    except ValueError:
        logger.warning("Unsupported effect type %r", type_name)
        return UnsupportedEffect(type_name=str(type_name))

    if etype == EffectType.KILL:
        return Kill()
    elif etype == EffectType.WIN:
        return Win()
    elif etype == EffectType.TELEPORT:
        return Teleport(
            target_col=int(_number(raw.get("target_col"))),
            target_row=int(_number(raw.get("target_row"))),
        )
    elif etype == EffectType.SHOW_HINT:
        return ShowHint(
            hint_text=str(raw.get("hint_text") or ""),
            duration_ms=int(_number(raw.get("duration")) or 3000),
        )
    elif etype == EffectType.PLAY_SOUND:
        sound_id = raw.get("sound_id")
        return PlaySound(sound_id=None if sound_id is None else str(sound_id))
    elif etype == EffectType.STOP_SOUND:
        return StopSound()

    return UnsupportedEffect(type_name=str(type_name))


def parse_rules(raw_rules: list[Any] | None) -> list[Rule]:
    """Parse the descriptor's rule list, preserving order."""
    rules = []
    for raw in raw_rules or []:
        if not isinstance(raw, dict):
            logger.warning("Skipping malformed rule %r", raw)
            continue
        rules.append(Rule(
            condition=parse_condition(raw.get("condition")),
            effect=parse_effect(raw.get("effect")),
        ))
    return rules


def parse_hints(raw_hints: list[Any] | None) -> list[DeathHint]:
    """Keep death_count hints; other triggers are ignored."""
    hints = []
    for raw in raw_hints or []:
        trigger = getattr(raw, "trigger", None)
        if trigger != "death_count":
            logger.debug("Ignoring hint with trigger %r", trigger)
            continue
        hints.append(DeathHint(
            threshold=raw.threshold,
            text=raw.text,
            duration_ms=raw.duration or 4000,
        ))
    return hints


def parse_start_events(raw_events: list[Any] | None) -> list[StartEvent]:
    """Convert on_start entries into scheduled start events."""
    events = []
    for raw in raw_events or []:
        params = dict(raw.model_extra or {})
        events.append(StartEvent(kind=raw.type, delay_ms=raw.delay or 0, params=params))
    return events
