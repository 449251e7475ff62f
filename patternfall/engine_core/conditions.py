"""
Condition Evaluator for the rule DSL.

Evaluates condition trees against the interpreter's accumulated state and
the event being processed. There is one evaluator function per condition
variant; dispatch is by variant type, never by reflection on tag names.

Supports:
- Cell predicates: touch_cell, touch_cell_color, reach_exit
- Sequence predicates: two_consecutive_same(_solid), pattern_break,
  sequence_violates
- State predicates: music_playing, total_steps_equals, idle_seconds
- Combinators: AND, OR
- custom_rule: named predicates registered in a CustomRuleRegistry
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING
import logging

from .colors import color_key
from ..level_schema.rule_dsl import (
    AllOf,
    AnyOf,
    Condition,
    CustomRule,
    IdleSeconds,
    MusicPlaying,
    PatternBreak,
    ReachExit,
    SequenceViolates,
    TotalStepsEquals,
    TouchCell,
    TouchCellColor,
    TwoConsecutiveSame,
    TwoConsecutiveSameSolid,
    UnsupportedCondition,
)

if TYPE_CHECKING:
    from .grid import Cell
    from .rule_interpreter import RuleState

logger = logging.getLogger(__name__)


@dataclass
class ConditionContext:
    """
    Context for evaluating a condition.

    Provides access to:
    - The accumulated rule state (sequences, counters, flags)
    - The landed cell and its coordinates (None on tick evaluation)
    - Whether this is a tick-driven evaluation
    """
    state: RuleState
    cell: Cell | None = None
    col: int | None = None
    row: int | None = None
    on_tick: bool = False
    tick_rate: int = 60


CustomPredicate = Callable[[ConditionContext], bool]


class CustomRuleRegistry:
    """
    Named predicates for conditions that are not expressible declaratively.

    Levels reference them with {"type": "custom_rule", "name": "..."}.

    Usage:
        registry = CustomRuleRegistry()

        @registry.register("three_steps_on_red")
        def three_steps_on_red(ctx):
            return list(ctx.state.color_sequence)[-3:] == ["red"] * 3
    """

    def __init__(self):
        self._rules: dict[str, CustomPredicate] = {}

    def register(self, name: str, predicate: CustomPredicate | None = None):
        """Register a predicate, directly or as a decorator."""
        if predicate is not None:
            self._rules[name] = predicate
            return predicate

        def decorator(fn: CustomPredicate) -> CustomPredicate:
            self._rules[name] = fn
            return fn
        return decorator

    def get(self, name: str) -> CustomPredicate | None:
        return self._rules.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._rules


def _last_two_equal(sequence, color: str) -> bool:
    if len(sequence) < 2:
        return False
    key = color_key(color)
    return sequence[-2] == key and sequence[-1] == key


class ConditionEvaluator:
    """Evaluates condition variants. Unknown variants are false."""

    def __init__(self, custom_rules: CustomRuleRegistry | None = None):
        self.custom_rules = custom_rules or CustomRuleRegistry()
        self._handlers: dict[type, Callable[[Condition, ConditionContext], bool]] = {
            TouchCell: self._touch_cell,
            TouchCellColor: self._touch_cell_color,
            ReachExit: self._reach_exit,
            TwoConsecutiveSame: self._two_consecutive_same,
            TwoConsecutiveSameSolid: self._two_consecutive_same_solid,
            PatternBreak: self._pattern_break,
            SequenceViolates: self._sequence_violates,
            IdleSeconds: self._idle_seconds,
            MusicPlaying: self._music_playing,
            TotalStepsEquals: self._total_steps_equals,
            AllOf: self._all_of,
            AnyOf: self._any_of,
            CustomRule: self._custom_rule,
            UnsupportedCondition: self._unsupported,
        }

    def evaluate(self, condition: Condition | None, context: ConditionContext) -> bool:
        if condition is None:
            return False
        handler = self._handlers.get(type(condition))
        if handler is None:
            return False
        return handler(condition, context)

    def _touch_cell(self, cond: TouchCell, ctx: ConditionContext) -> bool:
        return ctx.cell is not None and ctx.cell.id is not None and ctx.cell.id == cond.cell_id

    def _touch_cell_color(self, cond: TouchCellColor, ctx: ConditionContext) -> bool:
        current = ctx.cell.current_color if ctx.cell else None
        return color_key(current) == color_key(cond.color)

    def _reach_exit(self, cond: ReachExit, ctx: ConditionContext) -> bool:
        return ctx.cell is not None and ctx.cell.is_exit

    def _two_consecutive_same(self, cond: TwoConsecutiveSame, ctx: ConditionContext) -> bool:
        return _last_two_equal(ctx.state.color_sequence, cond.color)

    def _two_consecutive_same_solid(self, cond: TwoConsecutiveSameSolid, ctx: ConditionContext) -> bool:
        return _last_two_equal(ctx.state.solid_color_sequence, cond.color)

    def _pattern_break(self, cond: PatternBreak, ctx: ConditionContext) -> bool:
        seq = ctx.state.color_sequence
        if not seq or not cond.pattern:
            return False
        # Position in the cycle follows the recorded length, which is capped
        # at the sequence capacity.
        expected = color_key(cond.pattern[(len(seq) - 1) % len(cond.pattern)])
        return seq[-1] != expected

    def _sequence_violates(self, cond: SequenceViolates, ctx: ConditionContext) -> bool:
        seq = ctx.state.color_sequence
        if not seq:
            return False
        idx = len(seq) - 1
        if idx >= len(cond.sequence):
            # Past the reference sequence: no longer constrained
            return False
        return seq[idx] != color_key(cond.sequence[idx])

    def _idle_seconds(self, cond: IdleSeconds, ctx: ConditionContext) -> bool:
        if not ctx.on_tick:
            return False
        return ctx.state.idle_ticks >= cond.seconds * ctx.tick_rate

    def _music_playing(self, cond: MusicPlaying, ctx: ConditionContext) -> bool:
        return ctx.state.music_playing

    def _total_steps_equals(self, cond: TotalStepsEquals, ctx: ConditionContext) -> bool:
        return ctx.state.step_count == cond.steps

    def _all_of(self, cond: AllOf, ctx: ConditionContext) -> bool:
        return all([self.evaluate(c, ctx) for c in cond.conditions])

    def _any_of(self, cond: AnyOf, ctx: ConditionContext) -> bool:
        return any([self.evaluate(c, ctx) for c in cond.conditions])

    def _custom_rule(self, cond: CustomRule, ctx: ConditionContext) -> bool:
        predicate = self.custom_rules.get(cond.name)
        if predicate is None:
            logger.warning("custom_rule %r not implemented", cond.name)
            return False
        try:
            return bool(predicate(ctx))
        except Exception:
            logger.exception("custom_rule %r raised, treated as false", cond.name)
            return False

    def _unsupported(self, cond: UnsupportedCondition, ctx: ConditionContext) -> bool:
        return False
