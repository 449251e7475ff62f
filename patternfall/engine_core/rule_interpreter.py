"""
Rule Interpreter - Ordered condition -> effect evaluation.

The interpreter owns everything the level's rules remember:
- Two bounded color sequences (all non-joker landings, and the subset on
  non-blinking cells)
- Step, death and idle-tick counters
- The looping-sound flag

Entry points, each returning the events it emitted:
- on_land()        every completed traversal; first matching rule wins
- on_tick()        every active tick; idle_seconds rules only
- on_border_hit()  kill/exit border policies, bypasses the rule list
- check_hints()    death-count hints, independent of the rule list

The death counter survives load() so retries of the same level keep it;
reset_deaths() clears it when the player moves on to another level.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, TYPE_CHECKING
import logging

from .colors import color_key
from .conditions import ConditionContext, ConditionEvaluator, CustomRuleRegistry
from .config import DEFAULT_CONFIG, SimulationConfig
from .events import (
    Event,
    HintShown,
    Killed,
    SoundStarted,
    SoundStopped,
    Teleported,
    Won,
)
from .player import BorderPolicy
from ..level_schema.rule_dsl import (
    DeathHint,
    Effect,
    IdleSeconds,
    Kill,
    PlaySound,
    Rule,
    ShowHint,
    StopSound,
    Teleport,
    UnsupportedEffect,
    Win,
)

if TYPE_CHECKING:
    from .grid import GridView

logger = logging.getLogger(__name__)


def _bounded(capacity: int) -> deque:
    return deque(maxlen=capacity)


@dataclass
class RuleState:
    """Accumulated interpreter memory for the current level."""
    color_sequence: deque = field(default_factory=lambda: _bounded(DEFAULT_CONFIG.sequence_capacity))
    solid_color_sequence: deque = field(default_factory=lambda: _bounded(DEFAULT_CONFIG.sequence_capacity))
    step_count: int = 0
    death_count: int = 0
    idle_ticks: int = 0
    music_playing: bool = False

    @classmethod
    def fresh(cls, capacity: int, death_count: int = 0) -> RuleState:
        return cls(
            color_sequence=_bounded(capacity),
            solid_color_sequence=_bounded(capacity),
            death_count=death_count,
        )


class RuleInterpreter:
    """
    Evaluates a level's rules against simulation events.

    Usage:
        interpreter = RuleInterpreter()
        interpreter.load(level.rules, grid.view())

        for event in player.update(intent, grid.size, policy):
            if isinstance(event, Landed):
                emitted = interpreter.on_land(event.col, event.row)
    """

    def __init__(
        self,
        custom_rules: CustomRuleRegistry | None = None,
        config: SimulationConfig = DEFAULT_CONFIG,
        music_patterns: dict[str, Any] | None = None,
    ):
        self.config = config
        self.evaluator = ConditionEvaluator(custom_rules)
        self.rules: list[Rule] = []
        self.grid: GridView | None = None
        self.music_patterns: dict[str, Any] = music_patterns or {}
        self.state = RuleState.fresh(config.sequence_capacity)
        self._effects: dict[type, Callable[[Any], list[Event]]] = {
            Kill: self._kill,
            Win: self._win,
            Teleport: self._teleport,
            ShowHint: self._show_hint,
            PlaySound: self._play_sound,
            StopSound: self._stop_sound,
            UnsupportedEffect: self._unsupported,
        }

    # ------------------------------------------------------------------
    # Level lifecycle
    # ------------------------------------------------------------------

    def load(
        self,
        rules: list[Rule] | None,
        grid: GridView,
        music_patterns: dict[str, Any] | None = None,
    ):
        """Install a level's rules. Resets all state except the death counter."""
        self.rules = list(rules or [])
        self.grid = grid
        self.music_patterns = music_patterns or {}
        self.state = RuleState.fresh(
            self.config.sequence_capacity,
            death_count=self.state.death_count,
        )

    def reset_deaths(self):
        self.state.death_count = 0

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def on_land(self, col: int, row: int) -> list[Event]:
        """Record the landing, then fire the first matching rule."""
        cell = self.grid.cell_at(col, row) if self.grid else None
        color = cell.current_color if cell else None

        if color and not cell.is_joker:
            key = color_key(color)
            self.state.color_sequence.append(key)
            if not cell.is_blinking:
                self.state.solid_color_sequence.append(key)
        self.state.step_count += 1

        context = ConditionContext(
            state=self.state,
            cell=cell,
            col=col,
            row=row,
            tick_rate=self.config.tick_rate,
        )
        for rule in self.rules:
            if self.evaluator.evaluate(rule.condition, context):
                return self.execute(rule.effect)
        return []

    def on_tick(self, player_moving: bool) -> list[Event]:
        """Accumulate idle time and fire the first due idle_seconds rule."""
        if player_moving:
            self.state.idle_ticks = 0
        else:
            self.state.idle_ticks += 1

        context = ConditionContext(
            state=self.state,
            on_tick=True,
            tick_rate=self.config.tick_rate,
        )
        for rule in self.rules:
            if not isinstance(rule.condition, IdleSeconds):
                continue
            if self.evaluator.evaluate(rule.condition, context):
                # Reset so the rule does not fire again on the next tick
                self.state.idle_ticks = 0
                return self.execute(rule.effect)
        return []

    def on_border_hit(self, direction: str, policy: BorderPolicy) -> list[Event]:
        """kill border -> kill effect, exit border -> win effect."""
        if policy == BorderPolicy.KILL:
            return self.execute(Kill())
        elif policy == BorderPolicy.EXIT:
            return self.execute(Win())
        return []

    def check_hints(self, hints: list[DeathHint] | None) -> list[Event]:
        """Emit every death-count hint whose threshold has been reached."""
        return [
            HintShown(text=hint.text, duration_ms=hint.duration_ms)
            for hint in hints or []
            if self.state.death_count >= hint.threshold
        ]

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def execute(self, effect: Effect | None) -> list[Event]:
        if effect is None:
            return []
        handler = self._effects.get(type(effect))
        if handler is None:
            return []
        return handler(effect)

    def _kill(self, effect: Kill) -> list[Event]:
        self.state.death_count += 1
        return [Killed()]

    def _win(self, effect: Win) -> list[Event]:
        return [Won()]

    def _teleport(self, effect: Teleport) -> list[Event]:
        if self.grid is not None and not self.grid.in_bounds(effect.target_col, effect.target_row):
            logger.warning(
                "Ignoring teleport to (%d, %d) outside the %dx%d grid",
                effect.target_col, effect.target_row, self.grid.size, self.grid.size,
            )
            return []
        return [Teleported(col=effect.target_col, row=effect.target_row)]

    def _show_hint(self, effect: ShowHint) -> list[Event]:
        return [HintShown(text=effect.hint_text, duration_ms=effect.duration_ms)]

    def _play_sound(self, effect: PlaySound) -> list[Event]:
        self.state.music_playing = True
        return [SoundStarted(
            sound_id=effect.sound_id,
            pattern=self.music_patterns.get(effect.sound_id) if effect.sound_id else None,
        )]

    def _stop_sound(self, effect: StopSound) -> list[Event]:
        self.state.music_playing = False
        return [SoundStopped()]

    def _unsupported(self, effect: UnsupportedEffect) -> list[Event]:
        logger.warning("Ignoring unsupported effect %r", effect.type_name)
        return []
