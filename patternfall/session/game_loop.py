"""
Game Loop - The frame-driven simulation loop.

Each tick:
1. Poll one intent (only while the player is idle)
2. Advance the player (may land or hit a border)
3. Route landings/border hits to the rule interpreter, then check hints
4. Apply rule effects (kill, win, teleport)
5. Advance the idle clock (skipped if the tick deactivated the session)
6. Advance the mechanics clock and update every cell's visuals
7. Emit start events whose delay has elapsed

Level transitions:
- start(index)     first load of a session
- retry()          reload the current level, death counter kept
- advance()        next level (wraps to the first after the last)
- jump_to(index)   any level

Loading happens with the session inactive. If the level cannot be loaded
the previous level stays in place and the session stays inactive.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from ..engine_core.events import (
    BorderHit,
    Event,
    EventListener,
    HintShown,
    Killed,
    Landed,
    LevelStarted,
    SequenceShown,
    SoundStarted,
    Teleported,
    Won,
)
from ..engine_core.player import Direction
from ..level_schema.rule_dsl import StartEvent
from .manager import SessionState

if TYPE_CHECKING:
    from .manager import Session

logger = logging.getLogger(__name__)

DEFAULT_START_EVENT_DURATION = 4000


@dataclass
class TickResult:
    """Outcome of one tick."""
    frame: int
    state: SessionState
    events: list[Event] = field(default_factory=list)


class GameLoop:
    """
    Drives one session tick by tick.

    Usage:
        loop = GameLoop(session, listeners=[hud, audio])
        loop.start()

        loop.push_intent("right")
        while True:
            result = loop.tick()
            if result.state == SessionState.DEAD:
                loop.retry()
            elif result.state == SessionState.WON:
                loop.advance()
    """

    def __init__(self, session: Session, listeners: list[EventListener] | None = None):
        self.session = session
        self.listeners: list[EventListener] = list(listeners or [])
        # Events produced outside tick() (level loads), delivered with the next tick
        self._outbox: list[Event] = []
        self._scheduled: list[tuple[int, StartEvent]] = []

    def add_listener(self, listener: EventListener):
        self.listeners.append(listener)

    # ------------------------------------------------------------------
    # Level transitions
    # ------------------------------------------------------------------

    def start(self, index: int = 0) -> bool:
        """Load the first level of the session."""
        return self.load_level(index)

    def load_level(self, index: int) -> bool:
        """
        Load the level at `index` of the session's level list.

        Args:
            index: Position in session.level_ids

        Returns:
            True if the level is loaded and the session is active
        """
        session = self.session
        if not 0 <= index < len(session.level_ids):
            raise ValueError(
                f"Level index {index} out of range (0..{len(session.level_ids) - 1})"
            )

        session.state = SessionState.LOADING
        session.intents.flush()
        self._scheduled.clear()

        level_id = session.level_ids[index]
        level = session.levels.load(level_id)
        if level is None:
            logger.error("Failed to load level %r", level_id)
            session.state = SessionState.LOAD_FAILED
            return False

        session.level = level
        session.level_index = index
        self._install_level()

        self._scheduled = self._schedule(level.start_events)

        logger.info("Loaded level %r (%s)", level.level_id, level.descriptor.title or "untitled")
        session.state = SessionState.ACTIVE
        return True

    def reload_current_level(self) -> bool:
        """
        Reload the current level from its source, keeping the death counter.

        Start events are not replayed; death-count hints are checked
        immediately so the player sees them on the retry.
        """
        session = self.session
        session.state = SessionState.LOADING
        session.intents.flush()
        self._scheduled.clear()

        level_id = session.level_ids[session.level_index]
        level = session.levels.load(level_id)
        if level is None:
            logger.error("Failed to reload level %r", level_id)
            session.state = SessionState.LOAD_FAILED
            return False

        session.level = level
        self._install_level()
        for event in session.rules.check_hints(level.hints):
            self._emit(event, self._outbox)

        session.state = SessionState.ACTIVE
        return True

    def retry(self) -> bool:
        return self.reload_current_level()

    def advance(self) -> bool:
        """Load the next level, or the first one after the last."""
        self.session.rules.reset_deaths()
        if self.session.is_last_level:
            return self.load_level(0)
        return self.load_level(self.session.level_index + 1)

    def jump_to(self, index: int) -> bool:
        """Load any level by position. Raises ValueError if out of range."""
        if not 0 <= index < len(self.session.level_ids):
            raise ValueError(
                f"Level index {index} out of range (0..{len(self.session.level_ids) - 1})"
            )
        self.session.rules.reset_deaths()
        return self.load_level(index)

    def _install_level(self):
        """Reset player, clocks and rules onto session.level."""
        session = self.session
        level = session.level
        start_col, start_row = level.start
        session.player.reset(start_col, start_row)
        session.mechanics.reset()
        session.rules.load(level.rules, level.grid.view(), level.descriptor.music_patterns)
        session.frame_count = 0
        self._emit(
            LevelStarted(
                level_id=level.level_id,
                title=level.descriptor.title or "",
                wall_hint=level.descriptor.wall_hint,
            ),
            self._outbox,
        )

    def _schedule(self, start_events: list[StartEvent]) -> list[tuple[int, StartEvent]]:
        return [
            (self.session.config.ms_to_ticks(event.delay_ms), event)
            for event in start_events
        ]

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def push_intent(self, direction: Direction | str) -> bool:
        """
        Queue a directional intent.

        Returns False if the queue is full. Raises ValueError for an
        unknown direction.
        """
        return self.session.intents.push(direction)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> TickResult:
        """Run exactly one simulation tick."""
        session = self.session
        events: list[Event] = list(self._outbox)
        self._outbox.clear()

        if not session.is_active() or session.level is None:
            return TickResult(frame=session.frame_count, state=session.state, events=events)

        level = session.level
        player = session.player
        session.frame_count += 1

        intent = session.intents.consume() if player.is_idle else None
        for event in player.update(intent, level.grid.size, level.border_policy):
            self._emit(event, events)
            if isinstance(event, Landed):
                self._apply(session.rules.on_land(event.col, event.row), events)
                self._apply(session.rules.check_hints(level.hints), events)
            elif isinstance(event, BorderHit):
                self._apply(session.rules.on_border_hit(event.direction, level.border_policy), events)

        if session.is_active():
            self._apply(session.rules.on_tick(player.is_moving), events)

        session.mechanics.update(level.grid)

        if session.is_active():
            self._emit_due_start_events(events)

        return TickResult(frame=session.frame_count, state=session.state, events=events)

    def run(self, ticks: int) -> list[TickResult]:
        """Run several ticks, stopping early if the session deactivates."""
        results = []
        for _ in range(ticks):
            result = self.tick()
            results.append(result)
            if result.state != SessionState.ACTIVE:
                break
        return results

    def _apply(self, rule_events: list[Event], events: list[Event]):
        """Emit rule events and apply the ones that change session state."""
        session = self.session
        for event in rule_events:
            if isinstance(event, Killed):
                if not session.is_active():
                    continue
                session.state = SessionState.DEAD
                session.player.die()
                session.intents.flush()
                logger.debug("Player died (deaths: %d)", session.death_count)
            elif isinstance(event, Won):
                if not session.is_active():
                    continue
                session.state = SessionState.WON
                session.intents.flush()
                logger.debug("Level %r won", session.level.level_id)
            elif isinstance(event, Teleported):
                session.player.teleport(event.col, event.row)
            self._emit(event, events)

    def _emit_due_start_events(self, events: list[Event]):
        frame = self.session.frame_count
        due = [start_event for when, start_event in self._scheduled if when <= frame]
        if not due:
            return
        self._scheduled = [(when, e) for when, e in self._scheduled if when > frame]
        for start_event in due:
            event = self._start_event(start_event)
            if event is not None:
                self._emit(event, events)

    def _start_event(self, start_event: StartEvent) -> Event | None:
        params = start_event.params
        duration = params.get("duration") or DEFAULT_START_EVENT_DURATION
        if start_event.kind == "show_hint":
            return HintShown(text=params.get("hint_text") or "", duration_ms=duration)
        elif start_event.kind == "show_sequence":
            return SequenceShown(
                colors=tuple(params.get("colors") or ()),
                duration_ms=duration,
                label=params.get("label") or "",
            )
        elif start_event.kind == "play_sound":
            sound_id = params.get("sound_id")
            patterns = self.session.level.descriptor.music_patterns or {}
            return SoundStarted(sound_id=sound_id, pattern=patterns.get(sound_id))
        logger.warning("Skipping unknown start event %r", start_event.kind)
        return None

    def _emit(self, event: Event, sink: list[Event]):
        sink.append(event)
        for listener in self.listeners:
            listener.handle(event)
