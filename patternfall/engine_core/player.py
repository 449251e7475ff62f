"""
Player - Movement state machine.

States:
    IDLE    -> waiting for an intent
    MOVING  -> traversing from one cell to the next (fixed number of ticks)
    DEAD    -> terminal until reset()

The discrete position (col, row) is authoritative and changes atomically
when a traversal completes. The visual position is interpolated with an
ease-in-out curve for the renderer only.

update() returns the events produced this tick instead of invoking callbacks:
- Landed(col, row) when a traversal completes
- BorderHit(direction) when an out-of-bounds move hits a kill/exit border
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import math

from .colors import ease_in_out, lerp
from .config import DEFAULT_CONFIG
from .events import BorderHit, Event, Landed


LEV_AMP = 8  # Levitation amplitude (px)
LEV_FREQ = 0.038  # Levitation phase advance per tick


class Direction(str, Enum):
    """Directional intents."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def offset(self) -> tuple[int, int]:
        """(d_col, d_row)"""
        return {
            Direction.UP: (0, -1),
            Direction.DOWN: (0, 1),
            Direction.LEFT: (-1, 0),
            Direction.RIGHT: (1, 0),
        }[self]


class BorderPolicy(str, Enum):
    """What happens when a move would leave the grid."""
    BLOCK = "block"
    KILL = "kill"
    WRAP = "wrap"
    EXIT = "exit"

    @classmethod
    def from_name(cls, name: str | None) -> BorderPolicy:
        """Descriptor value -> policy. Absent means kill, unknown means block."""
        if name is None:
            return cls.KILL
        try:
            return cls(name)
        except ValueError:
            return cls.BLOCK


class MovementPhase(Enum):
    IDLE = "idle"
    MOVING = "moving"
    DEAD = "dead"


@dataclass
class Player:
    """The player token."""
    col: int = 0
    row: int = 0
    visual_col: float = 0.0
    visual_row: float = 0.0
    phase: MovementPhase = MovementPhase.IDLE

    # In-flight move
    from_col: int = 0
    from_row: int = 0
    to_col: int = 0
    to_row: int = 0
    move_ticks: int = DEFAULT_CONFIG.move_ticks
    _elapsed: int = field(default=0, repr=False)

    # Levitation bob
    lev_time: float = 0.0
    lev_offset: float = 0.0

    @property
    def progress(self) -> float:
        """Fraction of the current traversal completed, 0..1."""
        return min(1.0, self._elapsed / self.move_ticks)

    @property
    def is_moving(self) -> bool:
        return self.phase == MovementPhase.MOVING

    @property
    def is_dead(self) -> bool:
        return self.phase == MovementPhase.DEAD

    @property
    def is_idle(self) -> bool:
        return self.phase == MovementPhase.IDLE

    def reset(self, col: int, row: int):
        """Place the player, idle, at (col, row). Used on load, retry and teleport."""
        self.col = self.from_col = self.to_col = col
        self.row = self.from_row = self.to_row = row
        self.visual_col = float(col)
        self.visual_row = float(row)
        self.phase = MovementPhase.IDLE
        self._elapsed = 0

    def teleport(self, col: int, row: int):
        """Snap to (col, row), dropping any in-flight move."""
        self.reset(col, row)

    def die(self):
        """Enter the terminal DEAD phase. The visual position freezes."""
        self.phase = MovementPhase.DEAD

    def update(
        self,
        intent: Direction | None,
        grid_size: int,
        border_policy: BorderPolicy = BorderPolicy.KILL,
    ) -> list[Event]:
        """
        Advance one tick.

        Args:
            intent: Direction to move, only consumed while IDLE
            grid_size: Side length of the square grid
            border_policy: Resolution for out-of-bounds moves

        Returns:
            Events produced this tick (Landed, BorderHit)
        """
        if self.is_dead:
            return []

        self.lev_time += LEV_FREQ
        self.lev_offset = LEV_AMP + math.sin(self.lev_time) * LEV_AMP * 0.55

        if self.is_moving:
            return self._advance_move()
        if intent is not None:
            return self._try_move(Direction(intent), grid_size, border_policy)
        return []

    def _try_move(
        self,
        direction: Direction,
        grid_size: int,
        border_policy: BorderPolicy,
    ) -> list[Event]:
        dc, dr = direction.offset
        nc = self.col + dc
        nr = self.row + dr

        if 0 <= nc < grid_size and 0 <= nr < grid_size:
            self._start_move(nc, nr)
            return []

        if border_policy in (BorderPolicy.KILL, BorderPolicy.EXIT):
            return [BorderHit(direction=direction.value)]

        if border_policy == BorderPolicy.WRAP:
            self._start_move(nc % grid_size, nr % grid_size)

        # BLOCK: intent discarded
        return []

    def _start_move(self, to_col: int, to_row: int):
        self.from_col = self.col
        self.from_row = self.row
        self.to_col = to_col
        self.to_row = to_row
        self._elapsed = 0
        self.phase = MovementPhase.MOVING

    def _advance_move(self) -> list[Event]:
        self._elapsed += 1
        if self._elapsed >= self.move_ticks:
            self.phase = MovementPhase.IDLE
            self.col = self.to_col
            self.row = self.to_row
            self.visual_col = float(self.to_col)
            self.visual_row = float(self.to_row)
            return [Landed(col=self.col, row=self.row)]

        t = ease_in_out(self.progress)
        self.visual_col = lerp(self.from_col, self.to_col, t)
        self.visual_row = lerp(self.from_row, self.to_row, t)
        return []
