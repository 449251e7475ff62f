"""
Mechanics Engine - Tick-driven tile animation.

Every tick, each cell's visual attributes (color, rotation, elevation,
scale, blink visibility) are derived purely from:
- the global tick counter
- the cell's mechanic kind and parameters

There is no hidden state besides the tick counter, so the visual state of
any cell at tick t can be recomputed from scratch with derive_visuals().
Malformed parameters fall back to the per-mechanic defaults.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, TYPE_CHECKING
import math

from .colors import lerp_color

if TYPE_CHECKING:
    from .grid import Grid


TWO_PI = math.pi * 2
DEFAULT_COLOR = "#888"
DEFAULT_MULTICOLORS = ("#E74C3C", "#4A90D9", "#F5A623")


class MechanicType(Enum):
    """Visual behaviors a cell can carry."""
    SOLID_COLOR = "solid_color"
    BLINKING = "blinking"
    ROTATING_CW = "rotating_cw"
    ROTATING_CCW = "rotating_ccw"
    LEVITATING = "levitating"
    PULSING = "pulsing"
    MULTICOLOR = "multicolor"
    COLOR_SHIFT = "color_shift"

    # Named in the descriptor but not recognized: renders the base color
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_name(cls, name: str | None) -> MechanicType | None:
        """Resolve a descriptor mechanic name. None stays None."""
        if not name:
            return None
        try:
            kind = cls(name)
        except ValueError:
            return cls.UNSUPPORTED
        return kind


@dataclass(frozen=True)
class VisualState:
    """Derived visual attributes of a cell at one tick."""
    current_color: str | None
    rotation_angle: float = 0.0
    elevation: float = 0.0
    pulse_scale: float = 1.0
    blink_visible: bool = True


def _num(params: dict[str, Any], key: str, default: float) -> float:
    """Numeric parameter; missing, zero or non-numeric values use the default."""
    value = params.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return default
    return float(value)


def _color(params: dict[str, Any], key: str, default: str) -> str:
    value = params.get(key)
    if not isinstance(value, str) or not value:
        return default
    return value


def _color_list(params: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = params.get(key)
    if not isinstance(value, (list, tuple)) or not value:
        return default
    colors = tuple(c for c in value if isinstance(c, str) and c)
    return colors or default


def derive_visuals(
    tick: int,
    mechanic: MechanicType | None,
    params: dict[str, Any],
    base_color: str | None,
) -> VisualState:
    """
    Compute a cell's visual state at a tick.

    Args:
        tick: Global tick counter
        mechanic: Cell mechanic, None if the cell has none
        params: Authored mechanic_params
        base_color: Authored base color (mechanic_params.color at load)

    Returns:
        VisualState for this tick
    """
    t = tick

    if mechanic is None or mechanic == MechanicType.UNSUPPORTED:
        return VisualState(current_color=base_color)

    color = _color(params, "color", DEFAULT_COLOR)

    if mechanic == MechanicType.SOLID_COLOR:
        return VisualState(current_color=color)

    elif mechanic == MechanicType.BLINKING:
        speed = _num(params, "speed", 0.04)
        on = math.sin(t * speed * TWO_PI) > 0
        return VisualState(current_color=color if on else None, blink_visible=on)

    elif mechanic == MechanicType.ROTATING_CW:
        speed = _num(params, "speed", 0.025)
        return VisualState(current_color=color, rotation_angle=math.fmod(t * speed, TWO_PI))

    elif mechanic == MechanicType.ROTATING_CCW:
        speed = _num(params, "speed", 0.025)
        return VisualState(current_color=color, rotation_angle=-math.fmod(t * speed, TWO_PI))

    elif mechanic == MechanicType.LEVITATING:
        amp = _num(params, "amplitude", 8)
        freq = _num(params, "frequency", 0.03)
        elevation = amp + math.sin(t * freq * TWO_PI) * amp * 0.5
        return VisualState(current_color=color, elevation=elevation)

    elif mechanic == MechanicType.PULSING:
        speed = _num(params, "speed", 0.03)
        lo = _num(params, "min_scale", 0.75)
        hi = _num(params, "max_scale", 1.0)
        factor = math.sin(t * speed * TWO_PI) * 0.5 + 0.5
        return VisualState(current_color=color, pulse_scale=lo + factor * (hi - lo))

    elif mechanic == MechanicType.MULTICOLOR:
        colors = _color_list(params, "colors", DEFAULT_MULTICOLORS)
        speed = _num(params, "speed", 0.01)
        return VisualState(current_color=colors[math.floor(t * speed) % len(colors)])

    elif mechanic == MechanicType.COLOR_SHIFT:
        speed = _num(params, "speed", 0.02)
        factor = math.sin(t * speed * TWO_PI) * 0.5 + 0.5
        return VisualState(current_color=lerp_color(
            _color(params, "color_from", "#4A90D9"),
            _color(params, "color_to", "#E74C3C"),
            factor,
        ))

    return VisualState(current_color=base_color)


class MechanicsEngine:
    """
    Applies derive_visuals() to every cell of a grid, once per tick.

    Start and exit cells are never animated; their elevation stays 0.
    """

    def __init__(self):
        self.time = 0

    def reset(self):
        """Restart the animation clock (level load/retry)."""
        self.time = 0

    def update(self, grid: Grid):
        """Advance one tick and refresh every cell's visual state."""
        self.time += 1
        for cell in grid:
            if cell.is_start or cell.is_exit:
                cell.elevation = 0.0
                continue
            cell.apply_visuals(derive_visuals(
                self.time, cell.mechanic, cell.mechanic_params, cell.base_color,
            ))

