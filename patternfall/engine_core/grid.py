"""
Grid - Per-cell level state.

The grid is built once per level (re)load and owned by the level session.
- Identity, flags and mechanics are fixed after load
- Visual state is rewritten every tick by the MechanicsEngine only
- Components that only look cells up receive a read-only GridView
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterator, TYPE_CHECKING
import logging

from .mechanics import MechanicType, VisualState

if TYPE_CHECKING:
    from ..level_schema.descriptor import LevelDescriptor

logger = logging.getLogger(__name__)


@dataclass
class Cell:
    """
    One grid cell.

    Note: base_color is the authored mechanic_params.color;
    current_color is what the player sees (and lands on) this tick.
    """
    col: int
    row: int
    id: Any = None

    # Flags
    is_start: bool = False
    is_exit: bool = False
    is_joker: bool = False

    # Mechanic descriptor
    mechanic: MechanicType | None = None
    mechanic_params: dict[str, Any] = field(default_factory=dict)
    base_color: str | None = None

    # Derived visual state
    current_color: str | None = None
    rotation_angle: float = 0.0
    elevation: float = 0.0
    pulse_scale: float = 1.0
    blink_visible: bool = True

    @property
    def is_blinking(self) -> bool:
        return self.mechanic == MechanicType.BLINKING

    def apply_visuals(self, visuals: VisualState):
        self.current_color = visuals.current_color
        self.rotation_angle = visuals.rotation_angle
        self.elevation = visuals.elevation
        self.pulse_scale = visuals.pulse_scale
        self.blink_visible = visuals.blink_visible


class Grid:
    """
    Square, row-major grid of cells: rows[row][col].

    Iteration yields cells row by row.
    """

    def __init__(self, size: int):
        self.size = size
        self.rows: list[list[Cell]] = [
            [Cell(col=c, row=r) for c in range(size)]
            for r in range(size)
        ]

    def __iter__(self) -> Iterator[Cell]:
        for row in self.rows:
            yield from row

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.size and 0 <= row < self.size

    def cell_at(self, col: int, row: int) -> Cell | None:
        """Cell at (col, row), None outside the grid."""
        if not self.in_bounds(col, row):
            return None
        return self.rows[row][col]

    @property
    def start_cell(self) -> Cell:
        return next(c for c in self if c.is_start)

    @property
    def exit_cell(self) -> Cell:
        return next(c for c in self if c.is_exit)

    def find_by_id(self, cell_id: Any) -> Cell | None:
        if cell_id is None:
            return None
        for cell in self:
            if cell.id == cell_id:
                return cell
        return None

    def view(self) -> GridView:
        return GridView(self)


class GridView:
    """
    Read-only lookup surface over a Grid.

    Only the container is read-only: lookups return the grid's live Cell
    objects, which the mechanics engine keeps updating. Callers must not
    mutate them.
    """

    def __init__(self, grid: Grid):
        self._grid = grid

    @property
    def size(self) -> int:
        return self._grid.size

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._grid)

    def in_bounds(self, col: int, row: int) -> bool:
        return self._grid.in_bounds(col, row)

    def cell_at(self, col: int, row: int) -> Cell | None:
        return self._grid.cell_at(col, row)

    @property
    def start_cell(self) -> Cell:
        return self._grid.start_cell

    @property
    def exit_cell(self) -> Cell:
        return self._grid.exit_cell

    def find_by_id(self, cell_id: Any) -> Cell | None:
        return self._grid.find_by_id(cell_id)


def _corner(
    position: tuple[int, int] | None,
    default: tuple[int, int],
    size: int,
    label: str,
) -> tuple[int, int]:
    """Authored start/exit position, or the default corner if absent or out of range."""
    if position is None:
        return default
    col, row = position
    if not (0 <= col < size and 0 <= row < size):
        logger.warning("%s position %s outside %dx%d grid, using %s", label, position, size, size, default)
        return default
    return col, row


def build_grid(descriptor: LevelDescriptor) -> Grid:
    """
    Build the grid for a level.

    - Marks exactly one start and one exit cell
      (defaults: (0, 0) and (size-1, size-1))
    - Applies authored cells; entries outside the grid are ignored
    """
    size = descriptor.grid_size
    grid = Grid(size)

    sc, sr = _corner(descriptor.start, (0, 0), size, "start")
    ec, er = _corner(descriptor.exit, (size - 1, size - 1), size, "exit")
    grid.rows[sr][sc].is_start = True
    grid.rows[er][ec].is_exit = True

    for entry in descriptor.cells:
        col, row = entry.position
        cell = grid.cell_at(col, row)
        if cell is None:
            logger.debug("Ignoring cell %r at %s outside the grid", entry.id, entry.position)
            continue

        cell.id = entry.id
        cell.mechanic = MechanicType.from_name(entry.mechanic)
        if cell.mechanic == MechanicType.UNSUPPORTED:
            logger.warning("Cell %r: unsupported mechanic %r", entry.id, entry.mechanic)
        cell.mechanic_params = dict(entry.mechanic_params)
        color = cell.mechanic_params.get("color")
        cell.base_color = color if isinstance(color, str) and color else None
        cell.current_color = cell.base_color
        cell.is_joker = entry.joker

    return grid
