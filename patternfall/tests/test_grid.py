"""
Tests for the grid model and level descriptor schema.

Tests:
- Start/exit placement and fallbacks
- Authored cell application
- Read-only grid view
"""

import pytest
from pydantic import ValidationError

from ..engine_core.grid import build_grid
from ..engine_core.mechanics import MechanicType
from ..level_schema import LevelDescriptor
from .conftest import BLUE, RED, solid


class TestBuildGrid:
    """Tests for build_grid."""

    def test_default_size_and_corners(self):
        """Defaults: 6x6, start top-left, exit bottom-right."""
        grid = build_grid(LevelDescriptor())

        assert grid.size == 6
        assert (grid.start_cell.col, grid.start_cell.row) == (0, 0)
        assert (grid.exit_cell.col, grid.exit_cell.row) == (5, 5)

    def test_exactly_one_start_and_exit(self, make_grid):
        """One start cell and one exit cell."""
        grid = make_grid(start=[1, 2], exit=[2, 0])

        assert sum(1 for cell in grid if cell.is_start) == 1
        assert sum(1 for cell in grid if cell.is_exit) == 1
        assert grid.cell_at(1, 2).is_start
        assert grid.cell_at(2, 0).is_exit

    def test_out_of_range_start_falls_back(self, make_grid):
        """Start/exit outside the grid use the default corners."""
        grid = make_grid(start=[7, 7], exit=[-1, 0])

        assert (grid.start_cell.col, grid.start_cell.row) == (0, 0)
        assert (grid.exit_cell.col, grid.exit_cell.row) == (2, 2)

    def test_authored_cell(self, make_grid):
        """Cell entries set identity, mechanic, base color and joker flag."""
        grid = make_grid(cells=[solid(1, 0, RED, id="lava", joker=True)])
        cell = grid.cell_at(1, 0)

        assert cell.id == "lava"
        assert cell.mechanic == MechanicType.SOLID_COLOR
        assert cell.base_color == RED
        assert cell.current_color == RED
        assert cell.is_joker

    def test_cells_outside_grid_ignored(self, make_grid):
        """Out-of-range entries do not raise and do not appear."""
        grid = make_grid(cells=[solid(5, 5, RED, id="far"), solid(0, 1, BLUE)])

        assert grid.find_by_id("far") is None
        assert grid.cell_at(0, 1).base_color == BLUE

    def test_unknown_mechanic_is_inert(self, make_grid):
        """Unknown mechanics resolve to UNSUPPORTED and keep the base color."""
        grid = make_grid(cells=[{
            "position": [1, 1],
            "mechanic": "spinning_plates",
            "mechanic_params": {"color": BLUE},
        }])

        assert grid.cell_at(1, 1).mechanic == MechanicType.UNSUPPORTED
        assert grid.cell_at(1, 1).current_color == BLUE

    def test_plain_cells_have_no_color(self, make_grid):
        """Cells without an entry carry no mechanic and no color."""
        cell = make_grid().cell_at(1, 1)

        assert cell.mechanic is None
        assert cell.current_color is None


class TestGridView:
    """Tests for the read-only grid view."""

    def test_lookup(self, make_grid):
        """View exposes lookups of the underlying grid."""
        grid = make_grid(cells=[solid(2, 1, RED, id=7)])
        view = grid.view()

        assert view.size == 3
        assert view.find_by_id(7) is grid.cell_at(2, 1)
        assert view.in_bounds(2, 2)
        assert not view.in_bounds(3, 0)
        assert view.cell_at(-1, 0) is None
        assert len(list(view)) == 9

    def test_no_rows_access(self, make_grid):
        """The view does not expose the row storage."""
        view = make_grid().view()

        assert not hasattr(view, "rows")

    def test_cells_are_live(self, make_grid):
        """Lookups return the grid's own cells, so visual updates show through."""
        grid = make_grid(cells=[solid(1, 1, RED)])
        view = grid.view()

        grid.cell_at(1, 1).current_color = BLUE

        assert view.cell_at(1, 1) is grid.cell_at(1, 1)
        assert view.cell_at(1, 1).current_color == BLUE


class TestLevelDescriptor:
    """Tests for the descriptor schema."""

    def test_defaults(self):
        descriptor = LevelDescriptor()

        assert descriptor.grid_size == 6
        assert descriptor.border_behavior == "kill"
        assert descriptor.death_message == "You fell."
        assert descriptor.win_message == "Pattern understood."

    def test_grid_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            LevelDescriptor.model_validate({"grid_size": 0})

    def test_extra_keys_allowed(self):
        """Unknown keys are kept, not rejected."""
        descriptor = LevelDescriptor.model_validate({"author": "someone"})

        assert descriptor.model_extra["author"] == "someone"
