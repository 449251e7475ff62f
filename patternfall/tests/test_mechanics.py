"""
Tests for the mechanics engine.

Visual state is a pure function of the tick counter and the mechanic
parameters.
"""

import math
import pytest

from ..engine_core.colors import color_key, ease_in_out, lerp_color
from ..engine_core.mechanics import MechanicType, MechanicsEngine, derive_visuals
from .conftest import BLUE, RED, YELLOW


class TestDeriveVisuals:
    """Tests for derive_visuals."""

    def test_solid_color(self):
        visuals = derive_visuals(123, MechanicType.SOLID_COLOR, {"color": RED}, RED)

        assert visuals.current_color == RED
        assert visuals.rotation_angle == 0.0
        assert visuals.blink_visible

    def test_blinking_toggles(self):
        """Visible while sin(t * speed * 2pi) > 0, colorless otherwise."""
        params = {"color": BLUE}

        on = derive_visuals(1, MechanicType.BLINKING, params, BLUE)
        off = derive_visuals(15, MechanicType.BLINKING, params, BLUE)

        assert on.blink_visible and on.current_color == BLUE
        assert not off.blink_visible and off.current_color is None

    def test_rotation_directions(self):
        cw = derive_visuals(10, MechanicType.ROTATING_CW, {}, None)
        ccw = derive_visuals(10, MechanicType.ROTATING_CCW, {}, None)

        assert cw.rotation_angle == pytest.approx(0.25)
        assert ccw.rotation_angle == pytest.approx(-0.25)

    def test_rotation_wraps(self):
        """Angle stays within one turn."""
        visuals = derive_visuals(10_000, MechanicType.ROTATING_CW, {"speed": 0.1}, None)

        assert 0 <= visuals.rotation_angle < 2 * math.pi

    def test_levitating(self):
        """Elevation oscillates around the amplitude."""
        base = derive_visuals(0, MechanicType.LEVITATING, {"amplitude": 10}, None)
        peak = derive_visuals(25, MechanicType.LEVITATING, {"amplitude": 10, "frequency": 0.01}, None)

        assert base.elevation == pytest.approx(10)
        assert peak.elevation == pytest.approx(15)

    def test_pulsing_bounds(self):
        """Scale stays between min_scale and max_scale."""
        params = {"min_scale": 0.5, "max_scale": 1.5, "speed": 0.07}
        scales = [derive_visuals(t, MechanicType.PULSING, params, None).pulse_scale for t in range(200)]

        assert min(scales) >= 0.5
        assert max(scales) <= 1.5
        assert derive_visuals(0, MechanicType.PULSING, {}, None).pulse_scale == pytest.approx(0.875)

    def test_multicolor_cycles(self):
        """Color index is floor(t * speed) modulo the palette length."""
        params = {"colors": [RED, BLUE, YELLOW], "speed": 0.01}

        colors = [
            derive_visuals(t, MechanicType.MULTICOLOR, params, None).current_color
            for t in (0, 150, 250, 350)
        ]

        assert colors == [RED, BLUE, YELLOW, RED]

    def test_color_shift_midpoint(self):
        params = {"color_from": "#000000", "color_to": "#ffffff"}

        visuals = derive_visuals(0, MechanicType.COLOR_SHIFT, params, None)

        assert visuals.current_color == "rgb(128,128,128)"

    def test_malformed_params_use_defaults(self):
        """Non-numeric and zero speeds behave like missing ones."""
        default = derive_visuals(7, MechanicType.ROTATING_CW, {}, None)

        assert derive_visuals(7, MechanicType.ROTATING_CW, {"speed": "fast"}, None) == default
        assert derive_visuals(7, MechanicType.ROTATING_CW, {"speed": 0}, None) == default
        assert derive_visuals(7, MechanicType.SOLID_COLOR, {"color": 42}, None).current_color == "#888"

    def test_unsupported_keeps_base_color(self):
        visuals = derive_visuals(50, MechanicType.UNSUPPORTED, {"color": RED}, BLUE)

        assert visuals.current_color == BLUE

    def test_deterministic(self):
        """Same tick, same parameters, same result."""
        params = {"colors": [RED, BLUE], "speed": 0.3}

        first = derive_visuals(77, MechanicType.MULTICOLOR, params, None)
        second = derive_visuals(77, MechanicType.MULTICOLOR, params, None)

        assert first == second


class TestMechanicsEngine:
    """Tests for MechanicsEngine."""

    def test_update_advances_clock(self, make_grid):
        engine = MechanicsEngine()
        grid = make_grid()

        engine.update(grid)
        engine.update(grid)

        assert engine.time == 2
        engine.reset()
        assert engine.time == 0

    def test_updates_cells(self, make_grid):
        """Cells get the visuals of the current tick."""
        grid = make_grid(cells=[{
            "position": [1, 0],
            "mechanic": "rotating_cw",
            "mechanic_params": {"color": RED, "speed": 0.1},
        }])
        engine = MechanicsEngine()

        engine.update(grid)

        assert grid.cell_at(1, 0).rotation_angle == pytest.approx(0.1)

    def test_start_and_exit_not_animated(self, make_grid):
        """Start and exit cells keep elevation 0 even with a mechanic."""
        grid = make_grid(cells=[{
            "position": [0, 0],
            "mechanic": "levitating",
            "mechanic_params": {"color": RED},
        }])
        engine = MechanicsEngine()

        engine.update(grid)

        assert grid.cell_at(0, 0).elevation == 0.0


class TestColors:
    """Tests for color helpers."""

    def test_color_key_normalizes(self):
        assert color_key(" #E7 4C3C ") == "#e74c3c"
        assert color_key(None) == ""

    def test_lerp_color_non_hex(self):
        """Non-hex inputs return the first color unchanged."""
        assert lerp_color("red", "#ffffff", 0.5) == "red"

    def test_lerp_color_short_hex(self):
        assert lerp_color("#000", "#fff", 1.0) == "rgb(255,255,255)"

    def test_ease_in_out_endpoints(self):
        assert ease_in_out(0.0) == 0.0
        assert ease_in_out(1.0) == 1.0
        assert ease_in_out(0.5) == pytest.approx(0.5)
