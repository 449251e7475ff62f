"""
Color and interpolation helpers shared by the mechanics engine,
the movement state machine and the rule interpreter.
"""

from __future__ import annotations


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def ease_in_out(t: float) -> float:
    """Cubic ease-in-out, symmetric about t=0.5."""
    if t < 0.5:
        return 4 * t * t * t
    return 1 - ((-2 * t + 2) ** 3) / 2


def hex_rgb(color: str | None) -> tuple[int, int, int] | None:
    """Parse '#rrggbb' (or '#rgb') into an RGB tuple, None if not a hex color."""
    if not color or not color.startswith("#"):
        return None
    digits = color[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    try:
        value = int(digits, 16)
    except ValueError:
        return None
    return (value >> 16) & 255, (value >> 8) & 255, value & 255


def lerp_color(color_from: str, color_to: str, t: float) -> str:
    """
    Linear interpolation between two hex colors.

    Returns an 'rgb(r,g,b)' string. If either input is not a hex color,
    the first color is returned unchanged.
    """
    a = hex_rgb(color_from)
    b = hex_rgb(color_to)
    if a is None or b is None:
        return color_from
    r, g, bl = (round(lerp(a[i], b[i], t)) for i in range(3))
    return f"rgb({r},{g},{bl})"


def color_key(color: str | None) -> str:
    """Normalize a color for comparison: lower-case, whitespace removed."""
    return "".join((color or "").lower().split())
