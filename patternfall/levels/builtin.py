"""
Built-in Campaign

A short hand-authored campaign used when no level directory is configured.
Each level introduces one idea:

1. Reach the exit
2. Some colors kill
3. Never touch the same color twice in a row
4. Follow the rhythm
5. The edges wrap around
6. Only cross with the music on
7. The border is the way out
"""

from __future__ import annotations
from typing import Any

from .loader import StaticLevelLoader

RED = "#E74C3C"
BLUE = "#4A90D9"
YELLOW = "#F5A623"
GREEN = "#2ECC71"


def _solid(col: int, row: int, color: str, cell_id: str | None = None, **extra) -> dict[str, Any]:
    cell = {
        "position": [col, row],
        "mechanic": "solid_color",
        "mechanic_params": {"color": color},
    }
    if cell_id:
        cell["id"] = cell_id
    cell.update(extra)
    return cell


def _rule(condition: dict[str, Any], effect: dict[str, Any]) -> dict[str, Any]:
    return {"condition": condition, "effect": effect}


WIN_ON_EXIT = _rule({"type": "reach_exit"}, {"type": "win"})


def create_builtin_levels() -> list[dict[str, Any]]:
    """Level descriptors of the built-in campaign, in play order."""
    return [
        {
            "id": 1,
            "title": "First Steps",
            "grid_size": 4,
            "start": [0, 0],
            "exit": [3, 3],
            "border_behavior": "block",
            "cells": [
                _solid(1, 0, BLUE),
                _solid(1, 1, BLUE),
                _solid(2, 2, YELLOW),
            ],
            "rules": [WIN_ON_EXIT],
            "wall_hint": "Find the way out.",
        },
        {
            "id": 2,
            "title": "Red Means Stop",
            "grid_size": 5,
            "border_behavior": "kill",
            "cells": [
                _solid(1, 0, RED),
                _solid(1, 1, RED),
                _solid(3, 3, RED),
                _solid(0, 2, BLUE),
                {"position": [2, 2], "mechanic": "pulsing",
                 "mechanic_params": {"color": BLUE, "speed": 0.02}},
            ],
            "rules": [
                _rule({"type": "touch_cell_color", "color": RED}, {"type": "kill"}),
                WIN_ON_EXIT,
            ],
            "hints": [
                {"trigger": "death_count", "threshold": 2,
                 "text": "Red is not your friend.", "duration": 4000},
            ],
        },
        {
            "id": 3,
            "title": "Never Twice",
            "grid_size": 5,
            "border_behavior": "block",
            "cells": [
                _solid(1, 0, BLUE),
                _solid(2, 0, BLUE),
                _solid(1, 1, YELLOW),
                _solid(2, 1, BLUE),
                {"position": [3, 1], "mechanic": "blinking",
                 "mechanic_params": {"color": BLUE, "speed": 0.03}},
                {"position": [2, 2], "mechanic": "blinking", "joker": True,
                 "mechanic_params": {"color": YELLOW, "speed": 0.05}},
            ],
            "rules": [
                _rule({"type": "two_consecutive_same_solid", "color": BLUE}, {"type": "kill"}),
                WIN_ON_EXIT,
            ],
            "hints": [
                {"trigger": "death_count", "threshold": 3,
                 "text": "Blinking tiles break a streak.", "duration": 5000},
            ],
        },
        {
            "id": 4,
            "title": "Rhythm",
            "grid_size": 4,
            "border_behavior": "block",
            "cells": [
                _solid(1, 0, BLUE),
                _solid(2, 0, BLUE),
                _solid(3, 0, YELLOW),
                _solid(3, 1, BLUE),
                _solid(3, 2, BLUE),
                _solid(0, 1, YELLOW),
                {"position": [1, 1], "mechanic": "rotating_cw",
                 "mechanic_params": {"color": RED}},
            ],
            "rules": [
                _rule({"type": "pattern_break", "pattern": [BLUE, BLUE, YELLOW]}, {"type": "kill"}),
                WIN_ON_EXIT,
            ],
            "on_start": [
                {"type": "show_sequence", "delay": 500, "duration": 4000,
                 "colors": [BLUE, BLUE, YELLOW], "label": "Keep the beat"},
            ],
        },
        {
            "id": 5,
            "title": "Around the World",
            "grid_size": 5,
            "start": [2, 2],
            "exit": [0, 0],
            "border_behavior": "wrap",
            "cells": [
                _solid(1, 0, RED),
                _solid(0, 1, RED),
                _solid(1, 1, RED),
                _solid(4, 4, GREEN, cell_id="portal"),
                {"position": [2, 1], "mechanic": "levitating",
                 "mechanic_params": {"color": YELLOW, "amplitude": 10}},
                {"position": [3, 2], "mechanic": "rotating_ccw",
                 "mechanic_params": {"color": BLUE}},
            ],
            "rules": [
                _rule({"type": "touch_cell_color", "color": RED}, {"type": "kill"}),
                _rule({"type": "touch_cell", "cell_id": "portal"},
                      {"type": "teleport", "target_col": 4, "target_row": 0}),
                WIN_ON_EXIT,
            ],
        },
        {
            "id": 6,
            "title": "Silence",
            "grid_size": 4,
            "border_behavior": "block",
            "cells": [
                _solid(1, 0, GREEN, cell_id="play"),
                _solid(0, 1, RED, cell_id="stop"),
                {"position": [2, 2], "mechanic": "color_shift",
                 "mechanic_params": {"color_from": BLUE, "color_to": YELLOW}},
                {"position": [1, 2], "mechanic": "multicolor",
                 "mechanic_params": {"colors": [RED, BLUE, YELLOW], "speed": 0.02}},
            ],
            "music_patterns": {
                "theme": {"notes": [60, 64, 67, 72], "tempo": 120},
            },
            "rules": [
                _rule({"type": "touch_cell", "cell_id": "play"},
                      {"type": "play_sound", "sound_id": "theme"}),
                _rule({"type": "touch_cell", "cell_id": "stop"}, {"type": "stop_sound"}),
                _rule({"type": "AND", "conditions": [
                    {"type": "reach_exit"}, {"type": "music_playing"},
                ]}, {"type": "win"}),
                _rule({"type": "reach_exit"},
                      {"type": "teleport", "target_col": 0, "target_row": 0}),
                _rule({"type": "idle_seconds", "seconds": 6},
                      {"type": "show_hint", "hint_text": "Too quiet in here.", "duration": 3000}),
            ],
        },
        {
            "id": 7,
            "title": "Way Out",
            "grid_size": 3,
            "start": [1, 1],
            "exit": [2, 2],
            "border_behavior": "exit",
            "cells": [
                _solid(0, 1, BLUE),
                _solid(1, 0, YELLOW),
                _solid(2, 1, RED),
                _solid(1, 2, RED),
            ],
            "rules": [
                _rule({"type": "sequence_violates", "sequence": [YELLOW]}, {"type": "kill"}),
                _rule({"type": "reach_exit"}, {"type": "kill"}),
            ],
            "wall_hint": "Sometimes the edge is the answer.",
        },
    ]


def builtin_loader() -> StaticLevelLoader:
    """Level loader serving the built-in campaign."""
    return StaticLevelLoader(create_builtin_levels())
