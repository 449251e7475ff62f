"""
Pytest fixtures for Patternfall tests.
"""

import pytest

from ..engine_core.config import DEFAULT_CONFIG
from ..engine_core.grid import build_grid
from ..engine_core.rule_interpreter import RuleInterpreter
from ..level_schema import LevelDescriptor
from ..level_schema.rule_dsl import parse_rules
from ..levels import StaticLevelLoader
from ..session import GameLoop, SessionManager

RED = "#E74C3C"
BLUE = "#4A90D9"
YELLOW = "#F5A623"

# Ticks from pushing an intent to landing: one tick to start the move,
# move_ticks to complete it.
STEP_TICKS = DEFAULT_CONFIG.move_ticks + 1


def level_data(**overrides) -> dict:
    """A 3x3 level with a block border whose exit wins."""
    data = {
        "id": "test",
        "title": "Test Level",
        "grid_size": 3,
        "start": [0, 0],
        "exit": [2, 2],
        "border_behavior": "block",
        "cells": [],
        "rules": [{"condition": {"type": "reach_exit"}, "effect": {"type": "win"}}],
    }
    data.update(overrides)
    return data


def solid(col: int, row: int, color: str, **extra) -> dict:
    cell = {"position": [col, row], "mechanic": "solid_color", "mechanic_params": {"color": color}}
    cell.update(extra)
    return cell


def rule(condition: dict, effect: dict) -> dict:
    return {"condition": condition, "effect": effect}


def step(loop: GameLoop, direction: str) -> list:
    """Push one intent and run until the move lands (or the session stops)."""
    assert loop.push_intent(direction)
    events = []
    for result in loop.run(STEP_TICKS):
        events.extend(result.events)
    return events


@pytest.fixture
def make_grid():
    """Build a grid from level overrides."""
    def _make(**overrides):
        return build_grid(LevelDescriptor.model_validate(level_data(**overrides)))
    return _make


@pytest.fixture
def make_interpreter(make_grid):
    """Build (interpreter, grid) for a level's rules."""
    def _make(rules, custom_rules=None, music_patterns=None, **overrides):
        grid = make_grid(**overrides)
        interpreter = RuleInterpreter(custom_rules=custom_rules)
        interpreter.load(parse_rules(rules), grid.view(), music_patterns)
        return interpreter, grid
    return _make


@pytest.fixture
def manager() -> SessionManager:
    return SessionManager()


@pytest.fixture
def make_loop(manager):
    """Create a session over in-memory descriptors and start its first level."""
    def _make(*descriptors, start=True, listeners=None):
        session = manager.create_session(StaticLevelLoader(list(descriptors) or [level_data()]))
        loop = GameLoop(session, listeners=listeners)
        if start:
            assert loop.start()
        return loop
    return _make
