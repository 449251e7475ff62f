"""
Engine Core - Deterministic simulation kernel.

The kernel is the runtime that, every tick:
1. Moves the player (movement state machine)
2. Evaluates level rules on landings, border hits and idle time
3. Derives every cell's visual state from the tick counter

It holds no presentation state: renderers, audio and HUD consume the
events it returns and the grid/player it exposes.
"""

from .config import SimulationConfig, DEFAULT_CONFIG
from .events import (
    Event,
    EventListener,
    Landed,
    BorderHit,
    Killed,
    Won,
    Teleported,
    HintShown,
    SoundStarted,
    SoundStopped,
    SequenceShown,
    LevelStarted,
)
from .mechanics import MechanicType, MechanicsEngine, VisualState, derive_visuals
from .grid import Cell, Grid, GridView, build_grid
from .player import Player, Direction, BorderPolicy, MovementPhase
from .conditions import ConditionContext, ConditionEvaluator, CustomRuleRegistry
from .rule_interpreter import RuleInterpreter, RuleState

__all__ = [
    "SimulationConfig",
    "DEFAULT_CONFIG",
    "Event",
    "EventListener",
    "Landed",
    "BorderHit",
    "Killed",
    "Won",
    "Teleported",
    "HintShown",
    "SoundStarted",
    "SoundStopped",
    "SequenceShown",
    "LevelStarted",
    "MechanicType",
    "MechanicsEngine",
    "VisualState",
    "derive_visuals",
    "Cell",
    "Grid",
    "GridView",
    "build_grid",
    "Player",
    "Direction",
    "BorderPolicy",
    "MovementPhase",
    "ConditionContext",
    "ConditionEvaluator",
    "CustomRuleRegistry",
    "RuleInterpreter",
    "RuleState",
]
