"""
Levels module - Level loading and the built-in campaign.

Levels come from:
- A directory of JSON descriptors (LevelLoader)
- In-memory descriptors (StaticLevelLoader), e.g. the built-in campaign
"""

from .loader import (
    Level,
    LevelSource,
    LevelLoader,
    StaticLevelLoader,
    build_level,
    level_from_data,
)
from .builtin import create_builtin_levels, builtin_loader

__all__ = [
    "Level",
    "LevelSource",
    "LevelLoader",
    "StaticLevelLoader",
    "build_level",
    "level_from_data",
    "create_builtin_levels",
    "builtin_loader",
]
