"""
Level Descriptor - Pydantic schema for level JSON files.

This is the contract between level files and the kernel. It only checks
shape (types, required keys, 1 <= grid_size <= MAX_GRID_SIZE). Semantic
problems such as unknown mechanics or out-of-range cells are tolerated
here and reported by validate_level().
"""

from typing import Any, Optional, Union
from pydantic import BaseModel, Field

MAX_GRID_SIZE = 64


class CellEntry(BaseModel):
    """An authored cell."""
    position: tuple[int, int] = Field(description="[col, row]")
    id: Optional[Union[int, str]] = None
    mechanic: Optional[str] = None
    mechanic_params: dict[str, Any] = Field(default_factory=dict)
    joker: bool = False

    model_config = {"extra": "allow"}


class HintEntry(BaseModel):
    """A hint unlocked by a trigger (only death_count is recognized)."""
    trigger: str = "death_count"
    threshold: int = 0
    text: str = ""
    duration: Optional[int] = Field(None, description="Display time in ms")

    model_config = {"extra": "allow"}


class StartEventEntry(BaseModel):
    """A presentation event fired `delay` ms after the level starts."""
    type: str
    delay: int = 0

    model_config = {"extra": "allow"}


class LevelDescriptor(BaseModel):
    """
    A complete level.

    Example:
        {
          "id": 1,
          "grid_size": 4,
          "start": [0, 0],
          "exit": [3, 3],
          "cells": [{"position": [1, 0], "id": "a", "mechanic": "solid_color",
                     "mechanic_params": {"color": "#E74C3C"}}],
          "rules": [{"condition": {"type": "reach_exit"},
                     "effect": {"type": "win"}}],
          "border_behavior": "block"
        }
    """
    id: Optional[Union[int, str]] = None
    title: str = ""
    grid_size: int = Field(6, ge=1, le=MAX_GRID_SIZE)
    start: Optional[tuple[int, int]] = None
    exit: Optional[tuple[int, int]] = None
    cells: list[CellEntry] = Field(default_factory=list)
    rules: list[dict[str, Any]] = Field(default_factory=list)
    hints: list[HintEntry] = Field(default_factory=list)
    border_behavior: Optional[str] = "kill"
    on_start: list[StartEventEntry] = Field(default_factory=list)
    music_patterns: dict[str, Any] = Field(default_factory=dict)
    wall_hint: Optional[str] = None
    death_message: str = "You fell."
    win_message: str = "Pattern understood."

    model_config = {"extra": "allow"}
