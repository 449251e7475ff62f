"""
Level Loader - Turns level descriptors into playable levels.

Level files live in a directory:

    levels/
        index.json      [1, 2, 3, ...]  (ordered level ids)
        level_01.json
        level_02.json

Loading never raises. A missing file, invalid JSON or a descriptor that
fails the schema is logged and reported as None, so the caller can keep
the previous level on screen and stay inactive.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol
import json
import logging

from pydantic import ValidationError

from ..engine_core.grid import Grid, build_grid
from ..engine_core.player import BorderPolicy
from ..level_schema.descriptor import LevelDescriptor
from ..level_schema.rule_dsl import (
    DeathHint,
    Rule,
    StartEvent,
    parse_hints,
    parse_rules,
    parse_start_events,
)

logger = logging.getLogger(__name__)

FALLBACK_LEVEL_IDS = [1, 2, 3, 4, 5, 6, 7]


class LevelSource(Protocol):
    """Anything that can list level ids and load a level by id."""

    def level_ids(self) -> list[Any]:
        ...

    def load(self, level_id: Any) -> Level | None:
        ...


@dataclass
class Level:
    """A compiled level: descriptor plus everything the kernel consumes."""
    descriptor: LevelDescriptor
    grid: Grid
    rules: list[Rule] = field(default_factory=list)
    hints: list[DeathHint] = field(default_factory=list)
    start_events: list[StartEvent] = field(default_factory=list)
    border_policy: BorderPolicy = BorderPolicy.KILL

    @property
    def level_id(self) -> Any:
        return self.descriptor.id

    @property
    def start(self) -> tuple[int, int]:
        cell = self.grid.start_cell
        return cell.col, cell.row


def build_level(descriptor: LevelDescriptor) -> Level:
    """Compile a validated descriptor into a Level with a fresh grid."""
    return Level(
        descriptor=descriptor,
        grid=build_grid(descriptor),
        rules=parse_rules(descriptor.rules),
        hints=parse_hints(descriptor.hints),
        start_events=parse_start_events(descriptor.on_start),
        border_policy=BorderPolicy.from_name(descriptor.border_behavior),
    )


def level_from_data(data: Any) -> Level | None:
    """Build a Level from decoded descriptor JSON, None if it fails the schema."""
    try:
        descriptor = LevelDescriptor.model_validate(data)
    except ValidationError as e:
        logger.error("Invalid level descriptor: %s", e)
        return None
    return build_level(descriptor)


def level_filename(level_id: Any) -> str:
    """level_01.json for 1, level_bonus.json for 'bonus'."""
    if isinstance(level_id, int):
        return f"level_{level_id:02d}.json"
    return f"level_{level_id}.json"


class LevelLoader:
    """
    Loads levels from a directory.

    Every load() builds a fresh grid, so a retry starts from pristine cells.
    """

    def __init__(self, levels_dir: str | Path):
        self.levels_dir = Path(levels_dir)

    def level_ids(self) -> list[Any]:
        """Ordered level ids from index.json, or levels 1-7 if it cannot be read."""
        index_path = self.levels_dir / "index.json"
        try:
            with open(index_path, "r", encoding="utf-8") as f:
                ids = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Cannot load level index %s: %s", index_path, e)
            return list(FALLBACK_LEVEL_IDS)
        if not isinstance(ids, list) or not ids:
            logger.error("Level index %s is not a non-empty list", index_path)
            return list(FALLBACK_LEVEL_IDS)
        return ids

    def load(self, level_id: Any) -> Level | None:
        """Load and compile one level, None on any failure."""
        path = self.levels_dir / level_filename(level_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Cannot load %s: %s", path, e)
            return None
        level = level_from_data(data)
        if level is not None and level.descriptor.id is None:
            level.descriptor.id = level_id
        return level


class StaticLevelLoader:
    """
    Serves levels from in-memory descriptors (built-in campaign, API uploads).

    Descriptors are kept as raw JSON-like dicts and recompiled on every load.
    """

    def __init__(self, descriptors: list[dict[str, Any]]):
        self._descriptors: dict[Any, dict[str, Any]] = {}
        self._order: list[Any] = []
        for position, data in enumerate(descriptors, start=1):
            level_id = data.get("id") if isinstance(data, dict) else None
            if level_id is None:
                level_id = position
            self._descriptors[level_id] = data
            self._order.append(level_id)

    def level_ids(self) -> list[Any]:
        return list(self._order)

    def load(self, level_id: Any) -> Level | None:
        data = self._descriptors.get(level_id)
        if data is None:
            logger.error("Unknown level id %r", level_id)
            return None
        level = level_from_data(data)
        if level is not None and level.descriptor.id is None:
            level.descriptor.id = level_id
        return level
