"""
Tests for level loading.

Loading never raises: failures are logged and reported as None.
"""

import json
import pytest

from ..engine_core.player import BorderPolicy
from ..levels import LevelLoader, StaticLevelLoader, builtin_loader, level_from_data
from ..levels.loader import level_filename
from .conftest import level_data


@pytest.fixture
def levels_dir(tmp_path):
    """A level directory with two levels and an index."""
    (tmp_path / "index.json").write_text(json.dumps([1, 2]))
    (tmp_path / "level_01.json").write_text(json.dumps(level_data(id=None, title="One")))
    (tmp_path / "level_02.json").write_text(json.dumps(level_data(id=2, title="Two", border_behavior="wrap")))
    return tmp_path


class TestLevelLoader:
    """Tests for LevelLoader."""

    def test_level_ids_from_index(self, levels_dir):
        assert LevelLoader(levels_dir).level_ids() == [1, 2]

    def test_missing_index_falls_back(self, tmp_path):
        assert LevelLoader(tmp_path).level_ids() == [1, 2, 3, 4, 5, 6, 7]

    def test_load(self, levels_dir):
        level = LevelLoader(levels_dir).load(2)

        assert level.level_id == 2
        assert level.descriptor.title == "Two"
        assert level.border_policy == BorderPolicy.WRAP
        assert level.grid.size == 3
        assert level.start == (0, 0)
        assert len(level.rules) == 1

    def test_missing_id_taken_from_index(self, levels_dir):
        assert LevelLoader(levels_dir).load(1).level_id == 1

    def test_missing_file(self, levels_dir):
        assert LevelLoader(levels_dir).load(3) is None

    def test_malformed_json(self, levels_dir):
        (levels_dir / "level_01.json").write_text("{not json")

        assert LevelLoader(levels_dir).load(1) is None

    def test_schema_violation(self, levels_dir):
        (levels_dir / "level_01.json").write_text(json.dumps({"grid_size": "huge"}))

        assert LevelLoader(levels_dir).load(1) is None

    def test_fresh_grid_per_load(self, levels_dir):
        """Each load builds a new grid, so retries start pristine."""
        loader = LevelLoader(levels_dir)

        assert loader.load(2).grid is not loader.load(2).grid

    def test_filename(self):
        assert level_filename(1) == "level_01.json"
        assert level_filename(12) == "level_12.json"
        assert level_filename("bonus") == "level_bonus.json"


class TestStaticLevelLoader:
    """Tests for in-memory level sources."""

    def test_ids_default_to_position(self):
        loader = StaticLevelLoader([level_data(id=None), level_data(id="b")])

        assert loader.level_ids() == [1, "b"]
        assert loader.load(1).level_id == 1

    def test_unknown_id(self):
        assert StaticLevelLoader([level_data()]).load("missing") is None

    def test_invalid_descriptor(self):
        assert StaticLevelLoader([level_data(grid_size=0)]).load("test") is None

    def test_level_from_data(self):
        assert level_from_data({"cells": "nope"}) is None
        assert level_from_data({}).grid.size == 6


class TestBuiltinLevels:
    """Tests for the built-in campaign."""

    def test_all_levels_load(self):
        loader = builtin_loader()
        ids = loader.level_ids()

        assert ids == [1, 2, 3, 4, 5, 6, 7]
        for level_id in ids:
            level = loader.load(level_id)
            assert level is not None
            assert level.descriptor.title
