"""
Integration tests - End-to-end workflow tests.

Tests the complete flow:
1. Create a session over the built-in campaign
2. Drive the game loop with intents
3. Win, die, retry and advance
4. Run the CLI
"""

import json
import pytest

from ..cli import main
from ..engine_core.events import HintShown, Killed, Landed, Won
from ..levels import builtin_loader
from ..session import GameLoop, SessionManager, SessionState
from .conftest import level_data, step


def play(loop, *directions):
    events = []
    for direction in directions:
        events.extend(step(loop, direction))
        if not loop.session.is_active():
            break
    return events


@pytest.fixture
def campaign():
    """Start a game loop on the built-in campaign at the given index."""
    def _start(index=0):
        session = SessionManager().create_session(builtin_loader())
        loop = GameLoop(session)
        assert loop.start(index)
        return loop
    return _start


class TestCampaign:
    """Play through built-in levels."""

    def test_first_level(self, campaign):
        loop = campaign(0)

        events = play(loop, "right", "right", "right", "down", "down", "down")

        assert events[-2:] == [Landed(col=3, row=3), Won()]
        assert loop.session.state == SessionState.WON

    def test_red_kills_and_hint_after_two_deaths(self, campaign):
        loop = campaign(1)

        assert Killed() in play(loop, "right")
        assert loop.retry()
        assert not any(isinstance(e, HintShown) for e in loop.tick().events)

        play(loop, "right")
        assert loop.session.death_count == 2
        loop.retry()

        assert HintShown(text="Red is not your friend.", duration_ms=4000) in loop.tick().events

    def test_wrap_to_exit(self, campaign):
        """Leaving the right edge re-enters on the left, onto the exit."""
        loop = campaign(4)

        events = play(loop, "right", "right", "up", "up", "right")

        assert Landed(col=0, row=0) in events
        assert events[-1] == Won()

    def test_border_is_the_exit(self, campaign):
        loop = campaign(6)

        play(loop, "up", "up")

        assert loop.session.state == SessionState.WON

    def test_wrong_color_order_kills(self, campaign):
        loop = campaign(6)

        play(loop, "down")

        assert loop.session.state == SessionState.DEAD

    def test_advance_after_win(self, campaign):
        loop = campaign(0)
        play(loop, "right", "right", "right", "down", "down", "down")

        assert loop.advance()

        assert loop.session.state == SessionState.ACTIVE
        assert loop.session.level.level_id == 2
        assert (loop.session.player.col, loop.session.player.row) == (0, 0)


class TestCLI:
    """Tests for the command-line interface."""

    def test_validate(self, tmp_path, capsys):
        path = tmp_path / "level.json"
        path.write_text(json.dumps(level_data()))

        assert main(["validate", str(path)]) == 0
        assert "OK" in capsys.readouterr().out

    def test_validate_invalid(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps(level_data(rules=[
            {"condition": {"type": "pattern_break", "pattern": []}, "effect": {"type": "kill"}},
        ])))
        broken = tmp_path / "broken.json"
        broken.write_text(json.dumps({"grid_size": "big"}))

        assert main(["validate", str(bad), str(broken)]) == 1
        out = capsys.readouterr().out
        assert "INVALID" in out
        assert "grid_size" in out

    def test_levels(self, capsys):
        assert main(["levels"]) == 0

        out = capsys.readouterr().out
        assert "First Steps" in out
        assert "border=exit" in out

    def test_play(self, capsys):
        assert main(["play", "--moves", "right,right,right,down,down,down"]) == 0

        out = capsys.readouterr().out
        assert "won" in out
        assert "Final: won at (3, 3)" in out
        assert "Pattern understood." in out

    def test_play_death(self, capsys):
        assert main(["play", "--level", "1", "--moves", "right"]) == 0

        out = capsys.readouterr().out
        assert "killed" in out
        assert "deaths=1" in out

    def test_play_bad_level(self, capsys):
        assert main(["play", "--level", "99"]) == 1
        assert "Error" in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 1
