"""
Simulation events.

Components never call each other through callbacks. Each update returns
the events it produced, in order, and the game loop routes them:

    Player.update()        -> Landed, BorderHit
    RuleInterpreter.*()    -> Killed, Won, Teleported, HintShown,
                              SoundStarted, SoundStopped
    GameLoop (start/load)  -> LevelStarted, SequenceShown, HintShown,
                              SoundStarted

Listeners attached to the game loop receive every event synchronously,
within the tick that produced it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Protocol, Union


@dataclass(frozen=True)
class Landed:
    """The player completed a traversal into (col, row)."""
    col: int
    row: int


@dataclass(frozen=True)
class BorderHit:
    """An out-of-bounds move was attempted under the kill or exit policy."""
    direction: str


@dataclass(frozen=True)
class Killed:
    pass


@dataclass(frozen=True)
class Won:
    pass


@dataclass(frozen=True)
class Teleported:
    col: int
    row: int


@dataclass(frozen=True)
class HintShown:
    text: str
    duration_ms: int


@dataclass(frozen=True)
class SoundStarted:
    sound_id: str | None
    pattern: Any = None  # Entry from the level's music_patterns, if any


@dataclass(frozen=True)
class SoundStopped:
    pass


@dataclass(frozen=True)
class SequenceShown:
    colors: tuple[str, ...] = field(default_factory=tuple)
    duration_ms: int = 4000
    label: str = ""


@dataclass(frozen=True)
class LevelStarted:
    level_id: Any
    title: str = ""
    wall_hint: str | None = None


Event = Union[
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
]


class EventListener(Protocol):
    """Presentation collaborators (audio, HUD, renderer) implement this."""

    def handle(self, event: Event) -> None:
        ...


def event_name(event: Event) -> str:
    """snake_case name of an event, used in API payloads and CLI output."""
    name = type(event).__name__
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i:
            out.append("_")
        out.append(ch.lower())
    return "".join(out)
