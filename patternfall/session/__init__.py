"""
Session Module - Manages ephemeral play sessions.

A session represents one play-through of a level list:
- Created over a level source (directory, built-in campaign, uploads)
- Owns the current level, the player, the rule state and the input queue
- Driven tick by tick by a GameLoop
- Destroyed when the player leaves

Sessions are EPHEMERAL:
- No persistence
- Only the death counter outlives a level, and only across retries
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, TickResult
from .input_queue import IntentQueue

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "TickResult",
    "IntentQueue",
]
