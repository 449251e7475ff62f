"""
Session Manager - Creates and manages play sessions.

LIFECYCLE:
1. A session is created over a level source (directory, built-in campaign,
   uploaded descriptors)
2. The game loop loads a level into the session and drives it tick by tick
3. Win/death deactivate the session; the presentation layer decides when
   to retry, advance or jump
4. end_session() destroys the session and all of its state

PERSISTENCE RULES:
- Sessions are in-memory only
- The only state that outlives a level is the death counter, and only
  across retries of the same level
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import time
import uuid

from ..engine_core.config import DEFAULT_CONFIG, SimulationConfig
from ..engine_core.conditions import CustomRuleRegistry
from ..engine_core.mechanics import MechanicsEngine
from ..engine_core.player import Player
from ..engine_core.rule_interpreter import RuleInterpreter
from ..levels.loader import Level, LevelSource
from .input_queue import IntentQueue

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a play session."""
    CREATED = "created"  # No level loaded yet
    LOADING = "loading"  # Level (re)load in progress, simulation paused
    ACTIVE = "active"  # Ticks consume input and fire rules
    DEAD = "dead"  # Player killed, waiting for retry
    WON = "won"  # Level won, waiting for advance
    LOAD_FAILED = "load_failed"  # Last load failed; previous level (if any) kept, inactive
    ENDED = "ended"  # Session destroyed


@dataclass
class Session:
    """
    A play session.

    Owns everything the simulation mutates:
    - The current level (grid, rules, hints)
    - The player
    - The rule interpreter (its death counter spans retries)
    - The mechanics clock
    - The intent queue
    """
    session_id: str
    levels: LevelSource
    created_at: float
    config: SimulationConfig = DEFAULT_CONFIG

    state: SessionState = SessionState.CREATED
    level_ids: list[Any] = field(default_factory=list)
    level_index: int = 0
    level: Level | None = None
    frame_count: int = 0

    player: Player = field(default_factory=Player)
    mechanics: MechanicsEngine = field(default_factory=MechanicsEngine)
    rules: RuleInterpreter = field(default_factory=RuleInterpreter)
    intents: IntentQueue = field(default_factory=IntentQueue)

    def is_active(self) -> bool:
        """True while ticks are simulated."""
        return self.state == SessionState.ACTIVE

    @property
    def death_count(self) -> int:
        return self.rules.state.death_count

    @property
    def is_last_level(self) -> bool:
        return self.level_index >= len(self.level_ids) - 1


class SessionManager:
    """
    Manages play sessions.

    Responsibilities:
    - Create sessions over a level source
    - Track active sessions
    - Clean up finished sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, config: SimulationConfig = DEFAULT_CONFIG):
        self.config = config
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        levels: LevelSource,
        custom_rules: CustomRuleRegistry | None = None,
    ) -> Session:
        """
        Create a new play session.

        Args:
            levels: Where levels are loaded from
            custom_rules: Predicates for custom_rule conditions

        Returns:
            New Session; load a level with GameLoop.start()
        """
        session_id = str(uuid.uuid4())
        session = Session(
            session_id=session_id,
            levels=levels,
            created_at=time.time(),
            config=self.config,
            level_ids=levels.level_ids(),
            player=Player(move_ticks=self.config.move_ticks),
            rules=RuleInterpreter(custom_rules=custom_rules, config=self.config),
            intents=IntentQueue(max_pending=self.config.max_pending_intents),
        )
        self._sessions[session_id] = session
        logger.info("Created session %s with %d level(s)", session_id, len(session.level_ids))
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """
        End a session and drop its state.

        Returns False if the session does not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.state = SessionState.ENDED
        session.level = None
        session.intents.flush()
        logger.info("Ended session %s", session_id)
        return True

    def list_sessions(self) -> list[str]:
        """IDs of all live sessions."""
        return list(self._sessions)

    def list_active_sessions(self) -> list[str]:
        """IDs of sessions currently simulating."""
        return [sid for sid, session in self._sessions.items() if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        End sessions older than max_age that are not simulating.

        Returns the number of sessions removed.
        """
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in stale:
            self.end_session(session_id)
        return len(stale)
