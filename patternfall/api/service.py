"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to session/game loop calls
2. Manages sessions and their game loops
3. Formats simulation state and events for the presentation client

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.).
Caller errors are raised as SessionNotFoundError (a KeyError) or
RequestError (a ValueError carrying an ErrorCode); the web layer maps
them to ErrorResponse.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any
import logging

from pydantic import ValidationError

from .schemas import (
    # Requests
    CreateSessionRequest,
    InputRequest,
    JumpRequest,
    TickRequest,
    # Responses
    GameStateResponse,
    SessionResponse,
    TickResponse,
    ValidationResponse,
    # Shared
    CellInfo,
    EventInfo,
    PlayerInfo,
    RuleStateInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from ..engine_core.conditions import CustomRuleRegistry
from ..engine_core.events import Event, event_name
from ..level_schema import LevelDescriptor, validate_level
from ..levels import LevelLoader, LevelSource, StaticLevelLoader, builtin_loader
from ..session import GameLoop, Session, SessionManager

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """No live session with the requested ID."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(session_id)

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class RequestError(ValueError):
    """A request the engine cannot honour."""

    def __init__(self, error_code: ErrorCode, message: str, details: dict[str, Any] | None = None):
        self.error_code = error_code
        self.details = details
        super().__init__(message)


@dataclass
class APIService:
    """
    Main API service for presentation clients.

    Usage:
        service = APIService(levels_dir="levels/")

        # Create session (loads the first level)
        session = service.create_session(CreateSessionRequest())

        # Drive it
        service.push_input(session.session_id, InputRequest(direction="right"))
        result = service.tick(session.session_id, TickRequest(count=12))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    levels_dir: str | Path | None = None
    custom_rules: CustomRuleRegistry = field(default_factory=CustomRuleRegistry)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    def validate_level(self, data: dict[str, Any]) -> ValidationResponse:
        """
        Validate a level descriptor.

        Schema violations raise RequestError(VALIDATION_ERROR); semantic
        problems are reported in the response.
        """
        descriptor = self._parse_descriptor(data)
        result = validate_level(descriptor, self.custom_rules)
        return ValidationResponse(
            valid=result.valid,
            errors=result.errors,
            warnings=result.warnings,
        )

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Create a new play session and load its first level.
        """
        if request.levels:
            for data in request.levels:
                self._parse_descriptor(data)
            levels: LevelSource = StaticLevelLoader(request.levels)
        else:
            levels = self._default_levels()

        session = self.session_manager.create_session(levels, custom_rules=self.custom_rules)
        game_loop = GameLoop(session)
        self._game_loops[session.session_id] = game_loop

        try:
            self._load(game_loop, game_loop.start, request.start_index)
        except RequestError:
            self.end_session(session.session_id)
            raise

        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse:
        """Get session status."""
        session, _ = self._lookup(session_id)
        return self._session_to_response(session)

    def get_game_state(self, session_id: str) -> GameStateResponse:
        """Get the full simulation state for rendering."""
        session, _ = self._lookup(session_id)
        return self._build_game_state(session)

    def push_input(self, session_id: str, request: InputRequest) -> SessionResponse:
        """
        Queue a directional intent.

        A full queue drops the intent (accepted=False); it is not an error.
        """
        session, game_loop = self._lookup(session_id)
        try:
            accepted = game_loop.push_intent(request.direction)
        except ValueError:
            raise RequestError(
                ErrorCode.INVALID_DIRECTION,
                f"Invalid direction '{request.direction}'",
                details={"allowed": ["up", "down", "left", "right"]},
            )
        response = self._session_to_response(session)
        response.accepted = accepted
        return response

    def tick(self, session_id: str, request: TickRequest) -> TickResponse:
        """
        Run up to request.count ticks.

        Stops early when the session deactivates (death, win).
        """
        session, game_loop = self._lookup(session_id)
        results = game_loop.run(request.count)

        events = [
            self._convert_event(event)
            for result in results
            for event in result.events
        ]
        return TickResponse(
            session_id=session_id,
            status=self._status(session),
            frame=session.frame_count,
            ticks_run=len(results),
            events=events,
            player=self._player_info(session),
        )

    def retry(self, session_id: str) -> SessionResponse:
        """Reload the current level, keeping the death counter."""
        session, game_loop = self._lookup(session_id)
        self._load(game_loop, game_loop.retry)
        return self._session_to_response(session)

    def advance(self, session_id: str) -> SessionResponse:
        """Load the next level (wraps to the first)."""
        session, game_loop = self._lookup(session_id)
        self._load(game_loop, game_loop.advance)
        return self._session_to_response(session)

    def jump(self, session_id: str, request: JumpRequest) -> SessionResponse:
        """Load any level by position."""
        session, game_loop = self._lookup(session_id)
        self._load(game_loop, game_loop.jump_to, request.index)
        return self._session_to_response(session)

    def end_session(self, session_id: str) -> bool:
        """
        End a play session.

        Returns False if the session did not exist.
        """
        self._game_loops.pop(session_id, None)
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        """
        List live session IDs.
        """
        return self.session_manager.list_sessions()

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _default_levels(self) -> LevelSource:
        if self.levels_dir:
            return LevelLoader(self.levels_dir)
        return builtin_loader()

    def _parse_descriptor(self, data: Any) -> LevelDescriptor:
        try:
            return LevelDescriptor.model_validate(data)
        except ValidationError as e:
            raise RequestError(
                ErrorCode.VALIDATION_ERROR,
                "Level descriptor does not match the schema",
                details={"errors": e.errors(include_url=False, include_context=False)},
            )

    def _lookup(self, session_id: str) -> tuple[Session, GameLoop]:
        session = self.session_manager.get_session(session_id)
        game_loop = self._game_loops.get(session_id)
        if session is None or game_loop is None:
            raise SessionNotFoundError(session_id)
        return session, game_loop

    def _load(self, game_loop: GameLoop, transition, *args):
        """Run a level transition, translating failures to RequestError."""
        session = game_loop.session
        try:
            loaded = transition(*args)
        except ValueError as e:
            raise RequestError(
                ErrorCode.INVALID_LEVEL_INDEX,
                str(e),
                details={"level_count": len(session.level_ids)},
            )
        if not loaded:
            raise RequestError(
                ErrorCode.LEVEL_LOAD_FAILED,
                "Level could not be loaded",
                details={"session_id": session.session_id},
            )

    def _status(self, session: Session) -> SessionStatus:
        """Convert session state to API status."""
        return SessionStatus(session.state.value)

    def _session_to_response(self, session: Session) -> SessionResponse:
        """Convert Session to SessionResponse."""
        level = session.level
        return SessionResponse(
            session_id=session.session_id,
            status=self._status(session),
            level_index=session.level_index,
            level_id=level.level_id if level else None,
            level_title=(level.descriptor.title or "") if level else "",
            level_count=len(session.level_ids),
            death_count=session.death_count,
            frame=session.frame_count,
            created_at=session.created_at,
        )

    def _player_info(self, session: Session) -> PlayerInfo:
        player = session.player
        return PlayerInfo(
            col=player.col,
            row=player.row,
            visual_col=player.visual_col,
            visual_row=player.visual_row,
            phase=player.phase.value,
            progress=player.progress if player.is_moving else 0.0,
            lev_offset=player.lev_offset,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        """Build complete game state response."""
        level = session.level
        state = session.rules.state
        rules = RuleStateInfo(
            color_sequence=list(state.color_sequence),
            solid_color_sequence=list(state.solid_color_sequence),
            step_count=state.step_count,
            death_count=state.death_count,
            idle_ticks=state.idle_ticks,
            music_playing=state.music_playing,
        )
        if level is None:
            return GameStateResponse(
                session_id=session.session_id,
                status=self._status(session),
                rules=rules,
            )

        cells = [
            CellInfo(
                col=cell.col,
                row=cell.row,
                id=cell.id,
                is_start=cell.is_start,
                is_exit=cell.is_exit,
                is_joker=cell.is_joker,
                mechanic=cell.mechanic.value if cell.mechanic else None,
                current_color=cell.current_color,
                rotation_angle=cell.rotation_angle,
                elevation=cell.elevation,
                pulse_scale=cell.pulse_scale,
                blink_visible=cell.blink_visible,
            )
            for cell in level.grid
        ]
        descriptor = level.descriptor

        return GameStateResponse(
            session_id=session.session_id,
            status=self._status(session),
            level_id=level.level_id,
            title=descriptor.title or "",
            grid_size=level.grid.size,
            border_behavior=level.border_policy.value,
            frame=session.frame_count,
            player=self._player_info(session),
            cells=cells,
            rules=rules,
            pending_intents=[d.value for d in session.intents.pending()],
            wall_hint=descriptor.wall_hint,
            death_message=descriptor.death_message,
            win_message=descriptor.win_message,
        )

    def _convert_event(self, event: Event) -> EventInfo:
        return EventInfo(type=event_name(event), data=asdict(event))
