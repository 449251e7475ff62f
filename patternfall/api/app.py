"""
FastAPI Application - REST API for presentation clients.

Endpoints:
    GET    /api/v1/health                      Health check
    POST   /api/v1/levels/validate             Validate a level descriptor
    POST   /api/v1/sessions                    Create play session
    GET    /api/v1/sessions                    List sessions
    GET    /api/v1/sessions/{id}               Get session status
    GET    /api/v1/sessions/{id}/state         Get simulation state
    POST   /api/v1/sessions/{id}/input         Queue a directional intent
    POST   /api/v1/sessions/{id}/tick          Advance the simulation
    POST   /api/v1/sessions/{id}/retry         Reload the current level
    POST   /api/v1/sessions/{id}/advance       Load the next level
    POST   /api/v1/sessions/{id}/jump          Load a level by position
    DELETE /api/v1/sessions/{id}               End session

Client Flow:
    1. POST /sessions loads the first level
    2. POST /input queues intents, POST /tick runs frames and returns events
    3. When status becomes "dead" or "won", the client shows its message and
       calls /retry or /advance

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Any, Optional
import logging
import os

from fastapi import Body, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from .service import APIService, RequestError, SessionNotFoundError
from .schemas import (
    # Request models
    CreateSessionRequest,
    InputRequest,
    JumpRequest,
    TickRequest,
    # Response models
    EndSessionResponse,
    ErrorResponse,
    GameStateResponse,
    HealthResponse,
    SessionListResponse,
    SessionResponse,
    TickResponse,
    ValidationResponse,
    # Enums
    ErrorCode,
)

logger = logging.getLogger(__name__)

# Environment configuration
PATTERNFALL_ENV = os.getenv("PATTERNFALL_ENV", "development")
PATTERNFALL_LEVELS_DIR = os.getenv("PATTERNFALL_LEVELS_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

ERROR_STATUS = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.LEVEL_LOAD_FAILED: 409,
    ErrorCode.INVALID_DIRECTION: 400,
    ErrorCode.INVALID_LEVEL_INDEX: 400,
    ErrorCode.VALIDATION_ERROR: 422,
}


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Patternfall API",
        description="""
Tile puzzle simulation kernel - headless play sessions for presentation clients.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `LEVEL_LOAD_FAILED` | Level could not be loaded; previous level kept, inactive |
| `INVALID_DIRECTION` | Intent is not up/down/left/right |
| `INVALID_LEVEL_INDEX` | Level index outside the session's level list |
| `VALIDATION_ERROR` | Level descriptor does not match the schema |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    api_service = service or APIService(levels_dir=PATTERNFALL_LEVELS_DIR)
    logger.info(
        "Patternfall API (%s) using %s",
        PATTERNFALL_ENV,
        api_service.levels_dir or "built-in levels",
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=ERROR_STATUS.get(error_code, 400),
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:
        return make_error_response(
            ErrorCode.SESSION_NOT_FOUND,
            str(exc),
            details={"session_id": exc.session_id},
        )

    @app.exception_handler(RequestError)
    async def request_error(request: Request, exc: RequestError) -> JSONResponse:
        return make_error_response(exc.error_code, str(exc), details=exc.details)

    # =========================================================================
    # System Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="patternfall",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Patternfall API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    # =========================================================================
    # Level Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/levels/validate",
        response_model=ValidationResponse,
        responses={422: {"model": ErrorResponse, "description": "Descriptor does not match the schema"}},
        tags=["Levels"],
        summary="Validate a level descriptor",
    )
    async def validate_level(
        descriptor: Annotated[dict[str, Any], Body(description="Level descriptor JSON")],
    ) -> ValidationResponse:
        """
        Validate a level descriptor.

        Errors mean the level will not behave as authored; warnings mean it
        plays but possibly not as intended.
        """
        return api_service.validate_level(descriptor)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid start index"},
            409: {"model": ErrorResponse, "description": "First level could not be loaded"},
            422: {"model": ErrorResponse, "description": "Inline level does not match the schema"},
        },
        tags=["Sessions"],
        summary="Create a new play session",
    )
    async def create_session(
        request: Optional[CreateSessionRequest] = None,
    ) -> SessionResponse:
        """
        Create a new play session and load its first level.

        Provide `levels` to play inline descriptors; otherwise the server's
        level directory (or the built-in campaign) is used.
        """
        return api_service.create_session(request or CreateSessionRequest())

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all live session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> SessionResponse:
        """Get the current status of a play session."""
        return api_service.get_session(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a play session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a play session and release its state."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Simulation Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Simulation"],
        summary="Get simulation state",
    )
    async def get_state(session_id: str) -> GameStateResponse:
        """Grid, player and rule state for rendering."""
        return api_service.get_game_state(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/input",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid direction"},
            404: {"model": ErrorResponse},
        },
        tags=["Simulation"],
        summary="Queue a directional intent",
    )
    async def push_input(session_id: str, request: InputRequest) -> SessionResponse:
        """
        Queue an intent. At most two are buffered; `accepted` is false when
        the intent was dropped.
        """
        return api_service.push_input(session_id, request)

    @app.post(
        "/api/v1/sessions/{session_id}/tick",
        response_model=TickResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Simulation"],
        summary="Advance the simulation",
    )
    async def tick(session_id: str, request: Optional[TickRequest] = None) -> TickResponse:
        """
        Run up to `count` ticks (one tick per rendered frame at 60 fps).

        Stops early if the player dies or wins.
        """
        return api_service.tick(session_id, request or TickRequest())

    @app.post(
        "/api/v1/sessions/{session_id}/retry",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Simulation"],
        summary="Retry the current level",
    )
    async def retry(session_id: str) -> SessionResponse:
        """Reload the current level. The death counter is kept."""
        return api_service.retry(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/advance",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Simulation"],
        summary="Load the next level",
    )
    async def advance(session_id: str) -> SessionResponse:
        """Load the next level; after the last level the first is loaded."""
        return api_service.advance(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/jump",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid level index"},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
        },
        tags=["Simulation"],
        summary="Jump to a level",
    )
    async def jump(session_id: str, request: JumpRequest) -> SessionResponse:
        """Load any level by position. The death counter is reset."""
        return api_service.jump(session_id, request)

    return app


# For running directly: uvicorn patternfall.api.app:app
app = create_app()
