"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a presentation client (browser
canvas, mobile app) and the simulation kernel. The client renders from
GameStateResponse and plays audio/HUD from the events in TickResponse.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has been ended
- LEVEL_LOAD_FAILED: Level could not be loaded (missing, malformed, invalid)
- INVALID_DIRECTION: Intent is not one of up/down/left/right
- INVALID_LEVEL_INDEX: Level index outside the session's level list
- VALIDATION_ERROR: Level descriptor does not match the schema
"""

from enum import Enum
from typing import Optional, Any, Union
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    CREATED = "created"
    LOADING = "loading"
    ACTIVE = "active"
    DEAD = "dead"
    WON = "won"
    LOAD_FAILED = "load_failed"
    ENDED = "ended"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    LEVEL_LOAD_FAILED = "LEVEL_LOAD_FAILED"
    INVALID_DIRECTION = "INVALID_DIRECTION"
    INVALID_LEVEL_INDEX = "INVALID_LEVEL_INDEX"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CellInfo(BaseModel):
    """One grid cell as the renderer sees it this tick."""
    col: int
    row: int
    id: Optional[Union[int, str]] = None
    is_start: bool = False
    is_exit: bool = False
    is_joker: bool = False
    mechanic: Optional[str] = Field(None, description="solid_color, blinking, pulsing, ...")
    current_color: Optional[str] = None
    rotation_angle: float = 0.0
    elevation: float = 0.0
    pulse_scale: float = 1.0
    blink_visible: bool = True

    model_config = {"from_attributes": True}


class PlayerInfo(BaseModel):
    """Player token state."""
    col: int
    row: int
    visual_col: float
    visual_row: float
    phase: str = Field(description="idle, moving or dead")
    progress: float = Field(0.0, description="Fraction of the current traversal, 0..1")
    lev_offset: float = 0.0


class RuleStateInfo(BaseModel):
    """What the level's rules remember."""
    color_sequence: list[str] = Field(default_factory=list)
    solid_color_sequence: list[str] = Field(default_factory=list)
    step_count: int = 0
    death_count: int = 0
    idle_ticks: int = 0
    music_playing: bool = False


class EventInfo(BaseModel):
    """A simulation event, e.g. {"type": "landed", "data": {"col": 1, "row": 0}}."""
    type: str
    data: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a play session."""
    levels: Optional[list[dict[str, Any]]] = Field(
        None,
        description="Inline level descriptors; the server's level set is used if omitted",
    )
    start_index: int = Field(0, ge=0, description="Level to start on")


class InputRequest(BaseModel):
    """Directional intent."""
    direction: str = Field(..., description="up, down, left or right")


class TickRequest(BaseModel):
    """Advance the simulation."""
    count: int = Field(1, ge=1, le=600, description="Number of ticks to run")


class JumpRequest(BaseModel):
    """Jump to a level by position."""
    index: int = Field(..., description="Position in the session's level list")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class ValidationResponse(BaseModel):
    """Result of validating a level descriptor."""
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    level_index: int = 0
    level_id: Optional[Union[int, str]] = None
    level_title: str = ""
    level_count: int = 0
    death_count: int = 0
    frame: int = 0
    accepted: Optional[bool] = Field(None, description="Whether the last intent was queued")
    created_at: float = 0.0
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    """Complete simulation state for rendering."""
    session_id: str
    status: SessionStatus
    level_id: Optional[Union[int, str]] = None
    title: str = ""
    grid_size: int = 0
    border_behavior: str = "kill"
    frame: int = 0
    player: Optional[PlayerInfo] = None
    cells: list[CellInfo] = Field(default_factory=list)
    rules: RuleStateInfo = Field(default_factory=RuleStateInfo)
    pending_intents: list[str] = Field(default_factory=list)
    wall_hint: Optional[str] = None
    death_message: str = "You fell."
    win_message: str = "Pattern understood."
    api_version: str = "v1"


class TickResponse(BaseModel):
    """Events produced by a batch of ticks."""
    session_id: str
    status: SessionStatus
    frame: int
    ticks_run: int
    events: list[EventInfo] = Field(default_factory=list)
    player: Optional[PlayerInfo] = None
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing live sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
