"""
API Module - Presentation client interface.

Exposes headless play sessions via REST API. A client:
1. Creates a session (built-in campaign, server level directory, or
   inline descriptors)
2. Queues intents and advances the simulation tick by tick
3. Renders the returned state and plays the returned events
4. Retries, advances or jumps between levels

All state is session-scoped and in-memory. Single-player only.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    InputRequest,
    TickRequest,
    JumpRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    TickResponse,
    ValidationResponse,
    ErrorResponse,
    # Shared
    CellInfo,
    PlayerInfo,
    RuleStateInfo,
    EventInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from .service import APIService, RequestError, SessionNotFoundError
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "InputRequest",
    "TickRequest",
    "JumpRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "TickResponse",
    "ValidationResponse",
    "ErrorResponse",
    # Shared
    "CellInfo",
    "PlayerInfo",
    "RuleStateInfo",
    "EventInfo",
    # Enums
    "ErrorCode",
    "SessionStatus",
    # Service
    "APIService",
    "RequestError",
    "SessionNotFoundError",
    "create_app",
]
