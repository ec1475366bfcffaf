"""
API Module - HTTP interface for game clients.

Exposes hosted games via REST:
1. Host creates a game and shares its id
2. Players join and receive session tokens
3. Host deals the cards
4. The player to move sends turn events; everyone polls snapshots

All state is in memory. No user accounts.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    JoinGameRequest,
    StartGameRequest,
    TurnEventRequest,
    # Responses
    ErrorResponse,
    GameListResponse,
    GameSnapshotResponse,
    MovesResponse,
    SeatResponse,
    TurnEventResponse,
    # Enums
    ErrorCode,
    EventType,
)
from .service import APIService, ServiceError
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "JoinGameRequest",
    "StartGameRequest",
    "TurnEventRequest",
    # Responses
    "ErrorResponse",
    "GameListResponse",
    "GameSnapshotResponse",
    "MovesResponse",
    "SeatResponse",
    "TurnEventResponse",
    # Enums
    "ErrorCode",
    "EventType",
    # Service
    "APIService",
    "ServiceError",
    "create_app",
]
