"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between game clients and the engine.
The game state models mirror GameState.to_dict() exactly, so a snapshot
fetched over HTTP can be turned back into engine objects.

Error Codes:
- GAME_NOT_FOUND: Game does not exist or has expired
- INVALID_SESSION_TOKEN: Token missing or not issued for this game
- NOT_YOUR_TURN: Token belongs to a player who is not to move
- GAME_ALREADY_STARTED / GAME_FULL / NAME_TAKEN: Join refused
- INVALID_EVENT: The turn controller rejected the event
- VERSION_CONFLICT: The game changed since the client read it
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class GamePhaseName(str, Enum):
    WELCOME = "welcome"
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class DirectionName(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class EventType(str, Enum):
    """Turn events a client can send."""
    SELECT_CARD = "select_card"
    CHOOSE_MODE = "choose_mode"
    CHOOSE_DIRECTION = "choose_direction"
    CHOOSE_STEPS = "choose_steps"
    SELECT_PEG = "select_peg"
    SELECT_DESTINATION = "select_destination"
    CHOOSE_CASTLE = "choose_castle"
    SKIP_SECOND_MOVE = "skip_second_move"
    DISCARD_HAND = "discard_hand"
    FORFEIT_CARD = "forfeit_card"
    CANCEL = "cancel"


class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    INVALID_SESSION_TOKEN = "INVALID_SESSION_TOKEN"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_HOST = "NOT_HOST"
    GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
    GAME_NOT_STARTED = "GAME_NOT_STARTED"
    GAME_FULL = "GAME_FULL"
    NAME_TAKEN = "NAME_TAKEN"
    INVALID_EVENT = "INVALID_EVENT"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Game State Models
# =============================================================================

class CardInfo(BaseModel):
    card_id: str
    rank: str
    suit: str


class PlayerInfo(BaseModel):
    player_id: str
    name: str
    team_id: int
    section_index: int
    color: str
    hand: list[CardInfo] = Field(default_factory=list)
    peg_ids: list[str] = Field(default_factory=list)


class SpaceInfo(BaseModel):
    space_id: str
    space_type: str = Field(description="home, normal, corner, entrance, castle")
    section_index: int
    index: int
    pegs: list[str] = Field(default_factory=list)
    owner_id: Optional[str] = None


class SectionInfo(BaseModel):
    index: int
    player_ids: list[str] = Field(default_factory=list)


class BoardInfo(BaseModel):
    sections: list[SectionInfo] = Field(default_factory=list)
    spaces: dict[str, SpaceInfo] = Field(default_factory=dict)
    peg_locations: dict[str, str] = Field(default_factory=dict)
    track: list[str] = Field(default_factory=list, description="Track space ids in ring order")


class GameStateInfo(BaseModel):
    """Full authoritative game state."""
    game_id: str
    phase: GamePhaseName
    players: list[PlayerInfo] = Field(default_factory=list)
    current_player_idx: int = 0
    turn_number: int = 0
    draw_pile: list[CardInfo] = Field(default_factory=list)
    discard_pile: list[CardInfo] = Field(default_factory=list)
    board: BoardInfo
    winner: Optional[int] = None
    random_seed: int = 0
    shuffle_count: int = 0
    version: int = 0


class MoveInfo(BaseModel):
    """A candidate move."""
    player_id: str
    card_id: str
    peg_id: str
    from_space_id: str
    destinations: list[str]
    metadata: dict[str, Any] = Field(description="Tagged move kind and its parameters")
    modifiers: Optional[dict[str, Any]] = None


class SeatInfo(BaseModel):
    player_id: str
    name: str


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to host a new game."""
    player_names: list[str] = Field(..., min_length=2, max_length=8)
    host_player_name: Optional[str] = Field(
        None, description="Seat the host claims; defaults to the first name"
    )
    num_board_sections: Optional[int] = Field(None, ge=2, le=8)
    player_teams: Optional[dict[str, int]] = Field(
        None, description="Team id per player id (player-1, player-2, ...)"
    )
    player_colors: Optional[dict[str, str]] = Field(
        None, description="Colour per player id (player-1, player-2, ...)"
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")


class JoinGameRequest(BaseModel):
    player_name: str = Field(..., min_length=1, max_length=40)


class StartGameRequest(BaseModel):
    session_token: str


class TurnEventRequest(BaseModel):
    """One input to the turn state machine."""
    session_token: str
    event_type: EventType
    expected_version: Optional[int] = Field(
        None, description="Reject the event if the game has moved past this version"
    )
    card_id: Optional[str] = None
    split: Optional[bool] = None
    direction: Optional[DirectionName] = None
    steps: Optional[int] = Field(None, ge=1, le=10)
    peg_id: Optional[str] = None
    space_id: Optional[str] = None
    enter_castle: Optional[bool] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameSnapshotResponse(BaseModel):
    """Everything a client needs to render a game."""
    game_id: str
    version: int
    phase: GamePhaseName
    seats: list[SeatInfo] = Field(default_factory=list)
    host_player_id: Optional[str] = None
    game_state: GameStateInfo
    turn_state: dict[str, Any] = Field(default_factory=dict)
    updated_at: float = 0.0
    api_version: str = "v1"


class SeatResponse(BaseModel):
    """Returned to a player who created or joined a game."""
    game_id: str
    player_id: str
    session_token: str
    snapshot: GameSnapshotResponse
    api_version: str = "v1"


class GameSummary(BaseModel):
    game_id: str
    phase: GamePhaseName
    player_names: list[str]
    seats_taken: int
    capacity: int
    created_at: float
    updated_at: float


class GameListResponse(BaseModel):
    games: list[GameSummary]
    count: int


class MovesResponse(BaseModel):
    game_id: str
    player_id: str
    card_id: str
    moves: list[MoveInfo] = Field(default_factory=list)


class TurnEventResponse(BaseModel):
    success: bool
    message: str = ""
    bump_message: Optional[str] = None
    turn_ended: bool = False
    game_over: bool = False
    snapshot: GameSnapshotResponse
    api_version: str = "v1"


class DeleteGameResponse(BaseModel):
    success: bool
    game_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
