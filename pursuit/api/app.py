"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /health                          Health check
    POST   /api/v1/games                    Host a new game
    GET    /api/v1/games                    List hosted games
    GET    /api/v1/games/{id}               Game snapshot (state, turn, version)
    DELETE /api/v1/games/{id}               Delete a game
    POST   /api/v1/games/{id}/join          Claim a seat
    POST   /api/v1/games/{id}/start         Host deals the cards
    GET    /api/v1/games/{id}/moves         Candidate moves for a card
    POST   /api/v1/games/{id}/events        Send a turn event

Turn Flow:
    1. Clients poll GET /games/{id} for the latest snapshot
    2. The player to move sends events (select_card, select_peg, ...)
       with their session token
    3. The server runs them through the turn controller and stores the result

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union

from ..config import settings


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from loguru import logger

    from .. import __version__
    from .service import APIService, ServiceError
    from .schemas import (
        # Request models
        CreateGameRequest,
        JoinGameRequest,
        StartGameRequest,
        TurnEventRequest,
        # Response models
        DeleteGameResponse,
        ErrorResponse,
        GameListResponse,
        GameSnapshotResponse,
        HealthResponse,
        MovesResponse,
        SeatResponse,
        TurnEventResponse,
        # Enums
        DirectionName,
        ErrorCode,
    )

    app = FastAPI(
        title="Pursuit Game API",
        description="""
Joker Pursuit rules engine over HTTP.

## Seats and tokens

Creating or joining a game returns a `session_token`. Every state-changing
call must carry the token of the seat it acts for; turn events are only
accepted from the player whose turn it is.

## Error Codes

| Code | Description |
|------|-------------|
| `GAME_NOT_FOUND` | Game does not exist or expired |
| `INVALID_SESSION_TOKEN` | Token not issued for this game |
| `NOT_YOUR_TURN` | Another player is to move |
| `INVALID_EVENT` | Event not valid in the current turn stage |
| `VERSION_CONFLICT` | Game changed since it was read |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_from(e: ServiceError) -> JSONResponse:
        logger.warning("{} ({}): {}", e.error_code.value, e.status_code, e)
        return make_error_response(e.error_code, str(e), e.status_code, e.details)

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return api_service.health()

    # =========================================================================
    # Lobby Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=SeatResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}},
        tags=["Lobby"],
        summary="Host a new game",
    )
    async def create_game(body: CreateGameRequest) -> Union[SeatResponse, JSONResponse]:
        """
        Create a game and claim the host's seat.

        Player ids are assigned in the order of `player_names`
        (`player-1`, `player-2`, ...).
        """
        try:
            return api_service.create_game(body)
        except ServiceError as e:
            return error_from(e)

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Lobby"],
        summary="List hosted games",
    )
    async def list_games() -> GameListResponse:
        return api_service.list_games()

    @app.post(
        "/api/v1/games/{game_id}/join",
        response_model=SeatResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Game not found"},
            409: {"model": ErrorResponse, "description": "Game full, started, or name taken"},
        },
        tags=["Lobby"],
        summary="Claim a seat in a game",
    )
    async def join_game(game_id: str, body: JoinGameRequest) -> Union[SeatResponse, JSONResponse]:
        try:
            return api_service.join_game(game_id, body)
        except ServiceError as e:
            return error_from(e)

    @app.post(
        "/api/v1/games/{game_id}/start",
        response_model=GameSnapshotResponse,
        responses={
            401: {"model": ErrorResponse},
            403: {"model": ErrorResponse, "description": "Only the host may start"},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Already started"},
        },
        tags=["Lobby"],
        summary="Shuffle and deal",
    )
    async def start_game(
        game_id: str, body: StartGameRequest
    ) -> Union[GameSnapshotResponse, JSONResponse]:
        try:
            return api_service.start_game(game_id, body)
        except ServiceError as e:
            return error_from(e)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameSnapshotResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the latest game snapshot",
    )
    async def get_game(game_id: str) -> Union[GameSnapshotResponse, JSONResponse]:
        try:
            return api_service.get_snapshot(game_id)
        except ServiceError as e:
            return error_from(e)

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=DeleteGameResponse,
        tags=["Game"],
        summary="Delete a game",
    )
    async def delete_game(game_id: str) -> DeleteGameResponse:
        return api_service.delete_game(game_id)

    @app.get(
        "/api/v1/games/{game_id}/moves",
        response_model=MovesResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Candidate moves for a card",
    )
    async def get_moves(
        game_id: str,
        player_id: Annotated[str, Query(description="Player holding the card")],
        card_id: Annotated[str, Query(description="Card to play")],
        steps: Annotated[Optional[int], Query(ge=1, le=10, description="Split leg length")] = None,
        direction: Annotated[Optional[DirectionName], Query(description="Split 9 direction")] = None,
        is_second_move: Annotated[bool, Query(description="Second leg of a split")] = False,
        first_move_peg_id: Annotated[Optional[str], Query(description="Peg moved by the first leg")] = None,
    ) -> Union[MovesResponse, JSONResponse]:
        """
        List the moves a card allows. No moves is a normal answer, not an error.
        """
        try:
            return api_service.get_moves(
                game_id,
                player_id,
                card_id,
                steps=steps,
                direction=direction.value if direction else None,
                is_second_move=is_second_move,
                first_move_peg_id=first_move_peg_id,
            )
        except ServiceError as e:
            return error_from(e)

    @app.post(
        "/api/v1/games/{game_id}/events",
        response_model=TurnEventResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Event rejected by the turn controller"},
            401: {"model": ErrorResponse, "description": "Invalid session token"},
            403: {"model": ErrorResponse, "description": "Not your turn"},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Version conflict or not started"},
        },
        tags=["Game"],
        summary="Send a turn event",
    )
    async def submit_event(
        game_id: str, body: TurnEventRequest
    ) -> Union[TurnEventResponse, JSONResponse]:
        """
        Advance the turn of the player holding `session_token`.

        **Examples:**
        ```json
        {"session_token": "...", "event_type": "select_card", "card_id": "d0-7-hearts"}
        {"session_token": "...", "event_type": "choose_mode", "split": true}
        {"session_token": "...", "event_type": "choose_steps", "steps": 3}
        {"session_token": "...", "event_type": "select_peg", "peg_id": "player-1-peg-2"}
        {"session_token": "...", "event_type": "choose_castle", "enter_castle": true}
        ```
        """
        try:
            return api_service.submit_event(game_id, body)
        except ServiceError as e:
            return error_from(e)

    return app


# Default app instance for uvicorn
app = None


def get_app():
    """Get or create the default app instance."""
    global app
    if app is None:
        app = create_app()
    return app
