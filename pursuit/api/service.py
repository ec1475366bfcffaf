"""
API Service - Business logic layer between the HTTP app and the engine.

The service:
1. Translates API requests to engine calls
2. Manages hosted games through the GameStore
3. Checks session tokens and turn ownership
4. Formats snapshots for clients

It never decides move legality itself; that is the turn controller's job.
This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from .. import __version__
from ..engine_core.board import Direction
from ..engine_core.move import MoveModifiers
from ..engine_core.move_generator import get_possible_moves
from ..engine_core.state import GameState, create_initial_game_state, shuffle_and_deal_cards
from ..engine_core.turn_controller import (
    TurnController,
    TurnEvent,
    TurnEventType,
    TurnState,
)
from ..session.manager import (
    GameNotFoundError,
    GameSession,
    GameStore,
    SeatClaim,
    SeatError,
    VersionConflictError,
)
from .schemas import (
    CreateGameRequest,
    DeleteGameResponse,
    ErrorCode,
    GameListResponse,
    GameSnapshotResponse,
    GameStateInfo,
    GameSummary,
    HealthResponse,
    JoinGameRequest,
    MoveInfo,
    MovesResponse,
    SeatInfo,
    SeatResponse,
    StartGameRequest,
    TurnEventRequest,
    TurnEventResponse,
)


class ServiceError(Exception):
    """A request the service refuses, with the HTTP status to report."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code
        self.details = details


_SEAT_ERROR_CODES = {
    "GAME_ALREADY_STARTED": (ErrorCode.GAME_ALREADY_STARTED, 409),
    "GAME_FULL": (ErrorCode.GAME_FULL, 409),
    "NAME_TAKEN": (ErrorCode.NAME_TAKEN, 409),
    "VALIDATION_ERROR": (ErrorCode.VALIDATION_ERROR, 400),
}


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        seat = service.create_game(CreateGameRequest(player_names=["Ann", "Bo"]))
        service.join_game(seat.game_id, JoinGameRequest(player_name="Bo"))
        service.start_game(seat.game_id, StartGameRequest(session_token=seat.session_token))
    """
    store: GameStore = field(default_factory=GameStore)
    controller: TurnController = field(default_factory=TurnController)

    def health(self) -> HealthResponse:
        return HealthResponse(status="healthy", service="pursuit", version=__version__)

    # =========================================================================
    # Lobby
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> SeatResponse:
        try:
            game_state = create_initial_game_state(
                player_names=request.player_names,
                player_teams=request.player_teams,
                num_sections=request.num_board_sections,
                player_colors=request.player_colors,
                random_seed=request.random_seed,
            )
        except ValueError as e:
            raise ServiceError(ErrorCode.VALIDATION_ERROR, str(e))

        session = GameSession(game_id=game_state.game_id, game_state=game_state)
        host_name = request.host_player_name or request.player_names[0]
        seat = self._claim(session, host_name)
        session.host_player_id = seat.player_id
        self.store.create(session)
        return self._seat_response(session, seat)

    def join_game(self, game_id: str, request: JoinGameRequest) -> SeatResponse:
        session = self._require(game_id)
        seat = self._claim(session, request.player_name)
        self.store.touch(game_id)
        logger.info("{} joined game {} as {}", seat.name, game_id, seat.player_id)
        return self._seat_response(session, seat)

    def start_game(self, game_id: str, request: StartGameRequest) -> GameSnapshotResponse:
        session = self._require(game_id)
        seat = self._authorize(session, request.session_token)
        if seat.player_id != session.host_player_id:
            raise ServiceError(ErrorCode.NOT_HOST, "Only the host can start the game", 403)

        try:
            game_state = shuffle_and_deal_cards(session.game_state)
        except ValueError as e:
            raise ServiceError(ErrorCode.GAME_ALREADY_STARTED, str(e), 409)

        turn_state = self.controller.start_turn(game_state)
        session = self._update(session, game_state, turn_state, expected_version=session.version)
        logger.info("Game {} started", game_id)
        return self._snapshot(session)

    # =========================================================================
    # Reading
    # =========================================================================

    def get_snapshot(self, game_id: str) -> GameSnapshotResponse:
        return self._snapshot(self._require(game_id))

    def list_games(self) -> GameListResponse:
        games = [
            GameSummary(
                game_id=s.game_id,
                phase=s.game_state.phase.value,
                player_names=[p.name for p in s.game_state.players],
                seats_taken=len(s.seats),
                capacity=s.capacity,
                created_at=s.created_at,
                updated_at=s.updated_at,
            )
            for s in self.store.list()
        ]
        return GameListResponse(games=games, count=len(games))

    def get_moves(
        self,
        game_id: str,
        player_id: str,
        card_id: str,
        steps: int | None = None,
        direction: str | None = None,
        is_second_move: bool = False,
        first_move_peg_id: str | None = None,
    ) -> MovesResponse:
        session = self._require(game_id)
        modifiers = None
        if steps is not None or direction is not None or is_second_move:
            modifiers = MoveModifiers(
                steps=steps,
                direction=Direction(direction) if direction else None,
                is_second_move=is_second_move,
                first_move_peg_id=first_move_peg_id,
            )
        moves = get_possible_moves(session.game_state, player_id, card_id, modifiers)
        return MovesResponse(
            game_id=game_id,
            player_id=player_id,
            card_id=card_id,
            moves=[MoveInfo(**m.to_dict()) for m in moves],
        )

    # =========================================================================
    # Playing
    # =========================================================================

    def submit_event(self, game_id: str, request: TurnEventRequest) -> TurnEventResponse:
        session = self._require(game_id)
        seat = self._authorize(session, request.session_token)

        if not session.is_started:
            raise ServiceError(ErrorCode.GAME_NOT_STARTED, "The game has not started yet", 409)
        current = session.game_state.current_player
        if seat.player_id != current.player_id:
            raise ServiceError(
                ErrorCode.NOT_YOUR_TURN,
                f"It is {current.name}'s turn",
                403,
                details={"current_player_id": current.player_id},
            )
        if request.expected_version is not None and request.expected_version != session.version:
            raise ServiceError(
                ErrorCode.VERSION_CONFLICT,
                "The game has changed; refresh and try again",
                409,
                details={"version": session.version},
            )

        event = TurnEvent(
            event_type=TurnEventType(request.event_type.value),
            card_id=request.card_id,
            split=request.split,
            direction=Direction(request.direction.value) if request.direction else None,
            steps=request.steps,
            peg_id=request.peg_id,
            space_id=request.space_id,
            enter_castle=request.enter_castle,
        )
        result = self.controller.handle(session.game_state, session.turn_state, event)
        if not result.success:
            raise ServiceError(
                ErrorCode.INVALID_EVENT,
                result.error or "Event rejected",
                400,
                details={"reason": result.error_code},
            )

        session = self._update(
            session, result.new_state, result.turn_state, expected_version=session.version
        )
        return TurnEventResponse(
            success=True,
            message=result.message,
            bump_message=result.bump_message,
            turn_ended=result.turn_ended,
            game_over=result.game_over,
            snapshot=self._snapshot(session),
        )

    def delete_game(self, game_id: str) -> DeleteGameResponse:
        return DeleteGameResponse(success=self.store.delete(game_id), game_id=game_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require(self, game_id: str) -> GameSession:
        try:
            return self.store.require(game_id)
        except GameNotFoundError as e:
            raise ServiceError(ErrorCode.GAME_NOT_FOUND, str(e), 404)

    def _claim(self, session: GameSession, player_name: str) -> SeatClaim:
        try:
            return session.claim_seat(player_name)
        except SeatError as e:
            error_code, status = _SEAT_ERROR_CODES.get(e.code, (ErrorCode.VALIDATION_ERROR, 400))
            raise ServiceError(error_code, str(e), status)

    def _authorize(self, session: GameSession, session_token: str | None) -> SeatClaim:
        seat = session.seat_for_token(session_token)
        if seat is None:
            raise ServiceError(
                ErrorCode.INVALID_SESSION_TOKEN, "Invalid session token for this game", 401
            )
        return seat

    def _update(
        self,
        session: GameSession,
        game_state: GameState,
        turn_state: TurnState,
        expected_version: int,
    ) -> GameSession:
        try:
            return self.store.update(
                session.game_id, game_state, turn_state, expected_version=expected_version
            )
        except VersionConflictError as e:
            raise ServiceError(ErrorCode.VERSION_CONFLICT, str(e), 409)
        except GameNotFoundError as e:
            raise ServiceError(ErrorCode.GAME_NOT_FOUND, str(e), 404)

    def _snapshot(self, session: GameSession) -> GameSnapshotResponse:
        return GameSnapshotResponse(
            game_id=session.game_id,
            version=session.version,
            phase=session.game_state.phase.value,
            seats=[SeatInfo(player_id=s.player_id, name=s.name) for s in session.seats],
            host_player_id=session.host_player_id,
            game_state=GameStateInfo.model_validate(session.game_state.to_dict()),
            turn_state=session.turn_state.to_dict(),
            updated_at=session.updated_at,
        )

    def _seat_response(self, session: GameSession, seat: SeatClaim) -> SeatResponse:
        return SeatResponse(
            game_id=session.game_id,
            player_id=seat.player_id,
            session_token=seat.session_token,
            snapshot=self._snapshot(session),
        )
