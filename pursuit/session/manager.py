"""
Game Store - In-memory storage for hosted games.

LIFECYCLE:
1. Host creates a game -> stored with the host holding seat 1
2. Other players join -> each claims a seat and gets a session token
3. Host starts the game -> cards are dealt
4. Every accepted turn event replaces the stored state
5. Games idle longer than the TTL are purged on the next store access

PERSISTENCE RULES:
- NO database; games live in process memory only
- Each stored game carries a version; writers may pass the version they
  read and lose with VersionConflictError if someone else wrote first
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import threading
import time
import uuid

from loguru import logger

from ..config import settings
from ..engine_core.state import GamePhase, GameState
from ..engine_core.turn_controller import TurnState


class GameNotFoundError(LookupError):
    """No stored game with that id (never existed, deleted or expired)."""


class VersionConflictError(RuntimeError):
    """The stored game changed since the caller read it."""


class SeatError(ValueError):
    """A join request that cannot be honoured."""

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


@dataclass
class SeatClaim:
    """A player slot taken by a connected client."""
    player_id: str
    name: str
    session_token: str


@dataclass
class GameSession:
    """
    A hosted game.

    Holds the authoritative GameState plus the turn in progress and the
    roster of claimed seats.
    """
    game_id: str
    game_state: GameState
    turn_state: TurnState = field(default_factory=TurnState)
    seats: list[SeatClaim] = field(default_factory=list)
    host_player_id: str | None = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    version: int = 0

    @property
    def is_started(self) -> bool:
        return self.game_state.phase in (GamePhase.PLAYING, GamePhase.GAME_OVER)

    @property
    def capacity(self) -> int:
        return self.game_state.num_players

    @property
    def is_full(self) -> bool:
        return len(self.seats) >= self.capacity

    def seat_for_token(self, session_token: str | None) -> SeatClaim | None:
        if not session_token:
            return None
        for seat in self.seats:
            if seat.session_token == session_token:
                return seat
        return None

    def claim_seat(self, player_name: str) -> SeatClaim:
        """
        Claim the seat configured for `player_name`, or the next free one.

        Raises:
            SeatError: game already started, name taken, or no seat left.
        """
        name = player_name.strip()
        if not name:
            raise SeatError("Player name must not be blank", "VALIDATION_ERROR")
        if self.is_started:
            raise SeatError("Game has already started", "GAME_ALREADY_STARTED")
        if any(seat.name.lower() == name.lower() for seat in self.seats):
            raise SeatError("Player name already taken", "NAME_TAKEN")
        if self.is_full:
            raise SeatError("Game is full", "GAME_FULL")

        claimed = {seat.player_id for seat in self.seats}
        free = [p for p in self.game_state.players if p.player_id not in claimed]
        player = next((p for p in free if p.name.lower() == name.lower()), free[0])

        seat = SeatClaim(player_id=player.player_id, name=name, session_token=uuid.uuid4().hex)
        self.seats.append(seat)
        return seat


class GameStore:
    """
    Stores hosted games.

    Responsibilities:
    - Keep games by id
    - Evict games that have been idle for longer than the TTL
    - Reject stale writes

    No persistence - games are in-memory only.
    """

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._games: dict[str, GameSession] = {}
        self._lock = threading.RLock()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SESSION_TTL_SECONDS
        self._clock = clock

    def get(self, game_id: str) -> GameSession | None:
        with self._lock:
            self.purge_expired()
            return self._games.get(game_id)

    def require(self, game_id: str) -> GameSession:
        session = self.get(game_id)
        if session is None:
            raise GameNotFoundError(f"Game {game_id} not found")
        return session

    def create(self, session: GameSession) -> GameSession:
        with self._lock:
            self.purge_expired()
            now = self._clock()
            session.created_at = now
            session.updated_at = now
            self._games[session.game_id] = session
            logger.info("Created game {} for {} players", session.game_id, session.capacity)
            return session

    def update(
        self,
        game_id: str,
        game_state: GameState,
        turn_state: TurnState | None = None,
        expected_version: int | None = None,
    ) -> GameSession:
        """
        Replace the stored state of a game.

        Raises:
            GameNotFoundError: unknown or expired game
            VersionConflictError: `expected_version` no longer matches
        """
        with self._lock:
            session = self.require(game_id)
            if expected_version is not None and expected_version != session.version:
                raise VersionConflictError(
                    f"Game {game_id} is at version {session.version}, not {expected_version}"
                )
            session.game_state = game_state
            if turn_state is not None:
                session.turn_state = turn_state
            session.version += 1
            session.updated_at = self._clock()
            return session

    def touch(self, game_id: str) -> GameSession:
        """Record activity on a game without changing its state (e.g. a join)."""
        with self._lock:
            session = self.require(game_id)
            session.version += 1
            session.updated_at = self._clock()
            return session

    def delete(self, game_id: str) -> bool:
        with self._lock:
            removed = self._games.pop(game_id, None)
            if removed is not None:
                logger.info("Deleted game {}", game_id)
            return removed is not None

    def list(self) -> list[GameSession]:
        with self._lock:
            self.purge_expired()
            return sorted(self._games.values(), key=lambda s: s.created_at, reverse=True)

    def purge_expired(self) -> list[str]:
        """
        Remove games idle for longer than the TTL.

        Called on every store access, so no background task is needed.
        """
        with self._lock:
            cutoff = self._clock() - self.ttl_seconds
            expired = [gid for gid, s in self._games.items() if s.updated_at < cutoff]
            for game_id in expired:
                del self._games[game_id]
                logger.warning("Evicted idle game {}", game_id)
            return expired
