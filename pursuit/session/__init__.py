"""
Session Module - Hosting and replaying games.

- GameStore keeps hosted games in memory and evicts idle ones
- GameLoop plays a game through with bot players
- SnapshotPoller replicates a hosted game to a client

Games are EPHEMERAL: nothing is written to disk.
"""

from .manager import (
    GameNotFoundError,
    GameSession,
    GameStore,
    SeatClaim,
    SeatError,
    VersionConflictError,
)
from .game_loop import GameLoop, LoopResult, LoopState
from .sync import GameSnapshot, HttpSnapshotSource, SnapshotPoller

__all__ = [
    "GameNotFoundError",
    "GameSession",
    "GameStore",
    "SeatClaim",
    "SeatError",
    "VersionConflictError",
    "GameLoop",
    "LoopResult",
    "LoopState",
    "GameSnapshot",
    "HttpSnapshotSource",
    "SnapshotPoller",
]
