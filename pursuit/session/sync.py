"""
Snapshot sync - Keeps a client copy of a hosted game up to date.

The server is authoritative. Clients poll for the latest snapshot and
replace their local state wholesale whenever the stored version moves on;
no rule logic runs here.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable
import threading

import httpx
from loguru import logger

from ..engine_core.state import GameState
from ..engine_core.turn_controller import TurnState


@dataclass
class GameSnapshot:
    game_id: str
    version: int
    game_state: GameState
    turn_state: TurnState

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GameSnapshot:
        return cls(
            game_id=payload["game_id"],
            version=payload["version"],
            game_state=GameState.from_dict(payload["game_state"]),
            turn_state=TurnState.from_dict(payload["turn_state"]),
        )


class HttpSnapshotSource:
    """Fetches the snapshot payload of one game from the HTTP API."""

    def __init__(
        self,
        base_url: str,
        game_id: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.game_id = game_id
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/v1/games/{self.game_id}"

    def __call__(self) -> dict[str, Any] | None:
        """Latest payload, or None when the server could not be reached."""
        try:
            resp = self._client.get(self.url)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            logger.warning("Snapshot fetch failed for {}: {}", self.game_id, e)
            return None

    def close(self):
        self._client.close()


class SnapshotPoller:
    """
    Polls a snapshot source and hands newer snapshots to a callback.

    Usage:
        poller = SnapshotPoller(HttpSnapshotSource(url, game_id), render)
        poller.poll_once()            # or
        poller.run(stop_event)        # blocks until stop_event is set
    """

    def __init__(
        self,
        source: Callable[[], dict[str, Any] | None],
        on_snapshot: Callable[[GameSnapshot], None],
        interval: float = 1.0,
    ):
        self.source = source
        self.on_snapshot = on_snapshot
        self.interval = interval
        self.last_version: int | None = None

    def poll_once(self) -> bool:
        """Fetch once; returns True if a newer snapshot was delivered."""
        payload = self.source()
        if payload is None:
            return False
        version = payload.get("version")
        if version is not None and version == self.last_version:
            return False

        snapshot = GameSnapshot.from_payload(payload)
        self.last_version = snapshot.version
        self.on_snapshot(snapshot)
        return True

    def run(self, stop_event: threading.Event, max_polls: int | None = None):
        polls = 0
        while not stop_event.is_set():
            self.poll_once()
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            stop_event.wait(self.interval)
