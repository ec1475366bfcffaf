"""
Game Loop - Plays a game to the end with bot players.

The loop:
1. Ask the turn controller which events are legal right now
2. Let the seated bot pick one
3. Feed it to the turn controller
4. Repeat until someone wins or the event budget runs out

Used by the CLI simulator and by tests that exercise whole games.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from ..engine_core.state import GameState
from ..engine_core.turn_controller import TurnController, TurnState, legal_events

if TYPE_CHECKING:
    from ..bots.policy import BotPolicy


class LoopState(Enum):
    """State of the game loop."""
    RUNNING = "running"
    GAME_OVER = "game_over"
    STALLED = "stalled"  # no legal event for the player to move
    OUT_OF_EVENTS = "out_of_events"


@dataclass
class LoopResult:
    """Summary of a finished (or abandoned) loop run."""
    loop_state: LoopState
    final_state: GameState
    turn_state: TurnState
    events_applied: int = 0
    turns_played: int = 0
    winner: int | None = None
    bump_messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class GameLoop:
    """
    Drives a dealt game with one policy per player.

    Usage:
        loop = GameLoop(state, {"player-1": RandomPolicy(1), "player-2": FirstLegalPolicy()})
        result = loop.run(max_events=5000)
    """

    def __init__(self, state: GameState, policies: dict[str, BotPolicy]):
        self.state = state
        self.policies = policies
        self.controller = TurnController()
        self.turn_state = self.controller.start_turn(state)
        self.loop_state = LoopState.RUNNING

    def step(self) -> tuple[bool, str | None]:
        """
        Apply one bot decision.

        Returns (progressed, bump_message).
        """
        player_id = self.state.current_player.player_id
        policy = self.policies.get(player_id)
        if policy is None:
            raise KeyError(f"No policy seated for {player_id}")

        events = legal_events(self.state, self.turn_state)
        if not events:
            self.loop_state = LoopState.STALLED
            return False, None

        decision = policy.select_event(self.state, self.turn_state, events)
        result = self.controller.handle(self.state, self.turn_state, decision.event)
        if not result.success:
            # Legal events are always accepted; a failure means a policy bug
            self.loop_state = LoopState.STALLED
            logger.warning("{} chose a rejected event: {}", policy.get_name(), result.error)
            return False, None

        self.state = result.new_state
        self.turn_state = result.turn_state
        if result.game_over:
            self.loop_state = LoopState.GAME_OVER
        return True, result.bump_message

    def run(self, max_events: int = 10_000) -> LoopResult:
        events_applied = 0
        bumps: list[str] = []
        errors: list[str] = []
        start_turn = self.state.turn_number

        while self.loop_state == LoopState.RUNNING:
            if events_applied >= max_events:
                self.loop_state = LoopState.OUT_OF_EVENTS
                break
            progressed, bump = self.step()
            if not progressed:
                errors.append(f"Stalled on turn {self.state.turn_number}")
                break
            events_applied += 1
            if bump:
                bumps.append(bump)

        logger.info(
            "Loop finished: {} after {} events, winner={}",
            self.loop_state.value, events_applied, self.state.winner,
        )
        return LoopResult(
            loop_state=self.loop_state,
            final_state=self.state,
            turn_state=self.turn_state,
            events_applied=events_applied,
            turns_played=self.state.turn_number - start_turn,
            winner=self.state.winner,
            bump_messages=bumps,
            errors=errors,
        )
