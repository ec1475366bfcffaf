"""
Bot Policy - Interface for bot decision-making.

A BotPolicy looks at the game, the turn in progress and the events the
turn controller currently accepts, and picks one of them. Bots go through
exactly the same state machine as human players.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING
import random

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.turn_controller import TurnEvent, TurnState


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The event to feed to the turn controller
    - Explanation (for logs/debugging)
    - Confidence in the decision
    """
    event: TurnEvent
    explanation: str = ""
    confidence: float = 1.0
    evaluated_events: int = 0


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    Implementations can range from random play to heuristics.
    """

    @abstractmethod
    def select_event(
        self,
        state: GameState,
        turn: TurnState,
        legal_events: list[TurnEvent],
    ) -> BotDecision:
        """
        Select an event from the legal events.

        Args:
            state: Current game state
            turn: Turn in progress
            legal_events: Events the turn controller accepts right now

        Returns:
            BotDecision with the selected event
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - selects events uniformly at random.

    Used for:
    - Testing
    - Simulations
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_event(
        self,
        state: GameState,
        turn: TurnState,
        legal_events: list[TurnEvent],
    ) -> BotDecision:
        if not legal_events:
            raise ValueError("No legal events available")

        event = self.rng.choice(legal_events)
        return BotDecision(
            event=event,
            explanation="Selected randomly",
            confidence=1.0 / len(legal_events),
            evaluated_events=len(legal_events),
        )


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - always selects the first legal event.

    Used for deterministic testing.
    """

    def select_event(
        self,
        state: GameState,
        turn: TurnState,
        legal_events: list[TurnEvent],
    ) -> BotDecision:
        if not legal_events:
            raise ValueError("No legal events available")

        return BotDecision(
            event=legal_events[0],
            explanation="Selected first legal event",
            evaluated_events=1,
        )
