"""
Engine Core - Deterministic rules engine.

The engine:
1. Builds the board and deals cards (state)
2. Generates candidate moves for a card (move_generator)
3. Applies a chosen move, bumping opponents (reducer)
4. Detects a filled castle (victory)
5. Walks a turn through card, split and castle choices (turn_controller)

Nothing here performs I/O; every operation returns new state.
"""

from .board import Board, Direction, Section, Space, SpaceType
from .cards import Card, Rank, Suit, build_deck
from .errors import EngineInvariantError
from .move import (
    Advance,
    CastleEntry,
    HomeExit,
    JokerCapture,
    Move,
    MoveModifiers,
    MoveOutcome,
    SplitFirstLeg,
    SplitSecondLeg,
)
from .move_generator import MoveGenerator, get_possible_moves, has_any_legal_move
from .reducer import Reducer, apply_move, discard_card
from .state import (
    GamePhase,
    GameState,
    Player,
    advance_to_next_player,
    assert_invariants,
    create_initial_game_state,
    shuffle_and_deal_cards,
)
from .turn_controller import (
    CastlePrompt,
    TurnController,
    TurnEvent,
    TurnEventType,
    TurnResult,
    TurnStage,
    TurnState,
    can_discard_hand,
    legal_events,
)
from .victory import check_winner, is_game_over

__all__ = [
    "Board",
    "Direction",
    "Section",
    "Space",
    "SpaceType",
    "Card",
    "Rank",
    "Suit",
    "build_deck",
    "EngineInvariantError",
    "Advance",
    "CastleEntry",
    "HomeExit",
    "JokerCapture",
    "Move",
    "MoveModifiers",
    "MoveOutcome",
    "SplitFirstLeg",
    "SplitSecondLeg",
    "MoveGenerator",
    "get_possible_moves",
    "has_any_legal_move",
    "Reducer",
    "apply_move",
    "discard_card",
    "GamePhase",
    "GameState",
    "Player",
    "advance_to_next_player",
    "assert_invariants",
    "create_initial_game_state",
    "shuffle_and_deal_cards",
    "CastlePrompt",
    "TurnController",
    "TurnEvent",
    "TurnEventType",
    "TurnResult",
    "TurnStage",
    "TurnState",
    "can_discard_hand",
    "legal_events",
    "check_winner",
    "is_game_over",
]
