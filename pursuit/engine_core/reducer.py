"""
Reducer - Commits moves to the game state.

The reducer is the single point where pegs change place.

Design principles:
- Pure function: (state, move) -> new state; the input is never mutated
- Only generated moves may be applied; anything else is a caller bug
  and raises EngineInvariantError
- Captures happen here: other players' pegs on the landing track space
  go back to their owners' homes
"""

from __future__ import annotations
from dataclasses import dataclass

from loguru import logger

from .errors import EngineInvariantError
from .move import Move, MoveOutcome
from .move_generator import get_possible_moves
from .state import GamePhase, GameState, Player, assert_invariants


@dataclass
class Reducer:
    """
    Applies moves to game state.

    Stateless - all state is in GameState.
    """

    def apply(self, state: GameState, move: Move) -> MoveOutcome:
        self._validate_move(state, move)

        new_state = state.clone()
        board = new_state.board
        mover = new_state.get_player(move.player_id)
        dest = board.spaces[move.destination]

        victims: list[tuple[Player, str]] = []
        if dest.is_track:
            for peg_id in list(dest.pegs):
                if peg_id in mover.peg_ids:
                    continue
                owner = new_state.owner_of_peg(peg_id)
                home = board.home_for_section(owner.section_index)
                board.move_peg(peg_id, home.space_id)
                victims.append((owner, peg_id))

        board.move_peg(move.peg_id, dest.space_id)

        if not move.is_first_split_leg:
            card = mover.get_card(move.card_id)
            mover.hand.remove(card)
            new_state.discard_pile.append(card)

        new_state.version += 1
        assert_invariants(new_state)

        logger.debug(
            "{} moved {} {} -> {} ({})",
            mover.player_id, move.peg_id, move.from_space_id, dest.space_id, move.kind,
        )
        bump_message = self._bump_message(mover, victims)
        if bump_message:
            logger.info(bump_message)

        return MoveOutcome(
            new_state=new_state,
            bump_message=bump_message,
            bumped_peg_ids=[peg_id for _, peg_id in victims],
        )

    def _validate_move(self, state: GameState, move: Move):
        """Raise unless `move` is one of the moves the generator would offer."""
        if state.phase != GamePhase.PLAYING:
            raise EngineInvariantError(f"Cannot apply a move in phase {state.phase.value}")

        destination = move.destination
        candidates = get_possible_moves(state, move.player_id, move.card_id, move.modifiers)
        for candidate in candidates:
            if (
                candidate.peg_id == move.peg_id
                and candidate.metadata == move.metadata
                and destination in candidate.destinations
            ):
                return
        raise EngineInvariantError(
            f"{move.kind} move of {move.peg_id} to {destination} with {move.card_id} "
            f"is not a legal move for {move.player_id}"
        )

    def _bump_message(self, mover: Player, victims: list[tuple[Player, str]]) -> str | None:
        if not victims:
            return None
        counts: dict[str, int] = {}
        for owner, _ in victims:
            counts[owner.name] = counts.get(owner.name, 0) + 1
        parts = [
            f"{name}'s peg" if n == 1 else f"{n} of {name}'s pegs"
            for name, n in counts.items()
        ]
        return f"{mover.name} bumped {' and '.join(parts)} back home!"


def apply_move(state: GameState, move: Move) -> MoveOutcome:
    """Convenience function to apply a move."""
    return Reducer().apply(state, move)


def discard_card(state: GameState, player_id: str, card_id: str) -> GameState:
    """Move one card from a player's hand to the discard pile."""
    player = state.get_player(player_id)
    if player is None or not player.has_card(card_id):
        return state
    new_state = state.clone()
    player = new_state.get_player(player_id)
    card = player.get_card(card_id)
    player.hand.remove(card)
    new_state.discard_pile.append(card)
    new_state.version += 1
    return new_state
