"""
Move Generator - Enumerates the legal moves for a card.

Given a state, a player and a card in that player's hand, produce every
candidate move. Generation is pure and never raises: anything that does
not make sense (unknown player, card not held, game not running, bad
split modifiers) simply yields no moves.

Card behaviour:
- Ace, J, Q, K: bring a peg out of home, or move forward 1 (ace) / 10 (face)
- 2, 3, 5, 6, 8, 10: move forward that many spaces
- 4: move backward 4 along the track
- 7: forward 7, or split 1..6 / remainder between two pegs, both forward
- 9: forward 9, or split 1..8 / remainder, the two legs in opposite directions
- Joker: jump onto any track space holding another player's peg

A forward move that passes its owner's entrance may turn into the castle.
The regular track destination and the castle destination are offered as
separate candidates; choosing between them is the turn controller's job.
"""

from __future__ import annotations
from dataclasses import dataclass

from loguru import logger

from .board import CASTLE_SIZE, Direction, Space, SpaceType
from .cards import HOME_EXIT_RANKS, Card, Rank
from .move import (
    Advance,
    CastleEntry,
    HomeExit,
    JokerCapture,
    Move,
    MoveMetadata,
    MoveModifiers,
    SplitFirstLeg,
    SplitSecondLeg,
)
from .state import GamePhase, GameState, Player


SPLIT_FIRST_LEG_RANGE = {Rank.SEVEN: range(1, 7), Rank.NINE: range(1, 9)}

# Jokers never land on corners
JOKER_TARGET_TYPES = frozenset({SpaceType.NORMAL, SpaceType.ENTRANCE})


@dataclass
class _Plan:
    """How a card moves pegs once split modifiers are resolved."""
    steps: int
    direction: Direction
    leg: SplitFirstLeg | SplitSecondLeg | None = None
    allow_home_exit: bool = False
    exclude_peg_id: str | None = None
    track_only: bool = False  # second legs cannot use pegs in home or castle


@dataclass
class MoveGenerator:
    """
    Generates candidate moves for the current board.

    Stateless apart from the state it reads.
    """
    state: GameState

    def generate(
        self,
        player_id: str,
        card_id: str,
        modifiers: MoveModifiers | None = None,
    ) -> list[Move]:
        state = self.state
        if state.phase != GamePhase.PLAYING:
            return []

        player = state.get_player(player_id)
        if player is None:
            return []
        card = player.get_card(card_id)
        if card is None:
            return []

        if card.is_joker:
            moves = self._joker_moves(player, card, modifiers)
        else:
            plan = self._plan(card, modifiers)
            if plan is None:
                return []
            moves = []
            for peg_id in player.peg_ids:
                if peg_id == plan.exclude_peg_id:
                    continue
                moves.extend(self._moves_for_peg(player, card, peg_id, plan, modifiers))

        logger.debug(
            "{} candidate move(s) for {} playing {}", len(moves), player_id, card_id
        )
        return moves

    # -------------------------------------------------------------------------
    # Card interpretation
    # -------------------------------------------------------------------------

    def _plan(self, card: Card, modifiers: MoveModifiers | None) -> _Plan | None:
        """Resolve a card plus modifiers into a movement plan, or None if invalid."""
        modifiers = modifiers or MoveModifiers()

        if not card.is_split:
            if modifiers.is_second_move:
                return None
            direction = Direction.BACKWARD if card.rank == Rank.FOUR else Direction.FORWARD
            return _Plan(
                steps=card.value,
                direction=direction,
                allow_home_exit=card.rank in HOME_EXIT_RANKS,
            )

        legal_steps = SPLIT_FIRST_LEG_RANGE[card.rank]
        direction = modifiers.direction or Direction.FORWARD
        if card.rank == Rank.SEVEN:
            direction = Direction.FORWARD

        if modifiers.is_second_move:
            if modifiers.steps not in legal_steps:
                return None
            return _Plan(
                steps=modifiers.steps,
                direction=direction,
                leg=SplitSecondLeg(
                    rank=card.rank.value,
                    steps=modifiers.steps,
                    direction=direction,
                    first_peg_id=modifiers.first_move_peg_id,
                ),
                exclude_peg_id=modifiers.first_move_peg_id,
                track_only=True,
            )

        if modifiers.steps is None or modifiers.steps == card.value:
            return _Plan(steps=card.value, direction=Direction.FORWARD)

        if modifiers.steps not in legal_steps:
            return None
        return _Plan(
            steps=modifiers.steps,
            direction=direction,
            leg=SplitFirstLeg(rank=card.rank.value, steps=modifiers.steps, direction=direction),
        )

    # -------------------------------------------------------------------------
    # Per-peg generation
    # -------------------------------------------------------------------------

    def _moves_for_peg(
        self,
        player: Player,
        card: Card,
        peg_id: str,
        plan: _Plan,
        modifiers: MoveModifiers | None,
    ) -> list[Move]:
        space = self.state.board.space_for_peg(peg_id)
        if space is None:
            return []

        def make(dest: Space, metadata: MoveMetadata) -> Move:
            return Move(
                player_id=player.player_id,
                card_id=card.card_id,
                peg_id=peg_id,
                from_space_id=space.space_id,
                destinations=[dest.space_id],
                metadata=metadata,
                modifiers=modifiers,
            )

        plain = plan.leg or Advance(steps=plan.steps, direction=plan.direction)

        if space.space_type == SpaceType.HOME:
            if not plan.allow_home_exit or plan.track_only:
                return []
            start = self.state.board.start_for_section(player.section_index)
            if start is None or self._has_own_peg(player, start):
                return []
            return [make(start, HomeExit())]

        if space.space_type == SpaceType.CASTLE:
            if plan.track_only or plan.direction != Direction.FORWARD:
                return []
            dest = self._castle_advance(player, space, plan.steps)
            return [make(dest, plain)] if dest else []

        moves = []
        dest = self._track_destination(player, space, plan.steps, plan.direction)
        if dest is not None:
            moves.append(make(dest, plain))

        if plan.direction == Direction.FORWARD:
            entry = self._castle_entry(player, space, plan.steps)
            if entry is not None:
                castle, castle_index = entry
                moves.append(make(castle, CastleEntry(
                    steps=plan.steps,
                    castle_index=castle_index,
                    split=plan.leg,
                )))
        return moves

    def _has_own_peg(self, player: Player, space: Space) -> bool:
        return any(peg_id in player.peg_ids for peg_id in space.pegs)

    def _track_destination(
        self, player: Player, space: Space, steps: int, direction: Direction
    ) -> Space | None:
        """Landing space after moving along the track, or None if blocked."""
        board = self.state.board
        path = board.walk(space.space_id, steps, direction)
        if not path:
            return None
        for space_id in path:
            if self._has_own_peg(player, board.spaces[space_id]):
                return None
        return board.spaces[path[-1]]

    def _castle_entry(self, player: Player, space: Space, steps: int) -> tuple[Space, int] | None:
        """
        Castle space reached by turning in at the player's entrance.

        castle_steps = steps - steps_to_entrance - 1, valid in 0..CASTLE_SIZE-1.
        """
        board = self.state.board
        entrance = board.entrance_for_section(player.section_index)
        if entrance is None:
            return None
        steps_to_entrance = board.forward_distance(space.space_id, entrance.space_id)
        if steps_to_entrance is None:
            return None

        castle_steps = steps - steps_to_entrance - 1
        if not 0 <= castle_steps < CASTLE_SIZE:
            return None

        for space_id in board.walk(space.space_id, steps_to_entrance, Direction.FORWARD):
            if self._has_own_peg(player, board.spaces[space_id]):
                return None
        for i in range(castle_steps + 1):
            slot = board.castle_space(player.section_index, i)
            if slot is None or slot.pegs:
                return None
        return board.castle_space(player.section_index, castle_steps), castle_steps

    def _castle_advance(self, player: Player, space: Space, steps: int) -> Space | None:
        """Move deeper into the castle by exactly `steps`."""
        board = self.state.board
        target = space.index + steps
        if steps <= 0 or target >= CASTLE_SIZE:
            return None
        for i in range(space.index + 1, target + 1):
            slot = board.castle_space(player.section_index, i)
            if slot is None or slot.pegs:
                return None
        return board.castle_space(player.section_index, target)

    # -------------------------------------------------------------------------
    # Joker
    # -------------------------------------------------------------------------

    def _joker_moves(
        self, player: Player, card: Card, modifiers: MoveModifiers | None
    ) -> list[Move]:
        if modifiers is not None and modifiers.is_second_move:
            return []

        targets = [
            space for space in self.state.board.occupied_track_spaces()
            if space.space_type in JOKER_TARGET_TYPES
            and any(peg_id not in player.peg_ids for peg_id in space.pegs)
        ]
        if not targets:
            return []

        moves = []
        for peg_id in player.peg_ids:
            space = self.state.board.space_for_peg(peg_id)
            if space is None or space.space_type == SpaceType.CASTLE:
                continue
            destinations = [t.space_id for t in targets if t.space_id != space.space_id]
            if not destinations:
                continue
            moves.append(Move(
                player_id=player.player_id,
                card_id=card.card_id,
                peg_id=peg_id,
                from_space_id=space.space_id,
                destinations=destinations,
                metadata=JokerCapture(),
                modifiers=modifiers,
            ))
        return moves


def get_possible_moves(
    state: GameState,
    player_id: str,
    card_id: str,
    modifiers: MoveModifiers | None = None,
) -> list[Move]:
    """Convenience function to generate candidate moves."""
    return MoveGenerator(state).generate(player_id, card_id, modifiers)


def split_first_leg_options(card: Card) -> list[MoveModifiers]:
    """Every (steps, direction) choice for the first half of a split card."""
    if not card.is_split:
        return []
    directions = [Direction.FORWARD]
    if card.rank == Rank.NINE:
        directions.append(Direction.BACKWARD)
    return [
        MoveModifiers(steps=steps, direction=direction)
        for direction in directions
        for steps in SPLIT_FIRST_LEG_RANGE[card.rank]
    ]


def has_any_legal_move(state: GameState, player_id: str) -> bool:
    """Whether any card in the player's hand can move any peg."""
    player = state.get_player(player_id)
    if player is None:
        return False
    generator = MoveGenerator(state)
    for card in player.hand:
        if generator.generate(player_id, card.card_id):
            return True
        for modifiers in split_first_leg_options(card):
            if generator.generate(player_id, card.card_id, modifiers):
                return True
    return False


def movable_peg_ids(moves: list[Move]) -> list[str]:
    """Distinct peg ids in generation order."""
    seen: list[str] = []
    for move in moves:
        if move.peg_id not in seen:
            seen.append(move.peg_id)
    return seen
