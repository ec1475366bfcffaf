"""
Pytest fixtures for Pursuit tests.

Positions are arranged on clones of a dealt game: pegs are moved with
`arrange` and hands replaced with `with_hand`. Test cards get ids that
never collide with deck cards (t0-7, t1-king, ...).
"""

import pytest

from ..engine_core.cards import Card, Rank, Suit
from ..engine_core.state import (
    GameState,
    create_initial_game_state,
    shuffle_and_deal_cards,
)


SEED = 1234


def make_card(rank: str, n: int = 0) -> Card:
    """Build a test card from a rank label such as "7", "king" or "joker"."""
    rank_enum = Rank(rank)
    suit = Suit.JOKER if rank_enum == Rank.JOKER else Suit.HEARTS
    return Card(card_id=f"t{n}-{rank}", rank=rank_enum, suit=suit)


def arrange(state: GameState, placements: dict[str, str]) -> GameState:
    """Clone of `state` with the given pegs moved to the given spaces."""
    new_state = state.clone()
    for peg_id, space_id in placements.items():
        new_state.board.move_peg(peg_id, space_id)
    return new_state


def with_hand(state: GameState, player_id: str, ranks: list[str]) -> GameState:
    """Clone of `state` where the player holds exactly these cards."""
    new_state = state.clone()
    player = new_state.get_player(player_id)
    player.hand = [make_card(rank, i) for i, rank in enumerate(ranks)]
    return new_state


def card_id(state: GameState, player_id: str, rank: str) -> str:
    """Id of the first card of `rank` in the player's hand."""
    for card in state.get_player(player_id).hand:
        if card.rank.value == rank:
            return card.card_id
    raise KeyError(f"{player_id} holds no {rank}")


@pytest.fixture
def setup_state() -> GameState:
    """Two players, not yet dealt."""
    return create_initial_game_state(["Alice", "Bob"], game_id="test-game", random_seed=SEED)


@pytest.fixture
def two_player_state(setup_state: GameState) -> GameState:
    """
    Dealt two-player game, Alice to move.

    Alice (player-1) sits at section 0, Bob (player-2) at section 1.
    The track is 36 spaces long; all pegs start at home.
    """
    return shuffle_and_deal_cards(setup_state)


@pytest.fixture
def four_player_state() -> GameState:
    """Dealt four-player team game: players 1 and 3 against 2 and 4."""
    state = create_initial_game_state(
        ["Alice", "Bob", "Cara", "Dan"],
        player_teams={"player-1": 0, "player-2": 1, "player-3": 0, "player-4": 1},
        game_id="team-game",
        random_seed=SEED,
    )
    return shuffle_and_deal_cards(state)
