"""
Tests for win detection.
"""

from ..engine_core.state import GamePhase
from ..engine_core.victory import check_winner, declare_winner, is_game_over
from .conftest import arrange


FULL_CASTLE = {f"player-1-peg-{n}": f"section-0-castle-{n}" for n in range(1, 5)}


class TestVictory:
    """Tests for castle-based victory."""

    def test_no_winner_at_start(self, two_player_state):
        """Nobody has won at the start."""
        assert check_winner(two_player_state, "player-1") is None
        assert not is_game_over(two_player_state)

    def test_three_pegs_are_not_enough(self, two_player_state):
        """Three castle pegs do not win."""
        placements = dict(FULL_CASTLE)
        placements["player-1-peg-1"] = "section-0-normal-5"
        state = arrange(two_player_state, placements)

        assert check_winner(state, "player-1") is None

    def test_full_castle_wins_for_team(self, two_player_state):
        """Four castle pegs win for the player's team."""
        state = arrange(two_player_state, FULL_CASTLE)

        assert check_winner(state, "player-1") == 0
        assert check_winner(state, "player-2") is None
        assert is_game_over(state)

    def test_unknown_player(self, two_player_state):
        """Unknown players never win."""
        assert check_winner(two_player_state, "player-7") is None

    def test_declare_winner(self, two_player_state):
        """Declaring a winner ends the game."""
        state = declare_winner(two_player_state, 1)

        assert state.phase == GamePhase.GAME_OVER
        assert state.winner == 1
        assert state.version == two_player_state.version + 1
        assert two_player_state.phase == GamePhase.PLAYING
