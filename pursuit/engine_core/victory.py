"""
Victory - Win detection.

A player wins for their team once all four of their pegs sit in their
castle. The check looks at the player who just moved.
"""

from __future__ import annotations

from loguru import logger

from .board import SpaceType
from .state import GamePhase, GameState, Player


def has_all_pegs_in_castle(state: GameState, player: Player) -> bool:
    for peg_id in player.peg_ids:
        space = state.board.space_for_peg(peg_id)
        if space is None or space.space_type != SpaceType.CASTLE:
            return False
    return bool(player.peg_ids)


def check_winner(state: GameState, player_id: str) -> int | None:
    """Winning team id if `player_id` has filled their castle, else None."""
    player = state.get_player(player_id)
    if player is None:
        return None
    if has_all_pegs_in_castle(state, player):
        return player.team_id
    return None


def declare_winner(state: GameState, team_id: int) -> GameState:
    logger.info("Team {} wins game {}", team_id, state.game_id)
    return state._copy_with(
        phase=GamePhase.GAME_OVER,
        winner=team_id,
        version=state.version + 1,
    )


def is_game_over(state: GameState) -> bool:
    if state.phase == GamePhase.GAME_OVER:
        return True
    return any(has_all_pegs_in_castle(state, p) for p in state.players)
