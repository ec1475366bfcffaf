"""
Game State - The canonical state container the engine operates on.

Design principles:
- Immutable-friendly: engine operations return new state, never mutate input
- Serializable: to_dict()/from_dict() round-trip for storage and replication
- Deterministic: shuffles derive from (random_seed, shuffle_count)
"""

from __future__ import annotations
from collections import Counter
from copy import deepcopy
from dataclasses import dataclass, field, replace
from enum import Enum
import random
import uuid

from .board import Board, SpaceType
from .cards import Card, build_deck, decks_for_players
from .errors import EngineInvariantError


HAND_SIZE = 5
PEGS_PER_PLAYER = 4
MIN_PLAYERS = 2
MAX_PLAYERS = 8
MAX_SECTIONS = 8

DEFAULT_COLORS = [
    "#e53935",  # red
    "#1e88e5",  # blue
    "#43a047",  # green
    "#fdd835",  # yellow
    "#8e24aa",  # purple
    "#fb8c00",  # orange
    "#00acc1",  # teal
    "#6d4c41",  # brown
]


class GamePhase(Enum):
    """High-level game phases."""
    WELCOME = "welcome"
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


def peg_id_for(player_id: str, n: int) -> str:
    return f"{player_id}-peg-{n}"


@dataclass
class Player:
    player_id: str
    name: str
    team_id: int
    section_index: int
    color: str = DEFAULT_COLORS[0]
    hand: list[Card] = field(default_factory=list)
    peg_ids: list[str] = field(default_factory=list)

    def get_card(self, card_id: str) -> Card | None:
        for card in self.hand:
            if card.card_id == card_id:
                return card
        return None

    def has_card(self, card_id: str) -> bool:
        return self.get_card(card_id) is not None

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "team_id": self.team_id,
            "section_index": self.section_index,
            "color": self.color,
            "hand": [c.to_dict() for c in self.hand],
            "peg_ids": list(self.peg_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Player:
        return cls(
            player_id=data["player_id"],
            name=data["name"],
            team_id=data["team_id"],
            section_index=data["section_index"],
            color=data.get("color", DEFAULT_COLORS[0]),
            hand=[Card.from_dict(c) for c in data.get("hand", [])],
            peg_ids=list(data.get("peg_ids", [])),
        )


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    All changes go through the engine (reducer, turn controller); callers
    hold on to the previous value if they need it.
    """
    game_id: str = ""
    phase: GamePhase = GamePhase.WELCOME

    players: list[Player] = field(default_factory=list)
    current_player_idx: int = 0
    turn_number: int = 0

    draw_pile: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)

    board: Board = field(default_factory=Board)

    # Winning team, set when the phase becomes GAME_OVER
    winner: int | None = None

    # Determinism
    random_seed: int = 0
    shuffle_count: int = 0

    # Bumped on every committed change, used for optimistic concurrency
    version: int = 0

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_idx]

    @property
    def num_players(self) -> int:
        return len(self.players)

    def get_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def owner_of_peg(self, peg_id: str) -> Player | None:
        for p in self.players:
            if peg_id in p.peg_ids:
                return p
        return None

    def _copy_with(self, **kwargs) -> GameState:
        """Create a shallow copy with some fields replaced."""
        return replace(self, **kwargs)

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    def rng(self) -> random.Random:
        """Random source for the next shuffle."""
        return random.Random(f"{self.random_seed}:{self.shuffle_count}")

    def to_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "phase": self.phase.value,
            "players": [p.to_dict() for p in self.players],
            "current_player_idx": self.current_player_idx,
            "turn_number": self.turn_number,
            "draw_pile": [c.to_dict() for c in self.draw_pile],
            "discard_pile": [c.to_dict() for c in self.discard_pile],
            "board": self.board.to_dict(),
            "winner": self.winner,
            "random_seed": self.random_seed,
            "shuffle_count": self.shuffle_count,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> GameState:
        return cls(
            game_id=data["game_id"],
            phase=GamePhase(data["phase"]),
            players=[Player.from_dict(p) for p in data["players"]],
            current_player_idx=data.get("current_player_idx", 0),
            turn_number=data.get("turn_number", 0),
            draw_pile=[Card.from_dict(c) for c in data.get("draw_pile", [])],
            discard_pile=[Card.from_dict(c) for c in data.get("discard_pile", [])],
            board=Board.from_dict(data["board"]),
            winner=data.get("winner"),
            random_seed=data.get("random_seed", 0),
            shuffle_count=data.get("shuffle_count", 0),
            version=data.get("version", 0),
        )


# =============================================================================
# Factory
# =============================================================================

def create_initial_game_state(
    player_names: list[str],
    player_teams: dict[str, int] | None = None,
    num_sections: int | None = None,
    player_colors: dict[str, str] | None = None,
    game_id: str | None = None,
    random_seed: int | None = None,
) -> GameState:
    """
    Build a fresh game in the SETUP phase.

    Players get ids player-1, player-2, ... in the order of `player_names`;
    `player_teams` and `player_colors` are keyed by those ids. Players
    without a team entry play on their own team, players without a colour
    get one from the default palette. Seats are spread evenly around the
    board when there are more sections than players.

    Raises:
        ValueError: on an invalid player count, section count or name.
    """
    if not MIN_PLAYERS <= len(player_names) <= MAX_PLAYERS:
        raise ValueError(f"Need {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(player_names)}")
    if any(not name or not name.strip() for name in player_names):
        raise ValueError("Player names must not be blank")

    num_players = len(player_names)
    if num_sections is None:
        num_sections = num_players
    if not num_players <= num_sections <= MAX_SECTIONS:
        raise ValueError(
            f"Need between {num_players} and {MAX_SECTIONS} board sections, got {num_sections}"
        )

    player_teams = player_teams or {}
    player_colors = player_colors or {}

    players: list[Player] = []
    seats: dict[int, str] = {}
    for i, name in enumerate(player_names):
        player_id = f"player-{i + 1}"
        section_index = i * num_sections // num_players
        seats[section_index] = player_id
        players.append(Player(
            player_id=player_id,
            name=name.strip(),
            team_id=player_teams.get(player_id, i),
            section_index=section_index,
            color=player_colors.get(player_id, DEFAULT_COLORS[i % len(DEFAULT_COLORS)]),
            peg_ids=[peg_id_for(player_id, n) for n in range(1, PEGS_PER_PLAYER + 1)],
        ))

    board = Board.create(num_sections, seats)
    for player in players:
        home = board.home_for_section(player.section_index)
        for peg_id in player.peg_ids:
            board.place_peg(peg_id, home.space_id)

    return GameState(
        game_id=game_id or str(uuid.uuid4()),
        phase=GamePhase.SETUP,
        players=players,
        draw_pile=build_deck(decks_for_players(num_players)),
        board=board,
        random_seed=random.randrange(1 << 31) if random_seed is None else random_seed,
    )


def shuffle_and_deal_cards(state: GameState) -> GameState:
    """
    Shuffle every card into the draw pile and deal a full hand to each player.

    Raises:
        ValueError: if the game has already started.
    """
    if state.phase not in (GamePhase.WELCOME, GamePhase.SETUP):
        raise ValueError(f"Cannot deal in phase {state.phase.value}")
    if not state.players:
        raise ValueError("Cannot deal without players")

    new_state = state.clone()
    pile = new_state.draw_pile + new_state.discard_pile
    for player in new_state.players:
        pile.extend(player.hand)
        player.hand = []

    new_state.rng().shuffle(pile)
    new_state.shuffle_count += 1
    new_state.discard_pile = []

    for _ in range(HAND_SIZE):
        for player in new_state.players:
            if pile:
                player.hand.append(pile.pop(0))
    new_state.draw_pile = pile

    new_state.phase = GamePhase.PLAYING
    new_state.current_player_idx = 0
    new_state.turn_number = 1
    new_state.version += 1
    return new_state


# =============================================================================
# Cards in play
# =============================================================================

def _draw_into(state: GameState, player: Player, count: int):
    """Draw up to `count` cards in place, recycling the discard pile when empty."""
    for _ in range(count):
        if not state.draw_pile:
            if not state.discard_pile:
                return
            recycled = state.discard_pile
            state.discard_pile = []
            state.rng().shuffle(recycled)
            state.shuffle_count += 1
            state.draw_pile = recycled
        player.hand.append(state.draw_pile.pop(0))


def draw_cards(state: GameState, player_id: str, count: int) -> GameState:
    new_state = state.clone()
    player = new_state.get_player(player_id)
    if player is None or count <= 0:
        return state
    _draw_into(new_state, player, count)
    return new_state


def refill_hand(state: GameState, player_id: str) -> GameState:
    """Top the player's hand back up to HAND_SIZE."""
    player = state.get_player(player_id)
    if player is None:
        return state
    return draw_cards(state, player_id, HAND_SIZE - len(player.hand))


def redraw_hand(state: GameState, player_id: str) -> GameState:
    """Discard the player's whole hand and draw a fresh one."""
    new_state = state.clone()
    player = new_state.get_player(player_id)
    if player is None:
        return state
    new_state.discard_pile.extend(player.hand)
    player.hand = []
    _draw_into(new_state, player, HAND_SIZE)
    return new_state


# =============================================================================
# Turn order
# =============================================================================

def advance_to_next_player(state: GameState) -> GameState:
    """Pass the turn to the next seat, wrapping around."""
    if not state.players:
        return state
    return state._copy_with(
        current_player_idx=(state.current_player_idx + 1) % state.num_players,
        turn_number=state.turn_number + 1,
    )


# =============================================================================
# Invariants
# =============================================================================

def assert_invariants(state: GameState):
    """
    Check peg conservation, capacity, ownership and card uniqueness.

    Raises:
        EngineInvariantError: describing the first violation found.
    """
    board = state.board

    if state.players and not 0 <= state.current_player_idx < state.num_players:
        raise EngineInvariantError(f"current_player_idx {state.current_player_idx} out of range")

    seen: dict[str, str] = {}
    for space in board.spaces.values():
        for peg_id in space.pegs:
            if peg_id in seen:
                raise EngineInvariantError(
                    f"Peg {peg_id} is on both {seen[peg_id]} and {space.space_id}"
                )
            seen[peg_id] = space.space_id

        capacity = space.capacity
        if capacity is not None and len(space.pegs) > capacity:
            raise EngineInvariantError(f"{space.space_id} holds {len(space.pegs)} pegs")

        if space.space_type in (SpaceType.HOME, SpaceType.CASTLE):
            owner = state.get_player(space.owner_id) if space.owner_id else None
            for peg_id in space.pegs:
                if owner is None or peg_id not in owner.peg_ids:
                    raise EngineInvariantError(
                        f"Peg {peg_id} is in {space.space_id}, which it does not own"
                    )

    if seen != board.peg_locations:
        raise EngineInvariantError("peg_locations disagrees with space occupancy")

    for player in state.players:
        if len(player.peg_ids) != PEGS_PER_PLAYER:
            raise EngineInvariantError(f"{player.player_id} owns {len(player.peg_ids)} pegs")
        for peg_id in player.peg_ids:
            if peg_id not in board.peg_locations:
                raise EngineInvariantError(f"Peg {peg_id} is not on the board")

    card_ids = Counter(c.card_id for c in state.draw_pile)
    card_ids.update(c.card_id for c in state.discard_pile)
    for player in state.players:
        card_ids.update(c.card_id for c in player.hand)
    duplicates = [card_id for card_id, n in card_ids.items() if n > 1]
    if duplicates:
        raise EngineInvariantError(f"Cards held twice: {', '.join(sorted(duplicates))}")
