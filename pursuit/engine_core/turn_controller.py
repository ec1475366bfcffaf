"""
Turn Controller - The per-turn state machine.

A turn is a sequence of player inputs (pick a card, maybe split it, pick
pegs, confirm castle entry). The in-progress turn lives in an explicit,
serializable TurnState value and only changes through named TurnEvents.

Split stages:
    INITIAL -> SPLIT_SELECTED -> (9 only) DIRECTION_SELECTED -> STEPS_CHOSEN
            -> FIRST_MOVE_COMPLETE -> SECOND_MOVE_READY | NO_VALID_SECOND_MOVE

The castle prompt sits on top of any stage: whenever the selected peg
could turn into its castle, the player confirms before anything moves.

Invalid input never raises. The controller answers with a failed
TurnResult and both states stay as they were.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from .board import Direction
from .cards import Card, Rank
from .move import Move, MoveModifiers
from .move_generator import (
    SPLIT_FIRST_LEG_RANGE,
    get_possible_moves,
    has_any_legal_move,
    movable_peg_ids,
    split_first_leg_options,
)
from .reducer import apply_move, discard_card
from .state import (
    GamePhase,
    GameState,
    advance_to_next_player,
    redraw_hand,
    refill_hand,
)
from .victory import check_winner, declare_winner


class TurnStage(Enum):
    INITIAL = "initial"
    SPLIT_SELECTED = "split_selected"
    DIRECTION_SELECTED = "direction_selected"
    STEPS_CHOSEN = "steps_chosen"
    FIRST_MOVE_COMPLETE = "first_move_complete"
    SECOND_MOVE_READY = "second_move_ready"
    NO_VALID_SECOND_MOVE = "no_valid_second_move"


class TurnEventType(Enum):
    SELECT_CARD = "select_card"
    CHOOSE_MODE = "choose_mode"
    CHOOSE_DIRECTION = "choose_direction"
    CHOOSE_STEPS = "choose_steps"
    SELECT_PEG = "select_peg"
    SELECT_DESTINATION = "select_destination"
    CHOOSE_CASTLE = "choose_castle"
    SKIP_SECOND_MOVE = "skip_second_move"
    DISCARD_HAND = "discard_hand"
    FORFEIT_CARD = "forfeit_card"
    CANCEL = "cancel"


@dataclass
class TurnEvent:
    """A named input to the turn state machine."""
    event_type: TurnEventType
    card_id: str | None = None
    split: bool | None = None
    direction: Direction | None = None
    steps: int | None = None
    peg_id: str | None = None
    space_id: str | None = None
    enter_castle: bool | None = None

    @classmethod
    def select_card(cls, card_id: str) -> TurnEvent:
        return cls(event_type=TurnEventType.SELECT_CARD, card_id=card_id)

    @classmethod
    def choose_mode(cls, split: bool) -> TurnEvent:
        return cls(event_type=TurnEventType.CHOOSE_MODE, split=split)

    @classmethod
    def choose_direction(cls, direction: Direction) -> TurnEvent:
        return cls(event_type=TurnEventType.CHOOSE_DIRECTION, direction=direction)

    @classmethod
    def choose_steps(cls, steps: int) -> TurnEvent:
        return cls(event_type=TurnEventType.CHOOSE_STEPS, steps=steps)

    @classmethod
    def select_peg(cls, peg_id: str) -> TurnEvent:
        return cls(event_type=TurnEventType.SELECT_PEG, peg_id=peg_id)

    @classmethod
    def select_destination(cls, space_id: str) -> TurnEvent:
        return cls(event_type=TurnEventType.SELECT_DESTINATION, space_id=space_id)

    @classmethod
    def choose_castle(cls, enter: bool) -> TurnEvent:
        return cls(event_type=TurnEventType.CHOOSE_CASTLE, enter_castle=enter)

    @classmethod
    def skip_second_move(cls) -> TurnEvent:
        return cls(event_type=TurnEventType.SKIP_SECOND_MOVE)

    @classmethod
    def discard_hand(cls) -> TurnEvent:
        return cls(event_type=TurnEventType.DISCARD_HAND)

    @classmethod
    def forfeit_card(cls, card_id: str) -> TurnEvent:
        return cls(event_type=TurnEventType.FORFEIT_CARD, card_id=card_id)

    @classmethod
    def cancel(cls) -> TurnEvent:
        return cls(event_type=TurnEventType.CANCEL)

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type.value,
            "card_id": self.card_id,
            "split": self.split,
            "direction": self.direction.value if self.direction else None,
            "steps": self.steps,
            "peg_id": self.peg_id,
            "space_id": self.space_id,
            "enter_castle": self.enter_castle,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TurnEvent:
        direction = data.get("direction")
        return cls(
            event_type=TurnEventType(data["event_type"]),
            card_id=data.get("card_id"),
            split=data.get("split"),
            direction=Direction(direction) if direction else None,
            steps=data.get("steps"),
            peg_id=data.get("peg_id"),
            space_id=data.get("space_id"),
            enter_castle=data.get("enter_castle"),
        )


@dataclass
class CastlePrompt:
    """Pending yes/no: turn into the castle, or keep going along the track."""
    peg_id: str
    castle_move: Move
    regular_move: Move | None = None

    def to_dict(self) -> dict:
        return {
            "peg_id": self.peg_id,
            "castle_move": self.castle_move.to_dict(),
            "regular_move": self.regular_move.to_dict() if self.regular_move else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CastlePrompt:
        regular = data.get("regular_move")
        return cls(
            peg_id=data["peg_id"],
            castle_move=Move.from_dict(data["castle_move"]),
            regular_move=Move.from_dict(regular) if regular else None,
        )


@dataclass
class TurnState:
    """
    Transient state of the turn in progress.

    Reset at the end of every turn. Serializable so it can be stored and
    replicated next to the GameState.
    """
    player_id: str | None = None
    stage: TurnStage = TurnStage.INITIAL
    selected_card_id: str | None = None

    # Split cards only
    mode_chosen: bool = False
    split: bool = False
    direction: Direction | None = None
    first_move_steps: int | None = None
    first_move_peg_id: str | None = None

    selectable_peg_ids: list[str] = field(default_factory=list)
    selected_peg_id: str | None = None
    pending_moves: list[Move] = field(default_factory=list)
    castle_prompt: CastlePrompt | None = None

    message: str = ""

    @property
    def leg_committed(self) -> bool:
        """A first split leg has moved; the turn cannot be restarted."""
        return self.first_move_peg_id is not None

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "stage": self.stage.value,
            "selected_card_id": self.selected_card_id,
            "mode_chosen": self.mode_chosen,
            "split": self.split,
            "direction": self.direction.value if self.direction else None,
            "first_move_steps": self.first_move_steps,
            "first_move_peg_id": self.first_move_peg_id,
            "selectable_peg_ids": list(self.selectable_peg_ids),
            "selected_peg_id": self.selected_peg_id,
            "pending_moves": [m.to_dict() for m in self.pending_moves],
            "castle_prompt": self.castle_prompt.to_dict() if self.castle_prompt else None,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TurnState:
        direction = data.get("direction")
        prompt = data.get("castle_prompt")
        return cls(
            player_id=data.get("player_id"),
            stage=TurnStage(data.get("stage", TurnStage.INITIAL.value)),
            selected_card_id=data.get("selected_card_id"),
            mode_chosen=data.get("mode_chosen", False),
            split=data.get("split", False),
            direction=Direction(direction) if direction else None,
            first_move_steps=data.get("first_move_steps"),
            first_move_peg_id=data.get("first_move_peg_id"),
            selectable_peg_ids=list(data.get("selectable_peg_ids", [])),
            selected_peg_id=data.get("selected_peg_id"),
            pending_moves=[Move.from_dict(m) for m in data.get("pending_moves", [])],
            castle_prompt=CastlePrompt.from_dict(prompt) if prompt else None,
            message=data.get("message", ""),
        )


@dataclass
class TurnResult:
    """
    Outcome of handling one event.

    On failure `new_state` and `turn_state` are the unchanged inputs.
    """
    success: bool
    new_state: GameState
    turn_state: TurnState
    message: str = ""
    bump_message: str | None = None
    turn_ended: bool = False
    game_over: bool = False
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def failure(
        cls, state: GameState, turn: TurnState, error: str, error_code: str
    ) -> TurnResult:
        return cls(
            success=False,
            new_state=state,
            turn_state=turn,
            message=error,
            error=error,
            error_code=error_code,
        )


def can_discard_hand(state: GameState, player_id: str) -> bool:
    """
    Whether the player may throw in their hand and draw a new one.

    Allowed only with no face card or ace in hand, no joker that has a
    target, and no card that can move any peg.
    """
    player = state.get_player(player_id)
    if player is None or state.phase != GamePhase.PLAYING:
        return False
    if any(card.is_face or card.rank == Rank.ACE for card in player.hand):
        return False
    for card in player.hand:
        if card.is_joker and get_possible_moves(state, player_id, card.card_id):
            return False
    return not has_any_legal_move(state, player_id)


def _card_label(card: Card) -> str:
    return card.rank.value


@dataclass
class TurnController:
    """
    Drives a turn through its stages.

    Stateless: `handle` takes the current GameState and TurnState and
    returns new ones.
    """

    def handle(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        if state.phase != GamePhase.PLAYING:
            return TurnResult.failure(state, turn, "The game is not in progress", "GAME_NOT_ACTIVE")

        turn = self._current_turn(state, turn)

        if turn.castle_prompt and event.event_type not in {
            TurnEventType.CHOOSE_CASTLE,
            TurnEventType.SELECT_PEG,
            TurnEventType.SELECT_CARD,
            TurnEventType.CANCEL,
        }:
            return TurnResult.failure(
                state, turn, "Decide whether to enter the castle first", "CASTLE_PROMPT_PENDING"
            )

        handler = self._get_handler(event.event_type)
        result = handler(state, turn, event)
        if not result.success:
            logger.warning(
                "Rejected {} from {}: {}",
                event.event_type.value, turn.player_id, result.error,
            )
        return result

    def start_turn(self, state: GameState) -> TurnState:
        """Fresh TurnState for whoever's turn it is."""
        if not state.players:
            return TurnState()
        player = state.current_player
        return TurnState(player_id=player.player_id, message=f"{player.name}'s turn")

    def _current_turn(self, state: GameState, turn: TurnState | None) -> TurnState:
        if turn is None or turn.player_id != state.current_player.player_id:
            return self.start_turn(state)
        return turn

    def _get_handler(self, event_type: TurnEventType):
        handlers = {
            TurnEventType.SELECT_CARD: self._handle_select_card,
            TurnEventType.CHOOSE_MODE: self._handle_choose_mode,
            TurnEventType.CHOOSE_DIRECTION: self._handle_choose_direction,
            TurnEventType.CHOOSE_STEPS: self._handle_choose_steps,
            TurnEventType.SELECT_PEG: self._handle_select_peg,
            TurnEventType.SELECT_DESTINATION: self._handle_select_destination,
            TurnEventType.CHOOSE_CASTLE: self._handle_choose_castle,
            TurnEventType.SKIP_SECOND_MOVE: self._handle_skip_second_move,
            TurnEventType.DISCARD_HAND: self._handle_discard_hand,
            TurnEventType.FORFEIT_CARD: self._handle_forfeit_card,
            TurnEventType.CANCEL: self._handle_cancel,
        }
        return handlers[event_type]

    # =========================================================================
    # Card selection
    # =========================================================================

    def _handle_select_card(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        if turn.leg_committed:
            return TurnResult.failure(state, turn, "Finish your split move first", "SPLIT_IN_PROGRESS")

        player = state.current_player
        card = player.get_card(event.card_id or "")
        if card is None:
            return TurnResult.failure(state, turn, "That card is not in your hand", "CARD_NOT_IN_HAND")

        new_turn = TurnState(player_id=player.player_id, selected_card_id=card.card_id)
        if card.is_split:
            new_turn.message = f"Move {_card_label(card)} with one peg, or split it?"
            return self._ok(state, new_turn)

        moves = get_possible_moves(state, player.player_id, card.card_id)
        new_turn.selectable_peg_ids = movable_peg_ids(moves)
        if moves:
            new_turn.message = "Select a peg to move"
        else:
            new_turn.message = "No peg can move with that card"
        return self._ok(state, new_turn)

    def _handle_choose_mode(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        card = self._selected_card(state, turn)
        if card is None or not card.is_split or turn.mode_chosen or turn.leg_committed:
            return TurnResult.failure(state, turn, "Select a 7 or 9 first", "INVALID_STAGE")

        new_turn = TurnState(
            player_id=turn.player_id,
            selected_card_id=card.card_id,
            mode_chosen=True,
            split=bool(event.split),
        )
        if not event.split:
            moves = get_possible_moves(state, turn.player_id, card.card_id)
            new_turn.stage = TurnStage.STEPS_CHOSEN
            new_turn.selectable_peg_ids = movable_peg_ids(moves)
            new_turn.message = "Select a peg to move" if moves else "No peg can move with that card"
            return self._ok(state, new_turn)

        new_turn.stage = TurnStage.SPLIT_SELECTED
        if card.rank == Rank.NINE:
            new_turn.message = "Choose a direction for the first peg"
        else:
            new_turn.message = "How many spaces should the first peg move? (1-6)"
        return self._ok(state, new_turn)

    def _handle_choose_direction(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        card = self._selected_card(state, turn)
        if (
            card is None
            or card.rank != Rank.NINE
            or turn.stage != TurnStage.SPLIT_SELECTED
            or event.direction is None
        ):
            return TurnResult.failure(state, turn, "Direction is only chosen for a split 9", "INVALID_STAGE")

        new_turn = self._copy_turn(
            turn,
            stage=TurnStage.DIRECTION_SELECTED,
            direction=event.direction,
            message="How many spaces should the first peg move? (1-8)",
        )
        return self._ok(state, new_turn)

    def _handle_choose_steps(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        card = self._selected_card(state, turn)
        expected_stage = TurnStage.DIRECTION_SELECTED if card and card.rank == Rank.NINE else TurnStage.SPLIT_SELECTED
        if card is None or not card.is_split or turn.stage != expected_stage:
            return TurnResult.failure(state, turn, "Choose to split the card first", "INVALID_STAGE")

        legal = SPLIT_FIRST_LEG_RANGE[card.rank]
        if event.steps not in legal:
            return TurnResult.failure(
                state, turn, f"Choose between {legal.start} and {legal.stop - 1} spaces", "INVALID_STEPS"
            )

        direction = turn.direction or Direction.FORWARD
        modifiers = MoveModifiers(steps=event.steps, direction=direction)
        moves = get_possible_moves(state, turn.player_id, card.card_id, modifiers)
        if not moves:
            new_turn = TurnState(
                player_id=turn.player_id,
                selected_card_id=card.card_id,
                message=f"No peg can move {event.steps} spaces. Choose again.",
            )
            return self._ok(state, new_turn)

        new_turn = self._copy_turn(
            turn,
            stage=TurnStage.STEPS_CHOSEN,
            direction=direction,
            first_move_steps=event.steps,
            selectable_peg_ids=movable_peg_ids(moves),
            message=f"Select the peg to move {event.steps} spaces",
        )
        return self._ok(state, new_turn)

    # =========================================================================
    # Peg and destination selection
    # =========================================================================

    def _handle_select_peg(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        card = self._selected_card(state, turn)
        if card is None:
            return TurnResult.failure(state, turn, "Select a card first", "NO_CARD_SELECTED")

        ready, modifiers = self._peg_modifiers(turn, card)
        if not ready:
            return TurnResult.failure(state, turn, "Finish choosing how to play the card", "INVALID_STAGE")

        if event.peg_id not in state.current_player.peg_ids:
            return TurnResult.failure(state, turn, "That is not your peg", "NOT_YOUR_PEG")

        moves = [
            m for m in get_possible_moves(state, turn.player_id, card.card_id, modifiers)
            if m.peg_id == event.peg_id
        ]
        if not moves:
            return TurnResult.failure(state, turn, "That peg cannot move", "NO_MOVES_FOR_PEG")

        castle_moves = [m for m in moves if m.is_castle_entry]
        regular_moves = [m for m in moves if not m.is_castle_entry]

        if castle_moves:
            new_turn = self._copy_turn(
                turn,
                selected_peg_id=event.peg_id,
                pending_moves=[],
                castle_prompt=CastlePrompt(
                    peg_id=event.peg_id,
                    castle_move=castle_moves[0],
                    regular_move=regular_moves[0] if regular_moves else None,
                ),
                message="Enter your castle?",
            )
            return self._ok(state, new_turn)

        if len(regular_moves) == 1 and len(regular_moves[0].destinations) == 1:
            return self._commit(state, turn, regular_moves[0])

        new_turn = self._copy_turn(
            turn,
            selected_peg_id=event.peg_id,
            pending_moves=regular_moves,
            castle_prompt=None,
            message="Choose a destination",
        )
        return self._ok(state, new_turn)

    def _handle_select_destination(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        for move in turn.pending_moves:
            if event.space_id in move.destinations:
                return self._commit(state, turn, move.narrow(event.space_id))
        return TurnResult.failure(state, turn, "That is not a valid destination", "INVALID_DESTINATION")

    def _handle_choose_castle(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        prompt = turn.castle_prompt
        if prompt is None:
            return TurnResult.failure(state, turn, "There is no castle decision to make", "INVALID_STAGE")

        if event.enter_castle:
            return self._commit(state, turn, prompt.castle_move)
        if prompt.regular_move is not None:
            return self._commit(state, turn, prompt.regular_move)

        new_turn = self._copy_turn(
            turn,
            message="This peg can only move into the castle. Enter the castle or pick another peg.",
        )
        return self._ok(state, new_turn)

    # =========================================================================
    # Turn-ending actions
    # =========================================================================

    def _handle_skip_second_move(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        if turn.stage != TurnStage.NO_VALID_SECOND_MOVE:
            return TurnResult.failure(state, turn, "The second move can still be made", "INVALID_STAGE")
        new_state = discard_card(state, turn.player_id, turn.selected_card_id)
        return self._end_turn(new_state, "Second move skipped")

    def _handle_discard_hand(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        if turn.leg_committed:
            return TurnResult.failure(state, turn, "Finish your split move first", "SPLIT_IN_PROGRESS")
        if not can_discard_hand(state, turn.player_id):
            return TurnResult.failure(
                state, turn, "You still have a card you can play", "DISCARD_NOT_ALLOWED"
            )
        new_state = redraw_hand(state, turn.player_id)
        logger.info("{} discarded their hand", turn.player_id)
        return self._end_turn(new_state, "Hand discarded and redrawn")

    def _handle_forfeit_card(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        if turn.leg_committed:
            return TurnResult.failure(state, turn, "Finish your split move first", "SPLIT_IN_PROGRESS")
        if not state.current_player.has_card(event.card_id or ""):
            return TurnResult.failure(state, turn, "That card is not in your hand", "CARD_NOT_IN_HAND")
        if has_any_legal_move(state, turn.player_id) or can_discard_hand(state, turn.player_id):
            return TurnResult.failure(
                state, turn, "You have a legal play; a card can only be burned when stuck", "FORFEIT_NOT_ALLOWED"
            )
        new_state = discard_card(state, turn.player_id, event.card_id)
        return self._end_turn(new_state, "No legal move, card discarded")

    def _handle_cancel(self, state: GameState, turn: TurnState, event: TurnEvent) -> TurnResult:
        if turn.leg_committed:
            return TurnResult.failure(state, turn, "The first leg has already moved", "SPLIT_IN_PROGRESS")
        return self._ok(state, self.start_turn(state))

    # =========================================================================
    # Commit and turn end
    # =========================================================================

    def _commit(self, state: GameState, turn: TurnState, move: Move) -> TurnResult:
        outcome = apply_move(state, move)
        new_state = outcome.new_state

        winner = check_winner(new_state, move.player_id)
        if winner is not None:
            if move.is_first_split_leg:
                new_state = discard_card(new_state, move.player_id, move.card_id)
            new_state = declare_winner(new_state, winner)
            player = new_state.get_player(move.player_id)
            message = f"{player.name} filled their castle. Team {winner} wins!"
            return TurnResult(
                success=True,
                new_state=new_state,
                turn_state=TurnState(player_id=move.player_id, message=message),
                message=message,
                bump_message=outcome.bump_message,
                turn_ended=True,
                game_over=True,
            )

        if move.is_first_split_leg:
            return self._after_first_leg(new_state, turn, move, outcome.bump_message)

        result = self._end_turn(new_state, "Move complete")
        result.bump_message = outcome.bump_message
        return result

    def _after_first_leg(
        self, state: GameState, turn: TurnState, move: Move, bump_message: str | None
    ) -> TurnResult:
        card = state.current_player.get_card(move.card_id)
        completed = self._copy_turn(
            turn,
            stage=TurnStage.FIRST_MOVE_COMPLETE,
            first_move_peg_id=move.peg_id,
            selected_peg_id=None,
            pending_moves=[],
            castle_prompt=None,
        )
        modifiers = self._second_leg_modifiers(completed, card)
        moves = get_possible_moves(state, completed.player_id, card.card_id, modifiers)

        if moves:
            completed.stage = TurnStage.SECOND_MOVE_READY
            completed.selectable_peg_ids = movable_peg_ids(moves)
            completed.message = f"Move another peg {modifiers.steps} spaces {modifiers.direction.value}"
        else:
            completed.stage = TurnStage.NO_VALID_SECOND_MOVE
            completed.selectable_peg_ids = []
            completed.message = f"No peg can move the remaining {modifiers.steps} spaces. Skip the second move."

        return TurnResult(
            success=True,
            new_state=state,
            turn_state=completed,
            message=completed.message,
            bump_message=bump_message,
        )

    def _end_turn(self, state: GameState, message: str) -> TurnResult:
        player_id = state.current_player.player_id
        new_state = refill_hand(state, player_id)
        new_state = advance_to_next_player(new_state)
        new_state = new_state._copy_with(version=new_state.version + 1)
        next_turn = self.start_turn(new_state)
        return TurnResult(
            success=True,
            new_state=new_state,
            turn_state=next_turn,
            message=f"{message}. {next_turn.message}",
            turn_ended=True,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _ok(self, state: GameState, turn: TurnState) -> TurnResult:
        return TurnResult(success=True, new_state=state, turn_state=turn, message=turn.message)

    def _copy_turn(self, turn: TurnState, **kwargs) -> TurnState:
        data = {**turn.__dict__, **kwargs}
        data["selectable_peg_ids"] = list(data["selectable_peg_ids"])
        data["pending_moves"] = list(data["pending_moves"])
        return TurnState(**data)

    def _selected_card(self, state: GameState, turn: TurnState) -> Card | None:
        if turn.selected_card_id is None:
            return None
        return state.current_player.get_card(turn.selected_card_id)

    def _peg_modifiers(self, turn: TurnState, card: Card) -> tuple[bool, MoveModifiers | None]:
        """Whether the turn is ready for a peg pick, and with which modifiers."""
        if turn.stage == TurnStage.SECOND_MOVE_READY:
            return True, self._second_leg_modifiers(turn, card)
        if not card.is_split:
            return turn.stage == TurnStage.INITIAL, None
        if turn.stage != TurnStage.STEPS_CHOSEN:
            return False, None
        if not turn.split:
            return True, None
        return True, MoveModifiers(steps=turn.first_move_steps, direction=turn.direction)

    def _second_leg_modifiers(self, turn: TurnState, card: Card) -> MoveModifiers:
        direction = turn.direction or Direction.FORWARD
        if card.rank == Rank.NINE:
            direction = direction.opposite
        return MoveModifiers(
            steps=card.value - turn.first_move_steps,
            direction=direction,
            is_second_move=True,
            first_move_peg_id=turn.first_move_peg_id,
        )


def legal_events(state: GameState, turn: TurnState | None = None) -> list[TurnEvent]:
    """
    Events that make progress from the current turn stage.

    Every listed event is accepted by TurnController.handle. Cancel is
    offered only when the current selection leads nowhere, and
    declining a castle entry with no alternative is left out. The list is
    empty only when the game is not being played.
    """
    if state.phase != GamePhase.PLAYING or not state.players:
        return []

    controller = TurnController()
    turn = controller._current_turn(state, turn)
    player = state.current_player
    player_id = player.player_id

    if turn.castle_prompt:
        events = [TurnEvent.choose_castle(True)]
        if turn.castle_prompt.regular_move is not None:
            events.append(TurnEvent.choose_castle(False))
        return events

    if turn.pending_moves:
        return [
            TurnEvent.select_destination(space_id)
            for move in turn.pending_moves
            for space_id in move.destinations
        ]

    if turn.stage == TurnStage.NO_VALID_SECOND_MOVE:
        return [TurnEvent.skip_second_move()]

    card = controller._selected_card(state, turn)
    if card is None:
        playable = [c for c in player.hand if _card_has_play(state, player_id, c)]
        if playable:
            return [TurnEvent.select_card(c.card_id) for c in playable]
        if can_discard_hand(state, player_id):
            return [TurnEvent.discard_hand()]
        return [TurnEvent.forfeit_card(c.card_id) for c in player.hand]

    if card.is_split and not turn.mode_chosen:
        events = []
        if get_possible_moves(state, player_id, card.card_id):
            events.append(TurnEvent.choose_mode(False))
        if _split_first_legs(state, player_id, card):
            events.append(TurnEvent.choose_mode(True))
        return events or [TurnEvent.cancel()]

    if turn.stage == TurnStage.SPLIT_SELECTED:
        options = _split_first_legs(state, player_id, card)
        if card.rank == Rank.NINE:
            directions: list[Direction] = []
            for modifiers in options:
                if modifiers.direction not in directions:
                    directions.append(modifiers.direction)
            return [TurnEvent.choose_direction(d) for d in directions] or [TurnEvent.cancel()]
        return [TurnEvent.choose_steps(m.steps) for m in options] or [TurnEvent.cancel()]

    if turn.stage == TurnStage.DIRECTION_SELECTED:
        return [
            TurnEvent.choose_steps(m.steps)
            for m in _split_first_legs(state, player_id, card)
            if m.direction == turn.direction
        ] or [TurnEvent.cancel()]

    if not turn.selectable_peg_ids:
        return [TurnEvent.cancel()]
    return [TurnEvent.select_peg(peg_id) for peg_id in turn.selectable_peg_ids]


def _split_first_legs(state: GameState, player_id: str, card: Card) -> list[MoveModifiers]:
    return [
        modifiers for modifiers in split_first_leg_options(card)
        if get_possible_moves(state, player_id, card.card_id, modifiers)
    ]


def _card_has_play(state: GameState, player_id: str, card: Card) -> bool:
    if get_possible_moves(state, player_id, card.card_id):
        return True
    return bool(_split_first_legs(state, player_id, card))
