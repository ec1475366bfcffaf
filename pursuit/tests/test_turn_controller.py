"""
Tests for the turn state machine.

Tests:
- Plain turns and turn hand-off
- Split 7 and 9 flows, including a dead second leg
- Castle prompts
- Discarding a hand and forfeiting a card
- Winning
- legal_events agreeing with the controller
"""

from ..engine_core.board import Direction
from ..engine_core.move_generator import get_possible_moves
from ..engine_core.state import GamePhase, HAND_SIZE, assert_invariants
from ..engine_core.turn_controller import (
    TurnController,
    TurnEvent,
    TurnStage,
    TurnState,
    can_discard_hand,
    legal_events,
)
from .conftest import arrange, with_hand


def play(state, *events, turn=None):
    """Feed events one by one, asserting each is accepted; returns the last result."""
    controller = TurnController()
    turn = turn or controller.start_turn(state)
    result = None
    for event in events:
        result = controller.handle(state, turn, event)
        assert result.success, result.error
        state, turn = result.new_state, result.turn_state
    return result


def location(state, peg_id):
    return state.board.space_for_peg(peg_id).space_id


# Every forward 10 is blocked by the next peg on the 36-space ring
STUCK_RING = {
    "player-1-peg-1": "section-0-normal-8",
    "player-1-peg-2": "section-0-normal-17",
    "player-1-peg-3": "section-1-normal-8",
    "player-1-peg-4": "section-1-normal-17",
}


class TestPlainTurn:
    """Tests for single-card, single-peg turns."""

    def test_move_ends_turn(self, two_player_state):
        """A plain move ends the turn and refills the hand."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-10"})
        state = with_hand(state, "player-1", ["5"])

        result = play(state, TurnEvent.select_card("t0-5"), TurnEvent.select_peg("player-1-peg-1"))

        new_state = result.new_state
        assert result.turn_ended
        assert location(new_state, "player-1-peg-1") == "section-0-normal-15"
        assert new_state.current_player.player_id == "player-2"
        assert new_state.turn_number == state.turn_number + 1
        assert len(new_state.get_player("player-1").hand) == HAND_SIZE
        assert result.turn_state.player_id == "player-2"
        assert result.turn_state.stage == TurnStage.INITIAL

    def test_select_card_lists_movable_pegs(self, two_player_state):
        """Selecting a card lists the pegs it can move."""
        state = with_hand(two_player_state, "player-1", ["ace"])

        result = play(state, TurnEvent.select_card("t0-ace"))

        assert result.turn_state.selected_card_id == "t0-ace"
        assert len(result.turn_state.selectable_peg_ids) == 4
        assert result.new_state is state

    def test_unknown_card_rejected(self, two_player_state):
        """Cards not held are rejected without changes."""
        controller = TurnController()
        turn = controller.start_turn(two_player_state)

        result = controller.handle(two_player_state, turn, TurnEvent.select_card("nope"))

        assert not result.success
        assert result.error_code == "CARD_NOT_IN_HAND"
        assert result.new_state is two_player_state
        assert result.turn_state is turn

    def test_peg_before_card_rejected(self, two_player_state):
        """A peg cannot be picked before a card."""
        controller = TurnController()

        result = controller.handle(
            two_player_state, None, TurnEvent.select_peg("player-1-peg-1")
        )

        assert not result.success
        assert result.error_code == "NO_CARD_SELECTED"

    def test_peg_that_cannot_move_rejected(self, two_player_state):
        """Pegs without a move are rejected."""
        state = with_hand(two_player_state, "player-1", ["5", "ace"])
        controller = TurnController()
        turn = play(state, TurnEvent.select_card("t0-5")).turn_state

        result = controller.handle(state, turn, TurnEvent.select_peg("player-1-peg-1"))

        assert result.error_code == "NO_MOVES_FOR_PEG"

    def test_not_in_progress(self, setup_state):
        """Events outside play are rejected."""
        result = TurnController().handle(setup_state, None, TurnEvent.select_card("x"))

        assert not result.success
        assert result.error_code == "GAME_NOT_ACTIVE"

    def test_cancel_resets_selection(self, two_player_state):
        """Cancel clears the selection."""
        state = with_hand(two_player_state, "player-1", ["ace"])

        result = play(state, TurnEvent.select_card("t0-ace"), TurnEvent.cancel())

        assert result.turn_state.selected_card_id is None
        assert result.turn_state.selectable_peg_ids == []

    def test_joker_needs_a_destination(self, two_player_state):
        """A joker waits for the target to be chosen."""
        state = arrange(two_player_state, {
            "player-2-peg-1": "section-1-normal-10",
            "player-2-peg-2": "section-0-normal-4",
        })
        state = with_hand(state, "player-1", ["joker"])

        result = play(state, TurnEvent.select_card("t0-joker"), TurnEvent.select_peg("player-1-peg-1"))
        assert not result.turn_ended
        assert result.turn_state.pending_moves

        result = play(
            state,
            TurnEvent.select_destination("section-0-normal-4"),
            turn=result.turn_state,
        )
        assert result.turn_ended
        assert location(result.new_state, "player-1-peg-1") == "section-0-normal-4"
        assert location(result.new_state, "player-2-peg-2") == "section-1-home"
        assert result.bump_message == "Alice bumped Bob's peg back home!"


class TestSplitTurns:
    """Tests for splitting 7s and 9s."""

    def test_split_seven(self, two_player_state):
        """A split seven moves two pegs and then spends the card."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-normal-10",
            "player-1-peg-2": "section-0-normal-14",
        })
        state = with_hand(state, "player-1", ["7"])

        first = play(
            state,
            TurnEvent.select_card("t0-7"),
            TurnEvent.choose_mode(True),
            TurnEvent.choose_steps(3),
            TurnEvent.select_peg("player-1-peg-1"),
        )

        assert not first.turn_ended
        assert first.turn_state.stage == TurnStage.SECOND_MOVE_READY
        assert first.turn_state.first_move_peg_id == "player-1-peg-1"
        assert first.turn_state.selectable_peg_ids == ["player-1-peg-2"]
        assert first.new_state.get_player("player-1").has_card("t0-7")
        assert location(first.new_state, "player-1-peg-1") == "section-0-normal-13"

        second = play(
            first.new_state, TurnEvent.select_peg("player-1-peg-2"), turn=first.turn_state
        )

        assert second.turn_ended
        assert location(second.new_state, "player-1-peg-2") == "section-1-corner-0"
        assert second.new_state.discard_pile[-1].card_id == "t0-7"
        assert second.new_state.current_player.player_id == "player-2"

    def test_split_nine_reverses_second_leg(self, two_player_state):
        """A split nine's second leg goes the other way."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-normal-10",
            "player-1-peg-2": "section-0-normal-14",
        })
        state = with_hand(state, "player-1", ["9"])

        first = play(
            state,
            TurnEvent.select_card("t0-9"),
            TurnEvent.choose_mode(True),
            TurnEvent.choose_direction(Direction.BACKWARD),
            TurnEvent.choose_steps(2),
            TurnEvent.select_peg("player-1-peg-1"),
        )
        assert location(first.new_state, "player-1-peg-1") == "section-0-normal-8"
        assert first.turn_state.stage == TurnStage.SECOND_MOVE_READY

        second = play(
            first.new_state, TurnEvent.select_peg("player-1-peg-2"), turn=first.turn_state
        )

        assert location(second.new_state, "player-1-peg-2") == "section-1-entrance-3"

    def test_nine_needs_direction_before_steps(self, two_player_state):
        """A nine needs a direction before a length."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-10"})
        state = with_hand(state, "player-1", ["9"])
        turn = play(state, TurnEvent.select_card("t0-9"), TurnEvent.choose_mode(True)).turn_state

        result = TurnController().handle(state, turn, TurnEvent.choose_steps(2))

        assert result.error_code == "INVALID_STAGE"

    def test_steps_out_of_range(self, two_player_state):
        """Lengths outside the card's range are rejected."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-10"})
        state = with_hand(state, "player-1", ["7"])
        turn = play(state, TurnEvent.select_card("t0-7"), TurnEvent.choose_mode(True)).turn_state

        result = TurnController().handle(state, turn, TurnEvent.choose_steps(7))

        assert result.error_code == "INVALID_STEPS"

    def test_unsplit_seven(self, two_player_state):
        """A seven can be played whole."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-10"})
        state = with_hand(state, "player-1", ["7"])

        result = play(
            state,
            TurnEvent.select_card("t0-7"),
            TurnEvent.choose_mode(False),
            TurnEvent.select_peg("player-1-peg-1"),
        )

        assert result.turn_ended
        assert location(result.new_state, "player-1-peg-1") == "section-0-normal-17"

    def test_dead_second_leg_is_skipped(self, two_player_state):
        """With no second leg the turn can only be skipped."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-10"})
        state = with_hand(state, "player-1", ["7"])

        first = play(
            state,
            TurnEvent.select_card("t0-7"),
            TurnEvent.choose_mode(True),
            TurnEvent.choose_steps(3),
            TurnEvent.select_peg("player-1-peg-1"),
        )

        assert first.turn_state.stage == TurnStage.NO_VALID_SECOND_MOVE
        assert legal_events(first.new_state, first.turn_state) == [TurnEvent.skip_second_move()]

        done = play(first.new_state, TurnEvent.skip_second_move(), turn=first.turn_state)

        assert done.turn_ended
        assert done.new_state.discard_pile[-1].card_id == "t0-7"
        assert location(done.new_state, "player-1-peg-1") == "section-0-normal-13"

    def test_cannot_cancel_after_first_leg(self, two_player_state):
        """The first leg cannot be taken back."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-normal-10",
            "player-1-peg-2": "section-0-normal-14",
        })
        state = with_hand(state, "player-1", ["7", "2"])
        first = play(
            state,
            TurnEvent.select_card("t0-7"),
            TurnEvent.choose_mode(True),
            TurnEvent.choose_steps(3),
            TurnEvent.select_peg("player-1-peg-1"),
        )
        controller = TurnController()

        cancel = controller.handle(first.new_state, first.turn_state, TurnEvent.cancel())
        switch = controller.handle(first.new_state, first.turn_state, TurnEvent.select_card("t1-2"))

        assert cancel.error_code == "SPLIT_IN_PROGRESS"
        assert switch.error_code == "SPLIT_IN_PROGRESS"

    def test_first_leg_into_castle_keeps_card(self, two_player_state):
        """Entering the castle on the first leg still leaves the second leg to play."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-normal-2",
            "player-1-peg-2": "section-0-normal-12",
        })
        state = with_hand(state, "player-1", ["7"])

        first = play(
            state,
            TurnEvent.select_card("t0-7"),
            TurnEvent.choose_mode(True),
            TurnEvent.choose_steps(3),
            TurnEvent.select_peg("player-1-peg-1"),
            TurnEvent.choose_castle(True),
        )

        assert not first.turn_ended
        assert first.turn_state.stage == TurnStage.SECOND_MOVE_READY
        assert first.turn_state.selectable_peg_ids == ["player-1-peg-2"]
        assert location(first.new_state, "player-1-peg-1") == "section-0-castle-1"
        assert first.new_state.get_player("player-1").has_card("t0-7")
        assert first.new_state.discard_pile == state.discard_pile

    def test_unreachable_first_leg_asks_again(self, two_player_state):
        """A split length no peg can make sends the player back to choose again."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-castle-4"})
        state = with_hand(state, "player-1", ["7"])

        result = play(
            state,
            TurnEvent.select_card("t0-7"),
            TurnEvent.choose_mode(True),
            TurnEvent.choose_steps(1),
        )

        assert result.turn_state.stage == TurnStage.INITIAL
        assert result.turn_state.selected_card_id == "t0-7"
        assert not result.turn_state.mode_chosen
        assert result.turn_state.message == "No peg can move 1 spaces. Choose again."
        assert result.new_state is state
        assert legal_events(state, result.turn_state) == [TurnEvent.cancel()]

    def test_win_on_first_leg_discards_card(self, two_player_state):
        """Filling the castle with a first leg ends the game and spends the card."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-normal-2",
            "player-1-peg-2": "section-0-castle-4",
            "player-1-peg-3": "section-0-castle-3",
            "player-1-peg-4": "section-0-castle-2",
        })
        state = with_hand(state, "player-1", ["7"])

        result = play(
            state,
            TurnEvent.select_card("t0-7"),
            TurnEvent.choose_mode(True),
            TurnEvent.choose_steps(3),
            TurnEvent.select_peg("player-1-peg-1"),
            TurnEvent.choose_castle(True),
        )

        assert result.game_over
        assert result.new_state.phase == GamePhase.GAME_OVER
        assert not result.new_state.get_player("player-1").has_card("t0-7")
        assert [c.card_id for c in result.new_state.discard_pile][-1] == "t0-7"
        assert_invariants(result.new_state)


class TestCastlePrompt:
    """Tests for the enter-the-castle decision."""

    def test_prompt_then_enter(self, two_player_state):
        """A castle candidate prompts before moving."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-2"})
        state = with_hand(state, "player-1", ["5"])

        prompt = play(state, TurnEvent.select_card("t0-5"), TurnEvent.select_peg("player-1-peg-1"))

        assert prompt.turn_state.castle_prompt is not None
        assert prompt.turn_state.castle_prompt.castle_move.destination == "section-0-castle-3"
        assert prompt.turn_state.castle_prompt.regular_move.destination == "section-0-normal-7"
        assert prompt.new_state is state

        entered = play(state, TurnEvent.choose_castle(True), turn=prompt.turn_state)
        assert location(entered.new_state, "player-1-peg-1") == "section-0-castle-3"

    def test_decline_takes_regular_move(self, two_player_state):
        """Declining the castle takes the track move."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-2"})
        state = with_hand(state, "player-1", ["5"])
        prompt = play(state, TurnEvent.select_card("t0-5"), TurnEvent.select_peg("player-1-peg-1"))

        declined = play(state, TurnEvent.choose_castle(False), turn=prompt.turn_state)

        assert declined.turn_ended
        assert location(declined.new_state, "player-1-peg-1") == "section-0-normal-7"

    def test_castle_only_decline_keeps_prompt(self, two_player_state):
        """Declining with no track move keeps the prompt."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-entrance-3",
            "player-1-peg-2": "section-0-normal-6",
        })
        state = with_hand(state, "player-1", ["5"])
        prompt = play(state, TurnEvent.select_card("t0-5"), TurnEvent.select_peg("player-1-peg-1"))
        assert prompt.turn_state.castle_prompt.regular_move is None

        declined = play(state, TurnEvent.choose_castle(False), turn=prompt.turn_state)

        assert not declined.turn_ended
        assert declined.turn_state.castle_prompt is not None
        assert declined.new_state is state
        assert legal_events(state, declined.turn_state) == [TurnEvent.choose_castle(True)]

    def test_other_peg_can_be_chosen_instead(self, two_player_state):
        """Another peg can be picked while prompted."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-entrance-3",
            "player-1-peg-2": "section-0-normal-6",
        })
        state = with_hand(state, "player-1", ["5"])
        prompt = play(state, TurnEvent.select_card("t0-5"), TurnEvent.select_peg("player-1-peg-1"))

        switched = play(state, TurnEvent.select_peg("player-1-peg-2"), turn=prompt.turn_state)

        assert switched.turn_ended
        assert location(switched.new_state, "player-1-peg-2") == "section-0-normal-11"
        assert location(switched.new_state, "player-1-peg-1") == "section-0-entrance-3"

    def test_other_events_wait_for_the_prompt(self, two_player_state):
        """Other events wait until the prompt is answered."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-2"})
        state = with_hand(state, "player-1", ["5"])
        prompt = play(state, TurnEvent.select_card("t0-5"), TurnEvent.select_peg("player-1-peg-1"))

        result = TurnController().handle(state, prompt.turn_state, TurnEvent.discard_hand())

        assert result.error_code == "CASTLE_PROMPT_PENDING"


class TestStuckPlayers:
    """Tests for discarding a hand and forfeiting a card."""

    def test_discard_hand_when_nothing_plays(self, two_player_state):
        """A hand with no play can be thrown in."""
        state = with_hand(two_player_state, "player-1", ["2", "3", "5", "6", "8"])
        assert can_discard_hand(state, "player-1")

        result = play(state, TurnEvent.discard_hand())

        hand = result.new_state.get_player("player-1").hand
        assert result.turn_ended
        assert len(hand) == HAND_SIZE
        assert not any(c.card_id.startswith("t") for c in hand)
        assert [c.card_id for c in result.new_state.discard_pile[-5:]] == [
            "t0-2", "t1-3", "t2-5", "t3-6", "t4-8",
        ]

    def test_discard_refused_with_ace(self, two_player_state):
        """Holding an ace forbids discarding."""
        state = with_hand(two_player_state, "player-1", ["2", "ace"])

        result = TurnController().handle(state, None, TurnEvent.discard_hand())

        assert result.error_code == "DISCARD_NOT_ALLOWED"

    def test_discard_refused_with_joker_target(self, two_player_state):
        """A joker with a target forbids discarding."""
        state = arrange(two_player_state, {"player-2-peg-1": "section-1-normal-10"})
        state = with_hand(state, "player-1", ["2", "joker"])

        assert not can_discard_hand(state, "player-1")

    def test_face_card_with_pegs_home_blocks_discard(self, two_player_state):
        """A king with pegs at home must bring one out."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-castle-4",
            "player-1-peg-2": "section-0-castle-3",
        })
        state = with_hand(state, "player-1", ["king", "6", "3", "3"])

        moves = get_possible_moves(state, "player-1", "t0-king")

        assert {m.kind for m in moves} == {"home_exit"}
        assert not can_discard_hand(state, "player-1")

    def test_joker_without_targets_allows_discard(self, two_player_state):
        """A joker with no target does not block discarding."""
        state = with_hand(two_player_state, "player-1", ["joker", "2", "3"])

        assert get_possible_moves(state, "player-1", "t0-joker") == []
        assert can_discard_hand(state, "player-1")
        assert legal_events(state) == [TurnEvent.discard_hand()]

    def test_forfeit_when_face_card_cannot_move(self, two_player_state):
        """A stuck player forfeits a card."""
        state = arrange(two_player_state, STUCK_RING)
        state = with_hand(state, "player-1", ["king", "queen"])

        assert legal_events(state) == [
            TurnEvent.forfeit_card("t0-king"),
            TurnEvent.forfeit_card("t1-queen"),
        ]

        result = play(state, TurnEvent.forfeit_card("t0-king"))

        assert result.turn_ended
        assert result.new_state.discard_pile[-1].card_id == "t0-king"
        assert len(result.new_state.get_player("player-1").hand) == HAND_SIZE

    def test_forfeit_refused_with_a_legal_move(self, two_player_state):
        """Forfeiting is refused while a play exists."""
        state = with_hand(two_player_state, "player-1", ["ace"])

        result = TurnController().handle(state, None, TurnEvent.forfeit_card("t0-ace"))

        assert result.error_code == "FORFEIT_NOT_ALLOWED"


class TestWinning:
    """Tests for filling the castle."""

    def test_last_peg_wins(self, two_player_state):
        """Filling the castle ends the game."""
        state = arrange(two_player_state, {
            "player-1-peg-1": "section-0-normal-2",
            "player-1-peg-2": "section-0-castle-2",
            "player-1-peg-3": "section-0-castle-3",
            "player-1-peg-4": "section-0-castle-4",
        })
        state = with_hand(state, "player-1", ["3"])

        result = play(
            state,
            TurnEvent.select_card("t0-3"),
            TurnEvent.select_peg("player-1-peg-1"),
            TurnEvent.choose_castle(True),
        )

        assert result.game_over
        assert result.new_state.phase == GamePhase.GAME_OVER
        assert result.new_state.winner == 0

        after = TurnController().handle(result.new_state, result.turn_state, TurnEvent.cancel())
        assert after.error_code == "GAME_NOT_ACTIVE"

    def test_team_wins_through_teammate(self, four_player_state):
        """A teammate's full castle wins for the team."""
        state = arrange(four_player_state, {
            "player-3-peg-1": "section-2-normal-2",
            "player-3-peg-2": "section-2-castle-2",
            "player-3-peg-3": "section-2-castle-3",
            "player-3-peg-4": "section-2-castle-4",
        })
        state = with_hand(state, "player-3", ["3"])
        state = state._copy_with(current_player_idx=2)

        result = play(
            state,
            TurnEvent.select_card("t0-3"),
            TurnEvent.select_peg("player-3-peg-1"),
            TurnEvent.choose_castle(True),
        )

        assert result.new_state.winner == 0
        assert result.new_state.get_player("player-1").team_id == 0


class TestLegalEvents:
    """legal_events only lists events the controller accepts."""

    def test_every_opening_event_is_accepted(self, two_player_state):
        """Every opening event listed is accepted."""
        controller = TurnController()
        turn = controller.start_turn(two_player_state)

        events = legal_events(two_player_state, turn)

        assert events
        for event in events:
            assert controller.handle(two_player_state, turn, event).success

    def test_nothing_outside_play(self, setup_state):
        assert legal_events(setup_state) == []

    def test_turn_state_round_trip(self, two_player_state):
        """A restored turn state equals the original."""
        state = arrange(two_player_state, {"player-1-peg-1": "section-0-normal-2"})
        state = with_hand(state, "player-1", ["5"])
        turn = play(state, TurnEvent.select_card("t0-5"), TurnEvent.select_peg("player-1-peg-1")).turn_state

        assert TurnState.from_dict(turn.to_dict()) == turn
