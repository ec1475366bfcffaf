"""
Tests for the in-memory game store.

Tests:
- Seat claiming
- Optimistic concurrency
- Idle-game eviction
"""

import pytest

from ..engine_core.state import shuffle_and_deal_cards
from ..session.manager import (
    GameNotFoundError,
    GameSession,
    GameStore,
    SeatError,
    VersionConflictError,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return GameStore(ttl_seconds=60, clock=clock)


@pytest.fixture
def session(setup_state):
    return GameSession(game_id=setup_state.game_id, game_state=setup_state)


class TestSeats:
    """Tests for GameSession.claim_seat."""

    def test_claims_matching_seat(self, session):
        """A listed name claims its own seat."""
        seat = session.claim_seat("Bob")

        assert seat.player_id == "player-2"
        assert seat.session_token
        assert session.seat_for_token(seat.session_token) is seat

    def test_unknown_name_takes_next_free_seat(self, session):
        """Unlisted names fill the free seats in order."""
        first = session.claim_seat("Zed")
        second = session.claim_seat("Alice")

        assert first.player_id == "player-1"
        assert second.player_id == "player-2"

    def test_name_taken(self, session):
        """Names are unique regardless of case."""
        session.claim_seat("Alice")

        with pytest.raises(SeatError) as exc_info:
            session.claim_seat("alice")
        assert exc_info.value.code == "NAME_TAKEN"

    def test_game_full(self, session):
        """No seat is left once all are claimed."""
        session.claim_seat("Alice")
        session.claim_seat("Bob")

        with pytest.raises(SeatError) as exc_info:
            session.claim_seat("Carl")
        assert exc_info.value.code == "GAME_FULL"

    def test_started_game_refuses_seats(self, session):
        """Seats cannot be claimed after the start."""
        session.game_state = shuffle_and_deal_cards(session.game_state)

        with pytest.raises(SeatError) as exc_info:
            session.claim_seat("Alice")
        assert exc_info.value.code == "GAME_ALREADY_STARTED"

    def test_blank_name(self, session):
        """Blank names are refused."""
        with pytest.raises(SeatError):
            session.claim_seat("   ")

    def test_unknown_token(self, session):
        """Unknown tokens find no seat."""
        session.claim_seat("Alice")

        assert session.seat_for_token("bogus") is None
        assert session.seat_for_token(None) is None


class TestGameStore:
    """Tests for GameStore."""

    def test_create_and_get(self, store, session):
        """Stored games can be fetched back."""
        store.create(session)

        assert store.get(session.game_id) is session
        assert store.list() == [session]

    def test_require_missing(self, store):
        """Requiring an unknown game raises."""
        with pytest.raises(GameNotFoundError):
            store.require("missing")

    def test_update_bumps_version(self, store, session):
        """Updates bump the version."""
        store.create(session)
        dealt = shuffle_and_deal_cards(session.game_state)

        updated = store.update(session.game_id, dealt, expected_version=0)

        assert updated.version == 1
        assert updated.game_state is dealt

    def test_stale_write_rejected(self, store, session):
        """Writes against an old version are rejected."""
        store.create(session)
        store.update(session.game_id, session.game_state, expected_version=0)

        with pytest.raises(VersionConflictError):
            store.update(session.game_id, session.game_state, expected_version=0)

    def test_delete(self, store, session):
        """Deleted games are gone."""
        store.create(session)

        assert store.delete(session.game_id)
        assert not store.delete(session.game_id)
        assert store.get(session.game_id) is None

    def test_idle_games_are_evicted(self, store, session, clock):
        """Games idle past the TTL are dropped."""
        store.create(session)
        clock.now += 61

        assert store.get(session.game_id) is None

    def test_activity_keeps_game_alive(self, store, session, clock):
        """Touching a game resets its idle clock."""
        store.create(session)
        clock.now += 50
        store.touch(session.game_id)
        clock.now += 50

        assert store.get(session.game_id) is session

    def test_purge_reports_evicted_ids(self, store, session, clock):
        """Purging returns the evicted game ids."""
        store.create(session)
        clock.now += 120

        assert store.purge_expired() == [session.game_id]
