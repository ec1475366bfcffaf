"""
Cards - Ranks, suits and deck construction.

One standard 54-card deck (52 + 2 jokers) is used per two players,
rounded up. Card ids stay unique across decks.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import math


class Suit(Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"
    JOKER = "joker"


class Rank(Enum):
    """Card ranks. Values are the labels used in card ids."""
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "jack"
    QUEEN = "queen"
    KING = "king"
    ACE = "ace"
    JOKER = "joker"


FACE_RANKS = frozenset({Rank.JACK, Rank.QUEEN, Rank.KING})
SPLIT_RANKS = frozenset({Rank.SEVEN, Rank.NINE})

# Ranks that can bring a peg out of home
HOME_EXIT_RANKS = FACE_RANKS | {Rank.ACE}

STANDARD_SUITS = (Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES)
JOKERS_PER_DECK = 2


@dataclass(frozen=True)
class Card:
    """A physical card. Immutable."""
    card_id: str
    rank: Rank
    suit: Suit

    @property
    def is_face(self) -> bool:
        return self.rank in FACE_RANKS

    @property
    def is_split(self) -> bool:
        return self.rank in SPLIT_RANKS

    @property
    def is_joker(self) -> bool:
        return self.rank == Rank.JOKER

    @property
    def value(self) -> int:
        """Number of spaces the card moves a peg in a plain move."""
        if self.rank == Rank.ACE:
            return 1
        if self.rank in FACE_RANKS:
            return 10
        if self.rank == Rank.JOKER:
            return 0
        return int(self.rank.value)

    def to_dict(self) -> dict:
        return {"card_id": self.card_id, "rank": self.rank.value, "suit": self.suit.value}

    @classmethod
    def from_dict(cls, data: dict) -> Card:
        return cls(card_id=data["card_id"], rank=Rank(data["rank"]), suit=Suit(data["suit"]))


def decks_for_players(num_players: int) -> int:
    return max(1, math.ceil(num_players / 2))


def build_deck(num_decks: int = 1) -> list[Card]:
    """Build an unshuffled pile of `num_decks` full decks."""
    cards: list[Card] = []
    for deck in range(num_decks):
        for suit in STANDARD_SUITS:
            for rank in Rank:
                if rank == Rank.JOKER:
                    continue
                cards.append(Card(
                    card_id=f"d{deck}-{rank.value}-{suit.value}",
                    rank=rank,
                    suit=suit,
                ))
        for n in range(1, JOKERS_PER_DECK + 1):
            cards.append(Card(card_id=f"d{deck}-joker-{n}", rank=Rank.JOKER, suit=Suit.JOKER))
    return cards
