"""
Moves - Candidate moves produced by the generator and consumed by the applier.

Every move carries a metadata variant describing what kind of move it is:
- Advance: a plain single-peg move along the track or inside the castle
- HomeExit: an ace or face card brings a peg out of home
- SplitFirstLeg / SplitSecondLeg: the two halves of a split 7 or 9
- CastleEntry: the peg turns off the track into its castle
- JokerCapture: a joker teleports a peg onto an opponent

The modifiers a move was generated with travel along with it, so the
applier can regenerate the same candidate set and verify the move.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, ClassVar, Union

from .board import Direction
from .errors import EngineInvariantError

if TYPE_CHECKING:
    from .state import GameState


@dataclass(frozen=True)
class MoveModifiers:
    """Caller-provided refinements for split cards."""
    steps: int | None = None
    direction: Direction | None = None
    is_second_move: bool = False
    first_move_peg_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "steps": self.steps,
            "direction": self.direction.value if self.direction else None,
            "is_second_move": self.is_second_move,
            "first_move_peg_id": self.first_move_peg_id,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> MoveModifiers | None:
        if data is None:
            return None
        direction = data.get("direction")
        return cls(
            steps=data.get("steps"),
            direction=Direction(direction) if direction else None,
            is_second_move=data.get("is_second_move", False),
            first_move_peg_id=data.get("first_move_peg_id"),
        )


@dataclass(frozen=True)
class Advance:
    kind: ClassVar[str] = "advance"
    steps: int
    direction: Direction = Direction.FORWARD


@dataclass(frozen=True)
class HomeExit:
    kind: ClassVar[str] = "home_exit"


@dataclass(frozen=True)
class SplitFirstLeg:
    kind: ClassVar[str] = "split_first_leg"
    rank: str
    steps: int
    direction: Direction = Direction.FORWARD


@dataclass(frozen=True)
class SplitSecondLeg:
    kind: ClassVar[str] = "split_second_leg"
    rank: str
    steps: int
    direction: Direction
    first_peg_id: str | None = None


@dataclass(frozen=True)
class CastleEntry:
    kind: ClassVar[str] = "castle_entry"
    steps: int
    castle_index: int
    split: SplitFirstLeg | SplitSecondLeg | None = None


@dataclass(frozen=True)
class JokerCapture:
    kind: ClassVar[str] = "joker_capture"


MoveMetadata = Union[Advance, HomeExit, SplitFirstLeg, SplitSecondLeg, CastleEntry, JokerCapture]

_METADATA_TYPES: dict[str, type] = {
    cls.kind: cls
    for cls in (Advance, HomeExit, SplitFirstLeg, SplitSecondLeg, CastleEntry, JokerCapture)
}


def metadata_to_dict(metadata: MoveMetadata) -> dict:
    data: dict = {"kind": metadata.kind}
    if isinstance(metadata, (Advance, SplitFirstLeg, SplitSecondLeg)):
        data["steps"] = metadata.steps
        data["direction"] = metadata.direction.value
    if isinstance(metadata, (SplitFirstLeg, SplitSecondLeg)):
        data["rank"] = metadata.rank
    if isinstance(metadata, SplitSecondLeg):
        data["first_peg_id"] = metadata.first_peg_id
    if isinstance(metadata, CastleEntry):
        data["steps"] = metadata.steps
        data["castle_index"] = metadata.castle_index
        data["split"] = metadata_to_dict(metadata.split) if metadata.split else None
    return data


def metadata_from_dict(data: dict) -> MoveMetadata:
    cls = _METADATA_TYPES.get(data.get("kind", ""))
    if cls is None:
        raise ValueError(f"Unknown move kind: {data.get('kind')}")
    if cls is HomeExit:
        return HomeExit()
    if cls is Advance:
        return Advance(steps=data["steps"], direction=Direction(data["direction"]))
    if cls is SplitFirstLeg:
        return SplitFirstLeg(
            rank=data["rank"], steps=data["steps"], direction=Direction(data["direction"])
        )
    if cls is SplitSecondLeg:
        return SplitSecondLeg(
            rank=data["rank"],
            steps=data["steps"],
            direction=Direction(data["direction"]),
            first_peg_id=data.get("first_peg_id"),
        )
    if cls is CastleEntry:
        split = data.get("split")
        return CastleEntry(
            steps=data["steps"],
            castle_index=data["castle_index"],
            split=metadata_from_dict(split) if split else None,
        )
    return JokerCapture()


@dataclass
class Move:
    """
    A candidate move for one peg.

    `destinations` usually holds one space. A joker move lists every space
    it could land on; callers narrow it to one before applying.
    """
    player_id: str
    card_id: str
    peg_id: str
    from_space_id: str
    destinations: list[str]
    metadata: MoveMetadata
    modifiers: MoveModifiers | None = None

    @property
    def kind(self) -> str:
        return self.metadata.kind

    @property
    def is_castle_entry(self) -> bool:
        return isinstance(self.metadata, CastleEntry)

    @property
    def split_leg(self) -> SplitFirstLeg | SplitSecondLeg | None:
        if isinstance(self.metadata, (SplitFirstLeg, SplitSecondLeg)):
            return self.metadata
        if isinstance(self.metadata, CastleEntry):
            return self.metadata.split
        return None

    @property
    def is_first_split_leg(self) -> bool:
        """True when the card stays in hand after this move."""
        return isinstance(self.split_leg, SplitFirstLeg)

    @property
    def destination(self) -> str:
        if len(self.destinations) != 1:
            raise EngineInvariantError(
                f"Move for {self.peg_id} has {len(self.destinations)} destinations, expected one"
            )
        return self.destinations[0]

    def narrow(self, space_id: str) -> Move:
        """Copy of this move with a single chosen destination."""
        if space_id not in self.destinations:
            raise EngineInvariantError(
                f"{space_id} is not a destination of the move for {self.peg_id}"
            )
        return replace(self, destinations=[space_id])

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "card_id": self.card_id,
            "peg_id": self.peg_id,
            "from_space_id": self.from_space_id,
            "destinations": list(self.destinations),
            "metadata": metadata_to_dict(self.metadata),
            "modifiers": self.modifiers.to_dict() if self.modifiers else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Move:
        return cls(
            player_id=data["player_id"],
            card_id=data["card_id"],
            peg_id=data["peg_id"],
            from_space_id=data["from_space_id"],
            destinations=list(data["destinations"]),
            metadata=metadata_from_dict(data["metadata"]),
            modifiers=MoveModifiers.from_dict(data.get("modifiers")),
        )


@dataclass
class MoveOutcome:
    """Result of applying a move."""
    new_state: GameState
    bump_message: str | None = None
    bumped_peg_ids: list[str] = field(default_factory=list)
