"""
Board Topology - Sections, spaces and track geometry.

The board is a ring of sections, one per seat (plus optional empty ones).
Every section contributes:
- 18 track spaces (index 0 is a corner, index 3 the castle entrance,
  index 8 the start space where pegs leave home)
- one home space holding the owner's pegs before they enter play
- a five-space castle only the owner may enter

Track spaces of all sections form one circular track, ordered by section
index then local index. Occupancy is kept in two id-keyed maps so that
lookups in either direction are direct:
- spaces: space id -> Space (with the pegs on it)
- peg_locations: peg id -> space id
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


TRACK_SPACES_PER_SECTION = 18
CORNER_INDEX = 0
ENTRANCE_INDEX = 3
START_INDEX = 8
CASTLE_SIZE = 5
HOME_CAPACITY = 4


class SpaceType(Enum):
    HOME = "home"
    NORMAL = "normal"
    CORNER = "corner"
    ENTRANCE = "entrance"
    CASTLE = "castle"


TRACK_TYPES = frozenset({SpaceType.NORMAL, SpaceType.CORNER, SpaceType.ENTRANCE})


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def opposite(self) -> Direction:
        return Direction.BACKWARD if self == Direction.FORWARD else Direction.FORWARD


def track_space_type(index: int) -> SpaceType:
    if index == CORNER_INDEX:
        return SpaceType.CORNER
    if index == ENTRANCE_INDEX:
        return SpaceType.ENTRANCE
    return SpaceType.NORMAL


def track_space_id(section_index: int, index: int) -> str:
    return f"section-{section_index}-{track_space_type(index).value}-{index}"


def home_space_id(section_index: int) -> str:
    return f"section-{section_index}-home"


def castle_space_id(section_index: int, index: int) -> str:
    return f"section-{section_index}-castle-{index}"


@dataclass
class Space:
    """A single space and the pegs currently on it."""
    space_id: str
    space_type: SpaceType
    section_index: int
    index: int
    pegs: list[str] = field(default_factory=list)
    owner_id: str | None = None  # home and castle spaces only

    @property
    def is_track(self) -> bool:
        return self.space_type in TRACK_TYPES

    @property
    def capacity(self) -> int | None:
        """Maximum peg count, or None when unbounded (track spaces)."""
        if self.space_type == SpaceType.HOME:
            return HOME_CAPACITY
        if self.space_type == SpaceType.CASTLE:
            return 1
        return None

    def to_dict(self) -> dict:
        return {
            "space_id": self.space_id,
            "space_type": self.space_type.value,
            "section_index": self.section_index,
            "index": self.index,
            "pegs": list(self.pegs),
            "owner_id": self.owner_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Space:
        return cls(
            space_id=data["space_id"],
            space_type=SpaceType(data["space_type"]),
            section_index=data["section_index"],
            index=data["index"],
            pegs=list(data.get("pegs", [])),
            owner_id=data.get("owner_id"),
        )


@dataclass
class Section:
    index: int
    player_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"index": self.index, "player_ids": list(self.player_ids)}


@dataclass
class Board:
    """
    Board topology plus occupancy.

    Geometry queries return None for unknown sections or spaces rather
    than raising; callers treat that as "no such place".
    """
    sections: list[Section] = field(default_factory=list)
    spaces: dict[str, Space] = field(default_factory=dict)
    peg_locations: dict[str, str] = field(default_factory=dict)
    track: list[str] = field(default_factory=list)

    # Derived lookup, rebuilt from `track`
    _track_positions: dict[str, int] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        if self.track and not self._track_positions:
            self._track_positions = {sid: i for i, sid in enumerate(self.track)}

    @classmethod
    def create(cls, num_sections: int, seats: dict[int, str] | None = None) -> Board:
        """
        Build an empty board.

        Args:
            num_sections: Number of sections on the ring
            seats: Section index -> owning player id
        """
        seats = seats or {}
        sections: list[Section] = []
        spaces: dict[str, Space] = {}
        track: list[str] = []

        for s in range(num_sections):
            owner = seats.get(s)
            sections.append(Section(index=s, player_ids=[owner] if owner else []))

            for i in range(TRACK_SPACES_PER_SECTION):
                sid = track_space_id(s, i)
                spaces[sid] = Space(
                    space_id=sid, space_type=track_space_type(i), section_index=s, index=i
                )
                track.append(sid)

            home_id = home_space_id(s)
            spaces[home_id] = Space(
                space_id=home_id,
                space_type=SpaceType.HOME,
                section_index=s,
                index=0,
                owner_id=owner,
            )
            for i in range(CASTLE_SIZE):
                cid = castle_space_id(s, i)
                spaces[cid] = Space(
                    space_id=cid,
                    space_type=SpaceType.CASTLE,
                    section_index=s,
                    index=i,
                    owner_id=owner,
                )

        return cls(sections=sections, spaces=spaces, track=track)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def track_length(self) -> int:
        return len(self.track)

    def get_space(self, space_id: str) -> Space | None:
        return self.spaces.get(space_id)

    def space_for_peg(self, peg_id: str) -> Space | None:
        space_id = self.peg_locations.get(peg_id)
        if space_id is None:
            return None
        return self.spaces.get(space_id)

    def _has_section(self, section_index: int) -> bool:
        return 0 <= section_index < len(self.sections)

    def entrance_for_section(self, section_index: int) -> Space | None:
        if not self._has_section(section_index):
            return None
        return self.spaces.get(track_space_id(section_index, ENTRANCE_INDEX))

    def start_for_section(self, section_index: int) -> Space | None:
        if not self._has_section(section_index):
            return None
        return self.spaces.get(track_space_id(section_index, START_INDEX))

    def home_for_section(self, section_index: int) -> Space | None:
        if not self._has_section(section_index):
            return None
        return self.spaces.get(home_space_id(section_index))

    def castle_space(self, section_index: int, index: int) -> Space | None:
        if not self._has_section(section_index) or not 0 <= index < CASTLE_SIZE:
            return None
        return self.spaces.get(castle_space_id(section_index, index))

    def castle_spaces(self, section_index: int) -> list[Space]:
        return [
            space for i in range(CASTLE_SIZE)
            if (space := self.castle_space(section_index, i)) is not None
        ]

    def occupied_track_spaces(self) -> list[Space]:
        """Track spaces holding at least one peg, in track order."""
        return [self.spaces[sid] for sid in self.track if self.spaces[sid].pegs]

    # -------------------------------------------------------------------------
    # Track geometry
    # -------------------------------------------------------------------------

    def track_position(self, space_id: str) -> int | None:
        return self._track_positions.get(space_id)

    def forward_distance(self, from_id: str, to_id: str) -> int | None:
        """Forward steps from one track space to another, wrapping around."""
        start = self.track_position(from_id)
        end = self.track_position(to_id)
        if start is None or end is None:
            return None
        return (end - start) % self.track_length

    def walk(self, space_id: str, steps: int, direction: Direction) -> list[str]:
        """
        Track spaces passed over when moving `steps` from `space_id`.

        The last element is the landing space. Returns [] for a space that
        is not on the track or a non-positive step count.
        """
        start = self.track_position(space_id)
        if start is None or steps <= 0:
            return []
        sign = 1 if direction == Direction.FORWARD else -1
        n = self.track_length
        return [self.track[(start + sign * k) % n] for k in range(1, steps + 1)]

    # -------------------------------------------------------------------------
    # Mutation (only on boards owned by a cloned state)
    # -------------------------------------------------------------------------

    def place_peg(self, peg_id: str, space_id: str):
        self.spaces[space_id].pegs.append(peg_id)
        self.peg_locations[peg_id] = space_id

    def move_peg(self, peg_id: str, dest_id: str):
        current = self.peg_locations.get(peg_id)
        if current is not None:
            self.spaces[current].pegs.remove(peg_id)
        self.place_peg(peg_id, dest_id)

    def to_dict(self) -> dict:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "spaces": {sid: space.to_dict() for sid, space in self.spaces.items()},
            "peg_locations": dict(self.peg_locations),
            "track": list(self.track),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Board:
        return cls(
            sections=[
                Section(index=s["index"], player_ids=list(s.get("player_ids", [])))
                for s in data["sections"]
            ],
            spaces={sid: Space.from_dict(s) for sid, s in data["spaces"].items()},
            peg_locations=dict(data["peg_locations"]),
            track=list(data["track"]),
        )
