"""
Shared type definitions for maze routing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from matrix import Coord


class Direction(Enum):
    """Cardinal facing direction, in clockwise order."""

    N = "N"  # Up (decreasing row)
    E = "E"  # Right (increasing col)
    S = "S"  # Down (increasing row)
    W = "W"  # Left (decreasing col)

    @property
    def offset(self) -> Coord:
        """Unit displacement as (drow, dcol)."""
        return _OFFSETS[self]

    def rotate_right(self) -> Direction:
        """Quarter turn clockwise."""
        return _CLOCKWISE[(_CLOCKWISE.index(self) + 1) % 4]

    def rotate_left(self) -> Direction:
        """Quarter turn counter-clockwise."""
        return _CLOCKWISE[(_CLOCKWISE.index(self) - 1) % 4]

    def reverse(self) -> Direction:
        return self.rotate_left().rotate_left()


_CLOCKWISE: tuple[Direction, ...] = (Direction.N, Direction.E, Direction.S, Direction.W)

_OFFSETS: dict[Direction, Coord] = {
    Direction.N: (-1, 0),
    Direction.E: (0, 1),
    Direction.S: (1, 0),
    Direction.W: (0, -1),
}


class Terrain(Enum):
    """Static content of one maze cell, keyed by its input character."""

    START = "S"
    END = "E"
    WALL = "#"
    FREE = "."


@dataclass(frozen=True)
class State:
    """A search node: where the reindeer stands and which way it faces."""

    coord: Coord
    direction: Direction

    def __repr__(self) -> str:
        return f"State({self.coord[0]}, {self.coord[1]}, {self.direction.value})"
