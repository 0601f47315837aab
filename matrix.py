"""
Generic two-dimensional grid container.

A grid is a flat sequence of cells plus its extents ``(rows, cols)`` and a
layout strategy that maps a logical coordinate ``(row, col)`` to an offset in
the flat sequence. Three handles exist over the same storage:

1. ``GridBuffer`` - owns its list of cells
2. ``GridView`` - read-only, may also wrap any flat sequence (e.g. a ``str``)
3. ``GridViewMut`` - read-write, handed out by a ``GridBuffer``

A buffer never has a mutable view live at the same time as any other view.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, Protocol, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Coord = tuple[int, int]
Extents = tuple[int, int]

NEIGHBOUR_OFFSETS: tuple[Coord, ...] = ((-1, 0), (0, 1), (1, 0), (0, -1))


class BorrowError(RuntimeError):
    """A view was requested that would alias a live mutable view."""


# =============================================================================
# Layout Strategies
# =============================================================================


class Layout(Protocol):
    """Maps a logical coordinate to an offset into a flat buffer."""

    def map_indices(self, extents: Extents, coord: Coord) -> int: ...

    def required_span(self, extents: Extents) -> int: ...


@dataclass(frozen=True)
class RowMajor:
    """Rows are contiguous: ``offset = cols * i + j``."""

    def map_indices(self, extents: Extents, coord: Coord) -> int:
        i, j = coord
        return extents[1] * i + j

    def required_span(self, extents: Extents) -> int:
        return extents[0] * extents[1]


@dataclass(frozen=True)
class ColumnMajor:
    """Columns are contiguous: ``offset = rows * j + i``."""

    def map_indices(self, extents: Extents, coord: Coord) -> int:
        i, j = coord
        return extents[0] * j + i

    def required_span(self, extents: Extents) -> int:
        return extents[0] * extents[1]


@dataclass(frozen=True)
class Strided:
    """
    Arbitrary strides per axis: ``offset = strides[0] * i + strides[1] * j``.

    ``Strided((cols + 1, 1))`` reads multi-line text in place, skipping the
    newline that ends every row.
    """

    strides: tuple[int, int]

    def __post_init__(self) -> None:
        if self.strides[0] < 0 or self.strides[1] < 0:
            raise ValueError(f"Strides must be non-negative, got {self.strides}")

    def map_indices(self, extents: Extents, coord: Coord) -> int:
        i, j = coord
        return self.strides[0] * i + self.strides[1] * j

    def required_span(self, extents: Extents) -> int:
        rows, cols = extents
        if rows == 0 or cols == 0:
            return 0
        return self.map_indices(extents, (rows - 1, cols - 1)) + 1


# =============================================================================
# Coordinate Helpers
# =============================================================================


def offset_by(coord: Coord, offset: Coord) -> Coord | None:
    """Shift a coordinate, returning None if either component goes negative."""
    i = coord[0] + offset[0]
    j = coord[1] + offset[1]
    if i < 0 or j < 0:
        return None
    return (i, j)


# =============================================================================
# Views
# =============================================================================


class GridView(Generic[T]):
    """Read-only, bounds-checked view over a flat sequence of cells."""

    def __init__(
        self,
        data: Sequence[T],
        extents: Extents,
        layout: Layout | None = None,
    ) -> None:
        self._data = data
        self._extents = extents
        self._layout: Layout = layout if layout is not None else RowMajor()
        self._release: Callable[[], None] | None = None
        # The handle whose borrow this view lives under; itself unless derived.
        self._owner: GridView[T] = self
        self._released = False

        rows, cols = extents
        if rows < 0 or cols < 0:
            raise ValueError(f"Extents must be non-negative, got {extents}")
        required = max(rows * cols, self._layout.required_span(extents))
        if len(data) < required:
            raise ValueError(
                f"Buffer too small for grid\n"
                f"  Extents: {rows} rows x {cols} cols\n"
                f"  Layout: {self._layout!r} needs {required} cells\n"
                f"  Buffer holds: {len(data)} cells"
            )

    @property
    def extents(self) -> Extents:
        return self._extents

    @property
    def layout(self) -> Layout:
        return self._layout

    @property
    def data(self) -> Sequence[T]:
        return self._data

    def in_bounds(self, coord: Coord) -> bool:
        i, j = coord
        return 0 <= i < self._extents[0] and 0 <= j < self._extents[1]

    def get(self, coord: Coord) -> T | None:
        """Return the cell at coord, or None if coord is out of bounds."""
        self._check_live()
        if not self.in_bounds(coord):
            return None
        return self._data[self._layout.map_indices(self._extents, coord)]

    def __getitem__(self, coord: Coord) -> T:
        self._check_live()
        # Unchecked: callers validate coord with in_bounds/get first.
        return self._data[self._layout.map_indices(self._extents, coord)]

    def indices(self) -> Iterator[Coord]:
        """Iterate over every coordinate in row-major logical order."""
        rows, cols = self._extents
        for i in range(rows):
            for j in range(cols):
                yield (i, j)

    def rows(self) -> Iterator[list[T]]:
        """Iterate over logical rows, independent of the physical layout."""
        rows, cols = self._extents
        for i in range(rows):
            yield [self[(i, j)] for j in range(cols)]

    def neighbour_coords(self, coord: Coord) -> Iterator[Coord]:
        """Yield the in-bounds 4-neighbours of coord (up, right, down, left)."""
        for offset in NEIGHBOUR_OFFSETS:
            candidate = offset_by(coord, offset)
            if candidate is not None and self.in_bounds(candidate):
                yield candidate

    def find(self, value: T) -> Coord | None:
        """Return the first coordinate (row-major order) holding value."""
        for coord in self.indices():
            if self[coord] == value:
                return coord
        return None

    # -------------------------------------------------------------------------
    # Borrow lifetime
    # -------------------------------------------------------------------------

    def release(self) -> None:
        """Give the borrow back to the owning buffer (no-op for free views)."""
        if self._release is not None:
            self._release()
            self._release = None
            self._released = True

    @property
    def released(self) -> bool:
        return self._owner._released

    def _check_live(self) -> None:
        if self._owner._released:
            raise BorrowError("Grid view used after its borrow was released")

    def __enter__(self) -> GridView[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __repr__(self) -> str:
        if self.released:
            return f"{type(self).__name__}({self._extents[0]}x{self._extents[1]}: released)"
        rows = ", ".join(repr(row) for row in self.rows())
        return f"{type(self).__name__}({self._extents[0]}x{self._extents[1]}: [{rows}])"


class GridViewMut(GridView[T]):
    """Read-write view; only obtainable from a GridBuffer."""

    _data: list[T]

    def __setitem__(self, coord: Coord, value: T) -> None:
        self._check_live()
        self._data[self._layout.map_indices(self._extents, coord)] = value

    def set(self, coord: Coord, value: T) -> bool:
        """Store value at coord; returns False (and stores nothing) if out of bounds."""
        if not self.in_bounds(coord):
            return False
        self[coord] = value
        return True

    def as_view(self) -> GridView[T]:
        """
        A read-only handle sharing this view's storage and borrow.

        It dies with this view: once the mutable borrow is released, any
        access through the derived handle raises BorrowError.
        """
        derived: GridView[T] = GridView(self._data, self._extents, self._layout)
        derived._owner = self._owner
        return derived

    def __enter__(self) -> GridViewMut[T]:
        return self


# =============================================================================
# Owned Buffer
# =============================================================================


class GridBuffer(Generic[T]):
    """
    Owns a flat list of cells and hands out views over it.

    Any number of read-only views may be live at once, or exactly one mutable
    view. A view's borrow ends when it is released, leaves its ``with`` block,
    or is garbage collected.
    """

    def __init__(
        self,
        data: list[T],
        extents: Extents,
        layout: Layout | None = None,
    ) -> None:
        # Validates size up front; the view itself is discarded.
        GridView(data, extents, layout)
        self._data = data
        self._extents = extents
        self._layout: Layout = layout if layout is not None else RowMajor()
        self._shared = 0
        self._exclusive = False

    @classmethod
    def spread(cls, value: T, extents: Extents, layout: Layout | None = None) -> GridBuffer[T]:
        """A buffer of the given extents with every cell set to value."""
        layout = layout if layout is not None else RowMajor()
        size = max(extents[0] * extents[1], layout.required_span(extents))
        return cls([value] * size, extents, layout)

    @property
    def extents(self) -> Extents:
        return self._extents

    @property
    def layout(self) -> Layout:
        return self._layout

    @property
    def borrowed_mut(self) -> bool:
        return self._exclusive

    @property
    def shared_borrows(self) -> int:
        return self._shared

    def view(self) -> GridView[T]:
        """Borrow the buffer read-only."""
        if self._exclusive:
            raise BorrowError("Cannot borrow grid read-only while a mutable view is live")
        handle: GridView[T] = GridView(self._data, self._extents, self._layout)
        self._shared += 1
        handle._release = self._finalizer(handle, self._end_shared)
        return handle

    def view_mut(self) -> GridViewMut[T]:
        """Borrow the buffer mutably; fails if any other view is live."""
        if self._exclusive:
            raise BorrowError("Cannot borrow grid mutably: a mutable view is already live")
        if self._shared:
            raise BorrowError(
                f"Cannot borrow grid mutably: {self._shared} read-only view(s) still live"
            )
        handle: GridViewMut[T] = GridViewMut(self._data, self._extents, self._layout)
        self._exclusive = True
        handle._release = self._finalizer(handle, self._end_exclusive)
        return handle

    def into_list(self) -> list[T]:
        """Give up ownership of the underlying list."""
        if self._exclusive or self._shared:
            raise BorrowError("Cannot take the buffer's storage while views are live")
        data, self._data = self._data, []
        self._extents = (0, 0)
        return data

    def _end_shared(self) -> None:
        self._shared -= 1

    def _end_exclusive(self) -> None:
        self._exclusive = False

    @staticmethod
    def _finalizer(handle: GridView[T], callback: Callable[[], None]) -> Callable[[], None]:
        # weakref.finalize runs at most once: either on release() or on collection.
        return weakref.finalize(handle, callback)

    def __repr__(self) -> str:
        return (
            f"GridBuffer({self._extents[0]}x{self._extents[1]}, layout={self._layout!r}, "
            f"shared={self._shared}, exclusive={self._exclusive})"
        )
