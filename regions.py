"""
Garden regions: connected plots sharing a label.

Each region is measured by area, perimeter and number of straight sides. The
number of sides equals the number of corners, which can be counted cell by
cell from the 3x3 neighbourhood, so no edge tracing is required.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from grid_parser import parse_garden
from matrix import Coord, GridBuffer, GridView, GridViewMut, offset_by

logger = logging.getLogger(__name__)

# Placeholder written over cells of the region currently being flood-filled
VISITING = "<visiting>"

# Placeholder written over cells of regions already measured
CONSUMED = "<consumed>"

# (row, col) offsets of the four diagonal quadrants
_QUADRANTS: tuple[Coord, ...] = ((-1, -1), (-1, 1), (1, 1), (1, -1))


@dataclass(frozen=True)
class Region:
    """One connected region of equal labels."""

    label: str
    area: int
    perimeter: int
    sides: int
    cells: frozenset[Coord]

    @property
    def fence_price(self) -> int:
        return self.area * self.perimeter

    @property
    def bulk_price(self) -> int:
        return self.area * self.sides


def _same_region(view: GridView[str], coord: Coord, offset: Coord, label: str) -> bool:
    neighbour = offset_by(coord, offset)
    if neighbour is None:
        return False
    value = view.get(neighbour)
    return value == label or value == VISITING


def count_corners(view: GridView[str], coord: Coord) -> int:
    """
    Number of region corners touching the cell at coord.

    For each diagonal quadrant, the cell contributes a convex corner when both
    orthogonal neighbours are outside the region, and a concave corner when
    both are inside but the diagonal neighbour is outside. Cells marked
    ``VISITING`` count as part of the region.
    """
    label = view[coord]
    corners = 0
    for dr, dc in _QUADRANTS:
        vertical = _same_region(view, coord, (dr, 0), label)
        horizontal = _same_region(view, coord, (0, dc), label)
        if not vertical and not horizontal:
            corners += 1
        elif vertical and horizontal and not _same_region(view, coord, (dr, dc), label):
            corners += 1
    return corners


def _eat_region(grid: GridViewMut[str], start: Coord) -> Region:
    label = grid[start]
    area = 0
    perimeter = 0
    corners = 0
    visited: list[Coord] = []
    pending = [start]

    while pending:
        top = pending.pop()
        if grid[top] == VISITING:
            continue
        visited.append(top)
        # Corners must be counted before this cell stops carrying its label.
        corners += count_corners(grid, top)
        grid[top] = VISITING

        same = [c for c in grid.neighbour_coords(top) if grid[c] in (label, VISITING)]
        area += 1
        perimeter += 4 - len(same)
        pending.extend(same)

    for coord in visited:
        grid[coord] = CONSUMED

    return Region(label, area, perimeter, corners, frozenset(visited))


def find_regions(garden: GridBuffer[str]) -> list[Region]:
    """
    Split a garden into its regions, in row-major order of their first cell.

    The garden itself is left untouched; the flood fill works on a copy.
    """
    with garden.view() as view:
        work = GridBuffer([view[c] for c in view.indices()], view.extents)

    regions: list[Region] = []
    with work.view_mut() as grid:
        for coord in grid.indices():
            if grid[coord] == CONSUMED:
                continue
            regions.append(_eat_region(grid, coord))

    logger.debug("find_regions: %d regions in %dx%d garden", len(regions), *garden.extents)
    return regions


def fence_price(text: str) -> int:
    """Sum over regions of area times perimeter."""
    return sum(region.fence_price for region in find_regions(parse_garden(text)))


def bulk_price(text: str) -> int:
    """Sum over regions of area times number of sides."""
    return sum(region.bulk_price for region in find_regions(parse_garden(text)))
