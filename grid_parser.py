"""
Grid parsing utilities for puzzle input text.

Provides three entry points:
1. ``text_view`` - zero-copy strided view over rectangular multi-line text
2. ``parse_maze`` - maze text into a terrain buffer plus the start coordinate
3. ``parse_garden`` - garden text into a buffer of plot labels
"""

from __future__ import annotations

import logging

from grid_types import Terrain
from matrix import Coord, GridBuffer, GridView, Strided

__all__ = ["parse_garden", "parse_maze", "split_rows", "text_view"]

logger = logging.getLogger(__name__)


def split_rows(text: str) -> list[str]:
    """
    Split input text into rows, validating that the result is rectangular.

    Trailing blank lines (and a trailing newline) are ignored; blank lines in
    the middle of the grid are an error because they break rectangularity.

    Raises:
        ValueError: If the text is empty or rows have different lengths
    """
    rows = text.rstrip("\n").split("\n")
    if not rows or not rows[0]:
        raise ValueError("Empty grid: input contains no rows")

    cols = len(rows[0])
    mismatched = [(i, len(row)) for i, row in enumerate(rows) if len(row) != cols]
    if mismatched:
        error_msg = (
            f"Inconsistent row lengths\n"
            f"  Expected: {cols} columns (from row 0)\n"
            f"  Mismatched rows:\n"
        )
        for row_idx, actual_cols in mismatched:
            error_msg += f"    Row {row_idx}: {actual_cols} columns - \"{rows[row_idx]}\"\n"
        error_msg += "  All rows must have the same number of cells"
        raise ValueError(error_msg)

    return rows


def text_view(text: str) -> GridView[str]:
    """
    View rectangular text as a grid of characters without copying it.

    Each row is followed by one newline in the underlying string, so the row
    stride is ``cols + 1``.
    """
    rows = split_rows(text)
    height, width = len(rows), len(rows[0])
    # Rows are separated by single newlines, so they are a prefix of text.
    return GridView(text, (height, width), Strided((width + 1, 1)))


def parse_maze(text: str) -> tuple[Coord, GridBuffer[Terrain]]:
    """
    Parse a maze into its start coordinate and a grid of terrain.

    Format:
    - One row per line, all rows the same length
    - '#' wall, '.' free, 'S' start (exactly one), 'E' end (at least one)

    Example:
        \"\"\"
        #####
        #S.E#
        #####
        \"\"\"

        Returns ((1, 1), <3x5 buffer>)

    Raises:
        ValueError: On unknown characters, ragged rows, or a missing/duplicate
            start or missing end
    """
    rows = split_rows(text)
    cells: list[Terrain] = []
    starts: list[Coord] = []
    ends = 0

    for row_idx, row_str in enumerate(rows):
        for col_idx, char in enumerate(row_str):
            try:
                terrain = Terrain(char)
            except ValueError:
                raise ValueError(
                    f"Invalid character '{char}' in maze\n"
                    f"  Row {row_idx}: \"{row_str}\"\n"
                    f"  Position: column {col_idx}\n"
                    f"  Valid characters: '#' wall, '.' free, 'S' start, 'E' end"
                ) from None
            if terrain is Terrain.START:
                starts.append((row_idx, col_idx))
            elif terrain is Terrain.END:
                ends += 1
            cells.append(terrain)

    if len(starts) != 1:
        found = ", ".join(str(s) for s in starts) or "none"
        raise ValueError(
            f"Maze must contain exactly one start 'S'\n"
            f"  Found {len(starts)}: {found}"
        )
    if ends == 0:
        raise ValueError("Maze must contain at least one end 'E'")

    extents = (len(rows), len(rows[0]))
    logger.debug("parse_maze: %dx%d maze, start=%s, %d end cell(s)", *extents, starts[0], ends)
    return starts[0], GridBuffer(cells, extents)


def parse_garden(text: str) -> GridBuffer[str]:
    """
    Parse a garden map: every character is the label of one plot.

    Raises:
        ValueError: If the text is empty or ragged
    """
    view = text_view(text)
    cells = [view[coord] for coord in view.indices()]
    logger.debug("parse_garden: %dx%d garden", *view.extents)
    return GridBuffer(cells, view.extents)
