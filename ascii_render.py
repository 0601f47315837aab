"""
ASCII rendering for mazes and search results.

Provides two rendering approaches:
1. Colored rendering with simple_chalk - walls, endpoints, optimal tiles and
   the current pose each get their own color
2. Plain rendering - same characters, no ANSI codes (for tests and logs)
"""

from __future__ import annotations

import logging
from typing import Callable

from simple_chalk import chalk  # type: ignore[import-untyped]

from grid_types import Direction, State, Terrain
from matrix import Coord, GridBuffer, GridView

logger = logging.getLogger(__name__)

Colorize = Callable[[str], str]

ARROWS: dict[Direction, str] = {
    Direction.N: "^",
    Direction.E: ">",
    Direction.S: "v",
    Direction.W: "<",
}

TILE_MARK = "O"


def _identity(s: str) -> str:
    return s


def _render_lines(
    grid: GridView[Terrain],
    tiles: set[Coord],
    position: State | None,
    color_for: Callable[[str], Colorize],
) -> list[str]:
    lines: list[str] = []
    for r_idx, row in enumerate(grid.rows()):
        parts: list[str] = []
        for c_idx, cell in enumerate(row):
            coord = (r_idx, c_idx)
            if position is not None and position.coord == coord:
                parts.append(color_for("position")(ARROWS[position.direction]))
                continue

            match cell:
                case Terrain.WALL:
                    parts.append(color_for("wall")(cell.value))
                case Terrain.START | Terrain.END:
                    parts.append(color_for("endpoint")(cell.value))
                case Terrain.FREE if coord in tiles:
                    parts.append(color_for("tile")(TILE_MARK))
                case _:
                    parts.append(color_for("free")(cell.value))
        lines.append("".join(parts))
    return lines


def _chalk_palette(role: str) -> Colorize:
    match role:
        case "wall":
            return chalk.blue
        case "endpoint":
            return chalk.greenBright
        case "tile":
            return chalk.yellowBright
        case "position":
            return chalk.bgWhite.black
        case _:
            return _identity


def render_maze(
    terrain: GridBuffer[Terrain] | GridView[Terrain],
    tiles: set[Coord] | None = None,
    position: State | None = None,
) -> str:
    """
    Render a maze to a colored string.

    Args:
        terrain: The maze grid
        tiles: Optional coordinates to mark with 'O' (free cells only;
            start and end keep their letters)
        position: Optional state drawn as an arrow on top of everything

    Returns:
        Rendered ASCII string with ANSI color codes
    """
    return _render(terrain, tiles, position, _chalk_palette)


def render_plain(
    terrain: GridBuffer[Terrain] | GridView[Terrain],
    tiles: set[Coord] | None = None,
    position: State | None = None,
) -> str:
    """Render a maze exactly like render_maze, but without colors."""
    return _render(terrain, tiles, position, lambda role: _identity)


def _render(
    terrain: GridBuffer[Terrain] | GridView[Terrain],
    tiles: set[Coord] | None,
    position: State | None,
    color_for: Callable[[str], Colorize],
) -> str:
    tiles = tiles if tiles is not None else set()
    if isinstance(terrain, GridBuffer):
        with terrain.view() as grid:
            lines = _render_lines(grid, tiles, position, color_for)
    else:
        lines = _render_lines(terrain, tiles, position, color_for)
    logger.debug("render: %d rows, %d highlighted tiles", len(lines), len(tiles))
    return "\n".join(lines)
