"""
Command-line runner for the maze and garden puzzles.

Usage:
    python demo.py maze INPUT [--render] [--turn-cost N] [--move-cost N]
    python demo.py garden INPUT
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ascii_render import render_maze
from grid_parser import parse_garden
from maze import MazeRules, UnreachableGoalError, solve
from regions import find_regions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solve grid puzzles from an input file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="log search progress")
    sub = parser.add_subparsers(dest="puzzle", required=True)

    maze = sub.add_parser("maze", help="cheapest route through a maze, and the tiles on it")
    maze.add_argument("input", type=Path)
    maze.add_argument("--render", action="store_true", help="print the maze with optimal tiles marked")
    maze.add_argument("--turn-cost", type=int, default=MazeRules.turn_cost)
    maze.add_argument("--move-cost", type=int, default=MazeRules.move_cost)

    garden = sub.add_parser("garden", help="fence prices for garden regions")
    garden.add_argument("input", type=Path)

    return parser


def run_maze(text: str, args: argparse.Namespace) -> list[int]:
    rules = MazeRules(turn_cost=args.turn_cost, move_cost=args.move_cost)
    solution = solve(text, rules)
    if args.render:
        print(render_maze(solution.terrain, solution.tiles))
        print()
    return [solution.cost, len(solution.tiles)]


def run_garden(text: str) -> list[int]:
    regions = find_regions(parse_garden(text))
    return [
        sum(region.fence_price for region in regions),
        sum(region.bulk_price for region in regions),
    ]


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        text = args.input.read_text()
    except OSError as exc:
        print(f"error: cannot read {args.input}: {exc.strerror}", file=sys.stderr)
        return 1

    try:
        if args.puzzle == "maze":
            answers = run_maze(text, args)
        else:
            answers = run_garden(text)
    except (ValueError, UnreachableGoalError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    for idx, answer in enumerate(answers, start=1):
        print(f"result of puzzle{idx}: {answer}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
