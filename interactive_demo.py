"""
Interactive maze explorer.
Walk the reindeer through a maze with keyboard commands and compare the
score against the cheapest route.
"""

import logging
import sys
from pathlib import Path

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render_maze
from grid_types import State, Terrain
from maze import MazeGraph, MazeRules, MazeSolution, solve


class InteractiveDemo:
    """Interactive explorer: moves are only accepted along graph edges."""

    def __init__(self, text: str, rules: MazeRules | None = None) -> None:
        self.rules = rules if rules is not None else MazeRules()
        self.solution: MazeSolution = solve(text, self.rules)
        self.graph = MazeGraph(self.solution.terrain, self.rules)
        self.console = Console()
        self.show_optimal = False
        self.reset()

    def reset(self) -> None:
        """Put the reindeer back on the start cell."""
        self.state = State(self.solution.start, self.rules.start_direction)
        self.score = 0
        self.status_message = "Ready"

    @property
    def finished(self) -> bool:
        return self.graph.terrain(self.state) is Terrain.END

    def generate_display(self) -> Panel:
        """Generate the current display with maze and status."""
        tiles = self.solution.tiles if self.show_optimal else set()
        grid_text = render_maze(self.graph.grid, tiles, self.state)

        status = Text()
        status.append("Position: ", style="bold")
        status.append(f"row {self.state.coord[0]}, col {self.state.coord[1]} facing {self.state.direction.value}\n")
        status.append("Score: ", style="bold")
        status.append(f"{self.score}  (best possible: {self.solution.cost})\n")
        status.append("On an optimal path: ", style="bold")
        if self.state in self.solution.states:
            status.append("yes\n\n", style="green")
        else:
            status.append("no\n\n", style="red")

        status.append(Text.from_ansi(grid_text))
        status.append("\n\n")
        status.append("Keys:\n", style="bold cyan")
        status.append("  W - Step forward\n")
        status.append("  A - Turn left\n")
        status.append("  D - Turn right\n")
        status.append("  O - Toggle optimal tiles\n")
        status.append("  R - Reset to start\n")
        status.append("  Q - Quit\n\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        return Panel(status, title="Reindeer Maze Explorer", border_style="green", width=80)

    def attempt_move(self, target: State) -> None:
        """Follow the edge from the current state to target, if the graph has one."""
        for neighbor, cost in self.graph.neighbors(self.state):
            if neighbor == target:
                self.state = neighbor
                self.score += cost
                if self.finished:
                    verdict = "optimal!" if self.score == self.solution.cost else f"{self.score - self.solution.cost} over"
                    self.status_message = f"✓ Reached the end with score {self.score} ({verdict})"
                else:
                    self.status_message = f"✓ +{cost}"
                return
        self.status_message = "✗ Move not allowed from here"

    def step_forward(self) -> None:
        d = self.state.direction
        ahead = (self.state.coord[0] + d.offset[0], self.state.coord[1] + d.offset[1])
        self.attempt_move(State(ahead, d))

    def run(self) -> None:
        """Run the explorer until the user quits."""
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())

                    key = readchar.readkey().lower()
                    if key == 'q':
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif key == 'r':
                        self.reset()
                    elif key == 'o':
                        self.show_optimal = not self.show_optimal
                    elif key == 'w':
                        self.step_forward()
                    elif key == 'a':
                        self.attempt_move(State(self.state.coord, self.state.direction.rotate_left()))
                    elif key == 'd':
                        self.attempt_move(State(self.state.coord, self.state.direction.rotate_right()))
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())
            finally:
                self.graph.close()


SAMPLE = """\
###############
#.......#....E#
#.#.###.#.###.#
#.....#.#...#.#
#.###.#####.#.#
#.#.#.......#.#
#.#.#####.###.#
#...........#.#
###.#.#####.#.#
#...#.....#.#.#
#.#.#.###.#.#.#
#.....#...#.#.#
#.###.#.#.#.#.#
#S..#.....#...#
###############
"""


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')
    text = Path(sys.argv[1]).read_text() if len(sys.argv) > 1 else SAMPLE
    InteractiveDemo(text).run()
