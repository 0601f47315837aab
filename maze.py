"""
Direction-aware shortest paths through a maze.

Search nodes are (coordinate, facing) states. Stepping forward is cheap,
turning in place is expensive. Three stages:

1. ``MazeGraph`` - forward and reverse edges over a terrain grid
2. ``dijkstra`` - cheapest cost to any end cell, plus the full distance map
3. ``collect_optimal_states`` - every state on at least one cheapest path
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from grid_parser import parse_maze
from grid_types import Direction, State, Terrain
from matrix import Coord, GridBuffer, GridView, offset_by

logger = logging.getLogger(__name__)

Edge = tuple[State, int]
DistanceMap = dict[State, int]

# Type alias for a reverse-edge generator, as consumed by the reconstructor
ReverseNeighbors = Callable[[State], Iterable[Edge]]


@dataclass(frozen=True)
class MazeRules:
    """Costs and starting pose governing a maze search."""

    turn_cost: int = 1000
    move_cost: int = 1
    start_direction: Direction = Direction.E

    def __post_init__(self) -> None:
        if self.turn_cost < 0 or self.move_cost < 0:
            raise ValueError(
                f"Edge costs must be non-negative\n"
                f"  turn_cost: {self.turn_cost}\n"
                f"  move_cost: {self.move_cost}"
            )


class UnreachableGoalError(RuntimeError):
    """The search exhausted every reachable state without touching an end cell."""

    def __init__(self, source: State, explored: int) -> None:
        super().__init__(
            f"No end cell reachable from {source}\n"
            f"  States explored: {explored}"
        )
        self.source = source
        self.explored = explored


# =============================================================================
# State Graph
# =============================================================================


class MazeGraph:
    """
    Edges between (coordinate, direction) states of a terrain grid.

    From any state there are two rotation edges (left and right, each costing
    ``rules.turn_cost``) and, when neither the current cell nor the cell ahead
    is a wall and the cell ahead is inside the grid, one forward edge costing
    ``rules.move_cost``.

    Built from a GridBuffer, the graph holds a read-only borrow of it for its
    whole lifetime; call ``close()`` (or use it as a context manager) to give
    it back. A GridView passed in directly stays the caller's to release.
    """

    def __init__(self, terrain: GridBuffer[Terrain] | GridView[Terrain], rules: MazeRules | None = None) -> None:
        self._borrowed = isinstance(terrain, GridBuffer)
        self.grid: GridView[Terrain] = terrain.view() if isinstance(terrain, GridBuffer) else terrain
        self.rules = rules if rules is not None else MazeRules()

    def terrain(self, state: State) -> Terrain:
        """Terrain under a state; the state's coordinate must be in bounds."""
        return self.grid[state.coord]

    def neighbors(self, state: State) -> list[Edge]:
        edges: list[Edge] = [
            (State(state.coord, state.direction.rotate_left()), self.rules.turn_cost),
            (State(state.coord, state.direction.rotate_right()), self.rules.turn_cost),
        ]

        if self.grid.get(state.coord) is Terrain.WALL:
            return edges  # a state inside a wall can turn but never leave

        ahead = offset_by(state.coord, state.direction.offset)
        if ahead is not None:
            cell = self.grid.get(ahead)
            if cell is not None and cell is not Terrain.WALL:
                edges.append((State(ahead, state.direction), self.rules.move_cost))

        return edges

    def reverse_neighbors(self, state: State) -> list[Edge]:
        """
        Every state that has an edge into ``state``, with that edge's cost.

        Turning around, applying the forward rule and turning each result back
        yields exactly the predecessors: a forward step taken backwards, and
        the two rotations (which are each other's inverse at equal cost).

        Exact for every state, walls included: a forward step needs both of
        its cells to be open, and that condition reads the same from either end.
        """
        flipped = State(state.coord, state.direction.reverse())
        return [
            (State(pred.coord, pred.direction.reverse()), cost)
            for pred, cost in self.neighbors(flipped)
        ]

    def close(self) -> None:
        if self._borrowed:
            self.grid.release()
            self._borrowed = False

    def __enter__(self) -> MazeGraph:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# =============================================================================
# Shortest Path Search
# =============================================================================


@dataclass
class SearchResult:
    """Outcome of a search: the first end state popped, its cost and all distances."""

    goal: State
    cost: int
    distances: DistanceMap = field(repr=False)


def dijkstra(graph: MazeGraph, source: State) -> SearchResult:
    """
    Single-source shortest path until the first end cell is popped.

    Pops happen in non-decreasing cost order, so the first state whose cell is
    an end cell is at minimal cost. Which of several equally cheap end states
    is returned is unspecified.

    Raises:
        UnreachableGoalError: If the frontier empties without reaching an end cell
    """
    distances: DistanceMap = {source: 0}
    # (cost, sequence, state): sequence keeps ordering off State itself
    sequence = itertools.count()
    frontier: list[tuple[int, int, State]] = [(0, next(sequence), source)]
    popped = 0

    while frontier:
        cost, _, state = heapq.heappop(frontier)
        if cost > distances[state]:
            continue  # stale entry, superseded by a cheaper push
        popped += 1

        if graph.terrain(state) is Terrain.END:
            logger.info(
                "dijkstra: reached %s at cost %d (%d states popped, %d discovered)",
                state,
                cost,
                popped,
                len(distances),
            )
            return SearchResult(state, cost, distances)

        for neighbor, edge_cost in graph.neighbors(state):
            candidate = cost + edge_cost
            known = distances.get(neighbor)
            if known is None or candidate < known:
                distances[neighbor] = candidate
                heapq.heappush(frontier, (candidate, next(sequence), neighbor))

    logger.warning("dijkstra: no end cell reachable from %s (%d states popped)", source, popped)
    raise UnreachableGoalError(source, popped)


# =============================================================================
# Optimal Path Reconstruction
# =============================================================================


def collect_optimal_states(
    reverse_neighbors: ReverseNeighbors,
    distances: DistanceMap,
    goal: State,
) -> set[State]:
    """
    Walk backwards from goal along tight edges only.

    An edge (p, h) is tight when ``distances[h] == distances[p] + cost``; such
    an edge lies on some cheapest path to h. The states reached this way are
    exactly those on at least one cheapest path from the source to goal.
    """
    visited = {goal}
    stack = [goal]

    while stack:
        head = stack.pop()
        for pred, edge_cost in reverse_neighbors(head):
            if pred in visited or pred not in distances:
                continue
            if distances[head] == distances[pred] + edge_cost:
                visited.add(pred)
                stack.append(pred)

    logger.debug("collect_optimal_states: %d states on optimal paths to %s", len(visited), goal)
    return visited


def optimal_tiles(states: Iterable[State]) -> set[Coord]:
    """Project states onto their coordinates, discarding direction."""
    return {state.coord for state in states}


# =============================================================================
# Puzzle Entry Points
# =============================================================================


@dataclass
class MazeSolution:
    """Everything a caller may want to report or render about a solved maze."""

    start: Coord
    terrain: GridBuffer[Terrain] = field(repr=False)
    result: SearchResult
    states: set[State] = field(repr=False)

    @property
    def cost(self) -> int:
        return self.result.cost

    @property
    def tiles(self) -> set[Coord]:
        return optimal_tiles(self.states)


def solve(text: str, rules: MazeRules | None = None) -> MazeSolution:
    """Parse a maze, search it and reconstruct the set of optimal states."""
    rules = rules if rules is not None else MazeRules()
    start, terrain = parse_maze(text)
    with MazeGraph(terrain, rules) as graph:
        result = dijkstra(graph, State(start, rules.start_direction))
        states = collect_optimal_states(graph.reverse_neighbors, result.distances, result.goal)
    return MazeSolution(start, terrain, result, states)


def lowest_score(text: str, rules: MazeRules | None = None) -> int:
    """Cheapest cost from the start to any end cell."""
    rules = rules if rules is not None else MazeRules()
    start, terrain = parse_maze(text)
    with MazeGraph(terrain, rules) as graph:
        return dijkstra(graph, State(start, rules.start_direction)).cost


def count_best_seats(text: str, rules: MazeRules | None = None) -> int:
    """Number of distinct cells lying on at least one cheapest path."""
    return len(solve(text, rules).tiles)
