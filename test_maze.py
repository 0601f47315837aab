"""
Test suite for direction-aware maze search and optimal path reconstruction.
"""

from typing import Callable, Iterable

import pytest

from grid_parser import parse_maze
from grid_types import Direction, State, Terrain
from maze import (
    DistanceMap,
    MazeGraph,
    MazeRules,
    SearchResult,
    UnreachableGoalError,
    collect_optimal_states,
    count_best_seats,
    dijkstra,
    lowest_score,
    optimal_tiles,
    solve,
)


# =============================================================================
# Fixtures
# =============================================================================


LARGE_EXAMPLE = """\
#################
#...#...#...#..E#
#.#.#.#.#.#.#.#.#
#.#.#.#...#...#.#
#.#.#.#.###.#.#.#
#...#.#.#.....#.#
#.#.#.#.#.#####.#
#.#...#.#.#.....#
#.#.#####.#.###.#
#.#.#.......#...#
#.#.###.#####.###
#.#.#...#.....#.#
#.#.#.#####.###.#
#.#.#.........#.#
#.#.#.#########.#
#S#.............#
#################
"""

SMALL_EXAMPLE = """\
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

# One turn beats two: along the bottom, then straight up.
ONE_TURN = """\
#######
#....E#
#.#.#.#
#S....#
#######
"""

# Mirror-image routes around the central wall.
SYMMETRIC = """\
#####
#.E.#
#.#.#
#.S.#
#####
"""

CORRIDOR = """\
######
#S..E#
######
"""

ENCLOSED = """\
#######
#.....#
#.###.#
#.#S#E#
#.###.#
#######
"""


def graph_for(text: str, rules: MazeRules | None = None) -> tuple[MazeGraph, State]:
    start, terrain = parse_maze(text)
    rules = rules if rules is not None else MazeRules()
    return MazeGraph(terrain, rules), State(start, rules.start_direction)


def all_states(graph: MazeGraph) -> list[State]:
    """Every state of the grid, walls included."""
    return [State(coord, d) for coord in graph.grid.indices() for d in Direction]


def relax_all(
    seeds: dict[State, int],
    edges: Callable[[State], Iterable[tuple[State, int]]],
) -> DistanceMap:
    """Exhaustive label-correcting search; independent of the heap-driven engine."""
    dist = dict(seeds)
    changed = True
    while changed:
        changed = False
        for state, d in list(dist.items()):
            for nxt, cost in edges(state):
                if nxt not in dist or d + cost < dist[nxt]:
                    dist[nxt] = d + cost
                    changed = True
    return dist


# =============================================================================
# Test Rules
# =============================================================================


class TestMazeRules:
    """Tests for search configuration."""

    def test_defaults(self) -> None:
        rules = MazeRules()
        assert rules.turn_cost == 1000
        assert rules.move_cost == 1
        assert rules.start_direction is Direction.E

    def test_negative_cost_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            MazeRules(turn_cost=-1)


# =============================================================================
# Test State Graph
# =============================================================================


class TestMazeGraph:
    """Tests for forward and reverse edge generation."""

    def test_open_cell_has_three_edges(self) -> None:
        """Two rotations plus a forward step when the way ahead is clear."""
        graph, start = graph_for(CORRIDOR)
        edges = graph.neighbors(start)

        assert (State((1, 1), Direction.N), 1000) in edges
        assert (State((1, 1), Direction.S), 1000) in edges
        assert (State((1, 2), Direction.E), 1) in edges
        assert len(edges) == 3

    def test_wall_ahead_blocks_forward(self) -> None:
        """Facing a wall leaves only the two rotations."""
        graph, _ = graph_for(CORRIDOR)
        edges = graph.neighbors(State((1, 1), Direction.N))
        assert sorted(cost for _, cost in edges) == [1000, 1000]

    def test_grid_edge_blocks_forward(self) -> None:
        """Stepping off the grid is not an edge, in either axis."""
        graph, _ = graph_for("S.E\n")
        assert len(graph.neighbors(State((0, 0), Direction.N))) == 2
        assert len(graph.neighbors(State((0, 0), Direction.W))) == 2
        assert len(graph.neighbors(State((0, 2), Direction.E))) == 2

    def test_end_and_start_are_walkable(self) -> None:
        """Only walls block movement."""
        graph, _ = graph_for("S.E\n")
        assert (State((0, 2), Direction.E), 1) in graph.neighbors(State((0, 1), Direction.E))
        assert (State((0, 0), Direction.W), 1) in graph.neighbors(State((0, 1), Direction.W))

    def test_wall_state_only_turns(self) -> None:
        """A state inside a wall has no forward edge, even toward an open cell."""
        graph, _ = graph_for(CORRIDOR)
        edges = graph.neighbors(State((0, 1), Direction.S))
        assert len(edges) == 2
        assert set(edges) == {(State((0, 1), Direction.E), 1000), (State((0, 1), Direction.W), 1000)}
        assert (State((0, 1), Direction.S), 1) not in graph.reverse_neighbors(State((1, 1), Direction.S))

    def test_custom_costs(self) -> None:
        graph, start = graph_for(CORRIDOR, MazeRules(turn_cost=7, move_cost=3))
        assert sorted(cost for _, cost in graph.neighbors(start)) == [3, 7, 7]

    @pytest.mark.parametrize("maze", [SMALL_EXAMPLE, ONE_TURN, SYMMETRIC, ENCLOSED])
    def test_edge_reciprocity(self, maze: str) -> None:
        """Every forward edge u -> v appears as a reverse edge of v."""
        graph, _ = graph_for(maze)
        for u in all_states(graph):
            for v, cost in graph.neighbors(u):
                assert (u, cost) in graph.reverse_neighbors(v), (u, v, cost)

    @pytest.mark.parametrize("maze", [SMALL_EXAMPLE, ONE_TURN, SYMMETRIC])
    def test_reverse_edges_are_real(self, maze: str) -> None:
        """Every reverse edge mirrors a forward edge, walls included."""
        graph, _ = graph_for(maze)
        for v in all_states(graph):
            for u, cost in graph.reverse_neighbors(v):
                assert (v, cost) in graph.neighbors(u), (u, v, cost)

    def test_borrow_released_on_close(self) -> None:
        """The graph borrows the terrain read-only until closed."""
        _, terrain = parse_maze(CORRIDOR)
        with MazeGraph(terrain):
            assert terrain.shared_borrows == 1
        assert terrain.shared_borrows == 0


# =============================================================================
# Test Shortest Path Engine
# =============================================================================


class TestDijkstra:
    """Tests for the shortest-path engine."""

    def test_large_example_cost(self) -> None:
        """The 17x17 example costs 11048."""
        graph, start = graph_for(LARGE_EXAMPLE)
        result = dijkstra(graph, start)
        assert isinstance(result, SearchResult)
        assert result.cost == 11048
        assert graph.terrain(result.goal) is Terrain.END

    def test_small_example_cost(self) -> None:
        graph, start = graph_for(SMALL_EXAMPLE)
        assert dijkstra(graph, start).cost == 7036

    def test_straight_corridor(self) -> None:
        """Already facing the end: no turns, cost is the distance."""
        graph, start = graph_for(CORRIDOR)
        result = dijkstra(graph, start)
        assert result.cost == 3
        assert result.goal == State((1, 4), Direction.E)

    def test_adjacent_end(self) -> None:
        graph, start = graph_for("#SE#\n")
        assert dijkstra(graph, start).cost == 1

    def test_start_on_end_costs_nothing(self) -> None:
        """A source already on an end cell is its own goal."""
        graph, _ = graph_for("S.E\n")
        source = State((0, 2), Direction.N)
        result = dijkstra(graph, source)
        assert result.goal == source
        assert result.cost == 0

    def test_turn_needed(self) -> None:
        """Facing away from the corridor costs one turn before moving."""
        graph, _ = graph_for(ONE_TURN)
        # Facing W into a wall: turn N (1000), 2 steps, turn E (1000), 4 steps
        assert dijkstra(graph, State((3, 1), Direction.W)).cost == 2006
        # Facing N the up-then-east route needs only one turn
        assert dijkstra(graph, State((3, 1), Direction.N)).cost == 1006

    def test_distances_include_source(self) -> None:
        graph, start = graph_for(ONE_TURN)
        result = dijkstra(graph, start)
        assert result.distances[start] == 0
        assert result.distances[result.goal] == result.cost

    @pytest.mark.parametrize("maze", [SMALL_EXAMPLE, ONE_TURN, SYMMETRIC, CORRIDOR])
    def test_matches_exhaustive_search(self, maze: str) -> None:
        """The cost equals the cheapest end state found by exhaustive relaxation."""
        graph, start = graph_for(maze)
        everything = relax_all({start: 0}, graph.neighbors)
        best = min(d for s, d in everything.items() if graph.terrain(s) is Terrain.END)
        assert dijkstra(graph, start).cost == best

    def test_unreachable_goal_raises(self) -> None:
        """An enclosed start fails loudly instead of returning a cost."""
        graph, start = graph_for(ENCLOSED)
        with pytest.raises(UnreachableGoalError, match="No end cell reachable") as info:
            dijkstra(graph, start)
        assert info.value.source == start
        # Only the four rotations of the start cell exist
        assert info.value.explored == 4


# =============================================================================
# Test Reconstruction
# =============================================================================


class TestCollectOptimalStates:
    """Tests for the optimal-path-set reconstructor."""

    def test_large_example_tiles(self) -> None:
        """64 distinct cells lie on some cheapest path of the 17x17 example."""
        graph, start = graph_for(LARGE_EXAMPLE)
        result = dijkstra(graph, start)
        states = collect_optimal_states(graph.reverse_neighbors, result.distances, result.goal)
        assert len(optimal_tiles(states)) == 64

    def test_small_example_tiles(self) -> None:
        graph, start = graph_for(SMALL_EXAMPLE)
        result = dijkstra(graph, start)
        states = collect_optimal_states(graph.reverse_neighbors, result.distances, result.goal)
        assert len(optimal_tiles(states)) == 45

    def test_corridor_tiles(self) -> None:
        """A straight path covers its length plus one cells."""
        graph, start = graph_for(CORRIDOR)
        result = dijkstra(graph, start)
        states = collect_optimal_states(graph.reverse_neighbors, result.distances, result.goal)
        assert states == {State((1, c), Direction.E) for c in range(1, 5)}
        assert len(optimal_tiles(states)) == result.cost + 1

    def test_hand_checked_path(self) -> None:
        """Every cell of the one-turn route is found, and nothing else."""
        graph, start = graph_for(ONE_TURN)
        result = dijkstra(graph, start)
        assert result.cost == 1006
        states = collect_optimal_states(graph.reverse_neighbors, result.distances, result.goal)
        expected = {(3, c) for c in range(1, 6)} | {(2, 5), (1, 5)}
        assert optimal_tiles(states) == expected
        # The turn happens in place at the corner
        assert State((3, 5), Direction.E) in states
        assert State((3, 5), Direction.N) in states

    def test_symmetric_routes_follow_goal_direction(self) -> None:
        """Only routes ending in the returned goal's direction are collected."""
        graph, _ = graph_for(SYMMETRIC)
        result = dijkstra(graph, State((3, 2), Direction.N))
        assert result.cost == 3004
        tiles = optimal_tiles(
            collect_optimal_states(graph.reverse_neighbors, result.distances, result.goal)
        )
        left = {(3, 2), (3, 1), (2, 1), (1, 1), (1, 2)}
        right = {(3, 2), (3, 3), (2, 3), (1, 3), (1, 2)}
        assert tiles in (left, right)

    @pytest.mark.parametrize("maze", [SMALL_EXAMPLE, LARGE_EXAMPLE, ONE_TURN])
    def test_states_lie_on_cheapest_paths(self, maze: str) -> None:
        """A state is collected iff cost-to-reach plus cost-to-goal is minimal."""
        graph, start = graph_for(maze)
        result = dijkstra(graph, start)
        states = collect_optimal_states(graph.reverse_neighbors, result.distances, result.goal)

        forward = relax_all({start: 0}, graph.neighbors)
        backward = relax_all({result.goal: 0}, graph.reverse_neighbors)
        on_path = {
            s for s in forward
            if s in backward and forward[s] + backward[s] == result.cost
        }
        assert states == on_path

    def test_goal_without_predecessors(self) -> None:
        """With only the goal recorded, the result is just the goal."""
        graph, _ = graph_for(CORRIDOR)
        goal = State((1, 4), Direction.E)
        assert collect_optimal_states(graph.reverse_neighbors, {goal: 0}, goal) == {goal}

    def test_accepts_any_reverse_function(self) -> None:
        """The reconstructor only needs a callable yielding (state, cost)."""
        a = State((0, 0), Direction.E)
        b = State((0, 1), Direction.E)
        c = State((0, 2), Direction.E)
        detour = State((0, 1), Direction.N)
        reverse = {
            c: [(b, 1), (detour, 5)],
            b: [(a, 1)],
            detour: [(a, 1)],
            a: [],
        }
        distances = {a: 0, b: 1, detour: 1, c: 2}
        assert collect_optimal_states(reverse.__getitem__, distances, c) == {a, b, c}


# =============================================================================
# Test Puzzle Entry Points
# =============================================================================


class TestPuzzles:
    """End-to-end tests from text to answers."""

    def test_lowest_score(self) -> None:
        assert lowest_score(LARGE_EXAMPLE) == 11048
        assert lowest_score(SMALL_EXAMPLE) == 7036

    def test_count_best_seats(self) -> None:
        assert count_best_seats(LARGE_EXAMPLE) == 64
        assert count_best_seats(SMALL_EXAMPLE) == 45

    def test_solve_bundle(self) -> None:
        solution = solve(CORRIDOR)
        assert solution.start == (1, 1)
        assert solution.cost == 3
        assert solution.tiles == {(1, 1), (1, 2), (1, 3), (1, 4)}
        # The search gave its borrow back
        assert solution.terrain.shared_borrows == 0

    def test_unreachable(self) -> None:
        with pytest.raises(UnreachableGoalError):
            lowest_score(ENCLOSED)
