"""
tests/test_pheromone_and_ant.py
───────────────────────────────
PheromoneMatrix and Ant tests.

Reading guide
─────────────
Group 1 — PheromoneMatrix unit tests
    Initial state, evaporation math, deposit math, symmetry.

Group 2 — Roulette selection
    Probabilities are non-negative and zero on ineligible nodes; selection
    never returns a visited node or a non-neighbour; the rounding fallback.

Group 3 — Path construction
    Closed tours visit every node; open searches reach the goal or fail on
    dead ends and on budget exhaustion.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
import pytest

from aco_core.ant import ALPHA, BETA, Ant, AntStatus, TourMode
from aco_core.graph import Graph, generate_graph
from aco_core.pheromone import EVAPORATION_RATE, Q, TAU_INITIAL, PheromoneMatrix


# ─────────────────────────────────────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────────────────────────────────────

def _make_ring(n: int = 5, weight: float = 1.0) -> Graph:
    coords = [(float(i), 0.0) for i in range(n)]
    return Graph.from_edges(coords, [(i, (i + 1) % n, weight) for i in range(n)])


def _make_setup(n: int = 12, seed: int = 0) -> Tuple[Graph, PheromoneMatrix]:
    graph = generate_graph(n, np.random.default_rng(seed))
    return graph, PheromoneMatrix(graph.adjacency)


def _make_ant(graph: Graph, matrix: PheromoneMatrix, seed: int = 0, **kwargs) -> Ant:
    return Ant(graph, matrix, np.random.default_rng(seed), **kwargs)


class _FixedDraw:
    """Stand-in RNG whose random() returns a fixed value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


class _StatusRecordingAnt(Ant):
    """Records the ant's status each time it looks for a next node."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.seen: List[AntStatus] = []

    def select_next(self, current, visited):
        self.seen.append(self.status)
        return super().select_next(current, visited)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 1 — PheromoneMatrix
# ─────────────────────────────────────────────────────────────────────────────

class TestPheromoneMatrix:

    def test_defaults(self):
        assert TAU_INITIAL == 1.0
        assert EVAPORATION_RATE == 0.5
        assert Q == 100.0

    def test_initial_on_edges_zero_elsewhere(self):
        g = _make_ring(5)
        m = PheromoneMatrix(g.adjacency)
        snap = m.snapshot()
        assert np.allclose(snap[g.adjacency], TAU_INITIAL)
        assert np.all(snap[~g.adjacency] == 0.0)
        assert m.shape == (5, 5)

    def test_snapshot_is_deep_copy(self):
        m = PheromoneMatrix(_make_ring(3).adjacency)
        snap = m.snapshot()
        snap[0, 1] = 999.0
        assert m.value(0, 1) == TAU_INITIAL

    def test_evaporation_touches_edges_only(self):
        g = _make_ring(5)
        m = PheromoneMatrix(g.adjacency, evaporation_rate=0.5)
        m.evaporate()
        snap = m.snapshot()
        assert np.allclose(snap[g.adjacency], 0.5)
        assert np.all(snap[~g.adjacency] == 0.0)

    def test_deposit_is_symmetric(self):
        m = PheromoneMatrix(_make_ring(4).adjacency)
        m.deposit(1, 2, 3.0)
        assert m.value(1, 2) == m.value(2, 1) == TAU_INITIAL + 3.0

    def test_deposit_on_non_edge_rejected(self):
        m = PheromoneMatrix(_make_ring(5).adjacency)
        with pytest.raises(ValueError):
            m.deposit(0, 2, 1.0)
        assert m.value(0, 2) == 0.0

    def test_deposit_path_amount(self):
        g = _make_ring(5)
        m = PheromoneMatrix(g.adjacency, q=100.0)
        amount = m.deposit_path([0, 1, 2, 3, 4], cost=5.0, closed=True)
        assert amount == 20.0
        snap = m.snapshot()
        assert np.allclose(snap[g.adjacency], TAU_INITIAL + 20.0)

    def test_two_node_tour_reinforces_edge_twice(self):
        """Out and back on the same edge counts as two traversals."""
        g = Graph.from_edges([(0.0, 0.0), (1.0, 0.0)], [(0, 1, 1.0)])
        m = PheromoneMatrix(g.adjacency, q=100.0)
        m.deposit_path([0, 1], cost=2.0, closed=True)
        assert m.value(0, 1) == TAU_INITIAL + 100.0

    def test_zero_cost_deposits_nothing(self):
        m = PheromoneMatrix(_make_ring(3).adjacency)
        assert m.deposit_path([0, 1, 2], cost=0.0, closed=True) == 0.0
        assert np.allclose(m.snapshot()[_make_ring(3).adjacency], TAU_INITIAL)

    @pytest.mark.parametrize("kwargs", [
        {"initial": 0.0},
        {"evaporation_rate": 1.5},
        {"evaporation_rate": -0.1},
        {"q": 0.0},
    ])
    def test_invalid_parameters_rejected(self, kwargs):
        with pytest.raises(ValueError):
            PheromoneMatrix(_make_ring(3).adjacency, **kwargs)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 2 — Roulette selection
# ─────────────────────────────────────────────────────────────────────────────

class TestSelection:

    def test_default_exponents(self):
        assert ALPHA == 1.0
        assert BETA == 5.0

    def test_probabilities_non_negative_and_masked(self):
        g, m = _make_setup(15, seed=1)
        ant = _make_ant(g, m)
        visited = np.zeros(g.n_nodes, dtype=bool)
        visited[[0, 3, 7]] = True
        current = 3
        probs = ant.probabilities(current, visited)

        assert np.all(probs >= 0.0)
        assert np.all(probs[visited] == 0.0)
        assert np.all(probs[~g.adjacency[current]] == 0.0)
        if probs.sum() > 0:
            assert np.isclose(probs.sum(), 1.0)

    def test_select_never_returns_visited_or_non_neighbour(self):
        g, m = _make_setup(20, seed=2)
        visited = np.zeros(g.n_nodes, dtype=bool)
        visited[[1, 2, 5, 8]] = True
        current = 5
        allowed = set(np.flatnonzero(g.adjacency[current] & ~visited).tolist())

        for seed in range(200):
            nxt = _make_ant(g, m, seed=seed).select_next(current, visited)
            if not allowed:
                assert nxt is None
            else:
                assert nxt in allowed

    def test_no_move_when_all_neighbours_visited(self):
        g = _make_ring(5)
        m = PheromoneMatrix(g.adjacency)
        visited = np.zeros(5, dtype=bool)
        visited[[0, 1, 4]] = True
        assert _make_ant(g, m).select_next(0, visited) is None

    def test_prefers_shorter_edge(self):
        """With β = 5 an edge 2× shorter is 32× more attractive."""
        coords = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
        g = Graph.from_edges(coords, [(0, 1, 1.0), (0, 2, 2.0), (1, 2, 1.0)])
        m = PheromoneMatrix(g.adjacency)
        ant = _make_ant(g, m)
        probs = ant.probabilities(0, np.array([True, False, False]))
        assert np.isclose(probs[1] / probs[2], 32.0)

    def test_roulette_picks_first_reaching_cumulative(self):
        """Scores [1, 1] for nodes 1 and 4: a draw in the lower half picks 1."""
        g = _make_ring(5)
        m = PheromoneMatrix(g.adjacency)
        visited = np.array([True, False, False, False, False])
        low = Ant(g, m, _FixedDraw(0.25)).select_next(0, visited)
        high = Ant(g, m, _FixedDraw(0.75)).select_next(0, visited)
        assert (low, high) == (1, 4)

    def test_rounding_fallback_returns_first_eligible(self):
        """A draw past the cumulative total falls back to the first candidate."""
        g = _make_ring(5)
        m = PheromoneMatrix(g.adjacency)
        visited = np.array([True, False, False, False, False])
        nxt = Ant(g, m, _FixedDraw(1.5)).select_next(0, visited)
        assert nxt == 1


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 3 — Path construction
# ─────────────────────────────────────────────────────────────────────────────

class TestConstruction:

    @pytest.mark.parametrize("seed", range(10))
    def test_closed_tour_on_ring_is_permutation(self, seed):
        g = _make_ring(5)
        ant = _make_ant(g, PheromoneMatrix(g.adjacency), seed=seed)
        assert ant.construct()
        assert ant.status == AntStatus.SUCCEEDED
        assert sorted(ant.path) == [0, 1, 2, 3, 4]

    def test_closed_tour_hops_are_edges(self):
        g, m = _make_setup(25, seed=4)
        for seed in range(20):
            ant = _make_ant(g, m, seed=seed)
            if ant.construct():
                assert len(ant.path) == g.n_nodes
                assert len(set(ant.path)) == g.n_nodes
                for u, v in zip(ant.path, ant.path[1:] + ant.path[:1]):
                    assert g.has_edge(u, v)

    def test_closed_tour_fails_when_cycle_cannot_close(self):
        """On the chain 0-1-2 no Hamiltonian path ends next to its start."""
        g = Graph.from_edges(
            [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)], [(0, 1, 1.0), (1, 2, 1.0)],
        )
        for seed in range(10):
            ant = _make_ant(g, PheromoneMatrix(g.adjacency), seed=seed)
            assert not ant.construct()
            assert ant.status == AntStatus.FAILED

    def test_open_path_graph_always_succeeds(self):
        coords = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)]
        g = Graph.from_edges(coords, [(0, 1, 1.5), (1, 2, 2.0), (2, 3, 2.5)])
        for seed in range(10):
            ant = _make_ant(
                g, PheromoneMatrix(g.adjacency), seed=seed,
                mode=TourMode.OPEN, start=0, goal=3,
            )
            assert ant.construct()
            assert ant.path == [0, 1, 2, 3]

    def test_open_dead_end_fails(self):
        """0 → 1 is a dead end; 0 → 2 → 3 reaches the goal."""
        coords = [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (0.0, 2.0)]
        g = Graph.from_edges(coords, [(0, 1, 1.0), (0, 2, 1.0), (2, 3, 1.0)])
        m = PheromoneMatrix(g.adjacency)
        outcomes = set()
        for seed in range(50):
            ant = _make_ant(g, m, seed=seed, mode=TourMode.OPEN, start=0, goal=3)
            ant.construct()
            outcomes.add((ant.status, tuple(ant.path)))
        assert outcomes == {
            (AntStatus.FAILED, (0, 1)),
            (AntStatus.SUCCEEDED, (0, 2, 3)),
        }

    def test_open_budget_exhaustion_fails(self):
        coords = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)]
        g = Graph.from_edges(coords, [(0, 1, 1.0), (1, 2, 1.0), (2, 3, 1.0)])
        ant = _make_ant(
            g, PheromoneMatrix(g.adjacency),
            mode=TourMode.OPEN, start=0, goal=3, step_budget=2,
        )
        assert not ant.construct()
        assert ant.status == AntStatus.FAILED
        assert ant.path == [0, 1, 2]

    def test_open_isolated_start_fails_from_in_progress(self):
        """An ant whose start has no neighbour is IN_PROGRESS before it fails."""
        g = Graph.from_edges(
            [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)], [(1, 2, 1.0)],
        )
        ant = _StatusRecordingAnt(
            g, PheromoneMatrix(g.adjacency), np.random.default_rng(0),
            mode=TourMode.OPEN, start=0, goal=2,
        )
        assert not ant.construct()
        assert ant.seen == [AntStatus.IN_PROGRESS]
        assert ant.status == AntStatus.FAILED
        assert ant.path == [0]

    def test_open_mode_requires_endpoints(self):
        g = _make_ring(4)
        with pytest.raises(ValueError):
            _make_ant(g, PheromoneMatrix(g.adjacency), mode=TourMode.OPEN, start=0)

    def test_ant_is_single_use(self):
        g = _make_ring(4)
        ant = _make_ant(g, PheromoneMatrix(g.adjacency))
        ant.construct()
        with pytest.raises(RuntimeError):
            ant.construct()
