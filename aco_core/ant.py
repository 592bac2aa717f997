"""
aco_core/ant.py
───────────────
One ant: constructs one candidate path over the graph.

What does an ant do?
─────────────────────
An ant stands on a node, looks at every unvisited neighbour, and picks one
at random with probability proportional to how attractive it is. It repeats
until its path is complete or it gets stuck. Twenty ants walking the same
graph produce twenty slightly different paths; the colony keeps the best and
reinforces what worked.

The two inputs to every decision
──────────────────────────────────
1. Pheromone trail (τ) — what did previous ants learn?
   Read from the shared PheromoneMatrix.

2. Heuristic desirability (η) — how close is the neighbour?
   η[i][j] = 1 / w[i][j], precomputed by the Graph. Non-edges carry η = 0.

The selection formula
──────────────────────
score(i → j) = τ[i][j]^α × η[i][j]^β     for j unvisited and adjacent to i

  α = 1.0: pheromone exponent.
  β = 5.0: heuristic exponent. Proximity dominates early search, when τ
           is still uniform.

A roulette wheel is spun over the scores in ascending index order: draw
r ∈ [0, Σ score) and take the first j whose running sum reaches r.

Two path regimes
─────────────────
CLOSED: start at a uniformly random node, visit all N nodes, then close the
        cycle back to the start. Fails if the ant gets stuck, or if the last
        node is not adjacent to the first (the cycle cannot be closed).
OPEN:   start at a fixed start node and walk until the goal is reached.
        Fails on a dead end or when the step budget runs out.

Per-ant state machine
──────────────────────
  AT_START ──move──▶ IN_PROGRESS ──goal reached / all visited──▶ SUCCEEDED
                          │
                          ├──no move available──▶ FAILED
                          └──step budget exhausted──▶ FAILED

Failure is a normal outcome, not an error: a failed ant simply has no
candidate and deposits nothing.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from aco_core.graph import Graph
from aco_core.pheromone import PheromoneMatrix

# ── ACO hyperparameters ────────────────────────────────────────────────────────

ALPHA: float = 1.0
"""Pheromone influence exponent. τ^ALPHA; 1.0 is linear."""

BETA: float = 5.0
"""Heuristic influence exponent.

(1/w)^BETA. With 5.0 an edge half as long is 32× more attractive, so
early ants behave almost like a randomised nearest-neighbour walk.
"""

STEP_BUDGET_FACTOR: int = 2
"""Open-mode move budget per ant, as a multiple of N.

Since an ant never revisits a node it can make at most N − 1 moves, so the
budget only bites when configured below that.
"""


class TourMode(str, Enum):
    """
    Which path convention the engine optimises.

    CLOSED → visit every node once and return to the start (cycle).
    OPEN   → walk from a fixed start node to a fixed goal node.
    """
    CLOSED = "closed"
    OPEN = "open"


class AntStatus(str, Enum):
    """Lifecycle of one construction. SUCCEEDED and FAILED are terminal."""
    AT_START = "at-start"
    IN_PROGRESS = "in-progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Ant:
    """
    Constructs one path using pheromone + heuristic.

    Lifecycle:
        1. __init__()   → bind to the graph, the pheromone matrix and an RNG.
        2. construct()  → walk until SUCCEEDED or FAILED.
        3. Read results → ant.path, ant.status, ant.succeeded.

    The ant is single-use: create a new Ant for each construction.

    Attributes:
        path   : List[int]  — visited node indices, in order.
        status : AntStatus  — current state.
    """

    def __init__(
        self,
        graph: Graph,
        matrix: PheromoneMatrix,
        rng: np.random.Generator,
        *,
        mode: TourMode = TourMode.CLOSED,
        alpha: float = ALPHA,
        beta: float = BETA,
        start: Optional[int] = None,
        goal: Optional[int] = None,
        step_budget: Optional[int] = None,
    ) -> None:
        """
        Args:
            graph:       The static graph (distance mask and η).
            matrix:      Shared PheromoneMatrix (read-only for this ant).
            rng:         This ant's own random stream.
            mode:        CLOSED or OPEN.
            alpha, beta: Selection exponents.
            start:       OPEN: required start node. CLOSED: ignored, the
                         start is drawn from rng.
            goal:        OPEN: required goal node.
            step_budget: OPEN: maximum number of moves. Defaults to
                         STEP_BUDGET_FACTOR × N.

        Raises:
            ValueError: if OPEN mode is missing start or goal.
        """
        if mode == TourMode.OPEN and (start is None or goal is None):
            raise ValueError("OPEN mode requires both start and goal")

        self._graph = graph
        self._matrix = matrix
        self._rng = rng
        self._mode = mode
        self._alpha = alpha
        self._beta = beta
        self._start = start
        self._goal = goal
        self._step_budget = (
            step_budget if step_budget is not None
            else STEP_BUDGET_FACTOR * graph.n_nodes
        )

        self.path: List[int] = []
        self.status: AntStatus = AntStatus.AT_START

    # ── Node selection ─────────────────────────────────────────────────────────

    def _scores(self, current: int, visited: NDArray[np.bool_]) -> NDArray[np.float64]:
        """
        Desirability of every node as the next hop from `current`.

        Returns a length-N array: τ^α × η^β for unvisited neighbours, exactly
        0.0 for visited nodes and non-neighbours. η comes from the graph's
        masked heuristic, so a non-edge never contributes a number.
        """
        eligible = self._graph.adjacency[current] & ~visited
        tau_row = self._matrix.get_row(current)
        eta_row = self._graph.eta[current]
        scores = np.zeros(self._graph.n_nodes, dtype=np.float64)
        scores[eligible] = (tau_row[eligible] ** self._alpha) * (eta_row[eligible] ** self._beta)
        return scores

    def probabilities(self, current: int, visited: NDArray[np.bool_]) -> NDArray[np.float64]:
        """
        Normalised selection probabilities from `current`.

        All zeros when no move is available.
        """
        scores = self._scores(current, visited)
        total = float(scores.sum())
        if total == 0.0:
            return scores
        return scores / total

    def select_next(self, current: int, visited: NDArray[np.bool_]) -> Optional[int]:
        """
        Roulette-wheel choice of the next node, or None if no move exists.

        Only unvisited neighbours are candidates. Their scores are accumulated
        in ascending index order and the first candidate whose running sum
        reaches the draw r ∈ [0, total) is chosen. If rounding leaves the
        last running sum just short of r, the first candidate is returned.
        """
        eligible = self._graph.adjacency[current] & ~visited
        candidates = np.flatnonzero(eligible)
        if candidates.size == 0:
            return None

        scores = self._scores(current, visited)[candidates]
        total = float(scores.sum())
        if total == 0.0:
            return None

        draw = float(self._rng.random()) * total
        cumulative = np.cumsum(scores)
        pos = int(np.searchsorted(cumulative, draw, side="left"))
        if pos >= candidates.size:
            return int(candidates[0])
        return int(candidates[pos])

    # ── Path construction ──────────────────────────────────────────────────────

    def construct(self) -> bool:
        """
        Build one path according to the ant's mode.

        Returns:
            bool: True if the ant SUCCEEDED.
        """
        if self.status != AntStatus.AT_START:
            raise RuntimeError("Ant is single-use; construct() was already called")

        if self._mode == TourMode.CLOSED:
            self._construct_closed()
        else:
            self._construct_open()
        return self.succeeded

    def _move(self, node: int, visited: NDArray[np.bool_]) -> None:
        self.path.append(node)
        visited[node] = True

    def _construct_closed(self) -> None:
        n = self._graph.n_nodes
        visited = np.zeros(n, dtype=bool)
        current = int(self._rng.integers(n))
        self._move(current, visited)
        self.status = AntStatus.IN_PROGRESS

        while len(self.path) < n:
            nxt = self.select_next(current, visited)
            if nxt is None:
                self.status = AntStatus.FAILED
                return
            self._move(nxt, visited)
            current = nxt

        # The closing hop must exist for the cycle to have a cost
        if not self._graph.has_edge(self.path[-1], self.path[0]):
            self.status = AntStatus.FAILED
            return
        self.status = AntStatus.SUCCEEDED

    def _construct_open(self) -> None:
        n = self._graph.n_nodes
        visited = np.zeros(n, dtype=bool)
        current = int(self._start)
        self._move(current, visited)
        self.status = AntStatus.IN_PROGRESS

        moves = 0
        while True:
            nxt = self.select_next(current, visited)
            if nxt is None:
                self.status = AntStatus.FAILED
                return
            self._move(nxt, visited)
            current = nxt
            moves += 1

            if current == self._goal:
                self.status = AntStatus.SUCCEEDED
                return
            if moves >= self._step_budget:
                self.status = AntStatus.FAILED
                return

    # ── Results ────────────────────────────────────────────────────────────────

    @property
    def succeeded(self) -> bool:
        return self.status == AntStatus.SUCCEEDED

    @property
    def mode(self) -> TourMode:
        return self._mode

    def __repr__(self) -> str:
        return f"Ant(mode={self._mode.value}, status={self.status.value}, path={self.path})"
