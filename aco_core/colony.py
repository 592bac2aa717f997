"""
aco_core/colony.py
──────────────────
The Colony: advances the simulation one generation at a time.

What one step does
───────────────────
  1. Spawns ant_count ants. Each independently constructs a candidate
     path from the current pheromone levels + heuristic.
  2. Evaluates every successful candidate and folds it into the best
     solution: a candidate replaces the best only if strictly cheaper.
     Ties keep the earlier path; ants are folded in index order.
  3. Evaporates the pheromone matrix (every edge × (1 − ρ)).
  4. Deposits Q / cost on every edge of every successful candidate.
     Failed ants deposit nothing — a dead end is never rewarded.

Evaporation always precedes deposit. The Colony is the only writer of the
pheromone matrix, and it writes only after all ants of the step have
returned.

Random streams
───────────────
Ant k in step t draws from np.random.default_rng([run_seed, t, k]). Each
ant owns its stream, so the ants can run on worker threads without their
draws interleaving, and a run is fully reproducible from run_seed no
matter how many workers are used.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from aco_core.ant import Ant, AntStatus, TourMode
from aco_core.evaluator import path_cost
from aco_core.graph import Graph
from aco_core.models import EngineConfig
from aco_core.pheromone import PheromoneMatrix

logger = logging.getLogger(__name__)

AntFactory = Callable[[int, np.random.Generator], Ant]
"""(ant_index, rng) → unconstructed Ant. Lets tests inject synthetic ants."""


class EngineConfigError(ValueError):
    """
    Raised when the engine is configured in a way it cannot run.

    Examples:
        • ant_count ≤ 0
        • OPEN mode with start == goal, or start / goal outside 0..N-1

    There is no recovery path: the caller must supply valid parameters.
    """
    pass


@dataclass
class AntResult:
    """Outcome of one ant in one step. cost is None for failed ants."""
    ant_index: int
    status: AntStatus
    path: List[int] = field(default_factory=list)
    cost: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.status == AntStatus.SUCCEEDED


@dataclass
class StepStats:
    """Summary of one completed step."""
    step: int
    succeeded: int
    failed: int
    iteration_best_cost: Optional[float] = None
    mean_cost: Optional[float] = None
    improved: bool = False


class Colony:
    """
    Runs ants over a graph and keeps the best solution across steps.

    Usage:
        colony = Colony(graph, matrix, config, run_seed=42, start=0, goal=9)
        stats  = colony.step()
        colony.best_cost, colony.best_path

    Attributes:
        best_cost  : Optional[float] — lowest cost ever seen, None until a success.
        best_path  : List[int]       — path achieving best_cost.
        step_count : int             — completed steps.
    """

    def __init__(
        self,
        graph: Graph,
        matrix: PheromoneMatrix,
        config: EngineConfig,
        run_seed: int,
        *,
        start: Optional[int] = None,
        goal: Optional[int] = None,
        ant_factory: Optional[AntFactory] = None,
    ) -> None:
        """
        Args:
            graph:       The static graph.
            matrix:      Pheromone matrix aligned with graph. The colony becomes its sole writer.
            config:      Engine parameters.
            run_seed:    Root of every ant's random stream.
            start, goal: OPEN mode endpoints, already resolved against N.
            ant_factory: Optional override for ant creation.

        Raises:
            EngineConfigError: if ant_count ≤ 0 or the matrix does not match the graph.
        """
        if config.ant_count <= 0:
            raise EngineConfigError(f"ant_count must be > 0, got {config.ant_count}")
        if matrix.shape != (graph.n_nodes, graph.n_nodes):
            raise EngineConfigError(
                f"pheromone shape {matrix.shape} does not match "
                f"graph size {graph.n_nodes}"
            )

        self._graph = graph
        self._matrix = matrix
        self._config = config
        self._run_seed = int(run_seed)
        self._start = start
        self._goal = goal
        self._ant_factory: AntFactory = ant_factory or self._make_ant

        self.best_cost: Optional[float] = None
        self.best_path: List[int] = []
        self.step_count: int = 0

    # ── Ant creation ───────────────────────────────────────────────────────────

    def _make_ant(self, ant_index: int, rng: np.random.Generator) -> Ant:
        return Ant(
            self._graph,
            self._matrix,
            rng,
            mode=self._config.mode,
            alpha=self._config.alpha,
            beta=self._config.beta,
            start=self._start,
            goal=self._goal,
            step_budget=self._config.step_budget,
        )

    def ant_rng(self, step: int, ant_index: int) -> np.random.Generator:
        """The random stream of ant `ant_index` in step `step`."""
        return np.random.default_rng([self._run_seed, step, ant_index])

    def _run_ant(self, ant_index: int) -> AntResult:
        rng = self.ant_rng(self.step_count, ant_index)
        ant = self._ant_factory(ant_index, rng)
        ant.construct()

        if not ant.succeeded:
            return AntResult(ant_index=ant_index, status=ant.status, path=list(ant.path))

        cost = path_cost(ant.path, self._graph, closed=self._closed)
        return AntResult(
            ant_index=ant_index,
            status=ant.status,
            path=list(ant.path),
            cost=cost,
        )

    def _run_ants(self) -> List[AntResult]:
        """Construct every ant of this step. Returns results in ant-index order."""
        indices = range(self._config.ant_count)
        if self._config.workers <= 1:
            return [self._run_ant(k) for k in indices]

        # map() yields in submission order; leaving the block is the barrier
        with ThreadPoolExecutor(max_workers=self._config.workers) as pool:
            return list(pool.map(self._run_ant, indices))

    # ── Main step ──────────────────────────────────────────────────────────────

    def step(self) -> StepStats:
        """
        Advance by exactly one generation.

        Returns:
            StepStats for the step just completed.
        """
        if self._config.ant_count <= 0:
            raise EngineConfigError(f"ant_count must be > 0, got {self._config.ant_count}")

        results = self._run_ants()
        successes = [r for r in results if r.succeeded]

        # Sequential fold: strictly better replaces, ties keep the earlier path
        improved = False
        for result in successes:
            if self.best_cost is None or result.cost < self.best_cost:
                self.best_cost = result.cost
                self.best_path = list(result.path)
                improved = True
        if improved:
            logger.info("New best cost: %.2f (step %d)", self.best_cost, self.step_count)

        self._matrix.evaporate()
        for result in successes:
            self._matrix.deposit_path(result.path, result.cost, closed=self._closed)

        costs = [r.cost for r in successes]
        stats = StepStats(
            step=self.step_count,
            succeeded=len(successes),
            failed=len(results) - len(successes),
            iteration_best_cost=min(costs) if costs else None,
            mean_cost=float(np.mean(costs)) if costs else None,
            improved=improved,
        )
        logger.debug(
            "step %d: %d succeeded, %d failed, iteration best=%s",
            stats.step, stats.succeeded, stats.failed, stats.iteration_best_cost,
        )

        self.step_count += 1
        return stats

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def _closed(self) -> bool:
        return self._config.mode == TourMode.CLOSED

    @property
    def run_seed(self) -> int:
        return self._run_seed

    def __repr__(self) -> str:
        return (
            f"Colony(n_nodes={self._graph.n_nodes}, ants={self._config.ant_count}, "
            f"steps={self.step_count}, best_cost={self.best_cost})"
        )
