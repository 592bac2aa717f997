"""
aco_core/engine.py
──────────────────
Engine: the handle a host holds for one simulation run.

Public API
──────────
    engine = initialize(node_count, config)   # random graph, fresh state
    engine = Engine(graph, config)            # explicit graph
    engine.step()                             # one generation
    engine.current_graph()  → GraphSnapshot   # static for the run
    engine.current_best()   → BestSnapshot    # after any completed step

The engine owns the graph, the pheromone matrix, the colony (and with it
the best solution) and the run seed. Nothing outside the engine writes to
its matrices; the host only ever sees snapshot copies.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from aco_core.ant import TourMode
from aco_core.colony import AntFactory, Colony, EngineConfigError, StepStats
from aco_core.graph import MIN_NODES, Graph, generate_graph
from aco_core.models import BestSnapshot, EdgeModel, EngineConfig, GraphSnapshot, NodeModel
from aco_core.pheromone import PheromoneMatrix

logger = logging.getLogger(__name__)


class Engine:
    """
    State of one run: graph, pheromone, best solution and random source.

    Attributes:
        graph      : Graph             — static for the run.
        pheromone  : PheromoneMatrix   — mutated once per step.
        config     : EngineConfig      — frozen.
        run_seed   : int               — root of every random stream.
        start/goal : Optional[int]     — resolved OPEN-mode endpoints.
        last_step  : Optional[StepStats] — stats of the most recent step.
    """

    def __init__(
        self,
        graph: Graph,
        config: Optional[EngineConfig] = None,
        *,
        run_seed: Optional[int] = None,
        ant_factory: Optional[AntFactory] = None,
    ) -> None:
        """
        Args:
            graph:       The graph to search.
            config:      Engine parameters. Defaults to EngineConfig().
            run_seed:    Overrides config.seed. When both are None fresh
                         entropy is drawn and recorded in self.run_seed.
            ant_factory: Optional ant override, passed through to the Colony.

        Raises:
            EngineConfigError: on OPEN-mode endpoints that are out of range or
                               equal, or on ant_count ≤ 0.
        """
        self.config = config or EngineConfig()
        self.graph = graph

        if run_seed is None:
            run_seed = self.config.seed
        if run_seed is None:
            run_seed = int(np.random.SeedSequence().entropy)
        self.run_seed = int(run_seed)

        self.start: Optional[int] = None
        self.goal: Optional[int] = None
        if self.config.mode == TourMode.OPEN:
            self.start, self.goal = self._resolve_endpoints()

        self.pheromone = PheromoneMatrix(
            graph.adjacency,
            initial=self.config.initial_pheromone,
            evaporation_rate=self.config.evaporation,
            q=self.config.q,
        )
        self._colony = Colony(
            graph,
            self.pheromone,
            self.config,
            self.run_seed,
            start=self.start,
            goal=self.goal,
            ant_factory=ant_factory,
        )
        self.last_step: Optional[StepStats] = None

    def _resolve_endpoints(self) -> tuple[int, int]:
        n = self.graph.n_nodes
        start = self.config.start if self.config.start is not None else 0
        goal = self.config.goal if self.config.goal is not None else n - 1
        for name, idx in (("start", start), ("goal", goal)):
            if not 0 <= idx < n:
                raise EngineConfigError(f"{name}={idx} is outside 0..{n - 1}")
        if start == goal:
            raise EngineConfigError(f"start and goal must differ, both are {start}")
        return start, goal

    # ── Host operations ────────────────────────────────────────────────────────

    def step(self) -> None:
        """Advance by exactly one generation."""
        self.last_step = self._colony.step()

    def current_graph(self) -> GraphSnapshot:
        nodes = [
            NodeModel(id=i, x=float(x), y=float(y))
            for i, (x, y) in enumerate(self.graph.coords)
        ]
        edges = [EdgeModel(from_=u, to=v, weight=w) for u, v, w in self.graph.edges()]
        return GraphSnapshot(nodes=nodes, edges=edges)

    def current_best(self) -> BestSnapshot:
        return BestSnapshot(
            best_cost=self._colony.best_cost,
            best_path=list(self._colony.best_path),
        )

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def step_count(self) -> int:
        return self._colony.step_count

    @property
    def best_cost(self) -> Optional[float]:
        return self._colony.best_cost

    def __repr__(self) -> str:
        return (
            f"Engine(mode={self.config.mode.value}, n_nodes={self.graph.n_nodes}, "
            f"steps={self.step_count}, best_cost={self.best_cost})"
        )


def initialize(node_count: int, config: Optional[EngineConfig] = None) -> Engine:
    """
    Build a fresh engine over a random graph.

    node_count below MIN_NODES is clamped up to MIN_NODES. The graph is
    generated from the same run seed that later drives the ants, so one
    seed reproduces the whole run.
    """
    config = config or EngineConfig()
    n = max(int(node_count), MIN_NODES)

    run_seed = config.seed
    if run_seed is None:
        run_seed = int(np.random.SeedSequence().entropy)

    graph = generate_graph(
        n,
        np.random.default_rng(run_seed),
        shortcut_factor=config.shortcut_factor,
        traffic_spread=config.traffic_spread,
    )
    engine = Engine(graph, config, run_seed=run_seed)
    logger.info(
        "Engine initialised: %d nodes, %d edges, mode=%s, seed=%d",
        graph.n_nodes, graph.n_edges, config.mode.value, run_seed,
    )
    return engine
