"""
simulation/session.py
─────────────────────
SimulationSession: the boundary a host (a browser front end, a notebook, a
test) talks to.

Three calls, mirroring what the front end of the simulation expects:

    session.init(node_count)   → build a fresh engine (node_count clamped to ≥ 2)
    session.graph_json()       → {"nodes": [{"id","x","y"}], "edges": [{"from","to","weight"}]}
    session.step_json()        → one step, then {"bestDist": float|null, "bestPath": [int]}

The session owns the engine's lifetime. Re-calling init() replaces the
engine. Calls made before init() return "{}" and log a warning rather than
raise: the front end polls on a timer and must not crash on a race with
initialisation.
"""

from __future__ import annotations

import logging
from typing import Optional

from aco_core import Engine, EngineConfig, initialize
from aco_core.graph import MIN_NODES

logger = logging.getLogger(__name__)

DEFAULT_NODE_COUNT: int = 20
"""Node count used when init() is called without one."""

EMPTY_JSON: str = "{}"


class SimulationSession:
    """
    Holds at most one Engine and exposes it through JSON snapshots.

    Attributes:
        config : EngineConfig       — applied to every engine this session builds.
        engine : Optional[Engine]   — None until init() is called.
    """

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()
        self.engine: Optional[Engine] = None

    def init(self, node_count: int = DEFAULT_NODE_COUNT) -> Engine:
        if node_count < MIN_NODES:
            logger.warning(
                "init: node_count=%d is below %d, clamping", node_count, MIN_NODES,
            )
            node_count = MIN_NODES

        self.engine = initialize(node_count, self.config)
        logger.info("Initialized ACO with %d nodes", node_count)
        return self.engine

    def graph_json(self) -> str:
        if self.engine is None:
            logger.warning("graph_json called before init")
            return EMPTY_JSON
        return self.engine.current_graph().model_dump_json(by_alias=True)

    def step_json(self) -> str:
        if self.engine is None:
            logger.warning("step_json called before init")
            return EMPTY_JSON
        self.engine.step()
        return self.engine.current_best().model_dump_json(by_alias=True)

    @property
    def initialized(self) -> bool:
        return self.engine is not None
