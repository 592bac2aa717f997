"""
aco_core — Ant Colony Optimisation path-construction engine.

Public API:
    initialize        — build an Engine over a random graph
    Engine            — one run: step(), current_graph(), current_best()
    EngineConfig      — engine parameters (pydantic, frozen)
    TourMode          — CLOSED tour or OPEN start→goal search
    Graph             — static weighted graph
    EngineConfigError — raised on an unusable configuration

Usage:
    from aco_core import EngineConfig, TourMode, initialize

    engine = initialize(30, EngineConfig(seed=7))
    for _ in range(100):
        engine.step()
    best = engine.current_best()   # best.best_cost, best.best_path
"""

from aco_core.ant import TourMode
from aco_core.colony import EngineConfigError
from aco_core.engine import Engine, initialize
from aco_core.graph import Graph, generate_graph
from aco_core.models import BestSnapshot, EngineConfig, GraphSnapshot

__all__ = [
    "initialize",
    "Engine",
    "EngineConfig",
    "EngineConfigError",
    "TourMode",
    "Graph",
    "generate_graph",
    "BestSnapshot",
    "GraphSnapshot",
]
