"""
aco_core/models.py
──────────────────
Configuration and snapshot models exchanged with the host.

Reading guide
-------------
EngineConfig is what the host passes in. GraphSnapshot and BestSnapshot
are what the host reads back between steps. All three are plain values:
holding one never gives access to the engine's live matrices.

Field aliases (`from`, `bestDist`, `bestPath`) match the JSON shape the
browser front end of the simulation consumes.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from aco_core.ant import ALPHA, BETA, TourMode
from aco_core.graph import SHORTCUT_FACTOR, TRAFFIC_SPREAD
from aco_core.pheromone import EVAPORATION_RATE, Q, TAU_INITIAL

N_ANTS: int = 20
"""Number of ants per step."""


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 1: CONFIGURATION
# ─────────────────────────────────────────────────────────────────────────────

class EngineConfig(BaseModel):
    """
    Every tunable of one engine instance.

    Frozen: a running engine's parameters cannot drift between steps.

    Open-mode fields:
        start / goal default to 0 and N − 1 when left as None.
        step_budget defaults to STEP_BUDGET_FACTOR × N.
        All three are ignored in CLOSED mode.

    Reproducibility:
        seed drives graph generation and every ant's random stream. None
        means fresh entropy; the engine records the value it drew.
    """
    model_config = ConfigDict(frozen=True)

    mode: TourMode = Field(TourMode.CLOSED, description="CLOSED tour or OPEN start→goal search")
    ant_count: int = Field(N_ANTS, gt=0, description="Ants per step")
    alpha: float = Field(ALPHA, ge=0.0, description="Pheromone exponent")
    beta: float = Field(BETA, ge=0.0, description="Heuristic exponent")
    evaporation: float = Field(
        EVAPORATION_RATE, gt=0.0, le=1.0,
        description="Fraction of pheromone lost per step",
    )
    q: float = Field(Q, gt=0.0, description="Deposit numerator")
    initial_pheromone: float = Field(TAU_INITIAL, gt=0.0, description="τ on every edge at step 0")

    shortcut_factor: float = Field(
        SHORTCUT_FACTOR, ge=0.0,
        description="Random shortcut attempts per node during generation",
    )
    traffic_spread: float = Field(
        TRAFFIC_SPREAD, ge=0.0,
        description="Edge weight = euclidean × (1 + U[0,1) × traffic_spread)",
    )

    start: Optional[int] = Field(None, ge=0, description="OPEN: start node")
    goal: Optional[int] = Field(None, ge=0, description="OPEN: goal node")
    step_budget: Optional[int] = Field(None, gt=0, description="OPEN: max moves per ant")

    seed: Optional[int] = Field(None, ge=0, description="Run seed; None draws fresh entropy")
    workers: int = Field(1, ge=1, description="Threads used to construct ants within a step")


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 2: SNAPSHOTS
# ─────────────────────────────────────────────────────────────────────────────

class NodeModel(BaseModel):
    """One node: dense index and coordinate. Immutable."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0)
    x: float
    y: float


class EdgeModel(BaseModel):
    """One undirected edge as reported to the host. Not authoritative."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: int = Field(..., alias="from", ge=0)
    to: int = Field(..., ge=0)
    weight: float = Field(..., gt=0.0)


class GraphSnapshot(BaseModel):
    """Node and edge lists of the engine's graph. Static for the whole run."""
    model_config = ConfigDict(frozen=True)

    nodes: List[NodeModel] = Field(default_factory=list)
    edges: List[EdgeModel] = Field(default_factory=list)


class BestSnapshot(BaseModel):
    """
    Best solution found so far.

    best_cost is None until some ant has succeeded; best_path is then empty.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    best_cost: Optional[float] = Field(None, alias="bestDist")
    best_path: List[int] = Field(default_factory=list, alias="bestPath")
