"""
simulation/driver.py
────────────────────
SimulationDriver: the host's step loop.

Calls engine.step() repeatedly and records, after each step, the engine's
best cost and that step's stats. The history shows what ACO promises: the
mean cost of successful ants drifts down and the best cost never goes up.

Early stop
───────────
With stagnation_limit=k the loop ends once k consecutive steps passed
without a new best. Stagnation only counts after the first success, so an
OPEN-mode run that has not reached the goal yet keeps searching.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from aco_core import Engine

logger = logging.getLogger(__name__)

STAGNATION_LIMIT: Optional[int] = None
"""Default early-stop window. None runs every requested step."""


@dataclass
class StepRecord:
    """Best-so-far and per-step figures after one step."""
    step: int
    best_cost: Optional[float]
    iteration_best_cost: Optional[float]
    mean_cost: Optional[float]
    succeeded: int
    failed: int


class SimulationDriver:
    """
    Steps one engine and keeps the history.

    Usage:
        driver  = SimulationDriver(engine)
        history = driver.run(200, stagnation_limit=25)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.history: List[StepRecord] = []

    def tick(self) -> StepRecord:
        """One step, recorded."""
        self.engine.step()
        stats = self.engine.last_step
        record = StepRecord(
            step=stats.step,
            best_cost=self.engine.best_cost,
            iteration_best_cost=stats.iteration_best_cost,
            mean_cost=stats.mean_cost,
            succeeded=stats.succeeded,
            failed=stats.failed,
        )
        self.history.append(record)
        return record

    def run(
        self,
        n_steps: int,
        stagnation_limit: Optional[int] = STAGNATION_LIMIT,
    ) -> List[StepRecord]:
        """
        Run up to n_steps steps.

        Returns:
            The records of the steps run by this call.

        Raises:
            ValueError: if n_steps < 0 or stagnation_limit < 1.
        """
        if n_steps < 0:
            raise ValueError(f"n_steps must be >= 0, got {n_steps}")
        if stagnation_limit is not None and stagnation_limit < 1:
            raise ValueError(f"stagnation_limit must be >= 1, got {stagnation_limit}")

        records: List[StepRecord] = []
        stagnation = 0
        for _ in range(n_steps):
            record = self.tick()
            records.append(record)

            if self.engine.last_step.improved:
                stagnation = 0
            elif record.best_cost is not None:
                stagnation += 1

            if stagnation_limit is not None and stagnation >= stagnation_limit:
                logger.info(
                    "Stopping after step %d: no improvement for %d steps (best=%.2f)",
                    record.step, stagnation, record.best_cost,
                )
                break
        return records
