"""
simulation — host-side collaborators of the ACO engine.

Public API:
    SimulationSession — init / graph / step boundary returning JSON snapshots
    SimulationDriver  — steps an engine repeatedly and records per-step history
"""

from simulation.driver import SimulationDriver, StepRecord
from simulation.session import SimulationSession

__all__ = ["SimulationSession", "SimulationDriver", "StepRecord"]
