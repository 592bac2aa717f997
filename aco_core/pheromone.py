"""
aco_core/pheromone.py
─────────────────────
The pheromone matrix: the colony's shared, persistent memory.

What is pheromone?
──────────────────
Ants that complete a cheap path leave pheromone on every edge they walked.
Later ants are drawn toward edges with more pheromone, so edges that keep
appearing in good paths keep getting reinforced. τ[i][j] is the pheromone
on edge i↔j.

Two forces balance each other:
  1. Evaporation  — every edge loses a fraction ρ of its pheromone per step.
                    Old, unconfirmed trails fade.
  2. Deposit      — every successful ant adds Q / cost to each edge of its
                    path. Cheaper paths deposit more.

Matrix layout
─────────────
  Shape : (N, N), aligned with the graph's distance matrix.
  τ[i][j] == τ[j][i] always — the graph is undirected, and every write goes
  to both cells.
  Non-edges hold 0.0 forever. Evaporation only touches edge cells and
  deposit refuses non-edges, so a 0.0 off the edge mask never changes.

Ordering
────────
Within one step evaporation runs exactly once and strictly before any
deposit. With start value p, rate ρ and deposit d the result is
p·(1−ρ) + d, not (p + d)·(1−ρ). The Colony enforces the order; this class
only provides the two operations.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from aco_core.evaluator import path_edges

# ── Pheromone constants ────────────────────────────────────────────────────────
# Module-level so tests can import and assert against them directly.

TAU_INITIAL: float = 1.0
"""Starting pheromone on every edge.
All edges equal at step 0 → selection is driven by the heuristic alone.
"""

EVAPORATION_RATE: float = 0.5
"""ρ (rho): fraction of pheromone that evaporates each step.

τ_new = τ_old × (1 − ρ)

0.5 is aggressive: a trail nobody reinforces halves every step, so the
colony forgets stale paths within a handful of generations.
"""

Q: float = 100.0
"""Deposit numerator. One edge of a path of cost C receives Q / C."""


class PheromoneMatrix:
    """
    A symmetric (N, N) numpy array of pheromone levels, masked by the graph's edges.

    Used by:
        Ant           → reads get_row() to build selection scores.
        Colony.step() → calls evaporate() then deposit_path() each step.
        Tests         → call snapshot() to inspect internal state.

    Thread safety:
        Concurrent reads are safe. evaporate() and deposit*() are the only
        writers and must not overlap with reads; the Colony runs them after
        every ant of the step has finished.
    """

    def __init__(
        self,
        adjacency: NDArray[np.bool_],
        initial: float = TAU_INITIAL,
        evaporation_rate: float = EVAPORATION_RATE,
        q: float = Q,
    ) -> None:
        """
        Initialise pheromone to `initial` on every edge and 0.0 elsewhere.

        Args:
            adjacency:        (N, N) symmetric boolean edge mask (Graph.adjacency).
            initial:          Starting τ on edges. Must be > 0.
            evaporation_rate: ρ in [0, 1].
            q:                Deposit numerator. Must be > 0.

        Raises:
            ValueError: on a non-square mask or an out-of-range parameter.
        """
        mask = np.asarray(adjacency, dtype=bool)
        if mask.ndim != 2 or mask.shape[0] != mask.shape[1]:
            raise ValueError(f"adjacency must be square, got shape {mask.shape}")
        if initial <= 0.0:
            raise ValueError(f"initial pheromone must be > 0, got {initial}")
        if not 0.0 <= evaporation_rate <= 1.0:
            raise ValueError(f"evaporation_rate must be in [0, 1], got {evaporation_rate}")
        if q <= 0.0:
            raise ValueError(f"q must be > 0, got {q}")

        self._mask = mask
        self._n = mask.shape[0]
        self._rho = float(evaporation_rate)
        self._q = float(q)
        self._matrix: NDArray[np.float64] = np.where(mask, float(initial), 0.0)

    # ── Core operations ────────────────────────────────────────────────────────

    def evaporate(self) -> None:
        """
        Decay every edge cell in place: τ[i][j] ← τ[i][j] × (1 − ρ).

        Non-edge cells are not touched. Symmetry is preserved because both
        halves of every edge are multiplied by the same factor.
        """
        self._matrix[self._mask] *= (1.0 - self._rho)

    def deposit(self, i: int, j: int, amount: float) -> None:
        """
        Add `amount` to edge i↔j in both directions.

        Raises:
            ValueError: if i↔j is not an edge. Pheromone on a non-edge would
                        make it selectable, which must never happen.
        """
        if not self._mask[i, j]:
            raise ValueError(f"cannot deposit on non-edge {i}↔{j}")
        self._matrix[i, j] += amount
        self._matrix[j, i] += amount

    def deposit_path(self, path: Sequence[int], cost: float, closed: bool) -> float:
        """
        Reinforce every hop of a successful path with Q / cost.

        An edge walked twice (the 2-node closed tour goes out and back on the
        same edge) is reinforced twice.

        Returns:
            The per-hop deposit amount, or 0.0 if cost ≤ 0 (nothing deposited).
        """
        if cost <= 0.0:
            return 0.0

        amount = self._q / cost
        for u, v in path_edges(path, closed):
            self.deposit(u, v, amount)
        return amount

    def get_row(self, i: int) -> NDArray[np.float64]:
        """
        Pheromone row for node i.

        This is a VIEW into the live matrix. Callers must not modify it.
        """
        return self._matrix[i]

    def value(self, i: int, j: int) -> float:
        return float(self._matrix[i, j])

    # ── Inspection & testing ───────────────────────────────────────────────────

    def snapshot(self) -> NDArray[np.float64]:
        """Deep copy of the current matrix. Mutating it does not affect the live state."""
        return self._matrix.copy()

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def shape(self) -> tuple[int, int]:
        return (self._n, self._n)

    @property
    def evaporation_rate(self) -> float:
        return self._rho

    @property
    def q(self) -> float:
        return self._q

    def __repr__(self) -> str:
        edge_values = self._matrix[self._mask]
        if edge_values.size == 0:
            return f"PheromoneMatrix(n={self._n}, edges=0)"
        return (
            f"PheromoneMatrix(n={self._n}, "
            f"min={edge_values.min():.4f}, max={edge_values.max():.4f}, "
            f"mean={edge_values.mean():.4f})"
        )
