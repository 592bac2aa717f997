"""
aco_core/graph.py
─────────────────
The static spatial graph the colony searches over.

What is in a graph?
────────────────────
  • N nodes, identified by dense integer indices 0..N-1, each with an
    (x, y) coordinate in the square [0, COORD_MAX).
  • A symmetric distance matrix w[i][j] — the cost of walking edge i↔j.
  • A symmetric boolean edge mask adj[i][j] — True where an edge exists.

"No edge" is carried by the mask, never by a magic weight. Where
adj[i][j] is False the weight cell holds 0.0 and must not be read as a
distance. Everything downstream (heuristic, selection, deposit) gates on
the mask first, so no infinity ever enters arithmetic.

How a random graph is generated
────────────────────────────────
  1. Draw each node's (x, y) uniformly from [0, COORD_MAX).
  2. Ring: connect i ↔ (i+1) mod N. Guarantees connectivity and a
     Hamiltonian cycle, so closed tours are always constructible.
  3. Shortcuts: round(SHORTCUT_FACTOR × N) attempts to connect two random
     nodes. Self-pairs and already-present edges are no-ops.
  4. Weight = Euclidean length × traffic factor, factor ∈ [1, 1 + TRAFFIC_SPREAD),
     floored at MIN_EDGE_WEIGHT so the 1/w heuristic is always finite.

The graph is immutable after construction: every array is flagged
read-only and the engine never rewires it mid-run.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# ── Generation constants ──────────────────────────────────────────────────────

COORD_MAX: float = 100.0
"""Side length of the square coordinate region. Coordinates are in [0, COORD_MAX)."""

MIN_NODES: int = 2
"""Smallest graph the generator will build. Smaller requests are clamped up."""

SHORTCUT_FACTOR: float = 2.0
"""Shortcut attempts per node.

round(SHORTCUT_FACTOR × N) random pairs are tried after the ring is built.
Attempts landing on an existing edge or on the same node twice add nothing,
so the realised shortcut count is usually a little lower.
"""

TRAFFIC_SPREAD: float = 2.0
"""Width of the random multiplicative traffic factor.

weight = euclidean × (1 + u × TRAFFIC_SPREAD), u ~ U[0, 1).
With 2.0 the factor lies in [1, 3): the geometrically shortest edge is not
always the cheapest one. 0.0 gives pure Euclidean weights.
"""

MIN_EDGE_WEIGHT: float = 1e-6
"""Floor on every edge weight.

Two nodes can land on the same coordinate; without the floor their edge
would weigh 0.0 and the 1/w heuristic would divide by zero.
"""

EdgeTuple = Tuple[int, int, float]


class Graph:
    """
    Immutable weighted undirected graph over dense node indices.

    Attributes:
        n_nodes : int                — number of nodes N.
        coords  : NDArray (N, 2)     — node coordinates, read-only.
        weights : NDArray (N, N)     — edge weights; 0.0 where no edge, read-only.
        adjacency: NDArray[bool] (N, N) — edge mask, read-only.
        eta     : NDArray (N, N)     — heuristic 1/w on edges, 0.0 elsewhere.

    Use generate_graph() for a random instance or Graph.from_edges() for a
    hand-built one.
    """

    def __init__(
        self,
        coords: NDArray[np.float64],
        weights: NDArray[np.float64],
        adjacency: NDArray[np.bool_],
        edges: Optional[Sequence[EdgeTuple]] = None,
    ) -> None:
        """
        Validate and freeze the graph arrays.

        Args:
            coords:    (N, 2) coordinates.
            weights:   (N, N) symmetric weights, positive wherever adjacency is True.
            adjacency: (N, N) symmetric boolean mask with a False diagonal.
            edges:     Optional creation-ordered edge list (u, v, w). When
                       omitted it is derived from the upper triangle.

        Raises:
            ValueError: on shape mismatch, fewer than MIN_NODES nodes,
                        asymmetry, self-loops, or a non-positive edge weight.
        """
        coords = np.array(coords, dtype=np.float64)
        weights = np.array(weights, dtype=np.float64)
        adjacency = np.array(adjacency, dtype=bool)

        n = coords.shape[0]
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise ValueError(f"coords must have shape (N, 2), got {coords.shape}")
        if n < MIN_NODES:
            raise ValueError(f"Graph requires at least {MIN_NODES} nodes, got {n}")
        if weights.shape != (n, n) or adjacency.shape != (n, n):
            raise ValueError(
                f"weights and adjacency must have shape ({n}, {n}), "
                f"got {weights.shape} and {adjacency.shape}"
            )
        if np.any(np.diag(adjacency)):
            raise ValueError("Graph does not allow self-loops")
        if not np.array_equal(adjacency, adjacency.T):
            raise ValueError("adjacency must be symmetric")
        if not np.array_equal(weights[adjacency], weights.T[adjacency]):
            raise ValueError("weights must be symmetric")
        if np.any(weights[adjacency] <= 0.0) or not np.all(np.isfinite(weights[adjacency])):
            raise ValueError("edge weights must be finite and positive")

        # Non-edge cells carry no meaning; pin them to 0.0
        weights[~adjacency] = 0.0

        eta = np.zeros((n, n), dtype=np.float64)
        eta[adjacency] = 1.0 / weights[adjacency]

        for arr in (coords, weights, adjacency, eta):
            arr.setflags(write=False)

        self._n = n
        self._coords = coords
        self._weights = weights
        self._adjacency = adjacency
        self._eta = eta

        if edges is None:
            rows, cols = np.nonzero(np.triu(adjacency))
            edges = [(int(u), int(v), float(weights[u, v])) for u, v in zip(rows, cols)]
        self._edges: List[EdgeTuple] = list(edges)

    # ── Construction helpers ──────────────────────────────────────────────────

    @classmethod
    def from_edges(
        cls,
        coords: Sequence[Sequence[float]],
        edges: Iterable[EdgeTuple],
    ) -> Graph:
        """
        Build a graph from coordinates and an explicit (u, v, weight) list.

        Re-adding an existing edge is a no-op (the first weight wins), the
        same rule the random generator follows.

        Raises:
            ValueError: on a self-loop or an endpoint outside 0..N-1.
        """
        coords_arr = np.asarray(coords, dtype=np.float64)
        n = coords_arr.shape[0]
        weights = np.zeros((n, n), dtype=np.float64)
        adjacency = np.zeros((n, n), dtype=bool)
        ordered: List[EdgeTuple] = []

        for u, v, w in edges:
            # Negative indices would silently wrap through numpy indexing
            if not (0 <= u < n and 0 <= v < n):
                raise ValueError(f"edge {u}↔{v} has an endpoint outside 0..{n - 1}")
            if u == v:
                raise ValueError(f"self-loop on node {u} is not allowed")
            if adjacency[u, v]:
                continue
            adjacency[u, v] = adjacency[v, u] = True
            weights[u, v] = weights[v, u] = float(w)
            ordered.append((int(u), int(v), float(w)))

        return cls(coords_arr, weights, adjacency, edges=ordered)

    # ── Queries ───────────────────────────────────────────────────────────────

    def has_edge(self, i: int, j: int) -> bool:
        return bool(self._adjacency[i, j])

    def distance(self, i: int, j: int) -> Optional[float]:
        """Weight of edge i↔j, or None when the nodes are not adjacent."""
        if not self._adjacency[i, j]:
            return None
        return float(self._weights[i, j])

    def neighbors(self, i: int) -> NDArray[np.intp]:
        """Indices adjacent to node i, ascending."""
        return np.flatnonzero(self._adjacency[i])

    def edges(self) -> List[EdgeTuple]:
        """Creation-ordered (u, v, weight) list, one entry per undirected edge."""
        return list(self._edges)

    def is_connected(self, start: int = 0) -> bool:
        """Breadth-first reachability: True if every node is reachable from start."""
        seen = np.zeros(self._n, dtype=bool)
        seen[start] = True
        queue = deque([start])
        while queue:
            node = queue.popleft()
            for nxt in self.neighbors(node):
                if not seen[nxt]:
                    seen[nxt] = True
                    queue.append(int(nxt))
        return bool(seen.all())

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def n_nodes(self) -> int:
        return self._n

    @property
    def n_edges(self) -> int:
        return len(self._edges)

    @property
    def coords(self) -> NDArray[np.float64]:
        return self._coords

    @property
    def weights(self) -> NDArray[np.float64]:
        return self._weights

    @property
    def adjacency(self) -> NDArray[np.bool_]:
        return self._adjacency

    @property
    def eta(self) -> NDArray[np.float64]:
        """Heuristic matrix η = 1/w on edges, 0.0 on non-edges. Read-only."""
        return self._eta

    def __repr__(self) -> str:
        return f"Graph(n_nodes={self._n}, n_edges={self.n_edges})"


# ── Random generation ─────────────────────────────────────────────────────────

def edge_weight(
    a: NDArray[np.float64],
    b: NDArray[np.float64],
    rng: np.random.Generator,
    traffic_spread: float = TRAFFIC_SPREAD,
) -> float:
    """Traffic-perturbed Euclidean weight between two points, floored at MIN_EDGE_WEIGHT."""
    euclidean = math.hypot(float(a[0] - b[0]), float(a[1] - b[1]))
    factor = 1.0 + float(rng.random()) * traffic_spread
    return max(euclidean * factor, MIN_EDGE_WEIGHT)


def generate_graph(
    n_nodes: int,
    rng: Optional[np.random.Generator] = None,
    *,
    shortcut_factor: float = SHORTCUT_FACTOR,
    traffic_spread: float = TRAFFIC_SPREAD,
) -> Graph:
    """
    Build a random connected spatial graph.

    Args:
        n_nodes:         Requested node count. Values below MIN_NODES are
                         clamped up to MIN_NODES.
        rng:             numpy Generator. A fresh unseeded one if omitted.
        shortcut_factor: Shortcut attempts per node (see SHORTCUT_FACTOR).
        traffic_spread:  Traffic factor width (see TRAFFIC_SPREAD).

    Returns:
        Graph with the full ring plus whatever shortcuts landed.
    """
    rng = rng if rng is not None else np.random.default_rng()
    n = max(int(n_nodes), MIN_NODES)

    coords = rng.random((n, 2)) * COORD_MAX
    weights = np.zeros((n, n), dtype=np.float64)
    adjacency = np.zeros((n, n), dtype=bool)
    edges: List[EdgeTuple] = []

    def add_edge(u: int, v: int) -> None:
        if adjacency[u, v]:
            return
        w = edge_weight(coords[u], coords[v], rng, traffic_spread)
        weights[u, v] = weights[v, u] = w
        adjacency[u, v] = adjacency[v, u] = True
        edges.append((u, v, w))

    # Ring. For n=2 the closing edge 1→0 is the same edge as 0→1
    for i in range(n):
        add_edge(i, (i + 1) % n)
    n_ring = len(edges)

    for _ in range(int(round(shortcut_factor * n))):
        u = int(rng.integers(n))
        v = int(rng.integers(n))
        if u != v:
            add_edge(u, v)

    logger.debug(
        "generate_graph: %d nodes, %d edges (%d shortcuts)",
        n, len(edges), len(edges) - n_ring,
    )
    return Graph(coords, weights, adjacency, edges=edges)
