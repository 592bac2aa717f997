"""
aco_core/evaluator.py
─────────────────────
Path cost under the two path conventions.

  closed: w(p0,p1) + w(p1,p2) + … + w(pk-1,pk) + w(pk,p0)
  open:   w(p0,p1) + w(p1,p2) + … + w(pk-1,pk)

path_edges() is shared with the pheromone deposit so the edges that are
paid for and the edges that are reinforced are always the same list.
"""

from __future__ import annotations

from typing import Iterator, Sequence, Tuple

from aco_core.graph import Graph


def path_edges(path: Sequence[int], closed: bool) -> Iterator[Tuple[int, int]]:
    """Yield the (u, v) hops of a path, including the return hop when closed."""
    for u, v in zip(path, path[1:]):
        yield u, v
    if closed:
        yield path[-1], path[0]


def path_cost(path: Sequence[int], graph: Graph, closed: bool) -> float:
    """
    Total weight of a path.

    Raises:
        ValueError: if the path has fewer than 2 nodes or any hop
                    (including the closing hop in closed mode) is not an edge.
    """
    if len(path) < 2:
        raise ValueError(f"path needs at least 2 nodes, got {len(path)}")

    total = 0.0
    for u, v in path_edges(path, closed):
        w = graph.distance(u, v)
        if w is None:
            raise ValueError(f"path hop {u}→{v} is not an edge")
        total += w
    return total
