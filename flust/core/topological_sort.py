"""
Flust Core — Dependency Sorter
==============================
Orders a set of node ids so that, for every connection ``from → to`` whose
endpoints both lie in the set, ``from`` comes first.

Kahn's algorithm with a deterministic tie-break: whenever several nodes are
ready at once, the one declared earliest in the flow is taken first.  The
ready set is a min-heap keyed by declaration index, so the output never
depends on dict or set iteration order.

Connections with an endpoint outside the set are ignored, which is what lets
the generator sort one scope (a function body) at a time.
"""

from __future__ import annotations

import heapq
import logging
from typing import Dict, Iterable, List, Sequence

from .errors import CycleDetectedError, NodeNotFoundError
from .ir import Connection, Flow

logger = logging.getLogger(__name__)


def scope_connections(node_ids: Iterable[str], connections: Iterable[Connection]) -> List[Connection]:
    """Connections whose both endpoints are in ``node_ids`` (declaration order kept)."""
    members = set(node_ids)
    return [c for c in connections if c.from_id in members and c.to_id in members]


def topological_sort(node_ids: Sequence[str], connections: Iterable[Connection]) -> List[str]:
    """
    Sort ``node_ids`` by the connections between them.

    Args:
        node_ids:    Node ids in flow declaration order.  Duplicates are ignored.
        connections: Any connections; only those internal to ``node_ids`` are used.

    Returns:
        Every id exactly once, sources first.

    Raises:
        CycleDetectedError: The internal connections contain a cycle.
    """
    order: Dict[str, int] = {}
    for nid in node_ids:
        order.setdefault(nid, len(order))

    in_degree: Dict[str, int] = {nid: 0 for nid in order}
    dependents: Dict[str, List[str]] = {nid: [] for nid in order}

    for conn in scope_connections(order, connections):
        in_degree[conn.to_id] += 1
        dependents[conn.from_id].append(conn.to_id)

    ready = [(order[nid], nid) for nid, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)

    sorted_ids: List[str] = []
    while ready:
        _, nid = heapq.heappop(ready)
        sorted_ids.append(nid)
        for dependent in dependents[nid]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, (order[dependent], dependent))

    if len(sorted_ids) != len(order):
        stuck = [nid for nid in order if in_degree[nid] > 0]
        logger.debug(f"Cycle detected; unsorted nodes: {stuck}")
        raise CycleDetectedError(stuck)

    return sorted_ids


class TopologicalSort:
    """Whole-flow convenience wrapper around :func:`topological_sort`."""

    @staticmethod
    def sort(flow: Flow) -> List[str]:
        node_ids = [n.id for n in flow.nodes]
        known = set(node_ids)
        for conn in flow.connections:
            if conn.from_id not in known:
                raise NodeNotFoundError(conn.from_id, referenced_by=f"connection {conn.from_id} -> {conn.to_id}")
            if conn.to_id not in known:
                raise NodeNotFoundError(conn.to_id, referenced_by=f"connection {conn.from_id} -> {conn.to_id}")
        return topological_sort(node_ids, flow.connections)


__all__ = ["TopologicalSort", "scope_connections", "topological_sort"]
