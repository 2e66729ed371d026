"""Connection validation for the canvas graph.

Decides whether a proposed edge may be created while the user drags a
connection over a potential target. Checks, in order, stopping at the first
failure:

1. The target exists and differs from the source (no self-loops)
2. The node-kind registry allows the source kind to feed the target kind
3. Adding the edge would not close a cycle through persistent edges

The cycle check is a reachability search from the target back to the source.
It is rebuilt from the store on every call: the graph keeps changing while a
drag is in progress, so no visited set or adjacency list outlives a call.
Temporary edges never take part in it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from .models import Connection, Edge

if TYPE_CHECKING:
    from ..nodes.registry import NodeKindRegistry
    from .store import GraphStore

logger = logging.getLogger(__name__)


def build_adjacency(edges: Iterable[Edge]) -> Dict[str, List[str]]:
    """Map each source node id to the target ids of its outgoing edges."""
    graph: Dict[str, List[str]] = defaultdict(list)
    for edge in edges:
        graph[edge.source].append(edge.target)
    return graph


def path_exists(graph: Dict[str, List[str]], start: str, goal: str) -> bool:
    """Iterative DFS: is ``goal`` reachable from ``start``?"""
    visited = set()
    stack = [start]
    while stack:
        node = stack.pop()
        if node == goal:
            return True
        if node in visited:
            continue
        visited.add(node)
        stack.extend(n for n in graph.get(node, ()) if n not in visited)
    return False


def find_cycle(edges: Iterable[Edge]) -> Optional[List[str]]:
    """Return one cycle (first node repeated at the end) or None if acyclic."""
    graph = build_adjacency(edges)
    visited: set = set()
    path: List[str] = []
    on_path: set = set()

    def dfs(node: str) -> Optional[List[str]]:
        visited.add(node)
        path.append(node)
        on_path.add(node)
        for neighbor in graph.get(node, ()):
            if neighbor in on_path:
                return path[path.index(neighbor):] + [neighbor]
            if neighbor not in visited:
                cycle = dfs(neighbor)
                if cycle:
                    return cycle
        path.pop()
        on_path.discard(node)
        return None

    for start in list(graph):
        if start not in visited:
            cycle = dfs(start)
            if cycle:
                return cycle
    return None


class ConnectionValidator:
    """Gatekeeper for new edges, evaluated against the committed graph."""

    def __init__(self, store: "GraphStore", registry: "NodeKindRegistry"):
        self._store = store
        self._registry = registry

    def is_valid_connection(self, connection: Connection) -> bool:
        source_id = connection.source
        target_id = connection.target

        if not target_id or target_id == source_id:
            return False

        source = self._store.get_node(source_id)
        target = self._store.get_node(target_id)
        if source is None or target is None:
            return False

        if not self._registry.can_connect(source.kind, target.kind):
            logger.debug(f"Rejected {source.kind} -> {target.kind}: incompatible kinds")
            return False

        if self.would_create_cycle(source_id, target_id):
            logger.debug(f"Rejected {source_id} -> {target_id}: would create a cycle")
            return False

        return True

    def would_create_cycle(self, source_id: str, target_id: str) -> bool:
        """Would a persistent edge ``source_id -> target_id`` close a cycle?"""
        graph = build_adjacency(self._store.persistent_edges())
        graph[source_id].append(target_id)
        return path_exists(graph, target_id, source_id)
